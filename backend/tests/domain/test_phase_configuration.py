"""Tests for configuration override validation and resolution."""

import uuid
from datetime import UTC, date, datetime, timedelta

import pytest

from showops.core.exceptions import ConfigurationValidationError
from showops.domain.configuration import PhaseConfiguration, resolve_configuration, validate_overrides
from showops.domain.phases import Phase, ProjectState

PROJECT_ID = uuid.uuid4()


class TestValidateOverrides:
    def test_valid_overrides_are_merged(self):
        config = validate_overrides(
            PROJECT_ID,
            {
                "timezone": "America/New_York",
                "rehearsal_start_date": "2025-06-01",
                "show_end_date": date(2025, 6, 10),
                "post_show_grace": 6 * 3600,
                "auto_transitions_enabled": False,
            },
        )

        assert config.timezone == "America/New_York"
        assert config.rehearsal_start_date == date(2025, 6, 1)
        assert config.show_end_date == date(2025, 6, 10)
        assert config.post_show_grace == timedelta(hours=6)
        assert config.rehearsal_grace == timedelta()
        assert config.auto_transitions_enabled is False

    def test_unknown_timezone_is_rejected(self):
        with pytest.raises(ConfigurationValidationError) as exc_info:
            validate_overrides(PROJECT_ID, {"timezone": "Not/A_Zone"})

        assert set(exc_info.value.errors) == {"timezone"}

    def test_negative_duration_is_rejected(self):
        with pytest.raises(ConfigurationValidationError) as exc_info:
            validate_overrides(PROJECT_ID, {"rehearsal_grace": timedelta(minutes=-5)})

        assert exc_info.value.errors["rehearsal_grace"] == "must not be negative"

    def test_every_invalid_field_is_reported_at_once(self):
        with pytest.raises(ConfigurationValidationError) as exc_info:
            validate_overrides(
                PROJECT_ID,
                {
                    "timezone": "Nowhere/Land",
                    "post_show_grace": -1,
                    "auto_transitions_enabled": "yes",
                    "colour": "blue",
                },
            )

        assert set(exc_info.value.errors) == {"timezone", "post_show_grace", "auto_transitions_enabled", "colour"}

    def test_show_end_before_rehearsal_start_is_rejected(self):
        with pytest.raises(ConfigurationValidationError) as exc_info:
            validate_overrides(PROJECT_ID, {"rehearsal_start_date": "2025-06-10", "show_end_date": "2025-06-01"})

        assert "show_end_date" in exc_info.value.errors

    def test_malformed_date_is_rejected(self):
        with pytest.raises(ConfigurationValidationError) as exc_info:
            validate_overrides(PROJECT_ID, {"show_end_date": "next tuesday"})

        assert "show_end_date" in exc_info.value.errors

    def test_dates_outside_the_supported_range_are_rejected(self):
        with pytest.raises(ConfigurationValidationError) as exc_info:
            validate_overrides(PROJECT_ID, {"rehearsal_start_date": "0001-01-01", "show_end_date": "9999-12-31"})

        assert set(exc_info.value.errors) == {"rehearsal_start_date", "show_end_date"}

    def test_grace_longer_than_a_year_is_rejected(self):
        with pytest.raises(ConfigurationValidationError) as exc_info:
            validate_overrides(PROJECT_ID, {"post_show_grace": timedelta(days=366), "rehearsal_grace": 1e20})

        assert set(exc_info.value.errors) == {"post_show_grace", "rehearsal_grace"}

    def test_partial_update_keeps_existing_values(self):
        existing = PhaseConfiguration(project_id=PROJECT_ID, timezone="Europe/London", post_show_grace=timedelta(hours=1))

        merged = validate_overrides(PROJECT_ID, {"auto_transitions_enabled": True}, existing)

        assert merged.timezone == "Europe/London"
        assert merged.post_show_grace == timedelta(hours=1)
        assert merged.auto_transitions_enabled is True

    def test_none_clears_an_override(self):
        existing = PhaseConfiguration(project_id=PROJECT_ID, timezone="Europe/London", rehearsal_grace=timedelta(hours=2))

        merged = validate_overrides(PROJECT_ID, {"timezone": None, "rehearsal_grace": None}, existing)

        assert merged.timezone is None
        assert merged.rehearsal_grace == timedelta()


class TestResolveConfiguration:
    def _project(self, **fields):
        return ProjectState(
            id=PROJECT_ID,
            phase=Phase.PRE_SHOW,
            phase_updated_at=datetime(2025, 1, 1, tzinfo=UTC),
            **fields,
        )

    def test_without_overrides_uses_project_fields(self):
        project = self._project(timezone="Asia/Tokyo", rehearsal_start_date=date(2025, 6, 1))

        effective = resolve_configuration(project, None)

        assert effective.timezone == "Asia/Tokyo"
        assert effective.rehearsal_start_date == date(2025, 6, 1)
        assert effective.auto_transitions_enabled is True

    def test_overrides_win_over_project_fields(self):
        project = self._project(timezone="Asia/Tokyo", auto_transitions_enabled=True)
        config = PhaseConfiguration(project_id=PROJECT_ID, timezone="UTC", auto_transitions_enabled=False)

        effective = resolve_configuration(project, config)

        assert effective.timezone == "UTC"
        assert effective.auto_transitions_enabled is False

    def test_unset_override_falls_through(self):
        project = self._project(show_end_date=date(2025, 6, 10))
        config = PhaseConfiguration(project_id=PROJECT_ID, timezone="UTC")

        assert resolve_configuration(project, config).show_end_date == date(2025, 6, 10)
