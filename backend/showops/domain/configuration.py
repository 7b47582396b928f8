"""Per-project phase configuration: validation and effective-value resolution.

Pure domain logic, no I/O.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from typing import Any

from showops.core.exceptions import ConfigurationValidationError
from showops.domain.phases import ProjectState
from showops.domain.timezones import is_valid_timezone

_OVERRIDE_FIELDS = (
    "auto_transitions_enabled",
    "timezone",
    "rehearsal_start_date",
    "show_end_date",
    "rehearsal_grace",
    "post_show_grace",
)

# Accepted bounds; day boundaries outside them overflow datetime arithmetic
MIN_DATE = date(1900, 1, 1)
MAX_DATE = date(2999, 12, 31)
MAX_GRACE = timedelta(days=365)


@dataclass(frozen=True)
class PhaseConfiguration:
    """Stored override row. ``None`` means "use the project's own value"."""

    project_id: uuid.UUID
    auto_transitions_enabled: bool | None = None
    timezone: str | None = None
    rehearsal_start_date: date | None = None
    show_end_date: date | None = None
    rehearsal_grace: timedelta = field(default_factory=timedelta)
    post_show_grace: timedelta = field(default_factory=timedelta)
    updated_at: datetime | None = None
    updated_by: str | None = None


@dataclass(frozen=True)
class EffectiveConfiguration:
    """Project fields with overrides applied; what the transition rules read."""

    timezone: str | None
    rehearsal_start_date: date | None
    show_end_date: date | None
    auto_transitions_enabled: bool
    rehearsal_grace: timedelta = field(default_factory=timedelta)
    post_show_grace: timedelta = field(default_factory=timedelta)


def resolve_configuration(project: ProjectState, config: PhaseConfiguration | None) -> EffectiveConfiguration:
    """Merge an optional override row onto the project's own fields."""
    if config is None:
        return EffectiveConfiguration(
            timezone=project.timezone,
            rehearsal_start_date=project.rehearsal_start_date,
            show_end_date=project.show_end_date,
            auto_transitions_enabled=project.auto_transitions_enabled,
        )

    def pick(override, own):
        return own if override is None else override

    return EffectiveConfiguration(
        timezone=pick(config.timezone, project.timezone),
        rehearsal_start_date=pick(config.rehearsal_start_date, project.rehearsal_start_date),
        show_end_date=pick(config.show_end_date, project.show_end_date),
        auto_transitions_enabled=pick(config.auto_transitions_enabled, project.auto_transitions_enabled),
        rehearsal_grace=config.rehearsal_grace,
        post_show_grace=config.post_show_grace,
    )


def _as_duration(value: Any) -> timedelta:
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise TypeError("boolean is not a duration")
    if isinstance(value, int | float):
        return timedelta(seconds=value)
    raise TypeError(f"expected a duration, got {type(value).__name__}")


def _as_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise TypeError(f"expected a date, got {type(value).__name__}")


def validate_overrides(
    project_id: uuid.UUID,
    overrides: dict[str, Any],
    existing: PhaseConfiguration | None = None,
) -> PhaseConfiguration:
    """Validate a partial override mapping and merge it onto ``existing``.

    Durations may be ``timedelta`` or a number of seconds. Keys absent from
    ``overrides`` keep their existing value; an explicit None clears an
    optional override (graces reset to zero).

    Raises:
        ConfigurationValidationError: collecting every invalid field at once
    """
    errors: dict[str, str] = {}
    base = existing or PhaseConfiguration(project_id=project_id)
    changes: dict[str, Any] = {}

    unknown = sorted(set(overrides) - set(_OVERRIDE_FIELDS))
    for key in unknown:
        errors[key] = "unknown configuration field"

    if "auto_transitions_enabled" in overrides:
        value = overrides["auto_transitions_enabled"]
        if value is not None and not isinstance(value, bool):
            errors["auto_transitions_enabled"] = "must be a boolean"
        else:
            changes["auto_transitions_enabled"] = value

    if "timezone" in overrides:
        value = overrides["timezone"]
        if value is None:
            changes["timezone"] = None
        elif not isinstance(value, str) or not is_valid_timezone(value):
            errors["timezone"] = f"'{value}' is not a recognized timezone identifier"
        else:
            changes["timezone"] = value.strip()

    for key in ("rehearsal_start_date", "show_end_date"):
        if key not in overrides:
            continue
        value = overrides[key]
        if value is None:
            changes[key] = None
            continue
        try:
            day = _as_date(value)
        except (TypeError, ValueError):
            errors[key] = "must be a calendar date (YYYY-MM-DD)"
            continue
        if not MIN_DATE <= day <= MAX_DATE:
            errors[key] = f"must be between {MIN_DATE.isoformat()} and {MAX_DATE.isoformat()}"
        else:
            changes[key] = day

    for key in ("rehearsal_grace", "post_show_grace"):
        if key not in overrides:
            continue
        value = overrides[key]
        if value is None:
            changes[key] = timedelta()
            continue
        try:
            duration = _as_duration(value)
        except (TypeError, OverflowError):
            errors[key] = "must be a duration"
            continue
        if duration < timedelta():
            errors[key] = "must not be negative"
        elif duration > MAX_GRACE:
            errors[key] = "must not exceed 365 days"
        else:
            changes[key] = duration

    merged = replace(base, **changes)
    if (
        "rehearsal_start_date" not in errors
        and "show_end_date" not in errors
        and merged.rehearsal_start_date is not None
        and merged.show_end_date is not None
        and merged.show_end_date < merged.rehearsal_start_date
    ):
        errors["show_end_date"] = "must not be before rehearsal_start_date"

    if errors:
        raise ConfigurationValidationError(errors)

    return merged
