"""Phase lifecycle Pydantic schemas for API requests and responses."""

import uuid
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

from showops.domain.action_items import ActionItem
from showops.domain.configuration import EffectiveConfiguration, PhaseConfiguration
from showops.domain.phases import Blocker, Evaluation, Phase, ProjectState, TransitionOutcomeResult, TransitionRecord
from showops.services.phase_engine import UpcomingTransition


class BlockerResponse(BaseModel):
    code: str
    message: str

    @classmethod
    def from_domain(cls, blocker: Blocker) -> "BlockerResponse":
        return cls(code=blocker.code.value, message=blocker.message)


class PhaseResponse(BaseModel):
    project_id: uuid.UUID
    phase: str
    phase_updated_at: datetime

    @classmethod
    def from_domain(cls, project: ProjectState) -> "PhaseResponse":
        return cls(project_id=project.id, phase=project.phase.value, phase_updated_at=project.phase_updated_at)


class EvaluationResponse(BaseModel):
    project_id: uuid.UUID
    current_phase: str
    can_transition: bool
    target_phase: str | None = None
    blockers: list[BlockerResponse] = Field(default_factory=list)
    scheduled_at: datetime | None = None

    @classmethod
    def from_domain(cls, evaluation: Evaluation) -> "EvaluationResponse":
        return cls(
            project_id=evaluation.project_id,
            current_phase=evaluation.current_phase.value,
            can_transition=evaluation.can_transition,
            target_phase=evaluation.target_phase.value if evaluation.target_phase else None,
            blockers=[BlockerResponse.from_domain(b) for b in evaluation.blockers],
            scheduled_at=evaluation.scheduled_at,
        )


class TransitionRequest(BaseModel):
    """Body of POST /phase/transition. HTTP callers are manual unless stated."""

    requested_by: Literal["manual", "automatic"] = "manual"
    actor: str | None = Field(default=None, max_length=255)
    # the phase the caller expects to enter; guards against a resubmitted request
    target_phase: Phase | None = None


class TransitionResponse(BaseModel):
    project_id: uuid.UUID
    applied: bool
    status: Literal["applied", "blocked", "error"]
    previous_phase: str
    current_phase: str
    new_phase: str | None = None
    blockers: list[BlockerResponse] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, outcome: TransitionOutcomeResult) -> "TransitionResponse":
        return cls(
            project_id=outcome.project_id,
            applied=outcome.applied,
            status=outcome.status.value,
            previous_phase=outcome.previous_phase.value,
            current_phase=outcome.current_phase.value,
            new_phase=outcome.new_phase.value if outcome.new_phase else None,
            blockers=[BlockerResponse.from_domain(b) for b in outcome.blockers],
        )


class ActionItemResponse(BaseModel):
    code: str
    title: str
    description: str
    category: str
    priority: Literal["high", "medium", "low"]
    required_for_transition: bool

    @classmethod
    def from_domain(cls, item: ActionItem) -> "ActionItemResponse":
        return cls(
            code=item.code,
            title=item.title,
            description=item.description,
            category=item.category,
            priority=item.priority,
            required_for_transition=item.required_for_transition,
        )


class ActionItemsResponse(BaseModel):
    project_id: uuid.UUID
    current_phase: str
    items: list[ActionItemResponse]


class TransitionRecordResponse(BaseModel):
    id: uuid.UUID
    from_phase: str
    to_phase: str | None = None
    triggered_by: str
    outcome: str
    blockers: list[BlockerResponse] = Field(default_factory=list)
    actor: str | None = None
    correlation_id: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_domain(cls, record: TransitionRecord) -> "TransitionRecordResponse":
        return cls(
            id=record.id,
            from_phase=record.from_phase.value,
            to_phase=record.to_phase.value if record.to_phase else None,
            triggered_by=record.triggered_by.value,
            outcome=record.outcome.value,
            blockers=[BlockerResponse.from_domain(b) for b in record.blockers],
            actor=record.actor,
            correlation_id=record.correlation_id,
            created_at=record.created_at,
        )


class HistoryResponse(BaseModel):
    project_id: uuid.UUID
    records: list[TransitionRecordResponse]
    total: int
    page: int
    page_size: int
    has_more: bool


class ConfigurationUpdateRequest(BaseModel):
    """Partial update: only fields present in the body are changed.

    Graces are given in seconds; ``null`` clears an override.
    """

    auto_transitions_enabled: bool | None = None
    timezone: str | None = None
    rehearsal_start_date: date | None = None
    show_end_date: date | None = None
    rehearsal_grace_seconds: float | None = None
    post_show_grace_seconds: float | None = None
    updated_by: str | None = Field(default=None, max_length=255)

    def overrides(self) -> dict:
        """Fields the client actually sent, keyed the way the store expects."""
        sent = self.model_dump(exclude_unset=True, exclude={"updated_by"})
        renamed = {"rehearsal_grace_seconds": "rehearsal_grace", "post_show_grace_seconds": "post_show_grace"}
        return {renamed.get(key, key): value for key, value in sent.items()}


class StoredConfiguration(BaseModel):
    auto_transitions_enabled: bool | None = None
    timezone: str | None = None
    rehearsal_start_date: date | None = None
    show_end_date: date | None = None
    rehearsal_grace_seconds: float = 0
    post_show_grace_seconds: float = 0
    updated_at: datetime | None = None
    updated_by: str | None = None

    @classmethod
    def from_domain(cls, config: PhaseConfiguration) -> "StoredConfiguration":
        return cls(
            auto_transitions_enabled=config.auto_transitions_enabled,
            timezone=config.timezone,
            rehearsal_start_date=config.rehearsal_start_date,
            show_end_date=config.show_end_date,
            rehearsal_grace_seconds=config.rehearsal_grace.total_seconds(),
            post_show_grace_seconds=config.post_show_grace.total_seconds(),
            updated_at=config.updated_at,
            updated_by=config.updated_by,
        )


class EffectiveConfigurationResponse(BaseModel):
    timezone: str | None = None
    rehearsal_start_date: date | None = None
    show_end_date: date | None = None
    auto_transitions_enabled: bool
    rehearsal_grace_seconds: float
    post_show_grace_seconds: float

    @classmethod
    def from_domain(cls, config: EffectiveConfiguration) -> "EffectiveConfigurationResponse":
        return cls(
            timezone=config.timezone,
            rehearsal_start_date=config.rehearsal_start_date,
            show_end_date=config.show_end_date,
            auto_transitions_enabled=config.auto_transitions_enabled,
            rehearsal_grace_seconds=config.rehearsal_grace.total_seconds(),
            post_show_grace_seconds=config.post_show_grace.total_seconds(),
        )


class ConfigurationResponse(BaseModel):
    project_id: uuid.UUID
    overrides: StoredConfiguration | None = None
    effective: EffectiveConfigurationResponse


class UpcomingTransitionResponse(BaseModel):
    project_id: uuid.UUID
    current_phase: str
    target_phase: str
    scheduled_at: datetime

    @classmethod
    def from_domain(cls, item: UpcomingTransition) -> "UpcomingTransitionResponse":
        return cls(
            project_id=item.project_id,
            current_phase=item.current_phase.value,
            target_phase=item.target_phase.value,
            scheduled_at=item.scheduled_at,
        )
