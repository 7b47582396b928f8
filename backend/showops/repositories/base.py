"""Repository protocols: the narrow persistence ports the services depend on.

Services receive implementations through their constructors. The SQL
implementations live beside this module; ``memory`` holds the deterministic
in-memory doubles used by the unit tests.

Implementations raise:
- ProjectNotFoundError for an unknown project id
- CollaboratorUnavailableError when the backing store cannot be read or written
"""

import uuid
from datetime import datetime
from typing import Protocol, runtime_checkable

from showops.domain.configuration import PhaseConfiguration
from showops.domain.phases import Phase, ProjectState, TransitionMetrics, TransitionRecord
from showops.domain.readiness import ReadinessCategory, ReadinessInputs, ReadinessSnapshot


@runtime_checkable
class ProjectRepository(Protocol):
    """Reads projects and performs the guarded phase write."""

    async def get(self, project_id: uuid.UUID) -> ProjectState:
        """Return the project's phase fields.

        Raises:
            ProjectNotFoundError: if no project has this id
        """
        ...

    async def apply_transition(
        self,
        project_id: uuid.UUID,
        from_phase: Phase,
        expected_version: datetime,
        to_phase: Phase,
        new_version: datetime,
        record: TransitionRecord,
    ) -> None:
        """Compare-and-set the phase and append ``record`` in one transaction.

        The write only happens when the stored phase and ``phase_updated_at``
        still equal ``from_phase`` / ``expected_version``.

        Raises:
            ConcurrencyConflictError: the guard did not match (nothing written)
        """
        ...

    async def list_auto_transition_candidates(self) -> list[uuid.UUID]:
        """Ids of non-archived projects with automatic transitions enabled,
        taking a configuration override into account."""
        ...


@runtime_checkable
class ReadinessRepository(Protocol):
    async def fetch_inputs(self, project_id: uuid.UUID) -> ReadinessInputs: ...

    async def save_snapshot(self, snapshot: ReadinessSnapshot) -> None:
        """Replace the stored snapshot whole (finalize flags untouched)."""
        ...

    async def get_snapshot(self, project_id: uuid.UUID) -> ReadinessSnapshot | None: ...

    async def set_finalized(
        self,
        project_id: uuid.UUID,
        category: ReadinessCategory,
        finalized: bool,
        actor: str | None,
        at: datetime,
    ) -> None: ...


@runtime_checkable
class TimecardRepository(Protocol):
    async def all_terminal(self, project_id: uuid.UUID) -> bool:
        """True when no timecard of the project is still draft or submitted."""
        ...


@runtime_checkable
class AuditRepository(Protocol):
    async def append(self, record: TransitionRecord) -> None: ...

    async def history(self, project_id: uuid.UUID, limit: int, offset: int) -> list[TransitionRecord]:
        """Records for one project, newest first."""
        ...

    async def count(self, project_id: uuid.UUID) -> int: ...

    async def metrics(self, since: datetime, until: datetime) -> TransitionMetrics:
        """Counts over records created in ``[since, until)``, all projects."""
        ...


@runtime_checkable
class ConfigurationRepository(Protocol):
    async def get(self, project_id: uuid.UUID) -> PhaseConfiguration | None: ...

    async def put(self, config: PhaseConfiguration) -> PhaseConfiguration: ...
