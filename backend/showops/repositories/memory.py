"""In-memory repositories: deterministic doubles for tests and local tooling.

Every method yields to the event loop once (``asyncio.sleep(0)``) so that
concurrently scheduled coroutines interleave the way they would against a
real database.

Usage:
    store = InMemoryStore()
    project = store.add_project(phase=Phase.PREP)
    repos = store.repositories()
"""

import asyncio
import uuid
from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime

from showops.core.exceptions import ConcurrencyConflictError, ProjectNotFoundError
from showops.domain.configuration import PhaseConfiguration
from showops.domain.phases import Phase, ProjectState, TransitionMetrics, TransitionRecord
from showops.domain.readiness import ReadinessCategory, ReadinessInputs, ReadinessSnapshot

TERMINAL_TIMECARD_STATUSES = frozenset({"approved", "rejected"})
_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


@dataclass
class InMemoryStore:
    """Shared state behind the in-memory repositories."""

    projects: dict[uuid.UUID, ProjectState] = field(default_factory=dict)
    counts: dict[uuid.UUID, ReadinessInputs] = field(default_factory=dict)
    finalized: dict[uuid.UUID, dict[ReadinessCategory, tuple[datetime, str | None]]] = field(default_factory=dict)
    snapshots: dict[uuid.UUID, ReadinessSnapshot] = field(default_factory=dict)
    timecards: dict[uuid.UUID, list[str]] = field(default_factory=dict)
    configurations: dict[uuid.UUID, PhaseConfiguration] = field(default_factory=dict)
    records: list[TransitionRecord] = field(default_factory=list)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def add_project(
        self,
        phase: Phase = Phase.PREP,
        timezone: str | None = None,
        rehearsal_start_date: date | None = None,
        show_end_date: date | None = None,
        auto_transitions_enabled: bool = True,
        name: str = "",
        phase_updated_at: datetime | None = None,
        project_id: uuid.UUID | None = None,
    ) -> ProjectState:
        project = ProjectState(
            id=project_id or uuid.uuid4(),
            name=name,
            phase=phase,
            phase_updated_at=phase_updated_at or datetime(2025, 1, 1, tzinfo=UTC),
            timezone=timezone,
            rehearsal_start_date=rehearsal_start_date,
            show_end_date=show_end_date,
            auto_transitions_enabled=auto_transitions_enabled,
        )
        self.projects[project.id] = project
        return project

    def set_counts(self, project_id: uuid.UUID, **counts: int) -> None:
        current = self.counts.get(project_id) or ReadinessInputs(project_id=project_id)
        self.counts[project_id] = replace(current, **counts)

    def finalize(self, project_id: uuid.UUID, *categories: ReadinessCategory) -> None:
        flags = self.finalized.setdefault(project_id, {})
        for category in categories:
            flags[category] = (datetime(2025, 1, 1, tzinfo=UTC), "fixture")

    def repositories(self) -> "InMemoryRepositories":
        return InMemoryRepositories(
            projects=InMemoryProjectRepository(self),
            readiness=InMemoryReadinessRepository(self),
            timecards=InMemoryTimecardRepository(self),
            audit=InMemoryAuditRepository(self),
            configuration=InMemoryConfigurationRepository(self),
        )


@dataclass
class InMemoryRepositories:
    projects: "InMemoryProjectRepository"
    readiness: "InMemoryReadinessRepository"
    timecards: "InMemoryTimecardRepository"
    audit: "InMemoryAuditRepository"
    configuration: "InMemoryConfigurationRepository"


class InMemoryProjectRepository:
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def get(self, project_id: uuid.UUID) -> ProjectState:
        await asyncio.sleep(0)
        project = self.store.projects.get(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    async def apply_transition(
        self,
        project_id: uuid.UUID,
        from_phase: Phase,
        expected_version: datetime,
        to_phase: Phase,
        new_version: datetime,
        record: TransitionRecord,
    ) -> None:
        await asyncio.sleep(0)
        async with self.store.lock:
            current = self.store.projects.get(project_id)
            if current is None:
                raise ProjectNotFoundError(project_id)
            if current.phase != from_phase or current.phase_updated_at != expected_version:
                raise ConcurrencyConflictError(project_id, expected_version)
            self.store.projects[project_id] = replace(current, phase=to_phase, phase_updated_at=new_version)
            self.store.records.append(record)

    async def list_auto_transition_candidates(self) -> list[uuid.UUID]:
        await asyncio.sleep(0)
        ids = []
        for project in self.store.projects.values():
            if project.phase == Phase.ARCHIVED:
                continue
            config = self.store.configurations.get(project.id)
            override = config.auto_transitions_enabled if config else None
            enabled = project.auto_transitions_enabled if override is None else override
            if enabled:
                ids.append(project.id)
        return ids


class InMemoryReadinessRepository:
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def fetch_inputs(self, project_id: uuid.UUID) -> ReadinessInputs:
        await asyncio.sleep(0)
        if project_id not in self.store.projects:
            raise ProjectNotFoundError(project_id)
        inputs = self.store.counts.get(project_id) or ReadinessInputs(project_id=project_id)
        flags = self.store.finalized.get(project_id, {})
        return replace(
            inputs,
            **{f"{category.value}_finalized": category in flags for category in ReadinessCategory},
        )

    async def save_snapshot(self, snapshot: ReadinessSnapshot) -> None:
        await asyncio.sleep(0)
        self.store.snapshots[snapshot.project_id] = snapshot

    async def get_snapshot(self, project_id: uuid.UUID) -> ReadinessSnapshot | None:
        await asyncio.sleep(0)
        return self.store.snapshots.get(project_id)

    async def set_finalized(
        self,
        project_id: uuid.UUID,
        category: ReadinessCategory,
        finalized: bool,
        actor: str | None,
        at: datetime,
    ) -> None:
        await asyncio.sleep(0)
        if project_id not in self.store.projects:
            raise ProjectNotFoundError(project_id)
        flags = self.store.finalized.setdefault(project_id, {})
        if finalized:
            flags[category] = (at, actor)
        else:
            flags.pop(category, None)


class InMemoryTimecardRepository:
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def all_terminal(self, project_id: uuid.UUID) -> bool:
        await asyncio.sleep(0)
        return all(status in TERMINAL_TIMECARD_STATUSES for status in self.store.timecards.get(project_id, []))


class InMemoryAuditRepository:
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def append(self, record: TransitionRecord) -> None:
        await asyncio.sleep(0)
        self.store.records.append(record)

    async def history(self, project_id: uuid.UUID, limit: int, offset: int) -> list[TransitionRecord]:
        await asyncio.sleep(0)
        # Append order breaks timestamp ties
        mine = [r for r in self.store.records if r.project_id == project_id]
        ordered = sorted(enumerate(mine), key=lambda pair: (pair[1].created_at or _EPOCH, pair[0]), reverse=True)
        return [record for _, record in ordered[offset : offset + limit]]

    async def count(self, project_id: uuid.UUID) -> int:
        await asyncio.sleep(0)
        return sum(1 for r in self.store.records if r.project_id == project_id)

    async def metrics(self, since: datetime, until: datetime) -> TransitionMetrics:
        await asyncio.sleep(0)
        metrics = TransitionMetrics(since=since, until=until)
        for record in self.store.records:
            if record.created_at is not None and since <= record.created_at < until:
                metrics.add(record)
        return metrics


class InMemoryConfigurationRepository:
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def get(self, project_id: uuid.UUID) -> PhaseConfiguration | None:
        await asyncio.sleep(0)
        return self.store.configurations.get(project_id)

    async def put(self, config: PhaseConfiguration) -> PhaseConfiguration:
        await asyncio.sleep(0)
        self.store.configurations[config.project_id] = config
        return config
