"""Tests for the batch transition scheduler."""

import asyncio
from datetime import date
from unittest.mock import patch

import pytest
from fakeredis import FakeAsyncRedis

from showops.core.exceptions import CollaboratorUnavailableError
from showops.core.locking import RunLease
from showops.domain.phases import Phase, TransitionOutcome
from showops.services.transition_scheduler import SchedulerLoop, TransitionScheduler


@pytest.fixture
def scheduler(phase_engine, clock):
    return TransitionScheduler(phase_engine, phase_engine.projects, max_concurrency=5, clock=clock)


def _due_pre_show(store, count):
    """Projects whose rehearsal already started (clock is 2025-06-01)."""
    return [store.add_project(phase=Phase.PRE_SHOW, rehearsal_start_date=date(2025, 5, 1)) for _ in range(count)]


class TestBatch:
    async def test_one_failing_project_does_not_stop_the_batch(self, store, phase_engine, scheduler):
        projects = _due_pre_show(store, 10)
        failing = projects[3].id
        original_get = phase_engine.configuration.repository.get

        async def flaky_get(project_id):
            if project_id == failing:
                raise RuntimeError("boom")
            return await original_get(project_id)

        with patch.object(phase_engine.configuration.repository, "get", side_effect=flaky_get):
            result = await scheduler.run_once()

        assert result.total == 10
        assert len(result.results) == 9
        assert result.applied == 9
        assert [(e.project_id, e.error_type) for e in result.errors] == [(failing, "RuntimeError")]
        assert store.projects[failing].phase == Phase.PRE_SHOW
        for project in projects:
            if project.id != failing:
                assert store.projects[project.id].phase == Phase.ACTIVE

    async def test_blocked_projects_are_reported_not_errors(self, store, scheduler):
        store.add_project(phase=Phase.PRE_SHOW, rehearsal_start_date=date(2025, 7, 1))
        store.add_project(phase=Phase.PREP)

        result = await scheduler.run_once()

        assert result.blocked == 2
        assert result.errors == []

    async def test_data_unavailable_is_reported_as_run_error(self, store, phase_engine, scheduler):
        project = store.add_project(phase=Phase.POST_SHOW)

        with patch.object(
            phase_engine.timecards, "all_terminal", side_effect=CollaboratorUnavailableError("timecards")
        ):
            result = await scheduler.run_once()

        [outcome] = result.results
        assert outcome.status == TransitionOutcome.BLOCKED
        assert outcome.blockers == ["data_unavailable"]
        assert [(e.project_id, e.error_type) for e in result.errors] == [(project.id, "DataUnavailable")]

    async def test_write_failure_is_reported_as_run_error(self, store, phase_engine, scheduler):
        _due_pre_show(store, 1)

        with patch.object(
            phase_engine.projects, "apply_transition", side_effect=CollaboratorUnavailableError("projects")
        ):
            result = await scheduler.run_once()

        assert result.results[0].status == TransitionOutcome.ERROR
        assert result.errors[0].error_type == "TransitionWriteFailed"

    async def test_skips_archived_and_disabled_projects(self, store, phase_engine, scheduler):
        store.add_project(phase=Phase.ARCHIVED)
        store.add_project(phase=Phase.PRE_SHOW, rehearsal_start_date=date(2025, 5, 1), auto_transitions_enabled=False)
        overridden = store.add_project(phase=Phase.PRE_SHOW, rehearsal_start_date=date(2025, 5, 1))
        await phase_engine.set_configuration(overridden.id, {"auto_transitions_enabled": False})
        [eligible] = _due_pre_show(store, 1)

        result = await scheduler.run_once()

        assert result.total == 1
        assert result.results[0].project_id == eligible.id
        assert store.projects[overridden.id].phase == Phase.PRE_SHOW

    async def test_records_are_automatic_with_scheduler_actor(self, store, scheduler):
        _due_pre_show(store, 1)

        await scheduler.run_once()

        [record] = store.records
        assert record.triggered_by == "automatic"
        assert record.actor == "scheduler"
        assert record.correlation_id is not None

    async def test_records_share_the_run_id(self, store, scheduler):
        _due_pre_show(store, 3)

        result = await scheduler.run_once()

        assert {record.correlation_id for record in store.records} == {result.run_id}

    async def test_concurrency_is_bounded(self, store, phase_engine, clock):
        for _ in range(6):
            store.add_project(phase=Phase.POST_SHOW)
        active = 0
        peak = 0

        async def slow_terminal(project_id):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1
            return True

        scheduler = TransitionScheduler(phase_engine, phase_engine.projects, max_concurrency=2, clock=clock)
        with patch.object(phase_engine.timecards, "all_terminal", side_effect=slow_terminal):
            result = await scheduler.run_once()

        assert result.applied == 6
        assert peak == 2

    async def test_deadline_marks_partial_and_keeps_committed_work(self, store, phase_engine, scheduler):
        fast = [store.add_project(phase=Phase.POST_SHOW) for _ in range(3)]
        slow = store.add_project(phase=Phase.POST_SHOW)

        async def terminal(project_id):
            if project_id == slow.id:
                await asyncio.sleep(10)
            return True

        with patch.object(phase_engine.timecards, "all_terminal", side_effect=terminal):
            result = await scheduler.run_once(deadline=0.2)

        assert result.partial is True
        assert result.not_evaluated == [slow.id]
        assert result.applied == 3
        for project in fast:
            assert store.projects[project.id].phase == Phase.COMPLETE
        assert store.projects[slow.id].phase == Phase.POST_SHOW

    def test_rejects_zero_concurrency(self, phase_engine):
        with pytest.raises(ValueError):
            TransitionScheduler(phase_engine, phase_engine.projects, max_concurrency=0)


class TestStatus:
    async def test_successful_run_updates_status(self, store, scheduler, clock):
        _due_pre_show(store, 2)

        result = await scheduler.run_once()

        status = scheduler.status()
        assert status.running is False
        assert status.total_runs == 1
        assert status.last_run_at == clock.now
        assert status.last_result == result.summary()
        assert status.last_result["applied"] == 2
        assert status.consecutive_failures == 0

    async def test_failed_run_is_counted_and_reraised(self, scheduler):
        with patch.object(scheduler.projects, "list_auto_transition_candidates", side_effect=RuntimeError("db down")):
            with pytest.raises(RuntimeError):
                await scheduler.run_once()
            with pytest.raises(RuntimeError):
                await scheduler.run_once()

        status = scheduler.status()
        assert status.consecutive_failures == 2
        assert status.last_error == "RuntimeError: db down"
        assert status.running is False

        await scheduler.run_once()
        assert scheduler.status().consecutive_failures == 0
        assert scheduler.status().last_error is None


class TestLease:
    @pytest.fixture
    async def redis(self):
        client = FakeAsyncRedis(decode_responses=True)
        yield client
        await client.aclose()

    async def test_run_is_skipped_while_another_instance_holds_the_lease(self, store, phase_engine, clock, redis):
        _due_pre_show(store, 1)
        lease = RunLease(redis, "phase-transition-scheduler")
        await lease.acquire("other-instance")
        scheduler = TransitionScheduler(phase_engine, phase_engine.projects, lease=lease, clock=clock)

        result = await scheduler.run_once()

        assert result.skipped is True
        assert result.results == []
        assert store.records == []
        assert await lease.holder() == "other-instance"

    async def test_lease_is_released_after_the_run(self, store, phase_engine, clock, redis):
        _due_pre_show(store, 1)
        lease = RunLease(redis, "phase-transition-scheduler")
        scheduler = TransitionScheduler(phase_engine, phase_engine.projects, lease=lease, clock=clock)

        result = await scheduler.run_once()

        assert result.skipped is False
        assert result.applied == 1
        assert await lease.holder() is None


class TestSchedulerLoop:
    async def test_runs_until_stopped(self, store, scheduler):
        _due_pre_show(store, 1)
        loop = SchedulerLoop(scheduler, interval_seconds=60)

        task = asyncio.create_task(loop.run())
        for _ in range(100):
            if scheduler.status().total_runs:
                break
            await asyncio.sleep(0.01)
        loop.stop()
        await asyncio.wait_for(task, timeout=1)

        assert scheduler.status().total_runs == 1
        assert task.done()

    async def test_failed_tick_does_not_kill_the_loop(self, scheduler):
        loop = SchedulerLoop(scheduler, interval_seconds=0.01)

        with patch.object(scheduler.projects, "list_auto_transition_candidates", side_effect=RuntimeError("db down")):
            task = asyncio.create_task(loop.run())
            for _ in range(100):
                if scheduler.status().total_runs >= 2:
                    break
                await asyncio.sleep(0.01)
            loop.stop()
            await asyncio.wait_for(task, timeout=1)

        assert scheduler.status().consecutive_failures >= 2
