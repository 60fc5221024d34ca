"""
Unit tests for the bulk assignment coordinator
"""

import asyncio
from datetime import date
from unittest.mock import AsyncMock

import pytest

from deepwork.integrations import InMemoryTaskStore, RepositoryError, TaskStore
from deepwork.models import SlotId, Task, TaskPatch
from deepwork.scheduling import CommitCoordinator, CommitFailure, SchedulingValidationError


DAY = date(2026, 10, 19)


@pytest.fixture
def store():
    mock_store = AsyncMock(spec=TaskStore)
    mock_store.update_task.return_value = None
    return mock_store


class TestCommitValidation:
    """Test preconditions checked before any request"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("day,slot,selection", [
        (DAY, SlotId.GYM, []),
        (None, SlotId.GYM, ["a"]),
        (DAY, None, ["a"]),
        (DAY, "nap_time", ["a"]),
    ])
    async def test_invalid_input_issues_no_requests(self, store, day, slot, selection):
        coordinator = CommitCoordinator(store)
        with pytest.raises(SchedulingValidationError):
            await coordinator.commit(day, slot, selection)
        store.update_task.assert_not_called()

    def test_invalid_concurrency(self, store):
        with pytest.raises(ValueError):
            CommitCoordinator(store, max_concurrency=0)


class TestCommit:
    """Test the concurrent fan-out and per-item outcomes"""

    @pytest.mark.asyncio
    async def test_one_update_per_task(self, store):
        coordinator = CommitCoordinator(store)
        result = await coordinator.commit(DAY, SlotId.DEEP_WORK_1, ["a", "b", "c"])

        assert result.success
        assert result.succeeded_ids == ["a", "b", "c"]
        assert result.failed_ids == []
        assert store.update_task.await_count == 3

        expected = TaskPatch.assign(DAY, SlotId.DEEP_WORK_1)
        for call in store.update_task.await_args_list:
            task_id, patch = call.args
            assert patch == expected
            assert patch.day_id == "day_2026-10-19"

    @pytest.mark.asyncio
    async def test_duplicate_ids_written_once(self, store):
        coordinator = CommitCoordinator(store)
        result = await coordinator.commit(DAY, SlotId.GYM, ["a", "a"])
        assert result.succeeded_ids == ["a"]
        assert store.update_task.await_count == 1

    @pytest.mark.asyncio
    async def test_partial_failure_raises_single_error(self, store):
        """Failures are collected; successful writes are not rolled back"""
        async def update(task_id, patch):
            if task_id == "b":
                raise RepositoryError("更新に失敗しました: unavailable")
            return None

        store.update_task.side_effect = update
        coordinator = CommitCoordinator(store)

        with pytest.raises(CommitFailure) as exc_info:
            await coordinator.commit(DAY, SlotId.AFTERNOON, ["a", "b", "c"])

        failure = exc_info.value
        assert failure.failed_ids == ["b"]
        assert failure.succeeded_ids == ["a", "c"]
        assert "unavailable" in failure.result.outcomes[1].error_message
        # 3件とも送信済み、取り消し用の書き込みはない
        assert store.update_task.await_count == 3

    @pytest.mark.asyncio
    async def test_retry_failed_ids_is_idempotent(self):
        """Re-sending the same patch converges on the same state"""
        task_store = InMemoryTaskStore([Task(id="a", title="A"), Task(id="b", title="B")])
        coordinator = CommitCoordinator(task_store)

        await coordinator.commit(DAY, SlotId.GYM, ["a", "b"])
        await coordinator.commit(DAY, SlotId.GYM, ["a"])

        assert task_store.get("a").is_assigned_to(DAY, SlotId.GYM)
        assert task_store.get("b").day_id == "day_2026-10-19"

    @pytest.mark.asyncio
    async def test_max_concurrency_limits_in_flight_writes(self, store):
        in_flight = 0
        peak = 0

        async def update(task_id, patch):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1

        store.update_task.side_effect = update
        coordinator = CommitCoordinator(store, max_concurrency=2)
        await coordinator.commit(DAY, SlotId.BUFFER, ["a", "b", "c", "d", "e"])
        assert peak == 2

    @pytest.mark.asyncio
    async def test_cancel_does_not_abort_issued_writes(self, store):
        """Cancelling an in-flight commit still lets every issued update finish"""
        completed = []

        async def update(task_id, patch):
            await asyncio.sleep(0.05)
            completed.append(task_id)

        store.update_task.side_effect = update
        coordinator = CommitCoordinator(store)

        commit_task = asyncio.ensure_future(coordinator.commit(DAY, SlotId.GYM, ["a", "b", "c"]))
        await asyncio.sleep(0.01)
        commit_task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await commit_task

        assert sorted(completed) == ["a", "b", "c"]


class TestUnassign:
    @pytest.mark.asyncio
    async def test_unassign_clears_all_fields(self):
        task_store = InMemoryTaskStore([
            Task(id="a", title="A", focus_date=DAY, focus_slot=SlotId.GYM, day_id="day_2026-10-19")
        ])
        coordinator = CommitCoordinator(task_store)

        result = await coordinator.unassign(["a"])

        assert result.succeeded_ids == ["a"]
        task = task_store.get("a")
        assert task.focus_date is None
        assert task.focus_slot is None
        assert task.day_id is None

    @pytest.mark.asyncio
    async def test_unknown_task_is_reported(self):
        coordinator = CommitCoordinator(InMemoryTaskStore([]))
        with pytest.raises(CommitFailure) as exc_info:
            await coordinator.unassign(["ghost"])
        assert exc_info.value.failed_ids == ["ghost"]

    @pytest.mark.asyncio
    async def test_empty_unassign_rejected(self, store):
        with pytest.raises(SchedulingValidationError):
            await CommitCoordinator(store).unassign([])
        store.update_task.assert_not_called()
