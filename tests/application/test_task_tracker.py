"""
Task Tracker Tests

Architectural Intent:
- Port dependency replaced with AsyncMock; sleep replaced so no test waits
- Verifies terminal statuses, poll budget and the await_many barrier
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from lbwarden.application.orchestration.task_tracker import TaskTracker
from lbwarden.domain.errors import CloudAPIError, TaskTimeoutError, UnexpectedTaskStatusError
from lbwarden.domain.ports.load_balancer_port import TASK_FAILED, TASK_RUNNING, TASK_SUCCEEDED


def _make_tracker(statuses, attempts: int = 30):
    port = MagicMock()
    if isinstance(statuses, dict):
        async def describe(task_id):
            return statuses[task_id].pop(0)
        port.describe_task_status = AsyncMock(side_effect=describe)
    else:
        port.describe_task_status = AsyncMock(side_effect=list(statuses))
    sleep = AsyncMock()
    return TaskTracker(port, attempts=attempts, interval=1.0, sleep=sleep), port, sleep


class TestAwaitOne:
    @pytest.mark.asyncio
    async def test_success(self):
        tracker, port, sleep = _make_tracker([TASK_SUCCEEDED])
        assert await tracker.await_one("task-1") is True
        port.describe_task_status.assert_awaited_once_with("task-1")
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failure_is_logged_not_raised(self, caplog):
        tracker, _, _ = _make_tracker([TASK_FAILED])
        assert await tracker.await_one("task-1") is False
        assert "executed failed" in caplog.text

    @pytest.mark.asyncio
    async def test_polls_while_running(self):
        tracker, port, sleep = _make_tracker([TASK_RUNNING, TASK_RUNNING, TASK_SUCCEEDED])
        assert await tracker.await_one("task-1") is True
        assert port.describe_task_status.await_count == 3
        assert sleep.await_count == 2
        sleep.assert_awaited_with(1.0)

    @pytest.mark.asyncio
    async def test_timeout_after_budget(self):
        tracker, port, sleep = _make_tracker([TASK_RUNNING] * 30)
        with pytest.raises(TaskTimeoutError) as exc_info:
            await tracker.await_one("task-1")
        assert exc_info.value.task_id == "task-1"
        assert exc_info.value.attempts == 30
        assert port.describe_task_status.await_count == 30
        assert sleep.await_count == 29

    @pytest.mark.asyncio
    async def test_unexpected_status(self):
        tracker, _, _ = _make_tracker([7])
        with pytest.raises(UnexpectedTaskStatusError) as exc_info:
            await tracker.await_one("task-1")
        assert exc_info.value.status == 7

    @pytest.mark.asyncio
    async def test_query_error_propagates(self):
        tracker, port, _ = _make_tracker([])
        port.describe_task_status.side_effect = CloudAPIError("InternalError", "boom")
        with pytest.raises(CloudAPIError):
            await tracker.await_one("task-1")

    def test_attempts_must_be_positive(self):
        with pytest.raises(ValueError, match="attempts must be positive"):
            TaskTracker(MagicMock(), attempts=0)


class TestAwaitMany:
    @pytest.mark.asyncio
    async def test_empty(self):
        tracker, port, _ = _make_tracker([])
        assert await tracker.await_many([]) == {}
        port.describe_task_status.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_mixed_outcomes(self):
        tracker, _, _ = _make_tracker({
            "a": [TASK_SUCCEEDED],
            "b": [TASK_RUNNING, TASK_FAILED],
        })
        assert await tracker.await_many(["a", "b"]) == {"a": True, "b": False}

    @pytest.mark.asyncio
    async def test_error_raised_after_all_workers_settle(self):
        statuses = {
            "slow": [TASK_RUNNING, TASK_RUNNING, TASK_SUCCEEDED],
            "bad": [9],
        }
        tracker, port, _ = _make_tracker(statuses)

        with pytest.raises(UnexpectedTaskStatusError):
            await tracker.await_many(["slow", "bad"])

        polled = [c.args[0] for c in port.describe_task_status.await_args_list]
        assert polled.count("slow") == 3
        assert statuses["slow"] == []

    @pytest.mark.asyncio
    async def test_timeout_raised(self):
        tracker, _, _ = _make_tracker({"a": [TASK_RUNNING, TASK_RUNNING]}, attempts=2)
        with pytest.raises(TaskTimeoutError):
            await tracker.await_many(["a"])
