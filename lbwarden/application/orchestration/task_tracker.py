"""
Async Task Tracker

Architectural Intent:
- Turns the remote API's fire-and-forget task model into awaitable calls
- await_one polls a single task within a bounded budget (30 polls, 1s apart
  by default, so roughly a 30s timeout)
- await_many fans out one polling worker per task and joins them with a
  barrier, so several mutations issued in one phase settle together

Failure Policy:
- Success and failure are both terminal. A failed remote task is logged and
  not raised: the next reconciliation pass re-derives the missing change
  from remote state and issues it again
- An unexpected status or an exhausted poll budget is raised
  (UnexpectedTaskStatusError / TaskTimeoutError)
- Errors from the status query itself propagate unchanged
- await_many waits for every worker before raising the first error, so no
  poll is left running in the background
"""

from __future__ import annotations
from typing import Awaitable, Callable, Iterable
import asyncio
import logging

from lbwarden.domain.errors import TaskTimeoutError, UnexpectedTaskStatusError
from lbwarden.domain.ports.load_balancer_port import (
    LoadBalancerPort,
    TASK_FAILED,
    TASK_RUNNING,
    TASK_SUCCEEDED,
)

logger = logging.getLogger(__name__)


class TaskTracker:
    def __init__(
        self,
        load_balancers: LoadBalancerPort,
        attempts: int = 30,
        interval: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if attempts < 1:
            raise ValueError(f"attempts must be positive, got {attempts}")
        self._load_balancers = load_balancers
        self.attempts = attempts
        self.interval = interval
        self._sleep = sleep

    async def await_one(self, task_id: str) -> bool:
        """Poll task_id until it is terminal. Returns True on success, False on failure."""
        for attempt in range(self.attempts):
            status = await self._load_balancers.describe_task_status(task_id)
            if status == TASK_SUCCEEDED:
                logger.debug("Task %s executed successfully", task_id)
                return True
            if status == TASK_FAILED:
                logger.warning("Task %s executed failed", task_id)
                return False
            if status != TASK_RUNNING:
                logger.warning("Task %s returned unexpected status %s", task_id, status)
                raise UnexpectedTaskStatusError(task_id, status)

            logger.debug(
                "Task %s still running (poll %d/%d)", task_id, attempt + 1, self.attempts
            )
            if attempt + 1 < self.attempts:
                await self._sleep(self.interval)

        logger.warning("Task %s execute timeout", task_id)
        raise TaskTimeoutError(task_id, self.attempts)

    async def await_many(self, task_ids: Iterable[str]) -> dict[str, bool]:
        """Await every task concurrently; map each task id to its success flag."""
        task_ids = list(task_ids)
        if not task_ids:
            return {}

        results = await asyncio.gather(
            *(self.await_one(task_id) for task_id in task_ids),
            return_exceptions=True,
        )

        outcome: dict[str, bool] = {}
        first_error: BaseException | None = None
        for task_id, result in zip(task_ids, results):
            if isinstance(result, BaseException):
                logger.warning("Task %s could not be confirmed: %s", task_id, result)
                if first_error is None:
                    first_error = result
                continue
            outcome[task_id] = result

        if first_error is not None:
            raise first_error
        return outcome
