"""
Export task monitoring.

The poll loop queries the task status until it reaches a terminal state.
Only failed status queries are retried. Every wait and every status query
observes the caller's CancelContext, so cancellation and deadlines end the
wait at once.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from threading import Event
from typing import Callable, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .config import PollingConfig
from .constants import CANCEL_CHECK_INTERVAL_SECONDS
from .exceptions import (
    ExportCancelledError,
    ExportWaitTimeoutError,
    PollExhaustedError,
    PollTransientError,
)
from .models import ExportTask, TaskState

logger = logging.getLogger(__name__)


class CancelContext:
    """Cancellation flag plus optional deadline shared between caller and poll loop."""

    def __init__(
        self,
        event: Optional[Event] = None,
        deadline: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.event = event or Event()
        self.deadline = deadline
        self.clock = clock

    @classmethod
    def with_timeout(cls, seconds: float, clock: Callable[[], float] = time.monotonic) -> "CancelContext":
        """Context whose deadline is ``seconds`` from now."""
        return cls(deadline=clock() + seconds, clock=clock)

    def cancel(self) -> None:
        self.event.set()

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None without a deadline."""
        if self.deadline is None:
            return None
        return max(self.deadline - self.clock(), 0.0)

    @property
    def deadline_exceeded(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    @property
    def cancelled(self) -> bool:
        return self.event.is_set() or self.deadline_exceeded

    def reason(self) -> str:
        if self.event.is_set():
            return "export wait was cancelled"
        return "deadline exceeded while waiting for export"

    def wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``, returning early on cancellation. Returns ``cancelled``."""
        remaining = self.remaining()
        if remaining is not None:
            seconds = min(seconds, remaining)
        if seconds > 0:
            self.event.wait(seconds)
        return self.cancelled


def context_sleep(context: CancelContext, seconds: float) -> None:
    """Default sleeper: an interruptible wait on the context."""
    context.wait(seconds)


@dataclass
class MonitoringState:
    """Tracking state for export monitoring."""

    start_time: float
    polls: int = 0
    consecutive_errors: int = 0
    last_progress_value: Optional[int] = None
    last_state: TaskState = TaskState.SUBMITTED


def _raise_if_cancelled(context: CancelContext, task_id: str) -> None:
    if context.cancelled:
        print(f"   ⚠️  Stopped waiting for export task {task_id}; the task keeps running in AWS")
        raise ExportCancelledError(context.reason(), task_id)


def _print_status_update(task: ExportTask, elapsed_hours: float) -> None:
    """Print formatted status update."""
    progress = "N/A" if task.progress is None else task.progress
    if task.status_message:
        print(
            f"   📊 AWS Status: {task.state.value} | Progress: {progress}% | "
            f"Message: {task.status_message} | Elapsed: {elapsed_hours:.1f}h"
        )
    else:
        print(f"   📊 AWS Status: {task.state.value} | Progress: {progress}% | Elapsed: {elapsed_hours:.1f}h")


def _update_progress_tracking(state: MonitoringState, task: ExportTask) -> None:
    if task.progress is not None and task.progress != state.last_progress_value:
        if state.last_progress_value is not None:
            print(f"   📈 Progress updated to {task.progress}%")
        state.last_progress_value = task.progress


def _poll_with_context(
    executor: ThreadPoolExecutor, context: CancelContext, service, task_id: str, disk_format: str
) -> ExportTask:
    """
    Run one status query, returning as soon as the context is cancelled.

    The query runs on ``executor``; an abandoned query finishes in the
    background, bounded by the client's own timeouts.
    """
    future = executor.submit(service.get_export_status, task_id, disk_format)
    finished = Event()
    future.add_done_callback(lambda _future: finished.set())
    while not finished.wait(CANCEL_CHECK_INTERVAL_SECONDS):
        if context.cancelled:
            future.cancel()
            _raise_if_cancelled(context, task_id)
    return future.result()


def _record_transient_error(state: MonitoringState, polling: PollingConfig, task_id: str, error: Exception) -> None:
    """Count a failed status query; raise PollExhaustedError once the budget is spent."""
    state.consecutive_errors += 1
    print(f"   ❌ API error {state.consecutive_errors}/{polling.max_attempts}: {error}")

    if state.consecutive_errors >= polling.max_attempts:
        print(f"   ❌ Too many consecutive errors ({state.consecutive_errors}), giving up on status checks")
        raise PollExhaustedError(task_id, state.consecutive_errors, str(error)) from error


def wait_for_export(  # pylint: disable=too-many-arguments
    service,
    task_id: str,
    context: CancelContext,
    polling: PollingConfig,
    *,
    disk_format: str = "",
    sleeper: Callable[[CancelContext, float], None] = context_sleep,
) -> ExportTask:
    """
    Poll an export task until it reaches a terminal state.

    Args:
        service: Object providing ``get_export_status(task_id, disk_format)``
        task_id: Export task to watch
        context: Caller's cancellation context
        polling: Delay and retry settings
        disk_format: Disk format of the export, used to build the result key
        sleeper: Called as ``sleeper(context, seconds)`` between polls

    Returns:
        ExportTask: The task in its terminal state (completed, failed or cancelled)

    Raises:
        ExportCancelledError: The context was cancelled or its deadline passed
        ExportWaitTimeoutError: ``polling.max_polls`` status queries were used up
        PollExhaustedError: ``polling.max_attempts`` consecutive queries failed
    """
    state = MonitoringState(start_time=context.clock())
    print(f"   ⏳ Monitoring export task {task_id}...")

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"poll-{task_id}")
    try:
        while True:
            _raise_if_cancelled(context, task_id)
            if polling.max_polls is not None and state.polls >= polling.max_polls:
                raise ExportWaitTimeoutError(
                    f"no terminal state after {state.polls} status checks", task_id
                )

            state.polls += 1
            try:
                task = _poll_with_context(executor, context, service, task_id, disk_format)
            except (ClientError, BotoCoreError, PollTransientError) as e:
                _record_transient_error(state, polling, task_id, e)
            else:
                state.consecutive_errors = 0
                elapsed_hours = (context.clock() - state.start_time) / 3600
                _print_status_update(task, elapsed_hours)
                if task.state != state.last_state:
                    logger.debug("export task %s: %s -> %s", task_id, state.last_state.value, task.state.value)
                    state.last_state = task.state
                _update_progress_tracking(state, task)
                if task.state.is_terminal:
                    return task

            sleeper(context, polling.delay_for(state.polls - 1))
    finally:
        executor.shutdown(wait=False)
