# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Exception classes for the request pacer library.

All exceptions raised by the scheduler itself inherit from SchedulerError,
so callers can catch every scheduler-originated failure with a single except
clause. Exceptions raised by a task that the classifier does not consider
transient are propagated unchanged and are NOT wrapped.
"""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .types.result import TaskResult


class SchedulerError(Exception):
    """Base exception for all scheduler errors.

    Example:
        try:
            response = await scheduler.execute(fetch_show)
        except SchedulerError as e:
            logger.error(f"Scheduler error: {e}")
    """

    pass


class RetriesExhaustedError(SchedulerError):
    """Raised when a retriable failure persists after every allowed attempt.

    This is the terminal outcome for a task that kept reporting an over-limit
    rejection or a transport failure. The slot held by the call has already
    been released when this is raised.

    Attributes:
        scheduler_name: Diagnostic name of the scheduler that gave up.
        attempts: Total number of dispatches made (max_retries + 1).
        last_result: The classified result of the final attempt.

    Example:
        try:
            response = await scheduler.execute(fetch_show)
        except RetriesExhaustedError as e:
            if e.response is not None:
                logger.warning(f"Still rejected with {e.response.status_code}")
    """

    def __init__(
        self,
        message: str,
        scheduler_name: str | None = None,
        attempts: int = 0,
        last_result: "TaskResult | None" = None,
    ):
        super().__init__(message)
        self.scheduler_name = scheduler_name
        self.attempts = attempts
        self.last_result = last_result

    @property
    def response(self) -> Any:
        """Raw response of the final attempt, or None for transport failures."""
        return self.last_result.response if self.last_result else None


class DeadlineExceededError(SchedulerError, TimeoutError):
    """Raised when a call passes its ``timeout`` before completing.

    Whatever the call was doing at that moment (queued for a slot, pacing,
    waiting out a retry interval or running the task) is abandoned. Any slot it
    held is released and it is removed from the admission queue.

    Attributes:
        scheduler_name: Diagnostic name of the scheduler.
        timeout: The deadline that elapsed, in seconds.
    """

    def __init__(
        self,
        message: str,
        scheduler_name: str | None = None,
        timeout: float | None = None,
    ):
        super().__init__(message)
        self.scheduler_name = scheduler_name
        self.timeout = timeout


__all__ = [
    "DeadlineExceededError",
    "RetriesExhaustedError",
    "SchedulerError",
]
