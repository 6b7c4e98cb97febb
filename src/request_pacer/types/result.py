# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Task and result types for the scheduler.

This module defines the unit of work callers hand to the scheduler and the
classification of what that unit of work produced.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

Task = Callable[[], Awaitable[Any]]
"""A zero-argument coroutine function performing exactly one network call."""


class ResultKind(Enum):
    """
    Classification of a single task attempt.

    The scheduler only reacts to this classification; it never looks at HTTP
    semantics itself.

    Kinds:
        * **SUCCESS**: Returned to the caller as-is. This includes any status
          the caller itself considers "ok".
        * **REJECTED**: The provider signalled an over-limit rejection (e.g.
          HTTP 429). Consumes a retry and waits the retry-after hint.
        * **FAILED**: A non-retriable failure (e.g. a 404). Returned to the
          caller as-is without further scheduler involvement.
        * **TRANSPORT_ERROR**: The network call itself failed. Consumes a retry
          and waits the fixed transport backoff.
    """

    SUCCESS = "success"
    REJECTED = "rejected"
    FAILED = "failed"
    TRANSPORT_ERROR = "transport_error"

    @property
    def is_retriable(self) -> bool:
        """Whether this kind consumes a retry rather than ending the call."""
        return self in (ResultKind.REJECTED, ResultKind.TRANSPORT_ERROR)


@dataclass
class TaskResult:
    """
    Classified result of one task attempt.

    Attributes:
        kind: The classification driving the scheduler's decision
        response: The raw response object returned by the task (None for
            transport failures)
        status_code: HTTP status code if one could be determined
        retry_after: Provider-suggested wait in seconds before retrying
        remaining: Provider-reported remaining request count in the current
            rate limit window, None if unknown
        error: The exception raised by the task for transport failures
    """

    kind: ResultKind
    response: Any = None
    status_code: int | None = None
    retry_after: float | None = None
    remaining: int | None = None
    error: BaseException | None = None

    @classmethod
    def success(
        cls,
        response: Any = None,
        status_code: int | None = None,
        remaining: int | None = None,
    ) -> "TaskResult":
        return cls(
            ResultKind.SUCCESS,
            response=response,
            status_code=status_code,
            remaining=remaining,
        )

    @classmethod
    def rejected(
        cls,
        response: Any = None,
        status_code: int | None = 429,
        retry_after: float | None = None,
        remaining: int | None = None,
    ) -> "TaskResult":
        return cls(
            ResultKind.REJECTED,
            response=response,
            status_code=status_code,
            retry_after=retry_after,
            remaining=remaining,
        )

    @classmethod
    def failed(
        cls,
        response: Any = None,
        status_code: int | None = None,
        remaining: int | None = None,
    ) -> "TaskResult":
        return cls(
            ResultKind.FAILED,
            response=response,
            status_code=status_code,
            remaining=remaining,
        )

    @classmethod
    def transport_error(cls, error: BaseException) -> "TaskResult":
        return cls(ResultKind.TRANSPORT_ERROR, error=error)

    @property
    def is_retriable(self) -> bool:
        return self.kind.is_retriable


__all__ = ["ResultKind", "Task", "TaskResult"]
