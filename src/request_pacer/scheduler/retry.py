# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Retry policy for retriable task outcomes.

The policy only decides *whether* another attempt is allowed and *how long*
to wait before it. The scheduler owns the loop itself.
"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass

from ..types.result import ResultKind, TaskResult
from .config import SchedulerConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded retry schedule.

    Delays:
        * Rejection with a retry-after hint: the hint, uncapped. The provider
          knows best when its window reopens.
        * Rejection without a hint: ``default_retry_after``.
        * Transport failure: ``transport_backoff``.

    Computed delays are multiplied by ``backoff_base ** attempt`` and capped at
    ``max_backoff``. With the default ``backoff_base`` of 1.0 the delay is
    fixed.

    Example:
        >>> policy = RetryPolicy(max_retries=3, transport_backoff=1.0, backoff_base=2.0)
        >>> list(policy.delays(ResultKind.TRANSPORT_ERROR))
        [1.0, 2.0, 4.0]
    """

    max_retries: int = 3
    default_retry_after: float = 2.0
    transport_backoff: float = 2.0
    backoff_base: float = 1.0
    max_backoff: float = 60.0

    @classmethod
    def from_config(cls, config: SchedulerConfig) -> "RetryPolicy":
        return cls(
            max_retries=config.max_retries,
            default_retry_after=config.default_retry_after,
            transport_backoff=config.transport_backoff,
            backoff_base=config.backoff_base,
            max_backoff=config.max_backoff,
        )

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def should_retry(self, result: TaskResult, attempt: int) -> bool:
        """
        Decide whether a failed attempt gets another try.

        Args:
            result: The classified result of the attempt
            attempt: Zero-based index of the attempt that produced ``result``
        """
        return result.is_retriable and attempt < self.max_retries

    def delay_for(self, result: TaskResult, attempt: int) -> float:
        """
        Seconds to wait before the attempt following ``attempt``.

        Args:
            result: The classified result of the failed attempt
            attempt: Zero-based index of the attempt that produced ``result``
        """
        if result.kind is ResultKind.REJECTED and result.retry_after is not None:
            return max(0.0, result.retry_after)

        return self._computed_delay(result.kind, attempt)

    def delays(self, kind: ResultKind) -> Iterator[float]:
        """Yield the wait before each retry for a run of hint-less failures."""
        for attempt in range(self.max_retries):
            yield self._computed_delay(kind, attempt)

    def _computed_delay(self, kind: ResultKind, attempt: int) -> float:
        if kind is ResultKind.TRANSPORT_ERROR:
            base = self.transport_backoff
        else:
            base = self.default_retry_after

        delay = min(base * (self.backoff_base**attempt), self.max_backoff)
        logger.debug(f"Calculated {kind.value} backoff for attempt {attempt}: {delay:.2f}s")
        return delay


__all__ = ["RetryPolicy"]
