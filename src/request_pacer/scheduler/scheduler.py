# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Bounded-concurrency request scheduler.

One Scheduler is created per target API and shared by every coroutine that
calls that API. Each ``execute()`` call goes through:

1. Admission: take one of ``max_concurrent`` slots, FIFO-queued otherwise.
2. Pacing: wait out the minimum dispatch interval and any global pause.
3. Dispatch: run the task (the only step doing I/O).
4. Rate limit bookkeeping: record the remaining count and pause everyone
   when it falls below the threshold.
5. Retry: on a rejection or transport failure, give the slot back, wait,
   and queue up again from step 1.
6. Completion: give the slot back and hand the response to the caller.
"""

import asyncio
import logging
import time
from collections import defaultdict
from collections.abc import Callable
from typing import Any

from ..exceptions import DeadlineExceededError, RetriesExhaustedError
from ..observability.collector import UnifiedMetricsCollector, get_metrics_collector
from ..observability.constants import (
    ACTIVE_TASKS,
    ADMISSION_WAIT_SECONDS,
    DEADLINES_EXCEEDED_TOTAL,
    DISPATCHES_TOTAL,
    QUEUE_DEPTH,
    RATE_LIMIT_PAUSES_TOTAL,
    RATE_LIMIT_REMAINING,
    REJECTIONS_TOTAL,
    REQUESTS_COMPLETED_TOTAL,
    RETRIES_EXHAUSTED_TOTAL,
    RETRIES_TOTAL,
    TRANSPORT_FAILURES_TOTAL,
)
from ..protocols.classifier import ClassifierProtocol
from ..providers.base import HttpResponseClassifier
from ..providers.presets import classifier_for_provider
from ..types.result import ResultKind, Task, TaskResult
from .admission import AdmissionController
from .config import SchedulerConfig
from .pacing import Pacer
from .retry import RetryPolicy
from .state import SchedulerState

logger = logging.getLogger(__name__)

# Local counter names for get_metrics()
METRIC_CALLS = "calls"
METRIC_DISPATCHES = "dispatches"
METRIC_COMPLETED = "completed"
METRIC_RETRIES = "retries"
METRIC_REJECTIONS = "rejections"
METRIC_TRANSPORT_FAILURES = "transport_failures"
METRIC_RETRIES_EXHAUSTED = "retries_exhausted"
METRIC_RATE_LIMIT_PAUSES = "rate_limit_pauses"
METRIC_DEADLINES_EXCEEDED = "deadlines_exceeded"


class Scheduler:
    """
    Rate-limited executor for calls to one third-party API.

    The scheduler guarantees that no more than ``config.max_concurrent`` tasks
    run at once across all callers, that two dispatches are at least
    ``config.min_interval`` apart, and that every exit path of ``execute()``
    (success, failure, exhausted retries, cancellation, timeout) gives back
    exactly the one slot it held.

    Example:
        >>> trakt = Scheduler(SchedulerConfig.for_provider("trakt"),
        ...                   classifier=TraktClassifier())
        >>> response = await trakt.execute(lambda: client.get("/shows/loki-2021"))
    """

    def __init__(
        self,
        config: SchedulerConfig | None = None,
        classifier: ClassifierProtocol | None = None,
        metrics_collector: UnifiedMetricsCollector | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the Scheduler.

        Args:
            config: Scheduler configuration (defaults to SchedulerConfig())
            classifier: Maps task results to retry decisions (defaults to
                HttpResponseClassifier)
            metrics_collector: Collector to report to. When omitted and
                ``config.metrics_enabled`` is set, the global collector is used.
            clock: Monotonic clock used for pacing and pauses
        """
        self.config = config or SchedulerConfig()
        self.classifier: ClassifierProtocol = classifier or HttpResponseClassifier()
        self.retry_policy = RetryPolicy.from_config(self.config)
        self._clock = clock

        self._state = SchedulerState()
        self._admission = AdmissionController(
            self._state, self.config.max_concurrent, name=self.config.name
        )
        self._pacer = Pacer(
            self._state, self.config.min_interval, name=self.config.name, clock=clock
        )

        self.metrics: dict[str, int] = defaultdict(int)
        self.metrics_collector = self._create_metrics_collector(metrics_collector)
        self._labels = {"scheduler": self.config.name}

        logger.info(
            f"Initialized scheduler {self.config.name!r} "
            f"(max_concurrent={self.config.max_concurrent}, "
            f"max_retries={self.config.max_retries}, "
            f"min_interval={self.config.min_interval}s)"
        )

    def _create_metrics_collector(
        self, metrics_collector: UnifiedMetricsCollector | None
    ) -> UnifiedMetricsCollector | None:
        if metrics_collector is None and not self.config.metrics_enabled:
            return None

        collector = metrics_collector or get_metrics_collector()
        if self.config.prometheus_port is not None and not collector.server_running:
            collector.start_http_server(
                self.config.prometheus_host, self.config.prometheus_port
            )
        return collector

    # === Read-only diagnostics ===

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def active_count(self) -> int:
        """Number of slots currently held."""
        return self._state.active_count

    @property
    def queue_depth(self) -> int:
        """Number of callers waiting for a slot."""
        return self._admission.queue_depth

    @property
    def remaining(self) -> int | None:
        """Last remaining count reported by the provider, None if unknown."""
        return self._state.remaining

    @property
    def is_paused(self) -> bool:
        """Whether a pre-emptive rate limit pause is in effect."""
        return self._pacer.is_paused

    # === Public interface ===

    async def execute(self, task: Task, *, timeout: float | None = None) -> Any:
        """
        Run a task under this scheduler's concurrency, pacing and retry rules.

        Args:
            task: Zero-argument coroutine function performing one network call
            timeout: Optional deadline in seconds for the whole call, covering
                queueing, pacing, retries and the task itself

        Returns:
            The task's response for successes and non-retriable failures. The
            caller decides what to do with a non-2xx response.

        Raises:
            RetriesExhaustedError: A rejection or transport failure persisted
                through ``max_retries + 1`` attempts
            DeadlineExceededError: ``timeout`` elapsed first
            Exception: Any exception from the task that the classifier does
                not consider a transport failure, unchanged
        """
        self.metrics[METRIC_CALLS] += 1

        if timeout is None:
            return await self._execute_with_retry(task)

        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        try:
            return await asyncio.wait_for(self._execute_with_retry(task), timeout)
        except asyncio.TimeoutError as e:
            # A TimeoutError raised by the task itself, before the deadline
            if loop.time() < deadline:
                raise
            self._record(METRIC_DEADLINES_EXCEEDED, DEADLINES_EXCEEDED_TOTAL)
            logger.warning(f"[{self.name}] Call abandoned after {timeout}s deadline")
            raise DeadlineExceededError(
                f"[{self.name}] Call did not complete within {timeout}s",
                scheduler_name=self.name,
                timeout=timeout,
            ) from e

    def get_metrics(self) -> dict[str, Any]:
        """
        Get current scheduler metrics.

        Returns:
            Dictionary of scheduler state and counters suitable for JSON
            serialization
        """
        metrics: dict[str, Any] = {
            "scheduler_name": self.name,
            "max_concurrent": self.config.max_concurrent,
            "active_count": self.active_count,
            "queue_depth": self.queue_depth,
            "remaining": self.remaining,
            "paused": self.is_paused,
        }
        metrics.update(self.metrics)

        if self.metrics_collector:
            metrics["unified_metrics"] = self.metrics_collector.get_flat_metrics()

        return metrics

    # === Retry loop ===

    async def _execute_with_retry(self, task: Task) -> Any:
        attempt = 0
        while True:
            result = await self._attempt(task)

            if not result.is_retriable:
                self._record(METRIC_COMPLETED, REQUESTS_COMPLETED_TOTAL)
                return result.response

            if not self.retry_policy.should_retry(result, attempt):
                error = self._retries_exhausted(result, attempt + 1)
                raise error from result.error

            delay = self.retry_policy.delay_for(result, attempt)
            retries_left = self.retry_policy.max_retries - attempt
            self._record(METRIC_RETRIES, RETRIES_TOTAL, reason=result.kind.value)
            if result.kind is ResultKind.REJECTED:
                logger.warning(
                    f"[{self.name}] Rate limited, retrying in {delay:.1f}s "
                    f"({retries_left} retries left)"
                )
            else:
                logger.warning(
                    f"[{self.name}] Transport error: {result.error!r}, retrying in "
                    f"{delay:.1f}s ({retries_left} retries left)"
                )

            # No slot is held while backing off
            if delay > 0:
                await asyncio.sleep(delay)
            attempt += 1

    async def _attempt(self, task: Task) -> TaskResult:
        """Admit, pace, dispatch and book-keep one attempt; always releases."""
        entered = self._clock()
        await self._admission.acquire()
        self._publish_gauges()
        try:
            await self._pacer.wait_for_dispatch()
            if self.metrics_collector:
                self.metrics_collector.observe_histogram(
                    ADMISSION_WAIT_SECONDS, self._clock() - entered, labels=self._labels
                )
            self._record(METRIC_DISPATCHES, DISPATCHES_TOTAL)

            result = await self._dispatch(task)

            if self._track_rate_limit(result):
                await self._pacer.wait_out_pause()
            return result
        finally:
            self._admission.release()
            self._publish_gauges()

    async def _dispatch(self, task: Task) -> TaskResult:
        try:
            response = await task()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if not self.classifier.is_transport_error(e):
                raise
            self._record(METRIC_TRANSPORT_FAILURES, TRANSPORT_FAILURES_TOTAL)
            return TaskResult.transport_error(e)

        result = self.classifier.classify(response)
        if result.kind is ResultKind.REJECTED:
            self._record(METRIC_REJECTIONS, REJECTIONS_TOTAL)
        return result

    def _track_rate_limit(self, result: TaskResult) -> bool:
        """
        Record the provider's remaining count and start a global pause when it
        runs low.

        Returns:
            True if this result started or extended a pause
        """
        if result.remaining is None:
            return False

        remaining = result.remaining
        self._state.remaining = remaining
        if self.metrics_collector:
            self.metrics_collector.set_gauge(
                RATE_LIMIT_REMAINING, remaining, labels=self._labels
            )

        threshold = self.config.rate_limit_threshold
        if not 0 < remaining < threshold or self.config.rate_limit_pause <= 0:
            return False

        self._pacer.pause(self.config.rate_limit_pause)
        self._record(METRIC_RATE_LIMIT_PAUSES, RATE_LIMIT_PAUSES_TOTAL)
        logger.warning(
            f"[{self.name}] Rate limit low: {remaining} remaining. "
            f"Pausing {self.config.rate_limit_pause}s..."
        )
        return True

    def _retries_exhausted(
        self, result: TaskResult, attempts: int
    ) -> RetriesExhaustedError:
        self._record(
            METRIC_RETRIES_EXHAUSTED, RETRIES_EXHAUSTED_TOTAL, reason=result.kind.value
        )
        if result.kind is ResultKind.REJECTED:
            detail = f"still rate limited (status {result.status_code})"
        else:
            detail = f"transport error: {result.error!r}"
        logger.error(f"[{self.name}] Giving up after {attempts} attempts, {detail}")

        return RetriesExhaustedError(
            f"[{self.name}] Giving up after {attempts} attempts, {detail}",
            scheduler_name=self.name,
            attempts=attempts,
            last_result=result,
        )

    # === Metrics helpers ===

    def _record(self, local_name: str, metric_name: str, **labels: str) -> None:
        self.metrics[local_name] += 1
        if self.metrics_collector:
            self.metrics_collector.inc_counter(
                metric_name, labels={**self._labels, **labels}
            )

    def _publish_gauges(self) -> None:
        if self.metrics_collector:
            self.metrics_collector.set_gauge(
                ACTIVE_TASKS, self.active_count, labels=self._labels
            )
            self.metrics_collector.set_gauge(
                QUEUE_DEPTH, self.queue_depth, labels=self._labels
            )

    def __repr__(self) -> str:
        return (
            f"Scheduler(name={self.name!r}, active={self.active_count}/"
            f"{self.config.max_concurrent}, queued={self.queue_depth})"
        )


def create_scheduler(
    provider: str | None = None,
    config: SchedulerConfig | None = None,
    classifier: ClassifierProtocol | None = None,
    metrics_collector: UnifiedMetricsCollector | None = None,
    **overrides: Any,
) -> Scheduler:
    """
    Factory function to create a Scheduler.

    Args:
        provider: Optional provider preset name ("trakt", "omdb", "igdb").
            Selects both the tuned config and the matching classifier.
        config: Explicit config. Mutually exclusive with ``provider``.
        classifier: Classifier overriding the provider default
        metrics_collector: Optional metrics collector
        **overrides: SchedulerConfig fields overriding the preset or config

    Returns:
        Configured Scheduler instance

    Raises:
        ValueError: If both provider and config are given, the provider is
            unknown, or a config value is invalid

    Example:
        >>> omdb = create_scheduler("omdb", max_retries=1)
    """
    if provider is not None:
        if config is not None:
            raise ValueError("Pass either provider or config, not both")
        config = SchedulerConfig.for_provider(provider, **overrides)
        if classifier is None:
            classifier = classifier_for_provider(provider)
    else:
        config = config or SchedulerConfig()
        if overrides:
            config = config.with_overrides(**overrides)

    return Scheduler(
        config=config,
        classifier=classifier,
        metrics_collector=metrics_collector,
    )


__all__ = ["Scheduler", "create_scheduler"]
