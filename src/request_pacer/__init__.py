# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Request Pacer - Bounded-concurrency scheduling for rate-limited APIs.

This library runs every call to a third-party API through one shared
scheduler per API, so a pipeline can fan out hundreds of requests without
tripping the provider's rate limits.

Key Features:
    - Hard cap on in-flight requests with FIFO admission
    - Minimum interval between dispatches
    - Pre-emptive global pause when the provider reports few remaining calls
    - Bounded retries honouring Retry-After on 429 and backing off on
      transport failures
    - Cancellation and per-call deadlines that never leak a slot
    - Pluggable response classification with presets for Trakt, OMDB and IGDB

Quick Start:
    >>> from request_pacer import create_scheduler
    >>>
    >>> trakt = create_scheduler("trakt")
    >>> response = await trakt.execute(lambda: client.get("/movies/trending"))

Main Exports:
    - Scheduler, create_scheduler: Core scheduling components
    - SchedulerConfig: Configuration options
    - HttpResponseClassifier, TraktClassifier: Response classification
    - gather_in_batches: Batch orchestration on top of a scheduler

Version: 1.0.0
"""

__version__ = "1.0.0"

from .batching import gather_in_batches
from .exceptions import (
    DeadlineExceededError,
    RetriesExhaustedError,
    SchedulerError,
)
from .observability import (
    UnifiedMetricsCollector,
    get_metrics_collector,
    reset_metrics_collector,
)
from .protocols import ClassifierProtocol
from .providers import (
    PROVIDER_PRESETS,
    HttpResponseClassifier,
    TraktClassifier,
    classifier_for_provider,
    parse_retry_after,
)
from .scheduler import Scheduler, SchedulerConfig, create_scheduler
from .types import ResultKind, Task, TaskResult

__all__ = [
    "PROVIDER_PRESETS",
    "ClassifierProtocol",
    "DeadlineExceededError",
    "HttpResponseClassifier",
    "ResultKind",
    "RetriesExhaustedError",
    "Scheduler",
    "SchedulerConfig",
    "SchedulerError",
    "Task",
    "TaskResult",
    "TraktClassifier",
    "UnifiedMetricsCollector",
    "__version__",
    "classifier_for_provider",
    "create_scheduler",
    "get_metrics_collector",
    "gather_in_batches",
    "parse_retry_after",
    "reset_metrics_collector",
]
