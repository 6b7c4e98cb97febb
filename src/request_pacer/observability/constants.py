# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Metric name constants following Prometheus naming conventions.

All metric names use the `request_pacer_` prefix.

Naming Conventions:
    - Counter metrics end with `_total`
    - Histogram metrics for time end with `_seconds`
    - Gauges use present-tense descriptive names

Label Best Practices:
    Only the categorical `scheduler` label (the scheduler's name, e.g. "Trakt")
    and `reason` are used. Never label by request URL or item id.
"""


METRIC_PREFIX = "request_pacer"
"""Prefix for all Prometheus metrics in this library."""


# =============================================================================
# Dispatch Metrics
# =============================================================================

DISPATCHES_TOTAL = f"{METRIC_PREFIX}_dispatches_total"
"""Total task attempts dispatched (retries included)."""

REQUESTS_COMPLETED_TOTAL = f"{METRIC_PREFIX}_requests_completed_total"
"""Total execute() calls that returned a response to the caller."""

RETRIES_TOTAL = f"{METRIC_PREFIX}_retries_total"
"""Total retries scheduled, labelled by reason (rejected, transport_error)."""

REJECTIONS_TOTAL = f"{METRIC_PREFIX}_rejections_total"
"""Total over-limit rejections reported by the provider."""

TRANSPORT_FAILURES_TOTAL = f"{METRIC_PREFIX}_transport_failures_total"
"""Total transport failures raised by tasks."""

RETRIES_EXHAUSTED_TOTAL = f"{METRIC_PREFIX}_retries_exhausted_total"
"""Total calls that gave up after every allowed attempt."""

RATE_LIMIT_PAUSES_TOTAL = f"{METRIC_PREFIX}_rate_limit_pauses_total"
"""Total pre-emptive pauses triggered by a low remaining count."""

DEADLINES_EXCEEDED_TOTAL = f"{METRIC_PREFIX}_deadlines_exceeded_total"
"""Total calls abandoned because their timeout elapsed."""


# =============================================================================
# Active State Gauges
# =============================================================================

ACTIVE_TASKS = f"{METRIC_PREFIX}_active_tasks"
"""Number of slots currently held."""

QUEUE_DEPTH = f"{METRIC_PREFIX}_queue_depth"
"""Number of callers waiting for a slot."""

RATE_LIMIT_REMAINING = f"{METRIC_PREFIX}_rate_limit_remaining"
"""Last remaining count reported by the provider."""


# =============================================================================
# Histograms
# =============================================================================

ADMISSION_WAIT_SECONDS = f"{METRIC_PREFIX}_admission_wait_seconds"
"""Time from execute() entry (or retry re-entry) to dispatch."""

WAIT_BUCKETS: list[float] = [
    0.005,
    0.01,
    0.025,
    0.05,
    0.1,
    0.25,
    0.5,
    1.0,
    2.5,
    5.0,
    10.0,
    30.0,
    60.0,
]
"""Buckets for admission wait histograms (in seconds)."""


__all__ = [
    "ACTIVE_TASKS",
    "ADMISSION_WAIT_SECONDS",
    "DEADLINES_EXCEEDED_TOTAL",
    "DISPATCHES_TOTAL",
    "METRIC_PREFIX",
    "QUEUE_DEPTH",
    "RATE_LIMIT_PAUSES_TOTAL",
    "RATE_LIMIT_REMAINING",
    "REJECTIONS_TOTAL",
    "REQUESTS_COMPLETED_TOTAL",
    "RETRIES_EXHAUSTED_TOTAL",
    "RETRIES_TOTAL",
    "TRANSPORT_FAILURES_TOTAL",
    "WAIT_BUCKETS",
]
