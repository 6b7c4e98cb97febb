# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Observability and metrics for the request pacer.

Classes:
    UnifiedMetricsCollector: Metrics collector backed by dicts and Prometheus.
    MetricDefinition: Schema for a pre-defined metric.

Functions:
    get_metrics_collector: Get the global metrics collector singleton.
    reset_metrics_collector: Reset the global metrics collector singleton.

Constants:
    All metric name constants from the constants module.
"""

from .collector import (
    METRIC_DEFINITIONS,
    HistogramSummary,
    MetricDefinition,
    UnifiedMetricsCollector,
    get_metrics_collector,
    reset_metrics_collector,
)
from .constants import (
    ACTIVE_TASKS,
    ADMISSION_WAIT_SECONDS,
    DEADLINES_EXCEEDED_TOTAL,
    DISPATCHES_TOTAL,
    METRIC_PREFIX,
    QUEUE_DEPTH,
    RATE_LIMIT_PAUSES_TOTAL,
    RATE_LIMIT_REMAINING,
    REJECTIONS_TOTAL,
    REQUESTS_COMPLETED_TOTAL,
    RETRIES_EXHAUSTED_TOTAL,
    RETRIES_TOTAL,
    TRANSPORT_FAILURES_TOTAL,
    WAIT_BUCKETS,
)

__all__ = [
    "ACTIVE_TASKS",
    "ADMISSION_WAIT_SECONDS",
    "DEADLINES_EXCEEDED_TOTAL",
    "DISPATCHES_TOTAL",
    "METRIC_DEFINITIONS",
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
    "HistogramSummary",
    "MetricDefinition",
    "UnifiedMetricsCollector",
    "get_metrics_collector",
    "reset_metrics_collector",
]
