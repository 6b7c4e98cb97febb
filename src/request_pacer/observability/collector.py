# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Metrics collector for scheduler counters, gauges and wait-time histograms.

Every update is recorded twice:

1. In plain dicts, so tests and ``Scheduler.get_metrics()`` can read a JSON
   friendly snapshot without scraping anything.
2. In prometheus_client metrics, registered on first use, so a scrape
   endpoint (``start_http_server``) exposes the same numbers.

Usage:
    >>> from request_pacer.observability.collector import get_metrics_collector
    >>> collector = get_metrics_collector()
    >>> collector.inc_counter('request_pacer_dispatches_total',
    ...                       labels={'scheduler': 'Trakt'})
    >>> collector.get_metrics()["counters"]
    {'request_pacer_dispatches_total': {'scheduler=Trakt': 1}}

Thread Safety:
    Updates may come from several event loops in different threads, so all
    bookkeeping happens under one RLock.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, ClassVar

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

from .constants import (
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
    WAIT_BUCKETS,
)

logger = logging.getLogger(__name__)

Labels = dict[str, str]


@dataclass
class MetricDefinition:
    """
    Schema of a pre-declared metric.

    Metrics not declared here are still accepted; their Prometheus label
    names are taken from the first update.
    """

    name: str
    metric_type: str  # 'counter', 'gauge' or 'histogram'
    description: str
    label_names: tuple[str, ...] = ()
    buckets: list[float] | None = None


def _declare(*definitions: MetricDefinition) -> dict[str, MetricDefinition]:
    return {defn.name: defn for defn in definitions}


_SCHEDULER = ("scheduler",)
_SCHEDULER_REASON = ("scheduler", "reason")

METRIC_DEFINITIONS: dict[str, MetricDefinition] = _declare(
    # === Counters ===
    MetricDefinition(
        DISPATCHES_TOTAL, "counter", "Total task attempts dispatched", _SCHEDULER
    ),
    MetricDefinition(
        REQUESTS_COMPLETED_TOTAL,
        "counter",
        "Total calls that returned a response",
        _SCHEDULER,
    ),
    MetricDefinition(
        RETRIES_TOTAL, "counter", "Total retries scheduled", _SCHEDULER_REASON
    ),
    MetricDefinition(
        REJECTIONS_TOTAL, "counter", "Total over-limit rejections", _SCHEDULER
    ),
    MetricDefinition(
        TRANSPORT_FAILURES_TOTAL, "counter", "Total transport failures", _SCHEDULER
    ),
    MetricDefinition(
        RETRIES_EXHAUSTED_TOTAL,
        "counter",
        "Total calls that exhausted their retries",
        _SCHEDULER_REASON,
    ),
    MetricDefinition(
        RATE_LIMIT_PAUSES_TOTAL,
        "counter",
        "Total pre-emptive rate limit pauses",
        _SCHEDULER,
    ),
    MetricDefinition(
        DEADLINES_EXCEEDED_TOTAL,
        "counter",
        "Total calls abandoned on timeout",
        _SCHEDULER,
    ),
    # === Gauges ===
    MetricDefinition(ACTIVE_TASKS, "gauge", "Currently held slots", _SCHEDULER),
    MetricDefinition(QUEUE_DEPTH, "gauge", "Callers waiting for a slot", _SCHEDULER),
    MetricDefinition(
        RATE_LIMIT_REMAINING,
        "gauge",
        "Last remaining count reported by the provider",
        _SCHEDULER,
    ),
    # === Histograms ===
    MetricDefinition(
        ADMISSION_WAIT_SECONDS,
        "histogram",
        "Time spent waiting for a slot and pacing before dispatch",
        _SCHEDULER,
        buckets=WAIT_BUCKETS,
    ),
)

_PROMETHEUS_TYPES: dict[str, type] = {
    "counter": Counter,
    "gauge": Gauge,
    "histogram": Histogram,
}


@dataclass
class HistogramSummary:
    """Running count/sum/min/max of a histogram series."""

    count: int = 0
    total: float = 0.0
    minimum: float = float("inf")
    maximum: float = float("-inf")

    def observe(self, value: float) -> None:
        self.count += 1
        self.total += value
        self.minimum = min(self.minimum, value)
        self.maximum = max(self.maximum, value)

    def as_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "sum": self.total,
            "avg": self.total / self.count,
            "min": self.minimum,
            "max": self.maximum,
        }


def label_key(labels: Labels | None) -> str:
    """Render labels as a stable "k=v,k=v" key (sorted by label name)."""
    if not labels:
        return ""
    return ",".join(f"{name}={value}" for name, value in sorted(labels.items()))


class UnifiedMetricsCollector:
    """
    Collects scheduler metrics into dicts and mirrors them to Prometheus.

    Cardinality Protection:
        Each metric accepts at most MAX_LABEL_COMBINATIONS distinct label
        sets. Updates for new label sets beyond that are dropped with a
        warning; known label sets keep updating.

    Example:
        >>> collector = UnifiedMetricsCollector(registry=CollectorRegistry())
        >>> collector.inc_counter('request_pacer_dispatches_total',
        ...                       labels={'scheduler': 'OMDB'})
        >>> collector.get_flat_metrics()
        {'request_pacer_dispatches_total{scheduler=OMDB}': 1}
    """

    MAX_LABEL_COMBINATIONS: ClassVar[int] = 1000

    def __init__(
        self,
        enable_prometheus: bool = True,
        registry: CollectorRegistry | None = None,
    ) -> None:
        """
        Args:
            enable_prometheus: Whether to mirror metrics into Prometheus
            registry: Prometheus registry to register on (defaults to the
                global one; pass a fresh CollectorRegistry in tests)
        """
        self._enable_prometheus = enable_prometheus
        self._registry = registry if registry is not None else REGISTRY
        self._lock = threading.RLock()

        self._counters: defaultdict[str, dict[str, int]] = defaultdict(dict)
        self._gauges: defaultdict[str, dict[str, float]] = defaultdict(dict)
        self._histograms: defaultdict[str, dict[str, HistogramSummary]] = (
            defaultdict(dict)
        )
        self._seen_labels: defaultdict[str, set[str]] = defaultdict(set)

        # None marks a metric whose Prometheus registration failed
        self._prom_metrics: dict[str, Any | None] = {}
        self._server_running = False

        logger.debug(
            f"UnifiedMetricsCollector created "
            f"(prometheus={'on' if enable_prometheus else 'off'})"
        )

    # === Internal helpers ===

    def _admit(self, name: str, key: str) -> bool:
        """Whether an update for this label set may be recorded. Call under lock."""
        seen = self._seen_labels[name]
        if key in seen:
            return True
        if len(seen) >= self.MAX_LABEL_COMBINATIONS:
            logger.warning(
                f"Cardinality limit ({self.MAX_LABEL_COMBINATIONS}) reached for "
                f"{name}, dropping labels {key!r}"
            )
            return False
        seen.add(key)
        return True

    def _prometheus_metric(
        self, name: str, metric_type: str, labels: Labels | None
    ) -> Any | None:
        """Return the Prometheus metric backing ``name``, registering on first use."""
        if not self._enable_prometheus:
            return None

        with self._lock:
            if name not in self._prom_metrics:
                self._prom_metrics[name] = self._register(name, metric_type, labels)
            return self._prom_metrics[name]

    def _register(
        self, name: str, metric_type: str, labels: Labels | None
    ) -> Any | None:
        defn = METRIC_DEFINITIONS.get(name)
        if defn is None or defn.metric_type != metric_type:
            defn = MetricDefinition(
                name,
                metric_type,
                f"{metric_type.capitalize()} {name}",
                tuple(sorted(labels or ())),
            )

        kwargs: dict[str, Any] = {"registry": self._registry}
        if metric_type == "histogram":
            kwargs["buckets"] = defn.buckets or WAIT_BUCKETS

        try:
            return _PROMETHEUS_TYPES[metric_type](
                name, defn.description, list(defn.label_names), **kwargs
            )
        except ValueError as e:
            # Already registered on a shared registry, or bad label names
            logger.warning(f"Failed to create Prometheus {metric_type} {name}: {e}")
            return None

    def _mirror(
        self,
        name: str,
        metric_type: str,
        labels: Labels | None,
        method: str,
        value: float,
    ) -> None:
        metric = self._prometheus_metric(name, metric_type, labels)
        if metric is None:
            return
        try:
            child = metric.labels(**labels) if labels else metric
            getattr(child, method)(value)
        except ValueError as e:
            logger.debug(f"Prometheus {metric_type} update failed for {name}: {e}")

    # === Updates ===

    def inc_counter(
        self,
        name: str,
        value: int = 1,
        labels: Labels | None = None,
    ) -> None:
        """
        Increment a counter.

        Raises:
            ValueError: If value is negative
        """
        if value < 0:
            raise ValueError("Counter increment must be non-negative")

        key = label_key(labels)
        with self._lock:
            if not self._admit(name, key):
                return
            series = self._counters[name]
            series[key] = series.get(key, 0) + value

        self._mirror(name, "counter", labels, "inc", value)

    def set_gauge(
        self,
        name: str,
        value: float,
        labels: Labels | None = None,
    ) -> None:
        key = label_key(labels)
        with self._lock:
            if not self._admit(name, key):
                return
            self._gauges[name][key] = value

        self._mirror(name, "gauge", labels, "set", value)

    def observe_histogram(
        self,
        name: str,
        value: float,
        labels: Labels | None = None,
    ) -> None:
        key = label_key(labels)
        with self._lock:
            if not self._admit(name, key):
                return
            self._histograms[name].setdefault(key, HistogramSummary()).observe(value)

        self._mirror(name, "histogram", labels, "observe", value)

    # === Snapshots ===

    def get_metrics(self) -> dict[str, Any]:
        """
        Snapshot every series, grouped by metric type.

        Returns:
            {"counters": {name: {label_key: value}},
             "gauges": {name: {label_key: value}},
             "histograms": {name: {label_key: {count, sum, avg, min, max}}}}
        """
        with self._lock:
            return {
                "counters": {
                    name: dict(series) for name, series in self._counters.items()
                },
                "gauges": {name: dict(series) for name, series in self._gauges.items()},
                "histograms": {
                    name: {key: summary.as_dict() for key, summary in series.items()}
                    for name, series in self._histograms.items()
                },
            }

    def get_flat_metrics(self) -> dict[str, Any]:
        """
        Counters and gauges keyed as ``name`` or ``name{label=value,...}``.
        """
        flat: dict[str, Any] = {}
        with self._lock:
            for store in (self._counters, self._gauges):
                for name, series in store.items():
                    for key, value in series.items():
                        flat[f"{name}{{{key}}}" if key else name] = value
        return flat

    def reset(self) -> None:
        """Forget every dict series. Prometheus metrics stay registered."""
        with self._lock:
            self._counters.clear()
            self._gauges.clear()
            self._histograms.clear()
            self._seen_labels.clear()

        logger.debug("Metrics collector reset")

    # === Prometheus scrape endpoint ===

    def start_http_server(self, host: str = "127.0.0.1", port: int = 9090) -> bool:
        """
        Serve this collector's registry for Prometheus scraping.

        Args:
            host: Address to bind (localhost only by default)
            port: Port to bind

        Returns:
            True if the server is running, False if it could not be started
        """
        if self._server_running:
            logger.warning("Prometheus server already running")
            return True

        try:
            # Serves from a daemon thread
            start_http_server(port, addr=host, registry=self._registry)
        except OSError as e:
            logger.error(f"Failed to start Prometheus server on {host}:{port}: {e}")
            return False

        self._server_running = True
        logger.info(f"Prometheus metrics server started on {host}:{port}")
        return True

    @property
    def prometheus_enabled(self) -> bool:
        return self._enable_prometheus

    @property
    def server_running(self) -> bool:
        return self._server_running


# =============================================================================
# Process-wide collector
# =============================================================================

_global_collector: UnifiedMetricsCollector | None = None
_collector_lock = threading.Lock()


def get_metrics_collector(
    enable_prometheus: bool = True,
) -> UnifiedMetricsCollector:
    """
    Get the process-wide collector, creating it on first call.

    Args:
        enable_prometheus: Only honoured by the call that creates it
    """
    global _global_collector

    with _collector_lock:
        if _global_collector is None:
            _global_collector = UnifiedMetricsCollector(
                enable_prometheus=enable_prometheus
            )
        return _global_collector


def reset_metrics_collector() -> None:
    """
    Drop the process-wide collector (mainly for tests).

    Metrics it registered on the default Prometheus registry stay there, so a
    new collector sharing that registry logs a warning and keeps dict metrics
    only for those names.
    """
    global _global_collector
    with _collector_lock:
        if _global_collector is not None:
            _global_collector.reset()
        _global_collector = None


__all__ = [
    "METRIC_DEFINITIONS",
    "HistogramSummary",
    "MetricDefinition",
    "UnifiedMetricsCollector",
    "get_metrics_collector",
    "label_key",
    "reset_metrics_collector",
]
