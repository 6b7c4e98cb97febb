# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Scheduler Configuration for the request pacer.

This module provides the immutable configuration a Scheduler is built with:
concurrency, pacing, pre-emptive throttling, retry and metrics settings.
"""

import dataclasses
from dataclasses import dataclass
from typing import Any

from typing_extensions import Self

from ..providers.presets import get_provider_preset


@dataclass(frozen=True)
class SchedulerConfig:
    """
    Configuration for a single API's scheduler.

    One config (and one scheduler) per target API. The config is frozen; use
    ``dataclasses.replace`` or ``with_overrides`` to derive a variant.
    """

    # === Identification ===

    name: str = "API"
    """Diagnostic label used in log messages and metric labels."""

    # === Admission ===

    max_concurrent: int = 3
    """Maximum number of tasks in flight at once."""

    # === Pacing ===

    min_interval: float = 0.0
    """Minimum seconds between two successive dispatches (0 disables pacing)."""

    # === Pre-emptive Throttling ===

    rate_limit_threshold: int = 50
    """Remaining-count floor below which every dispatch is paused."""

    rate_limit_pause: float = 10.0
    """Seconds to pause all dispatches once remaining drops below threshold."""

    # === Retry ===

    max_retries: int = 3
    """Retries allowed after the first attempt (total attempts = max_retries + 1)."""

    default_retry_after: float = 2.0
    """Seconds to wait after a rejection that carries no retry-after hint."""

    transport_backoff: float = 2.0
    """Seconds to wait after a transport failure before the next attempt."""

    backoff_base: float = 1.0
    """Growth factor applied per attempt to computed delays (1.0 = fixed)."""

    max_backoff: float = 60.0
    """Upper bound for computed delays. Provider retry-after hints are not capped."""

    # === Metrics and Monitoring ===

    metrics_enabled: bool = False
    """Enable metrics collection."""

    prometheus_host: str = "127.0.0.1"
    """Prometheus metrics host."""

    prometheus_port: int | None = None
    """Start a Prometheus scrape endpoint on this port (None = don't start one)."""

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.name:
            raise ValueError("name must be a non-empty string")
        if self.max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        if self.max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        if self.min_interval < 0:
            raise ValueError("min_interval must be non-negative")
        if self.rate_limit_threshold < 0:
            raise ValueError("rate_limit_threshold must be non-negative")
        if self.rate_limit_pause < 0:
            raise ValueError("rate_limit_pause must be non-negative")
        if self.default_retry_after < 0:
            raise ValueError("default_retry_after must be non-negative")
        if self.transport_backoff < 0:
            raise ValueError("transport_backoff must be non-negative")
        if self.backoff_base < 1.0:
            raise ValueError("backoff_base must be at least 1.0")
        if self.max_backoff < 0:
            raise ValueError("max_backoff must be non-negative")
        if self.prometheus_port is not None and not 0 < self.prometheus_port < 65536:
            raise ValueError("prometheus_port must be between 1 and 65535")

    def with_overrides(self, **overrides: Any) -> Self:
        """Return a copy of this config with some fields replaced."""
        return dataclasses.replace(self, **overrides)

    @classmethod
    def for_provider(cls, provider: str, **overrides: Any) -> Self:
        """
        Build the tuned config for a known provider.

        Args:
            provider: Provider preset name ("trakt", "omdb", "igdb")
            **overrides: Fields overriding the preset

        Raises:
            ValueError: If the provider is unknown or a value is invalid

        Example:
            >>> config = SchedulerConfig.for_provider("omdb")
            >>> config.max_concurrent, config.min_interval
            (5, 0.05)
        """
        values = get_provider_preset(provider)
        values.update(overrides)
        return cls(**values)


__all__ = ["SchedulerConfig"]
