"""
Shared fixtures for benchmark tests.
"""

import pytest

from request_pacer.providers.base import HttpResponseClassifier
from request_pacer.scheduler.config import SchedulerConfig
from request_pacer.scheduler.scheduler import Scheduler


@pytest.fixture
def benchmark_config():
    """Configuration with pacing and pauses disabled to isolate overhead."""
    return SchedulerConfig(
        name="Benchmark",
        max_concurrent=1000,
        min_interval=0.0,
        rate_limit_threshold=0,
        max_retries=0,
    )


@pytest.fixture
def benchmark_classifier():
    """Classifier matching the header the instant requests report."""
    return HttpResponseClassifier(remaining_header="x-ratelimit-remaining")


@pytest.fixture
def make_scheduler(benchmark_config, benchmark_classifier):
    """Factory for fresh schedulers sharing the benchmark config."""

    def factory(**overrides):
        return Scheduler(
            benchmark_config.with_overrides(**overrides),
            classifier=benchmark_classifier,
        )

    return factory
