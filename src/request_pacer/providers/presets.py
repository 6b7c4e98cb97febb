# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Scheduler tuning for the providers the media catalogue talks to.

Each provider gets its own scheduler; schedulers are never shared between
APIs. The numbers below are the pacing observed to keep each API happy.
"""

from typing import Any

from .base import HttpResponseClassifier
from .trakt import TraktClassifier

PROVIDER_PRESETS: dict[str, dict[str, Any]] = {
    # ~1000 calls per 5 minutes for unauthenticated GETs
    "trakt": {
        "name": "Trakt",
        "max_concurrent": 3,
        "max_retries": 3,
        "min_interval": 0.15,
        "default_retry_after": 10.0,
    },
    # 1000 calls per day on the free tier
    "omdb": {
        "name": "OMDB",
        "max_concurrent": 5,
        "max_retries": 2,
        "min_interval": 0.05,
        "default_retry_after": 2.0,
    },
    # ~4 requests per second
    "igdb": {
        "name": "IGDB",
        "max_concurrent": 3,
        "max_retries": 3,
        "min_interval": 0.3,
        "default_retry_after": 5.0,
    },
}


def get_provider_preset(name: str) -> dict[str, Any]:
    """
    Get the config overrides for a known provider.

    Raises:
        ValueError: If the provider is unknown
    """
    try:
        return dict(PROVIDER_PRESETS[name.lower()])
    except KeyError as e:
        raise ValueError(
            f"Unknown provider preset: {name!r} "
            f"(expected one of {sorted(PROVIDER_PRESETS)})"
        ) from e


def classifier_for_provider(name: str) -> HttpResponseClassifier:
    """Create the response classifier matching a provider preset."""
    get_provider_preset(name)
    if name.lower() == "trakt":
        return TraktClassifier()
    return HttpResponseClassifier()


__all__ = ["PROVIDER_PRESETS", "classifier_for_provider", "get_provider_preset"]
