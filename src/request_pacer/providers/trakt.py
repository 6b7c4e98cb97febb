# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Trakt API response classification."""

import json
import logging
from typing import Any

from .base import HttpResponseClassifier, get_header

logger = logging.getLogger(__name__)

TRAKT_RATELIMIT_HEADER = "x-ratelimit"


class TraktClassifier(HttpResponseClassifier):
    """
    Classifier for the Trakt API.

    Trakt reports its limit window as a JSON document in a single header:

        X-Ratelimit: {"name": "UNAUTHED_API_GET_LIMIT", "period": 300,
                      "limit": 1000, "remaining": 987,
                      "until": "2020-10-10T00:24:00Z"}
    """

    def __init__(self, **kwargs: Any):
        super().__init__(remaining_header=TRAKT_RATELIMIT_HEADER, **kwargs)

    def parse_remaining(self, headers: Any) -> int | None:
        raw = get_header(headers, TRAKT_RATELIMIT_HEADER)
        if raw is None:
            return None

        try:
            payload = json.loads(raw)
        except (TypeError, ValueError):
            # Some proxies flatten the header to the bare count
            return super().parse_remaining(headers)

        if isinstance(payload, (int, float)) and not isinstance(payload, bool):
            return int(payload)

        remaining = payload.get("remaining") if isinstance(payload, dict) else None
        if remaining is None:
            return None

        try:
            return int(remaining)
        except (TypeError, ValueError):
            logger.warning(f"Invalid remaining value in X-Ratelimit: {remaining!r}")
            return None


__all__ = ["TRAKT_RATELIMIT_HEADER", "TraktClassifier"]
