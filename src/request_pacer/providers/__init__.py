# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Provider-specific response classification and tuning presets."""

from .base import (
    HttpResponseClassifier,
    extract_status_code,
    get_header,
    parse_retry_after,
)
from .presets import PROVIDER_PRESETS, classifier_for_provider, get_provider_preset
from .trakt import TraktClassifier

__all__ = [
    "PROVIDER_PRESETS",
    "HttpResponseClassifier",
    "TraktClassifier",
    "classifier_for_provider",
    "extract_status_code",
    "get_header",
    "get_provider_preset",
    "parse_retry_after",
]
