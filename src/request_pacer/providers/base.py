# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""HTTP response classification for rate-limited providers."""

import logging
import time
from collections.abc import Iterable, Mapping
from datetime import timezone
from email.utils import parsedate_to_datetime
from typing import Any

from ..types.result import TaskResult

logger = logging.getLogger(__name__)

RETRY_AFTER_HEADER = "retry-after"
DEFAULT_RETRIABLE_STATUSES: tuple[int, ...] = (429,)
# Any exception a task raises counts as a transport failure unless narrowed
DEFAULT_TRANSPORT_ERRORS: tuple[type[BaseException], ...] = (Exception,)


def get_header(headers: Any, name: str) -> str | None:
    """
    Look up a header value case-insensitively.

    Works with plain dicts as well as the case-insensitive header containers
    of httpx, aiohttp and requests.

    Args:
        headers: Header mapping (or None)
        name: Header name in any case

    Returns:
        The header value, or None if absent
    """
    if headers is None:
        return None

    value = headers.get(name) if hasattr(headers, "get") else None
    if value is not None:
        return str(value)

    if not isinstance(headers, Mapping) and not hasattr(headers, "items"):
        return None

    lowered = name.lower()
    for key, candidate in headers.items():
        if str(key).lower() == lowered:
            return str(candidate)
    return None


def parse_retry_after(value: Any, now: float | None = None) -> float | None:
    """
    Parse a Retry-After value into seconds.

    Accepts delta-seconds ("120", 120, "1.5") and HTTP-dates
    ("Wed, 21 Oct 2015 07:28:00 GMT"). Dates in the past yield 0.0.

    Args:
        value: Raw header value
        now: Current unix timestamp (defaults to time.time())

    Returns:
        Wait time in seconds, or None if the value is missing or unparseable
    """
    if value is None:
        return None

    if isinstance(value, (int, float)):
        return max(0.0, float(value))

    text = str(value).strip()
    if not text:
        return None

    try:
        return max(0.0, float(text))
    except ValueError:
        pass

    try:
        retry_at = parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        logger.warning(f"Invalid Retry-After header: {value!r}")
        return None

    if retry_at is None:
        logger.warning(f"Invalid Retry-After header: {value!r}")
        return None

    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=timezone.utc)

    current = time.time() if now is None else now
    return max(0.0, retry_at.timestamp() - current)


def extract_status_code(response: Any) -> int | None:
    """Return the HTTP status of a response-like object, if it has one."""
    for attr in ("status_code", "status"):
        status = getattr(response, attr, None)
        if isinstance(status, int) and not isinstance(status, bool):
            return status
    return None


class HttpResponseClassifier:
    """
    Default classifier for HTTP response objects.

    Maps a configurable set of statuses (429 by default) to an over-limit
    rejection, reads the Retry-After hint and, when ``remaining_header`` is
    given, a provider-specific remaining-count header. Any response with a
    status below 400 is a success; other statuses are non-retriable failures
    handed back to the caller unchanged.

    Objects without a status attribute (e.g. already-decoded JSON) are treated
    as successes. A TaskResult returned by a task passes through untouched.

    Example:
        >>> classifier = HttpResponseClassifier(
        ...     remaining_header="x-ratelimit-remaining",
        ... )
        >>> scheduler = Scheduler(config, classifier=classifier)
    """

    def __init__(
        self,
        remaining_header: str | None = None,
        retriable_statuses: Iterable[int] = DEFAULT_RETRIABLE_STATUSES,
        transport_errors: tuple[type[BaseException], ...] = DEFAULT_TRANSPORT_ERRORS,
    ):
        self.remaining_header = remaining_header
        self.retriable_statuses = frozenset(retriable_statuses)
        self.transport_errors = transport_errors

    def classify(self, response: Any) -> TaskResult:
        if isinstance(response, TaskResult):
            return response

        status = extract_status_code(response)
        headers = getattr(response, "headers", None)
        remaining = self.parse_remaining(headers)

        if status is not None and status in self.retriable_statuses:
            retry_after = parse_retry_after(get_header(headers, RETRY_AFTER_HEADER))
            return TaskResult.rejected(
                response,
                status_code=status,
                retry_after=retry_after,
                remaining=remaining,
            )

        if status is not None and status >= 400:
            return TaskResult.failed(response, status_code=status, remaining=remaining)

        return TaskResult.success(response, status_code=status, remaining=remaining)

    def is_transport_error(self, error: BaseException) -> bool:
        return isinstance(error, self.transport_errors)

    def parse_remaining(self, headers: Any) -> int | None:
        """
        Extract the remaining request count from response headers.

        Subclasses override this for providers that encode it differently.
        """
        if not self.remaining_header:
            return None

        raw = get_header(headers, self.remaining_header)
        if raw is None:
            return None

        try:
            return int(raw)
        except (TypeError, ValueError):
            logger.warning(f"Invalid {self.remaining_header} header: {raw!r}")
            return None


__all__ = [
    "DEFAULT_RETRIABLE_STATUSES",
    "DEFAULT_TRANSPORT_ERRORS",
    "HttpResponseClassifier",
    "extract_status_code",
    "get_header",
    "parse_retry_after",
]
