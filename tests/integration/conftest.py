"""
Fake rate-limited providers for integration tests.

Each FakeProvider emulates one third-party API: it tracks how many requests
are in flight, hands out a fixed budget per window and answers 429 with a
Retry-After header once the budget is spent.
"""

from __future__ import annotations

import asyncio
import json
import math
import time
from dataclasses import dataclass, field
from typing import Any

import pytest


@dataclass
class FakeResponse:
    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: Any = None


class FakeProvider:
    """
    In-memory stand-in for a rate-limited HTTP API.

    Args:
        name: Provider name used in assertions
        limit: Requests allowed per window
        window: Window length in seconds
        latency: Simulated request latency
        remaining_style: "trakt" for the X-Ratelimit JSON header, "plain" for
            x-ratelimit-remaining, None to report nothing
    """

    def __init__(
        self,
        name: str,
        limit: int = 1000,
        window: float = 1.0,
        latency: float = 0.01,
        remaining_style: str | None = None,
    ):
        self.name = name
        self.limit = limit
        self.window = window
        self.latency = latency
        self.remaining_style = remaining_style

        self.in_flight = 0
        self.peak_in_flight = 0
        self.requests = 0
        self.rejections = 0
        self.dispatch_times: list[float] = []
        self.transient_failures: dict[str, int] = {}

        self._window_start = time.monotonic()
        self._used = 0

    def _remaining_headers(self, remaining: int) -> dict[str, str]:
        if self.remaining_style == "trakt":
            return {
                "X-Ratelimit": json.dumps(
                    {"name": "UNAUTHED_API_GET_LIMIT", "remaining": remaining}
                )
            }
        if self.remaining_style == "plain":
            return {"x-ratelimit-remaining": str(remaining)}
        return {}

    async def get(self, path: str) -> FakeResponse:
        now = time.monotonic()
        self.requests += 1
        self.dispatch_times.append(now)
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.latency)

            if self.transient_failures.get(path, 0) > 0:
                self.transient_failures[path] -= 1
                raise ConnectionResetError(f"{self.name}: connection reset on {path}")

            if now - self._window_start >= self.window:
                self._window_start = now
                self._used = 0

            if self._used >= self.limit:
                self.rejections += 1
                retry_after = max(0.0, self.window - (now - self._window_start))
                # Round up so a retry never lands before the window reopens
                headers = {"Retry-After": f"{math.ceil(retry_after * 1000) / 1000:.3f}"}
                headers.update(self._remaining_headers(0))
                return FakeResponse(429, headers)

            self._used += 1
            remaining = self.limit - self._used
            if path.startswith("/missing"):
                return FakeResponse(404, self._remaining_headers(remaining))
            return FakeResponse(
                200,
                self._remaining_headers(remaining),
                body={"provider": self.name, "path": path},
            )
        finally:
            self.in_flight -= 1


@pytest.fixture
def fake_provider():
    """Factory for providers with custom budgets."""
    return FakeProvider


@pytest.fixture
def trakt_api():
    return FakeProvider("trakt", remaining_style="trakt")


@pytest.fixture
def omdb_api():
    return FakeProvider("omdb", remaining_style="plain")


@pytest.fixture
def igdb_api():
    return FakeProvider("igdb")
