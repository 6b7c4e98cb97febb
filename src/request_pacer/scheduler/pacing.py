# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Dispatch pacing and pre-emptive rate limit pauses.

Two gates sit between admission and dispatch:

1. The minimum interval between successive dispatches.
2. The global pause deadline set when the provider reports that only a few
   requests remain in its window.

Both are checked under one asyncio.Lock, so admitted callers pass through
the gate one at a time and in arrival order.
"""

import asyncio
import logging
import time
from collections.abc import Callable

from .state import SchedulerState

logger = logging.getLogger(__name__)


class Pacer:
    """
    Spaces dispatches and enforces pre-emptive pauses.

    Attributes:
        min_interval: Minimum seconds between two dispatches (0 disables)
    """

    def __init__(
        self,
        state: SchedulerState,
        min_interval: float = 0.0,
        name: str = "API",
        clock: Callable[[], float] = time.monotonic,
    ):
        self._state = state
        self.min_interval = min_interval
        self.name = name
        self._clock = clock
        self._gate: asyncio.Lock | None = None
        self._gate_loop: asyncio.AbstractEventLoop | None = None

    @property
    def is_paused(self) -> bool:
        return self._clock() < self._state.paused_until

    def time_until_dispatch(self, now: float | None = None) -> float:
        """Seconds until the next dispatch may happen (0.0 if it may happen now)."""
        state = self._state
        if now is None:
            now = self._clock()

        wait = state.paused_until - now
        if self.min_interval > 0 and state.last_dispatch_time is not None:
            wait = max(wait, state.last_dispatch_time + self.min_interval - now)
        return max(0.0, wait)

    def _gate_for_running_loop(self) -> asyncio.Lock:
        """
        Return the gate lock for the running event loop.

        A scheduler may outlive the loop it was first used on (one
        ``asyncio.run()`` per fetch phase), so the lock is rebuilt whenever
        the running loop changes.
        """
        loop = asyncio.get_running_loop()
        if self._gate is None or self._gate_loop is not loop:
            self._gate = asyncio.Lock()
            self._gate_loop = loop
        return self._gate

    async def wait_for_dispatch(self) -> float:
        """
        Wait until this caller may dispatch, then record the dispatch time.

        ``last_dispatch_time`` is committed in the same step that finds the
        wait elapsed, right before the caller runs its task.

        Returns:
            The monotonic dispatch timestamp
        """
        async with self._gate_for_running_loop():
            while True:
                now = self._clock()
                wait = self.time_until_dispatch(now)
                if wait <= 0:
                    self._state.last_dispatch_time = now
                    return now
                logger.debug(f"[{self.name}] Pacing dispatch for {wait:.3f}s")
                await asyncio.sleep(wait)

    def pause(self, duration: float) -> float:
        """
        Hold back every dispatch for ``duration`` seconds from now.

        An already-running longer pause is never shortened.

        Returns:
            The pause deadline (monotonic)
        """
        until = self._clock() + duration
        if until > self._state.paused_until:
            self._state.paused_until = until
        return self._state.paused_until

    async def wait_out_pause(self) -> None:
        """Sleep until the current pause deadline has passed."""
        while True:
            wait = self._state.paused_until - self._clock()
            if wait <= 0:
                return
            await asyncio.sleep(wait)


__all__ = ["Pacer"]
