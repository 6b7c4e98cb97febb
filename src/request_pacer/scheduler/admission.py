# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
FIFO slot admission for the scheduler.

Slots are handed off directly: a releasing caller that finds someone queued
keeps ``active_count`` unchanged and resolves the oldest waiter's future, so
the woken caller already owns its slot when it resumes. No newcomer can slip
in between the release and the wake-up.
"""

import asyncio
import contextlib
import logging

from .state import SchedulerState

logger = logging.getLogger(__name__)


class AdmissionController:
    """
    Caps the number of concurrently held slots and queues the overflow.

    Every successful ``acquire()`` must be paired with exactly one
    ``release()``. Releasing a slot that is not held raises RuntimeError
    instead of silently corrupting the count.

    Example:
        >>> admission = AdmissionController(SchedulerState(), max_concurrent=2)
        >>> await admission.acquire()
        >>> try:
        ...     await do_request()
        ... finally:
        ...     admission.release()
    """

    def __init__(self, state: SchedulerState, max_concurrent: int, name: str = "API"):
        self._state = state
        self.max_concurrent = max_concurrent
        self.name = name

    @property
    def active_count(self) -> int:
        return self._state.active_count

    @property
    def queue_depth(self) -> int:
        return sum(1 for waiter in self._state.admission_queue if not waiter.done())

    async def acquire(self) -> None:
        """
        Take a slot, waiting in FIFO order if all slots are held.

        If the caller is cancelled while queued it leaves the queue. If it is
        cancelled after a slot was already handed to it, the slot is passed on
        before the cancellation propagates.
        """
        state = self._state
        if not state.admission_queue and state.active_count < self.max_concurrent:
            state.active_count += 1
            return

        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        state.admission_queue.append(waiter)
        logger.debug(
            f"[{self.name}] All {self.max_concurrent} slots busy, queued "
            f"(queue depth {len(state.admission_queue)})"
        )

        try:
            await waiter
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                # Slot was handed to us just before the cancellation landed
                self.release()
            else:
                with contextlib.suppress(ValueError):
                    state.admission_queue.remove(waiter)
            raise

    def release(self) -> None:
        """Give back a held slot, handing it to the oldest live waiter if any."""
        state = self._state
        if state.active_count <= 0:
            raise RuntimeError(f"[{self.name}] release() called without a held slot")

        state.active_count -= 1
        while state.admission_queue:
            waiter = state.admission_queue.popleft()
            if waiter.done():
                continue
            state.active_count += 1
            waiter.set_result(None)
            break


__all__ = ["AdmissionController"]
