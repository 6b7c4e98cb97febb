# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Mutable scheduler state.

A SchedulerState is owned by exactly one Scheduler and is only touched by its
admission controller, pacer and bookkeeping code. Every read-modify-write of
these fields happens without an ``await`` between the read and the commit, so
the single-threaded event loop makes each transition atomic.
"""

import asyncio
from collections import deque
from dataclasses import dataclass, field


@dataclass
class SchedulerState:
    """
    Bookkeeping shared by every caller of one Scheduler.

    Attributes:
        active_count: Slots currently held (0..max_concurrent)
        admission_queue: Futures of callers waiting for a slot, oldest first
        last_dispatch_time: Monotonic time of the most recent dispatch, None
            until the first task is dispatched
        remaining: Last remaining-count reported by the provider, None if the
            provider never reported one
        paused_until: Monotonic deadline of the current pre-emptive pause
            (0.0 when no pause was ever requested)
    """

    active_count: int = 0
    admission_queue: deque["asyncio.Future[None]"] = field(default_factory=deque)
    last_dispatch_time: float | None = None
    remaining: int | None = None
    paused_until: float = 0.0


__all__ = ["SchedulerState"]
