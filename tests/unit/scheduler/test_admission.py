"""
Unit tests for FIFO slot admission.
"""

import asyncio

import pytest

from request_pacer.scheduler.admission import AdmissionController
from request_pacer.scheduler.state import SchedulerState


@pytest.fixture
def state():
    return SchedulerState()


@pytest.fixture
def admission(state):
    return AdmissionController(state, max_concurrent=2, name="Test")


class TestAdmissionController:
    @pytest.mark.asyncio
    async def test_acquire_below_cap_is_immediate(self, admission, state):
        await admission.acquire()
        await admission.acquire()
        assert state.active_count == 2
        assert admission.queue_depth == 0

    @pytest.mark.asyncio
    async def test_third_caller_queues(self, admission):
        await admission.acquire()
        await admission.acquire()

        waiter = asyncio.create_task(admission.acquire())
        await asyncio.sleep(0)

        assert not waiter.done()
        assert admission.queue_depth == 1

        admission.release()
        await waiter
        assert admission.active_count == 2
        assert admission.queue_depth == 0

    @pytest.mark.asyncio
    async def test_release_hands_slot_over_without_dropping_count(
        self, admission, state
    ):
        """The count never dips while a waiter is queued."""
        await admission.acquire()
        await admission.acquire()
        waiter = asyncio.create_task(admission.acquire())
        await asyncio.sleep(0)

        admission.release()
        assert state.active_count == 2
        await waiter

    @pytest.mark.asyncio
    async def test_fifo_order(self, state):
        admission = AdmissionController(state, max_concurrent=1)
        await admission.acquire()

        order = []

        async def queued(label):
            await admission.acquire()
            order.append(label)
            admission.release()

        tasks = []
        for label in ("a", "b", "c", "d"):
            tasks.append(asyncio.create_task(queued(label)))
            await asyncio.sleep(0)

        admission.release()
        await asyncio.gather(*tasks)

        assert order == ["a", "b", "c", "d"]
        assert state.active_count == 0

    @pytest.mark.asyncio
    async def test_newcomer_cannot_jump_queue(self, state):
        """A fresh caller queues behind existing waiters even if a slot frees."""
        admission = AdmissionController(state, max_concurrent=1)
        await admission.acquire()

        order = []

        async def queued(label):
            await admission.acquire()
            order.append(label)

        first = asyncio.create_task(queued("waiter"))
        await asyncio.sleep(0)

        admission.release()
        late = asyncio.create_task(queued("newcomer"))
        await asyncio.sleep(0)
        await first

        assert order == ["waiter"]
        assert not late.done()

        admission.release()
        await late
        assert order == ["waiter", "newcomer"]

    @pytest.mark.asyncio
    async def test_cancelled_waiter_leaves_queue(self, admission, state):
        await admission.acquire()
        await admission.acquire()

        waiter = asyncio.create_task(admission.acquire())
        await asyncio.sleep(0)
        assert admission.queue_depth == 1

        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter

        assert admission.queue_depth == 0
        assert len(state.admission_queue) == 0

        admission.release()
        admission.release()
        assert state.active_count == 0

    @pytest.mark.asyncio
    async def test_cancelled_after_handoff_passes_slot_on(self, state):
        """A waiter cancelled after being handed a slot gives it to the next."""
        admission = AdmissionController(state, max_concurrent=1)
        await admission.acquire()

        first = asyncio.create_task(admission.acquire())
        second = asyncio.create_task(admission.acquire())
        await asyncio.sleep(0)

        # Hand the slot to `first`, then cancel it before it resumes
        admission.release()
        first.cancel()

        with pytest.raises(asyncio.CancelledError):
            await first

        await second
        assert state.active_count == 1

        admission.release()
        assert state.active_count == 0

    @pytest.mark.asyncio
    async def test_cancelled_waiters_are_skipped_on_release(self, state):
        admission = AdmissionController(state, max_concurrent=1)
        await admission.acquire()

        stale = asyncio.create_task(admission.acquire())
        live = asyncio.create_task(admission.acquire())
        await asyncio.sleep(0)

        stale.cancel()
        await asyncio.sleep(0)

        admission.release()
        await live
        assert stale.cancelled()
        assert state.active_count == 1

    def test_release_without_slot_raises(self, admission):
        with pytest.raises(RuntimeError, match="without a held slot"):
            admission.release()

    @pytest.mark.asyncio
    async def test_double_release_raises(self, admission, state):
        await admission.acquire()
        admission.release()
        with pytest.raises(RuntimeError):
            admission.release()
        assert state.active_count == 0
