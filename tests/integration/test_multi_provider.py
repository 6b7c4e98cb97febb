"""
Multi-provider integration tests for request-pacer.

These tests run one scheduler per fake provider, the way a catalogue
pipeline talks to Trakt, OMDB and IGDB at the same time, and verify that
each scheduler enforces its own limits independently.
"""

import asyncio
import time

import pytest

from request_pacer import (
    HttpResponseClassifier,
    RetriesExhaustedError,
    SchedulerConfig,
    create_scheduler,
    gather_in_batches,
)

pytestmark = pytest.mark.integration


def fast(provider, **overrides):
    """Provider preset with pacing shrunk so tests run quickly."""
    values = {"min_interval": 0.0, "default_retry_after": 0.05}
    values.update(overrides)
    return create_scheduler(provider, **values)


class TestIndependentSchedulers:
    @pytest.mark.asyncio
    async def test_each_provider_capped_by_its_own_scheduler(
        self, trakt_api, omdb_api, igdb_api
    ):
        trakt = fast("trakt")
        omdb = fast("omdb")
        igdb = fast("igdb")

        calls = []
        for i in range(12):
            calls.append(trakt.execute(lambda i=i: trakt_api.get(f"/shows/{i}")))
            calls.append(omdb.execute(lambda i=i: omdb_api.get(f"/?i=tt{i}")))
            calls.append(igdb.execute(lambda i=i: igdb_api.get(f"/games/{i}")))

        responses = await asyncio.gather(*calls)

        assert all(r.status_code == 200 for r in responses)
        assert trakt_api.peak_in_flight == 3
        assert omdb_api.peak_in_flight == 5
        assert igdb_api.peak_in_flight == 3
        for scheduler in (trakt, omdb, igdb):
            assert scheduler.active_count == 0
            assert scheduler.queue_depth == 0

    @pytest.mark.asyncio
    async def test_trakt_remaining_tracked_from_json_header(self, trakt_api):
        trakt = fast("trakt")

        await trakt.execute(lambda: trakt_api.get("/movies/trending"))

        assert trakt.remaining == 999

    @pytest.mark.asyncio
    async def test_pause_on_one_provider_does_not_stall_another(
        self, fake_provider, omdb_api
    ):
        low_budget = fake_provider("trakt", limit=40, remaining_style="trakt")
        trakt = fast("trakt", rate_limit_threshold=50, rate_limit_pause=0.3)
        omdb = fast("omdb")

        paused_call = asyncio.create_task(
            trakt.execute(lambda: low_budget.get("/shows/1"))
        )
        await asyncio.sleep(0.05)
        assert trakt.is_paused
        assert trakt.remaining == 39

        start = time.monotonic()
        await omdb.execute(lambda: omdb_api.get("/?i=tt1"))
        assert time.monotonic() - start < 0.2
        assert trakt.is_paused

        await paused_call
        assert not trakt.is_paused


class TestRateLimitedProvider:
    @pytest.mark.asyncio
    async def test_rejections_retried_until_window_reopens(self, fake_provider):
        api = fake_provider("omdb", limit=4, window=0.2, remaining_style="plain")
        omdb = create_scheduler(
            "omdb",
            max_concurrent=2,
            max_retries=5,
            min_interval=0.0,
            rate_limit_threshold=0,
        )

        responses = await asyncio.gather(
            *(omdb.execute(lambda i=i: api.get(f"/?i=tt{i}")) for i in range(6))
        )

        assert [r.status_code for r in responses] == [200] * 6
        assert api.rejections >= 1
        assert omdb.metrics["retries"] == api.rejections
        assert omdb.active_count == 0

    @pytest.mark.asyncio
    async def test_persistent_rejection_surfaces_last_response(self, fake_provider):
        api = fake_provider("igdb", limit=0, window=0.05)
        igdb = create_scheduler(
            config=SchedulerConfig(name="IGDB", max_retries=1),
            classifier=HttpResponseClassifier(),
        )
        with pytest.raises(RetriesExhaustedError) as exc_info:
            await igdb.execute(lambda: api.get("/games/1"))

        assert exc_info.value.attempts == 2
        assert exc_info.value.response.status_code == 429
        assert api.requests == 2

    @pytest.mark.asyncio
    async def test_transient_network_failures_recovered(self, trakt_api):
        trakt = fast("trakt", transport_backoff=0.01)
        trakt_api.transient_failures["/shows/flaky"] = 2

        response = await trakt.execute(lambda: trakt_api.get("/shows/flaky"))

        assert response.status_code == 200
        assert trakt_api.requests == 3
        assert trakt.metrics["transport_failures"] == 2

    @pytest.mark.asyncio
    async def test_missing_items_returned_to_caller(self, igdb_api):
        igdb = fast("igdb")

        response = await igdb.execute(lambda: igdb_api.get("/missing/42"))

        assert response.status_code == 404
        assert igdb_api.requests == 1


class TestBatchPipeline:
    @pytest.mark.asyncio
    async def test_ratings_pipeline(self, omdb_api):
        """Fetch ratings for a catalogue in batches of five, as the sync job does."""
        omdb = fast("omdb", min_interval=0.005)
        imdb_ids = [f"tt{n:07d}" for n in range(23)]

        results = await gather_in_batches(
            omdb, imdb_ids, lambda imdb_id: lambda: omdb_api.get(f"/?i={imdb_id}")
        )

        assert [r.body["path"] for r in results] == [f"/?i={i}" for i in imdb_ids]
        assert omdb_api.peak_in_flight <= 5
        stamps = omdb_api.dispatch_times
        gaps = [b - a for a, b in zip(stamps, stamps[1:])]
        assert all(gap >= 0.005 - 0.001 for gap in gaps)

    @pytest.mark.asyncio
    async def test_people_pipeline_maps_failures_to_none(self, trakt_api):
        trakt = fast("trakt", max_retries=0)
        slugs = ["dune-2021", "missing-1", "arrival-2016"]

        async def fetch_people(slug):
            response = await trakt.execute(lambda: trakt_api.get(f"/{slug}/people"))
            return response.body if response.status_code == 200 else None

        people = await asyncio.gather(*(fetch_people(slug) for slug in slugs))

        assert people[0]["path"] == "/dune-2021/people"
        assert people[1] is None
        assert people[2]["path"] == "/arrival-2016/people"
