"""
Unit tests for the Trakt classifier.
"""

import json
from types import SimpleNamespace

import pytest

from request_pacer.providers.trakt import TraktClassifier
from request_pacer.types.result import ResultKind


def trakt_response(status=200, remaining=None, raw=None, retry_after=None):
    headers = {}
    if raw is not None:
        headers["X-Ratelimit"] = raw
    elif remaining is not None:
        headers["X-Ratelimit"] = json.dumps(
            {
                "name": "UNAUTHED_API_GET_LIMIT",
                "period": 300,
                "limit": 1000,
                "remaining": remaining,
                "until": "2026-10-19T00:24:00Z",
            }
        )
    if retry_after is not None:
        headers["Retry-After"] = str(retry_after)
    return SimpleNamespace(status_code=status, headers=headers)


class TestTraktClassifier:
    @pytest.fixture
    def classifier(self):
        return TraktClassifier()

    def test_reads_remaining_from_json_header(self, classifier):
        result = classifier.classify(trakt_response(remaining=987))
        assert result.kind is ResultKind.SUCCESS
        assert result.remaining == 987

    def test_missing_header(self, classifier):
        assert classifier.classify(trakt_response()).remaining is None

    def test_bare_count(self, classifier):
        assert classifier.classify(trakt_response(raw="42")).remaining == 42

    def test_json_without_remaining(self, classifier):
        raw = json.dumps({"name": "AUTHED_API_POST_LIMIT", "period": 1})
        assert classifier.classify(trakt_response(raw=raw)).remaining is None

    def test_invalid_remaining_value(self, classifier, caplog):
        raw = json.dumps({"remaining": "many"})
        assert classifier.classify(trakt_response(raw=raw)).remaining is None
        assert "Invalid remaining value" in caplog.text

    def test_unparseable_header(self, classifier, caplog):
        result = classifier.classify(trakt_response(raw="not json"))
        assert result.remaining is None

    def test_rejection_carries_retry_after_and_remaining(self, classifier):
        result = classifier.classify(
            trakt_response(status=429, remaining=0, retry_after=10)
        )
        assert result.kind is ResultKind.REJECTED
        assert result.retry_after == 10.0
        assert result.remaining == 0
