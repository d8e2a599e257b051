"""Tests for read-failure classification and the fail-open Redis cache"""

import json
from unittest.mock import MagicMock

import redis

from bookify.cache import Cache
from bookify.errors import INDEX_BUILDING_DETAIL, describe_query_error, is_missing_index_error


class TestQueryErrors:
    def test_index_failures_are_recognised(self):
        assert is_missing_index_error(Exception("FAILED_PRECONDITION: The query requires an index"))
        assert is_missing_index_error(Exception("index ix_appointments_provider_date is still building"))
        assert not is_missing_index_error(Exception("connection reset by peer"))

    def test_index_failure_maps_to_503(self):
        exc = describe_query_error(Exception("The query requires an index"), "appointments")
        assert exc.status_code == 503
        assert exc.detail == INDEX_BUILDING_DETAIL
        assert exc.headers["Retry-After"] == "120"

    def test_other_failure_maps_to_500(self):
        exc = describe_query_error(Exception("timeout"), "providers")
        assert exc.status_code == 500
        assert exc.detail == "Failed to load providers. Please try again."


class TestCache:
    def test_without_redis_everything_misses(self):
        cache = Cache(client_factory=lambda: None)
        assert cache.get("k") is None
        assert cache.set("k", {"a": 1}) is False
        assert cache.delete_pattern("k*") == 0

    def test_redis_errors_fail_open(self):
        client = MagicMock()
        client.get.side_effect = redis.ConnectionError("down")
        client.setex.side_effect = redis.ConnectionError("down")
        cache = Cache(client_factory=lambda: client)

        assert cache.get("k") is None
        assert cache.set("k", 1) is False

    def test_hit_and_set_round_trip_through_json(self):
        client = MagicMock()
        client.get.return_value = json.dumps({"total": 2})
        cache = Cache(client_factory=lambda: client)

        assert cache.get("providers:directory:x") == {"total": 2}
        assert cache.set("providers:directory:x", {"total": 2}, ttl=60) is True
        client.setex.assert_called_once_with("providers:directory:x", 60, json.dumps({"total": 2}))

    def test_delete_pattern(self):
        client = MagicMock()
        client.scan_iter.return_value = iter(["a", "b"])
        client.delete.return_value = 2
        cache = Cache(client_factory=lambda: client)

        assert cache.delete_pattern("providers:directory:*") == 2
        client.delete.assert_called_once_with("a", "b")


def test_directory_page_is_served_from_cache(client, provider, monkeypatch):
    from bookify.domain.providers import service as provider_service

    cached_page = {"providers": [], "total": 0, "limit": 50, "offset": 0}
    monkeypatch.setattr(provider_service.cache, "get", lambda key: cached_page)

    response = client.get("/providers")
    assert response.json()["total"] == 0
