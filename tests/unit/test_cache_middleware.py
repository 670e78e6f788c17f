"""Tests for the cache header middleware."""

from __future__ import annotations

from app.api.cache_middleware import compute_etag, match_cache_rule
from payroll_fixtures import make_record, store_records


def test_match_cache_rule_prefers_specific_prefixes() -> None:
    assert match_cache_rule("/v1/members/tj-sp/joao-silva") == 300
    assert match_cache_rule("/v1/members/query") == 300
    assert match_cache_rule("/v1/members") == 60
    assert match_cache_rule("/v1/search") == 30
    assert match_cache_rule("/v1/anomalies") == 600
    assert match_cache_rule("/v1/stats/estados") == 300
    assert match_cache_rule("/v1/health") is None


def test_compute_etag_is_weak_and_stable() -> None:
    etag = compute_etag(b"[]")

    assert etag.startswith('W/"')
    assert etag == compute_etag(b"[]")
    assert etag != compute_etag(b"[1]")


def test_members_has_cache_control_and_etag(api_client, sqlite_settings) -> None:
    store_records(sqlite_settings, [make_record("Ana")])

    response = api_client.get("/v1/members")

    assert response.status_code == 200
    assert "max-age=60" in response.headers["cache-control"]
    assert response.headers["etag"].startswith('W/"')


def test_conditional_request_returns_304_when_body_matches(api_client, sqlite_settings) -> None:
    store_records(sqlite_settings, [make_record("Ana")])
    first = api_client.get("/v1/months")
    etag = first.headers.get("etag")
    assert etag

    second = api_client.get("/v1/months", headers={"If-None-Match": etag})

    assert second.status_code == 304
    assert second.headers.get("etag") == etag


def test_error_responses_are_not_cached(api_client) -> None:
    response = api_client.get("/v1/members/tj-sp/ninguem")

    assert response.status_code == 404
    assert "cache-control" not in response.headers


def test_post_request_not_cached(api_client) -> None:
    response = api_client.post("/v1/months", headers={"Content-Type": "application/json"})

    assert response.status_code == 405
    assert "cache-control" not in response.headers
