from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from servicedome.auth import resolve_account_id
from servicedome.cache import Cache
from servicedome.config import JWT_SECRET
from servicedome.errors import Unauthorized
from servicedome.main import app
from servicedome.models import VendorProfile
from servicedome.plan_limits import claim_page_slot, get_page_limit, get_usage_stats, release_page_slot
from servicedome.security_utils import create_jwt_token


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/").status_code == 200


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/nowhere")
    assert response.status_code == 404
    assert response.json()["success"] is False
    assert response.json()["code"] == "not_found"


def test_unexpected_errors_do_not_leak_details(client):
    @app.get("/_boom")
    async def boom():
        raise RuntimeError("database password is hunter2")

    try:
        response = TestClient(app, raise_server_exceptions=False).get("/_boom")
    finally:
        app.router.routes = [r for r in app.router.routes if getattr(r, "path", None) != "/_boom"]

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "error": "Something went wrong. Please try again.",
        "code": "internal_error",
    }


def test_resolve_account_id():
    assert resolve_account_id(create_jwt_token({"sub": "42"}, JWT_SECRET)) == 42
    assert resolve_account_id(create_jwt_token({"id": 7}, JWT_SECRET)) == 7

    with pytest.raises(Unauthorized):
        resolve_account_id(create_jwt_token({"sub": "42"}, "other-secret"))
    with pytest.raises(Unauthorized):
        resolve_account_id(create_jwt_token({"sub": "42"}, JWT_SECRET, expires_delta=timedelta(seconds=-1)))
    with pytest.raises(Unauthorized):
        resolve_account_id(create_jwt_token({"email": "x@example.com"}, JWT_SECRET))


def test_page_limits(db, vendor):
    assert get_page_limit("Free") == 1
    assert get_page_limit("Premium") is None
    assert get_page_limit("Unknown") == 1

    assert claim_page_slot(db, vendor.id) is True
    assert claim_page_slot(db, vendor.id) is False
    db.commit()

    profile = db.query(VendorProfile).filter_by(account_id=vendor.id).one()
    db.refresh(profile)
    assert get_usage_stats(profile) == {"membershipTier": "Free", "limit": 1, "current": 1, "remaining": 0}

    release_page_slot(db, vendor.id)
    release_page_slot(db, vendor.id)
    db.commit()
    db.refresh(profile)
    assert profile.page_count == 0


def test_cache_fails_open(monkeypatch):
    def unreachable():
        raise ConnectionError("no redis")

    monkeypatch.setattr("servicedome.cache.create_redis_client", unreachable)
    cache = Cache(enabled=True)
    assert cache.get("page:1") is None
    assert cache.set("page:1", {"id": 1}) is False
    assert cache.delete("page:1") is False
    assert cache._connect_failed is True


def test_disabled_cache_never_connects(monkeypatch):
    def should_not_connect():
        raise AssertionError("connected")

    monkeypatch.setattr("servicedome.cache.create_redis_client", should_not_connect)
    assert Cache(enabled=False).get("page:1") is None


def test_redis_health_reports_upstream_failure(client, monkeypatch):
    def unreachable():
        raise ConnectionError("no redis")

    monkeypatch.setattr("servicedome.main.create_redis_client", unreachable)
    response = client.get("/health/redis")
    assert response.status_code == 502
    assert response.json() == {"success": False, "error": "Redis is unavailable", "code": "upstream_failure"}
