"""Middleware tests — request ids, error boundary, rate limiting.

Learn: Rate limiting is skipped in tests (no Redis available), so the
limiter tests swap in a small in-memory counter for the Redis client.
"""

import pytest

from tokengate.logging import _redact_credentials
from tokengate.middleware import rate_limit


@pytest.mark.asyncio
async def test_request_id_generated(client):
    """Each request gets a unique X-Request-ID header."""
    r1 = await client.get("/api/health")
    r2 = await client.get("/api/health")
    assert "X-Request-ID" in r1.headers
    assert "X-Request-ID" in r2.headers
    assert r1.headers["X-Request-ID"] != r2.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_request_id_propagated(client):
    """Incoming X-Request-ID is propagated through the response."""
    custom_id = "test-trace-12345"
    r = await client.get("/api/health", headers={"X-Request-ID": custom_id})
    assert r.headers["X-Request-ID"] == custom_id


@pytest.mark.asyncio
async def test_unhandled_error_becomes_generic_500(app, client):
    async def boom():
        raise RuntimeError("secret internals")

    app.add_api_route("/api/boom", boom)

    r = await client.get("/api/boom")
    assert r.status_code == 500
    assert r.json() == {"detail": "Unexpected server error. Please try again later."}
    assert "secret internals" not in r.text


# ═══════════════════════════════════════════════════════════
# Rate limiting
# ═══════════════════════════════════════════════════════════


class FakeRedis:
    def __init__(self):
        self.counts: dict[str, int] = {}

    async def incr(self, key):
        # Ignore the minute suffix so a window rollover mid-test changes nothing.
        bucket = key.rsplit(":", 1)[0]
        self.counts[bucket] = self.counts.get(bucket, 0) + 1
        return self.counts[bucket]

    async def expire(self, key, seconds):
        return True


@pytest.mark.asyncio
async def test_auth_routes_share_strict_bucket(client, settings, monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(rate_limit, "get_redis", lambda: fake)

    for _ in range(settings.rate_limit_auth_rpm):
        r = await client.post("/api/auth/refresh")
        assert r.status_code == 401

    r = await client.post("/api/auth/login", json={"email": "a@b.io", "password": "x"})
    assert r.status_code == 429
    assert r.headers["Retry-After"] == "60"

    # Other routes count against the default bucket.
    r = await client.get("/api/health")
    assert r.status_code == 200
    assert r.headers["X-RateLimit-Limit"] == str(settings.rate_limit_rpm)


@pytest.mark.asyncio
async def test_limiter_steps_aside_on_redis_errors(client, monkeypatch):
    class BrokenRedis:
        async def incr(self, key):
            raise ConnectionError("redis down")

    monkeypatch.setattr(rate_limit, "get_redis", lambda: BrokenRedis())

    r = await client.get("/api/health")
    assert r.status_code == 200
    assert "X-RateLimit-Limit" not in r.headers


# ═══════════════════════════════════════════════════════════
# Log redaction
# ═══════════════════════════════════════════════════════════


def test_credentials_are_redacted_from_log_events():
    event = _redact_credentials(
        None,
        "info",
        {"event": "x", "refresh_token": "abc", "password": "pw", "user_id": 3, "access_token": "eyJhbGciOiJIUzI1NiJ9"},
    )
    assert event["refresh_token"] == "***"
    assert event["password"] == "***"
    assert event["user_id"] == 3
    assert event["access_token"] == "eyJh***"
