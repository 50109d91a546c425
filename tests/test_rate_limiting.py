"""
tests/test_rate_limiting.py — Tests for rate limiting behavior

Covers: slowapi limiter configuration, the login limit wiring, Redis
storage resolution with in-memory fallback, and TESTING bypass.

Called by: pytest
Depends on: app.rate_limit, routers/auth.py (login endpoint)
"""

import os
from unittest.mock import patch

import redis as redis_lib
from slowapi.util import get_remote_address


def test_limiter_uses_remote_address():
    """Key function is get_remote_address (per-IP limiting)."""
    from app.rate_limit import limiter

    assert limiter._key_func is get_remote_address


def test_limiter_attached_to_app():
    from app.main import app
    from app.rate_limit import limiter

    assert app.state.limiter is limiter


def test_rate_limit_disabled_in_test_mode():
    from app.rate_limit import limiter

    assert os.environ.get("TESTING") == "1"
    assert limiter.enabled is False


def test_login_not_blocked_under_testing(anon_client):
    """Repeated failed logins keep returning 401, never 429, while TESTING is set."""
    for _ in range(15):
        resp = anon_client.post(
            "/api/auth/login", json={"email": "nobody@example.com", "password": "wrong-password"}
        )
        assert resp.status_code == 401


def test_resolve_storage_no_redis():
    with patch("app.rate_limit.settings") as mock_settings:
        mock_settings.cache_backend = "memory"
        mock_settings.redis_url = ""
        from app.rate_limit import _resolve_storage

        assert _resolve_storage() is None


def test_resolve_storage_redis_unavailable():
    """Falls back to in-memory when Redis ping fails."""
    with patch("app.rate_limit.settings") as mock_settings:
        mock_settings.cache_backend = "redis"
        mock_settings.redis_url = "redis://localhost:6379/15"
        with patch.object(redis_lib, "from_url") as mock_from_url:
            mock_from_url.return_value.ping.side_effect = ConnectionError
            from app.rate_limit import _resolve_storage

            assert _resolve_storage() is None


def test_resolve_storage_redis_available():
    with patch("app.rate_limit.settings") as mock_settings:
        mock_settings.cache_backend = "redis"
        mock_settings.redis_url = "redis://localhost:6379/15"
        with patch.object(redis_lib, "from_url") as mock_from_url:
            mock_from_url.return_value.ping.return_value = True
            from app.rate_limit import _resolve_storage

            assert _resolve_storage() == "redis://localhost:6379/15"
