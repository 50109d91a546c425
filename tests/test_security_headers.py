"""
tests/test_security_headers.py — Tests for security headers on responses

Validates that request_id_middleware in main.py sets the expected
security headers on every response, errors included.

Called by: pytest
Depends on: app.main (request_id_middleware, SECURITY_HEADERS)
"""

import pytest

from app.main import SECURITY_HEADERS


@pytest.mark.parametrize(
    "header,value",
    [
        ("X-Content-Type-Options", "nosniff"),
        ("X-Frame-Options", "DENY"),
        ("X-XSS-Protection", "1; mode=block"),
        ("Referrer-Policy", "strict-origin-when-cross-origin"),
        ("X-API-Version", "v1"),
    ],
)
def test_header_on_health(client, header, value):
    resp = client.get("/health")
    assert resp.headers.get(header) == value


def test_security_headers_on_api_endpoint(client, test_job):
    resp = client.get("/api/jobs")
    assert resp.status_code == 200
    for header, value in SECURITY_HEADERS.items():
        assert resp.headers.get(header) == value
    assert "X-Request-ID" in resp.headers


def test_security_headers_on_404(client):
    resp = client.get("/api/nonexistent-endpoint-xyz")
    assert resp.status_code == 404
    assert resp.headers.get("X-Content-Type-Options") == "nosniff"
    assert "X-Request-ID" in resp.headers


def test_security_headers_on_403(client):
    resp = client.get("/api/admin/users")
    assert resp.status_code == 403
    assert resp.headers.get("X-Frame-Options") == "DENY"


def test_request_id_uniqueness(client):
    ids = {client.get("/health").headers["X-Request-ID"] for _ in range(5)}
    assert len(ids) == 5


def test_global_exception_handler_registered():
    """Catch-all and upstream handlers are wired up."""
    from app.main import app
    from app.services.email_service import EmailDeliveryError
    from app.services.payment_service import PaymentProviderError
    from app.utils.storage import StorageError

    handlers = app.exception_handlers
    assert Exception in handlers
    for exc in (StorageError, EmailDeliveryError, PaymentProviderError):
        assert exc in handlers


def test_storage_failure_maps_to_502(client, test_job):
    """An upstream storage failure surfaces as 502 in the error body format."""
    from unittest.mock import patch

    from app.utils.storage import StorageError

    with patch("app.services.file_service.presigned_upload_url", side_effect=StorageError("boom")):
        resp = client.post(
            "/api/files/presigned-url",
            json={"file_name": "a.png", "mime_type": "image/png", "job_id": str(test_job.id)},
        )
    assert resp.status_code == 502
    assert resp.json()["status_code"] == 502
