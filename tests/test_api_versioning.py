"""
test_api_versioning.py — Tests for the API version prefix middleware.

/api/v1/... is rewritten to /api/... internally, the plain /api/...
paths keep working, and X-API-Version is always set.
"""


class TestApiVersionMiddleware:
    def test_health_returns_version_header(self, client):
        resp = client.get("/health")
        assert resp.headers.get("X-API-Version") == "v1"

    def test_plain_api_path_works(self, client, test_department):
        resp = client.get("/api/departments")
        assert resp.status_code == 200
        assert resp.headers.get("X-API-Version") == "v1"

    def test_v1_prefix_reaches_same_endpoint(self, client, test_department):
        plain = client.get("/api/departments").json()
        versioned = client.get("/api/v1/departments")
        assert versioned.status_code == 200
        assert versioned.json() == plain

    def test_v1_prefix_on_post(self, admin_client):
        resp = admin_client.post("/api/v1/departments", json={"name": "Logos"})
        assert resp.status_code == 201
        assert resp.json()["name"] == "Logos"

    def test_v1_prefix_on_nonexistent_returns_404(self, client):
        resp = client.get("/api/v1/does-not-exist-12345")
        assert resp.status_code == 404

    def test_non_api_paths_unaffected(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
