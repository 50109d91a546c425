"""
tests/test_routers_design_packages.py -- Tests for design package orders

Covers: order creation (staff), per-client listing rules, the VP → sell
sheet step workflow with completion emails, and access control.

Called by: pytest
Depends on: app/routers/design_packages.py,
            app/services/design_package_service.py, conftest.py
"""

from unittest.mock import AsyncMock, patch

import pytest

from app.models import DesignPackageOrder, EmailLog
from app.services.email_service import EmailDeliveryError


@pytest.fixture(autouse=True)
def _email_logged_only():
    with patch("app.services.email_service._service_account_info", return_value=None):
        yield


@pytest.fixture()
def order(db_session, test_user):
    o = DesignPackageOrder(order_id="WC-1001", client_id=test_user.id)
    db_session.add(o)
    db_session.commit()
    return o


class TestCreate:
    def test_new_order_defaults(self, manager_client, test_user):
        resp = manager_client.post("/api/design-packages", json={"order_id": " WC-2002 ", "client_id": test_user.id})
        assert resp.status_code == 201
        body = resp.json()
        assert body["order_id"] == "WC-2002"
        assert body["virtual_prototype_status"] == "not_started"
        assert body["sell_sheet_status"] == "locked"
        assert body["package_status"] == "active"

    def test_duplicate_order(self, manager_client, order):
        assert manager_client.post("/api/design-packages", json={"order_id": "WC-1001"}).status_code == 409

    def test_blank_order_id(self, manager_client):
        assert manager_client.post("/api/design-packages", json={"order_id": "  "}).status_code == 400

    def test_staff_only(self, designer_client):
        assert designer_client.post("/api/design-packages", json={"order_id": "WC-3"}).status_code == 403


class TestRead:
    def test_client_lists_own(self, client, test_user, order):
        rows = client.get("/api/design-packages", params={"client_id": test_user.id}).json()
        assert [r["order_id"] for r in rows] == ["WC-1001"]

    def test_client_id_required(self, client):
        assert client.get("/api/design-packages").status_code == 400

    def test_client_cannot_list_others(self, client, other_client):
        assert client.get("/api/design-packages", params={"client_id": other_client.id}).status_code == 403

    def test_staff_lists_any(self, manager_client, test_user, order):
        assert len(manager_client.get("/api/design-packages", params={"client_id": test_user.id}).json()) == 1

    def test_get_by_order_id(self, client, order):
        assert client.get("/api/design-packages/WC-1001").json()["client_id"] == order.client_id

    def test_get_other_clients_order(self, outsider_client, order):
        assert outsider_client.get("/api/design-packages/WC-1001").status_code == 403

    def test_designer_reads_any(self, designer_client, order):
        assert designer_client.get("/api/design-packages/WC-1001").status_code == 200

    def test_missing(self, client):
        assert client.get("/api/design-packages/NOPE").status_code == 404


class TestWorkflow:
    def test_vp_complete_unlocks_sell_sheet(self, designer_client, db_session, order):
        body = designer_client.patch(
            "/api/design-packages/WC-1001", json={"virtual_prototype_status": "completed"}
        ).json()
        assert body["virtual_prototype_completed_at"] is not None
        assert body["sell_sheet_status"] == "not_started"
        assert body["package_status"] == "active"

        sent = db_session.query(EmailLog).one()
        assert sent.recipient == "client@example.com"
        assert sent.subject == "Virtual Prototype Complete - Start Your Sell Sheet"
        assert "/design-package/WC-1001" in sent.body

    def test_sell_sheet_complete_finishes_package(self, designer_client, db_session, order):
        body = designer_client.patch(
            "/api/design-packages/WC-1001", json={"sell_sheet_status": "completed", "sell_sheet_job_id": None}
        ).json()
        assert body["package_status"] == "completed"
        assert body["sell_sheet_completed_at"] is not None
        assert db_session.query(EmailLog).one().subject == "Design Package Complete!"

    def test_in_progress_sends_nothing(self, designer_client, db_session, order):
        designer_client.patch("/api/design-packages/WC-1001", json={"virtual_prototype_status": "in_progress"})
        assert db_session.query(EmailLog).count() == 0

    def test_links_jobs(self, designer_client, order, test_job):
        body = designer_client.patch(
            "/api/design-packages/WC-1001", json={"virtual_prototype_job_id": test_job.id}
        ).json()
        assert body["virtual_prototype_job_id"] == test_job.id

    def test_email_failure_does_not_fail_update(self, designer_client, order):
        with patch("app.services.email_service._service_account_info", return_value={"client_email": "x"}), \
             patch("app.services.email_service._deliver", new_callable=AsyncMock, side_effect=EmailDeliveryError("down")):
            resp = designer_client.patch("/api/design-packages/WC-1001", json={"virtual_prototype_status": "completed"})
        assert resp.status_code == 200

    def test_invalid_status(self, designer_client, order):
        assert designer_client.patch(
            "/api/design-packages/WC-1001", json={"sell_sheet_status": "done"}
        ).status_code == 422

    def test_client_cannot_update(self, client, order):
        assert client.patch("/api/design-packages/WC-1001", json={"sell_sheet_status": "completed"}).status_code == 403

    def test_missing(self, designer_client):
        assert designer_client.patch("/api/design-packages/NOPE", json={}).status_code == 404
