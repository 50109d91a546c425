"""
tests/test_services_assignments.py -- Tests for designer auto-assignment

Covers: package type → job type mapping, priority selection skipping
inactive designers, replace-on-save semantics, and the admin endpoints.

Called by: pytest
Depends on: app/services/assignment_service.py,
            app/routers/designer_assignments.py, conftest.py
"""

import pytest

from app.models import DesignerAssignment, User
from app.services import assignment_service


@pytest.fixture()
def second_designer(db_session):
    user = User(open_id="open-d2", email="d2@inventright.com", name="Second Designer", role="designer",
                login_method="email", is_active=True)
    db_session.add(user)
    db_session.commit()
    return user


@pytest.mark.parametrize(
    "package_type, expected",
    [
        ("Sell Sheet", "sell_sheets"),
        ("Premium SELL SHEET package", "sell_sheets"),
        ("Virtual Prototype", "virtual_prototypes"),
        ("3D Render", "virtual_prototypes"),
        ("Line Drawing", "line_drawings"),
        ("Technical drawings", "line_drawings"),
        ("Logo", None),
        (None, None),
    ],
)
def test_package_type_mapping(package_type, expected):
    assert assignment_service.map_package_type_to_job_type(package_type) == expected


class TestSelection:
    def test_lowest_priority_wins(self, db_session, designer_user, second_designer):
        assignment_service.set_assignments(db_session, "sell_sheets", [second_designer.id, designer_user.id])
        assert assignment_service.get_assigned_designer(db_session, "sell_sheets") == second_designer.id

    def test_skips_inactive_designer(self, db_session, designer_user, second_designer):
        assignment_service.set_assignments(db_session, "sell_sheets", [second_designer.id, designer_user.id])
        second_designer.is_active = False
        db_session.commit()
        assert assignment_service.get_assigned_designer(db_session, "sell_sheets") == designer_user.id

    def test_skips_demoted_designer(self, db_session, designer_user, second_designer):
        assignment_service.set_assignments(db_session, "sell_sheets", [second_designer.id])
        second_designer.role = "client"
        db_session.commit()
        assert assignment_service.get_assigned_designer(db_session, "sell_sheets") is None

    def test_none_configured(self, db_session):
        assert assignment_service.get_assigned_designer(db_session, "line_drawings") is None


class TestSetAssignments:
    def test_replaces_previous_list(self, db_session, designer_user, second_designer):
        assignment_service.set_assignments(db_session, "sell_sheets", [designer_user.id])
        grouped = assignment_service.set_assignments(db_session, "sell_sheets", [second_designer.id])
        assert [a["designer_id"] for a in grouped["sell_sheets"]] == [second_designer.id]
        assert db_session.query(DesignerAssignment).filter(DesignerAssignment.is_active.is_(False)).count() == 1

    def test_rejects_non_designers(self, db_session, test_user):
        result = assignment_service.set_assignments(db_session, "sell_sheets", [test_user.id])
        assert result["status"] == 400

    def test_empty_list_clears(self, db_session, designer_user):
        assignment_service.set_assignments(db_session, "sell_sheets", [designer_user.id])
        grouped = assignment_service.set_assignments(db_session, "sell_sheets", [])
        assert grouped["sell_sheets"] == []

    def test_unknown_job_type(self, db_session):
        assert assignment_service.set_assignments(db_session, "logos", [])["status"] == 400


class TestRoutes:
    def test_admin_sets_and_lists(self, admin_client, designer_user):
        resp = admin_client.post(
            "/api/designer-assignments", json={"job_type": "virtual_prototypes", "designer_ids": [designer_user.id]}
        )
        assert resp.status_code == 200
        grouped = admin_client.get("/api/designer-assignments").json()
        assert set(grouped) == {"sell_sheets", "virtual_prototypes", "line_drawings"}
        row = grouped["virtual_prototypes"][0]
        assert row["designer_email"] == "designer@inventright.com"
        assert row["priority"] == 0

    def test_deactivate(self, admin_client, db_session, designer_user):
        assignment_service.set_assignments(db_session, "sell_sheets", [designer_user.id])
        row = db_session.query(DesignerAssignment).one()
        assert admin_client.delete(f"/api/designer-assignments/{row.id}").json() == {"success": True}
        assert admin_client.delete("/api/designer-assignments/999").status_code == 404

    def test_bad_job_type_is_422(self, admin_client):
        assert admin_client.post("/api/designer-assignments", json={"job_type": "logos"}).status_code == 422

    def test_manager_reads_but_cannot_set(self, manager_client):
        assert manager_client.get("/api/designer-assignments").status_code == 200
        assert manager_client.post(
            "/api/designer-assignments", json={"job_type": "sell_sheets", "designer_ids": []}
        ).status_code == 403
