"""
tests/test_services_drafts.py -- Tests for draft jobs and expiry cleanup

Covers: get-or-create draft, draft updates and activation (with designer
auto-assignment), the retention-window cleanup (files, storage failures)
and its admin preview/run endpoints.

Called by: pytest
Depends on: app/services/draft_service.py, app/routers/jobs.py, conftest.py
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from app.models import DesignerAssignment, FileUpload, Job, JobStatusHistory
from app.services import draft_service, job_service
from app.utils.storage import StorageError


def _draft(db, user, title="Untitled Job", idle_days=0, **extra):
    stamp = datetime.now(timezone.utc) - timedelta(days=idle_days)
    job = Job(
        title=title, client_id=user.id, status="Draft", is_draft=True,
        created_at=stamp, updated_at=stamp, last_activity_date=stamp, **extra,
    )
    db.add(job)
    db.commit()
    return job


def _file(db, job, name):
    row = FileUpload(
        job_id=job.id, file_name=name, file_url=f"https://s3.example.com/{name}",
        file_key=f"jobs/{job.id}/1-aaaaaaaaaaa-{name}", file_size=1,
    )
    db.add(row)
    db.commit()
    return row


# ── Get / create / update ────────────────────────────────────────────


class TestDrafts:
    def test_get_creates_when_missing(self, client, test_user):
        resp = client.get("/api/jobs/draft")
        assert resp.status_code == 201
        job = resp.json()
        assert job["title"] == "Untitled Job"
        assert job["is_draft"] is True
        assert job["client_id"] == test_user.id

    def test_get_returns_existing(self, client, db_session, test_user):
        existing = _draft(db_session, test_user, "Half-done intake")
        resp = client.get("/api/jobs/draft")
        assert resp.status_code == 200
        assert resp.json()["id"] == existing.id

    def test_get_ignores_submitted_jobs(self, client, test_job):
        resp = client.get("/api/jobs/draft")
        assert resp.status_code == 201
        assert resp.json()["id"] != test_job.id

    def test_create_explicit(self, client):
        resp = client.post("/api/jobs/draft/create", json={"title": "Logo refresh", "package_type": "Sell Sheet"})
        assert resp.status_code == 201
        assert resp.json()["package_type"] == "Sell Sheet"
        assert resp.json()["status"] == "Draft"

    def test_update_own_draft(self, client, db_session, test_user):
        draft = _draft(db_session, test_user)
        resp = client.put(
            "/api/jobs/draft/update",
            json={"job_id": draft.id, "title": "Garden Tool", "description": {"step": 2}},
        )
        assert resp.status_code == 200
        assert resp.json()["title"] == "Garden Tool"
        assert resp.json()["description"] == '{"step": 2}'
        assert resp.json()["is_draft"] is True

    def test_update_someone_elses_draft(self, client, db_session, other_client):
        draft = _draft(db_session, other_client)
        resp = client.put("/api/jobs/draft/update", json={"job_id": draft.id, "title": "Hijack"})
        assert resp.status_code == 404

    def test_make_active_submits_and_assigns(self, client, db_session, test_user, designer_user):
        db_session.add(DesignerAssignment(job_type="sell_sheets", designer_id=designer_user.id, priority=0))
        db_session.commit()
        draft = _draft(db_session, test_user, package_type="Premium Sell Sheet")

        resp = client.put("/api/jobs/draft/update", json={"job_id": draft.id, "make_active": True})
        job = resp.json()
        assert job["is_draft"] is False
        assert job["status"] == "Pending"
        assert job["designer_id"] == designer_user.id
        history = db_session.query(JobStatusHistory).filter(JobStatusHistory.job_id == draft.id).one()
        assert (history.old_status, history.new_status) == ("Draft", "Pending")

    def test_make_active_keeps_chosen_designer(self, client, db_session, test_user, designer_user, manager_user):
        db_session.add(DesignerAssignment(job_type="sell_sheets", designer_id=designer_user.id, priority=0))
        db_session.commit()
        draft = _draft(db_session, test_user, package_type="Sell Sheet", designer_id=manager_user.id)
        job = client.put("/api/jobs/draft/update", json={"job_id": draft.id, "make_active": True}).json()
        assert job["designer_id"] == manager_user.id

    def test_make_active_without_assignment(self, client, db_session, test_user):
        draft = _draft(db_session, test_user, package_type="Custom work")
        job = client.put("/api/jobs/draft/update", json={"job_id": draft.id, "make_active": True}).json()
        assert job["designer_id"] is None
        assert job["status"] == "Pending"


# ── Cleanup ──────────────────────────────────────────────────────────


class TestCleanup:
    def test_respects_retention_window(self, db_session, test_user, test_job):
        stale = _draft(db_session, test_user, "Stale", idle_days=61)
        edge = _draft(db_session, test_user, "Edge", idle_days=59)
        with patch("app.services.job_service.delete_object"):
            summary = draft_service.cleanup_expired_drafts(db_session, days=60)
        assert summary["deleted_count"] == 1
        assert [j["id"] for j in summary["deleted_jobs"]] == [stale.id]
        assert db_session.get(Job, edge.id) is not None
        assert db_session.get(Job, test_job.id) is not None

    def test_old_submitted_job_untouched(self, db_session, test_job):
        test_job.last_activity_date = datetime.now(timezone.utc) - timedelta(days=400)
        db_session.commit()
        assert draft_service.cleanup_expired_drafts(db_session, days=60)["deleted_count"] == 0

    def test_deletes_files_and_counts_failures(self, db_session, test_user):
        stale = _draft(db_session, test_user, "Stale", idle_days=90)
        ok = _file(db_session, stale, "ok.png")
        bad = _file(db_session, stale, "bad.png")

        def _delete(key):
            if key == bad.file_key:
                raise StorageError("AccessDenied")

        with patch("app.services.job_service.delete_object", side_effect=_delete):
            summary = draft_service.cleanup_expired_drafts(db_session, days=60)

        assert summary["deleted_files"] == 1
        assert summary["failed_files"] == 1
        assert summary["deleted_count"] == 1
        assert db_session.query(FileUpload).filter(FileUpload.id.in_([ok.id, bad.id])).count() == 0

    def test_keeps_objects_shared_with_live_job(self, db_session, test_user, test_job, job_file):
        copy_id = job_service.duplicate_job(db_session, test_job, test_user)["id"]
        copy = db_session.get(Job, copy_id)
        copy.last_activity_date = datetime.now(timezone.utc) - timedelta(days=90)
        db_session.commit()

        with patch("app.services.job_service.delete_object") as mock_delete:
            summary = draft_service.cleanup_expired_drafts(db_session, days=60)

        assert summary["deleted_count"] == 1
        assert summary["deleted_files"] == 0
        mock_delete.assert_not_called()
        assert db_session.get(FileUpload, job_file.id) is not None
        assert db_session.get(Job, copy_id) is None

    def test_uses_configured_retention(self, db_session, test_user):
        _draft(db_session, test_user, "Ten days", idle_days=10)
        with patch("app.services.draft_service.settings") as mock_settings:
            mock_settings.draft_retention_days = 7
            summary = draft_service.cleanup_expired_drafts(db_session)
        assert summary["deleted_count"] == 1

    def test_nothing_to_do(self, db_session):
        summary = draft_service.cleanup_expired_drafts(db_session, days=60)
        assert summary == {"deleted_count": 0, "deleted_files": 0, "failed_files": 0, "deleted_jobs": []}

    def test_preview_endpoint(self, admin_client, db_session, test_user):
        stale = _draft(db_session, test_user, "Stale", idle_days=75)
        _draft(db_session, test_user, "Fresh", idle_days=1)
        resp = admin_client.get("/api/jobs/draft/cleanup", params={"days": 30})
        assert resp.status_code == 200
        data = resp.json()
        assert data["count"] == 1
        assert data["drafts"][0]["id"] == stale.id
        assert data["drafts"][0]["days_old"] == 75
        assert db_session.get(Job, stale.id) is not None

    def test_run_endpoint(self, admin_client, db_session, test_user):
        _draft(db_session, test_user, "Stale", idle_days=365)
        resp = admin_client.delete("/api/jobs/draft/cleanup")
        assert resp.status_code == 200
        assert resp.json()["success"] is True
        assert resp.json()["deleted_count"] == 1

    @pytest.mark.parametrize("method", ["get", "delete"])
    def test_cleanup_endpoints_admin_only(self, manager_client, method):
        resp = getattr(manager_client, method)("/api/jobs/draft/cleanup")
        assert resp.status_code == 403
