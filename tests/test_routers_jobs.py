"""
tests/test_routers_jobs.py -- Tests for routers/jobs.py and services/job_service.py

Covers: role-scoped listing, job CRUD, status history, duplication,
delete with storage cleanup, extra contacts, and job access rules.

Called by: pytest
Depends on: app/routers/jobs.py, app/services/job_service.py, conftest.py
"""

from datetime import datetime, timezone
from unittest.mock import patch

from app.models import FileUpload, Job, JobExtraContact, JobStatusHistory
from app.services import job_service
from app.utils.storage import StorageError


def _job(db, client_user, title, designer=None, archived=False):
    now = datetime.now(timezone.utc)
    job = Job(
        title=title, client_id=client_user.id, designer_id=designer.id if designer else None,
        status="Pending", is_draft=False, archived=archived,
        created_at=now, updated_at=now, last_activity_date=now,
    )
    db.add(job)
    db.commit()
    return job


# ── Listing ──────────────────────────────────────────────────────────


class TestListJobs:
    def test_client_sees_own_jobs(self, client, db_session, test_job, other_client):
        _job(db_session, other_client, "Someone else's job")
        titles = [j["title"] for j in client.get("/api/jobs").json()]
        assert titles == ["Widget Sell Sheet"]

    def test_designer_sees_assigned(self, designer_client, db_session, test_job, other_client):
        _job(db_session, other_client, "Unassigned")
        titles = [j["title"] for j in designer_client.get("/api/jobs").json()]
        assert titles == ["Widget Sell Sheet"]

    def test_manager_sees_all(self, manager_client, db_session, test_job, other_client):
        _job(db_session, other_client, "Second")
        assert len(manager_client.get("/api/jobs").json()) == 2

    def test_archived_filter(self, client, db_session, test_user, test_job):
        _job(db_session, test_user, "Old job", archived=True)
        assert [j["title"] for j in client.get("/api/jobs", params={"archived": True}).json()] == ["Old job"]
        assert [j["title"] for j in client.get("/api/jobs").json()] == ["Widget Sell Sheet"]

    def test_serialized_names(self, client, test_job):
        job = client.get("/api/jobs").json()[0]
        assert job["client_name"] == "Test Client"
        assert job["designer_name"] == "Test Designer"


# ── Create / read / update ───────────────────────────────────────────


class TestJobCrud:
    def test_create_defaults(self, client, test_user):
        resp = client.post("/api/jobs", json={"title": "  New Prototype  "})
        assert resp.status_code == 201
        job = resp.json()
        assert job["title"] == "New Prototype"
        assert job["status"] == "Draft"
        assert job["priority"] == "Medium"
        assert job["client_id"] == test_user.id

    def test_create_structured_description(self, client):
        resp = client.post("/api/jobs", json={"title": "Intake", "description": {"colors": ["red"]}})
        assert resp.json()["description"] == '{"colors": ["red"]}'

    def test_create_blank_title_is_422(self, client):
        assert client.post("/api/jobs", json={"title": "   "}).status_code == 422

    def test_create_bad_priority_is_422(self, client):
        assert client.post("/api/jobs", json={"title": "X", "priority": "Whenever"}).status_code == 422

    def test_get_forbidden_for_other_client(self, outsider_client, test_job):
        assert outsider_client.get(f"/api/jobs/{test_job.id}").status_code == 403
        assert outsider_client.get(f"/api/jobs/{test_job.id}/history").status_code == 403

    def test_get_missing_is_404(self, client):
        assert client.get("/api/jobs/424242").status_code == 404

    def test_status_change_records_history(self, designer_client, db_session, test_job):
        resp = designer_client.patch(
            f"/api/jobs/{test_job.id}", json={"status": "In Progress", "notes": "Started sketches"}
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "In Progress"

        history = designer_client.get(f"/api/jobs/{test_job.id}/history").json()
        assert len(history) == 1
        assert history[0]["old_status"] == "Pending"
        assert history[0]["new_status"] == "In Progress"
        assert history[0]["notes"] == "Started sketches"
        assert history[0]["changed_by_name"] == "Test Designer"

    def test_same_status_no_history(self, client, db_session, test_job):
        client.patch(f"/api/jobs/{test_job.id}", json={"status": "Pending"})
        assert db_session.query(JobStatusHistory).count() == 0

    def test_completed_stamps_date(self, manager_client, test_job):
        job = manager_client.patch(f"/api/jobs/{test_job.id}", json={"status": "Completed"}).json()
        assert job["completed_date"] is not None

    def test_update_bumps_activity(self, client, db_session, test_job):
        before = test_job.last_activity_date
        job = client.patch(f"/api/jobs/{test_job.id}", json={"priority": "High"}).json()
        assert job["priority"] == "High"
        assert datetime.fromisoformat(job["last_activity_date"]) >= before


# ── Duplicate & delete ───────────────────────────────────────────────


class TestDuplicateDelete:
    def test_duplicate(self, client, db_session, test_job, job_file):
        resp = client.post(f"/api/jobs/{test_job.id}/duplicate")
        assert resp.status_code == 201
        copy = resp.json()
        assert copy["title"] == "Widget Sell Sheet (Copy)"
        assert copy["status"] == "Draft"
        assert copy["is_draft"] is True
        assert copy["designer_id"] is None
        files = db_session.query(FileUpload).filter(FileUpload.job_id == copy["id"]).all()
        assert [f.file_key for f in files] == [job_file.file_key]

    def test_designer_cannot_duplicate(self, designer_client, test_job):
        assert designer_client.post(f"/api/jobs/{test_job.id}/duplicate").status_code == 403

    def test_delete_requires_staff(self, client, test_job):
        assert client.delete(f"/api/jobs/{test_job.id}").status_code == 403

    def test_delete_removes_files(self, manager_client, db_session, test_job, job_file):
        with patch("app.services.job_service.delete_object") as mock_delete:
            resp = manager_client.delete(f"/api/jobs/{test_job.id}")
        assert resp.json() == {"success": True, "deleted_files": 1, "failed_files": 0}
        mock_delete.assert_called_once_with(job_file.file_key)
        assert db_session.get(Job, test_job.id) is None
        assert db_session.query(FileUpload).count() == 0

    def test_delete_counts_storage_failures(self, manager_client, db_session, test_job, job_file):
        with patch("app.services.job_service.delete_object", side_effect=StorageError("denied")):
            resp = manager_client.delete(f"/api/jobs/{test_job.id}")
        assert resp.status_code == 200
        assert resp.json()["failed_files"] == 1
        assert db_session.get(Job, test_job.id) is None

    def test_delete_keeps_objects_shared_with_copy(self, manager_client, db_session, test_job, test_user, job_file):
        job_service.duplicate_job(db_session, test_job, test_user)
        with patch("app.services.job_service.delete_object") as mock_delete:
            resp = manager_client.delete(f"/api/jobs/{test_job.id}")
        assert resp.json()["deleted_files"] == 0
        mock_delete.assert_not_called()

    def test_files_listing(self, client, test_job, job_file):
        rows = client.get(f"/api/jobs/{test_job.id}/files").json()
        assert rows[0]["file_name"] == "sketch.png"
        assert rows[0]["uploader_email"] == "client@example.com"


# ── Extra contacts ───────────────────────────────────────────────────


class TestExtraContacts:
    def test_add_list_remove(self, designer_client, test_job, other_client):
        added = designer_client.post(f"/api/jobs/{test_job.id}/extra-contacts", json={"user_id": other_client.id})
        assert added.status_code == 201
        contacts = designer_client.get(f"/api/jobs/{test_job.id}/extra-contacts").json()
        assert [c["email"] for c in contacts] == ["other@example.com"]

        resp = designer_client.delete(
            f"/api/jobs/{test_job.id}/extra-contacts", params={"contact_id": added.json()["id"]}
        )
        assert resp.json() == {"success": True}

    def test_duplicate_contact_rejected(self, designer_client, test_job, other_client):
        designer_client.post(f"/api/jobs/{test_job.id}/extra-contacts", json={"user_id": other_client.id})
        again = designer_client.post(f"/api/jobs/{test_job.id}/extra-contacts", json={"user_id": other_client.id})
        assert again.status_code == 400

    def test_unknown_user(self, designer_client, test_job):
        resp = designer_client.post(f"/api/jobs/{test_job.id}/extra-contacts", json={"user_id": 999})
        assert resp.status_code == 404

    def test_client_cannot_add(self, client, test_job, other_client):
        resp = client.post(f"/api/jobs/{test_job.id}/extra-contacts", json={"user_id": other_client.id})
        assert resp.status_code == 403

    def test_remove_from_wrong_job(self, manager_client, db_session, test_job, test_user, other_client):
        other_job = _job(db_session, test_user, "Other")
        contact = JobExtraContact(job_id=other_job.id, user_id=other_client.id)
        db_session.add(contact)
        db_session.commit()
        resp = manager_client.delete(
            f"/api/jobs/{test_job.id}/extra-contacts", params={"contact_id": contact.id}
        )
        assert resp.status_code == 404
