"""
draft_service.py — Draft jobs: get-or-create, update/activate, expiry cleanup

Business Rules:
- A client's current draft is their most recently updated is_draft job;
  if none exists an "Untitled Job" draft is created
- Draft updates only touch the caller's own job
- make_active turns the draft into a real job (is_draft false, status
  Pending, history row) and auto-assigns a designer from package_type
  when none is set
- Drafts whose last_activity_date is older than the retention window are
  deleted with their files; storage delete failures are counted, not fatal

Called by: routers/jobs.py (draft endpoints), scheduler.py (draft_cleanup job)
Depends on: services/job_service, services/assignment_service, utils/storage
"""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from ..config import settings
from ..models import FileUpload, Job, User
from .assignment_service import get_assigned_designer, map_package_type_to_job_type
from .job_service import (
    delete_storage_objects,
    encode_description,
    record_status_change,
    serialize_job,
    unshared_files,
)

log = logging.getLogger(__name__)

DRAFT_FIELDS = ("title", "description", "department_id", "package_type", "priority", "due_date", "designer_id")


def get_or_create_draft(db: Session, user: User) -> tuple[dict, bool]:
    """Return (job, created)."""
    draft = (
        db.query(Job)
        .filter(Job.client_id == user.id, Job.is_draft.is_(True))
        .order_by(Job.updated_at.desc(), Job.id.desc())
        .first()
    )
    if draft:
        return serialize_job(draft), False
    return create_draft(db, user, {"title": "Untitled Job", "description": ""}), True


def create_draft(db: Session, user: User, data: dict) -> dict:
    now = datetime.now(timezone.utc)
    job = Job(
        client_id=user.id,
        title=(data.get("title") or "").strip() or "Untitled Job",
        description=encode_description(data.get("description")),
        department_id=data.get("department_id"),
        package_type=data.get("package_type"),
        priority=data.get("priority") or "Medium",
        due_date=data.get("due_date"),
        status="Draft",
        is_draft=True,
        archived=False,
        created_at=now,
        updated_at=now,
        last_activity_date=now,
    )
    db.add(job)
    db.commit()
    db.refresh(job)
    log.info(f"Draft job {job.id} created for {user.email}")
    return serialize_job(job)


def update_draft(db: Session, user: User, job_id: int, updates: dict, make_active: bool = False) -> dict:
    job = db.query(Job).filter(Job.id == job_id, Job.client_id == user.id).first()
    if not job:
        return {"error": "Job not found or access denied", "status": 404}

    for key in DRAFT_FIELDS:
        if key in updates:
            value = updates[key]
            setattr(job, key, encode_description(value) if key == "description" else value)

    if make_active and not job.designer_id:
        job_type = map_package_type_to_job_type(job.package_type)
        if job_type:
            designer_id = get_assigned_designer(db, job_type)
            if designer_id:
                job.designer_id = designer_id
                log.info(f"Auto-assigned designer {designer_id} to job {job.id} ({job_type})")

    if make_active:
        job.is_draft = False
        record_status_change(db, job, "Pending", user, notes="Submitted from draft")

    now = datetime.now(timezone.utc)
    job.updated_at = now
    job.last_activity_date = now
    db.commit()
    db.refresh(job)
    return serialize_job(job)


def _expired_drafts(db: Session, days: int, now: datetime | None = None) -> list[Job]:
    cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=days)
    return (
        db.query(Job)
        .filter(Job.is_draft.is_(True), Job.last_activity_date < cutoff)
        .order_by(Job.last_activity_date)
        .all()
    )


def preview_expired_drafts(db: Session, days: int | None = None) -> dict:
    """Dry run: which drafts the cleanup would delete."""
    days = days if days is not None else settings.draft_retention_days
    now = datetime.now(timezone.utc)
    drafts = _expired_drafts(db, days, now)
    return {
        "count": len(drafts),
        "drafts": [
            {
                "id": j.id,
                "title": j.title,
                "last_activity_date": j.last_activity_date.isoformat(),
                "days_old": (now - j.last_activity_date).days,
            }
            for j in drafts
        ],
    }


def cleanup_expired_drafts(db: Session, days: int | None = None, now: datetime | None = None) -> dict:
    """Delete drafts idle longer than `days` along with their files."""
    days = days if days is not None else settings.draft_retention_days
    drafts = _expired_drafts(db, days, now)
    summary = {"deleted_count": 0, "deleted_files": 0, "failed_files": 0, "deleted_jobs": []}
    if not drafts:
        return summary

    for job in drafts:
        files = db.query(FileUpload).filter(FileUpload.job_id == job.id).all()
        deleted, failed = delete_storage_objects(unshared_files(db, job.id, files))
        summary["deleted_files"] += deleted
        summary["failed_files"] += failed
        for f in files:
            db.delete(f)
        summary["deleted_jobs"].append(
            {
                "id": job.id,
                "title": job.title,
                "last_activity_date": job.last_activity_date.isoformat(),
            }
        )
        db.delete(job)

    db.commit()
    summary["deleted_count"] = len(summary["deleted_jobs"])
    log.info(
        f"Draft cleanup: {summary['deleted_count']} drafts, {summary['deleted_files']} files removed, "
        f"{summary['failed_files']} storage failures"
    )
    return summary
