"""
job_service.py — Jobs, status history, extra contacts, and job messages

Business Rules:
- Listing is role-scoped: staff see all, designers their assigned jobs,
  clients their own
- Any update bumps updated_at and last_activity_date
- A status change appends job_status_history; "Completed" stamps completed_date
- Duplicates get " (Copy)", status Draft, is_draft true, no designer, and
  copies of the file rows pointing at the same storage keys
- Deleting a job removes its storage objects best-effort
- Clients never see internal messages; only team members may post them
- Posting a message counts as job activity

Called by: routers/jobs.py, routers/messages.py, services/draft_service.py
Depends on: models (Job, JobStatusHistory, JobExtraContact, Message, FileUpload, User),
            utils/storage (object deletes)
"""

import json
import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from ..models import FileUpload, Job, JobExtraContact, JobStatusHistory, Message, User
from ..utils.storage import StorageError, delete_object

log = logging.getLogger(__name__)

STAFF_ROLES = ("admin", "manager")
TEAM_ROLES = ("admin", "manager", "designer")
PRIORITIES = ("Low", "Medium", "High", "Urgent")
UPDATABLE_FIELDS = (
    "title", "description", "status", "priority", "designer_id", "department_id",
    "package_type", "due_date", "archived", "is_draft",
)


def _iso(value):
    return value.isoformat() if value else None


def serialize_job(j: Job) -> dict:
    return {
        "id": j.id,
        "title": j.title,
        "description": j.description,
        "status": j.status,
        "priority": j.priority,
        "package_type": j.package_type,
        "client_id": j.client_id,
        "client_name": j.client.display_name if j.client else None,
        "designer_id": j.designer_id,
        "designer_name": j.designer.display_name if j.designer else None,
        "department_id": j.department_id,
        "department_name": j.department.name if j.department else None,
        "due_date": _iso(j.due_date),
        "completed_date": _iso(j.completed_date),
        "archived": j.archived,
        "is_draft": j.is_draft,
        "created_at": _iso(j.created_at),
        "updated_at": _iso(j.updated_at),
        "last_activity_date": _iso(j.last_activity_date),
    }


def serialize_file(f: FileUpload) -> dict:
    return {
        "id": f.id,
        "job_id": f.job_id,
        "file_name": f.file_name,
        "file_url": f.file_url,
        "file_key": f.file_key,
        "file_size": f.file_size,
        "mime_type": f.mime_type,
        "file_type": f.file_type,
        "uploaded_by": f.uploaded_by,
        "uploader_name": f.uploader.display_name if f.uploader else None,
        "uploader_email": f.uploader.email if f.uploader else None,
        "created_at": _iso(f.created_at),
    }


def encode_description(description):
    """Structured intake descriptions are stored as JSON text."""
    if isinstance(description, (dict, list)):
        return json.dumps(description)
    return description


# ── Jobs ─────────────────────────────────────────────────────────────


def list_jobs(db: Session, user: User, archived: bool = False) -> list[dict]:
    q = db.query(Job).filter(Job.archived.is_(archived))
    if user.role in STAFF_ROLES:
        pass
    elif user.role == "designer":
        q = q.filter(Job.designer_id == user.id)
    else:
        q = q.filter(Job.client_id == user.id)
    return [serialize_job(j) for j in q.order_by(Job.updated_at.desc(), Job.id.desc()).all()]


def create_job(db: Session, user: User, data: dict) -> dict:
    title = (data.get("title") or "").strip()
    if not title:
        return {"error": "Title is required", "status": 400}
    priority = data.get("priority") or "Medium"
    if priority not in PRIORITIES:
        return {"error": f"Priority must be one of: {', '.join(PRIORITIES)}", "status": 400}

    now = datetime.now(timezone.utc)
    job = Job(
        title=title,
        description=encode_description(data.get("description")),
        client_id=user.id,
        designer_id=data.get("designer_id"),
        department_id=data.get("department_id"),
        package_type=data.get("package_type"),
        due_date=data.get("due_date"),
        priority=priority,
        status="Draft",
        is_draft=True if data.get("is_draft") is None else data["is_draft"],
        archived=False,
        created_at=now,
        updated_at=now,
        last_activity_date=now,
    )
    db.add(job)
    db.commit()
    db.refresh(job)
    log.info(f"Job {job.id} created by {user.email}")
    return serialize_job(job)


def record_status_change(db: Session, job: Job, new_status: str, user: User | None, notes: str | None = None) -> None:
    """Set status and append history. Caller commits."""
    old_status = job.status
    if old_status == new_status:
        return
    job.status = new_status
    if new_status == "Completed":
        job.completed_date = datetime.now(timezone.utc)
    db.add(
        JobStatusHistory(
            job_id=job.id,
            changed_by=user.id if user else None,
            old_status=old_status,
            new_status=new_status,
            notes=notes,
        )
    )
    log.info(f"Job {job.id} status {old_status} -> {new_status}")


def update_job(db: Session, job: Job, updates: dict, user: User) -> dict:
    if "title" in updates and not (updates["title"] or "").strip():
        return {"error": "Title cannot be empty", "status": 400}
    if updates.get("priority") is not None and updates["priority"] not in PRIORITIES:
        return {"error": f"Priority must be one of: {', '.join(PRIORITIES)}", "status": 400}

    new_status = updates.pop("status", None)
    notes = updates.pop("notes", None)
    for key, value in updates.items():
        if key not in UPDATABLE_FIELDS:
            continue
        if key == "description":
            value = encode_description(value)
        if key in ("archived", "is_draft") and value is None:
            continue
        setattr(job, key, value)

    if new_status:
        record_status_change(db, job, new_status, user, notes)

    now = datetime.now(timezone.utc)
    job.updated_at = now
    job.last_activity_date = now
    db.commit()
    db.refresh(job)
    return serialize_job(job)


def delete_storage_objects(files: list[FileUpload]) -> tuple[int, int]:
    """Best-effort storage delete. Returns (deleted, failed)."""
    deleted = failed = 0
    for f in files:
        try:
            delete_object(f.file_key)
            deleted += 1
        except StorageError as e:
            failed += 1
            log.warning(f"Could not delete {f.file_key}: {e}")
    return deleted, failed


def unshared_files(db: Session, job_id: int, files: list[FileUpload]) -> list[FileUpload]:
    """Files whose storage key no other job references."""
    # Duplicated jobs share storage keys
    if not files:
        return []
    rows = (
        db.query(FileUpload.file_key)
        .filter(FileUpload.file_key.in_([f.file_key for f in files]), FileUpload.job_id != job_id)
        .all()
    )
    shared = {key for (key,) in rows}
    return [f for f in files if f.file_key not in shared]


def delete_job(db: Session, job: Job) -> dict:
    files = db.query(FileUpload).filter(FileUpload.job_id == job.id).all()
    deleted, failed = delete_storage_objects(unshared_files(db, job.id, files))

    for f in files:
        db.delete(f)
    db.delete(job)
    db.commit()
    log.info(f"Job {job.id} deleted ({deleted} objects removed, {failed} failed)")
    return {"success": True, "deleted_files": deleted, "failed_files": failed}


def duplicate_job(db: Session, job: Job, user: User) -> dict:
    now = datetime.now(timezone.utc)
    copy = Job(
        title=f"{job.title} (Copy)",
        description=job.description,
        client_id=job.client_id,
        designer_id=None,
        department_id=job.department_id,
        package_type=job.package_type,
        priority=job.priority,
        due_date=job.due_date,
        status="Draft",
        is_draft=True,
        archived=False,
        created_at=now,
        updated_at=now,
        last_activity_date=now,
    )
    db.add(copy)
    db.flush()
    for f in db.query(FileUpload).filter(FileUpload.job_id == job.id).all():
        db.add(
            FileUpload(
                job_id=copy.id,
                uploaded_by=f.uploaded_by,
                file_name=f.file_name,
                file_url=f.file_url,
                file_key=f.file_key,
                file_size=f.file_size,
                mime_type=f.mime_type,
                file_type=f.file_type,
            )
        )
    db.commit()
    db.refresh(copy)
    log.info(f"Job {job.id} duplicated as {copy.id} by {user.email}")
    return serialize_job(copy)


def job_history(db: Session, job_id: int) -> list[dict]:
    rows = (
        db.query(JobStatusHistory)
        .filter(JobStatusHistory.job_id == job_id)
        .order_by(JobStatusHistory.created_at.desc(), JobStatusHistory.id.desc())
        .all()
    )
    return [
        {
            "id": h.id,
            "old_status": h.old_status,
            "new_status": h.new_status,
            "notes": h.notes,
            "changed_by": h.changed_by,
            "changed_by_name": h.user.display_name if h.user else None,
            "created_at": _iso(h.created_at),
        }
        for h in rows
    ]


def job_files(db: Session, job_id: int) -> list[dict]:
    rows = (
        db.query(FileUpload)
        .filter(FileUpload.job_id == job_id)
        .order_by(FileUpload.created_at.desc(), FileUpload.id.desc())
        .all()
    )
    return [serialize_file(f) for f in rows]


# ── Extra Contacts ───────────────────────────────────────────────────


def list_extra_contacts(db: Session, job_id: int) -> list[dict]:
    rows = db.query(JobExtraContact).filter(JobExtraContact.job_id == job_id).order_by(JobExtraContact.id).all()
    return [
        {
            "id": c.id,
            "job_id": c.job_id,
            "user_id": c.user_id,
            "name": c.user.display_name if c.user else None,
            "email": c.user.email if c.user else None,
            "added_by": c.added_by,
            "created_at": _iso(c.created_at),
        }
        for c in rows
    ]


def add_extra_contact(db: Session, job_id: int, user_id: int, added_by: User) -> dict:
    if not db.get(User, user_id):
        return {"error": "User not found", "status": 404}
    exists = (
        db.query(JobExtraContact)
        .filter(JobExtraContact.job_id == job_id, JobExtraContact.user_id == user_id)
        .first()
    )
    if exists:
        return {"error": "Contact already added to this job", "status": 400}
    contact = JobExtraContact(job_id=job_id, user_id=user_id, added_by=added_by.id)
    db.add(contact)
    db.commit()
    db.refresh(contact)
    return {"id": contact.id, "job_id": job_id, "user_id": user_id}


def remove_extra_contact(db: Session, job_id: int, contact_id: int) -> dict:
    contact = db.get(JobExtraContact, contact_id)
    if not contact or contact.job_id != job_id:
        return {"error": "Contact not found", "status": 404}
    db.delete(contact)
    db.commit()
    return {"success": True}


# ── Messages ─────────────────────────────────────────────────────────


def list_messages(db: Session, job_id: int, user: User) -> list[dict]:
    q = db.query(Message).filter(Message.job_id == job_id)
    if user.role not in TEAM_ROLES:
        q = q.filter(Message.is_internal.is_(False))
    rows = q.order_by(Message.created_at.desc(), Message.id.desc()).all()
    return [
        {
            "id": m.id,
            "job_id": m.job_id,
            "user_id": m.user_id,
            "content": m.content,
            "is_internal": m.is_internal,
            "author_name": m.author.display_name if m.author else None,
            "author_email": m.author.email if m.author else None,
            "author_role": m.author.role if m.author else None,
            "created_at": _iso(m.created_at),
        }
        for m in rows
    ]


def post_message(db: Session, job: Job, user: User, content: str, is_internal: bool = False) -> dict:
    content = (content or "").strip()
    if not content:
        return {"error": "Message content is required", "status": 400}
    if is_internal and user.role not in TEAM_ROLES:
        return {"error": "Only team members can post internal messages", "status": 403}

    msg = Message(job_id=job.id, user_id=user.id, content=content, is_internal=bool(is_internal))
    db.add(msg)
    job.last_activity_date = datetime.now(timezone.utc)
    db.commit()
    db.refresh(msg)
    return {
        "id": msg.id,
        "job_id": msg.job_id,
        "user_id": msg.user_id,
        "content": msg.content,
        "is_internal": msg.is_internal,
        "created_at": _iso(msg.created_at),
    }
