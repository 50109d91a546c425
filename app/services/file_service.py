"""
file_service.py — Job file uploads, presigned URLs, draft-file association

Business Rules:
- A job reference is either a numeric job id or a draft key "draft_<token>"
- Real jobs: the job must exist (404) and the caller must be its client,
  its designer, or staff (403)
- Objects live at jobs/{job_ref}/{epoch_ms}-{random}-{sanitized name};
  draft-key uploads keep job_id NULL until associate-draft re-homes them
- associate-draft moves only orphan rows (job_id NULL) whose key starts
  with jobs/{draft_key}/
- Upload size is capped by max_upload_size_mb

Called by: routers/files.py
Depends on: utils/storage, utils/file_validation, models.FileUpload
"""

import logging
import re

from sqlalchemy.orm import Session

from ..config import settings
from ..dependencies import STAFF_ROLES, can_access_job
from ..models import FileUpload, Job, User
from ..utils.file_validation import validate_upload
from ..utils.storage import (
    decode_base64_payload,
    generate_file_key,
    presigned_download_url,
    presigned_upload_url,
    public_url,
    upload_bytes,
)
from .job_service import serialize_file

log = logging.getLogger(__name__)

_DRAFT_KEY = re.compile(r"^draft_[A-Za-z0-9_-]+$")
FILE_TYPES = ("input", "output", "reference")


def is_draft_key(job_ref: str) -> bool:
    return bool(_DRAFT_KEY.match(job_ref or ""))


def _resolve_job(db: Session, user: User, job_ref) -> dict:
    """Return {"job_id": int | None, "prefix": str} or an error dict."""
    job_ref = str(job_ref or "").strip()
    if not job_ref:
        return {"error": "Job ID is required", "status": 400}
    if is_draft_key(job_ref):
        return {"job_id": None, "prefix": f"jobs/{job_ref}"}
    if not job_ref.isdigit():
        return {"error": "Invalid job ID", "status": 400}
    job = db.get(Job, int(job_ref))
    if not job:
        return {"error": "Job not found", "status": 404}
    if not can_access_job(user, job):
        return {"error": "You don't have permission to upload files to this job", "status": 403}
    return {"job_id": job.id, "prefix": f"jobs/{job.id}"}


def _max_bytes() -> int:
    return settings.max_upload_size_mb * 1024 * 1024


def upload_job_file(
    db: Session,
    user: User,
    job_ref,
    file_name: str,
    content: bytes,
    mime_type: str | None,
    file_type: str = "input",
) -> dict:
    target = _resolve_job(db, user, job_ref)
    if "error" in target:
        return target
    if file_type not in FILE_TYPES:
        return {"error": f"File type must be one of: {', '.join(FILE_TYPES)}", "status": 400}
    check = validate_upload(content, _max_bytes())
    if not check["valid"]:
        return {"error": check["reason"], "status": 400}

    mime_type = mime_type or check["detected_mime"] or "application/octet-stream"
    key = generate_file_key(target["prefix"], file_name)
    stored = upload_bytes(key, content, mime_type)

    row = FileUpload(
        job_id=target["job_id"],
        uploaded_by=user.id,
        file_name=file_name,
        file_url=stored["url"],
        file_key=key,
        file_size=len(content),
        mime_type=mime_type,
        file_type=file_type,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    log.info(f"{user.email} uploaded {key} ({len(content)} bytes)")
    return serialize_file(row)


def upload_draft_file(user: User, file_name: str, file_data: str, mime_type: str) -> dict:
    """Store a base64 payload under temp/{user_id}/ before any job exists."""
    if not file_name or not file_data or not mime_type:
        return {"error": "file_name, file_data and mime_type are required", "status": 400}
    try:
        content = decode_base64_payload(file_data)
    except ValueError as e:
        return {"error": str(e), "status": 400}
    check = validate_upload(content, _max_bytes())
    if not check["valid"]:
        return {"error": check["reason"], "status": 400}

    key = generate_file_key(f"temp/{user.id}", file_name)
    upload_bytes(key, content, mime_type)
    return {"file_key": key, "file_name": file_name, "mime_type": mime_type}


def presign_upload(db: Session, user: User, file_name: str, mime_type: str, job_ref) -> dict:
    if not file_name or not mime_type:
        return {"error": "file_name and mime_type are required", "status": 400}
    target = _resolve_job(db, user, job_ref)
    if "error" in target:
        return target
    key = generate_file_key(target["prefix"], file_name)
    return {
        "upload_url": presigned_upload_url(key, mime_type),
        "file_key": key,
        "expires_in": 900,
    }


def save_metadata(db: Session, user: User, data: dict) -> dict:
    """Record a file the browser PUT directly to storage via a presigned URL."""
    if not data.get("file_key") or not data.get("file_name"):
        return {"error": "file_key and file_name are required", "status": 400}
    if not data.get("file_size"):
        return {"error": "file_size is required", "status": 400}
    if data["file_size"] > _max_bytes():
        return {"error": f"File too large (max {settings.max_upload_size_mb} MB)", "status": 400}
    target = _resolve_job(db, user, data.get("job_id"))
    if "error" in target:
        return target
    if not data["file_key"].startswith(f"{target['prefix']}/"):
        return {"error": "File key does not belong to this job", "status": 400}

    row = FileUpload(
        job_id=target["job_id"],
        uploaded_by=user.id,
        file_name=data["file_name"],
        file_url=public_url(data["file_key"]),
        file_key=data["file_key"],
        file_size=data["file_size"],
        mime_type=data.get("mime_type"),
        file_type=data.get("file_type") or "input",
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return serialize_file(row)


def associate_draft_files(db: Session, user: User, draft_job_id: str, real_job_id: int) -> dict:
    if not draft_job_id or not real_job_id:
        return {"error": "Missing draft_job_id or real_job_id", "status": 400}
    if not is_draft_key(draft_job_id):
        return {"error": "Invalid draft job ID", "status": 400}
    job = db.get(Job, real_job_id)
    if not job:
        return {"error": "Job not found", "status": 404}
    if not can_access_job(user, job):
        return {"error": "You do not have access to this job", "status": 403}

    q = db.query(FileUpload).filter(
        FileUpload.job_id.is_(None),
        FileUpload.file_key.startswith(f"jobs/{draft_job_id}/", autoescape=True),
    )
    if user.role not in STAFF_ROLES:
        q = q.filter(FileUpload.uploaded_by == user.id)
    count = q.update({FileUpload.job_id: job.id}, synchronize_session=False)
    db.commit()
    log.info(f"Associated {count} draft files from {draft_job_id} with job {job.id}")
    return {"success": True, "count": count}


def download_url(db: Session, user: User, file_id: int) -> dict:
    row = db.get(FileUpload, file_id)
    if not row:
        return {"error": "File not found", "status": 404}
    if row.job_id is not None:
        job = db.get(Job, row.job_id)
        if job and not can_access_job(user, job):
            return {"error": "You do not have access to this file", "status": 403}
    elif row.uploaded_by != user.id and user.role not in ("admin", "manager"):
        return {"error": "You do not have access to this file", "status": 403}
    return {
        "url": presigned_download_url(row.file_key),
        "file_name": row.file_name,
        "expires_in": 3600,
    }
