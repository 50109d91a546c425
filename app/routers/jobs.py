"""
routers/jobs.py — Jobs, drafts, history, files, extra contacts, payment

Business Rules:
- Listing is role-scoped (see job_service)
- Read/update: staff, the job's client, or the assigned designer
- Delete is staff only; duplicate is staff or the owning client
- Extra contacts: anyone with access may list, only team members change them
- Draft routes are declared before /api/jobs/{job_id} so "draft" never
  parses as a job id

Called by: main.py (router mount)
Depends on: services/job_service, services/draft_service,
            services/payment_service, dependencies
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..dependencies import (
    get_job_for_user,
    is_staff,
    require_admin,
    require_staff,
    require_team,
    require_user,
)
from ..models import User
from ..schemas.jobs import DraftCreate, DraftUpdate, ExtraContactCreate, JobCreate, JobUpdate
from ..services import draft_service, job_service
from ..services.payment_service import get_job_payment

router = APIRouter(tags=["jobs"])


def _raise_on_error(result: dict) -> dict:
    if "error" in result:
        raise HTTPException(result.get("status", 400), result["error"])
    return result


# ── Jobs ─────────────────────────────────────────────────────────────


@router.get("/api/jobs")
def list_jobs(
    archived: bool = Query(False),
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    return job_service.list_jobs(db, user, archived=archived)


@router.post("/api/jobs", status_code=201)
def create_job(body: JobCreate, user: User = Depends(require_user), db: Session = Depends(get_db)):
    return _raise_on_error(job_service.create_job(db, user, body.model_dump()))


# ── Drafts ───────────────────────────────────────────────────────────


@router.get("/api/jobs/draft")
def get_draft(response: Response, user: User = Depends(require_user), db: Session = Depends(get_db)):
    job, created = draft_service.get_or_create_draft(db, user)
    if created:
        response.status_code = 201
    return job


@router.post("/api/jobs/draft/create", status_code=201)
def create_draft(body: DraftCreate, user: User = Depends(require_user), db: Session = Depends(get_db)):
    return draft_service.create_draft(db, user, body.model_dump(exclude_unset=True))


@router.put("/api/jobs/draft/update")
def update_draft(body: DraftUpdate, user: User = Depends(require_user), db: Session = Depends(get_db)):
    updates = body.model_dump(exclude_unset=True, exclude={"job_id", "make_active"})
    return _raise_on_error(
        draft_service.update_draft(db, user, body.job_id, updates, make_active=body.make_active)
    )


@router.get("/api/jobs/draft/cleanup")
def preview_draft_cleanup(
    days: int | None = Query(None, ge=1),
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Dry run: drafts the cleanup would delete."""
    return draft_service.preview_expired_drafts(db, days)


@router.delete("/api/jobs/draft/cleanup")
def run_draft_cleanup(user: User = Depends(require_admin), db: Session = Depends(get_db)):
    result = draft_service.cleanup_expired_drafts(db, days=settings.draft_retention_days)
    return {"success": True, **result}


# ── Single Job ───────────────────────────────────────────────────────


@router.get("/api/jobs/{job_id}")
def get_job(job_id: int, user: User = Depends(require_user), db: Session = Depends(get_db)):
    return job_service.serialize_job(get_job_for_user(db, user, job_id))


@router.patch("/api/jobs/{job_id}")
def update_job(
    job_id: int,
    body: JobUpdate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    job = get_job_for_user(db, user, job_id)
    return _raise_on_error(job_service.update_job(db, job, body.model_dump(exclude_unset=True), user))


@router.delete("/api/jobs/{job_id}")
def delete_job(job_id: int, user: User = Depends(require_staff), db: Session = Depends(get_db)):
    job = get_job_for_user(db, user, job_id)
    return job_service.delete_job(db, job)


@router.post("/api/jobs/{job_id}/duplicate", status_code=201)
def duplicate_job(job_id: int, user: User = Depends(require_user), db: Session = Depends(get_db)):
    job = get_job_for_user(db, user, job_id)
    if not is_staff(user) and job.client_id != user.id:
        raise HTTPException(403, "Only staff or the job owner can duplicate a job")
    return job_service.duplicate_job(db, job, user)


@router.get("/api/jobs/{job_id}/history")
def job_history(job_id: int, user: User = Depends(require_user), db: Session = Depends(get_db)):
    get_job_for_user(db, user, job_id)
    return job_service.job_history(db, job_id)


@router.get("/api/jobs/{job_id}/files")
def job_files(job_id: int, user: User = Depends(require_user), db: Session = Depends(get_db)):
    get_job_for_user(db, user, job_id)
    return job_service.job_files(db, job_id)


@router.get("/api/jobs/{job_id}/payment")
def job_payment(job_id: int, user: User = Depends(require_user), db: Session = Depends(get_db)):
    get_job_for_user(db, user, job_id)
    return _raise_on_error(get_job_payment(db, job_id))


# ── Extra Contacts ───────────────────────────────────────────────────


@router.get("/api/jobs/{job_id}/extra-contacts")
def list_extra_contacts(job_id: int, user: User = Depends(require_user), db: Session = Depends(get_db)):
    get_job_for_user(db, user, job_id)
    return job_service.list_extra_contacts(db, job_id)


@router.post("/api/jobs/{job_id}/extra-contacts", status_code=201)
def add_extra_contact(
    job_id: int,
    body: ExtraContactCreate,
    user: User = Depends(require_team),
    db: Session = Depends(get_db),
):
    get_job_for_user(db, user, job_id)
    return _raise_on_error(job_service.add_extra_contact(db, job_id, body.user_id, user))


@router.delete("/api/jobs/{job_id}/extra-contacts")
def remove_extra_contact(
    job_id: int,
    contact_id: int = Query(...),
    user: User = Depends(require_team),
    db: Session = Depends(get_db),
):
    get_job_for_user(db, user, job_id)
    return _raise_on_error(job_service.remove_extra_contact(db, job_id, contact_id))
