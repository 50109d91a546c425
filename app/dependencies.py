"""
dependencies.py — Shared FastAPI Dependencies

Reusable dependency functions for authentication, authorization and
job access checks. All routers import from here instead of defining
their own auth logic.

Business Rules:
- The JWT comes from "Authorization: Bearer <jwt>" or the auth_token cookie
- get_user returns None if not logged in (non-throwing); bad or expired
  tokens count as not logged in
- require_user raises 401 if not logged in, 403 if deactivated
- require_admin raises 403 unless role == "admin"
- require_staff raises 403 unless admin/manager
- require_team raises 403 unless admin/manager/designer
- Job access: staff, the job's client, or the assigned designer

Called by: all routers
Depends on: models, database, config, services/auth_service (token decode)
"""

import logging

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from .config import settings
from .database import get_db
from .models import Job, User
from .services.auth_service import decode_token

log = logging.getLogger(__name__)

STAFF_ROLES = ("admin", "manager")
TEAM_ROLES = ("admin", "manager", "designer")


# ── Authentication ────────────────────────────────────────────────────


def _extract_token(request: Request) -> str | None:
    header = request.headers.get("authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return request.cookies.get(settings.auth_cookie_name)


def get_user(request: Request, db: Session) -> User | None:
    """Return the user named by the request's JWT, or None if not logged in."""
    token = _extract_token(request)
    if not token:
        return None
    payload = decode_token(token)
    if not payload or "id" not in payload:
        return None
    return db.get(User, payload["id"])


def get_optional_user(request: Request, db: Session = Depends(get_db)) -> User | None:
    """Dependency: current user or None (public endpoints)."""
    user = get_user(request, db)
    if user and not user.is_active:
        return None
    return user


def require_user(request: Request, db: Session = Depends(get_db)) -> User:
    """Dependency: raises 401 if no authenticated user, 403 if deactivated."""
    user = get_user(request, db)
    if not user:
        raise HTTPException(401, "Not authenticated")
    if not user.is_active:
        raise HTTPException(403, "Account deactivated — contact admin")
    return user


def is_admin(user: User) -> bool:
    return user.role == "admin"


def is_staff(user: User) -> bool:
    return user.role in STAFF_ROLES


def is_team(user: User) -> bool:
    return user.role in TEAM_ROLES


def require_admin(user: User = Depends(require_user)) -> User:
    """Dependency: raises 403 if user is not an admin."""
    if not is_admin(user):
        raise HTTPException(403, "Admin access required")
    return user


def require_staff(user: User = Depends(require_user)) -> User:
    """Dependency: admin or manager."""
    if not is_staff(user):
        raise HTTPException(403, "Staff access required")
    return user


def require_team(user: User = Depends(require_user)) -> User:
    """Dependency: admin, manager or designer."""
    if not is_team(user):
        raise HTTPException(403, "Team access required")
    return user


# ── Job Access ────────────────────────────────────────────────────────


def can_access_job(user: User, job: Job) -> bool:
    return is_staff(user) or job.client_id == user.id or job.designer_id == user.id


def get_job_for_user(db: Session, user: User, job_id: int) -> Job:
    """Load a job and enforce access. Raises 404 when missing, 403 when forbidden."""
    job = db.get(Job, job_id)
    if not job:
        raise HTTPException(404, "Job not found")
    if not can_access_job(user, job):
        raise HTTPException(403, "You do not have access to this job")
    return job
