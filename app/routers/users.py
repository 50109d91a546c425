"""
routers/users.py — User management, profiles & upsert

Business Rules:
- /api/admin/users/* is admin only
- A user may read and edit their own profile; staff may read and edit anyone
- Only admins change roles; an admin cannot change their own role
- POST /api/users upserts on open_id (staff)

Called by: main.py (router mount)
Depends on: services/user_service, dependencies
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import is_staff, require_admin, require_staff, require_user
from ..models import User
from ..schemas.responses import UserListResponse
from ..schemas.users import UserUpdate, UserUpsert
from ..services import user_service

router = APIRouter(tags=["users"])


def _raise_on_error(result: dict) -> dict:
    if "error" in result:
        raise HTTPException(result.get("status", 400), result["error"])
    return result


# ── Admin ────────────────────────────────────────────────────────────


@router.get("/api/admin/users", response_model=UserListResponse)
def admin_list_users(
    search: str | None = Query(None),
    role: str | None = Query(None),
    login_method: str | None = Query(None),
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    users = user_service.list_users(db, search=search, role=role, login_method=login_method)
    return {"success": True, "users": users, "count": len(users)}


@router.patch("/api/admin/users/{user_id}")
def admin_update_user(
    user_id: int,
    body: UserUpdate,
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    result = user_service.admin_update_user(db, user_id, body.model_dump(exclude_unset=True), user)
    return {"success": True, "user": _raise_on_error(result)}


@router.delete("/api/admin/users/{user_id}")
def admin_delete_user(user_id: int, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    return _raise_on_error(user_service.delete_user(db, user_id, user))


# ── Users ────────────────────────────────────────────────────────────


@router.get("/api/users")
def list_users(user: User = Depends(require_staff), db: Session = Depends(get_db)):
    return user_service.list_users(db)


@router.post("/api/users")
def upsert_user(body: UserUpsert, user: User = Depends(require_staff), db: Session = Depends(get_db)):
    result = _raise_on_error(user_service.upsert_user(db, body.model_dump(exclude_unset=True)))
    return {"success": True, **result}


@router.get("/api/users/designers")
def list_designers(user: User = Depends(require_user), db: Session = Depends(get_db)):
    return user_service.list_designers(db)


@router.get("/api/users/{user_id}")
def get_user_profile(user_id: int, user: User = Depends(require_user), db: Session = Depends(get_db)):
    if user.id != user_id and not is_staff(user):
        raise HTTPException(403, "You can only view your own profile")
    target = db.get(User, user_id)
    if not target:
        raise HTTPException(404, "User not found")
    return user_service.serialize_user(target)


@router.patch("/api/users/{user_id}")
def update_user_profile(
    user_id: int,
    body: UserUpdate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    if user.id != user_id and not is_staff(user):
        raise HTTPException(403, "You can only edit your own profile")
    result = user_service.update_profile(db, user_id, body.model_dump(exclude_unset=True), user)
    return {"success": True, "user": _raise_on_error(result)}
