"""User service — user listing, admin updates, upsert by open_id."""

import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..models import User

log = logging.getLogger(__name__)


VALID_ROLES = ("client", "designer", "manager", "admin")
PROFILE_FIELDS = (
    "name", "first_name", "last_name", "email", "phone",
    "address1", "address2", "city", "state", "zip", "country",
)


def serialize_user(u: User) -> dict:
    return {
        "id": u.id,
        "open_id": u.open_id,
        "email": u.email,
        "name": u.name,
        "first_name": u.first_name,
        "last_name": u.last_name,
        "role": u.role,
        "login_method": u.login_method,
        "wordpress_id": u.wordpress_id,
        "is_active": u.is_active,
        "phone": u.phone,
        "address1": u.address1,
        "address2": u.address2,
        "city": u.city,
        "state": u.state,
        "zip": u.zip,
        "country": u.country,
        "created_at": u.created_at.isoformat() if u.created_at else None,
        "last_signed_in": u.last_signed_in.isoformat() if u.last_signed_in else None,
    }


def list_users(
    db: Session,
    search: str | None = None,
    role: str | None = None,
    login_method: str | None = None,
) -> list[dict]:
    """Users newest first. Filters combine; search matches name or email."""
    q = db.query(User)
    if search:
        pattern = f"%{search.strip()}%"
        q = q.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
    if role:
        q = q.filter(User.role == role)
    if login_method:
        q = q.filter(User.login_method == login_method)
    return [serialize_user(u) for u in q.order_by(User.created_at.desc(), User.id.desc()).all()]


def list_designers(db: Session) -> list[dict]:
    rows = (
        db.query(User)
        .filter(User.role == "designer", User.is_active.is_(True))
        .order_by(User.name)
        .all()
    )
    return [{"id": u.id, "name": u.display_name, "email": u.email} for u in rows]


def _email_taken(db: Session, email: str | None, user_id: int | None) -> bool:
    if not email or not email.strip():
        return False
    q = db.query(User.id).filter(User.email == email.strip().lower())
    if user_id is not None:
        q = q.filter(User.id != user_id)
    return q.first() is not None


def _apply_profile(target: User, updates: dict) -> bool:
    changed = False
    for field in PROFILE_FIELDS:
        if updates.get(field) is None:
            continue
        value = updates[field]
        if isinstance(value, str):
            value = value.strip()
        if field == "email":
            value = value.lower()
        setattr(target, field, value)
        changed = True
    return changed


def admin_update_user(db: Session, user_id: int, updates: dict, admin_user: User) -> dict:
    """Update a user's role or profile fields. Guards against self role change."""
    target = db.get(User, user_id)
    if not target:
        return {"error": "User not found", "status": 404}
    if _email_taken(db, updates.get("email"), target.id):
        return {"error": "Email already in use", "status": 409}

    if updates.get("role") is not None:
        if updates["role"] not in VALID_ROLES:
            return {
                "error": f"Invalid role. Must be one of: {', '.join(VALID_ROLES)}",
                "status": 400,
            }
        if target.id == admin_user.id and updates["role"] != target.role:
            return {"error": "Cannot change your own role", "status": 400}
        if updates["role"] != target.role:
            log.info(
                f"Admin {admin_user.email} changed {target.email} role: {target.role} -> {updates['role']}"
            )
        target.role = updates["role"]

    if updates.get("is_active") is not None:
        if target.id == admin_user.id and not updates["is_active"]:
            return {"error": "Cannot deactivate yourself", "status": 400}
        target.is_active = updates["is_active"]

    _apply_profile(target, updates)
    db.commit()
    return serialize_user(target)


def update_profile(db: Session, user_id: int, updates: dict, actor: User) -> dict:
    """Self-or-staff profile update. Only an admin may change the role."""
    target = db.get(User, user_id)
    if not target:
        return {"error": "User not found", "status": 404}
    if _email_taken(db, updates.get("email"), target.id):
        return {"error": "Email already in use", "status": 409}

    role = updates.get("role")
    if role is not None and actor.role != "admin":
        return {"error": "Only admins can change roles", "status": 403}
    if role is not None and role not in VALID_ROLES:
        return {"error": f"Invalid role. Must be one of: {', '.join(VALID_ROLES)}", "status": 400}

    changed = _apply_profile(target, updates)
    if role is not None:
        target.role = role
        changed = True
    if not changed:
        return {"error": "No fields to update", "status": 400}

    db.commit()
    return serialize_user(target)


def delete_user(db: Session, user_id: int, admin_user: User) -> dict:
    target = db.get(User, user_id)
    if not target:
        return {"error": "User not found", "status": 404}
    if target.id == admin_user.id:
        return {"error": "Cannot delete yourself", "status": 400}
    db.delete(target)
    db.commit()
    log.info(f"Admin {admin_user.email} deleted user {target.email}")
    return {"success": True}


def upsert_user(db: Session, data: dict) -> dict:
    """Create or update a user keyed on open_id. Returns {"user", "created"}."""
    open_id = (data.get("open_id") or "").strip()
    if not open_id:
        return {"error": "open_id is required", "status": 400}
    role = data.get("role")
    if role is not None and role not in VALID_ROLES:
        return {"error": f"Invalid role. Must be one of: {', '.join(VALID_ROLES)}", "status": 400}

    user = db.query(User).filter(User.open_id == open_id).first()
    if _email_taken(db, data.get("email"), user.id if user else None):
        return {"error": "Email already in use", "status": 409}
    created = user is None
    if created:
        user = User(open_id=open_id, role=role or "client")
        db.add(user)

    for field in ("name", "email", "login_method", "role", "wordpress_id"):
        if data.get(field) is not None:
            value = data[field]
            setattr(user, field, value.strip().lower() if field == "email" else value)
    db.commit()
    db.refresh(user)
    log.info(f"{'Created' if created else 'Updated'} user {user.email} (open_id={open_id})")
    return {"user": serialize_user(user), "created": created}
