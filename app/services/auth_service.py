"""Auth service — passwords, JWT issuance/refresh, password reset tokens.

Business Rules:
- Tokens are HS256 JWTs with claims id, email, role, iat, exp (iat + 7 days)
- Refresh verifies the signature but ignores expiry; tokens older than the
  30-day grace window (measured from iat) are refused
- Accounts without a password (WordPress/Google) cannot use email login
- Reset tokens are 32 random bytes as hex, valid for 24 hours
- Passwords must be at least 8 characters

Called by: routers/auth.py, dependencies.py, scheduler.py
Depends on: models.User, config (jwt_* settings), bcrypt, python-jose
"""

import logging
import secrets
from urllib.parse import urlencode
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..config import settings
from ..models import User

log = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


# ── Passwords ────────────────────────────────────────────────────────


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


# ── Tokens ───────────────────────────────────────────────────────────


def create_token(user: User, now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    claims = {
        "id": user.id,
        "email": user.email,
        "role": user.role,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(days=settings.jwt_expiry_days)).timestamp()),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str, verify_exp: bool = True) -> dict | None:
    """Decode and verify a JWT. Returns None for bad signature, malformed or expired tokens."""
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"verify_exp": verify_exp},
        )
    except JWTError:
        return None


def _find_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()


def login(db: Session, email: str, password: str) -> dict:
    if not email or not password:
        return {"error": "Email and password are required", "status": 400}

    user = _find_by_email(db, email)
    if not user:
        return {"error": "Invalid email or password", "status": 401}
    if not user.password_hash:
        return {
            "error": "This account has no password. Please use the appropriate login method "
            f"({user.login_method or 'WordPress or Google'}).",
            "status": 401,
        }
    if not verify_password(password, user.password_hash):
        return {"error": "Invalid email or password", "status": 401}
    if not user.is_active:
        return {"error": "Account deactivated — contact admin", "status": 403}

    user.last_signed_in = datetime.now(timezone.utc)
    db.commit()
    log.info(f"User {user.email} logged in")
    return {"user": user, "token": create_token(user)}


def refresh_token(db: Session, token: str, now: datetime | None = None) -> dict:
    """Issue a fresh token for a still-valid (or recently expired) one."""
    if not token:
        return {"error": "Token is required", "status": 400}
    now = now or datetime.now(timezone.utc)

    payload = decode_token(token, verify_exp=False)
    if not payload or "id" not in payload or "iat" not in payload:
        return {"error": "Invalid token", "status": 401}

    issued = datetime.fromtimestamp(payload["iat"], tz=timezone.utc)
    if now - issued > timedelta(days=settings.jwt_refresh_grace_days):
        return {"error": "Token too old, please log in again", "status": 401}

    user = db.get(User, payload["id"])
    if not user or not user.is_active:
        return {"error": "User not found", "status": 401}

    user.last_signed_in = now
    db.commit()
    return {"user": user, "token": create_token(user, now=now)}


# ── Password Reset ───────────────────────────────────────────────────


def generate_reset_token(db: Session, user_id: int) -> dict:
    user = db.get(User, user_id)
    if not user:
        return {"error": "User not found", "status": 404}
    user.password_reset_token = secrets.token_hex(32)
    user.password_reset_expiry = datetime.now(timezone.utc) + timedelta(
        hours=settings.password_reset_hours
    )
    db.commit()
    log.info(f"Password reset token generated for {user.email}")
    return {
        "token": user.password_reset_token,
        "email": user.email,
        "expires_at": user.password_reset_expiry.isoformat(),
    }


def reset_link(token: str, email: str) -> str:
    return f"{settings.app_url}/reset-password?{urlencode({'token': token, 'email': email})}"


def reset_password(db: Session, token: str, email: str, password: str) -> dict:
    if not token or not email or not password:
        return {"error": "Token, email and password are required", "status": 400}
    if len(password) < MIN_PASSWORD_LENGTH:
        return {
            "error": f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            "status": 400,
        }

    now = datetime.now(timezone.utc)
    user = (
        db.query(User)
        .filter(
            func.lower(User.email) == email.strip().lower(),
            User.password_reset_token == token,
            User.password_reset_expiry > now,
        )
        .first()
    )
    if not user:
        return {"error": "Invalid or expired reset token", "status": 401}

    user.password_hash = hash_password(password)
    user.password_reset_token = None
    user.password_reset_expiry = None
    user.login_method = "email"
    db.commit()
    log.info(f"Password reset completed for {user.email}")
    return {"success": True}


def purge_expired_reset_tokens(db: Session, now: datetime | None = None) -> int:
    """Clear reset tokens past their expiry. Returns the number of users touched."""
    now = now or datetime.now(timezone.utc)
    count = (
        db.query(User)
        .filter(User.password_reset_token.isnot(None), User.password_reset_expiry < now)
        .update(
            {User.password_reset_token: None, User.password_reset_expiry: None},
            synchronize_session=False,
        )
    )
    db.commit()
    return count
