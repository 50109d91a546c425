"""
routers/auth.py — Authentication, session cookie & password reset routes

Email/password login issues a 7-day HS256 JWT. The frontend either keeps
it in memory (Authorization: Bearer) or asks us to set it as an
http-only cookie.

Business Rules:
- login, refresh and reset-password are rate limited per client IP
- Accounts without a password must use their original login method
- Refresh accepts expired tokens up to 30 days after issue
- Admins generate reset tokens and send the link by email

Called by: main.py (router mount)
Depends on: services/auth_service, services/email_service, rate_limit
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..dependencies import require_admin, require_user
from ..models import User
from ..rate_limit import limiter
from ..schemas.auth import (
    GenerateTokenRequest,
    LoginRequest,
    ResetPasswordRequest,
    SendResetRequest,
    TokenRequest,
)
from ..schemas.responses import OkResponse
from ..services import auth_service
from ..services.email_service import render_notification, send_email
from ..services.user_service import serialize_user

log = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def _auth_payload(result: dict) -> dict:
    if "error" in result:
        raise HTTPException(result["status"], result["error"])
    return {"success": True, "token": result["token"], "user": serialize_user(result["user"])}


# ── Login & Tokens ───────────────────────────────────────────────────


@router.post("/api/auth/login")
@limiter.limit(settings.rate_limit_login)
def login(request: Request, body: LoginRequest, db: Session = Depends(get_db)):
    return _auth_payload(auth_service.login(db, body.email, body.password))


@router.post("/api/auth/refresh")
@limiter.limit(settings.rate_limit_login)
def refresh(request: Request, body: TokenRequest, db: Session = Depends(get_db)):
    return _auth_payload(auth_service.refresh_token(db, body.token))


@router.post("/api/auth/reset-password")
@limiter.limit(settings.rate_limit_login)
def reset_password(request: Request, body: ResetPasswordRequest, db: Session = Depends(get_db)):
    result = auth_service.reset_password(db, body.token, body.email, body.password)
    if "error" in result:
        raise HTTPException(result["status"], result["error"])
    return {"success": True, "message": "Password has been reset. You can now log in."}


# ── Session Cookie ───────────────────────────────────────────────────


@router.post("/api/auth/set-cookies", response_model=OkResponse)
def set_cookies(body: TokenRequest, response: Response):
    if not body.token or not auth_service.decode_token(body.token):
        raise HTTPException(401, "Invalid token")
    response.set_cookie(
        settings.auth_cookie_name,
        body.token,
        max_age=settings.jwt_expiry_days * 24 * 3600,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        path="/",
    )
    return {"success": True}


@router.post("/api/auth/logout", response_model=OkResponse)
def logout(response: Response):
    response.delete_cookie(settings.auth_cookie_name, path="/")
    return {"success": True}


@router.get("/api/auth/me")
def me(user: User = Depends(require_user)):
    return {"success": True, "user": serialize_user(user)}


# ── Admin Password Reset ─────────────────────────────────────────────


@router.post("/api/admin/generate-password-token")
def generate_password_token(
    body: GenerateTokenRequest,
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    result = auth_service.generate_reset_token(db, body.user_id)
    if "error" in result:
        raise HTTPException(result["status"], result["error"])
    result["reset_link"] = auth_service.reset_link(result["token"], result["email"])
    log.info(f"Admin {user.email} generated a reset token for user {body.user_id}")
    return {"success": True, **result}


@router.post("/api/admin/send-password-reset")
async def send_password_reset(
    body: SendResetRequest,
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    target = db.query(User).filter(User.email == body.email.strip().lower()).first()
    html = render_notification(
        "password_reset.html",
        name=target.display_name if target else "",
        link=auth_service.reset_link(body.token, body.email),
        expiry_hours=settings.password_reset_hours,
    )
    result = await send_email(
        db, body.email, "Reset your Design Studio password", html,
        metadata={"kind": "password_reset", "requested_by": user.id},
    )
    if not result["success"]:
        raise HTTPException(500, f"Failed to send email: {result['error']}")
    return {"success": True, "status": result["status"]}
