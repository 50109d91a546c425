"""
email_service.py — Outbound email via the Gmail API, templates, delivery log

Sends mail as EMAIL_FROM through a Google Workspace service account with
domain-wide delegation. Renders admin-managed templates ({{ placeholders }})
with a sandboxed Jinja2 environment and the built-in notification emails
from app/templates/emails/.

Business Rules:
- Every send attempt writes an email_logs row: sent | failed | logged
- When the service account key is not configured the email is only
  logged (status "logged") and the send counts as successful
- send_email never raises for delivery problems; callers inspect
  result["success"]. Best-effort callers log and continue
- Gmail wants the RFC 822 message base64url-encoded without padding

Called by: routers (auth, email_templates, emails, error_reports),
           services/design_package_service.py
Depends on: http_client, models.EmailLog/EmailTemplate, google-auth, jinja2
"""

import base64
import binascii
import json
import time
from email.message import EmailMessage
from email.utils import formataddr
from functools import lru_cache
from pathlib import Path

import httpx
from google.auth import crypt
from google.auth import jwt as google_jwt
from jinja2 import Environment, FileSystemLoader, select_autoescape
from jinja2.exceptions import SecurityError, TemplateError
from jinja2.sandbox import SandboxedEnvironment
from loguru import logger
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..config import settings
from ..http_client import http
from ..models import EmailLog, EmailTemplate

GMAIL_SEND_URL = "https://gmail.googleapis.com/gmail/v1/users/me/messages/send"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GMAIL_SCOPE = "https://www.googleapis.com/auth/gmail.send"
TEST_SUBJECT_PREFIX = "[TEST] "

_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "emails"
_token_cache: dict = {"token": None, "expires_at": 0.0}


class EmailDeliveryError(Exception):
    """Gmail (or Google's token endpoint) rejected the request."""


# ── Rendering ────────────────────────────────────────────────────────

_sandbox_html = SandboxedEnvironment(autoescape=True)
_sandbox_text = SandboxedEnvironment(autoescape=False)


@lru_cache
def _notification_env() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(_TEMPLATE_DIR)),
        autoescape=select_autoescape(["html"]),
    )


def render_template(template: str, context: dict, html: bool = True) -> str:
    """Substitute {{ var }} placeholders. Unknown variables render empty."""
    env = _sandbox_html if html else _sandbox_text
    try:
        return env.from_string(template).render(**context)
    except (TemplateError, SecurityError) as e:
        raise ValueError(f"Template error: {e}") from e


def render_notification(name: str, **context) -> str:
    """Render one of the built-in notification emails (app/templates/emails/)."""
    context.setdefault("from_name", settings.email_from_name)
    context.setdefault("support_email", settings.support_email)
    return _notification_env().get_template(name).render(**context)


# ── Gmail transport ──────────────────────────────────────────────────


def _service_account_info() -> dict | None:
    raw = settings.google_service_account_key_base64
    if not raw:
        return None
    try:
        return json.loads(base64.b64decode(raw))
    except (binascii.Error, ValueError) as e:
        logger.error("Invalid GOOGLE_SERVICE_ACCOUNT_KEY_BASE64: {}", e)
        return None


def is_configured() -> bool:
    return _service_account_info() is not None


async def _access_token(info: dict) -> str:
    """Exchange a signed service-account assertion for a Gmail access token."""
    if _token_cache["token"] and _token_cache["expires_at"] > time.time() + 60:
        return _token_cache["token"]

    now = int(time.time())
    signer = crypt.RSASigner.from_service_account_info(info)
    assertion = google_jwt.encode(
        signer,
        {
            "iss": info["client_email"],
            "sub": settings.email_from,
            "scope": GMAIL_SCOPE,
            "aud": GOOGLE_TOKEN_URL,
            "iat": now,
            "exp": now + 3600,
        },
    )
    resp = await http.post(
        GOOGLE_TOKEN_URL,
        data={
            "grant_type": "urn:ietf:params:oauth:grant-type:jwt-bearer",
            "assertion": assertion.decode("ascii"),
        },
        timeout=15,
    )
    if resp.status_code != 200:
        raise EmailDeliveryError(f"Google token exchange failed ({resp.status_code}): {resp.text[:200]}")
    data = resp.json()
    _token_cache["token"] = data["access_token"]
    _token_cache["expires_at"] = now + int(data.get("expires_in", 3600))
    return _token_cache["token"]


def build_raw_message(to: str, subject: str, html: str) -> str:
    """RFC 822 message, base64url-encoded without padding."""
    msg = EmailMessage()
    msg["From"] = formataddr((settings.email_from_name, settings.email_from))
    msg["To"] = to
    msg["Subject"] = subject
    msg.set_content(html, subtype="html")
    return base64.urlsafe_b64encode(msg.as_bytes()).decode("ascii").rstrip("=")


async def _deliver(to: str, subject: str, html: str, info: dict) -> str:
    """Send through users.messages.send. Returns the Gmail message id."""
    token = await _access_token(info)
    resp = await http.post(
        GMAIL_SEND_URL,
        json={"raw": build_raw_message(to, subject, html)},
        headers={"Authorization": f"Bearer {token}"},
        timeout=30,
    )
    if resp.status_code not in (200, 202):
        raise EmailDeliveryError(f"Gmail send failed ({resp.status_code}): {resp.text[:200]}")
    return resp.json().get("id", "")


# ── Public API ───────────────────────────────────────────────────────


async def send_email(
    db: Session,
    to: str,
    subject: str,
    html: str,
    metadata: dict | None = None,
    resent_from: int | None = None,
) -> dict:
    """Send one email and record the attempt.

    Returns {"success", "status", "message_id", "error", "log_id"}.
    """
    info = _service_account_info()
    message_id = None
    error = None

    if info is None:
        status = "logged"
        logger.info("Email not configured; logged only: to={} subject={!r}", to, subject)
    else:
        try:
            message_id = await _deliver(to, subject, html, info)
            status = "sent"
            logger.info("Email sent to {} ({})", to, message_id)
        except (EmailDeliveryError, httpx.HTTPError, ValueError, KeyError) as e:
            status = "failed"
            error = str(e)
            logger.error("Email to {} failed: {}", to, e)

    log_row = EmailLog(
        recipient=to,
        subject=subject,
        body=html,
        status=status,
        error=error,
        message_id=message_id,
        resent_from=resent_from,
        meta=metadata or None,
    )
    db.add(log_row)
    db.commit()

    return {
        "success": status in ("sent", "logged"),
        "status": status,
        "message_id": message_id,
        "error": error,
        "log_id": log_row.id,
    }


async def send_test_email(db: Session, to: str, subject: str, body: str) -> dict:
    return await send_email(
        db, to, f"{TEST_SUBJECT_PREFIX}{subject}", body, metadata={"kind": "test"}
    )


async def send_triggered_email(
    db: Session,
    trigger_event: str,
    to: str,
    context: dict,
    department_id: int | None = None,
) -> list[dict]:
    """Send every active template bound to trigger_event.

    Templates scoped to a department only fire for that department.
    """
    q = db.query(EmailTemplate).filter(
        EmailTemplate.trigger_event == trigger_event,
        EmailTemplate.is_active.is_(True),
    )
    if department_id is not None:
        q = q.filter(
            or_(EmailTemplate.department_id.is_(None), EmailTemplate.department_id == department_id)
        )
    else:
        q = q.filter(EmailTemplate.department_id.is_(None))

    results = []
    for tpl in q.order_by(EmailTemplate.name).all():
        subject = render_template(tpl.subject, context, html=False)
        body = render_template(tpl.body, context)
        result = await send_email(
            db, to, subject, body,
            metadata={"template_id": tpl.id, "trigger_event": trigger_event},
        )
        results.append(result)
    return results


# ── Delivery log (admin) ─────────────────────────────────────────────


def serialize_log(row: EmailLog) -> dict:
    return {
        "id": row.id,
        "recipient": row.recipient,
        "subject": row.subject,
        "body": row.body,
        "status": row.status,
        "error": row.error,
        "message_id": row.message_id,
        "resent_from": row.resent_from,
        "metadata": row.meta,
        "sent_at": row.sent_at.isoformat() if row.sent_at else None,
    }


def list_email_logs(
    db: Session, search: str | None = None, status: str | None = None, limit: int = 100
) -> list[dict]:
    q = db.query(EmailLog)
    if search:
        pattern = f"%{search.strip()}%"
        q = q.filter(or_(EmailLog.recipient.ilike(pattern), EmailLog.subject.ilike(pattern)))
    if status:
        q = q.filter(EmailLog.status == status)
    rows = q.order_by(EmailLog.sent_at.desc(), EmailLog.id.desc()).limit(limit).all()
    return [serialize_log(r) for r in rows]


def delete_email_log(db: Session, log_id: int) -> dict:
    row = db.get(EmailLog, log_id)
    if not row:
        return {"error": "Email log not found", "status": 404}
    db.delete(row)
    db.commit()
    return {"success": True}


async def resend_email(db: Session, log_id: int) -> dict:
    original = db.get(EmailLog, log_id)
    if not original:
        return {"error": "Email log not found", "status": 404}
    metadata = dict(original.meta or {})
    metadata["resend"] = True
    return await send_email(
        db, original.recipient, original.subject, original.body,
        metadata=metadata, resent_from=original.id,
    )
