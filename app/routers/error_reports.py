"""Error Reports API — client error submission and admin triage."""

import io
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from loguru import logger
from openpyxl import Workbook
from sqlalchemy import desc
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..dependencies import get_optional_user, require_admin
from ..models import User
from ..models.error_report import ErrorReport
from ..schemas.error_reports import ErrorReportCreate, StatusUpdate
from ..services.email_service import render_notification, send_email

router = APIRouter(tags=["error-reports"])


def _iso(value):
    return value.isoformat() if value else None


def _subject(name: str, message: str) -> str:
    return f"[Error Report] {name}: {message[:50]}..."


# ── Submission ───────────────────────────────────────────────────────


@router.post("/api/error-report", status_code=201)
async def create_error_report(
    body: ErrorReportCreate,
    user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """Record a client-side error (signed in or not) and notify support."""
    component_stack = body.error_info.component_stack if body.error_info else None
    report = ErrorReport(
        user_id=user.id if user else None,
        error_name=body.error.name or "Error",
        error_message=body.error.message or "",
        stack=body.error.stack,
        component_stack=component_stack,
        url=body.url,
        user_agent=body.user_agent,
        reporter_email=user.email if user else None,
        occurred_at=body.timestamp or datetime.now(timezone.utc),
    )
    db.add(report)
    db.commit()
    db.refresh(report)
    logger.info("Error report #{} created ({})", report.id, report.error_name)

    html = render_notification(
        "error_report.html",
        error_name=report.error_name,
        error_message=report.error_message,
        url=report.url,
        user_agent=report.user_agent,
        reporter=report.reporter_email or "anonymous",
        occurred_at=_iso(report.occurred_at),
        stack=report.stack,
        component_stack=report.component_stack,
    )
    result = await send_email(
        db, settings.support_email, _subject(report.error_name, report.error_message), html,
        metadata={"kind": "error_report", "report_id": report.id},
    )
    if not result["success"]:
        logger.warning("Support notification for error report #{} failed: {}", report.id, result["error"])

    return {"id": report.id, "status": "created", "notified": result["success"]}


# ── Admin ────────────────────────────────────────────────────────────


@router.get("/api/error-reports")
def list_error_reports(
    status: Optional[str] = Query(None),
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """List error reports (admin). Omits stacks for size."""
    q = db.query(ErrorReport)
    if status:
        q = q.filter(ErrorReport.status == status)
    reports = q.order_by(desc(ErrorReport.created_at)).limit(500).all()
    return [
        {
            "id": r.id,
            "error_name": r.error_name,
            "error_message": r.error_message,
            "status": r.status,
            "reporter_email": r.reporter_email,
            "url": r.url,
            "occurred_at": _iso(r.occurred_at),
            "created_at": _iso(r.created_at),
            "resolved_at": _iso(r.resolved_at),
        }
        for r in reports
    ]


@router.get("/api/error-reports/export/xlsx")
def export_error_reports_xlsx(
    status: Optional[str] = Query(None),
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Export error reports to Excel (admin)."""
    q = db.query(ErrorReport)
    if status:
        q = q.filter(ErrorReport.status == status)
    reports = q.order_by(desc(ErrorReport.created_at)).limit(2000).all()

    wb = Workbook()
    ws = wb.active
    ws.title = "Error Reports"
    ws.append([
        "ID", "Error", "Message", "Status", "Reporter", "URL", "User Agent",
        "Occurred", "Admin Notes", "Created", "Resolved",
    ])
    for r in reports:
        ws.append([
            r.id,
            r.error_name,
            r.error_message or "",
            r.status,
            r.reporter_email or "",
            r.url or "",
            r.user_agent or "",
            _iso(r.occurred_at) or "",
            r.admin_notes or "",
            _iso(r.created_at) or "",
            _iso(r.resolved_at) or "",
        ])

    buf = io.BytesIO()
    wb.save(buf)
    buf.seek(0)
    return StreamingResponse(
        buf,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": "attachment; filename=error_reports.xlsx"},
    )


@router.get("/api/error-reports/{report_id}")
def get_error_report(
    report_id: int,
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Full error report including stacks (admin)."""
    report = db.get(ErrorReport, report_id)
    if not report:
        raise HTTPException(404, "Report not found")
    return {
        "id": report.id,
        "error_name": report.error_name,
        "error_message": report.error_message,
        "stack": report.stack,
        "component_stack": report.component_stack,
        "url": report.url,
        "user_agent": report.user_agent,
        "reporter_email": report.reporter_email,
        "reporter_name": report.reporter.display_name if report.reporter else None,
        "occurred_at": _iso(report.occurred_at),
        "status": report.status,
        "admin_notes": report.admin_notes,
        "resolved_at": _iso(report.resolved_at),
        "created_at": _iso(report.created_at),
    }


@router.put("/api/error-reports/{report_id}/status")
def update_error_report_status(
    report_id: int,
    body: StatusUpdate,
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Update error report status and admin notes (admin)."""
    report = db.get(ErrorReport, report_id)
    if not report:
        raise HTTPException(404, "Report not found")

    report.status = body.status
    if body.admin_notes is not None:
        report.admin_notes = body.admin_notes

    if body.status in ("resolved", "closed"):
        report.resolved_at = datetime.now(timezone.utc)
    elif body.status == "open":
        report.resolved_at = None

    db.commit()
    logger.info("Error report #{} → {} by {}", report_id, body.status, user.email)
    return {"id": report.id, "status": report.status}
