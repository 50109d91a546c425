"""Email delivery log (admin) — list, delete, resend."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import require_admin
from ..models import User
from ..services.email_service import delete_email_log, list_email_logs, resend_email

router = APIRouter(tags=["emails"])


@router.get("/api/admin/emails")
def list_emails(
    search: str | None = Query(None),
    status: str | None = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return list_email_logs(db, search=search, status=status, limit=limit)


@router.delete("/api/admin/emails/{log_id}")
def delete_email(log_id: int, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    result = delete_email_log(db, log_id)
    if "error" in result:
        raise HTTPException(result["status"], result["error"])
    return result


@router.post("/api/admin/emails/{log_id}/resend")
async def resend(log_id: int, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    result = await resend_email(db, log_id)
    if "log_id" not in result:
        raise HTTPException(result["status"], result["error"])
    if not result["success"]:
        raise HTTPException(502, f"Resend failed: {result['error']}")
    return result
