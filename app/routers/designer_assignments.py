"""Designer assignments — which designers are auto-assigned to each job type."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import require_admin, require_staff
from ..models import User
from ..schemas.assignments import AssignmentSet
from ..services import assignment_service

router = APIRouter(tags=["designer-assignments"])


@router.get("/api/designer-assignments")
def list_assignments(user: User = Depends(require_staff), db: Session = Depends(get_db)):
    return assignment_service.list_assignments(db)


@router.post("/api/designer-assignments")
def set_assignments(body: AssignmentSet, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    result = assignment_service.set_assignments(db, body.job_type, body.designer_ids)
    if "error" in result:
        raise HTTPException(result["status"], result["error"])
    return result


@router.delete("/api/designer-assignments/{assignment_id}")
def deactivate_assignment(
    assignment_id: int,
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    result = assignment_service.deactivate_assignment(db, assignment_id)
    if "error" in result:
        raise HTTPException(result["status"], result["error"])
    return result
