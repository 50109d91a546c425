"""Designer assignments — which designers take which kind of job.

Business Rules:
- Job types: sell_sheets, virtual_prototypes, line_drawings
- Package type text maps to a job type by keyword (case-insensitive)
- The active assignment with the lowest priority number wins, skipping
  users who are no longer active designers
- Saving a job type's list replaces it: old rows are deactivated and the
  new ids are inserted with priority = list index

Called by: routers/designer_assignments.py, services/job_service.py (draft activation)
Depends on: models.DesignerAssignment, models.User
"""

import logging

from sqlalchemy.orm import Session

from ..models import DesignerAssignment, User

log = logging.getLogger(__name__)

JOB_TYPES = ("sell_sheets", "virtual_prototypes", "line_drawings")


def map_package_type_to_job_type(package_type: str | None) -> str | None:
    if not package_type:
        return None
    text = package_type.lower()
    if "sell sheet" in text:
        return "sell_sheets"
    if "virtual prototype" in text or "3d" in text:
        return "virtual_prototypes"
    if "line drawing" in text or "technical" in text:
        return "line_drawings"
    return None


def get_assigned_designer(db: Session, job_type: str) -> int | None:
    """Designer id for the highest-priority active assignment, or None."""
    row = (
        db.query(DesignerAssignment)
        .join(User, User.id == DesignerAssignment.designer_id)
        .filter(
            DesignerAssignment.job_type == job_type,
            DesignerAssignment.is_active.is_(True),
            User.role == "designer",
            User.is_active.is_(True),
        )
        .order_by(DesignerAssignment.priority, DesignerAssignment.id)
        .first()
    )
    return row.designer_id if row else None


def list_assignments(db: Session) -> dict:
    """Active assignments grouped by job type, in priority order."""
    grouped: dict[str, list[dict]] = {jt: [] for jt in JOB_TYPES}
    rows = (
        db.query(DesignerAssignment)
        .filter(DesignerAssignment.is_active.is_(True))
        .order_by(DesignerAssignment.job_type, DesignerAssignment.priority)
        .all()
    )
    for a in rows:
        grouped.setdefault(a.job_type, []).append(
            {
                "id": a.id,
                "designer_id": a.designer_id,
                "designer_name": a.designer.display_name if a.designer else None,
                "designer_email": a.designer.email if a.designer else None,
                "priority": a.priority,
            }
        )
    return grouped


def set_assignments(db: Session, job_type: str, designer_ids: list[int]) -> dict:
    if job_type not in JOB_TYPES:
        return {"error": f"Invalid job type. Must be one of: {', '.join(JOB_TYPES)}", "status": 400}

    if designer_ids:
        designers = {
            u.id
            for u in db.query(User)
            .filter(User.id.in_(designer_ids), User.role == "designer")
            .all()
        }
        missing = [i for i in designer_ids if i not in designers]
        if missing:
            return {"error": f"Not designers: {', '.join(str(i) for i in missing)}", "status": 400}

    db.query(DesignerAssignment).filter(
        DesignerAssignment.job_type == job_type,
        DesignerAssignment.is_active.is_(True),
    ).update({DesignerAssignment.is_active: False}, synchronize_session=False)

    for index, designer_id in enumerate(designer_ids):
        db.add(DesignerAssignment(job_type=job_type, designer_id=designer_id, priority=index))
    db.commit()
    log.info(f"Designer assignments for {job_type} set to {designer_ids}")
    return list_assignments(db)


def deactivate_assignment(db: Session, assignment_id: int) -> dict:
    row = db.get(DesignerAssignment, assignment_id)
    if not row:
        return {"error": "Assignment not found", "status": 404}
    row.is_active = False
    db.commit()
    return {"success": True}
