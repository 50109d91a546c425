"""Departments API — list (any user), create/update (admin)."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import require_admin, require_user
from ..models import Department, User
from ..schemas.departments import DepartmentCreate, DepartmentUpdate

router = APIRouter(tags=["departments"])


def _department_to_dict(d: Department) -> dict:
    return {
        "id": d.id,
        "name": d.name,
        "description": d.description,
        "color": d.color,
        "is_active": d.is_active,
        "created_at": d.created_at.isoformat() if d.created_at else None,
    }


@router.get("/api/departments")
def list_departments(
    include_inactive: bool = Query(False),
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    q = db.query(Department)
    if not include_inactive:
        q = q.filter(Department.is_active.is_(True))
    return [_department_to_dict(d) for d in q.order_by(Department.name).all()]


@router.post("/api/departments", status_code=201)
def create_department(
    body: DepartmentCreate,
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    department = Department(**body.model_dump())
    db.add(department)
    db.commit()
    db.refresh(department)
    return _department_to_dict(department)


@router.patch("/api/departments/{department_id}")
def update_department(
    department_id: int,
    body: DepartmentUpdate,
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    department = db.get(Department, department_id)
    if not department:
        raise HTTPException(404, "Department not found")
    for key, value in body.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(department, key, value)
    db.commit()
    db.refresh(department)
    return _department_to_dict(department)
