"""
routers/design_packages.py — Design package orders (VP → Sell Sheet)

Business Rules:
- Listing requires client_id; clients may only list their own packages
- Staff create packages when a storefront order is paid
- Team members advance step statuses; completion emails go to the client

Called by: main.py (router mount)
Depends on: services/design_package_service, dependencies
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import is_staff, is_team, require_staff, require_team, require_user
from ..models import User
from ..schemas.design_packages import PackageCreate, PackageUpdate
from ..services import design_package_service

router = APIRouter(tags=["design-packages"])


@router.get("/api/design-packages")
def list_packages(
    client_id: int | None = Query(None),
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    if client_id is None:
        raise HTTPException(400, "client_id is required")
    if client_id != user.id and not is_staff(user):
        raise HTTPException(403, "You can only view your own design packages")
    return design_package_service.list_orders(db, client_id)


@router.post("/api/design-packages", status_code=201)
def create_package(body: PackageCreate, user: User = Depends(require_staff), db: Session = Depends(get_db)):
    result = design_package_service.create_order(db, body.order_id, body.client_id)
    if "error" in result:
        raise HTTPException(result["status"], result["error"])
    return result


@router.get("/api/design-packages/{order_id}")
def get_package(order_id: str, user: User = Depends(require_user), db: Session = Depends(get_db)):
    order = design_package_service.get_order(db, order_id)
    if not order:
        raise HTTPException(404, "Design package not found")
    if order.client_id != user.id and not is_team(user):
        raise HTTPException(403, "You do not have access to this design package")
    return design_package_service.serialize_order(order)


@router.patch("/api/design-packages/{order_id}")
async def update_package(
    order_id: str,
    body: PackageUpdate,
    user: User = Depends(require_team),
    db: Session = Depends(get_db),
):
    result = await design_package_service.update_order(db, order_id, body.model_dump(exclude_unset=True))
    if "error" in result:
        raise HTTPException(result["status"], result["error"])
    return result
