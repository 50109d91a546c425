"""Design package orders — Virtual Prototype then Sell Sheet.

Business Rules:
- New orders start with VP not_started, sell sheet locked, package active
- VP completed → stamp completion, unlock sell sheet (not_started), email client
- Sell sheet completed → stamp completion, package completed, email client
- Notification failures are logged and never fail the update

Called by: routers/design_packages.py
Depends on: models.DesignPackageOrder, services/email_service
"""

from datetime import datetime, timezone

from loguru import logger
from sqlalchemy.orm import Session

from ..config import settings
from ..models import DesignPackageOrder, User
from .email_service import render_notification, send_email

STATUSES = ("locked", "not_started", "in_progress", "completed")


def serialize_order(o: DesignPackageOrder) -> dict:
    def iso(value):
        return value.isoformat() if value else None

    return {
        "id": o.id,
        "order_id": o.order_id,
        "client_id": o.client_id,
        "virtual_prototype_status": o.virtual_prototype_status,
        "virtual_prototype_job_id": o.virtual_prototype_job_id,
        "virtual_prototype_completed_at": iso(o.virtual_prototype_completed_at),
        "sell_sheet_status": o.sell_sheet_status,
        "sell_sheet_job_id": o.sell_sheet_job_id,
        "sell_sheet_completed_at": iso(o.sell_sheet_completed_at),
        "package_status": o.package_status,
        "purchase_date": iso(o.purchase_date),
    }


def list_orders(db: Session, client_id: int) -> list[dict]:
    rows = (
        db.query(DesignPackageOrder)
        .filter(DesignPackageOrder.client_id == client_id)
        .order_by(DesignPackageOrder.purchase_date.desc())
        .all()
    )
    return [serialize_order(o) for o in rows]


def get_order(db: Session, order_id: str) -> DesignPackageOrder | None:
    return db.query(DesignPackageOrder).filter(DesignPackageOrder.order_id == order_id).first()


def create_order(db: Session, order_id: str, client_id: int | None) -> dict:
    order_id = (order_id or "").strip()
    if not order_id:
        return {"error": "Order ID is required", "status": 400}
    if get_order(db, order_id):
        return {"error": "Design package already exists for this order", "status": 409}
    order = DesignPackageOrder(
        order_id=order_id,
        client_id=client_id,
        virtual_prototype_status="not_started",
        sell_sheet_status="locked",
        package_status="active",
    )
    db.add(order)
    db.commit()
    db.refresh(order)
    logger.info("Design package created for order {}", order_id)
    return serialize_order(order)


async def _notify_client(db: Session, order: DesignPackageOrder, subject: str, template: str) -> None:
    client = db.get(User, order.client_id) if order.client_id else None
    if not client or not client.email:
        return
    link = f"{settings.app_url}/design-package/{order.order_id}"
    result = await send_email(
        db, client.email, subject, render_notification(template, link=link),
        metadata={"order_id": order.order_id, "kind": template},
    )
    if not result["success"]:
        logger.error("Design package email for order {} failed: {}", order.order_id, result["error"])


async def update_order(db: Session, order_id: str, updates: dict) -> dict:
    order = get_order(db, order_id)
    if not order:
        return {"error": "Design package not found", "status": 404}

    vp_status = updates.get("virtual_prototype_status")
    ss_status = updates.get("sell_sheet_status")
    for value in (vp_status, ss_status):
        if value is not None and value not in STATUSES:
            return {"error": f"Invalid status. Must be one of: {', '.join(STATUSES)}", "status": 400}

    now = datetime.now(timezone.utc)
    notify = []

    if vp_status is not None:
        order.virtual_prototype_status = vp_status
        if vp_status == "completed":
            order.virtual_prototype_completed_at = now
            order.sell_sheet_status = "not_started"
            notify.append(("Virtual Prototype Complete - Start Your Sell Sheet", "vp_complete.html"))
    if updates.get("virtual_prototype_job_id") is not None:
        order.virtual_prototype_job_id = updates["virtual_prototype_job_id"]

    if ss_status is not None:
        order.sell_sheet_status = ss_status
        if ss_status == "completed":
            order.sell_sheet_completed_at = now
            order.package_status = "completed"
            notify.append(("Design Package Complete!", "package_complete.html"))
    if updates.get("sell_sheet_job_id") is not None:
        order.sell_sheet_job_id = updates["sell_sheet_job_id"]

    db.commit()
    db.refresh(order)

    for subject, template in notify:
        await _notify_client(db, order, subject, template)
    return serialize_order(order)
