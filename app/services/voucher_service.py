"""Voucher codes — validation, discount math, redemption, admin CRUD.

Business Rules:
- Codes are trimmed and upper-cased on write and on lookup
- Validation order: missing → unknown → inactive → not yet valid →
  expired → max uses reached → per-user limit reached
- percentage discount = amount * value / 100; fixed = value; always
  capped to the amount, never negative, rounded to cents
- Redemption inserts a voucher_usage row and bumps used_count in SQL

Called by: routers/vouchers.py, services/payment_service.py
Depends on: models.VoucherCode, models.VoucherUsage
"""

import logging
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models import User, VoucherCode, VoucherUsage

log = logging.getLogger(__name__)

DISCOUNT_TYPES = ("percentage", "fixed")
_CENT = Decimal("0.01")
_EDITABLE = (
    "code", "discount_type", "discount_value", "max_uses", "uses_per_user",
    "valid_from", "valid_until", "is_active",
)
_NULLABLE = ("max_uses", "uses_per_user", "valid_from", "valid_until")


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


def serialize_voucher(v: VoucherCode) -> dict:
    return {
        "id": v.id,
        "code": v.code,
        "discount_type": v.discount_type,
        "discount_value": float(v.discount_value),
        "max_uses": v.max_uses,
        "uses_per_user": v.uses_per_user,
        "used_count": v.used_count,
        "valid_from": v.valid_from.isoformat() if v.valid_from else None,
        "valid_until": v.valid_until.isoformat() if v.valid_until else None,
        "is_active": v.is_active,
        "created_at": v.created_at.isoformat() if v.created_at else None,
    }


# ── Validation & Discount ────────────────────────────────────────────


def validate_voucher(
    db: Session, code: str | None, user: User | None = None, now: datetime | None = None
) -> dict:
    """Return {"valid": bool, "message": str, "voucher": VoucherCode | None}."""
    code = normalize_code(code)
    if not code:
        return {"valid": False, "message": "Voucher code is required", "voucher": None}

    voucher = db.query(VoucherCode).filter(VoucherCode.code == code).first()
    if not voucher:
        return {"valid": False, "message": "Invalid voucher code", "voucher": None}
    if not voucher.is_active:
        return {"valid": False, "message": "Voucher is not active", "voucher": None}

    now = now or datetime.now(timezone.utc)
    if voucher.valid_from and voucher.valid_from > now:
        return {"valid": False, "message": "Voucher not yet valid", "voucher": None}
    if voucher.valid_until and voucher.valid_until < now:
        return {"valid": False, "message": "Voucher has expired", "voucher": None}
    if voucher.max_uses is not None and voucher.used_count >= voucher.max_uses:
        return {"valid": False, "message": "Voucher usage limit reached", "voucher": None}

    if user is not None and voucher.uses_per_user is not None:
        used_by_user = (
            db.query(func.count(VoucherUsage.id))
            .filter(VoucherUsage.voucher_id == voucher.id, VoucherUsage.user_id == user.id)
            .scalar()
        )
        if used_by_user >= voucher.uses_per_user:
            return {"valid": False, "message": "You have already used this voucher", "voucher": None}

    return {"valid": True, "message": "Voucher is valid", "voucher": voucher}


def calculate_discount(voucher: VoucherCode, amount) -> Decimal:
    amount = Decimal(str(amount))
    value = Decimal(str(voucher.discount_value))
    if voucher.discount_type == "percentage":
        discount = amount * value / Decimal(100)
    else:
        discount = value
    discount = max(Decimal(0), min(discount, amount))
    return discount.quantize(_CENT, rounding=ROUND_HALF_UP)


def redeem_voucher(db: Session, voucher: VoucherCode, user_id: int | None, order_id: str | None) -> None:
    """Record a use. Caller commits."""
    db.add(VoucherUsage(voucher_id=voucher.id, user_id=user_id, order_id=order_id))
    db.query(VoucherCode).filter(VoucherCode.id == voucher.id).update(
        {VoucherCode.used_count: VoucherCode.used_count + 1}, synchronize_session=False
    )
    log.info(f"Voucher {voucher.code} redeemed by user {user_id} for order {order_id}")


# ── Admin CRUD ───────────────────────────────────────────────────────


def _check_discount(discount_type: str, value) -> str | None:
    if discount_type not in DISCOUNT_TYPES:
        return f"Discount type must be one of: {', '.join(DISCOUNT_TYPES)}"
    if value is None or Decimal(str(value)) <= 0:
        return "Discount value must be greater than 0"
    if discount_type == "percentage" and Decimal(str(value)) > 100:
        return "Percentage discount cannot exceed 100"
    return None


def list_vouchers(db: Session) -> list[dict]:
    return [serialize_voucher(v) for v in db.query(VoucherCode).order_by(VoucherCode.created_at.desc()).all()]


def create_voucher(db: Session, data: dict) -> dict:
    code = normalize_code(data.get("code"))
    if not code or not data.get("discount_type") or data.get("discount_value") is None:
        return {"error": "Code, discount type, and discount value are required", "status": 400}
    problem = _check_discount(data["discount_type"], data["discount_value"])
    if problem:
        return {"error": problem, "status": 400}
    if db.query(VoucherCode).filter(VoucherCode.code == code).first():
        return {"error": "Voucher code already exists", "status": 409}

    voucher = VoucherCode(
        code=code,
        discount_type=data["discount_type"],
        discount_value=Decimal(str(data["discount_value"])),
        max_uses=data.get("max_uses"),
        uses_per_user=data.get("uses_per_user"),
        valid_from=data.get("valid_from"),
        valid_until=data.get("valid_until"),
        is_active=True if data.get("is_active") is None else data["is_active"],
        used_count=0,
    )
    db.add(voucher)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return {"error": "Voucher code already exists", "status": 409}
    db.refresh(voucher)
    log.info(f"Voucher {code} created")
    return serialize_voucher(voucher)


def get_voucher(db: Session, voucher_id: int) -> dict:
    voucher = db.get(VoucherCode, voucher_id)
    if not voucher:
        return {"error": "Voucher not found", "status": 404}
    return serialize_voucher(voucher)


def update_voucher(db: Session, voucher_id: int, updates: dict) -> dict:
    voucher = db.get(VoucherCode, voucher_id)
    if not voucher:
        return {"error": "Voucher not found", "status": 404}

    updates = {
        k: v for k, v in updates.items() if k in _EDITABLE and (v is not None or k in _NULLABLE)
    }
    if "code" in updates:
        updates["code"] = normalize_code(updates["code"])
        clash = (
            db.query(VoucherCode)
            .filter(VoucherCode.code == updates["code"], VoucherCode.id != voucher_id)
            .first()
        )
        if clash:
            return {"error": "Voucher code already exists", "status": 409}
    if "discount_type" in updates or "discount_value" in updates:
        problem = _check_discount(
            updates.get("discount_type", voucher.discount_type),
            updates.get("discount_value", voucher.discount_value),
        )
        if problem:
            return {"error": problem, "status": 400}

    for key, value in updates.items():
        setattr(voucher, key, value)
    db.commit()
    db.refresh(voucher)
    return serialize_voucher(voucher)


def delete_voucher(db: Session, voucher_id: int) -> dict:
    voucher = db.get(VoucherCode, voucher_id)
    if not voucher:
        return {"error": "Voucher not found", "status": 404}
    db.delete(voucher)
    db.commit()
    log.info(f"Voucher {voucher.code} deleted")
    return {"success": True}
