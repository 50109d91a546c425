"""
payment_service.py — Stripe PaymentIntents for job intake checkout

Business Rules:
- Prices resolve per tier with fallback to the default price list
- Unknown department product → 404; unknown add-ons are skipped
- An invalid voucher → 400; a valid one is applied and capped to the total
- Intents are created in cents with automatic payment methods; metadata
  carries user_id, department_key, add_ons, voucher_code, tier_name,
  line_items (JSON) so confirm can rebuild the order without the client
- Confirm is idempotent per PaymentIntent id and only records succeeded
  intents; the voucher is redeemed once, on first confirm
- Only the intent's owner (metadata user_id) or staff may confirm, and a
  job is attached only when the caller can access it
- Stripe errors surface as PaymentProviderError (502 at the router)

Called by: routers/payments.py, routers/jobs.py (job payment lookup)
Depends on: stripe, services/pricing_service, services/voucher_service
"""

import json
import logging
from decimal import Decimal

import stripe
from sqlalchemy.orm import Session

from ..config import settings
from ..dependencies import STAFF_ROLES, can_access_job
from ..models import Job, Payment, PaymentLineItem, User, VoucherCode
from .pricing_service import DEFAULT_TIER_NAME, resolve_product
from .voucher_service import calculate_discount, normalize_code, redeem_voucher, validate_voucher

log = logging.getLogger(__name__)


class PaymentProviderError(Exception):
    """Stripe rejected or failed a request."""


def _to_cents(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1")))


def serialize_payment(p: Payment) -> dict:
    return {
        "id": p.id,
        "job_id": p.job_id,
        "user_id": p.user_id,
        "stripe_payment_intent_id": p.stripe_payment_intent_id,
        "stripe_charge_id": p.stripe_charge_id,
        "amount": float(p.amount),
        "currency": p.currency,
        "status": p.status,
        "payment_method": p.payment_method,
        "voucher_code": p.voucher_code,
        "discount_amount": float(p.discount_amount or 0),
        "metadata": p.meta,
        "created_at": p.created_at.isoformat() if p.created_at else None,
        "line_items": [
            {
                "product_key": li.product_key,
                "product_name": li.product_name,
                "quantity": li.quantity,
                "unit_price": float(li.unit_price),
                "total_price": float(li.total_price),
                "item_type": li.item_type,
            }
            for li in p.line_items
        ],
    }


def build_line_items(
    db: Session, department_key: str, add_ons: list[str], tier_name: str
) -> dict:
    """Resolve products into line items. Returns {"line_items", "total"} or an error dict."""
    department = resolve_product(db, department_key, tier_name)
    if not department:
        return {"error": "Department product not found", "status": 404}

    items = [
        {
            "product_key": department.product_key,
            "product_name": department.product_name,
            "price": float(department.price),
            "quantity": 1,
            "type": "department",
        }
    ]
    total = Decimal(department.price)
    for key in add_ons:
        addon = resolve_product(db, key, tier_name)
        if not addon:
            log.warning(f"Skipping unknown add-on '{key}' for tier '{tier_name}'")
            continue
        items.append(
            {
                "product_key": addon.product_key,
                "product_name": addon.product_name,
                "price": float(addon.price),
                "quantity": 1,
                "type": addon.category,
            }
        )
        total += Decimal(addon.price)
    return {"line_items": items, "total": total}


def create_payment_intent(
    db: Session,
    user: User,
    department_key: str,
    add_ons: list[str] | None = None,
    voucher_code: str | None = None,
    tier_name: str | None = None,
) -> dict:
    if not department_key:
        return {"error": "Department is required", "status": 400}
    add_ons = add_ons or []
    tier_name = tier_name or DEFAULT_TIER_NAME

    built = build_line_items(db, department_key, add_ons, tier_name)
    if "error" in built:
        return built
    total = built["total"]

    discount = Decimal("0.00")
    voucher_info = None
    code = normalize_code(voucher_code)
    if code:
        check = validate_voucher(db, code, user=user)
        if not check["valid"]:
            return {"error": check["message"], "status": 400}
        voucher = check["voucher"]
        discount = calculate_discount(voucher, total)
        voucher_info = {
            "code": voucher.code,
            "discount_type": voucher.discount_type,
            "discount_value": float(voucher.discount_value),
        }

    final_amount = max(Decimal(0), total - discount)
    try:
        intent = stripe.PaymentIntent.create(
            api_key=settings.stripe_secret_key,
            amount=_to_cents(final_amount),
            currency=settings.stripe_currency,
            automatic_payment_methods={"enabled": True},
            metadata={
                "user_id": str(user.id),
                "department_key": department_key,
                "add_ons": json.dumps(add_ons),
                "voucher_code": code,
                "tier_name": tier_name,
                "discount": str(discount),
                "line_items": json.dumps(built["line_items"]),
            },
        )
    except stripe.StripeError as e:
        log.error(f"Stripe create-intent failed for user {user.id}: {e}")
        raise PaymentProviderError(e.user_message or str(e)) from e

    log.info(f"PaymentIntent {intent.id} created for user {user.id}: {final_amount}")
    return {
        "client_secret": intent.client_secret,
        "payment_intent_id": intent.id,
        "amount": float(final_amount),
        "line_items": built["line_items"],
        "discount": float(discount),
        "voucher": voucher_info,
    }


def confirm_payment(db: Session, user: User, payment_intent_id: str, job_id: int | None = None) -> dict:
    """Record a succeeded PaymentIntent (idempotent)."""
    if not payment_intent_id:
        return {"error": "Payment Intent ID is required", "status": 400}
    try:
        intent = stripe.PaymentIntent.retrieve(payment_intent_id, api_key=settings.stripe_secret_key)
    except stripe.StripeError as e:
        log.error(f"Stripe retrieve failed for {payment_intent_id}: {e}")
        raise PaymentProviderError(e.user_message or str(e)) from e

    summary = {"id": intent.id, "status": intent.status, "amount": intent.amount / 100}
    if intent.status != "succeeded":
        return {"error": f"Payment not completed (status: {intent.status})", "status": 400}

    metadata = dict(intent.metadata or {})
    user_id = int(metadata["user_id"]) if str(metadata.get("user_id", "")).isdigit() else None
    if user_id is not None and user_id != user.id and user.role not in STAFF_ROLES:
        return {"error": "This payment belongs to another user", "status": 403}
    job = db.get(Job, job_id) if job_id else None
    if job is not None and not can_access_job(user, job):
        return {"error": "You do not have access to this job", "status": 403}

    existing = db.query(Payment).filter(Payment.stripe_payment_intent_id == intent.id).first()
    if existing:
        if job is not None and existing.job_id is None:
            existing.job_id = job.id
            db.commit()
        return {"success": True, "payment": serialize_payment(existing), "payment_intent": summary}

    code = normalize_code(metadata.get("voucher_code"))
    methods = list(getattr(intent, "payment_method_types", None) or [])

    payment = Payment(
        job_id=job.id if job is not None else None,
        user_id=user_id if user_id and db.get(User, user_id) else None,
        stripe_payment_intent_id=intent.id,
        stripe_charge_id=getattr(intent, "latest_charge", None),
        amount=Decimal(intent.amount) / 100,
        currency=intent.currency,
        status="completed",
        payment_method=methods[0] if methods else "card",
        voucher_code=code or None,
        discount_amount=Decimal(metadata.get("discount") or "0"),
        meta={
            "department_key": metadata.get("department_key"),
            "add_ons": metadata.get("add_ons"),
            "voucher_code": code or None,
            "tier_name": metadata.get("tier_name"),
        },
    )
    for item in json.loads(metadata.get("line_items") or "[]"):
        quantity = int(item.get("quantity") or 1)
        price = Decimal(str(item["price"]))
        payment.line_items.append(
            PaymentLineItem(
                product_key=item["product_key"],
                product_name=item.get("product_name"),
                quantity=quantity,
                unit_price=price,
                total_price=price * quantity,
                item_type=item.get("type"),
            )
        )
    db.add(payment)

    if code:
        voucher = db.query(VoucherCode).filter(VoucherCode.code == code).first()
        if voucher:
            redeem_voucher(db, voucher, payment.user_id, intent.id)
    db.commit()
    db.refresh(payment)
    log.info(f"Payment recorded for intent {intent.id} (job {payment.job_id})")
    return {"success": True, "payment": serialize_payment(payment), "payment_intent": summary}


def get_job_payment(db: Session, job_id: int) -> dict:
    payment = (
        db.query(Payment)
        .filter(Payment.job_id == job_id)
        .order_by(Payment.created_at.desc())
        .first()
    )
    if not payment:
        return {"error": "No payment found for this job", "status": 404}
    return serialize_payment(payment)
