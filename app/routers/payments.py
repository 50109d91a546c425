"""
routers/payments.py — Stripe checkout: create intent, confirm payment

Stripe failures raise PaymentProviderError, which main.py turns into 502
with Stripe's message.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import require_user
from ..models import User
from ..schemas.payments import ConfirmPayment, CreateIntent
from ..services.payment_service import confirm_payment, create_payment_intent

router = APIRouter(tags=["payments"])


@router.post("/api/payment/create-intent")
def create_intent(body: CreateIntent, user: User = Depends(require_user), db: Session = Depends(get_db)):
    result = create_payment_intent(
        db, user, body.department_key, body.add_ons, body.voucher_code, body.tier_name
    )
    if "error" in result:
        raise HTTPException(result["status"], result["error"])
    return result


@router.post("/api/payment/confirm")
def confirm(body: ConfirmPayment, user: User = Depends(require_user), db: Session = Depends(get_db)):
    result = confirm_payment(db, user, body.payment_intent_id, body.job_id)
    if "error" in result:
        raise HTTPException(result["status"], result["error"])
    return result
