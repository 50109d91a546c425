"""schemas/payments.py — Stripe checkout payloads."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CreateIntent(BaseModel):
    department_key: str = ""
    add_ons: list[str] = Field(default_factory=list)
    voucher_code: str | None = None
    tier_name: str = "Default Pricing"


class ConfirmPayment(BaseModel):
    payment_intent_id: str = ""
    job_id: int | None = None
