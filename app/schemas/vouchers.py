"""
schemas/vouchers.py — Voucher code payloads

Business Rules:
- code is upper-cased by the service
- discount_type is percentage or fixed; value must be positive
- validity window datetimes without a timezone are taken as UTC

Called by: routers/vouchers.py
Depends on: pydantic, schemas/common
"""

from __future__ import annotations

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

from .common import UTCDatetime

DiscountType = Literal["percentage", "fixed"]


class VoucherCreate(BaseModel):
    code: str
    discount_type: DiscountType
    discount_value: Decimal = Field(..., gt=0)
    max_uses: int | None = Field(None, ge=1)
    uses_per_user: int | None = Field(None, ge=1)
    valid_from: UTCDatetime | None = None
    valid_until: UTCDatetime | None = None
    is_active: bool = True


class VoucherUpdate(BaseModel):
    code: str | None = None
    discount_type: DiscountType | None = None
    discount_value: Decimal | None = Field(None, gt=0)
    max_uses: int | None = Field(None, ge=1)
    uses_per_user: int | None = Field(None, ge=1)
    valid_from: UTCDatetime | None = None
    valid_until: UTCDatetime | None = None
    is_active: bool | None = None


class VoucherValidate(BaseModel):
    code: str = ""
