"""
schemas/pricing.py — Pricing tier and product payloads

Called by: routers/pricing.py
Depends on: pydantic
"""

from __future__ import annotations

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

Category = Literal["department", "addon", "rush"]


class TierCreate(BaseModel):
    name: str
    display_name: str
    description: str | None = None
    wordpress_membership_level: str | None = None
    is_active: bool = True
    sort_order: int = 0


class TierUpdate(BaseModel):
    name: str | None = None
    display_name: str | None = None
    description: str | None = None
    wordpress_membership_level: str | None = None
    is_active: bool | None = None
    sort_order: int | None = None


class ProductCreate(BaseModel):
    product_key: str
    product_name: str
    product_description: str | None = None
    category: Category
    department_id: int | None = None
    pricing_tier_id: int | None = None
    price: Decimal = Field(..., ge=0)
    currency: str = "USD"
    is_active: bool = True
    parent_product_key: str | None = None


class ProductUpdate(BaseModel):
    product_name: str | None = None
    product_description: str | None = None
    category: Category | None = None
    department_id: int | None = None
    pricing_tier_id: int | None = None
    price: Decimal | None = Field(None, ge=0)
    currency: str | None = None
    is_active: bool | None = None
    parent_product_key: str | None = None
