"""Pricing tiers and product prices.

Rows with pricing_tier_id NULL are the default price list. A named tier
overrides individual products; anything it does not override falls back
to the default price.
"""

import logging
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models import PricingTier, ProductPricing

log = logging.getLogger(__name__)

DEFAULT_TIER_NAME = "Default Pricing"

_TIER_FIELDS = ("name", "display_name", "description", "wordpress_membership_level", "is_active", "sort_order")
_PRODUCT_FIELDS = (
    "product_key", "product_name", "product_description", "category", "department_id",
    "pricing_tier_id", "price", "currency", "is_active", "parent_product_key",
)


def serialize_tier(t: PricingTier) -> dict:
    return {
        "id": t.id,
        "name": t.name,
        "display_name": t.display_name,
        "description": t.description,
        "wordpress_membership_level": t.wordpress_membership_level,
        "is_active": t.is_active,
        "sort_order": t.sort_order,
    }


def serialize_product(p: ProductPricing, parent_name: str | None = None) -> dict:
    return {
        "id": p.id,
        "product_key": p.product_key,
        "product_name": p.product_name,
        "product_description": p.product_description,
        "category": p.category,
        "department_id": p.department_id,
        "pricing_tier_id": p.pricing_tier_id,
        "price": float(p.price),
        "currency": p.currency,
        "is_active": p.is_active,
        "parent_product_key": p.parent_product_key,
        "parent_product_name": parent_name,
    }


# ── Tiers ────────────────────────────────────────────────────────────


def list_tiers(db: Session) -> list[dict]:
    rows = db.query(PricingTier).order_by(PricingTier.sort_order, PricingTier.name).all()
    return [serialize_tier(t) for t in rows]


def get_tier_by_name(db: Session, name: str | None, active_only: bool = False) -> PricingTier | None:
    if not name:
        return None
    q = db.query(PricingTier).filter(PricingTier.name == name)
    if active_only:
        q = q.filter(PricingTier.is_active.is_(True))
    return q.first()


def create_tier(db: Session, data: dict) -> dict:
    name = (data.get("name") or "").strip()
    if not name or not (data.get("display_name") or "").strip():
        return {"error": "Name and display name are required", "status": 400}
    if get_tier_by_name(db, name):
        return {"error": "A pricing tier with this name already exists", "status": 409}
    tier = PricingTier(**{k: v for k, v in data.items() if k in _TIER_FIELDS and v is not None})
    tier.name = name
    db.add(tier)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return {"error": "A pricing tier with this name already exists", "status": 409}
    db.refresh(tier)
    log.info(f"Pricing tier '{name}' created")
    return serialize_tier(tier)


def update_tier(db: Session, tier_id: int, updates: dict) -> dict:
    tier = db.get(PricingTier, tier_id)
    if not tier:
        return {"error": "Pricing tier not found", "status": 404}
    new_name = updates.get("name")
    if new_name and new_name != tier.name:
        clash = get_tier_by_name(db, new_name)
        if clash and clash.id != tier_id:
            return {"error": "A pricing tier with this name already exists", "status": 409}
    for key, value in updates.items():
        if key in _TIER_FIELDS and value is not None:
            setattr(tier, key, value)
    db.commit()
    return serialize_tier(tier)


def delete_tier(db: Session, tier_id: int) -> dict:
    tier = db.get(PricingTier, tier_id)
    if not tier:
        return {"error": "Pricing tier not found", "status": 404}
    db.delete(tier)
    db.commit()
    return {"success": True}


# ── Products ─────────────────────────────────────────────────────────


def list_products(db: Session) -> list[dict]:
    """All products ordered by category then name, with parent product names."""
    rows = db.query(ProductPricing).order_by(ProductPricing.category, ProductPricing.product_name).all()
    names = {p.product_key: p.product_name for p in rows}
    return [
        serialize_product(p, names.get(p.parent_product_key) if p.parent_product_key else None)
        for p in rows
    ]


def create_product(db: Session, data: dict) -> dict:
    required = ("product_key", "product_name", "category")
    if any(not (data.get(k) or "").strip() for k in required) or data.get("price") is None:
        return {"error": "Product key, name, category, and price are required", "status": 400}
    if Decimal(str(data["price"])) < 0:
        return {"error": "Price cannot be negative", "status": 400}
    if data.get("pricing_tier_id") and not db.get(PricingTier, data["pricing_tier_id"]):
        return {"error": "Pricing tier not found", "status": 404}

    product = ProductPricing(**{k: v for k, v in data.items() if k in _PRODUCT_FIELDS and v is not None})
    product.price = Decimal(str(data["price"]))
    db.add(product)
    db.commit()
    db.refresh(product)
    return serialize_product(product)


def update_product(db: Session, product_id: int, updates: dict) -> dict:
    product = db.get(ProductPricing, product_id)
    if not product:
        return {"error": "Product not found", "status": 404}
    if updates.get("price") is not None and Decimal(str(updates["price"])) < 0:
        return {"error": "Price cannot be negative", "status": 400}
    for key, value in updates.items():
        if key in _PRODUCT_FIELDS and value is not None:
            setattr(product, key, Decimal(str(value)) if key == "price" else value)
    db.commit()
    return serialize_product(product)


def delete_product(db: Session, product_id: int) -> dict:
    product = db.get(ProductPricing, product_id)
    if not product:
        return {"error": "Product not found", "status": 404}
    db.delete(product)
    db.commit()
    return {"success": True}


# ── Price lookup ─────────────────────────────────────────────────────


def resolve_product(db: Session, product_key: str, tier_name: str | None = None) -> ProductPricing | None:
    """Active product for the tier, falling back to the default price list."""
    tier = get_tier_by_name(db, tier_name, active_only=True)
    if tier is not None:
        tiered = (
            db.query(ProductPricing)
            .filter(
                ProductPricing.product_key == product_key,
                ProductPricing.pricing_tier_id == tier.id,
                ProductPricing.is_active.is_(True),
            )
            .first()
        )
        if tiered:
            return tiered
    return (
        db.query(ProductPricing)
        .filter(
            ProductPricing.product_key == product_key,
            ProductPricing.pricing_tier_id.is_(None),
            ProductPricing.is_active.is_(True),
        )
        .first()
    )


def get_public_pricing(db: Session, tier_name: str | None = None) -> dict:
    """{pricing: {product_key: price}, products: [...]} for the default list overlaid with a tier."""
    by_key = {
        p.product_key: p
        for p in db.query(ProductPricing)
        .filter(ProductPricing.pricing_tier_id.is_(None), ProductPricing.is_active.is_(True))
        .all()
    }
    tier = get_tier_by_name(db, tier_name, active_only=True)
    if tier is not None:
        for p in (
            db.query(ProductPricing)
            .filter(ProductPricing.pricing_tier_id == tier.id, ProductPricing.is_active.is_(True))
            .all()
        ):
            by_key[p.product_key] = p

    products = sorted(by_key.values(), key=lambda p: (p.category, p.product_name))
    return {
        "pricing": {p.product_key: float(p.price) for p in products},
        "products": [serialize_product(p) for p in products],
    }
