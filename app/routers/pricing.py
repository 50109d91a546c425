"""
routers/pricing.py — Public price list and admin tier/product management

GET /api/pricing is public: the default price list overlaid with the
named tier's products (membership levels map to tiers on the storefront).
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import require_admin
from ..models import User
from ..schemas.pricing import ProductCreate, ProductUpdate, TierCreate, TierUpdate
from ..services import pricing_service

router = APIRouter(tags=["pricing"])


def _raise_on_error(result: dict) -> dict:
    if "error" in result:
        raise HTTPException(result.get("status", 400), result["error"])
    return result


@router.get("/api/pricing")
def public_pricing(tier_name: str | None = Query(None), db: Session = Depends(get_db)):
    return pricing_service.get_public_pricing(db, tier_name)


# ── Tiers ────────────────────────────────────────────────────────────


@router.get("/api/admin/pricing/tiers")
def list_tiers(user: User = Depends(require_admin), db: Session = Depends(get_db)):
    return pricing_service.list_tiers(db)


@router.post("/api/admin/pricing/tiers", status_code=201)
def create_tier(body: TierCreate, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    return _raise_on_error(pricing_service.create_tier(db, body.model_dump()))


@router.patch("/api/admin/pricing/tiers/{tier_id}")
def update_tier(
    tier_id: int,
    body: TierUpdate,
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return _raise_on_error(pricing_service.update_tier(db, tier_id, body.model_dump(exclude_unset=True)))


@router.delete("/api/admin/pricing/tiers/{tier_id}")
def delete_tier(tier_id: int, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    return _raise_on_error(pricing_service.delete_tier(db, tier_id))


# ── Products ─────────────────────────────────────────────────────────


@router.get("/api/admin/pricing/products")
def list_products(user: User = Depends(require_admin), db: Session = Depends(get_db)):
    return pricing_service.list_products(db)


@router.post("/api/admin/pricing/products", status_code=201)
def create_product(body: ProductCreate, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    return _raise_on_error(pricing_service.create_product(db, body.model_dump()))


@router.patch("/api/admin/pricing/products/{product_id}")
def update_product(
    product_id: int,
    body: ProductUpdate,
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return _raise_on_error(
        pricing_service.update_product(db, product_id, body.model_dump(exclude_unset=True))
    )


@router.delete("/api/admin/pricing/products/{product_id}")
def delete_product(product_id: int, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    return _raise_on_error(pricing_service.delete_product(db, product_id))
