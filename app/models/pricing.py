"""Pricing tiers and per-product prices.

A product row with pricing_tier_id NULL is the default price; tier rows
override it for members of that tier.
"""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from ..database import UTCDateTime
from .base import Base


def _now():
    return datetime.now(timezone.utc)


class PricingTier(Base):
    __tablename__ = "pricing_tiers"
    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False, unique=True)
    display_name = Column(String(255), nullable=False)
    description = Column(Text)
    wordpress_membership_level = Column(String(100))
    is_active = Column(Boolean, default=True, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
    created_at = Column(UTCDateTime, default=_now, nullable=False)
    updated_at = Column(UTCDateTime, default=_now, onupdate=_now, nullable=False)


class ProductPricing(Base):
    __tablename__ = "product_pricing"
    id = Column(Integer, primary_key=True)
    product_key = Column(String(100), nullable=False)
    product_name = Column(String(255), nullable=False)
    product_description = Column(Text)
    category = Column(String(50), nullable=False)  # department | addon | rush
    department_id = Column(Integer, ForeignKey("departments.id", ondelete="SET NULL"))
    pricing_tier_id = Column(Integer, ForeignKey("pricing_tiers.id", ondelete="CASCADE"))
    price = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), default="USD", nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    parent_product_key = Column(String(100))
    created_at = Column(UTCDateTime, default=_now, nullable=False)
    updated_at = Column(UTCDateTime, default=_now, onupdate=_now, nullable=False)

    tier = relationship("PricingTier")

    __table_args__ = (Index("ix_product_pricing_key_tier", "product_key", "pricing_tier_id"),)
