"""Stripe payments and their line items."""

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from ..database import UTCDateTime
from .base import Base


class Payment(Base):
    __tablename__ = "payments"
    id = Column(Integer, primary_key=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="SET NULL"), index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    stripe_payment_intent_id = Column(String(255), nullable=False, unique=True)
    stripe_charge_id = Column(String(255))
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), default="usd", nullable=False)
    status = Column(String(50), default="completed", nullable=False)
    payment_method = Column(String(50))
    voucher_code = Column(String(50))
    discount_amount = Column(Numeric(10, 2), default=0)
    meta = Column("metadata", JSON)
    created_at = Column(UTCDateTime, default=lambda: datetime.now(timezone.utc), nullable=False)

    line_items = relationship(
        "PaymentLineItem", back_populates="payment", cascade="all, delete-orphan"
    )


class PaymentLineItem(Base):
    __tablename__ = "payment_line_items"
    id = Column(Integer, primary_key=True)
    payment_id = Column(Integer, ForeignKey("payments.id", ondelete="CASCADE"), nullable=False)
    product_key = Column(String(100), nullable=False)
    product_name = Column(String(255))
    quantity = Column(Integer, default=1, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)
    item_type = Column(String(50))  # department | addon | rush

    payment = relationship("Payment", back_populates="line_items")
