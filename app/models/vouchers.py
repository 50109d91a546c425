"""Voucher codes and per-order redemption records."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, ForeignKey, Index, Integer, Numeric, String

from ..database import UTCDateTime
from .base import Base


def _now():
    return datetime.now(timezone.utc)


class VoucherCode(Base):
    __tablename__ = "voucher_codes"
    id = Column(Integer, primary_key=True)
    code = Column(String(50), nullable=False, unique=True)  # always upper-case
    discount_type = Column(String(20), nullable=False)  # percentage | fixed
    discount_value = Column(Numeric(10, 2), nullable=False)
    max_uses = Column(Integer)  # NULL = unlimited
    uses_per_user = Column(Integer)  # NULL = unlimited
    used_count = Column(Integer, default=0, nullable=False)
    valid_from = Column(UTCDateTime)
    valid_until = Column(UTCDateTime)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(UTCDateTime, default=_now, nullable=False)
    updated_at = Column(UTCDateTime, default=_now, onupdate=_now, nullable=False)


class VoucherUsage(Base):
    __tablename__ = "voucher_usage"
    id = Column(Integer, primary_key=True)
    voucher_id = Column(Integer, ForeignKey("voucher_codes.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    order_id = Column(String(255))
    used_date = Column(UTCDateTime, default=_now, nullable=False)

    __table_args__ = (Index("ix_voucher_usage_voucher_user", "voucher_id", "user_id"),)
