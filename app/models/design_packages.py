"""Design package orders: a virtual prototype followed by a sell sheet."""

from datetime import datetime, timezone

from sqlalchemy import Column, ForeignKey, Integer, String

from ..database import UTCDateTime
from .base import Base


def _now():
    return datetime.now(timezone.utc)


class DesignPackageOrder(Base):
    __tablename__ = "design_package_orders"
    id = Column(Integer, primary_key=True)
    order_id = Column(String(255), nullable=False, unique=True)  # storefront order number
    client_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True)

    # locked → not_started → in_progress → completed
    virtual_prototype_status = Column(String(50), default="not_started", nullable=False)
    virtual_prototype_job_id = Column(Integer, ForeignKey("jobs.id", ondelete="SET NULL"))
    virtual_prototype_completed_at = Column(UTCDateTime)
    sell_sheet_status = Column(String(50), default="locked", nullable=False)
    sell_sheet_job_id = Column(Integer, ForeignKey("jobs.id", ondelete="SET NULL"))
    sell_sheet_completed_at = Column(UTCDateTime)

    package_status = Column(String(50), default="active", nullable=False)  # active | completed
    purchase_date = Column(UTCDateTime, default=_now, nullable=False)
    created_at = Column(UTCDateTime, default=_now, nullable=False)
    updated_at = Column(UTCDateTime, default=_now, onupdate=_now, nullable=False)
