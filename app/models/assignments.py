"""Designer assignments for automatic job routing by job type."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from ..database import UTCDateTime
from .base import Base


class DesignerAssignment(Base):
    __tablename__ = "designer_assignments"
    id = Column(Integer, primary_key=True)
    job_type = Column(String(100), nullable=False)  # sell_sheets | virtual_prototypes | line_drawings
    designer_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    priority = Column(Integer, default=0, nullable=False)  # lower number assigned first
    created_at = Column(UTCDateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(
        UTCDateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    designer = relationship("User")

    __table_args__ = (Index("ix_designer_assignments_type_active", "job_type", "is_active", "priority"),)
