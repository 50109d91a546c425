"""Client-side error reports, persisted and forwarded to support."""

from datetime import datetime, timezone

from sqlalchemy import Column, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from ..database import UTCDateTime
from .base import Base


class ErrorReport(Base):
    __tablename__ = "error_reports"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    error_name = Column(String(255), nullable=False)
    error_message = Column(Text, nullable=False)
    stack = Column(Text)
    component_stack = Column(Text)

    # Auto-captured context
    url = Column(String(2048))
    user_agent = Column(String(512))
    reporter_email = Column(String(320))
    occurred_at = Column(UTCDateTime)

    # Status workflow: open → in_progress → resolved | closed
    status = Column(String(20), default="open", nullable=False)
    admin_notes = Column(Text)
    resolved_at = Column(UTCDateTime)

    created_at = Column(UTCDateTime, default=lambda: datetime.now(timezone.utc))

    reporter = relationship("User", foreign_keys=[user_id])

    __table_args__ = (Index("ix_error_reports_status_created", "status", "created_at"),)
