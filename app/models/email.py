"""Email templates, inline template images, media library, delivery logs."""

from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from ..database import UTCDateTime
from .base import Base


def _now():
    return datetime.now(timezone.utc)


class EmailTemplate(Base):
    __tablename__ = "email_templates"
    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False, unique=True)
    subject = Column(String(500), nullable=False)
    body = Column(Text, nullable=False)  # HTML with {{ placeholders }}
    trigger_event = Column(String(100), index=True)
    department_id = Column(Integer, ForeignKey("departments.id", ondelete="SET NULL"))
    recipient_type = Column(String(50))  # client | designer | staff
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(UTCDateTime, default=_now, nullable=False)
    updated_at = Column(UTCDateTime, default=_now, onupdate=_now, nullable=False)


class EmailTemplateImage(Base):
    """Inline template images, stored as base64 so templates stay self-contained."""

    __tablename__ = "email_template_images"
    id = Column(Integer, primary_key=True)
    filename = Column(String(255), nullable=False)
    content_type = Column(String(100), nullable=False)
    base64_data = Column(Text, nullable=False)
    size = Column(Integer, nullable=False)
    created_at = Column(UTCDateTime, default=_now, nullable=False)


class EmailMedia(Base):
    __tablename__ = "email_media"
    id = Column(Integer, primary_key=True)
    file_name = Column(String(500), nullable=False)
    file_url = Column(Text, nullable=False)
    file_key = Column(Text, nullable=False)
    file_size = Column(Integer)
    mime_type = Column(String(100))
    uploaded_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(UTCDateTime, default=_now, nullable=False)

    uploader = relationship("User", foreign_keys=[uploaded_by])


class EmailLog(Base):
    __tablename__ = "email_logs"
    id = Column(Integer, primary_key=True)
    recipient = Column(String(320), nullable=False)
    subject = Column(String(500), nullable=False)
    body = Column(Text, nullable=False)
    status = Column(String(20), nullable=False)  # sent | failed | logged
    error = Column(Text)
    message_id = Column(String(255))
    resent_from = Column(Integer, ForeignKey("email_logs.id", ondelete="SET NULL"))
    meta = Column("metadata", JSON)
    sent_at = Column(UTCDateTime, default=_now, nullable=False)

    __table_args__ = (
        Index("ix_email_logs_sent", "sent_at"),
        Index("ix_email_logs_status_sent", "status", "sent_at"),
    )
