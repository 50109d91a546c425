"""Jobs, status history, extra contacts, and job messages."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from ..database import UTCDateTime
from .base import Base


def _now():
    return datetime.now(timezone.utc)


class Job(Base):
    __tablename__ = "jobs"
    id = Column(Integer, primary_key=True)
    client_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    designer_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    department_id = Column(Integer, ForeignKey("departments.id", ondelete="SET NULL"))
    title = Column(String(500), nullable=False)
    description = Column(Text)

    # Draft → Pending → In Progress → Review → Completed | Cancelled
    status = Column(String(50), default="Draft", nullable=False)
    priority = Column(String(50), default="Medium", nullable=False)  # Low | Medium | High | Urgent
    package_type = Column(String(100))
    due_date = Column(UTCDateTime)
    completed_date = Column(UTCDateTime)
    archived = Column(Boolean, default=False, nullable=False)
    is_draft = Column(Boolean, default=True, nullable=False)

    created_at = Column(UTCDateTime, default=_now, nullable=False)
    updated_at = Column(UTCDateTime, default=_now, nullable=False)
    last_activity_date = Column(UTCDateTime, default=_now, nullable=False)

    client = relationship("User", foreign_keys=[client_id])
    designer = relationship("User", foreign_keys=[designer_id])
    department = relationship("Department")
    files = relationship("FileUpload", back_populates="job", passive_deletes=True)

    __table_args__ = (
        Index("ix_jobs_client_archived", "client_id", "archived"),
        Index("ix_jobs_designer_archived", "designer_id", "archived"),
        Index("ix_jobs_draft_activity", "is_draft", "last_activity_date"),
    )


class JobStatusHistory(Base):
    __tablename__ = "job_status_history"
    id = Column(Integer, primary_key=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False)
    changed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    old_status = Column(String(50))
    new_status = Column(String(50), nullable=False)
    notes = Column(Text)
    created_at = Column(UTCDateTime, default=_now, nullable=False)

    user = relationship("User", foreign_keys=[changed_by])

    __table_args__ = (Index("ix_job_status_history_job", "job_id", "created_at"),)


class JobExtraContact(Base):
    __tablename__ = "job_extra_contacts"
    id = Column(Integer, primary_key=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    added_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(UTCDateTime, default=_now, nullable=False)

    user = relationship("User", foreign_keys=[user_id])

    __table_args__ = (UniqueConstraint("job_id", "user_id", name="uq_job_extra_contact"),)


class Message(Base):
    __tablename__ = "messages"
    id = Column(Integer, primary_key=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    content = Column(Text, nullable=False)
    is_internal = Column(Boolean, default=False, nullable=False)  # hidden from clients
    created_at = Column(UTCDateTime, default=_now, nullable=False)
    updated_at = Column(UTCDateTime, default=_now, onupdate=_now, nullable=False)

    author = relationship("User", foreign_keys=[user_id])

    __table_args__ = (Index("ix_messages_job_created", "job_id", "created_at"),)
