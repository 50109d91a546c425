"""File uploads stored in S3-compatible object storage."""

from datetime import datetime, timezone

from sqlalchemy import Column, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from ..database import UTCDateTime
from .base import Base


class FileUpload(Base):
    __tablename__ = "file_uploads"
    id = Column(Integer, primary_key=True)
    # NULL while the file sits under a draft key (jobs/draft_xxx/...)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"))
    uploaded_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    file_name = Column(String(500), nullable=False)
    file_url = Column(Text, nullable=False)
    file_key = Column(Text, nullable=False)
    file_size = Column(Integer)
    mime_type = Column(String(100))
    file_type = Column(String(50), default="input", nullable=False)  # input | output | reference
    created_at = Column(UTCDateTime, default=lambda: datetime.now(timezone.utc), nullable=False)

    job = relationship("Job", back_populates="files")
    uploader = relationship("User", foreign_keys=[uploaded_by])

    __table_args__ = (Index("ix_file_uploads_job_created", "job_id", "created_at"),)
