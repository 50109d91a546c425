"""Client satisfaction surveys."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, ForeignKey, Integer, Text

from ..database import UTCDateTime
from .base import Base


class Survey(Base):
    __tablename__ = "surveys"
    id = Column(Integer, primary_key=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="SET NULL"), unique=True)
    client_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    overall_satisfaction = Column(Integer)  # 1-5
    communication_rating = Column(Integer)
    quality_rating = Column(Integer)
    timeliness_rating = Column(Integer)
    feedback = Column(Text)
    would_recommend = Column(Boolean)
    completed_at = Column(UTCDateTime)
    created_at = Column(UTCDateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
