"""
schemas/surveys.py — Client satisfaction survey payload

Ratings are 1-5 and optional individually.

Called by: routers/surveys.py
Depends on: pydantic
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class SurveySubmit(BaseModel):
    job_id: int
    overall_satisfaction: int | None = Field(None, ge=1, le=5)
    communication_rating: int | None = Field(None, ge=1, le=5)
    quality_rating: int | None = Field(None, ge=1, le=5)
    timeliness_rating: int | None = Field(None, ge=1, le=5)
    feedback: str | None = Field(None, max_length=5000)
    would_recommend: bool | None = None
