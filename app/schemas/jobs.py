"""
schemas/jobs.py — Job, draft and extra-contact payloads

Business Rules:
- priority is one of Low, Medium, High, Urgent
- description may be plain text or a structured intake object; objects
  are stored as JSON text by the service
- due_date without a timezone is taken as UTC

Called by: routers/jobs.py
Depends on: pydantic, schemas/common
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, field_validator

from .common import UTCDatetime

Priority = Literal["Low", "Medium", "High", "Urgent"]


class JobCreate(BaseModel):
    title: str
    description: Any = None
    department_id: int | None = None
    designer_id: int | None = None
    package_type: str | None = None
    priority: Priority = "Medium"
    due_date: UTCDatetime | None = None
    is_draft: bool | None = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title is required")
        return v


class JobUpdate(BaseModel):
    title: str | None = None
    description: Any = None
    status: str | None = None
    notes: str | None = None
    priority: Priority | None = None
    designer_id: int | None = None
    department_id: int | None = None
    package_type: str | None = None
    due_date: UTCDatetime | None = None
    archived: bool | None = None
    is_draft: bool | None = None


class DraftCreate(BaseModel):
    title: str | None = None
    description: Any = None
    department_id: int | None = None
    package_type: str | None = None
    priority: Priority | None = None
    due_date: UTCDatetime | None = None


class DraftUpdate(BaseModel):
    job_id: int
    title: str | None = None
    description: Any = None
    department_id: int | None = None
    package_type: str | None = None
    priority: Priority | None = None
    due_date: UTCDatetime | None = None
    designer_id: int | None = None
    make_active: bool = False


class ExtraContactCreate(BaseModel):
    user_id: int

