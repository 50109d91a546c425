"""
schemas/files.py — File upload, presign and association payloads

job_id accepts either a numeric job id or a draft key ("draft_<token>"),
so it is carried as a string.

Called by: routers/files.py
Depends on: pydantic
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, field_validator

FileType = Literal["input", "output", "reference"]


def _ref_to_str(v):
    return None if v is None else str(v)


class DraftUpload(BaseModel):
    file_name: str = ""
    file_data: str = ""
    mime_type: str = ""


class PresignRequest(BaseModel):
    file_name: str = ""
    mime_type: str = ""
    job_id: str | None = None

    coerce_job = field_validator("job_id", mode="before")(_ref_to_str)


class SaveMetadata(BaseModel):
    file_key: str = ""
    file_name: str = ""
    file_size: int | None = None
    mime_type: str | None = None
    file_type: FileType = "input"
    job_id: str | None = None

    coerce_job = field_validator("job_id", mode="before")(_ref_to_str)


class AssociateDraft(BaseModel):
    draft_job_id: str = ""
    real_job_id: int | None = None
