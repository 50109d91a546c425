"""schemas/assignments.py — Designer assignment payloads."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

JobType = Literal["sell_sheets", "virtual_prototypes", "line_drawings"]


class AssignmentSet(BaseModel):
    job_type: JobType
    designer_ids: list[int] = Field(default_factory=list)
