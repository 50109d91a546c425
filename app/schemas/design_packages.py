"""schemas/design_packages.py — Design package order payloads."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

StepStatus = Literal["locked", "not_started", "in_progress", "completed"]


class PackageCreate(BaseModel):
    order_id: str
    client_id: int | None = None


class PackageUpdate(BaseModel):
    virtual_prototype_status: StepStatus | None = None
    virtual_prototype_job_id: int | None = None
    sell_sheet_status: StepStatus | None = None
    sell_sheet_job_id: int | None = None
