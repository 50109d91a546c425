"""
schemas/error_reports.py — Client error report payloads

The browser's error boundary posts the thrown error plus React's
component stack; the rest is captured automatically.

Called by: routers/error_reports.py
Depends on: pydantic, schemas/common
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from .common import UTCDatetime


class ReportedError(BaseModel):
    name: str = Field("Error", max_length=255)
    message: str = Field("", max_length=10000)
    stack: str | None = None


class ErrorInfo(BaseModel):
    component_stack: str | None = Field(None, alias="componentStack")

    model_config = {"populate_by_name": True}


class ErrorReportCreate(BaseModel):
    error: ReportedError
    error_info: ErrorInfo | None = None
    url: str | None = Field(None, max_length=2048)
    user_agent: str | None = Field(None, max_length=512)
    timestamp: UTCDatetime | None = None


class StatusUpdate(BaseModel):
    status: str = Field(..., pattern="^(open|in_progress|resolved|closed)$")
    admin_notes: str | None = None
