"""
schemas/responses.py — Shared response models for OpenAPI documentation

Used as response_model= on router decorators where the payload shape is
stable enough to document.

Called by: main.py (health, error handlers), routers/auth.py, routers/users.py
Depends on: pydantic
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class OkResponse(BaseModel):
    success: bool = True


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str


class UserListResponse(BaseModel):
    success: bool = True
    users: list[dict] = Field(default_factory=list)
    count: int = 0


class ErrorResponse(BaseModel):
    """Body of every error reply; detail carries per-field validation errors."""

    error: str
    status_code: int
    request_id: str = ""
    detail: list[dict] | None = None
