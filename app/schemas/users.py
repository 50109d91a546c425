"""
schemas/users.py — User management payloads

Business Rules:
- role must be one of client, designer, manager, admin
- email is trimmed and lower-cased

Called by: routers/users.py
Depends on: pydantic
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, field_validator

Role = Literal["client", "designer", "manager", "admin"]


class UserUpdate(BaseModel):
    role: Role | None = None
    is_active: bool | None = None
    name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    address1: str | None = None
    address2: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None
    country: str | None = None

    @field_validator("email")
    @classmethod
    def email_format(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("Invalid email address")
        return v


class UserUpsert(BaseModel):
    open_id: str
    name: str | None = None
    email: str | None = None
    login_method: str | None = None
    role: Role | None = None
    wordpress_id: int | None = None


class WordPressLookup(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def email_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Email is required")
        return v
