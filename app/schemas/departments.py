"""schemas/departments.py — Department create/update payloads."""

from __future__ import annotations

import re

from pydantic import BaseModel, field_validator

_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


def _check_color(v: str | None) -> str | None:
    if v is not None and not _HEX_COLOR.match(v):
        raise ValueError("Color must be a hex value like #RRGGBB")
    return v


class DepartmentCreate(BaseModel):
    name: str
    description: str | None = None
    color: str | None = None
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Department name is required")
        return v

    @field_validator("color")
    @classmethod
    def color_hex(cls, v: str | None) -> str | None:
        return _check_color(v)


class DepartmentUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    color: str | None = None
    is_active: bool | None = None

    @field_validator("color")
    @classmethod
    def color_hex(cls, v: str | None) -> str | None:
        return _check_color(v)
