"""
schemas/email.py — Email template, test-send and resend payloads

Business Rules:
- Template bodies are jinja2 HTML; {{ placeholders }} are filled at send time
- recipient_type is one of client, designer, staff

Called by: routers/email_templates.py, routers/emails.py
Depends on: pydantic
"""

from __future__ import annotations

import re
from typing import Literal

from pydantic import BaseModel, field_validator

_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

RecipientType = Literal["client", "designer", "staff"]


class TemplateCreate(BaseModel):
    name: str
    subject: str
    body: str
    trigger_event: str | None = None
    department_id: int | None = None
    recipient_type: RecipientType | None = None
    is_active: bool = True

    @field_validator("name", "subject", "body")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Field cannot be blank")
        return v


class TemplateUpdate(BaseModel):
    name: str | None = None
    subject: str | None = None
    body: str | None = None
    trigger_event: str | None = None
    department_id: int | None = None
    recipient_type: RecipientType | None = None
    is_active: bool | None = None


class SendTestEmail(BaseModel):
    to: str
    subject: str
    body: str

    @field_validator("to")
    @classmethod
    def email_format(cls, v: str) -> str:
        v = v.strip()
        if not _EMAIL.match(v):
            raise ValueError("Invalid email address")
        return v
