"""
schemas/auth.py — Login, token refresh and password reset payloads

Fields default to empty so missing values reach the service and come back
as 400s with a readable message rather than 422 validation errors.

Called by: routers/auth.py
Depends on: pydantic
"""

from __future__ import annotations

from pydantic import BaseModel


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


class TokenRequest(BaseModel):
    token: str = ""


class ResetPasswordRequest(BaseModel):
    token: str = ""
    email: str = ""
    password: str = ""


class GenerateTokenRequest(BaseModel):
    user_id: int


class SendResetRequest(BaseModel):
    email: str
    token: str


class AuthResponse(BaseModel):
    success: bool = True
    token: str
    user: dict
