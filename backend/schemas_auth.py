"""
backend/schemas_auth.py

Pydantic schemas for registration, login and password reset.
Emails are normalised here; routes_auth.py applies the email and password
rules so failures surface as 400 validation errors.
"""

from __future__ import annotations

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

try:
    from backend.models import UserRole
except ModuleNotFoundError:
    from models import UserRole


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PASSWORD_PATTERN = re.compile(r"^(?=.*[A-Za-z])(?=.*\d).{8,}$")
PASSWORD_RULE = "Password must be at least 8 characters and contain a letter and a number"


def normalize_email(value: str) -> str:
    return (value or "").strip().lower()


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email or ""))


def is_strong_password(password: str) -> bool:
    return bool(PASSWORD_PATTERN.match(password or ""))


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=120, description="Display name")
    email: str = Field(..., max_length=254, description="Login email (case-insensitive)")
    password: str = Field(..., description="At least 8 characters with a letter and a digit")
    role: UserRole = Field(UserRole.admin, description="admin (landlord) or tenant")

    @field_validator("name", mode="before")
    @classmethod
    def trim_name(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("email")
    @classmethod
    def normalize(cls, v):
        return normalize_email(v)


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize(cls, v):
        return normalize_email(v)


class ForgotPasswordRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def normalize(cls, v):
        return normalize_email(v)


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    new_password: str


class UserProfile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    email: str
    role: str
    created_at: Optional[str] = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserProfile


class MessageResponse(BaseModel):
    message: str
