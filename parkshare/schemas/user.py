"""
ParkShare Backend — Account Schemas
=====================================

What:  Request/response models for /api/auth (register, login, me).
"""

import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import Field, field_validator

from parkshare.schemas.common import CamelModel

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class RegisterRequest(CamelModel):
    """
    Body of POST /api/auth/register.

    role: renters register as "user", space owners as "owner". Admin
    accounts are provisioned out of band and cannot be self-assigned.
    """
    name: str = Field(min_length=1, max_length=100)
    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    password: str = Field(min_length=6, max_length=128)
    phone: Optional[str] = Field(default=None, max_length=30)
    role: Literal["user", "owner"] = "user"

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class LoginRequest(CamelModel):
    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class UserPublic(CamelModel):
    """Account as returned to its owner; never includes the password hash."""
    id: uuid.UUID
    name: str
    email: str
    phone: Optional[str] = None
    role: str
    created_at: datetime

    model_config = {"from_attributes": True}


class AuthResponse(CamelModel):
    success: bool = True
    message: str
    token: str
    user: UserPublic


class UserEnvelope(CamelModel):
    success: bool = True
    data: UserPublic
