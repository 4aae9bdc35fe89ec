"""Pydantic schemas for registered users."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from blue_carbon_registry.domain.enums import UserRole
from blue_carbon_registry.schemas.credit import WALLET_PATTERN


class UserCreate(BaseModel):
    """Request body for registering a user."""

    email: str = Field(..., max_length=254, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    name: str = Field(..., min_length=2, max_length=100)
    organization: str | None = Field(default=None, max_length=200)
    role: UserRole = UserRole.COMMUNITY
    wallet_address: str | None = Field(
        default=None, min_length=42, max_length=42, pattern=WALLET_PATTERN
    )

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class UserResponse(BaseModel):
    """Response schema for a user."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    name: str
    organization: str | None
    role: str
    wallet_address: str | None
    created_at: datetime
