"""
Pydantic schemas for User endpoints.

hashed_password is accepted on creation (the auth service hashes it before
calling us) but is NEVER included in any response schema.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class UserCreateRequest(BaseModel):
    """Request body for POST /api/accounts/users."""
    email: EmailStr
    hashed_password: str = Field(min_length=1, max_length=255)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    phone_number: str | None = Field(default=None, max_length=20)


class UserUpdateRequest(BaseModel):
    """Request body for PUT /api/accounts/users/{id}. Omitted fields are unchanged."""
    email: EmailStr | None = None
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    phone_number: str | None = Field(default=None, max_length=20)


class UserResponse(BaseModel):
    """Public representation of a User with the names of their roles."""
    id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    phone_number: str | None
    roles: list[str]
    created_at: datetime
