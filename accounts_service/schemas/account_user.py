"""
Pydantic schemas for the account-user association endpoints.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel

from accounts_service.schemas.account import AccountResponse
from accounts_service.schemas.user import UserResponse


class AccountUserResponse(BaseModel):
    """One (account, user) association."""
    id: int
    account_id: uuid.UUID
    user_id: uuid.UUID
    created_at: datetime

    model_config = {"from_attributes": True}


class UsersByAccountResponse(BaseModel):
    account_id: uuid.UUID
    users: list[UserResponse]


class AccountsByUserResponse(BaseModel):
    user_id: uuid.UUID
    accounts: list[AccountResponse]

    model_config = {"from_attributes": True}
