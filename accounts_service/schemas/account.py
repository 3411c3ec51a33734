"""
Pydantic schemas for Account endpoints.

Monetary amounts are Decimals with at most two decimal places. In JSON they
are rendered as strings ("150.00") so no client ever parses them as floats.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from accounts_service.models.account import AccountStatus
from accounts_service.money import MAX_DIGITS


class AccountCreateRequest(BaseModel):
    """Request body for POST /api/accounts."""
    mercado_pago_account_id: str = Field(min_length=1, max_length=100)
    initial_balance: Decimal | None = Field(
        default=None,
        ge=0,
        max_digits=MAX_DIGITS,
        decimal_places=2,
        description="Opening balance; zero when omitted",
    )


class AccountUpdateRequest(BaseModel):
    """Request body for PUT /api/accounts/{id}."""
    mercado_pago_account_id: str = Field(min_length=1, max_length=100)


class BalanceRequest(BaseModel):
    """Request body for PUT /api/accounts/{id}/balance."""
    amount: Decimal = Field(gt=0, max_digits=MAX_DIGITS, decimal_places=2, description="Amount to load")


class AccountResponse(BaseModel):
    """Public representation of an account."""
    id: uuid.UUID
    mercado_pago_account_id: str
    balance: Decimal
    status: AccountStatus
    is_active: bool
    cancelled_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class BalanceResponse(BaseModel):
    """Balance of one account after a load/deduct, or on request."""
    account_id: uuid.UUID
    balance: Decimal
