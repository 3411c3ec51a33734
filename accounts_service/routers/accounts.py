"""
Accounts router — account lifecycle and balance endpoints.

    POST   /api/accounts                        — Create an account
    GET    /api/accounts                        — List all accounts
    GET    /api/accounts/active                 — List active accounts
    GET    /api/accounts/{id}                   — Get one account
    PUT    /api/accounts/{id}                   — Update the payment reference
    PUT    /api/accounts/{id}/cancel            — Cancel the account
    PUT    /api/accounts/{id}/balance           — Load balance (top-up)
    GET    /api/accounts/{id}/balance           — Current balance
    PUT    /api/accounts/{id}/balance/deduct    — Deduct balance (?amount=)
    GET    /api/accounts/{id}/active            — Is the account active?
    DELETE /api/accounts/{id}                   — Delete permanently

Who may call what (e.g. deduct is meant for the trip service) is enforced
by the gateway in front of this service, not here.
"""

import uuid
from decimal import Decimal

from fastapi import APIRouter, Depends, Query, Response, status

from accounts_service.database import get_store
from accounts_service.money import MAX_DIGITS
from accounts_service.schemas.account import (
    AccountCreateRequest,
    AccountResponse,
    AccountUpdateRequest,
    BalanceRequest,
    BalanceResponse,
)
from accounts_service.services import account_service, query_service
from accounts_service.store import LedgerStore

router = APIRouter()


@router.post(
    "",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
)
async def create_account(
    request: AccountCreateRequest,
    store: LedgerStore = Depends(get_store),
):
    """Create an ACTIVE account linked to a Mercado Pago account."""
    return await account_service.create_account(
        store,
        mercado_pago_account_id=request.mercado_pago_account_id,
        initial_balance=request.initial_balance,
    )


@router.get("", response_model=list[AccountResponse], summary="List all accounts")
async def list_accounts(store: LedgerStore = Depends(get_store)):
    return await query_service.get_all_accounts(store)


@router.get(
    "/active",
    response_model=list[AccountResponse],
    summary="List active accounts",
)
async def list_active_accounts(store: LedgerStore = Depends(get_store)):
    """Only accounts that have not been cancelled."""
    return await query_service.get_active_accounts(store)


@router.get("/{account_id}", response_model=AccountResponse, summary="Get an account")
async def get_account(account_id: uuid.UUID, store: LedgerStore = Depends(get_store)):
    return await query_service.get_account(store, account_id)


@router.put("/{account_id}", response_model=AccountResponse, summary="Update an account")
async def update_account(
    account_id: uuid.UUID,
    request: AccountUpdateRequest,
    store: LedgerStore = Depends(get_store),
):
    """Change the linked payment reference. Balance and status are never touched."""
    return await account_service.update_account(
        store, account_id, request.mercado_pago_account_id
    )


@router.put(
    "/{account_id}/cancel",
    response_model=AccountResponse,
    summary="Cancel an account",
)
async def cancel_account(account_id: uuid.UUID, store: LedgerStore = Depends(get_store)):
    """
    Mark the account as cancelled and record when.

    A cancelled account can't be used for new trips, top-ups, or new users.
    Cancelling twice returns the account unchanged.
    """
    return await account_service.cancel_account(store, account_id)


@router.put(
    "/{account_id}/balance",
    response_model=BalanceResponse,
    summary="Load balance",
)
async def load_balance(
    account_id: uuid.UUID,
    request: BalanceRequest,
    store: LedgerStore = Depends(get_store),
):
    account = await account_service.load_balance(store, account_id, request.amount)
    return BalanceResponse(account_id=account.id, balance=account.balance)


@router.get(
    "/{account_id}/balance",
    response_model=BalanceResponse,
    summary="Get balance",
)
async def get_balance(account_id: uuid.UUID, store: LedgerStore = Depends(get_store)):
    balance = await account_service.get_balance(store, account_id)
    return BalanceResponse(account_id=account_id, balance=balance)


@router.put(
    "/{account_id}/balance/deduct",
    response_model=BalanceResponse,
    summary="Deduct balance",
)
async def deduct_balance(
    account_id: uuid.UUID,
    amount: Decimal = Query(gt=0, max_digits=MAX_DIGITS, decimal_places=2),
    store: LedgerStore = Depends(get_store),
):
    """
    Charge the account, e.g. when a scooter is unlocked or a trip ends.

    Returns 422 with the requested and available amounts when the balance
    is too low; the balance is left untouched in that case.
    """
    account = await account_service.deduct_balance(store, account_id, amount)
    return BalanceResponse(account_id=account.id, balance=account.balance)


@router.get("/{account_id}/active", response_model=bool, summary="Is the account active?")
async def is_account_active(account_id: uuid.UUID, store: LedgerStore = Depends(get_store)):
    return await account_service.is_account_active(store, account_id)


@router.delete(
    "/{account_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an account",
)
async def delete_account(account_id: uuid.UUID, store: LedgerStore = Depends(get_store)):
    """Remove the account and its associations permanently. Not the same as cancelling."""
    await account_service.delete_account(store, account_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
