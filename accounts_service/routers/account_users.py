"""
Account-user router — sharing an account's balance between riders.

    POST   /api/accounts/{account_id}/users/{user_id}  — Associate
    DELETE /api/accounts/{account_id}/users/{user_id}  — Disassociate
    GET    /api/accounts/{account_id}/users            — Users of an account
    GET    /api/accounts/users/{user_id}/accounts      — Accounts of a user
"""

import uuid

from fastapi import APIRouter, Depends, status

from accounts_service.database import get_store
from accounts_service.schemas.account import AccountResponse
from accounts_service.schemas.account_user import (
    AccountsByUserResponse,
    AccountUserResponse,
    UsersByAccountResponse,
)
from accounts_service.services import account_user_service, query_service
from accounts_service.store import LedgerStore

router = APIRouter()


@router.post(
    "/{account_id}/users/{user_id}",
    response_model=AccountUserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Associate a user with an account",
)
async def associate_user(
    account_id: uuid.UUID,
    user_id: uuid.UUID,
    store: LedgerStore = Depends(get_store),
):
    """
    Let the user spend the account's balance.

    Associating an already associated pair returns the existing association.
    Cancelled accounts return 409.
    """
    return await account_user_service.associate_user_to_account(store, account_id, user_id)


@router.delete(
    "/{account_id}/users/{user_id}",
    response_model=AccountUserResponse,
    summary="Disassociate a user from an account",
)
async def disassociate_user(
    account_id: uuid.UUID,
    user_id: uuid.UUID,
    store: LedgerStore = Depends(get_store),
):
    """Returns the removed association, or 404 if the pair isn't associated."""
    return await account_user_service.disassociate_user_from_account(store, account_id, user_id)


@router.get(
    "/{account_id}/users",
    response_model=UsersByAccountResponse,
    summary="List the users of an account",
)
async def users_by_account(account_id: uuid.UUID, store: LedgerStore = Depends(get_store)):
    return await query_service.get_users_by_account(store, account_id)


@router.get(
    "/users/{user_id}/accounts",
    response_model=AccountsByUserResponse,
    summary="List the accounts of a user",
)
async def accounts_by_user(user_id: uuid.UUID, store: LedgerStore = Depends(get_store)):
    result = await query_service.get_accounts_by_user(store, user_id)
    return AccountsByUserResponse(
        user_id=result["user_id"],
        accounts=[AccountResponse.model_validate(a) for a in result["accounts"]],
    )
