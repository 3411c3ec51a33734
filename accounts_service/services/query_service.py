"""
Read-only account projections.

Nothing here mutates state or adds caching: each function is a single
store read, so results are as fresh as the database at the time of the call.
The association listings live with the association logic and are
re-exported here so callers have one place to read from.
"""

import uuid

from accounts_service.exceptions import AccountNotFoundError
from accounts_service.models.account import Account, AccountStatus
from accounts_service.services.account_user_service import (  # noqa: F401
    get_accounts_by_user,
    get_users_by_account,
)
from accounts_service.store import LedgerStore


async def get_account(store: LedgerStore, account_id: uuid.UUID) -> Account:
    """
    Get a single account by ID.

    Raises:
        AccountNotFoundError: If the account doesn't exist.
    """
    account = await store.get(Account, account_id)
    if account is None:
        raise AccountNotFoundError(account_id)
    return account


async def get_all_accounts(store: LedgerStore) -> list[Account]:
    """All accounts, cancelled ones included, oldest first."""
    return await store.find(Account, order_by=(Account.created_at, Account.id))


async def get_active_accounts(store: LedgerStore) -> list[Account]:
    """Accounts that have not been cancelled, oldest first."""
    return await store.find(
        Account,
        Account.status == AccountStatus.ACTIVE,
        order_by=(Account.created_at, Account.id),
    )
