"""
Account-user association service — who may ride on which account's balance.

This module handles:
  - Associating a user with an account (idempotent)
  - Disassociating them (exactly one pair removed, repeat calls report not-found)
  - Listing the users of an account, with their roles
  - Listing the accounts of a user

Atomicity:
  associate_user_to_account checks both ends and the existing pair inside
  one transaction, with the account row locked (SELECT ... FOR UPDATE on
  backends that support it). The (account_id, user_id) unique constraint is
  the final word: if a concurrent call inserts the same pair first, our
  insert fails with IntegrityError and we return the winner's row instead.

  The row lock is a no-op on SQLite, so the ACTIVE check is repeated at
  write time: after inserting the link, the account version is bumped with
  "WHERE status = 'ACTIVE'". Zero rows means a cancel committed in
  between, and the insert is rolled back with AccountCancelledError. A
  cancel that read the old version fails its compare-and-swap and retries,
  so it always lands after the link.

  disassociate_user_from_account deletes by primary key and checks the row
  count, so of two concurrent removals exactly one succeeds and the other
  raises AssociationNotFoundError.

Association policy:
  Re-associating an existing pair is a successful no-op returning the
  existing association. Cancelled accounts accept no new associations, but
  existing ones can still be removed.
"""

import logging
import uuid

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError

from accounts_service.exceptions import (
    AccountCancelledError,
    AccountNotFoundError,
    AssociationNotFoundError,
    StorageError,
    UserNotFoundError,
)
from accounts_service.models.account import Account, AccountStatus
from accounts_service.models.account_user import AccountUser
from accounts_service.models.user import User
from accounts_service.services.user_service import roles_for_users, user_to_dict
from accounts_service.store import LedgerStore

logger = logging.getLogger(__name__)


def _pair(account_id: uuid.UUID, user_id: uuid.UUID):
    return (AccountUser.account_id == account_id, AccountUser.user_id == user_id)


async def associate_user_to_account(
    store: LedgerStore,
    account_id: uuid.UUID,
    user_id: uuid.UUID,
) -> AccountUser:
    """
    Allow a user to draw on an account's balance.

    Returns:
        The new association, or the existing one if the pair was already linked.

    Raises:
        AccountNotFoundError: Unknown account.
        UserNotFoundError: Unknown user.
        AccountCancelledError: The account is cancelled.
    """
    try:
        async with store.transaction() as session:
            account = await session.get(Account, account_id, with_for_update=True)
            if account is None:
                raise AccountNotFoundError(account_id)
            if account.status == AccountStatus.CANCELLED:
                raise AccountCancelledError(account_id)
            if await session.get(User, user_id) is None:
                raise UserNotFoundError(user_id)

            result = await session.execute(select(AccountUser).where(*_pair(account_id, user_id)))
            existing = result.scalar_one_or_none()
            if existing is not None:
                return existing

            link = AccountUser(account_id=account_id, user_id=user_id)
            session.add(link)
            await session.flush()

            # The link commits only if the account is still ACTIVE at write time
            bumped = await session.execute(
                update(Account)
                .where(Account.id == account_id, Account.status == AccountStatus.ACTIVE)
                .values(version=Account.version + 1)
                .execution_options(synchronize_session=False)
            )
            if bumped.rowcount == 0:
                status = await session.scalar(
                    select(Account.status).where(Account.id == account_id)
                )
                if status is None:
                    raise AccountNotFoundError(account_id)
                raise AccountCancelledError(account_id)
    except IntegrityError as exc:
        # Lost the race to a concurrent insert of the same pair
        link = await store.find_one(AccountUser, *_pair(account_id, user_id))
        if link is None:
            raise StorageError(
                f"Could not associate user {user_id} with account {account_id}"
            ) from exc
        return link

    logger.info("Associated user %s with account %s", user_id, account_id)
    return link


async def disassociate_user_from_account(
    store: LedgerStore,
    account_id: uuid.UUID,
    user_id: uuid.UUID,
) -> AccountUser:
    """
    Remove a user's permission to use an account.

    Returns:
        The association that was removed.

    Raises:
        AssociationNotFoundError: The pair is not associated (including when
            it was already removed by an earlier call).
    """
    async with store.transaction() as session:
        result = await session.execute(select(AccountUser).where(*_pair(account_id, user_id)))
        link = result.scalar_one_or_none()
        if link is None:
            raise AssociationNotFoundError(account_id, user_id)

        deleted = await session.execute(delete(AccountUser).where(AccountUser.id == link.id))
        if deleted.rowcount == 0:
            raise AssociationNotFoundError(account_id, user_id)

    logger.info("Disassociated user %s from account %s", user_id, account_id)
    return link


async def get_users_by_account(store: LedgerStore, account_id: uuid.UUID) -> dict:
    """
    Users associated with an account, with their roles, in association order.

    Returns:
        {"account_id": ..., "users": [user dicts]}

    Raises:
        AccountNotFoundError: Unknown account.
    """
    async with store.transaction() as session:
        if await session.get(Account, account_id) is None:
            raise AccountNotFoundError(account_id)

        result = await session.execute(
            select(User)
            .join(AccountUser, AccountUser.user_id == User.id)
            .where(AccountUser.account_id == account_id)
            .order_by(AccountUser.id)
        )
        users = list(result.scalars().all())
        roles = await roles_for_users(session, [u.id for u in users])

    return {
        "account_id": account_id,
        "users": [user_to_dict(u, roles.get(u.id, [])) for u in users],
    }


async def get_accounts_by_user(store: LedgerStore, user_id: uuid.UUID) -> dict:
    """
    Accounts a user is associated with, in association order.

    Returns:
        {"user_id": ..., "accounts": [Account, ...]}

    Raises:
        UserNotFoundError: Unknown user.
    """
    async with store.transaction() as session:
        if await session.get(User, user_id) is None:
            raise UserNotFoundError(user_id)

        result = await session.execute(
            select(Account)
            .join(AccountUser, AccountUser.account_id == Account.id)
            .where(AccountUser.user_id == user_id)
            .order_by(AccountUser.id)
        )
        accounts = list(result.scalars().all())

    return {"user_id": user_id, "accounts": accounts}
