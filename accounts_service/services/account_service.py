"""
Account service — account lifecycle and balance arithmetic.

THIS IS THE MOST CRITICAL FILE IN THE PROJECT. It handles:
  - Account creation with an optional opening balance
  - Updating the external payment reference
  - Cancellation (terminal for balance use, the row is kept)
  - Loading and deducting balance with the non-negative invariant
  - Permanent deletion

Atomicity:
  Every balance or status change goes through LedgerStore.update_if_match.
  The checks (exists, not cancelled, enough funds) and the write happen in
  the same transaction against the same row version, so two concurrent trips
  against one account can never both see the old balance and both succeed.
  When a check fails the mutator raises, the transaction rolls back, and the
  balance is exactly what it was.

Amounts:
  Callers pass Decimal-compatible amounts with at most two decimal places.
  They are converted to integer cents once, at the top of each operation
  (see money.py).

Cancellation policy:
  Cancelling an already cancelled account is a no-op that returns the
  account unchanged; the original cancelled_at is preserved.
"""

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from accounts_service.exceptions import (
    AccountCancelledError,
    AccountNotFoundError,
    InsufficientFundsError,
    ValidationError,
)
from accounts_service.models.account import Account, AccountStatus
from accounts_service.money import MAX_CENTS, from_cents, to_cents
from accounts_service.store import LedgerStore

logger = logging.getLogger(__name__)


def _require_reference(mercado_pago_account_id: str | None) -> str:
    if mercado_pago_account_id is None or not mercado_pago_account_id.strip():
        raise ValidationError("mercado_pago_account_id must not be empty")
    return mercado_pago_account_id.strip()


def _positive_cents(amount) -> int:
    cents = to_cents(amount)
    if cents <= 0:
        raise ValidationError(f"Amount must be greater than zero, got {amount}")
    return cents


def _require_active(account: Account) -> None:
    if account.status == AccountStatus.CANCELLED:
        raise AccountCancelledError(account.id)


async def _get_or_raise(store: LedgerStore, account_id: uuid.UUID) -> Account:
    account = await store.get(Account, account_id)
    if account is None:
        raise AccountNotFoundError(account_id)
    return account


async def create_account(
    store: LedgerStore,
    mercado_pago_account_id: str,
    initial_balance: Decimal | int | str | None = None,
) -> Account:
    """
    Create a new ACTIVE account.

    Args:
        store: Ledger store.
        mercado_pago_account_id: External payment-account reference (non-blank).
        initial_balance: Opening balance; defaults to zero.

    Returns:
        The newly created Account.

    Raises:
        ValidationError: Blank reference, or a negative / malformed balance.
    """
    reference = _require_reference(mercado_pago_account_id)

    balance_cents = 0
    if initial_balance is not None:
        balance_cents = to_cents(initial_balance)
        if balance_cents < 0:
            raise ValidationError(
                f"Initial balance must not be negative, got {initial_balance}"
            )

    account = await store.save(
        Account(
            mercado_pago_account_id=reference,
            balance_cents=balance_cents,
            status=AccountStatus.ACTIVE,
        )
    )
    logger.info("Created account %s with balance %s", account.id, account.balance)
    return account


async def update_account(
    store: LedgerStore,
    account_id: uuid.UUID,
    mercado_pago_account_id: str,
) -> Account:
    """
    Replace the account's payment reference. Balance and status are untouched.

    Raises:
        ValidationError: Blank reference.
        AccountNotFoundError: Unknown account.
    """
    reference = _require_reference(mercado_pago_account_id)

    def apply(account: Account) -> None:
        account.mercado_pago_account_id = reference

    account = await store.update_if_match(Account, account_id, apply)
    if account is None:
        raise AccountNotFoundError(account_id)
    return account


async def cancel_account(store: LedgerStore, account_id: uuid.UUID) -> Account:
    """
    Cancel an account so it can no longer be loaded, charged, or shared.

    Idempotent: an already cancelled account is returned as-is.

    Raises:
        AccountNotFoundError: Unknown account.
    """
    def apply(account: Account) -> None:
        if account.status == AccountStatus.CANCELLED:
            return
        account.status = AccountStatus.CANCELLED
        account.cancelled_at = datetime.now(timezone.utc)

    account = await store.update_if_match(Account, account_id, apply)
    if account is None:
        raise AccountNotFoundError(account_id)
    logger.info("Account %s cancelled at %s", account.id, account.cancelled_at)
    return account


async def load_balance(
    store: LedgerStore,
    account_id: uuid.UUID,
    amount: Decimal | int | str,
) -> Account:
    """
    Add `amount` to the balance (a top-up).

    Raises:
        ValidationError: amount <= 0 or malformed, or the new balance would exceed
            the ledger maximum.
        AccountNotFoundError: Unknown account.
        AccountCancelledError: The account is cancelled.
    """
    cents = _positive_cents(amount)

    def apply(account: Account) -> None:
        _require_active(account)
        if account.balance_cents + cents > MAX_CENTS:
            raise ValidationError(
                f"Loading {from_cents(cents)} would take the balance past {from_cents(MAX_CENTS)}"
            )
        account.balance_cents += cents

    account = await store.update_if_match(Account, account_id, apply)
    if account is None:
        raise AccountNotFoundError(account_id)
    logger.info(
        "Loaded %s into account %s, balance now %s",
        from_cents(cents), account_id, account.balance,
    )
    return account


async def deduct_balance(
    store: LedgerStore,
    account_id: uuid.UUID,
    amount: Decimal | int | str,
) -> Account:
    """
    Subtract `amount` from the balance (a trip charge).

    The funds check and the subtraction are one atomic step; on any failure
    the balance is unchanged.

    Raises:
        ValidationError: amount <= 0 or malformed.
        AccountNotFoundError: Unknown account.
        AccountCancelledError: The account is cancelled.
        InsufficientFundsError: The balance is smaller than amount.
    """
    cents = _positive_cents(amount)

    def apply(account: Account) -> None:
        _require_active(account)
        if account.balance_cents < cents:
            raise InsufficientFundsError(
                account_id=account.id,
                requested=from_cents(cents),
                available=account.balance,
            )
        account.balance_cents -= cents

    try:
        account = await store.update_if_match(Account, account_id, apply)
    except InsufficientFundsError as exc:
        logger.warning(
            "Declined deduction of %s from account %s (available %s)",
            exc.requested, account_id, exc.available,
        )
        raise
    if account is None:
        raise AccountNotFoundError(account_id)
    logger.info(
        "Deducted %s from account %s, balance now %s",
        from_cents(cents), account_id, account.balance,
    )
    return account


async def get_balance(store: LedgerStore, account_id: uuid.UUID) -> Decimal:
    """Current balance as a two-place Decimal. Raises AccountNotFoundError."""
    account = await _get_or_raise(store, account_id)
    return account.balance


async def is_account_active(store: LedgerStore, account_id: uuid.UUID) -> bool:
    """True unless the account is cancelled. Raises AccountNotFoundError."""
    account = await _get_or_raise(store, account_id)
    return account.is_active


async def delete_account(store: LedgerStore, account_id: uuid.UUID) -> None:
    """
    Permanently remove an account and its user associations.

    Unlike cancellation this cannot be undone.

    Raises:
        AccountNotFoundError: Unknown account.
    """
    if not await store.delete(Account, account_id):
        raise AccountNotFoundError(account_id)
    logger.info("Deleted account %s", account_id)
