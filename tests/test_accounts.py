"""
Tests for the account lifecycle (service layer, no HTTP).

These tests verify:
  - Accounts start ACTIVE with zero or the supplied opening balance
  - Blank references and negative/malformed opening balances are rejected
  - Updates change only the payment reference
  - Cancellation is idempotent and keeps the first cancellation timestamp
  - Deletion is permanent and distinct from cancellation
  - Read projections (all / active / by id)
"""

import uuid
from decimal import Decimal

import pytest

from accounts_service.exceptions import AccountNotFoundError, ValidationError
from accounts_service.models.account import AccountStatus
from accounts_service.services import account_service, query_service


class TestCreateAccount:

    async def test_defaults_to_zero_balance(self, store):
        account = await account_service.create_account(store, "mp-123")
        assert account.balance == Decimal("0.00")
        assert account.status == AccountStatus.ACTIVE
        assert account.cancelled_at is None
        assert account.mercado_pago_account_id == "mp-123"

    async def test_with_initial_balance(self, store):
        account = await account_service.create_account(store, "mp-123", Decimal("100.00"))
        assert account.balance == Decimal("100.00")
        assert account.balance_cents == 10000

    async def test_reference_is_trimmed(self, store):
        account = await account_service.create_account(store, "  mp-9  ")
        assert account.mercado_pago_account_id == "mp-9"

    @pytest.mark.parametrize("reference", ["", "   ", None])
    async def test_blank_reference_rejected(self, store, reference):
        with pytest.raises(ValidationError):
            await account_service.create_account(store, reference)

    async def test_negative_initial_balance_rejected(self, store):
        with pytest.raises(ValidationError):
            await account_service.create_account(store, "mp-1", Decimal("-0.01"))
        assert await query_service.get_all_accounts(store) == []

    async def test_too_many_decimal_places_rejected(self, store):
        with pytest.raises(ValidationError):
            await account_service.create_account(store, "mp-1", "10.005")


class TestUpdateAccount:

    async def test_changes_reference_only(self, store, account):
        await account_service.load_balance(store, account.id, "5.00")
        updated = await account_service.update_account(store, account.id, "mp-new")
        assert updated.mercado_pago_account_id == "mp-new"
        assert updated.balance == Decimal("105.00")
        assert updated.status == AccountStatus.ACTIVE

    async def test_unknown_account(self, store):
        with pytest.raises(AccountNotFoundError):
            await account_service.update_account(store, uuid.uuid4(), "mp-new")

    async def test_blank_reference_rejected(self, store, account):
        with pytest.raises(ValidationError):
            await account_service.update_account(store, account.id, " ")


class TestCancelAccount:

    async def test_cancel_sets_status_and_timestamp(self, store, account):
        cancelled = await account_service.cancel_account(store, account.id)
        assert cancelled.status == AccountStatus.CANCELLED
        assert cancelled.cancelled_at is not None
        assert await account_service.is_account_active(store, account.id) is False

    async def test_cancel_twice_keeps_first_timestamp(self, store, account):
        await account_service.cancel_account(store, account.id)
        first = await query_service.get_account(store, account.id)

        again = await account_service.cancel_account(store, account.id)
        assert again.status == AccountStatus.CANCELLED
        assert again.cancelled_at == first.cancelled_at

    async def test_cancel_keeps_balance(self, store, account):
        cancelled = await account_service.cancel_account(store, account.id)
        assert cancelled.balance == Decimal("100.00")

    async def test_unknown_account(self, store):
        with pytest.raises(AccountNotFoundError):
            await account_service.cancel_account(store, uuid.uuid4())


class TestDeleteAccount:

    async def test_delete_removes_account(self, store, account):
        await account_service.delete_account(store, account.id)
        with pytest.raises(AccountNotFoundError):
            await query_service.get_account(store, account.id)

    async def test_delete_twice_reports_not_found(self, store, account):
        await account_service.delete_account(store, account.id)
        with pytest.raises(AccountNotFoundError):
            await account_service.delete_account(store, account.id)

    async def test_cancelled_account_can_be_deleted(self, store, account):
        await account_service.cancel_account(store, account.id)
        await account_service.delete_account(store, account.id)
        assert await query_service.get_all_accounts(store) == []


class TestReads:

    async def test_get_balance_and_active(self, store, account):
        assert await account_service.get_balance(store, account.id) == Decimal("100.00")
        assert await account_service.is_account_active(store, account.id) is True

    async def test_reads_of_unknown_account(self, store):
        missing = uuid.uuid4()
        with pytest.raises(AccountNotFoundError):
            await account_service.get_balance(store, missing)
        with pytest.raises(AccountNotFoundError):
            await account_service.is_account_active(store, missing)
        with pytest.raises(AccountNotFoundError):
            await query_service.get_account(store, missing)

    async def test_active_accounts_exclude_cancelled(self, store):
        keep = await account_service.create_account(store, "mp-keep")
        drop = await account_service.create_account(store, "mp-drop")
        await account_service.cancel_account(store, drop.id)

        all_ids = {a.id for a in await query_service.get_all_accounts(store)}
        active_ids = [a.id for a in await query_service.get_active_accounts(store)]

        assert all_ids == {keep.id, drop.id}
        assert active_ids == [keep.id]
