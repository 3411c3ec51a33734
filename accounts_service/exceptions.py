"""
Custom exception classes and FastAPI exception handlers.

The service layer raises domain errors without importing any HTTP concepts;
register_exception_handlers() translates them into JSON responses. Service
code stays testable without a web server, and every endpoint reports errors
in the same shape: {"detail": ..., "error_type": ...}.

Exception hierarchy:
    AccountsServiceError (base)
    ├── ValidationError           — malformed input (bad amount, blank reference)
    ├── NotFoundError             — referenced entity is absent
    │   ├── AccountNotFoundError
    │   ├── UserNotFoundError
    │   └── AssociationNotFoundError
    ├── AccountCancelledError     — balance/association use of a cancelled account
    ├── InsufficientFundsError    — deduction larger than the balance
    ├── DuplicateEmailError       — email already registered to another user
    └── StorageError              — the database failed the operation
        └── ConflictError         — row-version retries exhausted

Re-cancelling an account and re-associating a pair are idempotent successes,
so there is no "already cancelled" or "already associated" error.
"""

import uuid
from decimal import Decimal

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class AccountsServiceError(Exception):
    """Base exception for all Accounts Service domain errors."""

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(self.detail)


# ---------------------------------------------------------------------------
# Domain exceptions
# ---------------------------------------------------------------------------

class ValidationError(AccountsServiceError):
    """Raised when caller input is malformed. Retrying the same call won't help."""


class NotFoundError(AccountsServiceError):
    """Raised when a referenced entity does not exist."""


class AccountNotFoundError(NotFoundError):
    """Raised when a requested account does not exist."""

    def __init__(self, account_id: uuid.UUID):
        self.account_id = account_id
        super().__init__(f"Account {account_id} not found")


class UserNotFoundError(NotFoundError):
    """Raised when a requested user does not exist (looked up by id or email)."""

    def __init__(self, user_id: uuid.UUID | None = None, email: str | None = None):
        self.user_id = user_id
        self.email = email
        if email is not None:
            super().__init__(f"User with email {email} not found")
        else:
            super().__init__(f"User {user_id} not found")


class AssociationNotFoundError(NotFoundError):
    """Raised when a user is not associated with an account."""

    def __init__(self, account_id: uuid.UUID, user_id: uuid.UUID):
        self.account_id = account_id
        self.user_id = user_id
        super().__init__(f"User {user_id} is not associated with account {account_id}")


class AccountCancelledError(AccountsServiceError):
    """Raised when a cancelled account is used for balance or association changes."""

    def __init__(self, account_id: uuid.UUID):
        self.account_id = account_id
        super().__init__(f"Account {account_id} is cancelled")


class InsufficientFundsError(AccountsServiceError):
    """
    Raised when a deduction would cause a negative balance.

    Attributes:
        account_id: The account that lacks sufficient funds.
        requested: The amount the caller tried to deduct.
        available: The balance of the account at the time of the check.
    """

    def __init__(
        self,
        account_id: uuid.UUID,
        requested: Decimal,
        available: Decimal,
    ):
        self.account_id = account_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient funds: requested {requested}, available {available}"
        )


class DuplicateEmailError(AccountsServiceError):
    """Raised when an email is already registered to another user."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Email {email} is already registered")


class StorageError(AccountsServiceError):
    """Raised when the database fails an operation. The core never retries these."""


class ConflictError(StorageError):
    """Raised when a row kept changing underneath an update until retries ran out."""

    def __init__(self, entity: str, record_id, attempts: int):
        self.entity = entity
        self.record_id = record_id
        self.attempts = attempts
        super().__init__(
            f"Concurrent modification of {entity} {record_id} "
            f"persisted after {attempts} attempts"
        )


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register custom exception handlers with the FastAPI application.

    Each handler maps a domain exception to an HTTP status code and a
    consistent JSON body. Called once during app startup in main.py.
    """

    @app.exception_handler(ValidationError)
    async def validation_handler(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"detail": exc.detail, "error_type": "validation_error"},
        )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(
        request: Request, exc: NotFoundError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content={"detail": exc.detail, "error_type": "not_found"},
        )

    @app.exception_handler(AccountCancelledError)
    async def account_cancelled_handler(
        request: Request, exc: AccountCancelledError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=409,  # Conflict: the account's state forbids the operation
            content={"detail": exc.detail, "error_type": "account_cancelled"},
        )

    @app.exception_handler(InsufficientFundsError)
    async def insufficient_funds_handler(
        request: Request, exc: InsufficientFundsError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=422,  # valid request, rejected by business rules
            content={
                "detail": exc.detail,
                "error_type": "insufficient_funds",
                "requested": str(exc.requested),
                "available": str(exc.available),
            },
        )

    @app.exception_handler(DuplicateEmailError)
    async def duplicate_email_handler(
        request: Request, exc: DuplicateEmailError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=409,
            content={"detail": exc.detail, "error_type": "duplicate_email"},
        )

    @app.exception_handler(StorageError)
    async def storage_handler(
        request: Request, exc: StorageError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=503,
            content={"detail": exc.detail, "error_type": "storage_error"},
        )
