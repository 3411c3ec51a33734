"""
User service — CRUD for rider records.

Users arrive from the upstream auth service with the password already
hashed. This service stores the hash verbatim and never exposes it: every
read returns a plain dict of profile fields plus the user's role names.

New users receive the configured default role (ROLE_USER) in the same
transaction that creates them.
"""

import logging
import uuid
from collections import defaultdict

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from accounts_service.config import settings
from accounts_service.exceptions import (
    DuplicateEmailError,
    StorageError,
    UserNotFoundError,
    ValidationError,
)
from accounts_service.models.role import Role, UserRole
from accounts_service.models.user import User
from accounts_service.services.role_service import create_role_if_not_exists, role_names_for
from accounts_service.store import LedgerStore

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = ("email", "first_name", "last_name", "phone_number")


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def user_to_dict(user: User, roles: list[str]) -> dict:
    """Serialise a User to a plain dict. The password hash is never included."""
    return {
        "id": user.id,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "phone_number": user.phone_number,
        "roles": roles,
        "created_at": user.created_at,
    }


async def roles_for_users(
    session: AsyncSession,
    user_ids: list[uuid.UUID],
) -> dict[uuid.UUID, list[str]]:
    """Role names for many users in one query, keyed by user id."""
    roles: dict[uuid.UUID, list[str]] = defaultdict(list)
    if not user_ids:
        return roles
    result = await session.execute(
        select(UserRole.user_id, Role.name)
        .join(Role, Role.id == UserRole.role_id)
        .where(UserRole.user_id.in_(user_ids))
        .order_by(UserRole.id)
    )
    for user_id, role_name in result.all():
        roles[user_id].append(role_name)
    return roles


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def create_user(
    store: LedgerStore,
    email: str,
    hashed_password: str,
    first_name: str,
    last_name: str,
    phone_number: str | None = None,
) -> dict:
    """
    Create a user and grant them the default role.

    Raises:
        ValidationError: Blank email or password hash.
        DuplicateEmailError: The email is already registered.
        StorageError: Any other constraint failure; nothing is persisted.
    """
    if not email or not email.strip():
        raise ValidationError("email must not be empty")
    if not hashed_password:
        raise ValidationError("hashed_password must not be empty")

    default_role = await create_role_if_not_exists(store, settings.DEFAULT_USER_ROLE)

    user = User(
        email=email.strip(),
        hashed_password=hashed_password,
        first_name=first_name,
        last_name=last_name,
        phone_number=phone_number,
    )
    try:
        async with store.transaction() as session:
            existing = await session.execute(select(User.id).where(User.email == user.email))
            if existing.scalar_one_or_none() is not None:
                raise DuplicateEmailError(user.email)
            session.add(user)
            # Flush to get user.id assigned (needed for the grant below)
            await session.flush()
            session.add(UserRole(user_id=user.id, role_id=default_role.id))
    except IntegrityError as exc:
        # Only a concurrent registration of the same email is a duplicate
        if await store.find_one(User, User.email == user.email) is not None:
            raise DuplicateEmailError(user.email) from exc
        logger.error("Could not create user %s: %s", user.email, exc.orig)
        raise StorageError(f"Could not create user {user.email}: {exc.orig}") from exc

    logger.info("Created user %s", user.id)
    return user_to_dict(user, [default_role.name])


async def get_user(store: LedgerStore, user_id: uuid.UUID) -> dict:
    """Return one user with roles. Raises UserNotFoundError."""
    async with store.transaction() as session:
        user = await session.get(User, user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user_to_dict(user, await role_names_for(session, user.id))


async def get_user_by_email(store: LedgerStore, email: str) -> dict:
    """Return the user registered under `email`. Raises UserNotFoundError."""
    async with store.transaction() as session:
        result = await session.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
        if user is None:
            raise UserNotFoundError(email=email)
        return user_to_dict(user, await role_names_for(session, user.id))


async def get_all_users(store: LedgerStore) -> list[dict]:
    """Every user with roles, oldest first."""
    async with store.transaction() as session:
        result = await session.execute(select(User).order_by(User.created_at, User.id))
        users = list(result.scalars().all())
        roles = await roles_for_users(session, [u.id for u in users])
        return [user_to_dict(u, roles.get(u.id, [])) for u in users]


async def update_user(store: LedgerStore, user_id: uuid.UUID, **fields) -> dict:
    """
    Update profile fields (email, first_name, last_name, phone_number).

    The password hash cannot be changed here; that belongs to the auth service.
    Fields passed as None are left alone.

    Raises:
        ValidationError: Unknown field, or a blank email.
        UserNotFoundError: Unknown user.
        DuplicateEmailError: The new email belongs to another user.
    """
    unknown = set(fields) - set(_UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Cannot update field(s): {', '.join(sorted(unknown))}")
    changes = {k: v for k, v in fields.items() if v is not None}
    if "email" in changes:
        if not changes["email"].strip():
            raise ValidationError("email must not be empty")
        changes["email"] = changes["email"].strip()
        owner = await store.find_one(User, User.email == changes["email"])
        if owner is not None and owner.id != user_id:
            raise DuplicateEmailError(changes["email"])

    def apply(user: User) -> None:
        for name, value in changes.items():
            setattr(user, name, value)

    try:
        user = await store.update_if_match(User, user_id, apply)
    except IntegrityError as exc:
        raise DuplicateEmailError(changes.get("email", "")) from exc
    if user is None:
        raise UserNotFoundError(user_id)

    logger.info("Updated user %s (%s)", user_id, ", ".join(sorted(changes)) or "no changes")
    return await get_user(store, user_id)


async def delete_user(store: LedgerStore, user_id: uuid.UUID) -> None:
    """
    Permanently delete a user along with their role grants and account associations.

    Raises:
        UserNotFoundError: Unknown user.
    """
    if not await store.delete(User, user_id):
        raise UserNotFoundError(user_id)
    logger.info("Deleted user %s", user_id)
