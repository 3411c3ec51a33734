"""
Role service — role creation and per-user role grants.

Roles are created on first use: assigning "ROLE_EMPLOYEE" to a user creates
the role row if nobody has held it before. Both the role row and the
(user, role) grant go through LedgerStore.get_or_create, so concurrent
assignments never produce duplicates.

Assigning a role the user already holds, or removing one they don't hold,
is a silent no-op.
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from accounts_service.exceptions import UserNotFoundError
from accounts_service.models.role import Role, UserRole
from accounts_service.models.user import User
from accounts_service.store import LedgerStore

logger = logging.getLogger(__name__)


async def create_role_if_not_exists(store: LedgerStore, role_name: str) -> Role:
    """Return the role called `role_name`, creating it if absent."""
    role, created = await store.get_or_create(Role, name=role_name)
    if created:
        logger.info("Created role %s", role_name)
    return role


async def get_roles_by_user(store: LedgerStore, user_id: uuid.UUID) -> list[str]:
    """
    Names of the roles granted to a user, in grant order.

    Returns an empty list for an unknown user rather than raising.
    """
    async with store.transaction() as session:
        if await session.get(User, user_id) is None:
            return []
        return await role_names_for(session, user_id)


async def role_names_for(session: AsyncSession, user_id: uuid.UUID) -> list[str]:
    """Role names for one user, using an already open session."""
    result = await session.execute(
        select(Role.name)
        .join(UserRole, UserRole.role_id == Role.id)
        .where(UserRole.user_id == user_id)
        .order_by(UserRole.id)
    )
    return list(result.scalars().all())


async def assign_role_to_user(
    store: LedgerStore,
    user_id: uuid.UUID,
    role_name: str,
) -> None:
    """
    Grant `role_name` to a user, creating the role if needed.

    Raises:
        UserNotFoundError: Unknown user.
    """
    if await store.get(User, user_id) is None:
        raise UserNotFoundError(user_id)

    role = await create_role_if_not_exists(store, role_name)
    _, created = await store.get_or_create(UserRole, user_id=user_id, role_id=role.id)
    if created:
        logger.info("Granted %s to user %s", role_name, user_id)


async def remove_role_from_user(
    store: LedgerStore,
    user_id: uuid.UUID,
    role_name: str,
) -> None:
    """
    Revoke `role_name` from a user. Unknown roles and missing grants are ignored.

    Raises:
        UserNotFoundError: Unknown user.
    """
    if await store.get(User, user_id) is None:
        raise UserNotFoundError(user_id)

    role = await store.find_one(Role, Role.name == role_name)
    if role is None:
        return

    grant = await store.find_one(
        UserRole, UserRole.user_id == user_id, UserRole.role_id == role.id
    )
    if grant is None:
        return

    await store.delete(UserRole, grant.id)
    logger.info("Revoked %s from user %s", role_name, user_id)
