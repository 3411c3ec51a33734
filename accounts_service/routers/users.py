"""
Users router — rider records.

    POST   /api/accounts/users           — Create a user (gets ROLE_USER)
    GET    /api/accounts/users/all       — List all users
    GET    /api/accounts/users?email=    — Find a user by email
    GET    /api/accounts/users/{id}      — Get one user
    PUT    /api/accounts/users/{id}      — Update profile fields
    DELETE /api/accounts/users/{id}      — Delete permanently

The password arrives already hashed from the auth service and is never
returned.
"""

import uuid

from fastapi import APIRouter, Depends, Query, Response, status

from accounts_service.database import get_store
from accounts_service.schemas.user import UserCreateRequest, UserResponse, UserUpdateRequest
from accounts_service.services import user_service
from accounts_service.store import LedgerStore

router = APIRouter()


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user",
)
async def create_user(request: UserCreateRequest, store: LedgerStore = Depends(get_store)):
    return await user_service.create_user(
        store,
        email=request.email,
        hashed_password=request.hashed_password,
        first_name=request.first_name,
        last_name=request.last_name,
        phone_number=request.phone_number,
    )


@router.get("/all", response_model=list[UserResponse], summary="List all users")
async def list_users(store: LedgerStore = Depends(get_store)):
    return await user_service.get_all_users(store)


@router.get("", response_model=UserResponse, summary="Find a user by email")
async def get_user_by_email(
    email: str = Query(min_length=1),
    store: LedgerStore = Depends(get_store),
):
    return await user_service.get_user_by_email(store, email)


@router.get("/{user_id}", response_model=UserResponse, summary="Get a user")
async def get_user(user_id: uuid.UUID, store: LedgerStore = Depends(get_store)):
    return await user_service.get_user(store, user_id)


@router.put("/{user_id}", response_model=UserResponse, summary="Update a user")
async def update_user(
    user_id: uuid.UUID,
    request: UserUpdateRequest,
    store: LedgerStore = Depends(get_store),
):
    """Update profile fields. The password hash is managed by the auth service."""
    return await user_service.update_user(
        store, user_id, **request.model_dump(exclude_unset=True)
    )


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a user",
)
async def delete_user(user_id: uuid.UUID, store: LedgerStore = Depends(get_store)):
    await user_service.delete_user(store, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
