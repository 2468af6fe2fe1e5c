"""User endpoints."""
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from splity.api.dependencies import get_async_session, get_current_user
from splity.repositories.user import UserRepository
from splity.schemas.auth import AuthenticatedUser
from splity.schemas.common import DeleteResponse
from splity.schemas.user import (
    UserCreate,
    UserDetailsResponse,
    UserResponse,
    UserUpdate,
)
from splity.services.exceptions import DuplicateEmailError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> UserResponse:
    """Get the authenticated user, provisioning it on first login."""
    user = await UserRepository(db).get_by_id(current_user.user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return UserResponse.model_validate(user)


@router.post("", response_model=UserResponse, status_code=201)
async def create_user(
    data: UserCreate,
    db: AsyncSession = Depends(get_async_session),
) -> UserResponse:
    """Create a user. Emails are unique."""
    try:
        user = await UserRepository(db).create(data)
    except DuplicateEmailError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return UserResponse.model_validate(user)


@router.get("/{user_id}", response_model=UserDetailsResponse)
async def get_user(
    user_id: UUID,
    db: AsyncSession = Depends(get_async_session),
) -> UserDetailsResponse:
    """
    Get a user with the parties they own, the expenses they paid, and their
    party and expense memberships.
    """
    details = await UserRepository(db).get_with_details(user_id)
    if details is None:
        logger.info("User %s not found", user_id)
        raise HTTPException(status_code=404, detail="User not found")
    return UserDetailsResponse(user=details)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: UUID,
    data: UserUpdate,
    db: AsyncSession = Depends(get_async_session),
) -> UserResponse:
    """Update a user's name and/or email."""
    try:
        user = await UserRepository(db).update(user_id, data)
    except DuplicateEmailError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", response_model=DeleteResponse)
async def delete_user(
    user_id: UUID,
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> DeleteResponse:
    """
    Delete the caller's own account with everything they own.

    Other users' ids are reported as not found.
    """
    if user_id != current_user.user_id:
        raise HTTPException(status_code=404, detail="User not found")
    deleted = await UserRepository(db).delete(user_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="User not found")
    return DeleteResponse(success=True, message="User deleted successfully", id=user_id)
