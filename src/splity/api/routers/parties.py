"""Party endpoints."""
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from splity.api.dependencies import get_async_session, get_current_user
from splity.repositories.party import PartyRepository
from splity.repositories.party_aggregate import PartyAggregateReader
from splity.schemas.auth import AuthenticatedUser
from splity.schemas.common import DeleteResponse
from splity.schemas.party import (
    PartyAggregate,
    PartyCreate,
    PartyListResponse,
    PartyResponse,
    PartyUpdate,
)
from splity.services.exceptions import UnknownUsersError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/parties", tags=["parties"])


@router.post("", response_model=PartyResponse, status_code=201)
async def create_party(
    data: PartyCreate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> PartyResponse:
    """
    Create a party owned by the authenticated user.

    ``contributorIds`` adds existing users as contributors. The owner is not
    added as a contributor automatically.
    """
    if data.owner_id is not None and data.owner_id != current_user.user_id:
        raise HTTPException(
            status_code=400,
            detail="ownerId must match the authenticated user",
        )
    try:
        party = await PartyRepository(db).create(
            owner_id=current_user.user_id,
            name=data.name,
            contributor_ids=data.contributor_ids,
        )
    except UnknownUsersError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return PartyResponse.model_validate(party)


@router.get("", response_model=PartyListResponse)
async def list_parties(
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> PartyListResponse:
    """Get the parties owned by the authenticated user."""
    parties = await PartyRepository(db).list_by_owner(current_user.user_id)
    return PartyListResponse(parties=[PartyResponse.model_validate(p) for p in parties])


@router.get("/{party_id}", response_model=PartyAggregate)
async def get_party(
    party_id: UUID,
    db: AsyncSession = Depends(get_async_session),
) -> PartyAggregate:
    """
    Get a party with its owner, expenses (with participants), contributors and
    bill images.

    Collections of an empty party are empty lists.
    """
    party = await PartyAggregateReader(db).get_by_id(party_id)
    if party is None:
        raise HTTPException(status_code=404, detail="Party not found")
    return party


@router.put("/{party_id}", response_model=PartyResponse)
async def update_party(
    party_id: UUID,
    data: PartyUpdate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> PartyResponse:
    """Rename a party. Only the owner can update it."""
    party = await PartyRepository(db).update(party_id, current_user.user_id, data.name)
    if party is None:
        raise HTTPException(status_code=404, detail="Party not found")
    return PartyResponse.model_validate(party)


@router.delete("/{party_id}", response_model=DeleteResponse)
async def delete_party(
    party_id: UUID,
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> DeleteResponse:
    """Delete a party with its expenses, contributors and bill images. Owner only."""
    deleted = await PartyRepository(db).delete(party_id, current_user.user_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Party not found")
    return DeleteResponse(success=True, message="Party deleted successfully", id=party_id)
