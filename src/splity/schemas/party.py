"""Pydantic schemas for party endpoints and the party aggregate document."""
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import Field

from splity.schemas.base import ApiModel, DocumentModel, RequiredStr, RequiredUUID
from splity.schemas.user import UserResponse


class PartyCreate(ApiModel):
    """
    Schema for creating a party.

    The owner is always the authenticated caller; ``owner_id`` may be sent for
    compatibility but must then name the caller.
    """

    name: RequiredStr = Field(..., max_length=255)
    owner_id: RequiredUUID | None = None
    contributor_ids: list[UUID] = Field(default_factory=list)


class PartyUpdate(ApiModel):
    """Schema for renaming a party."""

    name: RequiredStr = Field(..., max_length=255)


class PartyResponse(DocumentModel):
    """Party row without nested collections."""

    party_id: UUID
    owner_id: UUID
    name: str
    created_at: datetime


class PartyListResponse(ApiModel):
    """Parties owned by the caller."""

    parties: list[PartyResponse]


# --- Aggregate document ---


class ParticipantView(DocumentModel):
    """A user sharing an expense."""

    expense_id: UUID
    user_id: UUID
    share: Decimal | None = None
    user: UserResponse


class ExpenseView(DocumentModel):
    """Expense with its participants."""

    expense_id: UUID
    party_id: UUID
    payer_id: UUID
    description: str
    amount: Decimal
    created_at: datetime
    participants: list[ParticipantView]


class ContributorView(DocumentModel):
    """A party member."""

    party_id: UUID
    user_id: UUID
    user: UserResponse


class BillImageView(DocumentModel):
    """Receipt image attached to a party."""

    bill_id: UUID
    bill_file_title: str
    party_id: UUID
    image_url: str


class PartyAggregate(DocumentModel):
    """
    A party with its owner and every child collection.

    Collections are always lists; an empty party has ``expenses == []``,
    ``contributors == []`` and ``bill_images == []``.
    """

    party_id: UUID
    owner_id: UUID
    name: str
    created_at: datetime
    owner: UserResponse | None
    expenses: list[ExpenseView]
    contributors: list[ContributorView]
    bill_images: list[BillImageView]
