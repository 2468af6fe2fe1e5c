"""Pydantic schemas for user endpoints."""
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import EmailStr, Field, model_validator

from splity.schemas.base import ApiModel, DocumentModel, RequiredStr


class UserCreate(ApiModel):
    """Schema for creating a user."""

    name: RequiredStr = Field(..., max_length=255)
    email: EmailStr
    external_id: str | None = Field(default=None, max_length=255)


class UserUpdate(ApiModel):
    """Schema for updating a user. At least one field must be provided."""

    name: str | None = Field(default=None, max_length=255)
    email: EmailStr | None = None

    @model_validator(mode="after")
    def require_one_field(self) -> "UserUpdate":
        """Reject updates that would change nothing."""
        if self.name is not None:
            self.name = self.name.strip() or None
        if self.name is None and self.email is None:
            raise ValueError("At least one field (name or email) must be provided for update")
        return self


class UserResponse(DocumentModel):
    """Response model for user info."""

    user_id: UUID
    name: str
    email: str
    created_at: datetime | None = None


class OwnedPartySummary(DocumentModel):
    """Party owned by a user, without nested collections."""

    party_id: UUID
    owner_id: UUID
    name: str
    created_at: datetime


class PaidExpenseSummary(DocumentModel):
    """Expense paid by a user."""

    expense_id: UUID
    party_id: UUID
    payer_id: UUID
    description: str
    amount: Decimal
    created_at: datetime


class PartyContribution(DocumentModel):
    """Party the user contributes to."""

    party_id: UUID
    user_id: UUID


class ExpenseParticipation(DocumentModel):
    """Expense the user shares, with the user's share."""

    expense_id: UUID
    user_id: UUID
    share: Decimal | None = None


class UserDetails(UserResponse):
    """User with every party and expense relation, read in one query."""

    owned_parties: list[OwnedPartySummary]
    paid_expenses: list[PaidExpenseSummary]
    party_contributions: list[PartyContribution]
    expense_participations: list[ExpenseParticipation]


class UserDetailsResponse(ApiModel):
    """Envelope for the get-user endpoint."""

    user: UserDetails
