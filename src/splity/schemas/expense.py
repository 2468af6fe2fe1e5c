"""Pydantic schemas for expense endpoints."""
from datetime import UTC, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import Field, model_validator

from splity.schemas.base import ApiModel, DocumentModel, RequiredStr, RequiredUUID


class ParticipantCreate(ApiModel):
    """A user sharing a new expense."""

    user_id: RequiredUUID
    share: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)


class ExpenseItemCreate(ApiModel):
    """A single expense line."""

    description: RequiredStr = Field(..., max_length=500)
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    participants: list[ParticipantCreate] = Field(default_factory=list)


class ExpensesCreate(ApiModel):
    """Schema for creating one or more expenses paid by one user in one party."""

    party_id: RequiredUUID
    payer_id: RequiredUUID
    expenses: list[ExpenseItemCreate] = Field(..., min_length=1)


class ExpensesCreateResponse(ApiModel):
    """Ids of the created expenses, in request order."""

    created_expenses: list[UUID]


class ExpenseUpdate(ApiModel):
    """Schema for editing an expense."""

    description: RequiredStr | None = Field(default=None, max_length=500)
    amount: Decimal | None = Field(default=None, gt=0, max_digits=12, decimal_places=2)

    @model_validator(mode="after")
    def require_one_field(self) -> "ExpenseUpdate":
        """Reject updates that would change nothing."""
        if self.description is None and self.amount is None:
            raise ValueError(
                "At least one field (description or amount) must be provided for update",
            )
        return self


class ExpenseResponse(DocumentModel):
    """Expense row."""

    expense_id: UUID
    party_id: UUID
    payer_id: UUID
    description: str
    amount: Decimal
    created_at: datetime


class ExpensesDelete(ApiModel):
    """Schema for bulk-deleting expenses."""

    expense_ids: list[UUID] = Field(..., min_length=1)


class ExpensesDeleteResponse(ApiModel):
    """Result of a bulk delete."""

    success: bool
    deleted_count: int
    requested_count: int
    deleted_expense_ids: list[UUID]
    message: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
