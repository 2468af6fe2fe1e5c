"""Expense model and per-expense participant shares."""
import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from splity.models.base import Base, CreatedAtMixin

if TYPE_CHECKING:
    from splity.models.party import Party


class Expense(Base, CreatedAtMixin):
    """A single amount paid by one user on behalf of a party."""

    __tablename__ = "expenses"

    expense_id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    party_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("parties.party_id", ondelete="CASCADE"),
        index=True,
    )
    payer_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.user_id", ondelete="CASCADE"),
        index=True,
    )
    description: Mapped[str] = mapped_column(String(500))
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2))

    party: Mapped["Party"] = relationship(back_populates="expenses")
    participants: Mapped[list["ExpenseParticipant"]] = relationship(
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class ExpenseParticipant(Base):
    """A user sharing an expense, with an optional explicit share."""

    __tablename__ = "expense_participants"

    expense_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("expenses.expense_id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.user_id", ondelete="CASCADE"),
        primary_key=True,
    )
    share: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
