"""Repository for expenses and their participants."""
from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from splity.models.expense import Expense, ExpenseParticipant
from splity.models.party import Party
from splity.repositories.party import find_missing_users
from splity.schemas.expense import ExpensesCreate, ExpenseUpdate
from splity.services.exceptions import PartyNotFoundError, UnknownUsersError


class ExpenseRepository:
    """Data access for the expenses and expense_participants tables."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create_many(self, data: ExpensesCreate) -> list[Expense]:
        """
        Create every expense in ``data`` for one party and one payer.

        All expenses are inserted or none are: checks run before any insert,
        and the request's unit of work rolls back on a later failure.

        Raises:
            PartyNotFoundError: If the party does not exist.
            UnknownUsersError: If the payer or a participant has no user.
        """
        if await self.db.get(Party, data.party_id) is None:
            raise PartyNotFoundError(data.party_id)

        referenced = {data.payer_id}
        for item in data.expenses:
            referenced.update(p.user_id for p in item.participants)
        missing = await find_missing_users(self.db, referenced)
        if missing:
            raise UnknownUsersError(missing)

        expenses = [
            Expense(
                party_id=data.party_id,
                payer_id=data.payer_id,
                description=item.description,
                amount=item.amount,
            )
            for item in data.expenses
        ]
        self.db.add_all(expenses)
        await self.db.flush()

        for expense, item in zip(expenses, data.expenses, strict=True):
            # Last entry wins when a user is listed twice for one expense
            shares = {p.user_id: p.share for p in item.participants}
            self.db.add_all(
                ExpenseParticipant(expense_id=expense.expense_id, user_id=user_id, share=share)
                for user_id, share in shares.items()
            )
        await self.db.flush()
        return expenses

    async def list_by_party(self, party_id: UUID) -> list[Expense]:
        """Get a party's expenses, oldest first."""
        result = await self.db.execute(
            select(Expense)
            .where(Expense.party_id == party_id)
            .order_by(Expense.created_at, Expense.expense_id),
        )
        return list(result.scalars().all())

    async def update(self, expense_id: UUID, data: ExpenseUpdate) -> Expense | None:
        """Update an expense's description and/or amount. Returns None if not found."""
        expense = await self.db.get(Expense, expense_id)
        if expense is None:
            return None

        for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(expense, field, value)
        await self.db.flush()
        await self.db.refresh(expense)
        return expense

    async def delete_many(self, expense_ids: Sequence[UUID]) -> list[UUID]:
        """
        Delete expenses by id, with their participants.

        Unknown ids are ignored. Returns the ids that were actually deleted.
        """
        result = await self.db.execute(
            delete(Expense)
            .where(Expense.expense_id.in_(set(expense_ids)))
            .returning(Expense.expense_id),
        )
        return list(result.scalars().all())
