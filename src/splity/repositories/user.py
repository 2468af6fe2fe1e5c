"""Repository for users, including the atomic provisioning upsert."""
import logging
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy import Select, Text, bindparam, cast, delete, literal_column, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from splity.models.expense import Expense, ExpenseParticipant
from splity.models.party import Party, PartyContributor
from splity.models.user import User
from splity.repositories.sql_json import json_array, json_object
from splity.schemas.user import UserCreate, UserDetails, UserUpdate
from splity.services.exceptions import AggregateDecodeError, DuplicateEmailError

logger = logging.getLogger(__name__)


def _build_user_details_query() -> Select[tuple[str]]:
    owned_parties = (
        select(
            json_array(
                json_object(
                    partyId=Party.party_id,
                    ownerId=Party.owner_id,
                    name=Party.name,
                    createdAt=Party.created_at,
                ),
                Party.created_at,
                Party.party_id,
            ),
        )
        .select_from(Party)
        .where(Party.owner_id == User.user_id)
        .correlate(User)
        .scalar_subquery()
    )
    paid_expenses = (
        select(
            json_array(
                json_object(
                    expenseId=Expense.expense_id,
                    partyId=Expense.party_id,
                    payerId=Expense.payer_id,
                    description=Expense.description,
                    amount=Expense.amount,
                    createdAt=Expense.created_at,
                ),
                Expense.created_at,
                Expense.expense_id,
            ),
        )
        .select_from(Expense)
        .where(Expense.payer_id == User.user_id)
        .correlate(User)
        .scalar_subquery()
    )
    contributions = (
        select(
            json_array(
                json_object(partyId=PartyContributor.party_id, userId=PartyContributor.user_id),
                PartyContributor.party_id,
            ),
        )
        .select_from(PartyContributor)
        .where(PartyContributor.user_id == User.user_id)
        .correlate(User)
        .scalar_subquery()
    )
    participations = (
        select(
            json_array(
                json_object(
                    expenseId=ExpenseParticipant.expense_id,
                    userId=ExpenseParticipant.user_id,
                    share=ExpenseParticipant.share,
                ),
                ExpenseParticipant.expense_id,
            ),
        )
        .select_from(ExpenseParticipant)
        .where(ExpenseParticipant.user_id == User.user_id)
        .correlate(User)
        .scalar_subquery()
    )
    document = json_object(
        userId=User.user_id,
        name=User.name,
        email=User.email,
        createdAt=User.created_at,
        ownedParties=owned_parties,
        paidExpenses=paid_expenses,
        partyContributions=contributions,
        expenseParticipations=participations,
    )
    return select(cast(document, Text)).where(User.user_id == bindparam("user_id"))


USER_DETAILS_QUERY = _build_user_details_query()


class UserRepository:
    """
    Data access for the users table.

    Methods flush but never commit; the request's session dependency commits
    once at the end of the request.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_by_id(self, user_id: UUID) -> User | None:
        """Get a user by id."""
        return await self.db.get(User, user_id)

    async def get_by_email(self, email: str) -> User | None:
        """Get a user by email (exact match)."""
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get_with_details(self, user_id: UUID) -> UserDetails | None:
        """
        Get a user with owned parties, paid expenses, contributions and
        participations, read in one statement.

        Raises:
            AggregateDecodeError: If the database returned a malformed document.
        """
        result = await self.db.execute(USER_DETAILS_QUERY, {"user_id": user_id})
        document = result.scalar_one_or_none()
        if document is None:
            return None
        try:
            return UserDetails.model_validate_json(document)
        except (ValidationError, ValueError) as e:
            raise AggregateDecodeError("user", str(e)) from e

    async def create(self, data: UserCreate) -> User:
        """
        Create a user.

        Raises:
            DuplicateEmailError: If the email is already in use.
        """
        user = User(name=data.name, email=str(data.email), external_id=data.external_id)
        try:
            async with self.db.begin_nested():
                self.db.add(user)
                await self.db.flush()
        except IntegrityError as e:
            raise DuplicateEmailError(str(data.email)) from e
        await self.db.refresh(user)
        return user

    async def get_or_create_by_email(
        self,
        email: str,
        name: str,
        external_id: str | None = None,
    ) -> tuple[UUID, bool]:
        """
        Return the id of the user with ``email``, creating the user if needed.

        A single ``INSERT ... ON CONFLICT (email) DO UPDATE ... RETURNING``
        statement, so concurrent first logins for one email converge on one
        row. The no-op update makes RETURNING yield the existing row; an
        existing row is never modified.

        Returns:
            Tuple of (user_id, inserted). ``inserted`` is False when the row
            already existed.
        """
        stmt = pg_insert(User).values(name=name, email=email, external_id=external_id)
        stmt = stmt.on_conflict_do_update(
            index_elements=[User.email],
            set_={"email": stmt.excluded.email},
        ).returning(User.user_id, literal_column("(xmax = 0)").label("inserted"))
        result = await self.db.execute(stmt)
        row = result.one()
        if row.inserted:
            logger.info("Provisioned user %s for new identity", row.user_id)
        return row.user_id, bool(row.inserted)

    async def update(self, user_id: UUID, data: UserUpdate) -> User | None:
        """
        Update a user's name and/or email. Returns None if not found.

        Raises:
            DuplicateEmailError: If the new email belongs to another user.
        """
        user = await self.get_by_id(user_id)
        if user is None:
            return None

        update_data = data.model_dump(exclude_unset=True, exclude_none=True)
        try:
            async with self.db.begin_nested():
                for field, value in update_data.items():
                    setattr(user, field, str(value))
                await self.db.flush()
        except IntegrityError as e:
            raise DuplicateEmailError(str(data.email)) from e
        await self.db.refresh(user)
        return user

    async def delete(self, user_id: UUID) -> bool:
        """
        Delete a user and, through foreign-key cascades, everything they own.

        Returns True if deleted, False if not found.
        """
        result = await self.db.execute(
            delete(User).where(User.user_id == user_id).returning(User.user_id),
        )
        return result.scalar_one_or_none() is not None
