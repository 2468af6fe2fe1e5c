"""
Read path for the full party document.

A party, its owner, its expenses (each with participants and their users), its
contributors (with their users) and its bill images are assembled by
PostgreSQL into one JSON document with a single statement, so the result is a
consistent snapshot even while other requests write to the party.
"""
import json
import logging
from typing import Any
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy import Select, Text, bindparam, case, cast, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from splity.models.expense import Expense, ExpenseParticipant
from splity.models.party import Party, PartyBillImage, PartyContributor
from splity.models.user import User
from splity.repositories.sql_json import json_array, json_object
from splity.schemas.party import PartyAggregate
from splity.services.exceptions import AggregateDecodeError

logger = logging.getLogger(__name__)


def user_json(user: Any) -> Any:
    """JSON projection of a user row (or aliased user)."""
    return json_object(
        userId=user.user_id,
        name=user.name,
        email=user.email,
        createdAt=user.created_at,
    )


def build_party_aggregate_query() -> Select[tuple[str]]:
    """
    Build the party aggregate statement.

    The statement takes one bind parameter, ``party_id``, and returns at most
    one row holding the document as text.
    """
    owner = aliased(User, name="owner")
    participant_user = aliased(User, name="participant_user")
    contributor_user = aliased(User, name="contributor_user")

    participants = (
        select(
            json_array(
                json_object(
                    expenseId=ExpenseParticipant.expense_id,
                    userId=ExpenseParticipant.user_id,
                    share=ExpenseParticipant.share,
                    user=user_json(participant_user),
                ),
                participant_user.name,
                ExpenseParticipant.user_id,
            ),
        )
        .select_from(ExpenseParticipant)
        .join(participant_user, participant_user.user_id == ExpenseParticipant.user_id)
        .where(ExpenseParticipant.expense_id == Expense.expense_id)
        .correlate(Expense)
        .scalar_subquery()
    )

    expenses = (
        select(
            json_array(
                json_object(
                    expenseId=Expense.expense_id,
                    partyId=Expense.party_id,
                    payerId=Expense.payer_id,
                    description=Expense.description,
                    amount=Expense.amount,
                    createdAt=Expense.created_at,
                    participants=participants,
                ),
                Expense.created_at,
                Expense.expense_id,
            ),
        )
        .select_from(Expense)
        .where(Expense.party_id == Party.party_id)
        .correlate(Party)
        .scalar_subquery()
    )

    contributors = (
        select(
            json_array(
                json_object(
                    partyId=PartyContributor.party_id,
                    userId=PartyContributor.user_id,
                    user=user_json(contributor_user),
                ),
                contributor_user.name,
                PartyContributor.user_id,
            ),
        )
        .select_from(PartyContributor)
        .join(contributor_user, contributor_user.user_id == PartyContributor.user_id)
        .where(PartyContributor.party_id == Party.party_id)
        .correlate(Party)
        .scalar_subquery()
    )

    bill_images = (
        select(
            json_array(
                json_object(
                    billId=PartyBillImage.bill_id,
                    billFileTitle=PartyBillImage.bill_file_title,
                    partyId=PartyBillImage.party_id,
                    imageUrl=PartyBillImage.image_url,
                ),
                PartyBillImage.bill_file_title,
                PartyBillImage.bill_id,
            ),
        )
        .select_from(PartyBillImage)
        .where(PartyBillImage.party_id == Party.party_id)
        .correlate(Party)
        .scalar_subquery()
    )

    document = json_object(
        partyId=Party.party_id,
        ownerId=Party.owner_id,
        name=Party.name,
        createdAt=Party.created_at,
        owner=case((owner.user_id.is_not(None), user_json(owner))),
        expenses=expenses,
        contributors=contributors,
        billImages=bill_images,
    )

    return (
        select(cast(document, Text))
        .select_from(Party)
        .outerjoin(owner, owner.user_id == Party.owner_id)
        .where(Party.party_id == bindparam("party_id"))
    )


PARTY_AGGREGATE_QUERY = build_party_aggregate_query()


def decode_party_document(document: str | bytes) -> PartyAggregate:
    """
    Decode a party document.

    Keys are matched case-insensitively, so ``PartyId`` and ``partyId`` both
    populate ``party_id``.

    Raises:
        AggregateDecodeError: If the text is not JSON or does not have the
            shape of a party aggregate.
    """
    try:
        return PartyAggregate.model_validate_json(document)
    except (ValidationError, json.JSONDecodeError, ValueError) as e:
        raise AggregateDecodeError("party", str(e)) from e


class PartyAggregateReader:
    """Loads PartyAggregate documents with one round trip per party."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_by_id(self, party_id: UUID) -> PartyAggregate | None:
        """
        Return the party aggregate, or None if the party does not exist.

        Raises:
            AggregateDecodeError: If the database returned a malformed document.
        """
        result = await self.db.execute(PARTY_AGGREGATE_QUERY, {"party_id": party_id})
        document = result.scalar_one_or_none()
        if document is None:
            logger.info("Party %s not found", party_id)
            return None
        return decode_party_document(document)
