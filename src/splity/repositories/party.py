"""Repository for parties, their contributors and bill images."""
from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from splity.models.party import Party, PartyBillImage, PartyContributor
from splity.models.user import User
from splity.services.exceptions import UnknownUsersError


async def find_missing_users(db: AsyncSession, user_ids: Iterable[UUID]) -> set[UUID]:
    """Return the subset of ``user_ids`` that has no users row."""
    wanted = set(user_ids)
    if not wanted:
        return set()
    result = await db.execute(select(User.user_id).where(User.user_id.in_(wanted)))
    return wanted - set(result.scalars().all())


class PartyRepository:
    """Data access for the parties table and its association tables."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create(
        self,
        owner_id: UUID,
        name: str,
        contributor_ids: Iterable[UUID] = (),
    ) -> Party:
        """
        Create a party owned by ``owner_id`` with optional contributors.

        Duplicate contributor ids are collapsed.

        Raises:
            UnknownUsersError: If any contributor id has no user.
        """
        contributors = list(dict.fromkeys(contributor_ids))
        missing = await find_missing_users(self.db, contributors)
        if missing:
            raise UnknownUsersError(missing)

        party = Party(owner_id=owner_id, name=name)
        self.db.add(party)
        await self.db.flush()
        self.db.add_all(
            PartyContributor(party_id=party.party_id, user_id=user_id)
            for user_id in contributors
        )
        await self.db.flush()
        await self.db.refresh(party)
        return party

    async def get(self, party_id: UUID) -> Party | None:
        """Get a party row by id."""
        return await self.db.get(Party, party_id)

    async def get_owned(self, party_id: UUID, owner_id: UUID) -> Party | None:
        """Get a party by id, scoped to its owner."""
        result = await self.db.execute(
            select(Party).where(Party.party_id == party_id, Party.owner_id == owner_id),
        )
        return result.scalar_one_or_none()

    async def list_by_owner(self, owner_id: UUID) -> list[Party]:
        """Get all parties owned by a user, oldest first."""
        result = await self.db.execute(
            select(Party)
            .where(Party.owner_id == owner_id)
            .order_by(Party.created_at, Party.party_id),
        )
        return list(result.scalars().all())

    async def update(self, party_id: UUID, owner_id: UUID, name: str) -> Party | None:
        """Rename a party. Returns None if not found or not owned by ``owner_id``."""
        party = await self.get_owned(party_id, owner_id)
        if party is None:
            return None
        party.name = name
        await self.db.flush()
        await self.db.refresh(party)
        return party

    async def delete(self, party_id: UUID, owner_id: UUID) -> bool:
        """
        Delete a party with its expenses, contributors and bill images.

        Returns True if deleted, False if not found or not owned by ``owner_id``.
        """
        result = await self.db.execute(
            delete(Party)
            .where(Party.party_id == party_id, Party.owner_id == owner_id)
            .returning(Party.party_id),
        )
        return result.scalar_one_or_none() is not None

    async def add_bill_image(
        self,
        party_id: UUID,
        bill_file_title: str,
        image_url: str,
    ) -> PartyBillImage:
        """Attach an uploaded receipt image to a party."""
        bill_image = PartyBillImage(
            party_id=party_id,
            bill_file_title=bill_file_title,
            image_url=image_url,
        )
        self.db.add(bill_image)
        await self.db.flush()
        return bill_image
