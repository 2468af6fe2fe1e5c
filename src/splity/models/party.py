"""Party model and its contributor/bill-image association tables."""
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from splity.models.base import Base, CreatedAtMixin

if TYPE_CHECKING:
    from splity.models.expense import Expense
    from splity.models.user import User


class Party(Base, CreatedAtMixin):
    """A group of people sharing expenses (a trip, a dinner, a flat)."""

    __tablename__ = "parties"

    party_id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.user_id", ondelete="CASCADE"),
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255))

    owner: Mapped["User"] = relationship(back_populates="owned_parties")
    expenses: Mapped[list["Expense"]] = relationship(
        back_populates="party",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    contributors: Mapped[list["PartyContributor"]] = relationship(
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    bill_images: Mapped[list["PartyBillImage"]] = relationship(
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class PartyContributor(Base):
    """Membership of a user in a party."""

    __tablename__ = "party_contributors"

    party_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("parties.party_id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.user_id", ondelete="CASCADE"),
        primary_key=True,
    )


class PartyBillImage(Base):
    """Uploaded receipt image attached to a party."""

    __tablename__ = "party_bills_images"

    bill_id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    bill_file_title: Mapped[str] = mapped_column(String(255))
    party_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("parties.party_id", ondelete="CASCADE"),
        index=True,
    )
    image_url: Mapped[str] = mapped_column(Text)
