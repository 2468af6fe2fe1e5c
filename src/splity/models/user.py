"""User model for people who own parties, pay for and share expenses."""
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from splity.models.base import Base, CreatedAtMixin

if TYPE_CHECKING:
    from splity.models.party import Party


class User(Base, CreatedAtMixin):
    """User model - local record, optionally linked to an identity-provider subject."""

    __tablename__ = "users"

    user_id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255))
    email: Mapped[str] = mapped_column(String(320), unique=True, index=True)
    external_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Identity provider 'sub' claim for users provisioned on login",
    )

    owned_parties: Mapped[list["Party"]] = relationship(
        back_populates="owner",
        cascade="all, delete-orphan",
    )
