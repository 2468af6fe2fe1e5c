"""SQLAlchemy models."""
from splity.models.base import Base, CreatedAtMixin
from splity.models.expense import Expense, ExpenseParticipant
from splity.models.party import Party, PartyBillImage, PartyContributor
from splity.models.user import User

__all__ = [
    "Base",
    "CreatedAtMixin",
    "Expense",
    "ExpenseParticipant",
    "Party",
    "PartyBillImage",
    "PartyContributor",
    "User",
]
