"""Data access for users, parties and expenses."""
from splity.repositories.expense import ExpenseRepository
from splity.repositories.party import PartyRepository
from splity.repositories.party_aggregate import PartyAggregateReader
from splity.repositories.user import UserRepository

__all__ = [
    "ExpenseRepository",
    "PartyAggregateReader",
    "PartyRepository",
    "UserRepository",
]
