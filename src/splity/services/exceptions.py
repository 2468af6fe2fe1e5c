"""Shared exceptions for data access and service operations."""
from collections.abc import Iterable
from uuid import UUID


class PartyNotFoundError(Exception):
    """Raised when a party id does not exist."""

    def __init__(self, party_id: UUID) -> None:
        self.party_id = party_id
        super().__init__(f"Party not found: {party_id}")


class UnknownUsersError(Exception):
    """
    Raised when a request references users that do not exist.

    Used for party contributors, expense payers and expense participants.
    The ids are kept sorted so the message is stable.
    """

    def __init__(self, user_ids: Iterable[UUID]) -> None:
        self.user_ids = sorted(user_ids, key=str)
        joined = ", ".join(str(user_id) for user_id in self.user_ids)
        super().__init__(f"Unknown user ids: {joined}")


class DuplicateEmailError(Exception):
    """Raised when a user would be created or updated with an email already in use."""

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__(f"A user with email '{email}' already exists")


class AggregateDecodeError(Exception):
    """
    Raised when a JSON document built by the database cannot be decoded.

    Distinct from "not found": a missing row is reported as None, while this
    means the row exists but its document does not match the expected shape.
    """

    def __init__(self, entity: str, detail: str) -> None:
        self.entity = entity
        self.detail = detail
        super().__init__(f"Could not decode {entity} document: {detail}")
