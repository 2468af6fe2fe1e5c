"""Identity data extracted from validated tokens."""
from uuid import UUID

from pydantic import BaseModel


class IdentityClaims(BaseModel):
    """
    Verified identity attributes of the caller.

    Produced per request by the token validator and discarded afterwards.

    Attributes:
        subject: Identity-provider subject ('sub' claim).
        email: Email claim, when the token carries one.
        name: Display name ('name', 'given_name' or 'username').
        groups: Group memberships ('cognito:groups').
        local_user_id: Id of the matching local user, attached by the session
            resolver. None means no local record exists yet.
    """

    subject: str
    email: str | None = None
    name: str | None = None
    groups: frozenset[str] = frozenset()
    local_user_id: UUID | None = None


class AuthenticatedUser(BaseModel):
    """Caller whose identity is verified and provisioned locally."""

    user_id: UUID
    claims: IdentityClaims
