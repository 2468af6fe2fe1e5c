"""
Request authentication: token extraction, validation and local provisioning.

A request is authenticated in two steps. ``SessionResolver.resolve`` finds the
caller's token, validates it and attaches the id of the matching local user if
one exists. ``SessionResolver.ensure_provisioned`` then guarantees a local
user row, creating it on first login with one atomic upsert.
"""
import logging
from uuid import UUID

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from splity.core.token_validator import TokenValidator
from splity.db.session import get_async_session
from splity.repositories.user import UserRepository
from splity.schemas.auth import AuthenticatedUser, IdentityClaims

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "splity_access_token"
ACCESS_TOKEN_QUERY_PARAM = "token"

AUTHENTICATION_REQUIRED = "Authentication required"
AUTHENTICATION_FAILED = "Authentication failed"


class AuthenticationError(Exception):
    """
    Raised when a request cannot be authenticated.

    The message is safe to return to the client; causes are logged only.
    """

    def __init__(self, message: str = AUTHENTICATION_REQUIRED) -> None:
        self.message = message
        super().__init__(message)


def extract_token(request: Request) -> str | None:
    """
    Find the caller's access token.

    Sources, first match wins:
    1. ``Authorization: Bearer <token>`` (scheme is case-insensitive)
    2. the ``splity_access_token`` cookie
    3. the ``token`` query parameter
    """
    authorization = request.headers.get("authorization", "")
    scheme, _, credentials = authorization.strip().partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()

    cookie = request.cookies.get(ACCESS_TOKEN_COOKIE, "").strip()
    if cookie:
        return cookie

    query = request.query_params.get(ACCESS_TOKEN_QUERY_PARAM, "").strip()
    if query:
        return query

    return None


class SessionResolver:
    """Turns an incoming request into a verified, locally provisioned identity."""

    def __init__(self, token_validator: TokenValidator, users: UserRepository) -> None:
        self.token_validator = token_validator
        self.users = users

    async def resolve(self, request: Request) -> IdentityClaims:
        """
        Validate the request's token and look up the matching local user.

        ``local_user_id`` on the result stays None when no user has the
        token's email yet.

        Raises:
            AuthenticationError: If there is no token, the token is invalid,
                or anything unexpected happens while resolving.
        """
        try:
            token = extract_token(request)
            if token is None:
                logger.info("No access token on %s %s", request.method, request.url.path)
                raise AuthenticationError(AUTHENTICATION_REQUIRED)

            claims = await self.token_validator.validate(token)
            if claims is None:
                raise AuthenticationError(AUTHENTICATION_REQUIRED)

            if claims.email:
                user = await self.users.get_by_email(claims.email)
                if user is not None:
                    claims = claims.model_copy(update={"local_user_id": user.user_id})
            return claims
        except AuthenticationError:
            raise
        except Exception as e:
            logger.exception("Unexpected error resolving session")
            raise AuthenticationError(AUTHENTICATION_FAILED) from e

    async def ensure_provisioned(self, claims: IdentityClaims) -> UUID:
        """
        Return the local user id for ``claims``, creating the user if needed.

        New users are named after the token's name claim, falling back to the
        email, and linked to the token subject via ``external_id``.

        Raises:
            AuthenticationError: If the identity has no email, since users are
                keyed by email.
        """
        if claims.local_user_id is not None:
            return claims.local_user_id

        if not claims.email:
            logger.warning("Cannot provision identity %s without an email claim", claims.subject)
            raise AuthenticationError(AUTHENTICATION_REQUIRED)

        user = await self.users.get_by_email(claims.email)
        if user is not None:
            return user.user_id

        name = (claims.name or "").strip() or claims.email
        user_id, _ = await self.users.get_or_create_by_email(
            email=claims.email,
            name=name,
            external_id=claims.subject,
        )
        return user_id

    async def authenticate(self, request: Request) -> AuthenticatedUser:
        """
        Resolve and provision the caller.

        Raises:
            AuthenticationError: On any failure.
        """
        claims = await self.resolve(request)
        try:
            user_id = await self.ensure_provisioned(claims)
        except AuthenticationError:
            raise
        except Exception as e:
            logger.exception("Unexpected error provisioning user")
            raise AuthenticationError(AUTHENTICATION_FAILED) from e
        return AuthenticatedUser(
            user_id=user_id,
            claims=claims.model_copy(update={"local_user_id": user_id}),
        )


def get_token_validator(request: Request) -> TokenValidator:
    """Get the process-wide token validator built in the application lifespan."""
    return request.app.state.token_validator


async def get_session_resolver(
    token_validator: TokenValidator = Depends(get_token_validator),
    db: AsyncSession = Depends(get_async_session),
) -> SessionResolver:
    """Build a session resolver bound to the request's database session."""
    return SessionResolver(token_validator, UserRepository(db))


async def get_current_user(
    request: Request,
    resolver: SessionResolver = Depends(get_session_resolver),
) -> AuthenticatedUser:
    """
    Authenticate the request.

    Raises AuthenticationError, which the application turns into a 401.
    """
    return await resolver.authenticate(request)
