"""JWT validation against the issuer's published signing keys."""
import logging
from typing import Any

import jwt
from pydantic import ValidationError

from splity.core.jwks import JWKSCache
from splity.schemas.auth import IdentityClaims

logger = logging.getLogger(__name__)

LEGACY_SUBJECT_CLAIM = "http://schemas.xmlsoap.org/ws/2005/05/identity/claims/nameidentifier"
GROUPS_CLAIM = "cognito:groups"
NAME_CLAIMS = ("name", "given_name", "username", "cognito:username")


class TokenValidator:
    """
    Verifies bearer tokens and extracts identity claims.

    Validation rules:
    - signature must verify against one of the issuer's JWKS keys
    - ``iss`` must equal the configured issuer
    - ``exp`` must not have passed, with ``leeway`` seconds of clock skew
    - ``aud`` is checked against the client id only when the token has one
      (access tokens carry ``client_id`` instead)

    ``validate`` never raises: every failure is logged and reported as None,
    which callers treat as "unauthenticated".
    """

    def __init__(
        self,
        jwks_cache: JWKSCache,
        issuer: str,
        client_id: str,
        leeway: int = 300,
    ) -> None:
        self.jwks_cache = jwks_cache
        self.issuer = issuer.rstrip("/")
        self.client_id = client_id
        self.leeway = leeway

    async def validate(self, raw_token: str) -> IdentityClaims | None:
        """Return the token's identity claims, or None if it is not valid."""
        try:
            header = jwt.get_unverified_header(raw_token)
            unverified = jwt.decode(raw_token, options={"verify_signature": False})
            keys = await self.jwks_cache.get_signing_keys(self.issuer, header.get("kid"))
            claims = self._verify(raw_token, keys, has_audience="aud" in unverified)
            identity = claims_to_identity(claims)
        except jwt.PyJWTError as e:
            logger.warning("Token validation failed: %s", e)
            return None
        except ValidationError as e:
            logger.warning("Token validation failed: unusable identity claims: %s", e)
            return None
        except Exception:
            logger.exception("Unexpected error during token validation")
            return None

        if not identity.subject:
            logger.warning("Token validation failed: no subject claim")
            return None
        return identity

    def _verify(
        self,
        raw_token: str,
        keys: list[jwt.PyJWK],
        has_audience: bool,
    ) -> dict[str, Any]:
        if not keys:
            raise jwt.InvalidTokenError("No signing keys available for issuer")

        for key in keys:
            try:
                return jwt.decode(
                    raw_token,
                    key.key,
                    algorithms=[key.algorithm_name],
                    issuer=self.issuer,
                    audience=self.client_id if has_audience else None,
                    leeway=self.leeway,
                    options={
                        "require": ["exp", "iss"],
                        "verify_aud": has_audience,
                    },
                )
            except (jwt.InvalidSignatureError, jwt.InvalidAlgorithmError):
                # Wrong candidate key; claim errors are key-independent and propagate
                continue

        raise jwt.InvalidSignatureError("Signature verification failed for all keys")


def claims_to_identity(claims: dict[str, Any]) -> IdentityClaims:
    """
    Map verified token claims to IdentityClaims.

    Raises:
        pydantic.ValidationError: If a claim has an unusable type.
    """
    subject = claims.get("sub") or claims.get(LEGACY_SUBJECT_CLAIM) or ""

    name = None
    for claim in NAME_CLAIMS:
        if claims.get(claim):
            name = claims[claim]
            break

    groups = claims.get(GROUPS_CLAIM) or []
    if isinstance(groups, str):
        groups = [groups]

    return IdentityClaims(
        subject=str(subject),
        email=claims.get("email") or None,
        name=name,
        groups=frozenset(str(g) for g in groups),
    )
