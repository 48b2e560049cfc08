"""Resource-server validation of inbound bearer access tokens."""

import logging

from pydantic import ValidationError

from pkjwt.crypto.types import ValidatedAccessTokenClaims
from pkjwt.oidc.discovery import MetadataCache
from pkjwt.oidc.errors import (
    ClaimValidationFailed,
    InsufficientScope,
    MalformedHeader,
)
from pkjwt.oidc.jwt_verify import verify_signed_jwt

logger = logging.getLogger(__name__)

BEARER_SCHEME = "bearer"


def extract_bearer_token(authorization: str | None) -> str:
    """Return the token from ``Authorization: Bearer <token>``."""
    parts = (authorization or "").split()
    if len(parts) != 2 or parts[0].lower() != BEARER_SCHEME:
        raise MalformedHeader()
    return parts[1]


class BearerTokenValidator:
    """Validates access tokens issued to one API.

    Issuer and keys come from the shared :class:`MetadataCache`, read once
    per call so a concurrent refresh is picked up atomically.
    """

    def __init__(self, metadata: MetadataCache, audience: str) -> None:
        self._metadata = metadata
        self._audience = audience

    @property
    def audience(self) -> str:
        return self._audience

    def validate(
        self, authorization: str | None, required_scope: str | None = None
    ) -> ValidatedAccessTokenClaims:
        """Validate an ``Authorization`` header value, all or nothing."""
        token = extract_bearer_token(authorization)
        snapshot = self._metadata.snapshot()
        payload = verify_signed_jwt(
            token,
            snapshot.require_jwks(),
            issuer=snapshot.metadata.issuer,
            audience=self._audience,
        )
        try:
            claims = ValidatedAccessTokenClaims.model_validate(payload)
        except ValidationError as exc:
            raise ClaimValidationFailed(f"access token claims invalid: {exc}") from exc

        logger.debug(
            "Access token for sub=%s client_id=%s assurance_level=%s",
            claims.sub,
            claims.client_id,
            claims.assurance_level,
        )
        if required_scope is not None and not claims.has_scope(required_scope):
            raise InsufficientScope(required_scope)
        return claims
