"""ID token verification for the relying party."""

import secrets

from pydantic import ValidationError

from pkjwt.crypto.types import IdTokenClaims
from pkjwt.oidc.errors import (
    IdTokenVerificationError,
    InvalidNonce,
    TokenValidationError,
)
from pkjwt.oidc.jwks import JWKSet
from pkjwt.oidc.jwt_verify import verify_signed_jwt


def verify_id_token(
    raw_id_token: str,
    jwks: JWKSet,
    *,
    issuer: str,
    client_id: str,
    expected_nonce: str,
) -> IdTokenClaims:
    """Verify signature, issuer, audience and lifetime, then the nonce."""
    try:
        payload = verify_signed_jwt(
            raw_id_token, jwks, issuer=issuer, audience=client_id
        )
        claims = IdTokenClaims.model_validate(payload)
    except (TokenValidationError, ValidationError) as exc:
        raise IdTokenVerificationError(f"Failed to verify ID Token: {exc}") from exc

    if claims.nonce is None or not secrets.compare_digest(
        claims.nonce.encode(), expected_nonce.encode()
    ):
        raise InvalidNonce()
    return claims
