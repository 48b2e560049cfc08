"""Signature and claim verification shared by access and ID tokens."""

from typing import Any

import jwt

from pkjwt.oidc.errors import (
    ClaimValidationFailed,
    InvalidSignature,
    MalformedToken,
    MultipleAudiences,
)
from pkjwt.oidc.jwks import JWKSet

CLOCK_SKEW_SECONDS = 0
REQUIRED_CLAIMS = ["exp", "iss", "aud"]

_SIGNATURE_ONLY: dict[str, Any] = {
    "verify_signature": True,
    "verify_exp": False,
    "verify_nbf": False,
    "verify_iat": False,
    "verify_aud": False,
    "verify_iss": False,
}


def _audience_count(payload: dict[str, Any]) -> int:
    aud = payload.get("aud")
    if isinstance(aud, list):
        return len(aud)
    return 0 if aud is None else 1


def verify_signed_jwt(
    token: str, jwks: JWKSet, *, issuer: str, audience: str
) -> dict[str, Any]:
    """Verify a compact JWS and return its payload.

    Checks run in a fixed order and stop at the first failure: parse,
    key lookup and signature, audience count, then issuer, audience and
    the ``[nbf, exp)`` window with no leeway. Nothing in the payload is
    read before the signature has been verified.
    """
    try:
        header = jwt.get_unverified_header(token)
    except jwt.InvalidTokenError as exc:
        raise MalformedToken(f"token could not be parsed: {exc}") from exc

    kid = header.get("kid")
    key = jwks.get(kid)
    if key is None:
        raise InvalidSignature("no matching key found for token kid")
    algorithms = jwks.algorithms_for(kid, header.get("alg"))

    try:
        payload: dict[str, Any] = jwt.decode(
            token, key.key, algorithms=algorithms, options=_SIGNATURE_ONLY
        )
    except jwt.InvalidSignatureError as exc:
        raise InvalidSignature(f"token signature is invalid: {exc}") from exc
    except jwt.InvalidAlgorithmError as exc:
        raise InvalidSignature(f"token algorithm not accepted: {exc}") from exc
    except jwt.DecodeError as exc:
        raise MalformedToken(f"token could not be parsed: {exc}") from exc
    except jwt.InvalidTokenError as exc:
        raise ClaimValidationFailed(str(exc)) from exc

    if _audience_count(payload) > 1:
        raise MultipleAudiences()

    try:
        jwt.decode(
            token,
            key.key,
            algorithms=algorithms,
            audience=audience,
            issuer=issuer,
            leeway=CLOCK_SKEW_SECONDS,
            options={"require": REQUIRED_CLAIMS},
        )
    except jwt.InvalidTokenError as exc:
        raise ClaimValidationFailed(str(exc)) from exc
    return payload
