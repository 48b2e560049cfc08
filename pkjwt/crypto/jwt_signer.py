"""PS256 client assertions and signed authorization request objects."""

from collections.abc import Sequence
from datetime import UTC, datetime

import jwt
from pydantic import BaseModel

from pkjwt.crypto.keys import SigningKey
from pkjwt.crypto.pkce import generate_jti
from pkjwt.crypto.types import ClientAssertionClaims, RequestObjectClaims

ASSERTION_TTL_SECONDS = 60
REQUEST_OBJECT_TTL_SECONDS = 60


class SigningError(RuntimeError):
    """A JWT could not be signed with the configured client key."""


def _now() -> int:
    return int(datetime.now(UTC).timestamp())


class JWTSigner:
    """Signs the JWTs a confidential client sends to the identity provider.

    The signer only holds the immutable client key; every call builds its own
    claims, so one instance is shared by all concurrent requests.
    """

    def __init__(self, signing_key: SigningKey, client_id: str) -> None:
        self._signing_key = signing_key
        self._client_id = client_id

    @property
    def client_id(self) -> str:
        return self._client_id

    @property
    def kid(self) -> str:
        return self._signing_key.kid

    def create_client_assertion(self, audience: str) -> str:
        """Create a single-use private_key_jwt assertion for ``audience``.

        ``audience`` is the token endpoint the assertion is presented to.
        """
        now = _now()
        claims = ClientAssertionClaims(
            iss=self._client_id,
            sub=self._client_id,
            aud=audience,
            jti=generate_jti(),
            nbf=now,
            iat=now,
            exp=now + ASSERTION_TTL_SECONDS,
        )
        return self._sign(claims)

    def create_request_object(
        self,
        *,
        audience: str,
        redirect_uri: str,
        scopes: Sequence[str],
        state: str,
        nonce: str,
        code_challenge: str,
    ) -> str:
        """Create a signed request object carrying the authorization request.

        ``audience`` is the issuer of the authorization server.
        """
        now = _now()
        claims = RequestObjectClaims(
            iss=self._client_id,
            aud=audience,
            jti=generate_jti(),
            nbf=now,
            exp=now + REQUEST_OBJECT_TTL_SECONDS,
            client_id=self._client_id,
            redirect_uri=redirect_uri,
            scope=" ".join(scopes),
            state=state,
            nonce=nonce,
            code_challenge=code_challenge,
        )
        return self._sign(claims)

    def _sign(self, claims: BaseModel) -> str:
        try:
            return jwt.encode(
                claims.model_dump(),
                self._signing_key.key,
                algorithm=self._signing_key.algorithm,
                headers={"kid": self._signing_key.kid},
            )
        except (jwt.PyJWTError, ValueError, TypeError) as exc:
            raise SigningError(f"failed to sign JWT: {exc}") from exc
