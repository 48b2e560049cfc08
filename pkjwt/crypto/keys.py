"""Client signing key loading, generation, and JWK conversion."""

import base64
import json
from typing import Any

import uuid_utils
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from jwt import PyJWK
from jwt.algorithms import RSAAlgorithm
from jwt.exceptions import InvalidKeyError, PyJWKError
from pydantic import BaseModel, ConfigDict

from pkjwt.crypto.types import GeneratedSigningKey, JWKEntry

RSA_KEY_SIZE = 2048
RSA_PUBLIC_EXPONENT = 65537
SIGNING_ALGORITHM = "PS256"


class KeyLoadError(ValueError):
    """The configured signing key is not a usable private RSA JWK."""


class SigningKey(BaseModel):
    """Private RSA key owned by this process, used only for PS256 signing."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kid: str
    key: RSAPrivateKey
    algorithm: str = SIGNING_ALGORITHM

    def __repr__(self) -> str:
        return f"SigningKey(kid={self.kid!r}, algorithm={self.algorithm!r})"

    __str__ = __repr__


def load_signing_key(jwk_json: str) -> SigningKey:
    """Parse a private RSA JWK into a :class:`SigningKey`."""
    try:
        data: dict[str, Any] = json.loads(jwk_json)
    except json.JSONDecodeError as exc:
        raise KeyLoadError(f"signing key is not valid JSON: {exc.msg}") from exc
    if not isinstance(data, dict):
        raise KeyLoadError("signing key must be a JSON object")
    if data.get("kty") != "RSA" or "d" not in data:
        raise KeyLoadError("signing key must be a private RSA JWK")
    kid = data.get("kid")
    if not kid:
        raise KeyLoadError("signing key has no kid")

    try:
        jwk = PyJWK(data, algorithm=SIGNING_ALGORITHM)
    except (PyJWKError, InvalidKeyError) as exc:
        raise KeyLoadError(f"signing key could not be loaded: {exc}") from exc
    if not isinstance(jwk.key, RSAPrivateKey):
        raise KeyLoadError("signing key must be a private RSA JWK")
    return SigningKey(kid=kid, key=jwk.key)


def _int_to_base64url(value: int) -> str:
    """Encode an integer as base64url without padding."""
    byte_length = (value.bit_length() + 7) // 8
    raw = value.to_bytes(byte_length, byteorder="big")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


def public_jwk_entry(private_key: RSAPrivateKey, kid: str) -> JWKEntry:
    """Build the public JWK to register with the identity provider."""
    numbers = private_key.public_key().public_numbers()
    return JWKEntry(
        kid=kid,
        n=_int_to_base64url(numbers.n),
        e=_int_to_base64url(numbers.e),
    )


def generate_signing_key(key_size: int = RSA_KEY_SIZE) -> GeneratedSigningKey:
    """Generate a new RSA keypair for private_key_jwt client authentication."""
    private_key = rsa.generate_private_key(
        public_exponent=RSA_PUBLIC_EXPONENT,
        key_size=key_size,
    )
    kid = str(uuid_utils.uuid7())
    private_jwk = RSAAlgorithm.to_jwk(private_key, as_dict=True)
    private_jwk.update({"kid": kid, "alg": SIGNING_ALGORITHM, "use": "sig"})
    return GeneratedSigningKey(
        kid=kid,
        private_jwk=private_jwk,
        public_jwk=public_jwk_entry(private_key, kid),
    )
