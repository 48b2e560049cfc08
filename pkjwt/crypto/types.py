"""Type definitions for signing keys and JWT payloads."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

CLIENT_ASSERTION_TYPE = "urn:ietf:params:oauth:client-assertion-type:jwt-bearer"


class JWKEntry(BaseModel):
    """Public half of a client signing key, as registered with the provider."""

    kty: str = "RSA"
    use: str = "sig"
    alg: str = "PS256"
    kid: str
    n: str
    e: str


class GeneratedSigningKey(BaseModel):
    """A freshly generated client key in both private and public JWK form."""

    kid: str
    private_jwk: dict[str, Any]
    public_jwk: JWKEntry


class PKCEPair(BaseModel):
    """Code verifier kept server-side and the challenge sent to the provider."""

    model_config = ConfigDict(frozen=True)

    code_verifier: str
    code_challenge: str
    code_challenge_method: str = "S256"


class ClientAssertionClaims(BaseModel):
    """Claims of a private_key_jwt client assertion."""

    iss: str
    sub: str
    aud: str
    jti: str
    nbf: int
    iat: int
    exp: int


class RequestObjectClaims(BaseModel):
    """Claims of a signed authorization request object (JAR)."""

    iss: str
    aud: str
    jti: str
    nbf: int
    exp: int
    client_id: str
    response_type: str = "code"
    redirect_uri: str
    scope: str
    state: str
    nonce: str
    code_challenge: str
    code_challenge_method: str = "S256"


def _as_list(value: object, *, split: bool = False) -> list[str]:
    """Normalise a JWT string-or-array claim to a list of strings.

    ``aud`` is a single value when given as a string; ``scope`` is a
    space-separated list.
    """
    if value is None:
        return []
    if isinstance(value, str):
        return value.split() if split else [value]
    if isinstance(value, list):
        return [str(v) for v in value]
    raise ValueError(f"expected string or array, got {type(value).__name__}")


class ValidatedAccessTokenClaims(BaseModel):
    """Claims of an access token that passed signature and claim checks."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    iss: str
    aud: list[str]
    exp: int
    nbf: int | None = None
    iat: int | None = None
    sub: str | None = None
    client_id: str | None = None
    scope: list[str] = Field(default_factory=list)
    assurance_level: str | None = Field(
        default=None, alias="helseid://claims/identity/assurance_level"
    )
    security_level: str | None = Field(
        default=None, alias="helseid://claims/identity/security_level"
    )
    pid: str | None = Field(default=None, alias="helseid://claims/identity/pid")
    hpr_number: str | None = Field(
        default=None, alias="helseid://claims/hpr/hpr_number"
    )
    orgnr_parent: str | None = Field(
        default=None, alias="helseid://claims/client/claims/orgnr_parent"
    )
    orgnr_child: str | None = Field(
        default=None, alias="helseid://claims/client/claims/orgnr_child"
    )

    @field_validator("aud", mode="before")
    @classmethod
    def _normalise_aud(cls, value: object) -> list[str]:
        return _as_list(value)

    @field_validator("scope", mode="before")
    @classmethod
    def _normalise_scope(cls, value: object) -> list[str]:
        return _as_list(value, split=True)

    def has_scope(self, scope: str) -> bool:
        """Exact membership test against the ``scope`` claim."""
        return scope in self.scope


class IdTokenClaims(BaseModel):
    """Claims of a verified OIDC ID token."""

    model_config = ConfigDict(extra="allow")

    iss: str
    sub: str
    aud: list[str]
    exp: int
    iat: int | None = None
    nonce: str | None = None

    @field_validator("aud", mode="before")
    @classmethod
    def _normalise_aud(cls, value: object) -> list[str]:
        return _as_list(value)
