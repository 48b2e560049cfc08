"""Type definitions for the token endpoint and the login state machine."""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict


class TokenResponse(BaseModel):
    """OAuth token endpoint response; extension fields are kept."""

    model_config = ConfigDict(extra="allow")

    access_token: str
    token_type: str = "Bearer"
    expires_in: int | None = None
    refresh_token: str | None = None
    id_token: str | None = None
    scope: str | None = None


class LoginStep(StrEnum):
    """Progress of one browser login attempt."""

    START = "start"
    REDIRECTED = "redirected"
    CALLBACK_RECEIVED = "callback_received"
    CODE_EXCHANGED = "code_exchanged"
    ID_TOKEN_VERIFIED = "id_token_verified"
    SESSION_ESTABLISHED = "session_established"
    FAILED = "failed"


class PendingLogin(BaseModel):
    """One-time values stored between /login and /callback."""

    model_config = ConfigDict(frozen=True)

    state: str
    nonce: str
    code_verifier: str


class LoginRedirect(BaseModel):
    """Result of starting a login: where to send the browser, what to keep."""

    authorization_url: str
    pending: PendingLogin


class EstablishedLogin(BaseModel):
    """Tokens and ID token claims of a completed login."""

    id_token: str
    access_token: str
    claims: dict[str, Any]
