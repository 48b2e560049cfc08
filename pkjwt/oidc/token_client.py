"""Token endpoint calls authenticated with private_key_jwt."""

import logging
from collections.abc import Sequence

import httpx
from pydantic import ValidationError

from pkjwt.crypto.jwt_signer import JWTSigner
from pkjwt.crypto.types import CLIENT_ASSERTION_TYPE
from pkjwt.oidc.discovery import MetadataCache
from pkjwt.oidc.errors import TokenExchangeError, UpstreamError
from pkjwt.oidc.types import TokenResponse

logger = logging.getLogger(__name__)


def _describe_error(response: httpx.Response) -> str:
    """Summarise an OAuth error response without echoing tokens."""
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if not isinstance(body, dict):
        return f"HTTP {response.status_code}"
    error = body.get("error", "unknown_error")
    description = body.get("error_description")
    if description:
        return f"HTTP {response.status_code} {error}: {description}"
    return f"HTTP {response.status_code} {error}"


class TokenClient:
    """Posts grants to the token endpoint with a fresh client assertion each time."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        signer: JWTSigner,
        metadata: MetadataCache,
    ) -> None:
        self._http = http
        self._signer = signer
        self._metadata = metadata

    async def exchange_code(
        self, *, code: str, code_verifier: str, redirect_uri: str
    ) -> TokenResponse:
        """Redeem an authorization code (grant_type=authorization_code)."""
        return await self._request(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": redirect_uri,
                "code_verifier": code_verifier,
            }
        )

    async def client_credentials(self, scopes: Sequence[str]) -> TokenResponse:
        """Request an access token for this client itself."""
        return await self._request(
            {"grant_type": "client_credentials", "scope": " ".join(scopes)}
        )

    async def _request(self, form: dict[str, str]) -> TokenResponse:
        metadata = await self._metadata.get_or_refresh()
        token_endpoint = metadata.token_endpoint
        data = {
            **form,
            "client_assertion": self._signer.create_client_assertion(token_endpoint),
            "client_assertion_type": CLIENT_ASSERTION_TYPE,
        }
        try:
            response = await self._http.post(token_endpoint, data=data)
        except httpx.HTTPError as exc:
            raise UpstreamError(
                f"Token request to {token_endpoint} failed: {exc}"
            ) from exc

        if response.is_error:
            reason = _describe_error(response)
            logger.warning("Token endpoint rejected %s: %s", form["grant_type"], reason)
            raise TokenExchangeError(f"Token request failed: {reason}")

        try:
            return TokenResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise TokenExchangeError(f"Invalid token response: {exc}") from exc
