"""Client Credentials client that calls the protected API."""

import logging
from collections.abc import Sequence

import httpx

from pkjwt.oidc.context import OIDCContext
from pkjwt.oidc.errors import UpstreamError

logger = logging.getLogger(__name__)


class ClientCredentialsClient:
    """Gets an access token for this client and uses it as a bearer token.

    A new token (and so a new client assertion) is requested per call; no
    token caching is done.
    """

    def __init__(self, ctx: OIDCContext, scopes: Sequence[str]) -> None:
        self._ctx = ctx
        self._scopes = list(scopes)
        self._token_client = ctx.token_client()

    async def fetch_token(self) -> str:
        """Run the client credentials grant and return the access token."""
        tokens = await self._token_client.client_credentials(self._scopes)
        logger.info(
            "Obtained access token for %s (expires_in=%s)",
            self._ctx.signer.client_id,
            tokens.expires_in,
        )
        return tokens.access_token

    async def get(self, url: str) -> httpx.Response:
        """GET ``url`` with a freshly obtained bearer token."""
        access_token = await self.fetch_token()
        try:
            return await self._ctx.http.get(
                url, headers={"Authorization": f"Bearer {access_token}"}
            )
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Request to {url} failed: {exc}") from exc
