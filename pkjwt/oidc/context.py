"""Explicitly constructed holder for provider metadata, keys and HTTP client."""

import httpx

from pkjwt.core.settings import ClientSettings, ProviderSettings
from pkjwt.crypto.jwt_signer import JWTSigner
from pkjwt.crypto.keys import load_signing_key
from pkjwt.oidc.discovery import MetadataCache
from pkjwt.oidc.token_client import TokenClient


class OIDCContext:
    """Everything a component needs to talk to the identity provider.

    Built once per process and passed to the components that need it; the
    signer is present only for programs that act as a client.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        metadata: MetadataCache,
        signer: JWTSigner | None = None,
    ) -> None:
        self.http = http
        self.metadata = metadata
        self._signer = signer

    @classmethod
    def from_settings(
        cls,
        provider: ProviderSettings,
        client: ClientSettings | None = None,
        *,
        load_jwks: bool = True,
        http: httpx.AsyncClient | None = None,
    ) -> "OIDCContext":
        """Build a context; the signing key is loaded here, exactly once."""
        http = http or httpx.AsyncClient(timeout=provider.http_timeout)
        metadata = MetadataCache(provider.metadata_url, http, load_jwks=load_jwks)
        signer = None
        if client is not None:
            signing_key = load_signing_key(client.load_signing_jwk())
            signer = JWTSigner(signing_key, client.client_id)
        return cls(http, metadata, signer)

    @property
    def signer(self) -> JWTSigner:
        if self._signer is None:
            raise RuntimeError("this context has no client signing key")
        return self._signer

    def token_client(self) -> TokenClient:
        return TokenClient(self.http, self.signer, self.metadata)

    async def aclose(self) -> None:
        await self.http.aclose()
