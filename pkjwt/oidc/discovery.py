"""Authorization server metadata discovery and the process-wide cache."""

import asyncio
import logging

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from pkjwt.oidc.errors import MetadataError
from pkjwt.oidc.jwks import JWKSet

logger = logging.getLogger(__name__)


class AuthorizationServerMetadata(BaseModel):
    """Fields consumed from ``.well-known/openid-configuration``."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    issuer: str
    authorization_endpoint: str
    token_endpoint: str
    end_session_endpoint: str | None = None
    jwks_uri: str | None = None


class MetadataSnapshot(BaseModel):
    """One consistent view of discovery metadata and its key set."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    metadata: AuthorizationServerMetadata
    jwks: JWKSet | None = None

    def require_jwks(self) -> JWKSet:
        if self.jwks is None:
            raise MetadataError("JWKS not loaded")
        return self.jwks


async def _get_json(http: httpx.AsyncClient, url: str, what: str) -> object:
    try:
        response = await http.get(url)
        response.raise_for_status()
        return response.json()
    except httpx.HTTPError as exc:
        raise MetadataError(f"Failed to get the {what} from {url}: {exc}") from exc
    except ValueError as exc:
        raise MetadataError(f"Failed to parse the {what} from {url}: {exc}") from exc


async def fetch_metadata(
    http: httpx.AsyncClient, metadata_url: str
) -> AuthorizationServerMetadata:
    """GET and validate the discovery document."""
    document = await _get_json(http, metadata_url, "authorization server metadata")
    try:
        return AuthorizationServerMetadata.model_validate(document)
    except ValidationError as exc:
        raise MetadataError(
            f"Failed to parse the authorization server metadata: {exc}"
        ) from exc


async def fetch_jwks(http: httpx.AsyncClient, jwks_uri: str) -> JWKSet:
    """GET and decode the provider's key set."""
    document = await _get_json(http, jwks_uri, "JWKS")
    return JWKSet.from_document(document)


class MetadataCache:
    """Holds the last successfully fetched metadata (and optionally JWKS).

    ``refresh`` publishes a new immutable snapshot in a single assignment,
    so concurrent readers see either the old or the new view, never a mix.
    A failed refresh leaves the previous snapshot in place.
    """

    def __init__(
        self,
        metadata_url: str,
        http: httpx.AsyncClient,
        *,
        load_jwks: bool = True,
    ) -> None:
        self._metadata_url = metadata_url
        self._http = http
        self._load_jwks = load_jwks
        self._snapshot: MetadataSnapshot | None = None
        self._refresh_lock = asyncio.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._snapshot is not None

    async def refresh(self) -> MetadataSnapshot:
        """Fetch discovery (then JWKS) and replace the cached snapshot."""
        async with self._refresh_lock:
            metadata = await fetch_metadata(self._http, self._metadata_url)
            jwks = None
            if self._load_jwks:
                if not metadata.jwks_uri:
                    raise MetadataError(
                        "authorization server metadata has no jwks_uri"
                    )
                jwks = await fetch_jwks(self._http, metadata.jwks_uri)
            snapshot = MetadataSnapshot(metadata=metadata, jwks=jwks)
            self._snapshot = snapshot
        logger.info(
            "Loaded authorization server metadata for %s (%s keys)",
            metadata.issuer,
            len(jwks) if jwks is not None else "no",
        )
        return snapshot

    def snapshot(self) -> MetadataSnapshot:
        """Return the cached snapshot; the cache must have been refreshed."""
        snapshot = self._snapshot
        if snapshot is None:
            raise MetadataError("authorization server metadata not loaded")
        return snapshot

    def get(self) -> AuthorizationServerMetadata:
        return self.snapshot().metadata

    def get_jwks(self) -> JWKSet:
        return self.snapshot().require_jwks()

    async def get_or_refresh(self) -> AuthorizationServerMetadata:
        """Return cached metadata, fetching it first if never loaded."""
        if self._snapshot is None:
            await self.refresh()
        return self.get()
