"""End to end: the m2m client calls the resource server with a provider token."""

import time
from collections.abc import AsyncIterator

import httpx
import pytest

from pkjwt.core.app import create_api_app
from pkjwt.core.settings import ApiSettings
from pkjwt.crypto.jwt_signer import JWTSigner
from pkjwt.crypto.keys import SigningKey
from pkjwt.m2m.client import ClientCredentialsClient
from pkjwt.oidc.context import OIDCContext
from pkjwt.oidc.discovery import MetadataCache
from tests.fake_idp import (
    API_NAME,
    M2M_CLIENT_ID,
    METADATA_URL,
    FakeIdentityProvider,
    decode_unverified,
)

API_BASE = "http://api.internal"
FOO_URL = f"{API_BASE}/foo"

pytestmark = pytest.mark.integration


@pytest.fixture
async def m2m_client(
    idp: FakeIdentityProvider,
    oidc_context: OIDCContext,
    client_signing_key: SigningKey,
) -> AsyncIterator[ClientCredentialsClient]:
    """An m2m client whose requests to the API host reach the ASGI app."""
    app = create_api_app(oidc_context, ApiSettings(name=API_NAME))
    async with httpx.AsyncClient(
        transport=idp.transport(),
        mounts={API_BASE: httpx.ASGITransport(app=app)},
    ) as http:
        ctx = OIDCContext(
            http,
            MetadataCache(METADATA_URL, http, load_jwks=False),
            JWTSigner(client_signing_key, M2M_CLIENT_ID),
        )
        yield ClientCredentialsClient(ctx, [f"{API_NAME}/foo"])


async def test_client_credentials_token_accepted(
    idp: FakeIdentityProvider, m2m_client: ClientCredentialsClient
) -> None:
    idp.token_response = {
        "access_token": idp.access_token(
            sub=M2M_CLIENT_ID,
            client_id=M2M_CLIENT_ID,
            scope=[f"{API_NAME}/foo"],
        ),
        "expires_in": 300,
    }
    resp = await m2m_client.get(FOO_URL)
    assert resp.status_code == 200
    assert resp.json() == {
        "message": "Hello from foo",
        "sub": M2M_CLIENT_ID,
        "client_id": M2M_CLIENT_ID,
    }

    assertion = decode_unverified(idp.last_token_request()["client_assertion"])
    assert assertion["iss"] == M2M_CLIENT_ID


async def test_token_for_other_api_rejected(
    idp: FakeIdentityProvider, m2m_client: ClientCredentialsClient
) -> None:
    idp.token_response = {
        "access_token": idp.access_token(aud="some-other-api"),
    }
    resp = await m2m_client.get(FOO_URL)
    assert resp.status_code == 401


async def test_expired_token_rejected(
    idp: FakeIdentityProvider, m2m_client: ClientCredentialsClient
) -> None:
    idp.token_response = {
        "access_token": idp.access_token(exp=int(time.time()) - 1),
    }
    resp = await m2m_client.get(FOO_URL)
    assert resp.status_code == 401
