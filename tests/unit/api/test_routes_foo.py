"""Tests for the protected /foo route and the scope guard."""

from collections.abc import AsyncIterator
from typing import Annotated

import httpx
import pytest
from fastapi import Depends, FastAPI

from pkjwt.api.deps import require_scope, token_error_handler
from pkjwt.core.app import create_api_app
from pkjwt.core.settings import ApiSettings
from pkjwt.crypto.types import ValidatedAccessTokenClaims
from pkjwt.oidc.bearer import BearerTokenValidator
from pkjwt.oidc.context import OIDCContext
from pkjwt.oidc.discovery import MetadataCache
from pkjwt.oidc.errors import TokenValidationError
from tests.fake_idp import API_NAME, FakeIdentityProvider


async def _client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://api") as client:
        yield client


@pytest.fixture
async def api_client(oidc_context: OIDCContext) -> AsyncIterator[httpx.AsyncClient]:
    app = create_api_app(oidc_context, ApiSettings(name=API_NAME))
    async for client in _client(app):
        yield client


@pytest.fixture
async def scope_b_client(metadata: MetadataCache) -> AsyncIterator[httpx.AsyncClient]:
    """A one-route app that requires scope ``b``."""
    app = FastAPI()
    app.state.validator = BearerTokenValidator(metadata, API_NAME)
    app.add_exception_handler(TokenValidationError, token_error_handler)

    @app.get("/needs-b")
    async def needs_b(
        claims: Annotated[ValidatedAccessTokenClaims, Depends(require_scope("b"))],
    ) -> dict[str, list[str]]:
        return {"scope": claims.scope}

    async for client in _client(app):
        yield client


class TestFoo:
    """Tests for GET /foo."""

    async def test_valid_token(
        self, idp: FakeIdentityProvider, api_client: httpx.AsyncClient
    ) -> None:
        resp = await api_client.get(
            "/foo", headers={"Authorization": f"Bearer {idp.access_token()}"}
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "Hello from foo"
        assert body["sub"] == "user-1"

    async def test_missing_header(self, api_client: httpx.AsyncClient) -> None:
        resp = await api_client.get("/foo")
        assert resp.status_code == 401
        assert resp.text.startswith("authorization header format must be")

    async def test_bad_scheme(self, api_client: httpx.AsyncClient) -> None:
        resp = await api_client.get("/foo", headers={"Authorization": "Basic abc"})
        assert resp.status_code == 401

    async def test_missing_scope(
        self, idp: FakeIdentityProvider, api_client: httpx.AsyncClient
    ) -> None:
        token = idp.access_token(scope=["openid"])
        resp = await api_client.get(
            "/foo", headers={"Authorization": f"Bearer {token}"}
        )
        assert resp.status_code == 401
        assert resp.text == "access token did not contain the required scope"

    async def test_multiple_audiences(
        self, idp: FakeIdentityProvider, api_client: httpx.AsyncClient
    ) -> None:
        token = idp.access_token(aud=[API_NAME, "another"])
        resp = await api_client.get(
            "/foo", headers={"Authorization": f"Bearer {token}"}
        )
        assert resp.status_code == 401
        assert resp.text == "access token contained multiple audiences"

    async def test_non_string_kid(
        self, idp: FakeIdentityProvider, api_client: httpx.AsyncClient
    ) -> None:
        token = idp.mint_raw({"alg": "RS256", "kid": 123}, idp.access_claims())
        resp = await api_client.get(
            "/foo", headers={"Authorization": f"Bearer {token}"}
        )
        assert resp.status_code == 401
        assert resp.text.startswith("token could not be parsed")

    async def test_garbage_token(self, api_client: httpx.AsyncClient) -> None:
        resp = await api_client.get(
            "/foo", headers={"Authorization": "Bearer garbage"}
        )
        assert resp.status_code == 401


class TestRequireScope:
    """Tests for a route guarded by a single scope."""

    async def test_token_with_other_scope_is_rejected(
        self, idp: FakeIdentityProvider, scope_b_client: httpx.AsyncClient
    ) -> None:
        token = idp.access_token(scope=["c"])
        resp = await scope_b_client.get(
            "/needs-b", headers={"Authorization": f"Bearer {token}"}
        )
        assert resp.status_code == 401

    async def test_token_with_scope_is_accepted(
        self, idp: FakeIdentityProvider, scope_b_client: httpx.AsyncClient
    ) -> None:
        token = idp.access_token(scope="a b")
        resp = await scope_b_client.get(
            "/needs-b", headers={"Authorization": f"Bearer {token}"}
        )
        assert resp.status_code == 200
        assert resp.json() == {"scope": ["a", "b"]}


class TestConfiguredApiName:
    """The /foo scope follows the configured API name."""

    @pytest.fixture
    async def renamed_client(
        self, oidc_context: OIDCContext
    ) -> AsyncIterator[httpx.AsyncClient]:
        app = create_api_app(oidc_context, ApiSettings(name="renamed-api"))
        async for client in _client(app):
            yield client

    async def test_scope_for_configured_name(
        self, idp: FakeIdentityProvider, renamed_client: httpx.AsyncClient
    ) -> None:
        token = idp.access_token(aud="renamed-api", scope=["renamed-api/foo"])
        resp = await renamed_client.get(
            "/foo", headers={"Authorization": f"Bearer {token}"}
        )
        assert resp.status_code == 200

    async def test_scope_for_other_name_rejected(
        self, idp: FakeIdentityProvider, renamed_client: httpx.AsyncClient
    ) -> None:
        token = idp.access_token(aud="renamed-api", scope=[f"{API_NAME}/foo"])
        resp = await renamed_client.get(
            "/foo", headers={"Authorization": f"Bearer {token}"}
        )
        assert resp.status_code == 401
        assert resp.text == "access token did not contain the required scope"
