"""Shared test fixtures for pkjwt."""

import json
from collections.abc import AsyncIterator

import httpx
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from pkjwt.crypto.jwt_signer import JWTSigner
from pkjwt.crypto.keys import SigningKey, generate_signing_key, load_signing_key
from pkjwt.crypto.types import GeneratedSigningKey
from pkjwt.db.base import BaseEntity
from pkjwt.oidc.context import OIDCContext
from pkjwt.oidc.discovery import MetadataCache
from tests.fake_idp import METADATA_URL, WEB_CLIENT_ID, FakeIdentityProvider


@pytest.fixture(scope="session")
def idp_private_key() -> RSAPrivateKey:
    """RSA key the fake provider signs access and ID tokens with."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_private_key() -> RSAPrivateKey:
    """A key the provider never published."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def generated_client_key() -> GeneratedSigningKey:
    return generate_signing_key()


@pytest.fixture(scope="session")
def client_signing_key(generated_client_key: GeneratedSigningKey) -> SigningKey:
    return load_signing_key(json.dumps(generated_client_key.private_jwk))


@pytest.fixture
def idp(idp_private_key: RSAPrivateKey) -> FakeIdentityProvider:
    return FakeIdentityProvider(idp_private_key)


@pytest.fixture
async def http(idp: FakeIdentityProvider) -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(transport=idp.transport()) as client:
        yield client


@pytest.fixture
def web_signer(client_signing_key: SigningKey) -> JWTSigner:
    return JWTSigner(client_signing_key, WEB_CLIENT_ID)


@pytest.fixture
async def metadata(http: httpx.AsyncClient) -> MetadataCache:
    """Metadata cache already loaded from the fake provider."""
    cache = MetadataCache(METADATA_URL, http, load_jwks=True)
    await cache.refresh()
    return cache


@pytest.fixture
def oidc_context(
    http: httpx.AsyncClient, metadata: MetadataCache, web_signer: JWTSigner
) -> OIDCContext:
    return OIDCContext(http, metadata, web_signer)


@pytest.fixture
async def db_session() -> AsyncIterator[AsyncSession]:
    """Create an in-memory SQLite async session for tests."""
    engine = create_async_engine("sqlite+aiosqlite://", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(BaseEntity.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session

    await engine.dispose()
