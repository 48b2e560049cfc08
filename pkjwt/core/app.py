"""FastAPI application factories for the resource server and the web app."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from pkjwt.api.deps import token_error_handler
from pkjwt.api.routes_foo import build_router as build_foo_router
from pkjwt.core.settings import ApiSettings, ProviderSettings, WebAppSettings
from pkjwt.db.engine import dispose_db, init_db
from pkjwt.oidc.bearer import BearerTokenValidator
from pkjwt.oidc.context import OIDCContext
from pkjwt.oidc.errors import LoginFlowError, TokenValidationError
from pkjwt.oidc.login_flow import LoginFlow
from pkjwt.webapp.deps import login_error_handler
from pkjwt.webapp.routes_callapi import router as callapi_router
from pkjwt.webapp.routes_login import router as login_router
from pkjwt.webapp.routes_logout import router as logout_router
from pkjwt.webapp.routes_user import router as user_router

logger = logging.getLogger(__name__)


async def _load_metadata(ctx: OIDCContext) -> None:
    """Fetch provider metadata before serving; failure aborts start-up."""
    if not ctx.metadata.is_loaded:
        await ctx.metadata.refresh()


def create_api_app(
    ctx: OIDCContext | None = None,
    settings: ApiSettings | None = None,
) -> FastAPI:
    """Build the resource server that validates bearer access tokens."""
    settings = settings or ApiSettings()
    owns_context = ctx is None
    ctx = ctx or OIDCContext.from_settings(ProviderSettings(), load_jwks=True)

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        await _load_metadata(ctx)
        logger.info("Resource server ready for audience %s", settings.name)
        yield
        if owns_context:
            await ctx.aclose()

    app = FastAPI(title="pkjwt sample API", version="0.1.0", lifespan=lifespan)
    app.state.oidc = ctx
    app.state.validator = BearerTokenValidator(ctx.metadata, settings.name)
    app.add_exception_handler(TokenValidationError, token_error_handler)
    app.include_router(build_foo_router(settings))
    return app


def create_webapp_app(
    ctx: OIDCContext | None = None,
    settings: WebAppSettings | None = None,
) -> FastAPI:
    """Build the relying party that logs users in through the provider."""
    settings = settings or WebAppSettings()
    owns_context = ctx is None
    ctx = ctx or OIDCContext.from_settings(
        ProviderSettings(), settings, load_jwks=True
    )

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        await _load_metadata(ctx)
        await init_db()
        logger.info("Web app ready for client %s", settings.client_id)
        yield
        await dispose_db()
        if owns_context:
            await ctx.aclose()

    app = FastAPI(title="pkjwt web app", version="0.1.0", lifespan=lifespan)
    app.state.oidc = ctx
    app.state.settings = settings
    app.state.login_flow = LoginFlow(
        signer=ctx.signer,
        metadata=ctx.metadata,
        token_client=ctx.token_client(),
        redirect_uri=settings.redirect_uri,
        scopes=settings.get_scope_list(),
    )
    app.add_exception_handler(LoginFlowError, login_error_handler)

    app.include_router(user_router)
    app.include_router(login_router)
    app.include_router(callapi_router)
    app.include_router(logout_router)
    return app
