"""Local and provider (end-session) logout."""

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from pkjwt.core.settings import WebAppSettings
from pkjwt.db.engine import get_session
from pkjwt.db.models_session import AuthSessionEntity
from pkjwt.db.repo_session import delete_auth_session
from pkjwt.oidc.context import OIDCContext
from pkjwt.oidc.errors import MetadataError
from pkjwt.oidc.login_flow import build_logout_url
from pkjwt.webapp.deps import (
    SESSION_COOKIE,
    current_auth_session,
    get_context,
    get_settings,
)

router = APIRouter()

HTTP_TEMPORARY_REDIRECT = 307


@router.get("/logout")
async def logout(
    db: Annotated[AsyncSession, Depends(get_session)],
    auth_session: Annotated[AuthSessionEntity | None, Depends(current_auth_session)],
    ctx: Annotated[OIDCContext, Depends(get_context)],
    settings: Annotated[WebAppSettings, Depends(get_settings)],
) -> RedirectResponse:
    """GET /logout -- drop the session and log out at the provider."""
    end_session_endpoint = ctx.metadata.get().end_session_endpoint
    if not end_session_endpoint:
        raise MetadataError(
            "authorization server metadata has no end_session_endpoint"
        )

    id_token = None
    if auth_session is not None:
        id_token = auth_session.id_token
        await delete_auth_session(db, auth_session.id)

    response = RedirectResponse(
        build_logout_url(
            end_session_endpoint, id_token, settings.post_logout_redirect_uri
        ),
        status_code=HTTP_TEMPORARY_REDIRECT,
    )
    response.delete_cookie(SESSION_COOKIE)
    return response
