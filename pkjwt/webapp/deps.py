"""FastAPI dependencies shared by the web app routes."""

from typing import Annotated

from fastapi import Cookie, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import PlainTextResponse, Response

from pkjwt.core.settings import WebAppSettings
from pkjwt.db.engine import get_session
from pkjwt.db.models_session import AuthSessionEntity
from pkjwt.db.repo_session import get_auth_session
from pkjwt.oidc.context import OIDCContext
from pkjwt.oidc.errors import LoginFlowError
from pkjwt.oidc.login_flow import LoginFlow

SESSION_COOKIE = "auth-session"


def get_context(request: Request) -> OIDCContext:
    return request.app.state.oidc


def get_login_flow(request: Request) -> LoginFlow:
    return request.app.state.login_flow


def get_settings(request: Request) -> WebAppSettings:
    return request.app.state.settings


async def current_auth_session(
    db: Annotated[AsyncSession, Depends(get_session)],
    session_id: Annotated[str | None, Cookie(alias=SESSION_COOKIE)] = None,
) -> AuthSessionEntity | None:
    """The server-side session named by the cookie, if it exists."""
    if not session_id:
        return None
    return await get_auth_session(db, session_id)


def set_session_cookie(
    response: Response, session_id: str, settings: WebAppSettings
) -> None:
    response.set_cookie(
        SESSION_COOKIE,
        session_id,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
    )


async def login_error_handler(_request: Request, exc: Exception) -> PlainTextResponse:
    """Render a failed login step as plain text with its HTTP status."""
    assert isinstance(exc, LoginFlowError)
    return PlainTextResponse(str(exc), status_code=exc.status_code)
