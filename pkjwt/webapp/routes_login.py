"""Browser login: redirect to the provider and handle its callback."""

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from pkjwt.core.settings import WebAppSettings
from pkjwt.db.engine import get_session
from pkjwt.db.models_session import AuthSessionEntity
from pkjwt.db.repo_session import (
    create_auth_session,
    establish_login,
    get_pending_login,
    store_pending_login,
)
from pkjwt.oidc.errors import InvalidState
from pkjwt.oidc.login_flow import LoginFlow
from pkjwt.webapp.deps import (
    current_auth_session,
    get_login_flow,
    get_settings,
    set_session_cookie,
)

router = APIRouter()

HTTP_TEMPORARY_REDIRECT = 307
HTTP_SEE_OTHER = 303


@router.get("/login")
async def login(
    db: Annotated[AsyncSession, Depends(get_session)],
    auth_session: Annotated[AuthSessionEntity | None, Depends(current_auth_session)],
    flow: Annotated[LoginFlow, Depends(get_login_flow)],
    settings: Annotated[WebAppSettings, Depends(get_settings)],
) -> RedirectResponse:
    """GET /login -- start a login and redirect to the authorization endpoint."""
    if auth_session is None:
        auth_session = await create_auth_session(db)
    redirect = flow.start()
    await store_pending_login(db, auth_session, redirect.pending)

    response = RedirectResponse(
        redirect.authorization_url, status_code=HTTP_TEMPORARY_REDIRECT
    )
    set_session_cookie(response, auth_session.id, settings)
    return response


@router.get("/callback")
async def callback(
    db: Annotated[AsyncSession, Depends(get_session)],
    auth_session: Annotated[AuthSessionEntity | None, Depends(current_auth_session)],
    flow: Annotated[LoginFlow, Depends(get_login_flow)],
    state: str | None = None,
    code: str | None = None,
) -> RedirectResponse:
    """GET /callback -- redeem the code and establish the session."""
    pending = get_pending_login(auth_session) if auth_session else None
    if auth_session is None or pending is None:
        raise InvalidState()

    established = await flow.complete(pending, state=state, code=code)
    await establish_login(db, auth_session, established)
    return RedirectResponse("/user", status_code=HTTP_SEE_OTHER)
