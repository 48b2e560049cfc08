"""Home and user pages."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, RedirectResponse

from pkjwt.db.models_session import AuthSessionEntity
from pkjwt.webapp.deps import current_auth_session

router = APIRouter()

HTTP_SEE_OTHER = 303

HOME_PAGE = """<!DOCTYPE html>
<html>
  <head><title>pkjwt web app</title></head>
  <body>
    <h1>pkjwt web app</h1>
    <a href="/login">Log in</a>
  </body>
</html>
"""


def _is_authenticated(auth_session: AuthSessionEntity | None) -> bool:
    return auth_session is not None and auth_session.claims is not None


@router.get("/", response_model=None)
async def home(
    auth_session: Annotated[AuthSessionEntity | None, Depends(current_auth_session)],
) -> HTMLResponse | RedirectResponse:
    """GET / -- login link, or the user page once logged in."""
    if _is_authenticated(auth_session):
        return RedirectResponse("/user", status_code=HTTP_SEE_OTHER)
    return HTMLResponse(HOME_PAGE)


@router.get("/user", response_model=None)
async def user(
    auth_session: Annotated[AuthSessionEntity | None, Depends(current_auth_session)],
) -> dict[str, Any] | RedirectResponse:
    """GET /user -- the verified ID token claims."""
    if auth_session is None or auth_session.claims is None:
        return RedirectResponse("/", status_code=HTTP_SEE_OTHER)
    return auth_session.claims
