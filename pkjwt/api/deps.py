"""FastAPI dependencies that guard resource server routes."""

from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Header, Request
from starlette.responses import PlainTextResponse

from pkjwt.crypto.types import ValidatedAccessTokenClaims
from pkjwt.oidc.bearer import BearerTokenValidator
from pkjwt.oidc.errors import TokenValidationError


def get_validator(request: Request) -> BearerTokenValidator:
    return request.app.state.validator


def require_scope(
    required_scope: str | None = None,
) -> Callable[..., Awaitable[ValidatedAccessTokenClaims]]:
    """Dependency that admits only valid bearer tokens carrying ``required_scope``.

    With ``required_scope=None`` any valid token is accepted.
    """

    async def _dependency(
        request: Request,
        authorization: Annotated[str | None, Header()] = None,
    ) -> ValidatedAccessTokenClaims:
        return get_validator(request).validate(authorization, required_scope)

    return _dependency


async def token_error_handler(
    _request: Request, exc: Exception
) -> PlainTextResponse:
    """Render a rejected bearer token as a plain-text 401."""
    assert isinstance(exc, TokenValidationError)
    return PlainTextResponse(str(exc), status_code=exc.status_code)
