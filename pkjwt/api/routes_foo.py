"""Sample protected resource."""

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from pkjwt.api.deps import require_scope
from pkjwt.core.settings import ApiSettings
from pkjwt.crypto.types import ValidatedAccessTokenClaims

FOO_OPERATION = "foo"


class FooResponse(BaseModel):
    """Body returned by GET /foo."""

    message: str
    sub: str | None = None
    client_id: str | None = None


def build_router(settings: ApiSettings) -> APIRouter:
    """Router for ``GET /foo``, guarded by the ``<api-name>/foo`` scope."""
    router = APIRouter()
    guard = require_scope(settings.required_scope(FOO_OPERATION))

    @router.get("/foo")
    async def foo(
        claims: Annotated[ValidatedAccessTokenClaims, Depends(guard)],
    ) -> FooResponse:
        """GET /foo -- hello from the protected API."""
        return FooResponse(
            message="Hello from foo",
            sub=claims.sub,
            client_id=claims.client_id,
        )

    return router
