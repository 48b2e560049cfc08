"""Call the protected API with the session's access token."""

import logging
from typing import Annotated

import httpx
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from starlette.responses import JSONResponse, PlainTextResponse

from pkjwt.core.settings import WebAppSettings
from pkjwt.db.models_session import AuthSessionEntity
from pkjwt.oidc.context import OIDCContext
from pkjwt.webapp.deps import current_auth_session, get_context, get_settings

logger = logging.getLogger(__name__)

router = APIRouter()

HTTP_FORBIDDEN = 403
HTTP_INTERNAL_SERVER_ERROR = 500


class CallApiResult(BaseModel):
    """What the API answered."""

    status: str
    body: str
    resource_endpoint: str = Field(serialization_alias="resourceEndpoint")


@router.get("/callapi", response_model=None)
async def call_api(
    auth_session: Annotated[AuthSessionEntity | None, Depends(current_auth_session)],
    ctx: Annotated[OIDCContext, Depends(get_context)],
    settings: Annotated[WebAppSettings, Depends(get_settings)],
) -> JSONResponse | PlainTextResponse:
    """GET /callapi -- GET the resource endpoint as the logged-in user."""
    if auth_session is None or not auth_session.access_token:
        return PlainTextResponse(
            "No access token found in session", status_code=HTTP_FORBIDDEN
        )

    endpoint = settings.resource_endpoint
    try:
        resp = await ctx.http.get(
            endpoint,
            headers={"Authorization": f"Bearer {auth_session.access_token}"},
        )
    except httpx.HTTPError as exc:
        logger.warning("Call to %s failed: %s", endpoint, exc)
        return PlainTextResponse(
            f"Making a request to the api failed, error: {exc}",
            status_code=HTTP_INTERNAL_SERVER_ERROR,
        )

    result = CallApiResult(
        status=f"{resp.status_code} {resp.reason_phrase}",
        body=resp.text,
        resource_endpoint=endpoint,
    )
    return JSONResponse(result.model_dump(by_alias=True))
