"""ChatKit session bootstrap and widget context endpoints."""
from __future__ import annotations

import logging
from typing import Any

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse

from ..core.config import Settings, get_settings
from ..core.http import get_http_client
from ..schemas.property import PropertyContextResponse
from ..services import chatkit as chatkit_service
from ..services.context import MetadataDecodeError, decode_metadata_param, format_metadata_as_context
from ..services.sessions import SessionCookieConfig, resolve_session_identity

logger = logging.getLogger(__name__)

router = APIRouter()


def _json_response(payload: Any, status_code: int, session_cookie: str | None = None) -> JSONResponse:
    response = JSONResponse(content=payload, status_code=status_code)
    if session_cookie:
        response.headers.append("Set-Cookie", session_cookie)
    return response


@router.post("/create-session")
async def create_session(
    request: Request,
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> JSONResponse:
    """Mint a ChatKit client secret for the browser's anonymous session."""

    session_cookie: str | None = None
    try:
        if not settings.openai_api_key:
            return _json_response(
                {"error": "Missing OPENAI_API_KEY environment variable"},
                status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        if settings.debug_logging_enabled:
            logger.info("[create-session] request headers: %s", dict(request.headers))
            logger.info("[create-session] content-type: %s", request.headers.get("content-type"))

        body = chatkit_service.parse_request_body(await request.body(), settings)

        metadata = body.metadata if body and body.metadata is not None else chatkit_service.load_env_metadata(settings)
        if metadata is not None:
            logger.warning("[create-session] metadata received but not forwarded to ChatKit: %s", metadata)

        identity = resolve_session_identity(
            request.headers.get("cookie"),
            SessionCookieConfig.from_settings(settings),
        )
        session_cookie = identity.session_cookie

        workflow_id = (body.resolve_workflow_id() if body else None) or settings.chatkit_workflow_id
        if settings.debug_logging_enabled:
            logger.info(
                "[create-session] handling request workflow=%s identity_origin=%s",
                workflow_id,
                identity.origin.value,
            )
        if not workflow_id:
            return _json_response(
                {"error": "Missing workflow id"},
                status.HTTP_400_BAD_REQUEST,
                session_cookie,
            )

        result = await chatkit_service.create_session(
            body,
            workflow_id=workflow_id,
            user_id=identity.user_id,
            settings=settings,
            client=client,
        )
        return _json_response(result.payload, result.status_code, session_cookie)

    except Exception as exc:  # noqa: BLE001 - single fallback path for the widget
        logger.exception("Create session error: %s", exc)
        return _json_response(
            {"error": "Unexpected error"},
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            session_cookie,
        )


@router.get("/create-session", include_in_schema=False)
async def create_session_get() -> JSONResponse:
    return _json_response({"error": "Method Not Allowed"}, status.HTTP_405_METHOD_NOT_ALLOWED)


@router.get("/chatkit/context", response_model=PropertyContextResponse)
async def chatkit_context(
    metadata: str = Query(..., description="Base64-encoded JSON property metadata"),
) -> PropertyContextResponse:
    """Decode widget metadata and return the prompt injected as the first message."""

    try:
        decoded = decode_metadata_param(metadata)
    except MetadataDecodeError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return PropertyContextResponse(metadata=decoded, context=format_metadata_as_context(decoded))
