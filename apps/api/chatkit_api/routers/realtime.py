"""Realtime voice session endpoint."""
from __future__ import annotations

import logging
from typing import Any

import httpx
from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import JSONResponse

from ..core.config import Settings, get_settings
from ..core.http import get_http_client
from ..services import realtime as realtime_service

logger = logging.getLogger(__name__)

router = APIRouter()

SESSION_ERROR = "Erreur lors de la création de la session"


@router.post("/send-hidden-context")
async def send_hidden_context(
    payload: dict[str, Any] = Body(...),
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> JSONResponse:
    """Open a voice session whose instructions carry the property analysis."""

    if not settings.openai_api_key:
        return JSONResponse(
            {"error": "Missing OPENAI_API_KEY environment variable"},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    try:
        session = await realtime_service.create_realtime_session(payload, settings=settings, client=client)
    except realtime_service.RealtimeSessionError as exc:
        return JSONResponse({"error": SESSION_ERROR}, status_code=exc.status_code)
    except Exception as exc:  # noqa: BLE001 - surface a stable error body
        logger.exception("Realtime session error: %s", exc)
        return JSONResponse({"error": SESSION_ERROR}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return JSONResponse(session)
