"""Realtime voice sessions carrying the property analysis as hidden context."""
from __future__ import annotations

import logging
from typing import Any

import httpx

from ..core.config import Settings
from ..schemas.property import PropertyMetadata

logger = logging.getLogger(__name__)

REALTIME_SESSIONS_PATH = "/v1/realtime/sessions"
CONTEXT_SOURCE = "KELL-RealEstate"
CONTEXT_TYPE = "property_analysis"


class RealtimeSessionError(RuntimeError):
    """Raised when the provider refuses to open a realtime session."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"Realtime session failed with status {status_code}")
        self.status_code = status_code
        self.body = body


def hidden_user_data(body: dict[str, Any]) -> dict[str, Any]:
    """Keep the known analysis fields exactly as the client sent them."""

    return {key: value for key, value in body.items() if key in PropertyMetadata.model_fields}


def build_realtime_payload(body: dict[str, Any], settings: Settings) -> dict[str, Any]:
    return {
        "model": settings.realtime_model,
        "voice": settings.realtime_voice,
        "metadata": {
            "source": CONTEXT_SOURCE,
            "user_context_type": CONTEXT_TYPE,
            "hidden_user_data": hidden_user_data(body),
        },
    }


async def create_realtime_session(
    body: dict[str, Any],
    *,
    settings: Settings,
    client: httpx.AsyncClient,
) -> dict[str, Any]:
    """Open an ephemeral realtime session and return the provider's session object."""

    url = f"{settings.openai_api_base.rstrip('/')}{REALTIME_SESSIONS_PATH}"
    payload = build_realtime_payload(body, settings)
    if settings.debug_logging_enabled:
        logger.info("[send-hidden-context] request payload: %s", payload)

    response = await client.post(
        url,
        json=payload,
        headers={"Authorization": f"Bearer {settings.openai_api_key}"},
    )
    if response.is_error:
        logger.error("Realtime session creation failed (%s): %s", response.status_code, response.text)
        raise RealtimeSessionError(response.status_code, response.text)

    return response.json()
