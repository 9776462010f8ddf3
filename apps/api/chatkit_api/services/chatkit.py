"""ChatKit session broker client."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import ValidationError

from ..core.config import Settings
from ..schemas import sessions as schemas

logger = logging.getLogger(__name__)

CHATKIT_BETA_HEADER = "chatkit_beta=v1"
SESSIONS_PATH = "/v1/chatkit/sessions"


@dataclass(slots=True)
class UpstreamResult:
    status_code: int
    payload: dict[str, Any]


def parse_request_body(raw: bytes, settings: Settings) -> schemas.CreateSessionRequest | None:
    """Parse the inbound body leniently; anything unusable yields ``None``."""

    text = raw.decode("utf-8", errors="replace")
    if settings.debug_logging_enabled:
        logger.info("[create-session] raw request body: %s", text)
    if not text.strip():
        return None

    try:
        payload = json.loads(text)
    except ValueError as exc:
        logger.error("[create-session] JSON parse error: %s", exc)
        if settings.debug_logging_enabled:
            logger.info(
                "[create-session] quick string checks: contains_metadata_key=%s contains_python_bool=%s last_char=%r",
                '"metadata"' in text,
                "True" in text or "False" in text,
                text[-1:],
            )
        return None

    if not isinstance(payload, dict):
        logger.error("[create-session] request body must be a JSON object, got %s", type(payload).__name__)
        return None

    try:
        return schemas.CreateSessionRequest.model_validate(payload)
    except ValidationError as exc:
        logger.error("[create-session] request body did not match schema: %s", exc)
        return None


def load_env_metadata(settings: Settings) -> dict[str, Any] | None:
    """Return the fallback metadata configured through ``CHATKIT_METADATA``."""

    if not settings.chatkit_metadata:
        return None
    try:
        value = json.loads(settings.chatkit_metadata)
    except ValueError as exc:
        logger.error("[create-session] failed to parse CHATKIT_METADATA: %s", exc)
        return None
    if not isinstance(value, dict):
        logger.error("[create-session] CHATKIT_METADATA must be a JSON object")
        return None
    if settings.debug_logging_enabled:
        logger.info("[create-session] env metadata: %s", value)
    return value


def build_session_payload(
    body: schemas.CreateSessionRequest | None,
    *,
    workflow_id: str,
    user_id: str,
) -> dict[str, Any]:
    return {
        "workflow": {"id": workflow_id},
        "user": user_id,
        "chatkit_configuration": {
            "file_upload": {"enabled": body.file_upload_enabled if body else False},
        },
    }


async def create_session(
    body: schemas.CreateSessionRequest | None,
    *,
    workflow_id: str,
    user_id: str,
    settings: Settings,
    client: httpx.AsyncClient,
) -> UpstreamResult:
    """Create a ChatKit session for ``user_id`` and reshape the broker response."""

    url = f"{settings.resolved_chatkit_api_base}{SESSIONS_PATH}"
    payload = build_session_payload(body, workflow_id=workflow_id, user_id=user_id)
    if settings.debug_logging_enabled:
        logger.info("[create-session] request payload: %s", payload)

    response = await client.post(
        url,
        json=payload,
        headers={
            "Authorization": f"Bearer {settings.openai_api_key}",
            "OpenAI-Beta": CHATKIT_BETA_HEADER,
        },
    )

    if settings.debug_logging_enabled:
        logger.info(
            "[create-session] upstream response status=%s reason=%s",
            response.status_code,
            response.reason_phrase,
        )

    upstream_json = _json_or_empty(response)

    if response.is_error:
        logger.error(
            "ChatKit session creation failed: status=%s reason=%s body=%s",
            response.status_code,
            response.reason_phrase,
            upstream_json,
        )
        message = extract_upstream_error(upstream_json)
        if message is None:
            message = f"Failed to create session: {response.reason_phrase}"
        return UpstreamResult(
            status_code=response.status_code,
            payload={"error": message, "details": upstream_json},
        )

    session = schemas.CreateSessionResponse(
        client_secret=upstream_json.get("client_secret"),
        expires_after=upstream_json.get("expires_after"),
    )
    return UpstreamResult(status_code=200, payload=session.model_dump())


def _json_or_empty(response: httpx.Response) -> dict[str, Any]:
    try:
        value = response.json()
    except ValueError:
        return {}
    return value if isinstance(value, dict) else {}


def _message_from(value: object) -> str | None:
    """Return ``value`` if it is a string, or its ``message`` string if it is an object."""

    if isinstance(value, str):
        return value
    if isinstance(value, dict) and isinstance(value.get("message"), str):
        return value["message"]
    return None


def extract_upstream_error(payload: dict[str, Any] | None) -> str | None:
    """Pull a human-readable error out of the broker's error envelope."""

    if not payload:
        return None

    message = _message_from(payload.get("error"))
    if message is not None:
        return message

    details = payload.get("details")
    if isinstance(details, str):
        return details
    if isinstance(details, dict) and "error" in details:
        message = _message_from(details["error"])
        if message is not None:
            return message

    if isinstance(payload.get("message"), str):
        return payload["message"]
    return None
