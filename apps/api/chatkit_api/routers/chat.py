"""Property chat endpoint backed by Gemini."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ..core.config import Settings, get_settings
from ..schemas.chat import ChatRequest, ChatResponse
from ..services.llm import LLMUnavailableError, generate_reply

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/chat", response_model=ChatResponse)
async def chat(
    payload: ChatRequest,
    settings: Settings = Depends(get_settings),
) -> ChatResponse:
    """Answer a visitor question about the property under discussion."""

    try:
        return await generate_reply(payload, settings)
    except LLMUnavailableError as exc:
        logger.error("Property chat unavailable: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Language service unavailable",
        ) from exc
