"""Property Q&A helper built on Gemini Flash."""
from __future__ import annotations

import asyncio
import logging
from functools import lru_cache
from typing import Dict, List

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from ..core.config import Settings
from ..schemas.chat import ChatRequest, ChatResponse, ChatTurn
from .context import format_metadata_as_context

SYSTEM_PROMPT = (
    "You are a real-estate investment advisor answering questions about one property analysis. "
    "Answer in the visitor's language, in at most four short sentences. Only use figures present in "
    "the property context; if a number is missing, say it is not available. Never give legal or tax "
    "guarantees."
)

NO_CONTEXT_NOTE = "No property analysis was provided; answer general questions only."
HISTORY_LIMIT = 10

logger = logging.getLogger(__name__)


class LLMUnavailableError(RuntimeError):
    """Raised when no configured Gemini models are available."""


@lru_cache
def _configured_api(api_key: str) -> bool:
    """Configure the Google Generative AI client once per key."""

    genai.configure(api_key=api_key)
    return True


_model_cache: Dict[str, genai.GenerativeModel] = {}


def _get_model(name: str, settings: Settings) -> genai.GenerativeModel:
    """Return a cached Gemini model instance."""

    _configured_api(settings.gemini_api_key)
    model_name = name.strip()
    if not model_name:
        raise RuntimeError("Gemini model name was empty")

    if model_name not in _model_cache:
        _model_cache[model_name] = genai.GenerativeModel(model_name)
    return _model_cache[model_name]


def _candidate_models(settings: Settings) -> list[str]:
    candidates: list[str] = []
    seen: set[str] = set()
    for candidate in (settings.gemini_model, *settings.gemini_model_fallbacks):
        candidate = candidate.strip()
        if candidate and candidate not in seen:
            candidates.append(candidate)
            seen.add(candidate)
    return candidates


def _format_history(history: List[ChatTurn], limit: int | None = None) -> str:
    if not history:
        return "No prior dialogue."
    trimmed = history[-limit:] if limit else history
    lines = [f"{turn.role.title()}: {turn.content}" for turn in trimmed]
    return "\n".join(lines)


def build_prompt(request: ChatRequest) -> str:
    context = format_metadata_as_context(request.metadata) if request.metadata else NO_CONTEXT_NOTE
    lines = [
        SYSTEM_PROMPT,
        "",
        "Property context:",
        context,
        "",
        "Conversation so far:",
        _format_history(request.history, HISTORY_LIMIT),
        "",
        f"Visitor: {request.message.strip()}",
        "Advisor:",
    ]
    return "\n".join(lines)


async def generate_reply(request: ChatRequest, settings: Settings) -> ChatResponse:
    """Answer the visitor, trying each configured Gemini model in turn."""

    if not settings.gemini_api_key.strip():
        raise LLMUnavailableError("GEMINI_API_KEY is missing")

    loop = asyncio.get_running_loop()
    prompt = build_prompt(request)
    last_error: Exception | None = None

    for model_name in _candidate_models(settings):
        def _run_inference(current_model: str = model_name) -> str:
            response = _get_model(current_model, settings).generate_content(prompt)
            text = getattr(response, "text", "") or ""
            return text.strip()

        try:
            result = await loop.run_in_executor(None, _run_inference)
        except google_exceptions.NotFound as exc:
            logger.warning("Gemini model %s not available: %s", model_name, exc)
            _model_cache.pop(model_name, None)
            last_error = exc
            continue
        except Exception as exc:  # noqa: BLE001
            logger.exception("Gemini generate_content failed for %s", model_name)
            last_error = exc
            continue

        if result:
            return ChatResponse(reply=result, source=model_name)
        logger.warning("Gemini model %s returned an empty reply", model_name)

    raise LLMUnavailableError("No Gemini models responded") from last_error
