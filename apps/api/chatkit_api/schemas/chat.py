"""Data contracts for the property chat endpoint."""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from .property import PropertyMetadata


class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, description="Visitor question")
    metadata: PropertyMetadata | None = Field(default=None, description="Property under discussion")
    history: list[ChatTurn] = Field(default_factory=list)


class ChatResponse(BaseModel):
    reply: str
    source: str = Field(..., description="Model that produced the reply")
