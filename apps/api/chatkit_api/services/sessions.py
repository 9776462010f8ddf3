"""Anonymous browser session identity backed by a cookie."""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable
from urllib.parse import quote
from uuid import uuid4

from ..core.config import Settings

SESSION_COOKIE_NAME = "chatkit_session_id"
SESSION_COOKIE_MAX_AGE = 60 * 60 * 24 * 30

# Characters left untouched by a browser's encodeURIComponent.
_COOKIE_VALUE_SAFE = "!~*'()"


class SessionOrigin(str, enum.Enum):
    COOKIE = "cookie"
    GENERATED = "generated"


@dataclass(frozen=True, slots=True)
class SessionCookieConfig:
    """Cookie attributes used when a new identity must be persisted."""

    name: str = SESSION_COOKIE_NAME
    max_age: int = SESSION_COOKIE_MAX_AGE
    secure: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "SessionCookieConfig":
        return cls(secure=settings.is_production)


@dataclass(frozen=True, slots=True)
class SessionIdentity:
    id: str
    origin: SessionOrigin
    session_cookie: str | None = None

    @property
    def user_id(self) -> str:
        return self.id


def get_cookie_value(cookie_header: str | None, name: str) -> str | None:
    """Return the raw value of ``name`` from a ``Cookie`` header, if present.

    Segments without ``=`` are skipped. The value is trimmed but not decoded.
    """

    if not cookie_header:
        return None

    for segment in cookie_header.split(";"):
        raw_name, sep, raw_value = segment.partition("=")
        if not sep or not raw_name:
            continue
        if raw_name.strip() == name:
            return raw_value.strip()
    return None


def generate_session_id() -> str:
    """Mint a random identifier from the OS entropy source."""

    return str(uuid4())


def serialize_session_cookie(value: str, config: SessionCookieConfig) -> str:
    attributes = [
        f"{config.name}={quote(value, safe=_COOKIE_VALUE_SAFE)}",
        "Path=/",
        f"Max-Age={config.max_age}",
        "HttpOnly",
        "SameSite=Lax",
    ]
    if config.secure:
        attributes.append("Secure")
    return "; ".join(attributes)


def resolve_session_identity(
    cookie_header: str | None,
    config: SessionCookieConfig,
    *,
    id_factory: Callable[[], str] = generate_session_id,
) -> SessionIdentity:
    """Reuse the identity stored in the cookie or mint a new one.

    A generated identity carries the ``Set-Cookie`` value the caller must emit.
    """

    existing = get_cookie_value(cookie_header, config.name)
    if existing:
        return SessionIdentity(id=existing, origin=SessionOrigin.COOKIE)

    generated = id_factory()
    return SessionIdentity(
        id=generated,
        origin=SessionOrigin.GENERATED,
        session_cookie=serialize_session_cookie(generated, config),
    )
