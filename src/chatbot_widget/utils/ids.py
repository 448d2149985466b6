"""Geradores de identificadores."""

from __future__ import annotations

import secrets
import uuid


def new_id() -> str:
    """Gera um identificador único (uuid4)."""

    return str(uuid.uuid4())


def new_session_id() -> str:
    """Gera um session_id único."""

    return new_id()


def new_session_token(prefix: str = "cs") -> str:
    """Gera um token opaco de sessão para o widget.

    Formato: {prefix}_{base64url(24 bytes)}, sem relação com o session_id.
    """

    return f"{prefix}_{secrets.token_urlsafe(24)}"


def new_visitor_id() -> str:
    """Gera um visitor_id anônimo quando o widget não informa um."""

    return f"visitor_{uuid.uuid4().hex[:16]}"
