"""Rastreamento de erros via log estruturado (sem serviço externo)."""

from __future__ import annotations

import logging
from typing import Any

from chatbot_widget.domain.protocols import ErrorTrackingProtocol
from chatbot_widget.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)

# Campos com texto do visitante nunca vão para o log
_REDACTED_FIELDS = frozenset({"user_message"})


class LoggingErrorTracker(ErrorTrackingProtocol):
    """Emite `chat_processing_error` com o contexto recebido, sem PII."""

    async def track_error(self, message: str, context: dict[str, Any]) -> None:
        extra: dict[str, Any] = {
            key: value for key, value in context.items() if key not in _REDACTED_FIELDS
        }
        if isinstance(context.get("user_message"), str):
            extra["user_message_chars"] = len(context["user_message"])
        extra["error_message"] = message
        logger.error("Chat processing error tracked", extra=extra)
