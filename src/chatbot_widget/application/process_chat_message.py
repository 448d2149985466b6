"""Use case: processar uma mensagem do widget de ponta a ponta.

Regras:
- organization_id validado antes de qualquer colaborador ser chamado
- Falha do pipeline: tracking best-effort e o MESMO erro é relançado
- Falha do tracking é logada e nunca substitui o erro original
"""

from __future__ import annotations

import logging
import time
from typing import Any

from chatbot_widget.application.dto import ProcessMessageRequest, ProcessMessageResult
from chatbot_widget.application.pipeline import MessageProcessingPipeline
from chatbot_widget.application.single_flight import SessionSingleFlight
from chatbot_widget.domain.errors import ChatbotWidgetError, ValidationError
from chatbot_widget.domain.protocols import ErrorTrackingProtocol
from chatbot_widget.observability.logging import get_logger, short_id
from chatbot_widget.observability.timing import elapsed_ms_since

logger: logging.Logger = get_logger(__name__)

DEFAULT_TRUNCATE_CHARS = 200


class ProcessChatMessageUseCase:
    """Ponto de entrada do processamento de mensagens."""

    def __init__(
        self,
        pipeline: MessageProcessingPipeline,
        error_tracking: ErrorTrackingProtocol | None = None,
        single_flight: SessionSingleFlight | None = None,
        *,
        truncate_chars: int = DEFAULT_TRUNCATE_CHARS,
    ) -> None:
        self._pipeline = pipeline
        self._tracking = error_tracking
        self._single_flight = single_flight
        self._truncate_chars = truncate_chars

    async def execute(self, request: ProcessMessageRequest) -> ProcessMessageResult:
        if not request.organization_id or not request.organization_id.strip():
            raise ValidationError("organization_id is required", field="organization_id")

        start = time.perf_counter()
        try:
            if self._single_flight is not None:
                async with self._single_flight.hold(request.session_id):
                    return await self._pipeline.run(request)
            return await self._pipeline.run(request)
        except Exception as error:
            await self._track(error, request, elapsed_ms_since(start))
            raise

    async def _track(
        self, error: Exception, request: ProcessMessageRequest, elapsed_ms: float
    ) -> None:
        """Best-effort: nunca lança."""
        code = error.code if isinstance(error, ChatbotWidgetError) else "UNEXPECTED_ERROR"
        logger.warning(
            "Message processing failed",
            extra={
                "session_id": short_id(request.session_id),
                "error_code": code,
                "error_type": type(error).__name__,
                "elapsed_ms": elapsed_ms,
            },
        )
        if self._tracking is None:
            return

        context: dict[str, Any] = {
            "session_id": request.session_id,
            "organization_id": request.organization_id,
            "error_code": code,
            "error_type": type(error).__name__,
            "elapsed_ms": elapsed_ms,
            "user_message": request.user_message[: self._truncate_chars],
        }
        try:
            await self._tracking.track_error(str(error), context)
        except Exception as tracking_error:  # noqa: BLE001
            logger.error(
                "Error tracking failed",
                extra={
                    "session_id": short_id(request.session_id),
                    "error_type": type(tracking_error).__name__,
                },
            )
