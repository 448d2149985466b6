"""Ciclo de vida de sessões: inicialização, encerramento e varredura de expiradas.

Expiração é detectada por predicado puro (ChatSession.is_expired); apenas
este serviço transiciona explicitamente para abandoned.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from typing import Any, TypeVar

from chatbot_widget.application.persistence import repository_call
from chatbot_widget.domain.errors import NotFoundError, ValidationError
from chatbot_widget.domain.protocols import (
    ChatbotConfigRepositoryProtocol,
    SessionRepositoryProtocol,
)
from chatbot_widget.domain.session import ChatSession
from chatbot_widget.observability.logging import get_logger, short_id
from chatbot_widget.utils.ids import new_visitor_id

logger: logging.Logger = get_logger(__name__)

T = TypeVar("T")


class SessionLifecycleService:
    """Operações de ciclo de vida fora do pipeline de mensagens."""

    def __init__(
        self,
        session_repository: SessionRepositoryProtocol,
        chatbot_config_repository: ChatbotConfigRepositoryProtocol,
        *,
        default_timeout_minutes: int = 30,
        repository_timeout_seconds: float | None = None,
    ) -> None:
        self._sessions = session_repository
        self._configs = chatbot_config_repository
        self._timeout = default_timeout_minutes
        self._repository_timeout = repository_timeout_seconds

    async def _repository_call(self, operation: str, call: Awaitable[T]) -> T:
        return await repository_call(operation, call, timeout=self._repository_timeout)

    async def initialize_session(
        self,
        chatbot_config_id: str,
        visitor_id: str | None = None,
        *,
        initial_context: dict[str, Any] | None = None,
        **metadata: str | None,
    ) -> ChatSession:
        """Cria e persiste nova sessão para um chatbot ativo."""
        if not chatbot_config_id or not chatbot_config_id.strip():
            raise ValidationError("chatbot_config_id is required", field="chatbot_config_id")

        config = await self._repository_call(
            "find_chatbot_config", self._configs.find_by_id(chatbot_config_id)
        )
        if config is None:
            raise NotFoundError("ChatbotConfig", chatbot_config_id)
        if not config.is_active:
            raise ValidationError(
                "Cannot create session for inactive chatbot configuration",
                field="chatbot_config_id",
            )

        session = ChatSession.create(
            chatbot_config_id,
            visitor_id or new_visitor_id(),
            initial_context,
            **metadata,
        )
        saved = await self._repository_call("save_session", self._sessions.save(session))
        logger.info(
            "Session initialized",
            extra={
                "session_id": short_id(saved.id),
                "chatbot_config_id": short_id(chatbot_config_id),
            },
        )
        return saved

    async def end_session(self, session_id: str) -> ChatSession:
        session = await self._repository_call(
            "find_session", self._sessions.find_by_id(session_id)
        )
        if session is None:
            raise NotFoundError("ChatSession", session_id)
        ended = session.end()
        if ended is session:
            return session
        return await self._repository_call("update_session", self._sessions.update(ended))

    async def sweep_expired_sessions(self, timeout_minutes: int | None = None) -> list[ChatSession]:
        """Marca como abandoned as sessões inativas além do timeout."""
        timeout = self._timeout if timeout_minutes is None else timeout_minutes
        if timeout <= 0:
            raise ValidationError("timeout_minutes must be positive", field="timeout_minutes")

        expired = await self._repository_call(
            "find_expired_sessions", self._sessions.find_expired_sessions(timeout)
        )
        abandoned: list[ChatSession] = []
        for session in expired:
            updated = session.mark_as_abandoned()
            if updated is session:
                continue
            abandoned.append(
                await self._repository_call("update_session", self._sessions.update(updated))
            )

        logger.info(
            "Expired sessions swept",
            extra={"found": len(expired), "abandoned": len(abandoned), "timeout_minutes": timeout},
        )
        return abandoned
