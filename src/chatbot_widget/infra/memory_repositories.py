"""Repositórios em memória para desenvolvimento e testes.

⚠️ Não usar em produção!
- Não persiste entre restarts
- Não funciona com múltiplas instâncias
"""

from __future__ import annotations

import logging

from chatbot_widget.domain.chatbot_config import ChatbotConfig
from chatbot_widget.domain.errors import NotFoundError
from chatbot_widget.domain.messages import ChatMessage
from chatbot_widget.domain.protocols import (
    ChatbotConfigRepositoryProtocol,
    MessageRepositoryProtocol,
    SessionRepositoryProtocol,
)
from chatbot_widget.domain.session import ChatSession
from chatbot_widget.observability.logging import get_logger, short_id

logger: logging.Logger = get_logger(__name__)


class InMemorySessionRepository(SessionRepositoryProtocol):
    """Sessões em dict (snapshots imutáveis, sem cópia defensiva)."""

    def __init__(self) -> None:
        self._sessions: dict[str, ChatSession] = {}

    async def find_by_id(self, session_id: str) -> ChatSession | None:
        return self._sessions.get(session_id)

    async def save(self, session: ChatSession) -> ChatSession:
        self._sessions[session.id] = session
        logger.debug("Session saved (in-memory)", extra={"session_id": short_id(session.id)})
        return session

    async def update(self, session: ChatSession) -> ChatSession:
        if session.id not in self._sessions:
            raise NotFoundError("ChatSession", session.id)
        self._sessions[session.id] = session
        logger.debug("Session updated (in-memory)", extra={"session_id": short_id(session.id)})
        return session

    async def find_expired_sessions(self, timeout_minutes: int) -> list[ChatSession]:
        return [
            s
            for s in self._sessions.values()
            if not s.is_terminal() and s.is_expired(timeout_minutes)
        ]


class InMemoryMessageRepository(MessageRepositoryProtocol):
    """Mensagens por sessão, em ordem de inserção."""

    def __init__(self) -> None:
        self._messages: dict[str, list[ChatMessage]] = {}

    async def find_by_session_id(self, session_id: str) -> list[ChatMessage]:
        return list(self._messages.get(session_id, []))

    async def save(self, message: ChatMessage) -> ChatMessage:
        self._messages.setdefault(message.session_id, []).append(message)
        return message

    async def find_last_by_session_id(self, session_id: str, limit: int) -> list[ChatMessage]:
        if limit <= 0:
            return []
        return list(self._messages.get(session_id, [])[-limit:])


class InMemoryChatbotConfigRepository(ChatbotConfigRepositoryProtocol):
    """Configs carregadas na inicialização (ou via add())."""

    def __init__(self, configs: list[ChatbotConfig] | None = None) -> None:
        self._configs: dict[str, ChatbotConfig] = {c.id: c for c in configs or []}

    def add(self, config: ChatbotConfig) -> None:
        self._configs[config.id] = config

    async def find_by_id(self, config_id: str) -> ChatbotConfig | None:
        return self._configs.get(config_id)
