"""Protocolos de domínio para persistência (sessões, mensagens, configs)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from chatbot_widget.domain.chatbot_config import ChatbotConfig
    from chatbot_widget.domain.messages import ChatMessage
    from chatbot_widget.domain.session import ChatSession


class SessionRepositoryProtocol(ABC):
    """Contrato assíncrono para armazenamento de ChatSession."""

    @abstractmethod
    async def find_by_id(self, session_id: str) -> ChatSession | None: ...

    @abstractmethod
    async def save(self, session: ChatSession) -> ChatSession: ...

    @abstractmethod
    async def update(self, session: ChatSession) -> ChatSession:
        """Atualiza sessão existente (NotFoundError se inexistente)."""

    @abstractmethod
    async def find_expired_sessions(self, timeout_minutes: int) -> list[ChatSession]:
        """Sessões não terminais com inatividade acima do timeout."""


class MessageRepositoryProtocol(ABC):
    """Contrato assíncrono para mensagens da conversa."""

    @abstractmethod
    async def find_by_session_id(self, session_id: str) -> list[ChatMessage]:
        """Mensagens da sessão em ordem cronológica."""

    @abstractmethod
    async def save(self, message: ChatMessage) -> ChatMessage: ...

    @abstractmethod
    async def find_last_by_session_id(
        self, session_id: str, limit: int
    ) -> list[ChatMessage]:
        """Últimas `limit` mensagens, em ordem cronológica."""


class ChatbotConfigRepositoryProtocol(ABC):
    """Contrato de leitura de configuração de chatbot."""

    @abstractmethod
    async def find_by_id(self, config_id: str) -> ChatbotConfig | None: ...
