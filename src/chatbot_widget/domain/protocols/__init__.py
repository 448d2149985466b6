"""Re-exports dos Protocolos de domínio para uso por Application."""

from __future__ import annotations

from chatbot_widget.domain.protocols.ai_interaction import AIInteractionProtocol
from chatbot_widget.domain.protocols.error_tracking import ErrorTrackingProtocol
from chatbot_widget.domain.protocols.knowledge_search import KnowledgeSearchProtocol
from chatbot_widget.domain.protocols.repositories import (
    ChatbotConfigRepositoryProtocol,
    MessageRepositoryProtocol,
    SessionRepositoryProtocol,
)

__all__ = [
    "AIInteractionProtocol",
    "ErrorTrackingProtocol",
    "KnowledgeSearchProtocol",
    "SessionRepositoryProtocol",
    "MessageRepositoryProtocol",
    "ChatbotConfigRepositoryProtocol",
]
