"""Protocolo de domínio para a interação unificada com o modelo de linguagem."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from chatbot_widget.ai.contracts import UnifiedInteractionResult
    from chatbot_widget.domain.chatbot_config import ChatbotConfig
    from chatbot_widget.domain.messages import ChatMessage
    from chatbot_widget.domain.session import ChatSession


class AIInteractionProtocol(ABC):
    """Contrato da chamada unificada (análise + resposta em um round trip).

    Implementações levantam AIInteractionTimeoutError em timeout e
    UpstreamCapabilityError nas demais falhas.
    """

    @abstractmethod
    async def process(
        self,
        user_message: str,
        *,
        message_history: Sequence[ChatMessage],
        session: ChatSession,
        chatbot_config: ChatbotConfig,
        entity_context: str = "",
        knowledge_context: str = "",
    ) -> UnifiedInteractionResult: ...
