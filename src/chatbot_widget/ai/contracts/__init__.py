"""Contratos Pydantic para a interação unificada e a busca de conhecimento."""

from chatbot_widget.ai.contracts.knowledge import (
    KnowledgeItem,
    KnowledgeSearchRequest,
    KnowledgeSearchResult,
)
from chatbot_widget.ai.contracts.unified_interaction import (
    ConversationFlow,
    InteractionAnalysis,
    InteractionResponse,
    TokenUsage,
    UnifiedInteractionResult,
)

__all__ = [
    "KnowledgeItem",
    "KnowledgeSearchRequest",
    "KnowledgeSearchResult",
    "ConversationFlow",
    "InteractionAnalysis",
    "InteractionResponse",
    "TokenUsage",
    "UnifiedInteractionResult",
]
