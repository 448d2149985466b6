"""Análise de contexto antes da chamada ao modelo.

Produz, para um turno:
- janela recente de mensagens dentro do orçamento de tokens
- classificação de intenção por palavras-chave (determinística, barata)
- conhecimento relevante (degradável: falha vira lista vazia + log)
- sinal de sumarização quando o histórico excede o orçamento
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict, Field

from chatbot_widget.ai.contracts import KnowledgeItem
from chatbot_widget.application.knowledge_retrieval import KnowledgeRetrievalCoordinator
from chatbot_widget.domain.context_window import ConversationContextWindow
from chatbot_widget.domain.entity_accumulator import build_entity_context_prompt
from chatbot_widget.domain.messages import ChatMessage, estimate_tokens
from chatbot_widget.domain.session import ChatSession
from chatbot_widget.observability.logging import get_logger, log_degraded, short_id

logger = get_logger(__name__)

UNKNOWN_INTENT = "unknown"
KNOWLEDGE_SNIPPET_CHARS = 300

INTENT_KEYWORDS: dict[str, tuple[str, ...]] = {
    "pricing_inquiry": (
        "price", "prices", "pricing", "cost", "costs", "how much", "quote", "plan", "plans",
    ),
    "demo_request": ("demo", "demonstration", "trial", "try it", "walkthrough"),
    "support_request": ("help", "issue", "problem", "error", "bug", "support", "broken"),
    "feature_inquiry": (
        "feature", "features", "integration", "integrations", "integrate", "capability",
    ),
    "contact_request": ("contact", "call me", "email me", "talk to", "sales team"),
    "greeting": ("hello", "hi", "hey", "good morning", "good afternoon"),
}
"""Ordem importa: a primeira intenção com mais acertos vence em empate."""

TOPIC_KEYWORDS: dict[str, tuple[str, ...]] = {
    "pricing": ("price", "prices", "pricing", "cost", "costs", "how much", "quote"),
    "trial": ("trial", "free trial", "try it"),
    "demo": ("demo", "demonstration", "walkthrough"),
    "features": ("feature", "features", "integration", "integrations", "capability"),
    "support": ("help", "issue", "problem", "error", "bug", "support"),
}

KNOWLEDGE_INTENSIVE_INTENTS = frozenset({"pricing_inquiry", "feature_inquiry", "support_request"})


def _contains(text: str, keyword: str) -> bool:
    return re.search(rf"\b{re.escape(keyword)}\b", text) is not None


def classify_intent(text: str) -> tuple[str, float]:
    """Classificação por palavras-chave; confiança cresce com os acertos."""
    lowered = text.lower()
    best_intent, best_hits = UNKNOWN_INTENT, 0
    for intent, keywords in INTENT_KEYWORDS.items():
        hits = sum(1 for kw in keywords if _contains(lowered, kw))
        if hits > best_hits:
            best_intent, best_hits = intent, hits
    if best_hits == 0:
        return UNKNOWN_INTENT, 0.0
    return best_intent, min(0.9, 0.5 + 0.15 * best_hits)


def detect_topics(text: str) -> list[str]:
    lowered = text.lower()
    return [
        topic
        for topic, keywords in TOPIC_KEYWORDS.items()
        if any(_contains(lowered, kw) for kw in keywords)
    ]


def format_knowledge(items: Sequence[KnowledgeItem]) -> str:
    """Bloco de conhecimento para o prompt (trechos curtos)."""
    return "\n".join(
        f"- {item.title}: {item.content[:KNOWLEDGE_SNIPPET_CHARS]}" for item in items
    )


class EnhancedContext(BaseModel):
    """Resultado da análise de contexto de um turno."""

    model_config = ConfigDict(frozen=True)

    intent: str = UNKNOWN_INTENT
    intent_confidence: float = 0.0
    detected_topics: list[str] = Field(default_factory=list)
    relevant_knowledge: list[KnowledgeItem] = Field(default_factory=list)
    knowledge_degraded: bool = False
    recent_messages: list[ChatMessage] = Field(default_factory=list, exclude=True)
    token_usage: int = 0
    needs_summarization: bool = False
    tokens_to_summarize: float = 0.0
    entity_context: str = ""

    @property
    def knowledge_context(self) -> str:
        return format_knowledge(self.relevant_knowledge)


class ConversationContextAnalyzer:
    """Monta o EnhancedContext de um turno."""

    def __init__(
        self,
        context_window: ConversationContextWindow,
        knowledge: KnowledgeRetrievalCoordinator,
        *,
        knowledge_timeout_seconds: float | None = None,
    ) -> None:
        self._window = context_window
        self._knowledge = knowledge
        self._knowledge_timeout = knowledge_timeout_seconds

    async def analyze(
        self,
        session: ChatSession,
        history: Sequence[ChatMessage],
        user_message: str,
    ) -> EnhancedContext:
        recent = self._window.select_recent_messages(history)
        token_usage = sum(m.estimated_tokens() for m in history) + estimate_tokens(user_message)
        intent, confidence = classify_intent(user_message)

        knowledge, degraded = await self._retrieve(session, recent, user_message, intent)

        return EnhancedContext(
            intent=intent,
            intent_confidence=confidence,
            detected_topics=detect_topics(user_message),
            relevant_knowledge=knowledge,
            knowledge_degraded=degraded,
            recent_messages=recent,
            token_usage=token_usage,
            needs_summarization=self._window.should_summarize(token_usage),
            tokens_to_summarize=self._window.get_tokens_to_summarize(token_usage),
            entity_context=build_entity_context_prompt(
                session.context_data.accumulated_entities
            ),
        )

    async def _retrieve(
        self,
        session: ChatSession,
        recent: Sequence[ChatMessage],
        user_message: str,
        intent: str,
    ) -> tuple[list[KnowledgeItem], bool]:
        """Busca degradável: qualquer falha (inclusive timeout) vira lista vazia."""
        if intent in KNOWLEDGE_INTENSIVE_INTENTS:
            call = self._knowledge.retrieve_knowledge_with_enhanced_context(
                user_message,
                history=[m.content for m in recent if m.is_from_user],
                preferences={"interests": list(session.context_data.interests)},
                intent=intent,
            )
        else:
            call = self._knowledge.retrieve_knowledge(user_message)
        try:
            if self._knowledge_timeout:
                items = await asyncio.wait_for(call, timeout=self._knowledge_timeout)
            else:
                items = await call
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Knowledge retrieval failed",
                extra={"session_id": short_id(session.id), "error_type": type(exc).__name__},
            )
            log_degraded(logger, "knowledge_retrieval", reason=type(exc).__name__)
            return [], True
        return list(items or []), False
