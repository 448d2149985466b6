"""Contrato Pydantic da interação unificada (análise + fluxo + resposta).

Uma única chamada ao modelo retorna análise da mensagem, sinais de fluxo
da conversa e a resposta ao visitante.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from chatbot_widget.domain.entity_accumulator import ExtractedEntity
from chatbot_widget.domain.enums import EngagementLevel, Sentiment


class InteractionAnalysis(BaseModel):
    """Análise da mensagem do visitante."""

    primary_intent: str = "unknown"
    """Intenção principal classificada (ex.: pricing_inquiry)."""

    primary_confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    """Confiança da classificação (0.0 a 1.0)."""

    entities: dict[str, ExtractedEntity] = Field(default_factory=dict)
    """Entidades extraídas neste turno (nome → valor + confiança)."""

    sentiment: Sentiment = Sentiment.NEUTRAL
    """Sentimento (neutral quando o modelo não informa)."""

    emotional_tone: str = "neutral"

    topics: list[str] = Field(default_factory=list)
    """Tópicos de negócio mencionados (pricing, demo, ...)."""

    interests: list[str] = Field(default_factory=list)


class ConversationFlow(BaseModel):
    """Sinais de fluxo/jornada da conversa."""

    current_phase: str = "discovery"
    engagement_level: EngagementLevel = EngagementLevel.LOW
    lead_capture_readiness: bool = False
    should_escalate_to_human: bool = False
    should_ask_qualification_questions: bool = False
    next_best_action: str | None = None


class InteractionResponse(BaseModel):
    """Resposta gerada para o visitante."""

    content: str = Field(..., min_length=1, max_length=4096)
    """Texto da resposta."""

    tone: str = "professional"
    call_to_action: str | None = None


class TokenUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class UnifiedInteractionResult(BaseModel):
    """Output da interação unificada."""

    analysis: InteractionAnalysis = Field(default_factory=InteractionAnalysis)
    conversation_flow: ConversationFlow = Field(default_factory=ConversationFlow)
    response: InteractionResponse
    usage: TokenUsage = Field(default_factory=TokenUsage)
    model: str = "unknown"
