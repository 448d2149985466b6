"""DTOs de entrada/saída do processamento de mensagens."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from chatbot_widget.application.context_analysis import EnhancedContext
from chatbot_widget.domain.messages import ChatMessage
from chatbot_widget.domain.session import ChatSession


class ProcessMessageRequest(BaseModel):
    """Mensagem recebida do widget.

    Campos vazios são aceitos aqui; a validação de negócio acontece no
    pipeline/use case (ValidationError antes de qualquer I/O).
    """

    user_message: str = ""
    session_id: str = ""
    organization_id: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class ConversationMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    message_count: int
    session_duration_seconds: float
    engagement_score: int
    lead_qualification_progress: float
    """Fração das perguntas configuradas já respondidas (0.0 a 1.0)."""

    processing_time_ms: float
    total_tokens: int = 0


class ProcessMessageResult(BaseModel):
    """Resultado de um turno processado e persistido."""

    model_config = ConfigDict(frozen=True)

    session: ChatSession
    user_message: ChatMessage
    bot_message: ChatMessage
    enhanced_context: EnhancedContext
    should_capture_lead_info: bool
    suggested_next_actions: list[str]
    conversation_metrics: ConversationMetrics
