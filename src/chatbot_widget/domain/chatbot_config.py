"""Configuração do chatbot (somente o que o pipeline consome)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class LeadQualificationQuestion(BaseModel):
    """Pergunta de qualificação configurada."""

    model_config = ConfigDict(frozen=True)

    id: str
    question: str
    scoring_weight: float = Field(default=1.0, ge=0.0)
    is_required: bool = False


class BotPersonality(BaseModel):
    model_config = ConfigDict(frozen=True)

    tone: str = "professional"
    response_length: str = "adaptive"


class ChatbotConfig(BaseModel):
    """Configuração de uma instância de chatbot de uma organização."""

    model_config = ConfigDict(frozen=True)

    id: str
    organization_id: str
    name: str
    is_active: bool = True
    lead_qualification_questions: tuple[LeadQualificationQuestion, ...] = ()
    personality: BotPersonality = Field(default_factory=BotPersonality)
    knowledge_base_enabled: bool = True
    session_timeout_minutes: int = Field(default=30, gt=0)

    @property
    def question_count(self) -> int:
        return len(self.lead_qualification_questions)
