"""Value objects imutáveis do contexto de sessão e da qualificação de lead.

Todos os modelos são `frozen`: mudanças produzem novas instâncias via
`model_copy(update=...)`. Sequências são tuplas para evitar aliasing entre
snapshots.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from chatbot_widget.domain.enums import EngagementLevel, QualificationStatus
from chatbot_widget.domain.errors import ValidationError

ENGAGEMENT_MIN = 0
ENGAGEMENT_MAX = 100
INTENT_HISTORY_LIMIT = 10

EntityValue = str | int | float | bool | list[str] | tuple[str, ...]


def utcnow() -> datetime:
    """Relógio único do domínio (UTC, timezone-aware)."""
    return datetime.now(tz=UTC)


def clamp_engagement(score: float | int) -> int:
    """Limita o score de engajamento ao intervalo [0, 100]."""
    try:
        number = float(score)
    except (TypeError, ValueError):
        return ENGAGEMENT_MIN
    if math.isnan(number):
        return ENGAGEMENT_MIN
    if not math.isfinite(number):
        return ENGAGEMENT_MAX if number > 0 else ENGAGEMENT_MIN
    value = round(number)
    return max(ENGAGEMENT_MIN, min(ENGAGEMENT_MAX, value))


def dedupe_preserving_order(values: tuple[str, ...] | list[str]) -> tuple[str, ...]:
    """Remove duplicatas mantendo a ordem de inserção."""
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return tuple(result)


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class PageView(_Frozen):
    """Página visitada durante a sessão."""

    url: str
    title: str = ""
    timestamp: datetime = Field(default_factory=utcnow)
    time_on_page: int = 0  # segundos


class PhaseSummary(_Frozen):
    """Resumo de uma fase da conversa (discovery, qualification, ...)."""

    phase: str
    summary: str
    key_outcomes: tuple[str, ...] = ()
    entities_extracted: tuple[str, ...] = ()
    started_at: datetime | None = None
    ended_at: datetime | None = None


class CriticalMoment(_Frozen):
    """Mensagem que deve ser preservada mesmo após sumarização."""

    message_id: str
    importance: Literal["high", "critical"] = "high"
    context: str = ""
    preserve_in_context: bool = True


class ConversationSummary(_Frozen):
    """Resumo da conversa, opcionalmente quebrado por fases."""

    full_summary: str = ""
    phase_summaries: tuple[PhaseSummary, ...] = ()
    critical_moments: tuple[CriticalMoment, ...] = ()


class AccumulatedEntity(_Frozen):
    """Entidade acumulada entre turnos (valor + corroboração)."""

    value: Any
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    source_turns: tuple[int, ...] = ()
    last_updated_at: datetime = Field(default_factory=utcnow)


class JourneyState(_Frozen):
    """Sinais de jornada do visitante vindos da análise de fluxo."""

    phase: str = "discovery"
    engagement_level: EngagementLevel = EngagementLevel.LOW
    last_intent: str | None = None
    intent_history: tuple[str, ...] = ()
    should_escalate_to_human: bool = False
    needs_summarization: bool = False

    @field_validator("intent_history", mode="before")
    @classmethod
    def _bound_history(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return tuple(value)[-INTENT_HISTORY_LIMIT:]
        return value


class SessionContext(_Frozen):
    """Contexto conversacional acumulado da sessão.

    Invariantes:
    - engagement_score sempre em [0, 100]
    - topics/interests sem duplicatas (ordem de inserção mantida)
    """

    previous_visits: int = 0
    page_views: tuple[PageView, ...] = ()
    conversation_summary: ConversationSummary = Field(default_factory=ConversationSummary)
    topics: tuple[str, ...] = ()
    interests: tuple[str, ...] = ()
    engagement_score: int = 0
    accumulated_entities: dict[str, AccumulatedEntity] = Field(default_factory=dict)
    lead_score: int = 0
    journey: JourneyState = Field(default_factory=JourneyState)

    @field_validator("engagement_score", mode="before")
    @classmethod
    def _clamp_engagement(cls, value: Any) -> int:
        return clamp_engagement(value)

    @field_validator("topics", "interests", mode="before")
    @classmethod
    def _dedupe(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return dedupe_preserving_order([str(v) for v in value])
        return value


class AnsweredQuestion(_Frozen):
    """Resposta de qualificação (upsert por question_id)."""

    question_id: str
    question: str
    answer: str | tuple[str, ...]
    scoring_weight: float = Field(default=1.0, ge=0.0)
    answered_at: datetime = Field(default_factory=utcnow)

    def has_answer(self) -> bool:
        """True se a resposta tem conteúdo (texto ou item não vazio)."""
        if isinstance(self.answer, str):
            return bool(self.answer.strip())
        return any(item.strip() for item in self.answer)


class LeadQualificationState(_Frozen):
    """Sub-estado de qualificação de lead.

    captured_at só existe quando qualification_status == completed.
    """

    current_step: int = 0
    answered_questions: tuple[AnsweredQuestion, ...] = ()
    qualification_status: QualificationStatus = QualificationStatus.NOT_STARTED
    is_qualified: bool = False
    lead_score: int = 0
    captured_at: datetime | None = None

    @model_validator(mode="after")
    def _captured_only_when_completed(self) -> LeadQualificationState:
        if (
            self.captured_at is not None
            and self.qualification_status != QualificationStatus.COMPLETED
        ):
            raise ValidationError(
                "captured_at requires qualification_status=completed",
                field="captured_at",
            )
        return self
