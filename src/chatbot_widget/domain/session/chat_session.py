"""Entidade ChatSession: estado imutável de uma sessão do widget.

Regras:
- Toda mutação retorna um NOVO snapshot (model_copy) e atualiza last_activity_at
- Status e qualificação mudam apenas via tabelas em transitions.py
- Transição não permitida retorna o próprio snapshot (mutadores totais)
- is_expired é predicado puro; quem detecta expiração chama mark_as_abandoned
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from chatbot_widget.domain.enums import QualificationStatus, SessionStatus
from chatbot_widget.domain.errors import ValidationError
from chatbot_widget.domain.session.events import QualificationEvent, SessionEvent
from chatbot_widget.domain.session.models import (
    AccumulatedEntity,
    AnsweredQuestion,
    ConversationSummary,
    CriticalMoment,
    JourneyState,
    LeadQualificationState,
    PageView,
    PhaseSummary,
    SessionContext,
    clamp_engagement,
    utcnow,
)
from chatbot_widget.domain.session.qualification import (
    compute_lead_score,
    is_qualified,
    upsert_answer,
)
from chatbot_widget.domain.session.transitions import (
    TERMINAL_STATUSES,
    validate_qualification_transition,
    validate_status_transition,
)
from chatbot_widget.observability.logging import get_logger
from chatbot_widget.utils.ids import new_session_id, new_session_token

logger = get_logger(__name__)

DEFAULT_TIMEOUT_MINUTES = 30

CONTACT_ENTITY_NAMES: tuple[str, ...] = ("visitor_name", "email", "phone")
"""Entidades acumuladas que contam como contato capturado."""


class SessionMetrics(BaseModel):
    """Métricas derivadas da sessão (somente leitura)."""

    model_config = ConfigDict(frozen=True)

    duration: timedelta
    page_view_count: int
    topic_count: int
    interest_count: int
    has_contact_info: bool


class ChatSession(BaseModel):
    """Sessão de conversa de um visitante com um chatbot configurado."""

    model_config = ConfigDict(frozen=True)

    id: str
    chatbot_config_id: str
    visitor_id: str
    session_token: str
    status: SessionStatus = SessionStatus.ACTIVE
    started_at: datetime = Field(default_factory=utcnow)
    last_activity_at: datetime = Field(default_factory=utcnow)
    ended_at: datetime | None = None
    context_data: SessionContext = Field(default_factory=SessionContext)
    lead_qualification_state: LeadQualificationState = Field(
        default_factory=LeadQualificationState
    )

    ip_address: str | None = None
    user_agent: str | None = None
    referrer_url: str | None = None
    current_url: str | None = None

    @field_validator("started_at", "last_activity_at", "ended_at")
    @classmethod
    def _ensure_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @model_validator(mode="after")
    def _validate_identity(self) -> ChatSession:
        for field in ("id", "chatbot_config_id", "visitor_id", "session_token"):
            if not getattr(self, field).strip():
                raise ValidationError(f"{field} is required", field=field)
        return self

    # ------------------------------------------------------------------
    # Fábricas e serialização
    # ------------------------------------------------------------------

    @classmethod
    def create(
        cls,
        chatbot_config_id: str,
        visitor_id: str,
        initial_context: dict[str, Any] | SessionContext | None = None,
        **metadata: str | None,
    ) -> ChatSession:
        """Cria nova sessão ativa com contexto e qualificação iniciais."""
        if isinstance(initial_context, SessionContext):
            context = initial_context
        else:
            context = SessionContext.model_validate(initial_context or {})

        now = utcnow()
        return cls(
            id=new_session_id(),
            chatbot_config_id=chatbot_config_id,
            visitor_id=visitor_id,
            session_token=new_session_token(),
            started_at=now,
            last_activity_at=now,
            context_data=context,
            **metadata,
        )

    @classmethod
    def from_persistence(cls, data: dict[str, Any]) -> ChatSession:
        """Reconstrói a sessão a partir do formato persistido."""
        return cls.model_validate(data)

    def to_persistence(self) -> dict[str, Any]:
        """Formato persistido (JSON-compatível)."""
        return self.model_dump(mode="json")

    # ------------------------------------------------------------------
    # Helpers internos
    # ------------------------------------------------------------------

    def _touch(self, **updates: Any) -> ChatSession:
        updates["last_activity_at"] = utcnow()
        return self.model_copy(update=updates)

    def _with_context(self, **changes: Any) -> ChatSession:
        return self._touch(context_data=self.context_data.model_copy(update=changes))

    def _transition(self, event: SessionEvent, **updates: Any) -> ChatSession:
        ok, next_status, _reason = validate_status_transition(self.status, event)
        if not ok or next_status is None:
            return self
        return self._touch(status=next_status, **updates)

    def _qualify(self, event: QualificationEvent, **updates: Any) -> ChatSession | None:
        state = self.lead_qualification_state
        ok, next_status, _reason = validate_qualification_transition(
            state.qualification_status, event
        )
        if not ok or next_status is None:
            return None
        new_state = state.model_copy(update={"qualification_status": next_status, **updates})
        return self._touch(lead_qualification_state=new_state)

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def update_activity(self) -> ChatSession:
        """Registra atividade: idle → active, active permanece active."""
        return self._transition(SessionEvent.ACTIVITY)

    def mark_as_idle(self) -> ChatSession:
        return self._transition(SessionEvent.IDLE_DETECTED)

    def mark_as_abandoned(self) -> ChatSession:
        return self._transition(SessionEvent.ABANDONED, ended_at=utcnow())

    def end(self) -> ChatSession:
        return self._transition(SessionEvent.ENDED, ended_at=utcnow())

    def complete(self) -> ChatSession:
        return self._transition(SessionEvent.COMPLETED, ended_at=utcnow())

    # ------------------------------------------------------------------
    # Contexto
    # ------------------------------------------------------------------

    def add_page_view(self, url: str, title: str = "", time_on_page: int = 0) -> ChatSession:
        view = PageView(url=url, title=title, time_on_page=time_on_page)
        context = self.context_data.model_copy(
            update={"page_views": (*self.context_data.page_views, view)}
        )
        return self._touch(context_data=context, current_url=url)

    def update_conversation_summary(
        self,
        full_summary: str,
        phase_summaries: list[PhaseSummary] | tuple[PhaseSummary, ...] | None = None,
        critical_moments: list[CriticalMoment] | tuple[CriticalMoment, ...] | None = None,
    ) -> ChatSession:
        """Atualiza o resumo (simples ou com fases/momentos críticos)."""
        current = self.context_data.conversation_summary
        summary = ConversationSummary(
            full_summary=full_summary,
            phase_summaries=(
                tuple(phase_summaries)
                if phase_summaries is not None
                else current.phase_summaries
            ),
            critical_moments=(
                tuple(critical_moments)
                if critical_moments is not None
                else current.critical_moments
            ),
        )
        return self._with_context(conversation_summary=summary)

    def add_topic(self, topic: str) -> ChatSession:
        if topic in self.context_data.topics:
            return self
        return self._with_context(topics=(*self.context_data.topics, topic))

    def add_interest(self, interest: str) -> ChatSession:
        if interest in self.context_data.interests:
            return self
        return self._with_context(interests=(*self.context_data.interests, interest))

    def update_engagement_score(self, score: float | int) -> ChatSession:
        return self._with_context(engagement_score=clamp_engagement(score))

    def update_context_data(self, **changes: Any) -> ChatSession:
        """Merge de campos do contexto com revalidação (clamp, dedupe).

        Total: campos desconhecidos são ignorados e valores que não validam
        mantêm o valor anterior.
        """
        merged = dict(self.context_data)
        for name, value in changes.items():
            if name not in SessionContext.model_fields:
                logger.debug("Ignoring unknown context field", extra={"field": name})
                continue
            candidate = {**merged, name: value}
            try:
                SessionContext.model_validate(candidate)
            except PydanticValidationError:
                logger.debug("Ignoring invalid context value", extra={"field": name})
                continue
            merged = candidate
        return self._touch(context_data=SessionContext.model_validate(merged))

    def with_accumulated_entities(self, entities: dict[str, AccumulatedEntity]) -> ChatSession:
        return self._with_context(accumulated_entities=dict(entities))

    def update_journey(self, journey: JourneyState) -> ChatSession:
        return self._with_context(journey=journey)

    # ------------------------------------------------------------------
    # Qualificação de lead
    # ------------------------------------------------------------------

    def start_lead_qualification(self) -> ChatSession:
        """not_started → in_progress (repetível; reinicia current_step)."""
        return self._qualify(QualificationEvent.START, current_step=0) or self

    def answer_qualification_question(
        self,
        question_id: str,
        question: str,
        answer: str | list[str] | tuple[str, ...],
        scoring_weight: float = 1.0,
    ) -> ChatSession:
        """Upsert da resposta por question_id; current_step += 1."""
        state = self.lead_qualification_state
        answered = AnsweredQuestion(
            question_id=question_id,
            question=question,
            answer=answer if isinstance(answer, str) else tuple(answer),
            scoring_weight=scoring_weight,
        )
        return (
            self._qualify(
                QualificationEvent.ANSWER,
                answered_questions=upsert_answer(state.answered_questions, answered),
                current_step=state.current_step + 1,
            )
            or self
        )

    def complete_lead_qualification(self) -> ChatSession:
        """in_progress → completed: recalcula lead_score e marca captured_at."""
        state = self.lead_qualification_state
        score = compute_lead_score(state.answered_questions, self.context_data.engagement_score)
        completed = self._qualify(
            QualificationEvent.COMPLETE,
            lead_score=score,
            is_qualified=is_qualified(score),
            captured_at=utcnow(),
        )
        if completed is None:
            return self
        return completed.model_copy(
            update={"context_data": completed.context_data.model_copy(update={"lead_score": score})}
        )

    def skip_lead_qualification(self) -> ChatSession:
        """in_progress → skipped (lead_score inalterado)."""
        return self._qualify(QualificationEvent.SKIP) or self

    # ------------------------------------------------------------------
    # Consultas
    # ------------------------------------------------------------------

    def is_expired(self, timeout_minutes: int = DEFAULT_TIMEOUT_MINUTES) -> bool:
        """now - last_activity_at > timeout (predicado puro)."""
        if timeout_minutes <= 0:
            raise ValidationError("timeout_minutes must be positive", field="timeout_minutes")
        return utcnow() - self.last_activity_at > timedelta(minutes=timeout_minutes)

    def is_ongoing(self) -> bool:
        return self.status == SessionStatus.ACTIVE

    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def is_qualification_in_progress(self) -> bool:
        return (
            self.lead_qualification_state.qualification_status
            == QualificationStatus.IN_PROGRESS
        )

    def has_contact_info(self) -> bool:
        entities = self.context_data.accumulated_entities
        return any(
            name in entities and bool(entities[name].value) for name in CONTACT_ENTITY_NAMES
        )

    def get_session_duration(self) -> timedelta:
        return (self.ended_at or utcnow()) - self.started_at

    def get_session_metrics(self) -> SessionMetrics:
        context = self.context_data
        return SessionMetrics(
            duration=self.get_session_duration(),
            page_view_count=len(context.page_views),
            topic_count=len(context.topics),
            interest_count=len(context.interests),
            has_contact_info=self.has_contact_info(),
        )
