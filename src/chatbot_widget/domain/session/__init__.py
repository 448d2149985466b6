"""Sessão do widget: entidade, value objects e tabelas de transição.

Exporta:
- ChatSession: entidade imutável
- SessionContext, LeadQualificationState e value objects
- validate_status_transition / validate_qualification_transition
"""

from chatbot_widget.domain.session.chat_session import (
    CONTACT_ENTITY_NAMES,
    ChatSession,
    SessionMetrics,
)
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
)
from chatbot_widget.domain.session.transitions import (
    ONGOING_STATUSES,
    TERMINAL_STATUSES,
    validate_qualification_transition,
    validate_status_transition,
)

__all__ = [
    "ChatSession",
    "SessionMetrics",
    "CONTACT_ENTITY_NAMES",
    "SessionEvent",
    "QualificationEvent",
    "AccumulatedEntity",
    "AnsweredQuestion",
    "ConversationSummary",
    "CriticalMoment",
    "JourneyState",
    "LeadQualificationState",
    "PageView",
    "PhaseSummary",
    "SessionContext",
    "TERMINAL_STATUSES",
    "ONGOING_STATUSES",
    "validate_status_transition",
    "validate_qualification_transition",
]
