"""Decisão de captura de lead e ações sugeridas.

Regras de decisão (em ordem):
1. Contato já capturado → False
2. Qualificação in_progress/completed → False
3. engagement >= 70 → True
4. Duração >= 5 min → True
5. Tópicos de compra + engagement >= 50 → True

Ações sugeridas: regras independentes (lista de callables), concatenadas e
deduplicadas na ordem; fallback quando nenhuma dispara.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import timedelta

from chatbot_widget.domain.chatbot_config import ChatbotConfig
from chatbot_widget.domain.enums import QualificationStatus
from chatbot_widget.domain.session import ChatSession
from chatbot_widget.domain.session.models import dedupe_preserving_order

HIGH_ENGAGEMENT_THRESHOLD = 70
TOPIC_ENGAGEMENT_THRESHOLD = 50
LONG_SESSION = timedelta(minutes=5)
QUALIFICATION_PROGRESS_THRESHOLD = 0.5

BUYING_TOPICS = frozenset({"pricing", "trial", "demo", "features"})

FALLBACK_ACTIONS: tuple[str, ...] = ("Continue conversation", "Ask clarifying questions")

TOPIC_ACTIONS: tuple[tuple[str, str], ...] = (
    ("pricing", "Provide pricing information"),
    ("demo", "Schedule a product demo"),
    ("support", "Connect with support team"),
)


def _topics(session: ChatSession) -> set[str]:
    return {t.lower() for t in session.context_data.topics}


def should_trigger_lead_capture(session: ChatSession, config: ChatbotConfig) -> bool:
    """Decide se o fluxo de captura de contato deve ser oferecido."""
    if session.has_contact_info():
        return False

    status = session.lead_qualification_state.qualification_status
    if status in (QualificationStatus.IN_PROGRESS, QualificationStatus.COMPLETED):
        return False

    engagement = session.context_data.engagement_score
    if engagement >= HIGH_ENGAGEMENT_THRESHOLD:
        return True

    if session.get_session_duration() >= LONG_SESSION:
        return True

    return bool(_topics(session) & BUYING_TOPICS) and engagement >= TOPIC_ENGAGEMENT_THRESHOLD


# -----------------------------------------------------------------------------
# Regras de ações sugeridas: (session, config, should_capture) -> ações
# -----------------------------------------------------------------------------

ActionRule = Callable[[ChatSession, ChatbotConfig, bool], list[str]]


def _capture_flow(session: ChatSession, config: ChatbotConfig, should_capture: bool) -> list[str]:
    if not should_capture:
        return []
    return ["Request contact information", "Offer personalized follow-up"]


def _high_engagement(
    session: ChatSession, config: ChatbotConfig, should_capture: bool
) -> list[str]:
    if session.context_data.engagement_score < HIGH_ENGAGEMENT_THRESHOLD:
        return []
    return ["Offer product demo", "Share relevant case studies"]


def _long_session(session: ChatSession, config: ChatbotConfig, should_capture: bool) -> list[str]:
    if session.get_session_duration() < LONG_SESSION:
        return []
    return ["Summarize key points discussed"]


def _qualification_progress(
    session: ChatSession, config: ChatbotConfig, should_capture: bool
) -> list[str]:
    total = config.question_count
    if total == 0:
        return []
    answered = len(session.lead_qualification_state.answered_questions)
    if answered / total <= QUALIFICATION_PROGRESS_THRESHOLD:
        return []
    return ["Complete lead qualification"]


def _topic_specific(
    session: ChatSession, config: ChatbotConfig, should_capture: bool
) -> list[str]:
    topics = _topics(session)
    return [action for topic, action in TOPIC_ACTIONS if topic in topics]


ACTION_RULES: tuple[ActionRule, ...] = (
    _capture_flow,
    _high_engagement,
    _long_session,
    _qualification_progress,
    _topic_specific,
)


def generate_suggested_actions(
    session: ChatSession, config: ChatbotConfig, should_capture: bool
) -> list[str]:
    """Avalia todas as regras e concatena as ações (sem duplicatas)."""
    actions: list[str] = []
    for rule in ACTION_RULES:
        actions.extend(rule(session, config, should_capture))

    if not actions:
        return list(FALLBACK_ACTIONS)
    return list(dedupe_preserving_order(actions))
