"""Atualização imutável do contexto da sessão após a interação com o modelo.

Aplica, nesta ordem: atividade, entidades acumuladas, tópicos/interesses,
engagement score e jornada (com o sinal de sumarização quando o
histórico excede o orçamento de tokens).
"""

from __future__ import annotations

from collections.abc import Mapping

from chatbot_widget.ai.contracts import UnifiedInteractionResult
from chatbot_widget.application.context_analysis import UNKNOWN_INTENT, EnhancedContext
from chatbot_widget.domain.enums import EngagementLevel, Sentiment
from chatbot_widget.domain.session import AccumulatedEntity, ChatSession, JourneyState
from chatbot_widget.domain.session.models import INTENT_HISTORY_LIMIT, clamp_engagement

BASE_ENGAGEMENT = 50

_LEVEL_DELTA: dict[EngagementLevel, int] = {
    EngagementLevel.HIGH: 30,
    EngagementLevel.MEDIUM: 15,
    EngagementLevel.LOW: -10,
}
_SENTIMENT_DELTA: dict[Sentiment, int] = {
    Sentiment.POSITIVE: 20,
    Sentiment.NEUTRAL: 0,
    Sentiment.NEGATIVE: -15,
}


def calculate_engagement_score(
    level: EngagementLevel, sentiment: Sentiment, topic_count: int, interest_count: int
) -> int:
    """Score de engajamento do turno (0-100)."""
    score = BASE_ENGAGEMENT + _LEVEL_DELTA[level] + _SENTIMENT_DELTA[sentiment]
    score += min(15, topic_count * 3)
    score += min(10, interest_count * 2)
    return clamp_engagement(score)


class SessionContextUpdater:
    """Deriva o próximo snapshot da sessão a partir do resultado do turno."""

    def apply(
        self,
        session: ChatSession,
        ai_result: UnifiedInteractionResult,
        enhanced_context: EnhancedContext,
        accumulated_entities: Mapping[str, AccumulatedEntity],
    ) -> ChatSession:
        analysis = ai_result.analysis
        flow = ai_result.conversation_flow

        updated = session.update_activity().with_accumulated_entities(dict(accumulated_entities))

        for topic in [*enhanced_context.detected_topics, *analysis.topics]:
            updated = updated.add_topic(topic.lower())
        for interest in analysis.interests:
            updated = updated.add_interest(interest)

        updated = updated.update_engagement_score(
            calculate_engagement_score(
                flow.engagement_level,
                analysis.sentiment,
                len(updated.context_data.topics),
                len(updated.context_data.interests),
            )
        )

        intent = (
            analysis.primary_intent
            if analysis.primary_intent != UNKNOWN_INTENT
            else enhanced_context.intent
        )
        history = session.context_data.journey.intent_history
        updated = updated.update_journey(
            JourneyState(
                phase=flow.current_phase,
                engagement_level=flow.engagement_level,
                last_intent=intent,
                intent_history=(*history, intent)[-INTENT_HISTORY_LIMIT:],
                should_escalate_to_human=flow.should_escalate_to_human,
                needs_summarization=enhanced_context.needs_summarization,
            )
        )
        return updated
