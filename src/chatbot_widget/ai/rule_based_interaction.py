"""Interação determinística (sem LLM) para dev/local e OPENAI_ENABLED=false.

Classifica intenção por palavras-chave, extrai e-mail/telefone por regex e
responde com textos fixos por intenção. Nunca chama rede.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from chatbot_widget.ai.contracts import (
    ConversationFlow,
    InteractionAnalysis,
    InteractionResponse,
    UnifiedInteractionResult,
)
from chatbot_widget.application.context_analysis import classify_intent, detect_topics
from chatbot_widget.domain.chatbot_config import ChatbotConfig
from chatbot_widget.domain.entity_accumulator import ExtractedEntity
from chatbot_widget.domain.enums import EngagementLevel
from chatbot_widget.domain.messages import ChatMessage
from chatbot_widget.domain.protocols import AIInteractionProtocol
from chatbot_widget.domain.session import ChatSession
from chatbot_widget.observability.logging import get_logger, short_id

logger: logging.Logger = get_logger(__name__)

MODEL_NAME = "rule-based"

EMAIL_PATTERN = re.compile(r"[\w.+-]+@[\w-]+\.[\w.-]+")
PHONE_PATTERN = re.compile(r"\+?\d[\d\s().-]{7,}\d")

REPLIES: dict[str, str] = {
    "pricing_inquiry": "Happy to help with pricing. Could you tell me about your team size?",
    "demo_request": "I can set up a demo for you. What is the best email to reach you?",
    "support_request": "Sorry to hear that. Can you describe the problem in a bit more detail?",
    "feature_inquiry": "Good question. Which integration or feature matters most to you?",
    "contact_request": "Sure, our team can reach out. What is your email or phone number?",
    "greeting": "Hi there! How can I help you today?",
}
DEFAULT_REPLY = "Thanks for your message. Could you tell me a bit more about what you need?"


def extract_contact_entities(text: str) -> dict[str, ExtractedEntity]:
    entities: dict[str, ExtractedEntity] = {}
    if match := EMAIL_PATTERN.search(text):
        entities["email"] = ExtractedEntity(value=match.group(0), confidence=0.95)
    if match := PHONE_PATTERN.search(text):
        entities["phone"] = ExtractedEntity(value=match.group(0).strip(), confidence=0.7)
    return entities


def engagement_for(history_size: int) -> EngagementLevel:
    if history_size >= 8:
        return EngagementLevel.HIGH
    if history_size >= 3:
        return EngagementLevel.MEDIUM
    return EngagementLevel.LOW


class RuleBasedInteraction(AIInteractionProtocol):
    """Implementação determinística de AIInteractionProtocol."""

    async def process(
        self,
        user_message: str,
        *,
        message_history: Sequence[ChatMessage],
        session: ChatSession,
        chatbot_config: ChatbotConfig,
        entity_context: str = "",
        knowledge_context: str = "",
    ) -> UnifiedInteractionResult:
        intent, confidence = classify_intent(user_message)
        topics = detect_topics(user_message)
        entities = extract_contact_entities(user_message)

        logger.debug(
            "Rule-based interaction classified message",
            extra={
                "session_id": short_id(session.id),
                "intent": intent,
                "entities": sorted(entities),
            },
        )

        return UnifiedInteractionResult(
            analysis=InteractionAnalysis(
                primary_intent=intent,
                primary_confidence=confidence,
                entities=entities,
                topics=topics,
            ),
            conversation_flow=ConversationFlow(
                engagement_level=engagement_for(len(message_history)),
                lead_capture_readiness=intent in {"demo_request", "contact_request"},
            ),
            response=InteractionResponse(content=REPLIES.get(intent, DEFAULT_REPLY)),
            model=MODEL_NAME,
        )
