from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest
from fastapi.testclient import TestClient

from chatbot_widget.ai.contracts import (
    ConversationFlow,
    InteractionAnalysis,
    InteractionResponse,
    TokenUsage,
    UnifiedInteractionResult,
)
from chatbot_widget.api.app import create_app
from chatbot_widget.config.settings import Settings, get_settings
from chatbot_widget.domain.chatbot_config import ChatbotConfig, LeadQualificationQuestion
from chatbot_widget.domain.enums import EngagementLevel, Sentiment
from chatbot_widget.domain.session import ChatSession

ORG_ID = "org-acme"
CONFIG_ID = "cfg-widget-1"


@pytest.fixture()
def chatbot_config() -> ChatbotConfig:
    return ChatbotConfig(
        id=CONFIG_ID,
        organization_id=ORG_ID,
        name="Acme Widget",
        lead_qualification_questions=(
            LeadQualificationQuestion(id="q1", question="Team size?"),
            LeadQualificationQuestion(id="q2", question="Budget?"),
            LeadQualificationQuestion(id="q3", question="Timeline?"),
        ),
    )


@pytest.fixture()
def session() -> ChatSession:
    return ChatSession.create(CONFIG_ID, "visitor-123")


@pytest.fixture()
def make_ai_result() -> Callable[..., UnifiedInteractionResult]:
    """Fábrica de resultados da interação unificada para stubs de IA."""

    def _make(
        content: str = "Our plans start at $49/month.",
        *,
        intent: str = "pricing_inquiry",
        confidence: float = 0.85,
        entities: dict[str, Any] | None = None,
        sentiment: Sentiment = Sentiment.NEUTRAL,
        engagement: EngagementLevel = EngagementLevel.MEDIUM,
        topics: list[str] | None = None,
    ) -> UnifiedInteractionResult:
        return UnifiedInteractionResult(
            analysis=InteractionAnalysis(
                primary_intent=intent,
                primary_confidence=confidence,
                entities=entities or {},
                sentiment=sentiment,
                topics=topics or [],
            ),
            conversation_flow=ConversationFlow(engagement_level=engagement),
            response=InteractionResponse(content=content),
            usage=TokenUsage(prompt_tokens=120, completion_tokens=30, total_tokens=150),
            model="gpt-4o-mini",
        )

    return _make


@pytest.fixture()
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        environment="development",
        log_format="text",
        session_store_backend="memory",
        openai_enabled=False,
    )


@pytest.fixture()
def client(test_settings: Settings, chatbot_config: ChatbotConfig):
    get_settings.cache_clear()
    app = create_app(test_settings)
    app.state.repositories.chatbot_configs.add(chatbot_config)
    with TestClient(app) as test_client:
        yield test_client
