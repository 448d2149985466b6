from __future__ import annotations

from chatbot_widget.ai.openai_interaction import OpenAIUnifiedInteraction
from chatbot_widget.ai.rule_based_interaction import RuleBasedInteraction
from chatbot_widget.application.factories.pipeline_factory import (
    build_ai_interaction,
    build_pipeline,
    build_use_case,
)
from chatbot_widget.application.pipeline import MessageProcessingPipeline
from chatbot_widget.application.process_chat_message import ProcessChatMessageUseCase
from chatbot_widget.application.single_flight import SessionSingleFlight
from chatbot_widget.config.settings import Settings
from chatbot_widget.infra import InMemoryKnowledgeSearch, create_repositories


def test_factory_builds_pipeline_with_explicit_dependencies(test_settings: Settings) -> None:
    pipeline = build_pipeline(
        repositories=create_repositories(test_settings),
        ai_interaction=RuleBasedInteraction(),
        knowledge_search=InMemoryKnowledgeSearch(),
        settings=test_settings,
    )

    assert isinstance(pipeline, MessageProcessingPipeline)


def test_factory_uses_defaults_when_not_provided(test_settings: Settings) -> None:
    pipeline = build_pipeline(settings=test_settings)
    assert isinstance(pipeline._ai, RuleBasedInteraction)


def test_openai_interaction_when_enabled() -> None:
    settings = Settings(_env_file=None, openai_enabled=True, openai_api_key="sk-test")
    assert isinstance(build_ai_interaction(settings), OpenAIUnifiedInteraction)


def test_use_case_single_flight_follows_settings(test_settings: Settings) -> None:
    pipeline = build_pipeline(settings=test_settings)

    enabled = build_use_case(pipeline, settings=test_settings)
    disabled = build_use_case(
        pipeline, settings=test_settings.model_copy(update={"single_flight_enabled": False})
    )

    assert isinstance(enabled, ProcessChatMessageUseCase)
    assert isinstance(enabled._single_flight, SessionSingleFlight)
    assert disabled._single_flight is None


def test_io_timeouts_come_from_settings(test_settings: Settings) -> None:
    settings = test_settings.model_copy(
        update={"repository_timeout_seconds": 2.5, "knowledge_timeout_seconds": 1.5}
    )

    pipeline = build_pipeline(settings=settings)

    assert pipeline._repository_timeout == 2.5
    assert pipeline._analyzer._knowledge_timeout == 1.5
