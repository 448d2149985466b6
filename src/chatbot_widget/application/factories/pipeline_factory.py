"""Factory para construção do pipeline e do use case.

Responsabilidades:
- Conhecer infra e settings
- Escolher a implementação de IA (OpenAI ou determinística)
- Retornar `MessageProcessingPipeline` / `ProcessChatMessageUseCase`

Não conter lógica de negócio ou chamadas a LLMs.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from chatbot_widget.application.context_analysis import ConversationContextAnalyzer
from chatbot_widget.application.knowledge_retrieval import KnowledgeRetrievalCoordinator
from chatbot_widget.application.pipeline import MessageProcessingPipeline
from chatbot_widget.application.process_chat_message import ProcessChatMessageUseCase
from chatbot_widget.application.single_flight import SessionSingleFlight
from chatbot_widget.config.settings import Settings, get_settings
from chatbot_widget.domain.context_window import ConversationContextWindow
from chatbot_widget.domain.protocols import (
    AIInteractionProtocol,
    ErrorTrackingProtocol,
    KnowledgeSearchProtocol,
)
from chatbot_widget.observability.logging import get_logger

if TYPE_CHECKING:
    from chatbot_widget.infra import Repositories

logger = get_logger(__name__)


def build_ai_interaction(settings: Settings) -> AIInteractionProtocol:
    """OpenAI quando habilitado; caso contrário, interação determinística."""
    if settings.openai_enabled:
        from chatbot_widget.ai.openai_interaction import OpenAIUnifiedInteraction

        logger.debug(
            "factory: using OpenAIUnifiedInteraction", extra={"model": settings.openai_model}
        )
        return OpenAIUnifiedInteraction.from_settings(settings)

    from chatbot_widget.ai.rule_based_interaction import RuleBasedInteraction

    logger.debug("factory: using RuleBasedInteraction (openai disabled)")
    return RuleBasedInteraction()


def build_pipeline(
    *,
    repositories: Repositories | None = None,
    ai_interaction: AIInteractionProtocol | None = None,
    knowledge_search: KnowledgeSearchProtocol | None = None,
    settings: Settings | None = None,
) -> MessageProcessingPipeline:
    """Constrói `MessageProcessingPipeline` usando infra/settings.

    Parâmetros explícitos têm prioridade; quando ausentes, a função resolve
    via `get_settings()` e as factories de infra.
    """
    settings = settings or get_settings()

    if repositories is None:
        # Import infra factories apenas aqui
        from chatbot_widget.infra import create_repositories

        repositories = create_repositories(settings)

    if ai_interaction is None:
        ai_interaction = build_ai_interaction(settings)

    knowledge = KnowledgeRetrievalCoordinator(
        knowledge_search if settings.knowledge_enabled else None,
        max_results=settings.knowledge_max_results,
        min_relevance_score=settings.knowledge_min_relevance_score,
    )
    analyzer = ConversationContextAnalyzer(
        ConversationContextWindow.create(settings.context_window_config()),
        knowledge,
        knowledge_timeout_seconds=settings.knowledge_timeout_seconds,
    )

    return MessageProcessingPipeline(
        session_repository=repositories.sessions,
        message_repository=repositories.messages,
        chatbot_config_repository=repositories.chatbot_configs,
        ai_interaction=ai_interaction,
        context_analyzer=analyzer,
        ai_timeout_seconds=settings.openai_timeout_seconds,
        repository_timeout_seconds=settings.repository_timeout_seconds,
    )


def build_use_case(
    pipeline: MessageProcessingPipeline,
    *,
    error_tracking: ErrorTrackingProtocol | None = None,
    settings: Settings | None = None,
) -> ProcessChatMessageUseCase:
    """Envolve o pipeline com tracking e single-flight conforme settings."""
    settings = settings or get_settings()

    if error_tracking is None:
        from chatbot_widget.infra import LoggingErrorTracker

        error_tracking = LoggingErrorTracker()

    single_flight = SessionSingleFlight() if settings.single_flight_enabled else None

    return ProcessChatMessageUseCase(
        pipeline,
        error_tracking,
        single_flight,
        truncate_chars=settings.error_message_truncate_chars,
    )
