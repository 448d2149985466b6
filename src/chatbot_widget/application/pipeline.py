"""Pipeline de processamento de uma mensagem do visitante.

Estágios (estritamente ordenados):
1. Validação do request (falha rápida, zero side effects)
2. Carrega sessão e configuração do chatbot
3. Histórico, janela recente e análise de contexto (conhecimento degradável)
4. Chamada unificada ao modelo (falha é fatal para o turno)
5. Merge de entidades (turn_index = mensagens anteriores do visitante + 1)
6. Atualização imutável do contexto
7. Decisão de captura de lead e ações sugeridas
8. Persistência (única fonte de durabilidade) e montagem do resultado

Falhas nos estágios 1-7 não alteram o estado persistido. Sem retries.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable
from typing import TypeVar

from chatbot_widget.ai.contracts import UnifiedInteractionResult
from chatbot_widget.application.context_analysis import (
    ConversationContextAnalyzer,
    EnhancedContext,
)
from chatbot_widget.application.context_update import SessionContextUpdater
from chatbot_widget.application.dto import (
    ConversationMetrics,
    ProcessMessageRequest,
    ProcessMessageResult,
)
from chatbot_widget.application.persistence import repository_call
from chatbot_widget.domain import entity_accumulator, lead_capture
from chatbot_widget.domain.chatbot_config import ChatbotConfig
from chatbot_widget.domain.errors import (
    AIInteractionTimeoutError,
    ChatbotWidgetError,
    NotFoundError,
    UpstreamCapabilityError,
    ValidationError,
)
from chatbot_widget.domain.messages import ChatMessage
from chatbot_widget.domain.protocols import (
    AIInteractionProtocol,
    ChatbotConfigRepositoryProtocol,
    MessageRepositoryProtocol,
    SessionRepositoryProtocol,
)
from chatbot_widget.domain.session import ChatSession
from chatbot_widget.observability.logging import get_logger, short_id
from chatbot_widget.observability.timing import elapsed_ms_since, timed

logger: logging.Logger = get_logger(__name__)

T = TypeVar("T")

AI_INTERACTION = "ai_interaction"


def validate_request(request: ProcessMessageRequest) -> None:
    """Estágio 1: campos obrigatórios não vazios (após strip)."""
    for field in ("organization_id", "session_id", "user_message"):
        value = getattr(request, field)
        if value is None or not value.strip():
            raise ValidationError(f"{field} is required", field=field)


class MessageProcessingPipeline:
    """Orquestra os 8 estágios de um turno."""

    def __init__(
        self,
        *,
        session_repository: SessionRepositoryProtocol,
        message_repository: MessageRepositoryProtocol,
        chatbot_config_repository: ChatbotConfigRepositoryProtocol,
        ai_interaction: AIInteractionProtocol,
        context_analyzer: ConversationContextAnalyzer,
        context_updater: SessionContextUpdater | None = None,
        ai_timeout_seconds: float | None = None,
        repository_timeout_seconds: float | None = None,
    ) -> None:
        self._sessions = session_repository
        self._messages = message_repository
        self._configs = chatbot_config_repository
        self._ai = ai_interaction
        self._analyzer = context_analyzer
        self._updater = context_updater or SessionContextUpdater()
        self._ai_timeout = ai_timeout_seconds
        self._repository_timeout = repository_timeout_seconds

    async def run(self, request: ProcessMessageRequest) -> ProcessMessageResult:
        start = time.perf_counter()

        # 1. Validação
        validate_request(request)
        sid = short_id(request.session_id)

        # 2. Sessão e configuração
        with timed("load_session", session_id=sid):
            session, config = await self._load(request)

        # 3. Histórico + análise de contexto
        with timed("context_analysis", session_id=sid):
            history = await self._repository_call(
                "find_messages", self._messages.find_by_session_id(session.id)
            )
            enhanced = await self._analyzer.analyze(session, history, request.user_message)

        # 4. Interação unificada
        with timed("ai_interaction", session_id=sid):
            ai_result = await self._interact(request.user_message, session, config, enhanced)

        # 5. Entidades
        turn_index = sum(1 for m in history if m.is_from_user) + 1
        merged = entity_accumulator.merge(
            session.context_data.accumulated_entities,
            ai_result.analysis.entities,
            turn_index,
        )

        # 6. Contexto
        updated = self._updater.apply(session, ai_result, enhanced, merged)

        # 7. Lead capture
        should_capture = lead_capture.should_trigger_lead_capture(updated, config)
        actions = lead_capture.generate_suggested_actions(updated, config, should_capture)

        # 8. Persistência
        processing_ms = elapsed_ms_since(start)
        user_message = ChatMessage.create_user_message(
            session.id,
            request.user_message,
            metadata={**request.metadata, "turn_index": turn_index},
        )
        bot_message = ChatMessage.create_bot_message(
            session.id,
            ai_result.response.content,
            processing_time_ms=int(processing_ms),
            metadata={
                "intent": ai_result.analysis.primary_intent,
                "confidence": ai_result.analysis.primary_confidence,
                "sentiment": ai_result.analysis.sentiment.value,
                "model": ai_result.model,
                "total_tokens": ai_result.usage.total_tokens,
                "call_to_action": ai_result.response.call_to_action,
            },
        )
        with timed("persist_turn", session_id=sid):
            # Sessão primeiro: falha no update não deixa mensagens órfãs
            saved = await self._repository_call("update_session", self._sessions.update(updated))
            await self._repository_call("save_user_message", self._messages.save(user_message))
            await self._repository_call("save_bot_message", self._messages.save(bot_message))

        metrics = ConversationMetrics(
            message_count=len(history) + 2,
            session_duration_seconds=saved.get_session_duration().total_seconds(),
            engagement_score=saved.context_data.engagement_score,
            lead_qualification_progress=self._qualification_progress(saved, config),
            processing_time_ms=elapsed_ms_since(start),
            total_tokens=ai_result.usage.total_tokens,
        )

        logger.info(
            "Message processed",
            extra={
                "session_id": sid,
                "turn_index": turn_index,
                "intent": ai_result.analysis.primary_intent,
                "should_capture_lead": should_capture,
                "engagement_score": metrics.engagement_score,
                "knowledge_items": len(enhanced.relevant_knowledge),
                "knowledge_degraded": enhanced.knowledge_degraded,
                "elapsed_ms": metrics.processing_time_ms,
            },
        )

        return ProcessMessageResult(
            session=saved,
            user_message=user_message,
            bot_message=bot_message,
            enhanced_context=enhanced,
            should_capture_lead_info=should_capture,
            suggested_next_actions=actions,
            conversation_metrics=metrics,
        )

    async def _repository_call(self, operation: str, call: Awaitable[T]) -> T:
        return await repository_call(operation, call, timeout=self._repository_timeout)

    async def _load(self, request: ProcessMessageRequest) -> tuple[ChatSession, ChatbotConfig]:
        session = await self._repository_call(
            "find_session", self._sessions.find_by_id(request.session_id)
        )
        if session is None:
            raise NotFoundError("ChatSession", request.session_id)

        config = await self._repository_call(
            "find_chatbot_config", self._configs.find_by_id(session.chatbot_config_id)
        )
        if config is None:
            raise NotFoundError("ChatbotConfig", session.chatbot_config_id)

        # Sessão de outra organização é tratada como inexistente
        if config.organization_id != request.organization_id:
            logger.warning(
                "Session belongs to another organization",
                extra={"session_id": short_id(session.id)},
            )
            raise NotFoundError("ChatSession", request.session_id)

        return session, config

    async def _interact(
        self,
        user_message: str,
        session: ChatSession,
        config: ChatbotConfig,
        enhanced: EnhancedContext,
    ) -> UnifiedInteractionResult:
        try:
            call = self._ai.process(
                user_message,
                message_history=enhanced.recent_messages,
                session=session,
                chatbot_config=config,
                entity_context=enhanced.entity_context,
                knowledge_context=enhanced.knowledge_context,
            )
            if self._ai_timeout:
                return await asyncio.wait_for(call, timeout=self._ai_timeout)
            return await call
        except TimeoutError as e:
            raise AIInteractionTimeoutError(self._ai_timeout) from e
        except ChatbotWidgetError:
            raise
        except Exception as e:
            raise UpstreamCapabilityError(
                AI_INTERACTION,
                "AI interaction failed",
                context={"error_type": type(e).__name__},
            ) from e

    @staticmethod
    def _qualification_progress(session: ChatSession, config: ChatbotConfig) -> float:
        total = config.question_count
        if total == 0:
            return 0.0
        answered = len(session.lead_qualification_state.answered_questions)
        return min(1.0, answered / total)
