"""Adapter OpenAI para a interação unificada.

Uma chamada chat.completions em modo JSON retorna análise, fluxo e resposta.
Falhas são fatais para o turno (sem fallback):
- APITimeoutError → AIInteractionTimeoutError
- APIError / JSON inválido → UpstreamCapabilityError
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence

from openai import APIError, APITimeoutError, AsyncOpenAI
from pydantic import ValidationError as PydanticValidationError

from chatbot_widget.ai import prompts
from chatbot_widget.ai.contracts import TokenUsage, UnifiedInteractionResult
from chatbot_widget.config.settings import Settings
from chatbot_widget.domain.chatbot_config import ChatbotConfig
from chatbot_widget.domain.errors import AIInteractionTimeoutError, UpstreamCapabilityError
from chatbot_widget.domain.messages import ChatMessage
from chatbot_widget.domain.protocols import AIInteractionProtocol
from chatbot_widget.domain.session import ChatSession
from chatbot_widget.observability.logging import get_logger, short_id

logger: logging.Logger = get_logger(__name__)

CAPABILITY = "ai_interaction"


class OpenAIUnifiedInteraction(AIInteractionProtocol):
    """Implementação de AIInteractionProtocol sobre AsyncOpenAI."""

    def __init__(
        self,
        client: AsyncOpenAI,
        *,
        model: str = "gpt-4o-mini",
        timeout_seconds: float = 20.0,
        temperature: float = 0.3,
        max_tokens: int = 800,
    ) -> None:
        self._client = client
        self._model = model
        self._timeout = timeout_seconds
        self._temperature = temperature
        self._max_tokens = max_tokens

    @classmethod
    def from_settings(cls, settings: Settings) -> OpenAIUnifiedInteraction:
        return cls(
            AsyncOpenAI(api_key=settings.openai_api_key, max_retries=0),
            model=settings.openai_model,
            timeout_seconds=settings.openai_timeout_seconds,
            temperature=settings.openai_temperature,
            max_tokens=settings.openai_max_response_tokens,
        )

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
        system_prompt = prompts.build_system_prompt(
            chatbot_config,
            session,
            entity_context=entity_context,
            knowledge_context=knowledge_context,
        )
        messages = prompts.build_messages(user_message, message_history, system_prompt)

        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
                response_format={"type": "json_object"},
                timeout=self._timeout,
            )
        except APITimeoutError as e:
            logger.warning(
                "AI interaction timed out",
                extra={"session_id": short_id(session.id), "timeout_seconds": self._timeout},
            )
            raise AIInteractionTimeoutError(self._timeout) from e
        except APIError as e:
            logger.warning(
                "AI provider request failed",
                extra={"session_id": short_id(session.id), "error_type": type(e).__name__},
            )
            raise UpstreamCapabilityError(
                CAPABILITY, "AI provider request failed", context={"error_type": type(e).__name__}
            ) from e

        content = response.choices[0].message.content or ""
        result = self._parse(content)

        usage = getattr(response, "usage", None)
        if usage is not None:
            result = result.model_copy(
                update={
                    "usage": TokenUsage(
                        prompt_tokens=usage.prompt_tokens or 0,
                        completion_tokens=usage.completion_tokens or 0,
                        total_tokens=usage.total_tokens or 0,
                    )
                }
            )
        result = result.model_copy(update={"model": getattr(response, "model", self._model)})

        logger.info(
            "AI interaction completed",
            extra={
                "session_id": short_id(session.id),
                "intent": result.analysis.primary_intent,
                "confidence": round(result.analysis.primary_confidence, 3),
                "total_tokens": result.usage.total_tokens,
            },
        )
        return result

    @staticmethod
    def _parse(content: str) -> UnifiedInteractionResult:
        """Valida o JSON retornado pelo modelo contra o contrato."""
        try:
            return UnifiedInteractionResult.model_validate(json.loads(content))
        except (json.JSONDecodeError, PydanticValidationError) as e:
            logger.warning(
                "AI provider returned an invalid payload",
                extra={"error_type": type(e).__name__},
            )
            raise UpstreamCapabilityError(
                CAPABILITY, "AI provider returned an invalid payload"
            ) from e
