"""Orçamento de tokens da janela de contexto da conversa.

Invariante: system_prompt + response_reserved + summary <= max_tokens
(verificado na construção; ConfigurationError caso contrário).
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

from chatbot_widget.config.settings import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_RESPONSE_RESERVED_TOKENS,
    DEFAULT_SUMMARY_TOKENS,
    DEFAULT_SYSTEM_PROMPT_TOKENS,
)
from chatbot_widget.domain.errors import ConfigurationError
from chatbot_widget.domain.messages import ChatMessage

SUMMARIZATION_OVERSHOOT = 1.5


class TokenAllocation(BaseModel):
    """Distribuição do orçamento entre as partes do prompt."""

    model_config = ConfigDict(frozen=True)

    system_prompt: int
    conversation_summary: int
    recent_messages: int
    response_reserved: int
    total: int


class ConversationContextWindow(BaseModel):
    """Janela de contexto imutável."""

    model_config = ConfigDict(frozen=True)

    max_tokens: int = DEFAULT_MAX_TOKENS
    system_prompt_tokens: int = DEFAULT_SYSTEM_PROMPT_TOKENS
    response_reserved_tokens: int = DEFAULT_RESPONSE_RESERVED_TOKENS
    summary_tokens: int = DEFAULT_SUMMARY_TOKENS

    @model_validator(mode="after")
    def _check_budget(self) -> ConversationContextWindow:
        values = (
            self.max_tokens,
            self.system_prompt_tokens,
            self.response_reserved_tokens,
            self.summary_tokens,
        )
        if any(v < 0 for v in values):
            raise ConfigurationError(
                "Token budget values must be non-negative",
                context={"max_tokens": self.max_tokens},
            )
        if self.reserved_tokens > self.max_tokens:
            raise ConfigurationError(
                "Reserved tokens exceed max_tokens",
                context={"reserved": self.reserved_tokens, "max_tokens": self.max_tokens},
            )
        return self

    @classmethod
    def create(cls, config: dict[str, Any] | None = None) -> ConversationContextWindow:
        """Cria a janela a partir de overrides parciais (ex.: Settings)."""
        return cls(**(config or {}))

    @property
    def reserved_tokens(self) -> int:
        return self.system_prompt_tokens + self.response_reserved_tokens + self.summary_tokens

    def available_tokens_for_messages(self) -> int:
        return max(0, self.max_tokens - self.reserved_tokens)

    def get_allocation(self) -> TokenAllocation:
        return TokenAllocation(
            system_prompt=self.system_prompt_tokens,
            conversation_summary=self.summary_tokens,
            recent_messages=self.available_tokens_for_messages(),
            response_reserved=self.response_reserved_tokens,
            total=self.max_tokens,
        )

    def should_summarize(self, current_token_usage: int) -> bool:
        return current_token_usage > self.available_tokens_for_messages()

    def get_tokens_to_summarize(self, current_token_usage: int) -> float:
        """Excesso sobre o disponível com margem de 50% (sem arredondar)."""
        excess = current_token_usage - self.available_tokens_for_messages()
        return max(0.0, excess * SUMMARIZATION_OVERSHOOT)

    def select_recent_messages(self, messages: Sequence[ChatMessage]) -> list[ChatMessage]:
        """Mensagens mais recentes que cabem no orçamento, em ordem cronológica."""
        budget = self.available_tokens_for_messages()
        selected: list[ChatMessage] = []
        used = 0
        for message in reversed(messages):
            cost = message.estimated_tokens()
            if used + cost > budget:
                break
            selected.append(message)
            used += cost
        selected.reverse()
        return selected
