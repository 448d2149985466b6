"""Mensagens persistidas da conversa (visitante, bot, sistema)."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from chatbot_widget.domain.enums import MessageType
from chatbot_widget.domain.session.models import utcnow
from chatbot_widget.utils.ids import new_id

CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Estimativa de tokens: ceil(len / 4)."""
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


class ChatMessage(BaseModel):
    """Mensagem de uma sessão."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    session_id: str
    message_type: MessageType
    content: str
    timestamp: datetime = Field(default_factory=utcnow)
    metadata: dict[str, Any] = Field(default_factory=dict)
    is_visible: bool = True
    processing_time_ms: int | None = None

    @classmethod
    def create_user_message(
        cls, session_id: str, content: str, metadata: dict[str, Any] | None = None
    ) -> ChatMessage:
        return cls(
            session_id=session_id,
            message_type=MessageType.USER,
            content=content,
            metadata=dict(metadata or {}),
        )

    @classmethod
    def create_bot_message(
        cls,
        session_id: str,
        content: str,
        processing_time_ms: int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> ChatMessage:
        return cls(
            session_id=session_id,
            message_type=MessageType.BOT,
            content=content,
            processing_time_ms=processing_time_ms,
            metadata=dict(metadata or {}),
        )

    @property
    def is_from_user(self) -> bool:
        return self.message_type == MessageType.USER

    @property
    def is_from_bot(self) -> bool:
        return self.message_type == MessageType.BOT

    def estimated_tokens(self) -> int:
        return estimate_tokens(self.content)
