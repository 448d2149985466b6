"""Prompts e formatação para a interação unificada.

Responsabilidades:
- System prompt com personalidade do chatbot e contexto acumulado
- Histórico recente no formato de mensagens da OpenAI
- Instruções de saída JSON estruturada
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from chatbot_widget.domain.chatbot_config import ChatbotConfig
from chatbot_widget.domain.messages import ChatMessage
from chatbot_widget.domain.session import ChatSession

_OUTPUT_SCHEMA: dict[str, Any] = {
    "analysis": {
        "primary_intent": "string (greeting, pricing_inquiry, demo_request, ...)",
        "primary_confidence": "number 0..1",
        "entities": {"<entity_name>": {"value": "any", "confidence": "number 0..1"}},
        "sentiment": "positive | neutral | negative",
        "emotional_tone": "string",
        "topics": ["string"],
        "interests": ["string"],
    },
    "conversation_flow": {
        "current_phase": "discovery | qualification | demonstration | closing",
        "engagement_level": "low | medium | high",
        "lead_capture_readiness": "boolean",
        "should_escalate_to_human": "boolean",
        "should_ask_qualification_questions": "boolean",
        "next_best_action": "string | null",
    },
    "response": {
        "content": "string (reply shown to the visitor)",
        "tone": "string",
        "call_to_action": "string | null",
    },
}


def build_system_prompt(
    chatbot_config: ChatbotConfig,
    session: ChatSession,
    *,
    entity_context: str = "",
    knowledge_context: str = "",
) -> str:
    """Monta o system prompt da interação unificada."""
    summary = session.context_data.conversation_summary.full_summary
    parts = [
        f"You are {chatbot_config.name}, a website assistant.",
        f"Tone: {chatbot_config.personality.tone}. "
        f"Response length: {chatbot_config.personality.response_length}.",
    ]
    if summary:
        parts.append(f"CONVERSATION SUMMARY:\n{summary}")
    if entity_context:
        parts.append(entity_context)
    if knowledge_context:
        parts.append(f"RELEVANT KNOWLEDGE:\n{knowledge_context}")
    parts.append(
        "Analyze the visitor message and reply. Return ONLY valid JSON with this "
        f"structure: {json.dumps(_OUTPUT_SCHEMA)}"
    )
    return "\n\n".join(parts)


def format_history(messages: Sequence[ChatMessage]) -> list[dict[str, str]]:
    """Converte o histórico para roles da API (user/assistant)."""
    formatted: list[dict[str, str]] = []
    for message in messages:
        if message.is_from_user:
            formatted.append({"role": "user", "content": message.content})
        elif message.is_from_bot:
            formatted.append({"role": "assistant", "content": message.content})
    return formatted


def build_messages(
    user_message: str,
    message_history: Sequence[ChatMessage],
    system_prompt: str,
) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": system_prompt},
        *format_history(message_history),
        {"role": "user", "content": user_message},
    ]
