"""Testes dos adapters de interação unificada (OpenAI mockado e determinístico)."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from openai import APIConnectionError, APITimeoutError

from chatbot_widget.ai.openai_interaction import OpenAIUnifiedInteraction
from chatbot_widget.ai.prompts import build_messages, build_system_prompt
from chatbot_widget.ai.rule_based_interaction import RuleBasedInteraction
from chatbot_widget.domain.enums import EngagementLevel, Sentiment
from chatbot_widget.domain.errors import AIInteractionTimeoutError, UpstreamCapabilityError
from chatbot_widget.domain.messages import ChatMessage

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")

_PAYLOAD = {
    "analysis": {
        "primary_intent": "pricing_inquiry",
        "primary_confidence": 0.92,
        "entities": {"budget": {"value": "$50k", "confidence": 0.7}, "company": "Acme"},
        "sentiment": "positive",
        "topics": ["pricing"],
    },
    "conversation_flow": {"current_phase": "qualification", "engagement_level": "high"},
    "response": {"content": "Our pro plan is $49/month.", "call_to_action": "Start a trial"},
}


def _completion(content: str) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    response.usage.prompt_tokens = 300
    response.usage.completion_tokens = 60
    response.usage.total_tokens = 360
    response.model = "gpt-4o-mini-2024-07-18"
    return response


def _adapter(client: MagicMock) -> OpenAIUnifiedInteraction:
    return OpenAIUnifiedInteraction(client, model="gpt-4o-mini", timeout_seconds=5.0)


def _client(**create_kwargs) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create = AsyncMock(**create_kwargs)
    return client


class TestOpenAIUnifiedInteraction:
    @pytest.mark.asyncio
    async def test_parses_json_into_contract(self, session, chatbot_config):
        client = _client(return_value=_completion(json.dumps(_PAYLOAD)))

        result = await _adapter(client).process(
            "How much?", message_history=[], session=session, chatbot_config=chatbot_config
        )

        assert result.analysis.primary_intent == "pricing_inquiry"
        assert result.analysis.sentiment == Sentiment.POSITIVE
        assert result.analysis.entities["budget"].confidence == 0.7
        assert result.analysis.entities["company"].value == "Acme"
        assert result.conversation_flow.engagement_level == EngagementLevel.HIGH
        assert result.response.call_to_action == "Start a trial"
        assert result.usage.total_tokens == 360
        assert result.model == "gpt-4o-mini-2024-07-18"

    @pytest.mark.asyncio
    async def test_request_uses_json_mode_and_history(self, session, chatbot_config):
        client = _client(return_value=_completion(json.dumps(_PAYLOAD)))
        history = [
            ChatMessage.create_user_message(session.id, "hi"),
            ChatMessage.create_bot_message(session.id, "hello!"),
        ]

        await _adapter(client).process(
            "How much?",
            message_history=history,
            session=session,
            chatbot_config=chatbot_config,
            knowledge_context="- Pricing: $49/month",
        )

        kwargs = client.chat.completions.create.await_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["timeout"] == 5.0
        roles = [m["role"] for m in kwargs["messages"]]
        assert roles == ["system", "user", "assistant", "user"]
        assert "RELEVANT KNOWLEDGE" in kwargs["messages"][0]["content"]

    @pytest.mark.asyncio
    async def test_timeout_is_classified(self, session, chatbot_config):
        client = _client(side_effect=APITimeoutError(request=_REQUEST))

        with pytest.raises(AIInteractionTimeoutError):
            await _adapter(client).process(
                "hi", message_history=[], session=session, chatbot_config=chatbot_config
            )

    @pytest.mark.asyncio
    async def test_api_error_is_upstream_failure(self, session, chatbot_config):
        client = _client(side_effect=APIConnectionError(request=_REQUEST))

        with pytest.raises(UpstreamCapabilityError) as exc_info:
            await _adapter(client).process(
                "hi", message_history=[], session=session, chatbot_config=chatbot_config
            )
        assert not isinstance(exc_info.value, AIInteractionTimeoutError)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["not json", json.dumps({"analysis": {}}), ""])
    async def test_invalid_payload(self, session, chatbot_config, content):
        client = _client(return_value=_completion(content))

        with pytest.raises(UpstreamCapabilityError):
            await _adapter(client).process(
                "hi", message_history=[], session=session, chatbot_config=chatbot_config
            )


class TestPrompts:
    def test_system_prompt_includes_context_blocks(self, session, chatbot_config):
        summarized = session.update_conversation_summary("Visitor compares plans")

        prompt = build_system_prompt(
            chatbot_config, summarized, entity_context="ACCUMULATED CONVERSATION CONTEXT:\n"
        )

        assert chatbot_config.name in prompt
        assert "CONVERSATION SUMMARY:\nVisitor compares plans" in prompt
        assert "ACCUMULATED CONVERSATION CONTEXT" in prompt
        assert "RELEVANT KNOWLEDGE" not in prompt

    def test_build_messages_appends_current_message(self):
        messages = build_messages("current", [], "system")
        assert messages == [
            {"role": "system", "content": "system"},
            {"role": "user", "content": "current"},
        ]


class TestRuleBasedInteraction:
    @pytest.mark.asyncio
    async def test_extracts_contact_and_answers(self, session, chatbot_config):
        result = await RuleBasedInteraction().process(
            "Please contact me at ana@acme.test",
            message_history=[],
            session=session,
            chatbot_config=chatbot_config,
        )

        assert result.analysis.primary_intent == "contact_request"
        assert result.analysis.entities["email"].value == "ana@acme.test"
        assert result.conversation_flow.lead_capture_readiness is True
        assert result.response.content
        assert result.model == "rule-based"

    @pytest.mark.asyncio
    async def test_unknown_message_gets_default_reply(self, session, chatbot_config):
        result = await RuleBasedInteraction().process(
            "blue skies", message_history=[], session=session, chatbot_config=chatbot_config
        )

        assert result.analysis.primary_intent == "unknown"
        assert result.analysis.entities == {}
        assert result.conversation_flow.engagement_level == EngagementLevel.LOW
