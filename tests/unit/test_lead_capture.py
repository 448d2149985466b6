"""Testes da decisão de captura de lead e das ações sugeridas."""

from __future__ import annotations

from datetime import timedelta

import pytest

from chatbot_widget.domain.lead_capture import (
    FALLBACK_ACTIONS,
    generate_suggested_actions,
    should_trigger_lead_capture,
)
from chatbot_widget.domain.session import AccumulatedEntity
from chatbot_widget.domain.session.models import utcnow


def _with_contact(session, name="email", value="ana@acme.test"):
    return session.with_accumulated_entities(
        {name: AccumulatedEntity(value=value, confidence=0.9, source_turns=(1,))}
    )


def _started_minutes_ago(session, minutes):
    return session.model_copy(update={"started_at": utcnow() - timedelta(minutes=minutes)})


class TestShouldTriggerLeadCapture:
    @pytest.mark.parametrize("name", ["visitor_name", "email", "phone"])
    def test_contact_info_always_blocks(self, session, chatbot_config, name):
        """Com contato capturado nunca dispara, mesmo com todos os outros sinais."""
        hot = _started_minutes_ago(
            session.update_engagement_score(100).add_topic("pricing"), 30
        )
        assert should_trigger_lead_capture(_with_contact(hot, name, "x"), chatbot_config) is False

    def test_qualification_in_progress_blocks(self, session, chatbot_config):
        hot = session.update_engagement_score(95).start_lead_qualification()
        assert should_trigger_lead_capture(hot, chatbot_config) is False

    def test_high_engagement_triggers(self, session, chatbot_config):
        assert should_trigger_lead_capture(session.update_engagement_score(70), chatbot_config)

    def test_long_session_triggers(self, session, chatbot_config):
        assert should_trigger_lead_capture(_started_minutes_ago(session, 6), chatbot_config)

    def test_buying_topic_needs_engagement(self, session, chatbot_config):
        with_topic = session.add_topic("Pricing")

        assert should_trigger_lead_capture(with_topic, chatbot_config) is False
        assert should_trigger_lead_capture(
            with_topic.update_engagement_score(50), chatbot_config
        )

    def test_cold_session_does_not_trigger(self, session, chatbot_config):
        assert should_trigger_lead_capture(session, chatbot_config) is False


class TestSuggestedActions:
    def test_fallback_when_no_rule_fires(self, session, chatbot_config):
        actions = generate_suggested_actions(session, chatbot_config, False)
        assert actions == list(FALLBACK_ACTIONS)

    def test_rules_are_cumulative_and_deduplicated(self, session, chatbot_config):
        hot = _started_minutes_ago(
            session.update_engagement_score(90).add_topic("pricing").add_topic("demo"), 10
        )

        actions = generate_suggested_actions(hot, chatbot_config, True)

        assert actions == [
            "Request contact information",
            "Offer personalized follow-up",
            "Offer product demo",
            "Share relevant case studies",
            "Summarize key points discussed",
            "Provide pricing information",
            "Schedule a product demo",
        ]
        assert len(actions) == len(set(actions))

    def test_qualification_progress_above_half(self, session, chatbot_config):
        answered = (
            session.start_lead_qualification()
            .answer_qualification_question("q1", "Team size?", "10")
            .answer_qualification_question("q2", "Budget?", "$50k")
        )
        actions = generate_suggested_actions(answered, chatbot_config, False)
        assert actions == ["Complete lead qualification"]

    def test_support_topic(self, session, chatbot_config):
        actions = generate_suggested_actions(session.add_topic("support"), chatbot_config, False)
        assert actions == ["Connect with support team"]
