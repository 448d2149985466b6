"""Testes das factories de infra, busca em memória e tracker de erros."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock

import pytest

from chatbot_widget.ai.contracts import KnowledgeItem, KnowledgeSearchRequest
from chatbot_widget.config.settings import Settings
from chatbot_widget.domain.errors import ConfigurationError
from chatbot_widget.infra import (
    InMemoryKnowledgeSearch,
    InMemorySessionRepository,
    LoggingErrorTracker,
    RedisSessionRepository,
    create_repositories,
)


class TestCreateRepositories:
    def test_memory_backend(self):
        repositories = create_repositories(Settings(_env_file=None))
        assert isinstance(repositories.sessions, InMemorySessionRepository)

    def test_redis_backend_with_client(self):
        settings = Settings(_env_file=None, session_store_backend="redis", session_ttl_seconds=60)

        repositories = create_repositories(settings, redis_client=MagicMock())

        assert isinstance(repositories.sessions, RedisSessionRepository)

    def test_redis_backend_without_url(self):
        with pytest.raises(ConfigurationError):
            create_repositories(Settings(_env_file=None, session_store_backend="redis"))

    def test_unknown_backend(self):
        with pytest.raises(ConfigurationError):
            create_repositories(Settings(_env_file=None, session_store_backend="firestore"))


class TestInMemoryKnowledgeSearch:
    @pytest.fixture()
    def search(self) -> InMemoryKnowledgeSearch:
        return InMemoryKnowledgeSearch(
            [
                KnowledgeItem(
                    id="kb-1",
                    title="Pricing plans",
                    content="The pro plan costs 49 dollars per month",
                    category="billing",
                    tags=["pricing"],
                ),
                KnowledgeItem(
                    id="kb-2",
                    title="Salesforce integration",
                    content="Sync contacts with Salesforce",
                    category="product",
                ),
            ]
        )

    @pytest.mark.asyncio
    async def test_ranks_by_term_overlap(self, search):
        result = await search.search(
            KnowledgeSearchRequest(query="pro plan pricing", min_relevance_score=0.3)
        )

        assert [i.id for i in result.items] == ["kb-1"]
        assert result.items[0].relevance_score == 1.0
        assert result.total_found == 1

    @pytest.mark.asyncio
    async def test_category_filter(self, search):
        result = await search.search(
            KnowledgeSearchRequest(
                query="salesforce pricing", categories=["billing"], min_relevance_score=0.1
            )
        )
        assert [i.id for i in result.items] == ["kb-1"]

    @pytest.mark.asyncio
    async def test_no_match(self, search):
        result = await search.search(KnowledgeSearchRequest(query="weather forecast"))
        assert result.items == []


class TestLoggingErrorTracker:
    @pytest.mark.asyncio
    async def test_user_message_is_not_logged(self, caplog):
        caplog.set_level(logging.ERROR, logger="chatbot_widget.infra.error_tracker")

        await LoggingErrorTracker().track_error(
            "AI interaction timed out",
            {"session_id": "s-1", "error_code": "AI_INTERACTION_TIMEOUT", "user_message": "hi"},
        )

        record = caplog.records[-1]
        assert record.getMessage() == "Chat processing error tracked"
        assert record.error_code == "AI_INTERACTION_TIMEOUT"
        assert record.user_message_chars == 2
        assert not hasattr(record, "user_message")
