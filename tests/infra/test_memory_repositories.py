from __future__ import annotations

from datetime import timedelta

import pytest

from chatbot_widget.domain.errors import NotFoundError
from chatbot_widget.domain.messages import ChatMessage
from chatbot_widget.domain.session.models import utcnow
from chatbot_widget.infra.memory_repositories import (
    InMemoryChatbotConfigRepository,
    InMemoryMessageRepository,
    InMemorySessionRepository,
)


@pytest.mark.asyncio
async def test_session_repository_save_find_update(session):
    repo = InMemorySessionRepository()

    await repo.save(session)
    updated = session.add_topic("demo")
    await repo.update(updated)

    assert await repo.find_by_id(session.id) is updated
    assert await repo.find_by_id("missing") is None


@pytest.mark.asyncio
async def test_update_unknown_session_fails(session):
    with pytest.raises(NotFoundError):
        await InMemorySessionRepository().update(session)


@pytest.mark.asyncio
async def test_find_expired_skips_terminal_sessions(session):
    repo = InMemorySessionRepository()
    old = utcnow() - timedelta(hours=1)
    stale = session.model_copy(update={"last_activity_at": old})
    ended = session.end().model_copy(update={"id": "ended", "last_activity_at": old})
    await repo.save(stale)
    await repo.save(ended)

    assert await repo.find_expired_sessions(30) == [stale]


@pytest.mark.asyncio
async def test_message_repository_order_and_limit():
    repo = InMemoryMessageRepository()
    messages = [ChatMessage.create_user_message("s-1", f"m{i}") for i in range(3)]
    for message in messages:
        await repo.save(message)
    await repo.save(ChatMessage.create_user_message("s-2", "other"))

    assert await repo.find_by_session_id("s-1") == messages
    assert await repo.find_last_by_session_id("s-1", 2) == messages[1:]
    assert await repo.find_last_by_session_id("s-1", 0) == []


@pytest.mark.asyncio
async def test_config_repository(chatbot_config):
    repo = InMemoryChatbotConfigRepository()
    assert await repo.find_by_id(chatbot_config.id) is None

    repo.add(chatbot_config)
    assert await repo.find_by_id(chatbot_config.id) is chatbot_config
