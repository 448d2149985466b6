"""Testes para repositórios Redis (cliente redis.asyncio mockado)."""

from __future__ import annotations

import json
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from chatbot_widget.domain.chatbot_config import ChatbotConfig
from chatbot_widget.domain.errors import NotFoundError, UpstreamCapabilityError
from chatbot_widget.domain.messages import ChatMessage
from chatbot_widget.domain.session.models import utcnow
from chatbot_widget.infra.redis_repositories import (
    ACTIVITY_INDEX,
    RedisChatbotConfigRepository,
    RedisMessageRepository,
    RedisSessionRepository,
)


class _FakeRedis:
    """Subconjunto de redis.asyncio suficiente para os repositórios."""

    def __init__(self) -> None:
        self.values: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.lists: dict[str, list[str]] = {}
        self.zsets: dict[str, dict[str, float]] = {}

    async def get(self, key):
        return self.values.get(key)

    async def set(self, key, value):
        self.values[key] = value

    async def setex(self, key, ttl, value):
        self.values[key] = value
        self.ttls[key] = ttl

    async def exists(self, key):
        return int(key in self.values)

    async def mget(self, keys):
        return [self.values.get(k) for k in keys]

    async def zadd(self, key, mapping):
        self.zsets.setdefault(key, {}).update(mapping)

    async def zrem(self, key, *members):
        for member in members:
            self.zsets.get(key, {}).pop(member, None)

    async def zrangebyscore(self, key, _min, _max):
        upper = float(_max.lstrip("("))
        return [m for m, score in self.zsets.get(key, {}).items() if score < upper]

    async def rpush(self, key, value):
        self.lists.setdefault(key, []).append(value)

    async def expire(self, key, ttl):
        self.ttls[key] = ttl

    async def lrange(self, key, start, end):
        items = self.lists.get(key, [])
        stop = None if end == -1 else end + 1
        return items[start:stop]


@pytest.fixture()
def redis_client() -> _FakeRedis:
    return _FakeRedis()


class TestRedisSessionRepository:
    @pytest.mark.asyncio
    async def test_save_uses_setex_with_ttl(self, redis_client, session):
        repo = RedisSessionRepository(redis_client, ttl_seconds=3600)

        await repo.save(session)

        key = f"session:{session.id}"
        assert redis_client.ttls[key] == 3600
        data = json.loads(redis_client.values[key])
        assert data["id"] == session.id
        assert data["status"] == "active"
        assert session.id in redis_client.zsets[ACTIVITY_INDEX]

    @pytest.mark.asyncio
    async def test_round_trip(self, redis_client, session):
        repo = RedisSessionRepository(redis_client)
        rich = session.add_topic("pricing").update_engagement_score(72)

        await repo.save(rich)

        assert await repo.find_by_id(session.id) == rich

    @pytest.mark.asyncio
    async def test_find_missing_returns_none(self, redis_client):
        assert await RedisSessionRepository(redis_client).find_by_id("nope") is None

    @pytest.mark.asyncio
    async def test_bytes_payload_is_decoded(self, session):
        client = AsyncMock()
        client.get.return_value = session.model_dump_json().encode("utf-8")

        assert await RedisSessionRepository(client).find_by_id(session.id) == session

    @pytest.mark.asyncio
    async def test_update_requires_existing_session(self, redis_client, session):
        with pytest.raises(NotFoundError):
            await RedisSessionRepository(redis_client).update(session)

    @pytest.mark.asyncio
    async def test_terminal_session_leaves_activity_index(self, redis_client, session):
        repo = RedisSessionRepository(redis_client)
        await repo.save(session)

        await repo.update(session.end())

        assert session.id not in redis_client.zsets[ACTIVITY_INDEX]

    @pytest.mark.asyncio
    async def test_find_expired_sessions(self, redis_client, session):
        repo = RedisSessionRepository(redis_client)
        stale = session.model_copy(
            update={"last_activity_at": utcnow() - timedelta(minutes=40)}
        )
        fresh = session.model_copy(update={"id": "fresh-session"})
        await repo.save(stale)
        await repo.save(fresh)
        # Chave expirada por TTL: só resta no índice
        redis_client.zsets[ACTIVITY_INDEX]["ghost"] = 0.0

        expired = await repo.find_expired_sessions(30)

        assert [s.id for s in expired] == [stale.id]
        assert "ghost" not in redis_client.zsets[ACTIVITY_INDEX]

    @pytest.mark.asyncio
    async def test_backend_error_is_wrapped(self, session):
        client = AsyncMock()
        client.setex.side_effect = ConnectionError("Redis connection failed")

        with pytest.raises(UpstreamCapabilityError) as exc_info:
            await RedisSessionRepository(client).save(session)

        assert exc_info.value.capability == "persistence"
        assert isinstance(exc_info.value.__cause__, ConnectionError)

    @pytest.mark.asyncio
    async def test_corrupted_payload_is_wrapped(self):
        client = AsyncMock()
        client.get.return_value = "{not json"

        with pytest.raises(UpstreamCapabilityError):
            await RedisSessionRepository(client).find_by_id("s-1")


class TestRedisMessageRepository:
    @pytest.mark.asyncio
    async def test_messages_are_kept_in_order(self, redis_client):
        repo = RedisMessageRepository(redis_client, ttl_seconds=600)
        messages = [ChatMessage.create_user_message("s-1", f"msg {i}") for i in range(4)]
        for message in messages:
            await repo.save(message)

        assert await repo.find_by_session_id("s-1") == messages
        assert await repo.find_last_by_session_id("s-1", 2) == messages[-2:]
        assert await repo.find_last_by_session_id("s-1", 0) == []
        assert redis_client.ttls["messages:s-1"] == 600

    @pytest.mark.asyncio
    async def test_unknown_session_has_no_messages(self, redis_client):
        assert await RedisMessageRepository(redis_client).find_by_session_id("s-x") == []


class TestRedisChatbotConfigRepository:
    @pytest.mark.asyncio
    async def test_put_and_find(self, redis_client, chatbot_config: ChatbotConfig):
        repo = RedisChatbotConfigRepository(redis_client)

        await repo.put(chatbot_config)

        assert await repo.find_by_id(chatbot_config.id) == chatbot_config
        assert await repo.find_by_id("missing") is None
