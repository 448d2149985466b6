"""Repositórios Redis (redis.asyncio) para produção.

Layout de chaves:
- session:{id}                → ChatSession (JSON, TTL)
- sessions:activity           → ZSET id → last_activity_at (epoch), só não terminais
- messages:{session_id}       → LIST de ChatMessage (JSON, TTL)
- chatbot_config:{id}         → ChatbotConfig (JSON)

Falhas do Redis viram UpstreamCapabilityError("persistence") com `from e`.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from chatbot_widget.domain.chatbot_config import ChatbotConfig
from chatbot_widget.domain.errors import NotFoundError, UpstreamCapabilityError
from chatbot_widget.domain.messages import ChatMessage
from chatbot_widget.domain.protocols import (
    ChatbotConfigRepositoryProtocol,
    MessageRepositoryProtocol,
    SessionRepositoryProtocol,
)
from chatbot_widget.domain.session import ChatSession
from chatbot_widget.domain.session.models import utcnow
from chatbot_widget.observability.logging import get_logger, short_id

logger: logging.Logger = get_logger(__name__)

CAPABILITY = "persistence"
ACTIVITY_INDEX = "sessions:activity"
DEFAULT_TTL_SECONDS = 86400


def _decode(payload: Any) -> str:
    if isinstance(payload, bytes):
        return payload.decode("utf-8")
    return str(payload)


def _wrap(operation: str, e: Exception, session_id: str | None = None) -> UpstreamCapabilityError:
    logger.error(
        "Redis operation failed",
        extra={
            "operation": operation,
            "session_id": short_id(session_id),
            "error_type": type(e).__name__,
        },
    )
    return UpstreamCapabilityError(
        CAPABILITY,
        f"Redis {operation} failed",
        context={"operation": operation, "error_type": type(e).__name__},
    )


class RedisSessionRepository(SessionRepositoryProtocol):
    """Sessões em Redis com TTL e índice de atividade para expiração."""

    def __init__(self, redis_client: Any, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> None:
        self._redis = redis_client
        self._ttl = ttl_seconds

    @staticmethod
    def _key(session_id: str) -> str:
        return f"session:{session_id}"

    async def find_by_id(self, session_id: str) -> ChatSession | None:
        try:
            payload = await self._redis.get(self._key(session_id))
        except Exception as e:
            raise _wrap("get_session", e, session_id) from e

        if not payload:
            logger.debug("Session not found (Redis)", extra={"session_id": short_id(session_id)})
            return None

        try:
            return ChatSession.model_validate_json(_decode(payload))
        except PydanticValidationError as e:
            raise _wrap("decode_session", e, session_id) from e

    async def save(self, session: ChatSession) -> ChatSession:
        await self._write(session, "save_session")
        return session

    async def update(self, session: ChatSession) -> ChatSession:
        try:
            exists = await self._redis.exists(self._key(session.id))
        except Exception as e:
            raise _wrap("exists_session", e, session.id) from e
        if not exists:
            raise NotFoundError("ChatSession", session.id)

        await self._write(session, "update_session")
        return session

    async def _write(self, session: ChatSession, operation: str) -> None:
        payload = session.model_dump_json()
        try:
            await self._redis.setex(self._key(session.id), self._ttl, payload)
            if session.is_terminal():
                await self._redis.zrem(ACTIVITY_INDEX, session.id)
            else:
                await self._redis.zadd(
                    ACTIVITY_INDEX, {session.id: session.last_activity_at.timestamp()}
                )
        except Exception as e:
            raise _wrap(operation, e, session.id) from e

        logger.debug(
            "Session saved (Redis)",
            extra={"session_id": short_id(session.id), "ttl_seconds": self._ttl},
        )

    async def find_expired_sessions(self, timeout_minutes: int) -> list[ChatSession]:
        cutoff = utcnow().timestamp() - timeout_minutes * 60
        try:
            raw_ids = await self._redis.zrangebyscore(ACTIVITY_INDEX, "-inf", f"({cutoff}")
            ids = [_decode(i) for i in raw_ids]
            payloads = await self._redis.mget([self._key(i) for i in ids]) if ids else []
        except Exception as e:
            raise _wrap("find_expired_sessions", e) from e

        expired: list[ChatSession] = []
        stale: list[str] = []
        for session_id, payload in zip(ids, payloads, strict=True):
            if not payload:
                stale.append(session_id)
                continue
            session = ChatSession.model_validate_json(_decode(payload))
            if not session.is_terminal() and session.is_expired(timeout_minutes):
                expired.append(session)

        if stale:
            try:
                await self._redis.zrem(ACTIVITY_INDEX, *stale)
            except Exception as e:
                raise _wrap("prune_activity_index", e) from e

        return expired


class RedisMessageRepository(MessageRepositoryProtocol):
    """Mensagens em LIST por sessão (ordem cronológica de inserção)."""

    def __init__(self, redis_client: Any, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> None:
        self._redis = redis_client
        self._ttl = ttl_seconds

    @staticmethod
    def _key(session_id: str) -> str:
        return f"messages:{session_id}"

    async def find_by_session_id(self, session_id: str) -> list[ChatMessage]:
        return await self._range(session_id, 0, -1)

    async def save(self, message: ChatMessage) -> ChatMessage:
        key = self._key(message.session_id)
        try:
            await self._redis.rpush(key, message.model_dump_json())
            await self._redis.expire(key, self._ttl)
        except Exception as e:
            raise _wrap("save_message", e, message.session_id) from e
        return message

    async def find_last_by_session_id(self, session_id: str, limit: int) -> list[ChatMessage]:
        if limit <= 0:
            return []
        return await self._range(session_id, -limit, -1)

    async def _range(self, session_id: str, start: int, end: int) -> list[ChatMessage]:
        try:
            items = await self._redis.lrange(self._key(session_id), start, end)
        except Exception as e:
            raise _wrap("find_messages", e, session_id) from e
        return [ChatMessage.model_validate_json(_decode(item)) for item in items]


class RedisChatbotConfigRepository(ChatbotConfigRepositoryProtocol):
    """Leitura de configs publicadas pelo painel administrativo."""

    def __init__(self, redis_client: Any) -> None:
        self._redis = redis_client

    async def find_by_id(self, config_id: str) -> ChatbotConfig | None:
        try:
            payload = await self._redis.get(f"chatbot_config:{config_id}")
        except Exception as e:
            raise _wrap("get_chatbot_config", e) from e
        if not payload:
            return None
        return ChatbotConfig.model_validate_json(_decode(payload))

    async def put(self, config: ChatbotConfig) -> None:
        try:
            await self._redis.set(f"chatbot_config:{config.id}", config.model_dump_json())
        except Exception as e:
            raise _wrap("put_chatbot_config", e) from e
