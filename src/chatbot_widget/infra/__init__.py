"""Camada de infraestrutura: adapters para serviços externos.

Este módulo exporta as factories principais:

- Repositórios: InMemory* (dev/testes), Redis* (produção), create_repositories
- Conhecimento: InMemoryKnowledgeSearch
- Erros: LoggingErrorTracker

Uso típico:
    from chatbot_widget.infra import create_repositories

Infraestrutura não decide regra de negócio; domínio não conhece infraestrutura.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import redis.asyncio as redis_asyncio

from chatbot_widget.config.settings import Settings
from chatbot_widget.domain.errors import ConfigurationError
from chatbot_widget.domain.protocols import (
    ChatbotConfigRepositoryProtocol,
    MessageRepositoryProtocol,
    SessionRepositoryProtocol,
)
from chatbot_widget.infra.error_tracker import LoggingErrorTracker
from chatbot_widget.infra.knowledge_memory import InMemoryKnowledgeSearch
from chatbot_widget.infra.memory_repositories import (
    InMemoryChatbotConfigRepository,
    InMemoryMessageRepository,
    InMemorySessionRepository,
)
from chatbot_widget.infra.redis_repositories import (
    RedisChatbotConfigRepository,
    RedisMessageRepository,
    RedisSessionRepository,
)
from chatbot_widget.observability.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Repositories:
    sessions: SessionRepositoryProtocol
    messages: MessageRepositoryProtocol
    chatbot_configs: ChatbotConfigRepositoryProtocol


def create_redis_client(redis_url: str) -> Any:
    """Cliente redis.asyncio (conexão é lazy; falhas aparecem no primeiro comando)."""
    return redis_asyncio.from_url(redis_url, decode_responses=True)


def create_repositories(settings: Settings, redis_client: Any | None = None) -> Repositories:
    """Cria repositórios conforme SESSION_STORE_BACKEND (memory | redis)."""
    backend = settings.session_store_backend.lower()

    if backend == "redis":
        if redis_client is None:
            if not settings.redis_url:
                raise ConfigurationError("SESSION_STORE_BACKEND=redis requer REDIS_URL configurado")
            redis_client = create_redis_client(settings.redis_url)
        logger.info("Repositories created", extra={"backend": "redis"})
        return Repositories(
            sessions=RedisSessionRepository(redis_client, settings.session_ttl_seconds),
            messages=RedisMessageRepository(redis_client, settings.session_ttl_seconds),
            chatbot_configs=RedisChatbotConfigRepository(redis_client),
        )

    if backend != "memory":
        raise ConfigurationError(f"Unknown session store backend: {backend}")

    logger.info("Repositories created", extra={"backend": "memory"})
    return Repositories(
        sessions=InMemorySessionRepository(),
        messages=InMemoryMessageRepository(),
        chatbot_configs=InMemoryChatbotConfigRepository(),
    )


__all__ = [
    "InMemoryChatbotConfigRepository",
    "InMemoryKnowledgeSearch",
    "InMemoryMessageRepository",
    "InMemorySessionRepository",
    "LoggingErrorTracker",
    "RedisChatbotConfigRepository",
    "RedisMessageRepository",
    "RedisSessionRepository",
    "Repositories",
    "create_redis_client",
    "create_repositories",
]
