"""Serialização de turnos concorrentes da mesma sessão (single-flight).

Um asyncio.Lock por session_id com contagem de referências: o lock é
descartado quando o último interessado sai.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from chatbot_widget.observability.logging import get_logger, short_id

logger = get_logger(__name__)


class SessionSingleFlight:
    """Garante no máximo um turno em execução por sessão neste processo."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._refs: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._refs[key] = self._refs.get(key, 0) + 1
        if lock.locked():
            logger.debug(
                "Waiting for in-flight turn of the same session",
                extra={"session_id": short_id(key)},
            )
        try:
            async with lock:
                yield
        finally:
            self._refs[key] -= 1
            if self._refs[key] == 0:
                del self._refs[key]
                del self._locks[key]

    def is_held(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    @property
    def active_keys(self) -> int:
        return len(self._locks)
