"""Medição de latência por estágio do turno."""

from __future__ import annotations

import contextlib
import time
from collections.abc import Generator

from chatbot_widget.observability.logging import get_logger

logger = get_logger(__name__)


@contextlib.contextmanager
def timed(component: str, **fields: object) -> Generator[None, None, None]:
    """Loga `component_latency` ao sair do bloco, mesmo com exceção.

    Exemplo:
        with timed("ai_interaction", session_id=short_id(session.id)):
            result = await ai.process(...)

    `fields` entram no `extra` do log e nunca devem carregar PII.
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        logger.info(
            "Component latency measured",
            extra={"component": component, "elapsed_ms": elapsed_ms_since(start), **fields},
        )


def elapsed_ms_since(start: float) -> float:
    """Milissegundos desde `start` (valor de time.perf_counter())."""
    return round((time.perf_counter() - start) * 1000, 2)
