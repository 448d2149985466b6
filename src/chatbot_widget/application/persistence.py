"""Chamadas a repositórios com falhas classificadas."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from chatbot_widget.domain.errors import ChatbotWidgetError, UpstreamCapabilityError
from chatbot_widget.observability.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

PERSISTENCE = "persistence"


async def repository_call(
    operation: str, call: Awaitable[T], *, timeout: float | None = None
) -> T:
    """Aguarda a operação; falhas não classificadas viram UpstreamCapabilityError.

    Com `timeout`, a chamada é cancelada ao estourar o prazo.
    """
    try:
        if timeout:
            return await asyncio.wait_for(call, timeout=timeout)
        return await call
    except ChatbotWidgetError:
        raise
    except TimeoutError as e:
        logger.error(
            "Repository operation timed out",
            extra={"operation": operation, "timeout_seconds": timeout},
        )
        raise UpstreamCapabilityError(
            PERSISTENCE,
            f"Repository operation timed out: {operation}",
            context={"operation": operation, "timeout_seconds": timeout},
        ) from e
    except Exception as e:
        logger.error(
            "Repository operation failed",
            extra={"operation": operation, "error_type": type(e).__name__},
        )
        raise UpstreamCapabilityError(
            PERSISTENCE,
            f"Repository operation failed: {operation}",
            context={"operation": operation, "error_type": type(e).__name__},
        ) from e
