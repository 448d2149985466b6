"""Coordenação da busca de conhecimento.

Regras:
- Sem capability configurada → None (distinto de lista vazia)
- Erros da busca propagam sem modificação (sem retry, sem fallback)
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from chatbot_widget.ai.contracts import KnowledgeItem, KnowledgeSearchRequest
from chatbot_widget.domain.protocols import KnowledgeSearchProtocol
from chatbot_widget.observability.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_RESULTS = 5
DEFAULT_MIN_RELEVANCE = 0.5
ENHANCED_MAX_RESULTS = 10
ENHANCED_MIN_RELEVANCE = 0.3


class KnowledgeRetrievalCoordinator:
    """Encapsula a capability de busca com defaults de relevância."""

    def __init__(
        self,
        knowledge_search: KnowledgeSearchProtocol | None,
        *,
        max_results: int = DEFAULT_MAX_RESULTS,
        min_relevance_score: float = DEFAULT_MIN_RELEVANCE,
    ) -> None:
        self._search = knowledge_search
        self._max_results = max_results
        self._min_relevance = min_relevance_score

    @property
    def is_configured(self) -> bool:
        return self._search is not None

    async def retrieve_knowledge(
        self, query: str, context: dict[str, Any] | None = None
    ) -> list[KnowledgeItem] | None:
        """Busca padrão (max_results=5, min_relevance=0.5 salvo override)."""
        if self._search is None:
            return None

        ctx = dict(context or {})
        request = KnowledgeSearchRequest(
            query=query,
            max_results=ctx.pop("max_results", self._max_results),
            min_relevance_score=ctx.pop("min_relevance_score", self._min_relevance),
            categories=ctx.pop("categories", []),
            tags=ctx.pop("tags", []),
            context=ctx,
        )
        result = await self._search.search(request)
        logger.debug(
            "Knowledge retrieved",
            extra={"items": len(result.items), "search_time_ms": result.search_time_ms},
        )
        return list(result.items)

    async def retrieve_knowledge_with_enhanced_context(
        self,
        query: str,
        history: Sequence[str],
        preferences: dict[str, Any] | None = None,
        intent: str | None = None,
    ) -> list[KnowledgeItem] | None:
        """Busca ampliada para conversas intensivas em conhecimento."""
        context: dict[str, Any] = {
            "max_results": ENHANCED_MAX_RESULTS,
            "min_relevance_score": ENHANCED_MIN_RELEVANCE,
            "history": list(history),
            "preferences": dict(preferences or {}),
        }
        if intent:
            context["intent"] = intent
        return await self.retrieve_knowledge(query, context)
