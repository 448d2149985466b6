"""Busca de conhecimento em memória por sobreposição de palavras.

Relevância = fração dos termos da query presentes em título, conteúdo e tags.
Adequada para dev/testes e bases pequenas carregadas na inicialização.
"""

from __future__ import annotations

import re
import time

from chatbot_widget.ai.contracts import (
    KnowledgeItem,
    KnowledgeSearchRequest,
    KnowledgeSearchResult,
)
from chatbot_widget.domain.protocols import KnowledgeSearchProtocol

_TOKEN = re.compile(r"[a-z0-9]+")
_STOPWORDS = frozenset(
    {"a", "an", "the", "is", "are", "do", "does", "you", "your", "i", "to", "of"}
)


def _terms(text: str) -> set[str]:
    return {t for t in _TOKEN.findall(text.lower()) if t not in _STOPWORDS}


class InMemoryKnowledgeSearch(KnowledgeSearchProtocol):
    def __init__(self, items: list[KnowledgeItem] | None = None) -> None:
        self._items: list[KnowledgeItem] = list(items or [])

    def add(self, item: KnowledgeItem) -> None:
        self._items.append(item)

    async def search(self, request: KnowledgeSearchRequest) -> KnowledgeSearchResult:
        start = time.perf_counter()
        query_terms = _terms(request.query)

        scored: list[KnowledgeItem] = []
        for item in self._items:
            if request.categories and item.category not in request.categories:
                continue
            if request.tags and not set(request.tags) & set(item.tags):
                continue
            if not query_terms:
                continue
            haystack = _terms(f"{item.title} {item.content} {' '.join(item.tags)}")
            score = len(query_terms & haystack) / len(query_terms)
            if score >= request.min_relevance_score:
                scored.append(item.model_copy(update={"relevance_score": round(score, 4)}))

        scored.sort(key=lambda i: i.relevance_score, reverse=True)
        return KnowledgeSearchResult(
            items=scored[: request.max_results],
            total_found=len(scored),
            search_time_ms=round((time.perf_counter() - start) * 1000, 2),
            query=request.query,
        )
