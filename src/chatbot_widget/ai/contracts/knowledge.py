"""Contrato Pydantic da busca de conhecimento."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class KnowledgeSearchRequest(BaseModel):
    """Input da busca de conhecimento."""

    query: str = Field(..., min_length=1)
    max_results: int = Field(default=5, ge=1)
    min_relevance_score: float = Field(default=0.5, ge=0.0, le=1.0)
    categories: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    context: dict[str, Any] = Field(default_factory=dict)
    """Contexto adicional (histórico, preferências, intenção)."""


class KnowledgeItem(BaseModel):
    """Item de conhecimento retornado pela busca."""

    id: str
    title: str
    content: str
    category: str = "general"
    tags: list[str] = Field(default_factory=list)
    relevance_score: float = Field(default=0.0, ge=0.0, le=1.0)
    source: str | None = None


class KnowledgeSearchResult(BaseModel):
    """Output da busca de conhecimento."""

    items: list[KnowledgeItem] = Field(default_factory=list)
    total_found: int = 0
    search_time_ms: float = 0.0
    query: str = ""
