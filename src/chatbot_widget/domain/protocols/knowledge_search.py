"""Protocolo de domínio para busca de conhecimento."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from chatbot_widget.ai.contracts import KnowledgeSearchRequest, KnowledgeSearchResult


class KnowledgeSearchProtocol(ABC):
    """Contrato mínimo de busca (vetorial, keyword, etc.)."""

    @abstractmethod
    async def search(self, request: KnowledgeSearchRequest) -> KnowledgeSearchResult: ...
