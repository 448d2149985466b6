"""Protocolo de domínio para rastreamento de erros."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class ErrorTrackingProtocol(ABC):
    """Contrato mínimo de tracking (best-effort do ponto de vista do chamador)."""

    @abstractmethod
    async def track_error(self, message: str, context: dict[str, Any]) -> None:
        """Registra falha de processamento (sem PII no contexto)."""
