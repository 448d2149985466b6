"""Taxonomia de erros do domínio do chatbot.

Regras:
- ValidationError surge antes de qualquer I/O (nunca retryable)
- UpstreamCapabilityError encapsula falhas de IA, conhecimento ou repositórios
  (retryable pelo chamador; o pipeline nunca faz retry)
- Erros de upstream propagam sem modificação até o use case
"""

from __future__ import annotations

from typing import Any


class ChatbotWidgetError(Exception):
    """Erro base com código estável e contexto sem PII."""

    code: str = "CHATBOT_WIDGET_ERROR"
    retryable: bool = False

    def __init__(self, message: str, *, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = dict(context or {})

    def to_dict(self) -> dict[str, Any]:
        """Representação serializável (respostas HTTP e tracking)."""
        return {
            "code": self.code,
            "message": self.message,
            "retryable": self.retryable,
            "context": self.context,
        }


class ValidationError(ChatbotWidgetError):
    """Entrada inválida; nenhuma side effect foi executada."""

    code = "VALIDATION_ERROR"

    def __init__(
        self, message: str, *, field: str | None = None, context: dict[str, Any] | None = None
    ) -> None:
        ctx = dict(context or {})
        if field:
            ctx["field"] = field
        super().__init__(message, context=ctx)
        self.field = field


class ConfigurationError(ChatbotWidgetError):
    """Configuração inválida (ex.: orçamento de tokens inconsistente)."""

    code = "CONFIGURATION_ERROR"


class NotFoundError(ChatbotWidgetError):
    """Sessão ou configuração de chatbot inexistente."""

    code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: str) -> None:
        super().__init__(
            f"{resource} not found",
            context={"resource": resource, "resource_id": resource_id[:8]},
        )
        self.resource = resource
        self.resource_id = resource_id


class UpstreamCapabilityError(ChatbotWidgetError):
    """Falha de capability externa (IA, busca de conhecimento, persistência)."""

    code = "UPSTREAM_CAPABILITY_ERROR"
    retryable = True

    def __init__(
        self, capability: str, message: str, *, context: dict[str, Any] | None = None
    ) -> None:
        ctx = dict(context or {})
        ctx["capability"] = capability
        super().__init__(message, context=ctx)
        self.capability = capability


class AIInteractionTimeoutError(UpstreamCapabilityError):
    """Timeout da chamada unificada de IA (falha esperada e classificada)."""

    code = "AI_INTERACTION_TIMEOUT"

    def __init__(self, timeout_seconds: float | None = None) -> None:
        super().__init__(
            "ai_interaction",
            "AI interaction timed out",
            context={"timeout_seconds": timeout_seconds},
        )
        self.timeout_seconds = timeout_seconds


class ConsistencyError(ChatbotWidgetError):
    """Reservado para detecção de atualizações concorrentes conflitantes."""

    code = "CONSISTENCY_ERROR"
    retryable = True
