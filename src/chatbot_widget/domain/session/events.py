"""Eventos que disparam transições de status da sessão e da qualificação.

- SessionEvent: atividade do visitante, inatividade e encerramentos
- QualificationEvent: progresso do fluxo de qualificação de lead
"""

from __future__ import annotations

from enum import StrEnum


class SessionEvent(StrEnum):
    """Eventos do ciclo de vida da sessão."""

    ACTIVITY = "ACTIVITY"
    """Visitante interagiu (mensagem, page view)."""

    IDLE_DETECTED = "IDLE_DETECTED"
    """Inatividade detectada; sessão pode ser retomada."""

    ABANDONED = "ABANDONED"
    """Sessão expirou sem encerramento explícito."""

    ENDED = "ENDED"
    """Encerramento explícito (visitante ou operador)."""

    COMPLETED = "COMPLETED"
    """Conversa concluída com desfecho."""


class QualificationEvent(StrEnum):
    """Eventos da qualificação de lead."""

    START = "START"
    ANSWER = "ANSWER"
    COMPLETE = "COMPLETE"
    SKIP = "SKIP"
