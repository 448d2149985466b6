"""Tabelas de transição da sessão e da qualificação de lead.

- STATUS_TRANSITIONS[(status, event)] = próximo status
- QUALIFICATION_TRANSITIONS[(status, event)] = próximo status
- Estados terminais não aparecem como origem
- Validação pura: sem side effects
"""

from __future__ import annotations

from chatbot_widget.domain.enums import QualificationStatus, SessionStatus
from chatbot_widget.domain.session.events import QualificationEvent, SessionEvent

TERMINAL_STATUSES = frozenset({
    SessionStatus.COMPLETED,
    SessionStatus.ABANDONED,
    SessionStatus.ENDED,
})
"""Status que encerram a sessão (sem transições posteriores)."""

ONGOING_STATUSES = frozenset({s for s in SessionStatus if s not in TERMINAL_STATUSES})

STATUS_TRANSITIONS: dict[tuple[SessionStatus, SessionEvent], SessionStatus] = {
    # === ACTIVE → ... ===
    (SessionStatus.ACTIVE, SessionEvent.ACTIVITY): SessionStatus.ACTIVE,
    (SessionStatus.ACTIVE, SessionEvent.IDLE_DETECTED): SessionStatus.IDLE,
    (SessionStatus.ACTIVE, SessionEvent.ABANDONED): SessionStatus.ABANDONED,
    (SessionStatus.ACTIVE, SessionEvent.ENDED): SessionStatus.ENDED,
    (SessionStatus.ACTIVE, SessionEvent.COMPLETED): SessionStatus.COMPLETED,
    # === IDLE → ... ===
    (SessionStatus.IDLE, SessionEvent.ACTIVITY): SessionStatus.ACTIVE,
    (SessionStatus.IDLE, SessionEvent.IDLE_DETECTED): SessionStatus.IDLE,
    (SessionStatus.IDLE, SessionEvent.ABANDONED): SessionStatus.ABANDONED,
    (SessionStatus.IDLE, SessionEvent.ENDED): SessionStatus.ENDED,
    (SessionStatus.IDLE, SessionEvent.COMPLETED): SessionStatus.COMPLETED,
    # COMPLETED, ABANDONED, ENDED: sem transições de saída
}

QUALIFICATION_TRANSITIONS: dict[
    tuple[QualificationStatus, QualificationEvent], QualificationStatus
] = {
    (QualificationStatus.NOT_STARTED, QualificationEvent.START): QualificationStatus.IN_PROGRESS,
    (QualificationStatus.IN_PROGRESS, QualificationEvent.START): QualificationStatus.IN_PROGRESS,
    (QualificationStatus.IN_PROGRESS, QualificationEvent.ANSWER): QualificationStatus.IN_PROGRESS,
    (QualificationStatus.IN_PROGRESS, QualificationEvent.COMPLETE): QualificationStatus.COMPLETED,
    (QualificationStatus.IN_PROGRESS, QualificationEvent.SKIP): QualificationStatus.SKIPPED,
    # COMPLETED, SKIPPED: terminais
}


def validate_status_transition(
    current: SessionStatus, event: SessionEvent
) -> tuple[bool, SessionStatus | None, str]:
    """Valida se uma transição de status é permitida.

    Retorna:
    - (True, next_status, ""): transição válida
    - (False, None, motivo): transição inválida

    Nunca lança exceção; apenas valida.
    """
    if current in TERMINAL_STATUSES:
        return False, None, f"Terminal status {current} has no transitions"

    next_status = STATUS_TRANSITIONS.get((current, event))
    if next_status is None:
        return False, None, f"No transition from {current} on event {event}"
    return True, next_status, ""


def validate_qualification_transition(
    current: QualificationStatus, event: QualificationEvent
) -> tuple[bool, QualificationStatus | None, str]:
    """Mesmo contrato de validate_status_transition, para a qualificação."""
    next_status = QUALIFICATION_TRANSITIONS.get((current, event))
    if next_status is None:
        return False, None, f"No qualification transition from {current} on {event}"
    return True, next_status, ""
