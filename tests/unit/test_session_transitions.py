from __future__ import annotations

import pytest

from chatbot_widget.domain.enums import QualificationStatus, SessionStatus
from chatbot_widget.domain.session import (
    TERMINAL_STATUSES,
    QualificationEvent,
    SessionEvent,
    validate_qualification_transition,
    validate_status_transition,
)


class TestStatusTable:
    @pytest.mark.parametrize("status", sorted(TERMINAL_STATUSES))
    @pytest.mark.parametrize("event", list(SessionEvent))
    def test_terminal_statuses_have_no_transitions(self, status, event):
        ok, next_status, reason = validate_status_transition(status, event)

        assert ok is False
        assert next_status is None
        assert reason

    def test_idle_activity_goes_to_active(self):
        assert validate_status_transition(SessionStatus.IDLE, SessionEvent.ACTIVITY) == (
            True,
            SessionStatus.ACTIVE,
            "",
        )

    @pytest.mark.parametrize("status", [SessionStatus.ACTIVE, SessionStatus.IDLE])
    def test_ongoing_statuses_can_be_abandoned(self, status):
        ok, next_status, _ = validate_status_transition(status, SessionEvent.ABANDONED)
        assert ok is True
        assert next_status == SessionStatus.ABANDONED


class TestQualificationTable:
    def test_answer_requires_in_progress(self):
        ok, _, _ = validate_qualification_transition(
            QualificationStatus.NOT_STARTED, QualificationEvent.ANSWER
        )
        assert ok is False

    @pytest.mark.parametrize(
        "status", [QualificationStatus.COMPLETED, QualificationStatus.SKIPPED]
    )
    @pytest.mark.parametrize("event", list(QualificationEvent))
    def test_finished_qualification_is_final(self, status, event):
        ok, next_status, _ = validate_qualification_transition(status, event)
        assert ok is False
        assert next_status is None

    def test_complete_from_in_progress(self):
        assert validate_qualification_transition(
            QualificationStatus.IN_PROGRESS, QualificationEvent.COMPLETE
        ) == (True, QualificationStatus.COMPLETED, "")
