from __future__ import annotations

from typing import FrozenSet

from ...core.enums import AttendanceStatus, WritePhase
from ...core.exceptions import DeadlinePassedError, ForbiddenError
from .base import WriteGate, WriteRequest


class OutcomeGate(WriteGate):
    """Staff journal write, locked once the template's attendance deadline passes.

    Every status is accepted, RSVP values included: the journal shares the
    single status field and has never guarded against reverting an outcome.
    """

    phase = WritePhase.OUTCOME

    @property
    def allowed_statuses(self) -> FrozenSet[AttendanceStatus]:
        return frozenset(AttendanceStatus)

    def check_authority(self, request: WriteRequest) -> None:
        if not request.actor.is_staff:
            raise ForbiddenError("Only teachers and admins can record attendance")

        deadline = request.template.attendance_deadline
        if deadline is not None and request.now > deadline:
            raise DeadlinePassedError(f"Attendance for this event was locked at {deadline:%Y-%m-%d %H:%M}")
