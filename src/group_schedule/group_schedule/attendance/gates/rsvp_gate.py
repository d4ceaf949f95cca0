from __future__ import annotations

from typing import FrozenSet

from ...core.enums import RSVP_STATUSES, AttendanceStatus, WritePhase
from ...core.exceptions import ClosedError, ForbiddenError
from .base import WriteGate, WriteRequest


class RsvpGate(WriteGate):
    """Pre-event intention, set by the subject (or staff on their behalf) until the occurrence ends."""

    phase = WritePhase.RSVP

    @property
    def allowed_statuses(self) -> FrozenSet[AttendanceStatus]:
        return RSVP_STATUSES

    def check_authority(self, request: WriteRequest) -> None:
        if request.actor.user_id != request.user_id and not request.actor.is_staff:
            raise ForbiddenError("You can only RSVP for yourself")
        if request.now >= request.occurrence.end:
            raise ClosedError("This event has already ended")
