from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping

from ..attendance.model import AttendanceRecord
from ..core.enums import AttendanceStatus
from ..events.model import EventTemplate, Occurrence, OccurrenceKey


@dataclass(frozen=True)
class OccurrenceView:
    """Read model for calendar and journal surfaces.

    ``attendance`` holds materialized records only; roster members without
    one are PENDING.
    """

    occurrence: Occurrence
    template: EventTemplate
    roster: tuple[int, ...] = ()
    attendance: Mapping[int, AttendanceRecord] = field(default_factory=dict)

    @property
    def key(self) -> OccurrenceKey:
        return self.occurrence.key

    @property
    def start(self) -> datetime:
        return self.occurrence.start

    @property
    def end(self) -> datetime:
        return self.occurrence.end

    def status_for(self, user_id: int) -> AttendanceStatus:
        record = self.attendance.get(int(user_id))
        return record.status if record else AttendanceStatus.PENDING

    def to_dict(self) -> dict:
        t = self.template
        user_ids = sorted(set(self.roster) | set(self.attendance))
        attendees = []
        for uid in user_ids:
            record = self.attendance.get(uid)
            if record:
                attendees.append(record.to_dict())
            else:
                attendees.append({"userId": uid, "status": AttendanceStatus.PENDING.value, "response": None, "updatedAt": None})

        return {
            "occurrenceKey": self.key.encode(),
            "eventId": t.template_id,
            "title": t.title,
            "description": t.description,
            "type": t.event_type.value,
            "startDate": self.start.isoformat(),
            "endDate": self.end.isoformat(),
            "location": t.location,
            "isRecurring": t.is_recurring,
            "recurrenceRule": t.recurrence_rule.to_dict() if t.recurrence_rule else None,
            "attendanceDeadline": t.attendance_deadline.isoformat() if t.attendance_deadline else None,
            "isAttendanceRequired": t.is_attendance_required,
            "groupId": t.group_id,
            "courseId": t.course_id,
            "assignmentId": t.assignment_id,
            "createdById": t.created_by,
            "attendees": attendees,
        }
