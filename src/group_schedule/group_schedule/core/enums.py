from __future__ import annotations

from enum import Enum, IntEnum


class Role(str, Enum):
    """User roles supplied by the authentication layer."""

    STUDENT = "STUDENT"
    TEACHER = "TEACHER"
    ADMIN = "ADMIN"

    @property
    def is_staff(self) -> bool:
        return self in (Role.TEACHER, Role.ADMIN)


class EventType(str, Enum):
    LESSON = "LESSON"
    EXAM = "EXAM"
    DEADLINE = "DEADLINE"
    MEETING = "MEETING"
    WORKSHOP = "WORKSHOP"
    SEMINAR = "SEMINAR"
    CONSULTATION = "CONSULTATION"
    ANNOUNCEMENT = "ANNOUNCEMENT"
    OTHER = "OTHER"


class Frequency(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"


class Weekday(IntEnum):
    """Weekday numbering used on the wire and in the calendar grid (Sunday first)."""

    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6

    @classmethod
    def of(cls, value) -> "Weekday":
        """Weekday of a date/datetime (Python counts Monday as 0)."""
        return cls((value.weekday() + 1) % 7)


class AttendanceStatus(str, Enum):
    """One field carries both phases: RSVP before the event, outcome after."""

    PENDING = "PENDING"
    ATTENDING = "ATTENDING"
    NOT_ATTENDING = "NOT_ATTENDING"
    MAYBE = "MAYBE"
    ATTENDED = "ATTENDED"
    ABSENT = "ABSENT"


RSVP_STATUSES = frozenset({AttendanceStatus.ATTENDING, AttendanceStatus.NOT_ATTENDING, AttendanceStatus.MAYBE})


class CompletionBucket(str, Enum):
    GOOD = "good"
    AVERAGE = "average"
    POOR = "poor"


class WritePhase(str, Enum):
    RSVP = "RSVP"
    OUTCOME = "OUTCOME"
