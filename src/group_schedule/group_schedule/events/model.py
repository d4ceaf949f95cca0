from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, FrozenSet, Optional

from ..common.datetime_utils import parse_iso_datetime
from ..common.validators import require_positive_int
from ..core.constants import OCCURRENCE_KEY_SEPARATOR
from ..core.enums import EventType, Frequency, Weekday
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class RecurrenceRule:
    """Domain value: how a template repeats.

    Termination is purely date-bound: ``until`` is an exclusive bound on
    occurrence starts, ``None`` leaves the query window as the only bound.
    """

    frequency: Frequency
    interval: int = 1
    days_of_week: FrozenSet[Weekday] = field(default_factory=frozenset)
    until: Optional[datetime] = None

    def __post_init__(self):
        if isinstance(self.interval, bool) or not isinstance(self.interval, int) or self.interval <= 0:
            raise ValidationError("Recurrence interval must be a positive integer")

    @property
    def weekdays(self) -> FrozenSet[Weekday]:
        """Selectors that apply; only WEEKLY rules use them."""
        if self.frequency != Frequency.WEEKLY:
            return frozenset()
        return self.days_of_week

    @classmethod
    def from_dict(cls, data: dict) -> "RecurrenceRule":
        if not isinstance(data, dict):
            raise ValidationError("Recurrence rule must be an object")

        try:
            frequency = Frequency(str(data.get("frequency", "")).strip().upper())
        except ValueError:
            raise ValidationError("Recurrence frequency must be DAILY, WEEKLY or MONTHLY")

        interval = require_positive_int(data.get("interval", 1), "Recurrence interval")

        days: set[Weekday] = set()
        for raw_day in data.get("daysOfWeek") or []:
            try:
                days.add(Weekday(int(raw_day)))
            except (TypeError, ValueError):
                raise ValidationError("daysOfWeek must contain numbers 0 (Sunday) to 6 (Saturday)")

        until_raw = data.get("until") or data.get("endDate")
        until = parse_iso_datetime(until_raw, "Recurrence end date") if until_raw else None

        return cls(frequency=frequency, interval=interval, days_of_week=frozenset(days), until=until)

    def to_dict(self) -> dict[str, Any]:
        return {
            "frequency": self.frequency.value,
            "interval": self.interval,
            "daysOfWeek": sorted(int(d) for d in self.days_of_week),
            "until": self.until.isoformat() if self.until else None,
        }


@dataclass(frozen=True)
class EventTemplate:
    """Domain entity: the authored, persisted definition of a calendar item."""

    template_id: int
    title: str
    event_type: EventType
    start: datetime
    end: datetime
    created_by: int
    description: Optional[str] = None
    location: Optional[str] = None
    is_recurring: bool = False
    recurrence_rule: Optional[RecurrenceRule] = None
    attendance_deadline: Optional[datetime] = None
    group_id: Optional[int] = None
    course_id: Optional[int] = None
    assignment_id: Optional[int] = None
    is_attendance_required: bool = False

    def __post_init__(self):
        validate_schedule(
            start=self.start,
            end=self.end,
            is_recurring=self.is_recurring,
            recurrence_rule=self.recurrence_rule,
        )

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


def validate_schedule(
    *,
    start: datetime,
    end: datetime,
    is_recurring: bool,
    recurrence_rule: Optional[RecurrenceRule],
) -> None:
    if end <= start:
        raise ValidationError("End must be after start")
    if end.date() < start.date():
        raise ValidationError("End must fall on the same or a later day than start")
    if is_recurring and recurrence_rule is None:
        raise ValidationError("Recurring events need a recurrence rule")
    if not is_recurring and recurrence_rule is not None:
        raise ValidationError("Recurrence rule is only allowed on recurring events")
    if recurrence_rule is not None and recurrence_rule.until is not None and recurrence_rule.until <= start:
        raise ValidationError("Recurrence end date must be after the event start")


@dataclass(frozen=True, order=True)
class OccurrenceKey:
    """Stable identity of an occurrence: (template id, occurrence start)."""

    template_id: int
    start: datetime

    def encode(self) -> str:
        return f"{self.template_id}{OCCURRENCE_KEY_SEPARATOR}{self.start.isoformat()}"

    @classmethod
    def decode(cls, value: str) -> "OccurrenceKey":
        if not value or OCCURRENCE_KEY_SEPARATOR not in str(value):
            raise ValidationError("occurrenceKey is malformed")
        template_part, start_part = str(value).split(OCCURRENCE_KEY_SEPARATOR, 1)
        try:
            template_id = int(template_part)
        except ValueError:
            raise ValidationError("occurrenceKey is malformed")
        return cls(template_id=template_id, start=parse_iso_datetime(start_part, "occurrenceKey"))

    def __str__(self) -> str:
        return self.encode()


@dataclass(frozen=True)
class Occurrence:
    """One concrete dated instance of a template. Never persisted."""

    template_id: int
    start: datetime
    end: datetime

    @property
    def key(self) -> OccurrenceKey:
        return OccurrenceKey(template_id=self.template_id, start=self.start)
