from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Iterator, Optional

from ..common.datetime_utils import add_months, months_between, start_of_week
from ..core.enums import Frequency
from ..core.exceptions import ValidationError
from ..events.model import EventTemplate, Occurrence, RecurrenceRule

logger = logging.getLogger(__name__)


class RecurrenceExpander:
    """Materialize the occurrences of a template inside a date window.

    Pure function of (template, window): safe to recompute on every query.
    Occurrence starts are stepped from the template's own start, never chained
    from the previous occurrence, so month-end clamping does not drift.
    """

    def expand(self, template: EventTemplate, window_start: datetime, window_end: datetime) -> list[Occurrence]:
        if window_end <= window_start:
            return []

        if not template.is_recurring or template.recurrence_rule is None:
            if template.start < window_end and template.end > window_start:
                return [Occurrence(template.template_id, template.start, template.end)]
            return []

        rule = template.recurrence_rule
        if rule.interval <= 0:
            raise ValidationError("Recurrence interval must be a positive integer")

        stop = window_end if rule.until is None else min(rule.until, window_end)
        if stop <= window_start or stop <= template.start:
            return []

        duration = template.duration
        out: list[Occurrence] = []
        for start in self._candidate_starts(template, rule, window_start):
            if start >= stop:
                break
            if start >= window_start:
                out.append(Occurrence(template.template_id, start, start + duration))

        logger.debug(
            "Expanded template %s (%s) into %d occurrences for [%s, %s)",
            template.template_id,
            rule.frequency.value,
            len(out),
            window_start.isoformat(),
            window_end.isoformat(),
        )
        return out

    def find(self, template: EventTemplate, start: datetime) -> Optional[Occurrence]:
        """Resolve the occurrence starting exactly at ``start``, if the template has one."""
        for occurrence in self.expand(template, start, start + timedelta(microseconds=1)):
            if occurrence.start == start:
                return occurrence
        return None

    def _candidate_starts(self, template: EventTemplate, rule: RecurrenceRule, window_start: datetime) -> Iterator[datetime]:
        if rule.frequency == Frequency.DAILY:
            return self._every_n_days(template.start, rule.interval, window_start, template.duration)
        if rule.frequency == Frequency.WEEKLY:
            if rule.weekdays:
                return self._weekly_on_days(template.start, rule.interval, rule.weekdays, window_start)
            return self._every_n_days(template.start, rule.interval * 7, window_start, template.duration)
        return self._every_n_months(template.start, rule.interval, window_start)

    @staticmethod
    def _every_n_days(anchor: datetime, step_days: int, window_start: datetime, duration: timedelta) -> Iterator[datetime]:
        step = timedelta(days=step_days)
        # Skip whole periods that end before the window opens.
        k = 0
        if window_start > anchor:
            k = max(0, (window_start - anchor - duration) // step)
        while True:
            yield anchor + k * step
            k += 1

    @staticmethod
    def _weekly_on_days(anchor: datetime, interval: int, weekdays, window_start: datetime) -> Iterator[datetime]:
        block = timedelta(weeks=interval)
        first_sunday = datetime.combine(start_of_week(anchor.date()), anchor.time())
        offsets = sorted(int(d) for d in weekdays)

        k = 0
        if window_start > anchor:
            k = max(0, (window_start - first_sunday) // block - 1)
        while True:
            week_start = first_sunday + k * block
            for offset in offsets:
                candidate = week_start + timedelta(days=offset)
                if candidate >= anchor:
                    yield candidate
            k += 1

    @staticmethod
    def _every_n_months(anchor: datetime, interval: int, window_start: datetime) -> Iterator[datetime]:
        k = 0
        if window_start > anchor:
            k = max(0, months_between(anchor, window_start) // interval - 1)
        while True:
            yield add_months(anchor, k * interval)
            k += 1
