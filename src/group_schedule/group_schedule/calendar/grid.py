from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Generic, Iterable, TypeVar

from ..common.datetime_utils import start_of_week
from ..core.exceptions import ValidationError

T = TypeVar("T")

WEEKDAY_HEADERS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


@dataclass(frozen=True)
class DayCell(Generic[T]):
    day: date
    is_current_month: bool
    items: tuple[T, ...] = ()


@dataclass(frozen=True)
class MonthGrid(Generic[T]):
    year: int
    month: int
    cells: tuple[DayCell[T], ...] = field(default_factory=tuple)

    @property
    def weeks(self) -> list[tuple[DayCell[T], ...]]:
        return [self.cells[i : i + 7] for i in range(0, len(self.cells), 7)]

    @property
    def current_month_cells(self) -> list[DayCell[T]]:
        return [c for c in self.cells if c.is_current_month]


def step_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Move ``delta`` months from (year, month), rolling the year as needed."""
    index = int(year) * 12 + (int(month) - 1) + int(delta)
    return index // 12, index % 12 + 1


class CalendarGridBuilder:
    """Bucket occurrences into a Sunday-first month grid.

    A cell holds the items whose start falls on that local calendar date.
    Padding days from the neighbouring months are rendered empty.
    """

    def build_month_grid(self, year: int, month: int, occurrences: Iterable[T], *, start_of=None) -> MonthGrid[T]:
        if not 1 <= int(month) <= 12:
            raise ValidationError("month must be between 1 and 12")
        year, month = int(year), int(month)
        start_of = start_of or (lambda item: item.start)

        by_day: dict[date, list[T]] = {}
        for item in occurrences:
            by_day.setdefault(start_of(item).date(), []).append(item)

        first = date(year, month, 1)
        last = date(year, month, calendar.monthrange(year, month)[1])
        grid_start = start_of_week(first)
        grid_end = start_of_week(last) + timedelta(days=6)

        cells: list[DayCell[T]] = []
        day = grid_start
        while day <= grid_end:
            current = day.month == month
            items = tuple(sorted(by_day.get(day, []), key=start_of)) if current else ()
            cells.append(DayCell(day=day, is_current_month=current, items=items))
            day += timedelta(days=1)

        return MonthGrid(year=year, month=month, cells=tuple(cells))

    def month_window(self, year: int, month: int) -> tuple[date, date]:
        """[first day, first day of next month): the range to query for a grid."""
        if not 1 <= int(month) <= 12:
            raise ValidationError("month must be between 1 and 12")
        next_year, next_month = step_month(year, month, 1)
        return date(int(year), int(month), 1), date(next_year, next_month, 1)


def grid_to_dict(grid: MonthGrid, serialize_item) -> dict:
    return {
        "year": grid.year,
        "month": grid.month,
        "weekdays": list(WEEKDAY_HEADERS),
        "weeks": [
            [
                {
                    "date": cell.day.isoformat(),
                    "day": cell.day.day,
                    "isCurrentMonth": cell.is_current_month,
                    "items": [serialize_item(i) for i in cell.items],
                }
                for cell in week
            ]
            for week in grid.weeks
        ],
    }
