from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, Optional, Sequence

from dateutil.relativedelta import relativedelta

from ..attendance.registry import AttendanceRegistry
from ..core.constants import DEFAULT_REPORT_DAYS
from ..core.enums import AttendanceStatus, CompletionBucket
from ..core.exceptions import ValidationError
from ..events.model import EventTemplate, Occurrence, OccurrenceKey
from ..groups.model import Group
from .model import CompletionStat, ReportData, classify

STATUS_LABELS = {
    AttendanceStatus.PENDING: "Not marked",
    AttendanceStatus.ATTENDING: "Plans to attend",
    AttendanceStatus.NOT_ATTENDING: "Does not plan to attend",
    AttendanceStatus.MAYBE: "Maybe",
    AttendanceStatus.ATTENDED: "Attended",
    AttendanceStatus.ABSENT: "Absent",
}


def population_window(range_name: str, now: datetime) -> tuple[Optional[datetime], datetime]:
    """Export population: ``week`` (last 7 days), ``month`` (since the same day last month) or ``all``."""
    name = (range_name or "all").strip().lower()
    if name == "week":
        return now - timedelta(days=DEFAULT_REPORT_DAYS), now
    if name == "month":
        return now - relativedelta(months=1), now
    if name == "all":
        return None, now
    raise ValidationError("range must be one of: week, month, all")


class AttendanceAnalytics:
    """Derived completion statistics. The caller decides the population of occurrences."""

    def __init__(self, registry: AttendanceRegistry):
        self._registry = registry

    def compute_user_stat(self, user_id: int, occurrence_keys: Sequence[OccurrenceKey]) -> CompletionStat:
        keys = list(occurrence_keys)
        records = self._registry.records_for(keys)
        return self._stat_from_records(int(user_id), keys, records)

    def compute_user_stats(self, user_ids: Iterable[int], occurrence_keys: Sequence[OccurrenceKey]) -> list[CompletionStat]:
        keys = list(occurrence_keys)
        records = self._registry.records_for(keys)
        return [self._stat_from_records(int(uid), keys, records) for uid in user_ids]

    def compute_group_breakdown(self, occurrence_key: OccurrenceKey, user_ids: Iterable[int]) -> dict[AttendanceStatus, int]:
        counts = {status: 0 for status in AttendanceStatus}
        by_user = self._registry.records_for([occurrence_key]).get(occurrence_key, {})
        for uid in user_ids:
            record = by_user.get(int(uid))
            counts[record.status if record else AttendanceStatus.PENDING] += 1
        return counts

    @staticmethod
    def classify(rate: int) -> CompletionBucket:
        return classify(rate)

    def build_journal_report(
        self,
        *,
        group: Group,
        occurrences: Sequence[tuple[EventTemplate, Occurrence]],
    ) -> ReportData:
        keys = [occ.key for _, occ in occurrences]
        records = self._registry.records_for(keys)

        rows: list[dict] = []
        summary: list[dict] = []
        for uid in group.roster():
            for template, occ in occurrences:
                record = records.get(occ.key, {}).get(uid)
                status = record.status if record else AttendanceStatus.PENDING
                rows.append(
                    {
                        "user_id": uid,
                        "event": template.title,
                        "date": occ.start.strftime("%Y-%m-%d"),
                        "time": f"{occ.start:%H:%M}-{occ.end:%H:%M}",
                        "status": STATUS_LABELS[status],
                        "response": (record.response if record else None) or "",
                    }
                )

            stat = self._stat_from_records(uid, keys, records)
            summary.append(
                {
                    "user_id": uid,
                    "total": stat.total,
                    "attended": stat.attended,
                    "absent": stat.absent,
                    "rate": stat.rate,
                    "bucket": stat.bucket.value,
                }
            )

        summary.sort(key=lambda s: (-s["rate"], s["user_id"]))
        return ReportData(rows=rows, summary=summary)

    @staticmethod
    def _stat_from_records(user_id: int, keys: Sequence[OccurrenceKey], records) -> CompletionStat:
        attended = 0
        absent = 0
        for key in keys:
            record = records.get(key, {}).get(user_id)
            if not record:
                continue
            if record.status == AttendanceStatus.ATTENDED:
                attended += 1
            elif record.status == AttendanceStatus.ABSENT:
                absent += 1
        return CompletionStat(user_id=user_id, total=len(keys), attended=attended, absent=absent)
