from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Iterable, Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_datetime
from ..events.model import OccurrenceKey
from .model import AttendanceRecord
from .repository import AttendanceRepository


def _row_to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        key=OccurrenceKey(
            template_id=int(r["template_id"]),
            start=normalize_mysql_datetime(r["occurrence_start"]),
        ),
        user_id=int(r["user_id"]),
        status=AttendanceStatus(r["status"]),
        response=r.get("response"),
        updated_at=normalize_mysql_datetime(r["updated_at"]),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, key: OccurrenceKey, user_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT template_id, occurrence_start, user_id, status, response, updated_at
                FROM attendance_records
                WHERE template_id=%s AND occurrence_start=%s AND user_id=%s
                """,
                (int(key.template_id), key.start, int(user_id)),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def upsert(
        self,
        *,
        key: OccurrenceKey,
        user_id: int,
        status: AttendanceStatus,
        response: Optional[str],
        updated_at: datetime,
    ) -> AttendanceRecord:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(template_id, occurrence_start, user_id, status, response, updated_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    status=VALUES(status),
                    response=COALESCE(VALUES(response), response),
                    updated_at=VALUES(updated_at)
                """,
                (int(key.template_id), key.start, int(user_id), status.value, response, updated_at),
            )
            cur.execute(
                """
                SELECT template_id, occurrence_start, user_id, status, response, updated_at
                FROM attendance_records
                WHERE template_id=%s AND occurrence_start=%s AND user_id=%s
                """,
                (int(key.template_id), key.start, int(user_id)),
            )
            return _row_to_record(fetchone(cur))

    def list_for_occurrences(self, keys: Iterable[OccurrenceKey]) -> Sequence[AttendanceRecord]:
        starts_by_template: dict[int, set[datetime]] = defaultdict(set)
        for key in keys:
            starts_by_template[int(key.template_id)].add(key.start)
        if not starts_by_template:
            return []

        # One query per template keeps the IN lists bounded by the window size.
        out: list[AttendanceRecord] = []
        with db_cursor(self._conn_factory) as (_, cur):
            for template_id, starts in starts_by_template.items():
                ordered = sorted(starts)
                cur.execute(
                    f"""
                    SELECT template_id, occurrence_start, user_id, status, response, updated_at
                    FROM attendance_records
                    WHERE template_id=%s AND occurrence_start IN ({",".join(["%s"] * len(ordered))})
                    ORDER BY occurrence_start ASC, user_id ASC
                    """,
                    (template_id, *ordered),
                )
                out.extend(_row_to_record(r) for r in fetchall(cur))
        return out

    def delete_for_template(self, template_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records WHERE template_id=%s", (int(template_id),))
            return int(cur.rowcount or 0)

    def shift_template(self, template_id: int, delta: timedelta) -> int:
        seconds = int(delta.total_seconds())
        if not seconds:
            return 0
        # Walk rows away from the shift direction so no row lands on a key not yet moved.
        order = "DESC" if seconds > 0 else "ASC"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE attendance_records
                SET occurrence_start = occurrence_start + INTERVAL %s SECOND
                WHERE template_id=%s
                ORDER BY occurrence_start {order}
                """,
                (seconds, int(template_id)),
            )
            return int(cur.rowcount or 0)
