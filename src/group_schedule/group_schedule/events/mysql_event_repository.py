from __future__ import annotations

import json
from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import EventType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, load_json_column, normalize_mysql_datetime
from .model import EventTemplate, RecurrenceRule
from .repository import EventTemplateRepository

_COLUMNS = """
    template_id, title, description, event_type, start_at, end_at, location,
    is_recurring, recurrence_rule, attendance_deadline, is_attendance_required,
    created_by, group_id, course_id, assignment_id
"""


def _optional_int(value) -> Optional[int]:
    return int(value) if value is not None else None


def _row_to_template(r: dict) -> EventTemplate:
    rule_data = load_json_column(r.get("recurrence_rule"))
    return EventTemplate(
        template_id=int(r["template_id"]),
        title=r["title"],
        description=r.get("description"),
        event_type=EventType(r["event_type"]),
        start=normalize_mysql_datetime(r["start_at"]),
        end=normalize_mysql_datetime(r["end_at"]),
        location=r.get("location"),
        is_recurring=bool(r["is_recurring"]),
        recurrence_rule=RecurrenceRule.from_dict(rule_data) if rule_data else None,
        attendance_deadline=normalize_mysql_datetime(r.get("attendance_deadline")),
        is_attendance_required=bool(r.get("is_attendance_required")),
        created_by=int(r["created_by"]),
        group_id=_optional_int(r.get("group_id")),
        course_id=_optional_int(r.get("course_id")),
        assignment_id=_optional_int(r.get("assignment_id")),
    )


def _template_params(t: EventTemplate) -> tuple:
    rule = t.recurrence_rule
    return (
        t.title,
        t.description,
        t.event_type.value,
        t.start,
        t.end,
        t.location,
        int(t.is_recurring),
        json.dumps(rule.to_dict()) if rule else None,
        rule.until if rule else None,
        t.attendance_deadline,
        int(t.is_attendance_required),
        int(t.created_by),
        t.group_id,
        t.course_id,
        t.assignment_id,
    )


class MySQLEventTemplateRepository(EventTemplateRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, template_id: int) -> Optional[EventTemplate]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM event_templates WHERE template_id=%s", (int(template_id),))
            r = fetchone(cur)
            return _row_to_template(r) if r else None

    def list_for_groups(
        self,
        *,
        group_ids: Sequence[int],
        window_start: datetime,
        window_end: datetime,
        created_by: Optional[int] = None,
    ) -> Sequence[EventTemplate]:
        owner_clauses: list[str] = []
        params: list[object] = []
        if group_ids:
            owner_clauses.append(f"group_id IN ({','.join(['%s'] * len(group_ids))})")
            params.extend(int(g) for g in group_ids)
        if created_by is not None:
            owner_clauses.append("created_by=%s")
            params.append(int(created_by))
        if not owner_clauses:
            return []

        # Non-recurring: overlaps the window. Recurring: started before the
        # window closes and its rule has not ended before the window opens.
        params.extend([window_end, window_start, window_end, window_start])

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM event_templates
                WHERE ({" OR ".join(owner_clauses)})
                  AND (
                    (is_recurring = 0 AND start_at < %s AND end_at > %s)
                    OR (is_recurring = 1 AND start_at < %s AND (recurrence_until IS NULL OR recurrence_until > %s))
                  )
                ORDER BY start_at ASC, template_id ASC
                """,
                tuple(params),
            )
            return [_row_to_template(r) for r in fetchall(cur)]

    def create(self, template: EventTemplate) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO event_templates(
                    title, description, event_type, start_at, end_at, location,
                    is_recurring, recurrence_rule, recurrence_until, attendance_deadline,
                    is_attendance_required, created_by, group_id, course_id, assignment_id
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                _template_params(template),
            )
            return int(cur.lastrowid)

    def update(self, template: EventTemplate) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE event_templates
                SET title=%s, description=%s, event_type=%s, start_at=%s, end_at=%s, location=%s,
                    is_recurring=%s, recurrence_rule=%s, recurrence_until=%s, attendance_deadline=%s,
                    is_attendance_required=%s, created_by=%s, group_id=%s, course_id=%s, assignment_id=%s
                WHERE template_id=%s
                """,
                _template_params(template) + (int(template.template_id),),
            )
            # MySQL reports 0 affected rows when nothing changed; treat existence as success.
            if cur.rowcount > 0:
                return True
            cur.execute("SELECT 1 AS found FROM event_templates WHERE template_id=%s", (int(template.template_id),))
            return fetchone(cur) is not None

    def delete(self, template_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM event_templates WHERE template_id=%s", (int(template_id),))
            return cur.rowcount > 0
