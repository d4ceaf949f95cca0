from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Group
from .repository import GroupRepository


class MySQLGroupRepository(GroupRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _load_roster(self, cur, group_ids: list[int]) -> tuple[dict[int, set[int]], dict[int, set[int]]]:
        students: dict[int, set[int]] = {gid: set() for gid in group_ids}
        teachers: dict[int, set[int]] = {gid: set() for gid in group_ids}
        if not group_ids:
            return students, teachers

        placeholders = ",".join(["%s"] * len(group_ids))
        cur.execute(
            f"""
            SELECT group_id, user_id
            FROM group_students
            WHERE group_id IN ({placeholders}) AND status='ACTIVE'
            """,
            tuple(group_ids),
        )
        for r in fetchall(cur):
            students[int(r["group_id"])].add(int(r["user_id"]))

        cur.execute(
            f"SELECT group_id, user_id FROM group_teachers WHERE group_id IN ({placeholders})",
            tuple(group_ids),
        )
        for r in fetchall(cur):
            teachers[int(r["group_id"])].add(int(r["user_id"]))

        return students, teachers

    def get_by_id(self, group_id: int) -> Optional[Group]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT group_id, name FROM `groups` WHERE group_id=%s", (int(group_id),))
            r = fetchone(cur)
            if not r:
                return None

            gid = int(r["group_id"])
            students, teachers = self._load_roster(cur, [gid])
            return Group(
                group_id=gid,
                name=r["name"],
                student_ids=frozenset(students[gid]),
                teacher_ids=frozenset(teachers[gid]),
            )

    def list_for_member(self, user_id: int) -> Sequence[Group]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT DISTINCT g.group_id, g.name
                FROM `groups` g
                LEFT JOIN group_students gs ON gs.group_id = g.group_id AND gs.status='ACTIVE'
                LEFT JOIN group_teachers gt ON gt.group_id = g.group_id
                WHERE gs.user_id=%s OR gt.user_id=%s
                ORDER BY g.group_id ASC
                """,
                (int(user_id), int(user_id)),
            )
            rows = fetchall(cur)
            group_ids = [int(r["group_id"]) for r in rows]
            students, teachers = self._load_roster(cur, group_ids)
            return [
                Group(
                    group_id=int(r["group_id"]),
                    name=r["name"],
                    student_ids=frozenset(students[int(r["group_id"])]),
                    teacher_ids=frozenset(teachers[int(r["group_id"])]),
                )
                for r in rows
            ]
