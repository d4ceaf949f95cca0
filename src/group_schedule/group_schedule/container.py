from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .analytics.service import AttendanceAnalytics
from .attendance.factory import WriteGateFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.registry import AttendanceRegistry
from .attendance.repository import AttendanceRepository
from .calendar.grid import CalendarGridBuilder
from .database.connection import DBConfig, DatabaseConnection
from .events.mysql_event_repository import MySQLEventTemplateRepository
from .events.repository import EventTemplateRepository
from .events.service import EventService
from .groups.mysql_group_repository import MySQLGroupRepository
from .groups.repository import GroupRepository
from .recurrence.expander import RecurrenceExpander
from .schedule.facade import ScheduleFacade


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    templates_repo: EventTemplateRepository
    groups_repo: GroupRepository
    attendance_repo: AttendanceRepository

    registry: AttendanceRegistry
    analytics: AttendanceAnalytics
    event_service: EventService
    schedule_facade: ScheduleFacade


def assemble(
    *,
    templates_repo: EventTemplateRepository,
    groups_repo: GroupRepository,
    attendance_repo: AttendanceRepository,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Wire the services on top of whatever repositories are given."""
    expander = RecurrenceExpander()
    registry = AttendanceRegistry(
        attendance_repo,
        templates_repo,
        expander=expander,
        gate_factory=WriteGateFactory(),
    )
    analytics = AttendanceAnalytics(registry)
    event_service = EventService(templates_repo, groups_repo, registry)
    schedule_facade = ScheduleFacade(
        templates_repo,
        groups_repo,
        registry,
        expander=expander,
        analytics=analytics,
        grid_builder=CalendarGridBuilder(),
    )

    return Container(
        conn=conn,
        templates_repo=templates_repo,
        groups_repo=groups_repo,
        attendance_repo=attendance_repo,
        registry=registry,
        analytics=analytics,
        event_service=event_service,
        schedule_facade=schedule_facade,
    )


def build_container(*, db_config: dict) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    return assemble(
        templates_repo=MySQLEventTemplateRepository(conn),
        groups_repo=MySQLGroupRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        conn=conn,
    )
