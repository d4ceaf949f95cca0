from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ..analytics.model import CompletionStat, ReportData
from ..analytics.service import AttendanceAnalytics, population_window
from ..attendance.model import AttendanceRecord
from ..attendance.registry import AttendanceRegistry
from ..calendar.grid import CalendarGridBuilder, MonthGrid
from ..common.datetime_utils import start_of_day
from ..core.constants import ALL_TIME_START
from ..core.enums import AttendanceStatus, CompletionBucket, EventType
from ..core.exceptions import ForbiddenError, NotFoundError, ValidationError
from ..events.model import EventTemplate, Occurrence, OccurrenceKey
from ..events.repository import EventTemplateRepository
from ..groups.model import Actor, Group
from ..groups.repository import GroupRepository
from ..recurrence.expander import RecurrenceExpander
from .model import OccurrenceView

logger = logging.getLogger(__name__)


class ScheduleFacade:
    """Composition root of the scheduling core.

    Calendar and attendance-journal surfaces talk to this class only; the
    expander and the registry stay internal.
    """

    def __init__(
        self,
        templates: EventTemplateRepository,
        groups: GroupRepository,
        registry: AttendanceRegistry,
        *,
        expander: RecurrenceExpander | None = None,
        analytics: AttendanceAnalytics | None = None,
        grid_builder: CalendarGridBuilder | None = None,
    ):
        self._templates = templates
        self._groups = groups
        self._registry = registry
        self._expander = expander or RecurrenceExpander()
        self._analytics = analytics or AttendanceAnalytics(registry)
        self._grid = grid_builder or CalendarGridBuilder()

    # -- queries -----------------------------------------------------------

    def list_events(
        self,
        *,
        viewer: Actor,
        group_id: Optional[int],
        window_start: datetime,
        window_end: datetime,
        event_type: Optional[EventType] = None,
        attendance_required_only: bool = False,
    ) -> list[OccurrenceView]:
        if window_end <= window_start:
            raise ValidationError("endDate must be after startDate")

        if group_id is not None:
            group = self._accessible_group(viewer, group_id)
            groups_by_id = {group.group_id: group}
            templates = self._templates.list_for_groups(
                group_ids=[group.group_id], window_start=window_start, window_end=window_end
            )
        else:
            groups_by_id = {g.group_id: g for g in self._groups.list_for_member(viewer.user_id)}
            templates = self._templates.list_for_groups(
                group_ids=sorted(groups_by_id),
                window_start=window_start,
                window_end=window_end,
                created_by=viewer.user_id,
            )

        if event_type is not None:
            templates = [t for t in templates if t.event_type == event_type]
        if attendance_required_only:
            templates = [t for t in templates if t.is_attendance_required]

        pairs = self._expand(templates, window_start, window_end)
        records = self._registry.records_for(occ.key for _, occ in pairs)

        views = []
        for template, occ in pairs:
            group = groups_by_id.get(template.group_id) if template.group_id is not None else None
            views.append(
                OccurrenceView(
                    occurrence=occ,
                    template=template,
                    roster=group.roster() if group else (),
                    attendance=dict(records.get(occ.key, {})),
                )
            )

        logger.debug(
            "Listed %d occurrences from %d templates for user %s (group=%s)",
            len(views),
            len(templates),
            viewer.user_id,
            group_id,
        )
        return views

    def month_grid(self, *, viewer: Actor, group_id: Optional[int], year: int, month: int) -> MonthGrid[OccurrenceView]:
        first, next_first = self._grid.month_window(year, month)
        views = self.list_events(
            viewer=viewer,
            group_id=group_id,
            window_start=start_of_day(first),
            window_end=start_of_day(next_first),
        )
        return self._grid.build_month_grid(year, month, views)

    def group_stats(
        self,
        *,
        viewer: Actor,
        group_id: int,
        window_start: datetime,
        window_end: datetime,
        bucket: Optional[CompletionBucket] = None,
    ) -> list[CompletionStat]:
        """Completion per student over the attendance-required occurrences in the window."""
        group = self._staff_group(viewer, group_id)
        pairs = self._group_occurrences(group, window_start, window_end, attendance_required_only=True)
        stats = self._analytics.compute_user_stats(group.roster(), [occ.key for _, occ in pairs])
        if bucket is not None:
            stats = [s for s in stats if s.bucket == bucket]
        return stats

    def occurrence_breakdown(self, *, viewer: Actor, group_id: int, key: OccurrenceKey) -> dict[AttendanceStatus, int]:
        group = self._staff_group(viewer, group_id)
        self._group_occurrence(group, key)
        return self._analytics.compute_group_breakdown(key, group.roster())

    def export_journal(self, *, viewer: Actor, group_id: int, range_name: str, now: datetime | None = None) -> ReportData:
        now = now or datetime.now()
        group = self._staff_group(viewer, group_id)
        window_start, window_end = population_window(range_name, now)
        pairs = self._group_occurrences(group, window_start or ALL_TIME_START, window_end)
        return self._analytics.build_journal_report(group=group, occurrences=pairs)

    # -- writes --------------------------------------------------------------

    def rsvp(
        self,
        *,
        viewer: Actor,
        key: OccurrenceKey,
        status,
        response: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        template, _ = self._registry.resolve(key)
        self._require_visible(viewer, template, key)
        return self._registry.set_rsvp(viewer, key, viewer.user_id, status, response, now=now)

    def record_outcome(
        self,
        *,
        viewer: Actor,
        group_id: int,
        key: OccurrenceKey,
        user_id: int,
        status,
        response: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        group = self._accessible_group(viewer, group_id)
        self._group_occurrence(group, key)
        if int(user_id) not in group.student_ids:
            raise ValidationError("User is not a student in this group")
        return self._registry.set_outcome(viewer, key, int(user_id), status, response, now=now)

    # -- helpers -------------------------------------------------------------

    def _accessible_group(self, viewer: Actor, group_id: int) -> Group:
        group = self._groups.get_by_id(int(group_id))
        if not group or not group.is_accessible_to(viewer):
            raise NotFoundError("Group not found")
        return group

    def _staff_group(self, viewer: Actor, group_id: int) -> Group:
        group = self._accessible_group(viewer, group_id)
        if not viewer.is_staff:
            raise ForbiddenError("Only teachers and admins can view the attendance journal")
        return group

    def _group_occurrence(self, group: Group, key: OccurrenceKey) -> tuple[EventTemplate, Occurrence]:
        template, occurrence = self._registry.resolve(key)
        if template.group_id != group.group_id:
            raise NotFoundError("Event not found in this group")
        return template, occurrence

    def _group_occurrences(
        self,
        group: Group,
        window_start: datetime,
        window_end: datetime,
        *,
        attendance_required_only: bool = False,
    ) -> list[tuple[EventTemplate, Occurrence]]:
        templates: Sequence[EventTemplate] = self._templates.list_for_groups(
            group_ids=[group.group_id], window_start=window_start, window_end=window_end
        )
        if attendance_required_only:
            templates = [t for t in templates if t.is_attendance_required]
        return self._expand(templates, window_start, window_end)

    def _expand(
        self,
        templates: Sequence[EventTemplate],
        window_start: datetime,
        window_end: datetime,
    ) -> list[tuple[EventTemplate, Occurrence]]:
        pairs = [(t, occ) for t in templates for occ in self._expander.expand(t, window_start, window_end)]
        pairs.sort(key=lambda p: (p[1].start, p[1].template_id))
        return pairs

    def _require_visible(self, viewer: Actor, template: EventTemplate, key: OccurrenceKey) -> None:
        if template.created_by == viewer.user_id:
            return
        if template.group_id is not None:
            self._accessible_group(viewer, template.group_id)
            return
        # Events outside a group are visible to the users already listed on them.
        if self._registry.get_record(key, viewer.user_id) is None:
            raise NotFoundError("Event not found")
