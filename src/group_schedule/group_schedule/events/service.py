from __future__ import annotations

import logging
from typing import Optional

from ..attendance.registry import AttendanceRegistry
from ..common.datetime_utils import parse_iso_datetime
from ..common.validators import clean_text, optional_int, require_enum, require_flag, require_non_empty
from ..core.enums import EventType, Role
from ..core.exceptions import ForbiddenError, NotFoundError, ValidationError
from ..groups.model import Actor
from ..groups.repository import GroupRepository
from .model import EventTemplate, RecurrenceRule
from .repository import EventTemplateRepository

logger = logging.getLogger(__name__)


def template_from_payload(data: dict, *, template_id: int, created_by: int) -> EventTemplate:
    """Validate a JSON body once, at the boundary, into an EventTemplate."""
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")

    is_recurring = require_flag(data.get("isRecurring"), "isRecurring")
    rule_data = data.get("recurrenceRule") or data.get("recurringRule")
    rule: Optional[RecurrenceRule] = None
    if is_recurring:
        if not rule_data:
            raise ValidationError("Recurring events need a recurrence rule")
        rule = RecurrenceRule.from_dict(rule_data)

    deadline_raw = data.get("attendanceDeadline")
    return EventTemplate(
        template_id=int(template_id),
        title=require_non_empty(data.get("title"), "Event title"),
        description=clean_text(data.get("description")),
        event_type=require_enum(EventType, data.get("type") or EventType.OTHER.value, "type"),
        start=parse_iso_datetime(data.get("startDate"), "startDate"),
        end=parse_iso_datetime(data.get("endDate"), "endDate"),
        location=clean_text(data.get("location")),
        is_recurring=is_recurring,
        recurrence_rule=rule,
        attendance_deadline=parse_iso_datetime(deadline_raw, "attendanceDeadline") if deadline_raw else None,
        is_attendance_required=require_flag(data.get("isAttendanceRequired"), "isAttendanceRequired"),
        created_by=int(created_by),
        group_id=optional_int(data.get("groupId"), "groupId"),
        course_id=optional_int(data.get("courseId"), "courseId"),
        assignment_id=optional_int(data.get("assignmentId"), "assignmentId"),
    )


class EventService:
    """Use case: author event templates (staff only)."""

    def __init__(self, templates: EventTemplateRepository, groups: GroupRepository, registry: AttendanceRegistry):
        self._templates = templates
        self._groups = groups
        self._registry = registry

    def _require_group_authority(self, actor: Actor, group_id: Optional[int]) -> None:
        if group_id is None:
            return
        group = self._groups.get_by_id(group_id)
        if not group or not group.is_accessible_to(actor):
            raise NotFoundError("Group not found")
        if actor.role != Role.ADMIN and actor.user_id not in group.teacher_ids:
            raise ForbiddenError("Access denied to this group")

    def _require_editable(self, actor: Actor, template_id: int) -> EventTemplate:
        if not actor.is_staff:
            raise ForbiddenError("Students cannot manage events")
        template = self._templates.get_by_id(int(template_id))
        if not template:
            raise NotFoundError("Event not found")
        if actor.role == Role.ADMIN or template.created_by == actor.user_id:
            return template
        self._require_group_authority(actor, template.group_id)
        if template.group_id is None:
            raise ForbiddenError("Only the creator can change this event")
        return template

    def get(self, *, actor: Actor, template_id: int) -> EventTemplate:
        template = self._templates.get_by_id(int(template_id))
        if not template:
            raise NotFoundError("Event not found")
        if template.created_by != actor.user_id and template.group_id is not None:
            group = self._groups.get_by_id(template.group_id)
            if not group or not group.is_accessible_to(actor):
                raise NotFoundError("Event not found")
        return template

    def create(self, *, actor: Actor, data: dict) -> EventTemplate:
        if not actor.is_staff:
            raise ForbiddenError("Students cannot create events")

        template = template_from_payload(data, template_id=0, created_by=actor.user_id)
        self._require_group_authority(actor, template.group_id)

        new_id = self._templates.create(template)
        logger.info("User %s created event template %s (%s)", actor.user_id, new_id, template.event_type.value)
        return self._templates.get_by_id(new_id) or template

    def update(self, *, actor: Actor, template_id: int, data: dict) -> EventTemplate:
        existing = self._require_editable(actor, template_id)

        template = template_from_payload(data, template_id=existing.template_id, created_by=existing.created_by)
        if template.group_id != existing.group_id:
            self._require_group_authority(actor, template.group_id)

        if not self._templates.update(template):
            raise NotFoundError("Event not found")
        if template.start != existing.start:
            self._registry.shift_template(template.template_id, template.start - existing.start)
        logger.info("User %s updated event template %s", actor.user_id, template.template_id)
        return template

    def delete(self, *, actor: Actor, template_id: int) -> None:
        template = self._require_editable(actor, template_id)

        self._registry.purge_template(template.template_id)
        if not self._templates.delete(template.template_id):
            raise NotFoundError("Event not found")
        logger.info("User %s deleted event template %s", actor.user_id, template.template_id)
