from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import api_errors, json_body, login_required
from ..container import Container
from .model import EventTemplate


def _template_to_dict(t: EventTemplate) -> dict:
    return {
        "id": t.template_id,
        "title": t.title,
        "description": t.description,
        "type": t.event_type.value,
        "startDate": t.start.isoformat(),
        "endDate": t.end.isoformat(),
        "location": t.location,
        "isRecurring": t.is_recurring,
        "recurrenceRule": t.recurrence_rule.to_dict() if t.recurrence_rule else None,
        "attendanceDeadline": t.attendance_deadline.isoformat() if t.attendance_deadline else None,
        "isAttendanceRequired": t.is_attendance_required,
        "groupId": t.group_id,
        "courseId": t.course_id,
        "assignmentId": t.assignment_id,
        "createdById": t.created_by,
    }


def register(app: Flask, container: Container) -> None:
    events = container.event_service

    @app.route("/api/events", methods=["POST"], endpoint="api_event_create")
    @api_errors
    @login_required
    def api_event_create(actor):
        template = events.create(actor=actor, data=json_body())
        return jsonify(_template_to_dict(template)), 201

    @app.route("/api/events/<int:template_id>", methods=["GET"], endpoint="api_event_detail")
    @api_errors
    @login_required
    def api_event_detail(actor, template_id: int):
        return jsonify(_template_to_dict(events.get(actor=actor, template_id=template_id)))

    @app.route("/api/events/<int:template_id>", methods=["PUT"], endpoint="api_event_update")
    @api_errors
    @login_required
    def api_event_update(actor, template_id: int):
        template = events.update(actor=actor, template_id=template_id, data=json_body())
        return jsonify(_template_to_dict(template))

    @app.route("/api/events/<int:template_id>", methods=["DELETE"], endpoint="api_event_delete")
    @api_errors
    @login_required
    def api_event_delete(actor, template_id: int):
        events.delete(actor=actor, template_id=template_id)
        return jsonify({"success": True})
