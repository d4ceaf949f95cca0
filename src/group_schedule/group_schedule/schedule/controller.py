from __future__ import annotations

import csv
import io
from datetime import date, datetime

from flask import Flask, jsonify, request

from ..calendar.grid import grid_to_dict
from ..common.validators import optional_int, require_enum, require_positive_int
from ..common.web import api_errors, json_body, login_required, query_datetime
from ..container import Container
from ..core.enums import CompletionBucket, EventType
from ..events.model import OccurrenceKey


def register(app: Flask, container: Container) -> None:
    facade = container.schedule_facade

    def _write_journal_csv(*, data, filename: str):
        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=["user_id", "event", "date", "time", "status", "response", "rate"])
        writer.writeheader()
        rates = {s["user_id"]: s["rate"] for s in data.summary}
        for row in data.rows:
            writer.writerow({**row, "rate": rates.get(row["user_id"], 0)})

        csv_bytes = out.getvalue().encode("utf-8-sig")
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/api/events", methods=["GET"], endpoint="api_events")
    @api_errors
    @login_required
    def api_events(actor):
        event_type = request.args.get("type")
        views = facade.list_events(
            viewer=actor,
            group_id=optional_int(request.args.get("groupId"), "groupId"),
            window_start=query_datetime("startDate"),
            window_end=query_datetime("endDate"),
            event_type=require_enum(EventType, event_type, "type") if event_type and event_type != "ALL" else None,
        )
        return jsonify([v.to_dict() for v in views])

    @app.route("/api/events/attendance", methods=["PATCH"], endpoint="api_event_rsvp")
    @api_errors
    @login_required
    def api_event_rsvp(actor):
        body = json_body()
        record = facade.rsvp(
            viewer=actor,
            key=OccurrenceKey.decode(body.get("occurrenceKey")),
            status=body.get("status"),
            response=body.get("response"),
        )
        return jsonify({"success": True, "attendance": record.to_dict()})

    @app.route("/api/groups/<int:group_id>/attendance", methods=["PATCH"], endpoint="api_group_attendance")
    @api_errors
    @login_required
    def api_group_attendance(actor, group_id: int):
        body = json_body()
        record = facade.record_outcome(
            viewer=actor,
            group_id=group_id,
            key=OccurrenceKey.decode(body.get("occurrenceKey")),
            user_id=require_positive_int(body.get("userId"), "userId"),
            status=body.get("status"),
            response=body.get("response"),
        )
        return jsonify({"success": True, "attendance": record.to_dict()})

    @app.route("/api/calendar", methods=["GET"], endpoint="api_calendar")
    @app.route("/api/groups/<int:group_id>/calendar", methods=["GET"], endpoint="api_group_calendar")
    @api_errors
    @login_required
    def api_calendar(actor, group_id: int | None = None):
        today = date.today()
        year = require_positive_int(request.args.get("year") or today.year, "year")
        month = require_positive_int(request.args.get("month") or today.month, "month")
        if group_id is None:
            group_id = optional_int(request.args.get("groupId"), "groupId")

        grid = facade.month_grid(viewer=actor, group_id=group_id, year=year, month=month)
        return jsonify(grid_to_dict(grid, lambda view: view.to_dict()))

    @app.route("/api/groups/<int:group_id>/attendance/stats", methods=["GET"], endpoint="api_group_stats")
    @api_errors
    @login_required
    def api_group_stats(actor, group_id: int):
        bucket = request.args.get("bucket")
        stats = facade.group_stats(
            viewer=actor,
            group_id=group_id,
            window_start=query_datetime("startDate"),
            window_end=query_datetime("endDate"),
            bucket=require_enum(CompletionBucket, bucket, "bucket") if bucket and bucket != "all" else None,
        )
        return jsonify([s.to_dict() for s in stats])

    @app.route("/api/groups/<int:group_id>/attendance/breakdown", methods=["GET"], endpoint="api_group_breakdown")
    @api_errors
    @login_required
    def api_group_breakdown(actor, group_id: int):
        counts = facade.occurrence_breakdown(
            viewer=actor,
            group_id=group_id,
            key=OccurrenceKey.decode(request.args.get("occurrenceKey")),
        )
        return jsonify({status.value: count for status, count in counts.items()})

    @app.route("/api/groups/<int:group_id>/attendance/export.csv", methods=["GET"], endpoint="api_group_export")
    @api_errors
    @login_required
    def api_group_export(actor, group_id: int):
        range_name = request.args.get("range") or "all"
        data = facade.export_journal(viewer=actor, group_id=group_id, range_name=range_name)
        filename = f"attendance_group{group_id}_{range_name}_{datetime.now():%Y%m%d}.csv"
        return _write_journal_csv(data=data, filename=filename)
