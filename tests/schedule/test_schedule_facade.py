from datetime import date, datetime

import pytest

from src.group_schedule.group_schedule.attendance.registry import AttendanceRegistry
from src.group_schedule.group_schedule.core.enums import AttendanceStatus, CompletionBucket, EventType
from src.group_schedule.group_schedule.core.exceptions import (
    ClosedError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from src.group_schedule.group_schedule.events.model import EventTemplate, OccurrenceKey
from src.group_schedule.group_schedule.events.service import EventService
from src.group_schedule.group_schedule.schedule.facade import ScheduleFacade

from tests.fakes import InMemoryAttendance, InMemoryTemplates

STUDENT_A = 100
STUDENT_B = 101

LESSON_JAN_1 = OccurrenceKey(1, datetime(2024, 1, 1, 9, 0))
LESSON_JAN_8 = OccurrenceKey(1, datetime(2024, 1, 8, 9, 0))
LESSON_JAN_15 = OccurrenceKey(1, datetime(2024, 1, 15, 9, 0))
EXAM = OccurrenceKey(2, datetime(2024, 1, 12, 14, 0))


@pytest.fixture
def other_group_event():
    return EventTemplate(
        template_id=3,
        title="Chess club",
        event_type=EventType.MEETING,
        start=datetime(2024, 1, 9, 17, 0),
        end=datetime(2024, 1, 9, 18, 0),
        created_by=50,
        group_id=6,
    )


@pytest.fixture
def registry(attendance_repo, templates_repo):
    return AttendanceRegistry(attendance_repo, templates_repo)


@pytest.fixture
def facade(templates_repo, groups_repo, registry):
    return ScheduleFacade(templates_repo, groups_repo, registry)


def test_end_to_end_weekly_lesson_lists_three_mondays(groups_repo, teacher, student):
    templates = InMemoryTemplates()
    registry = AttendanceRegistry(InMemoryAttendance(), templates)
    events = EventService(templates, groups_repo, registry)
    facade = ScheduleFacade(templates, groups_repo, registry)

    events.create(
        actor=teacher,
        data={
            "title": "Algebra",
            "type": "LESSON",
            "startDate": "2024-01-01T09:00:00",
            "endDate": "2024-01-01T10:30:00",
            "isRecurring": True,
            "recurrenceRule": {"frequency": "WEEKLY", "interval": 1, "daysOfWeek": [1], "until": "2024-03-01"},
            "groupId": 5,
        },
    )

    views = facade.list_events(
        viewer=student,
        group_id=5,
        window_start=datetime(2024, 1, 1),
        window_end=datetime(2024, 1, 22),
    )

    assert [v.start for v in views] == [
        datetime(2024, 1, 1, 9, 0),
        datetime(2024, 1, 8, 9, 0),
        datetime(2024, 1, 15, 9, 0),
    ]


def test_list_events_merges_templates_in_start_order(facade, student):
    views = facade.list_events(
        viewer=student,
        group_id=5,
        window_start=datetime(2024, 1, 1),
        window_end=datetime(2024, 1, 22),
    )

    assert [v.key for v in views] == [LESSON_JAN_1, LESSON_JAN_8, EXAM, LESSON_JAN_15]


def test_list_events_attaches_roster_attendance(facade, registry, student, fixed_now):
    registry.set_rsvp(student, LESSON_JAN_15, STUDENT_A, "ATTENDING", now=fixed_now)

    views = facade.list_events(
        viewer=student,
        group_id=5,
        window_start=datetime(2024, 1, 15),
        window_end=datetime(2024, 1, 16),
    )

    assert len(views) == 1
    view = views[0]
    assert view.status_for(STUDENT_A) == AttendanceStatus.ATTENDING
    assert view.status_for(STUDENT_B) == AttendanceStatus.PENDING
    payload = view.to_dict()
    assert payload["occurrenceKey"] == "1@2024-01-15T09:00:00"
    assert [a["status"] for a in payload["attendees"]] == ["ATTENDING", "PENDING"]


def test_list_events_without_group_uses_member_groups_and_own_events(
    templates_repo, groups_repo, registry, other_group_event, student, outsider
):
    templates_repo.create(other_group_event)
    facade = ScheduleFacade(templates_repo, groups_repo, registry)
    window = dict(window_start=datetime(2024, 1, 1), window_end=datetime(2024, 1, 22))

    assert len(facade.list_events(viewer=student, group_id=None, **window)) == 4
    assert facade.list_events(viewer=outsider, group_id=None, **window) == []


def test_list_events_filters_by_type(facade, teacher):
    views = facade.list_events(
        viewer=teacher,
        group_id=5,
        window_start=datetime(2024, 1, 1),
        window_end=datetime(2024, 2, 1),
        event_type=EventType.EXAM,
    )

    assert [v.key for v in views] == [EXAM]


def test_list_events_rejects_empty_window(facade, student):
    with pytest.raises(ValidationError):
        facade.list_events(viewer=student, group_id=5, window_start=datetime(2024, 1, 2), window_end=datetime(2024, 1, 1))


def test_inaccessible_group_is_not_found(facade, outsider):
    with pytest.raises(NotFoundError):
        facade.list_events(viewer=outsider, group_id=5, window_start=datetime(2024, 1, 1), window_end=datetime(2024, 2, 1))
    with pytest.raises(NotFoundError):
        facade.list_events(viewer=outsider, group_id=77, window_start=datetime(2024, 1, 1), window_end=datetime(2024, 2, 1))


def test_month_grid_buckets_occurrences_by_day(facade, student):
    grid = facade.month_grid(viewer=student, group_id=5, year=2024, month=1)

    assert grid.cells[0].day == date(2023, 12, 31)
    busy = {c.day.day: len(c.items) for c in grid.current_month_cells if c.items}
    assert busy == {1: 1, 8: 1, 12: 1, 15: 1, 22: 1, 29: 1}


def test_group_stats_counts_required_occurrences(facade, registry, teacher, fixed_now):
    for key in (LESSON_JAN_1, LESSON_JAN_8, EXAM):
        registry.set_outcome(teacher, key, STUDENT_A, "ATTENDED", now=fixed_now)
    registry.set_outcome(teacher, LESSON_JAN_1, STUDENT_B, "ATTENDED", now=fixed_now)
    registry.set_outcome(teacher, EXAM, STUDENT_B, "ABSENT", now=fixed_now)

    stats = facade.group_stats(
        viewer=teacher,
        group_id=5,
        window_start=datetime(2024, 1, 1),
        window_end=datetime(2024, 1, 15),
    )

    assert [(s.user_id, s.total, s.rate) for s in stats] == [(STUDENT_A, 3, 100), (STUDENT_B, 3, 33)]
    good = facade.group_stats(
        viewer=teacher,
        group_id=5,
        window_start=datetime(2024, 1, 1),
        window_end=datetime(2024, 1, 15),
        bucket=CompletionBucket.GOOD,
    )
    assert [s.user_id for s in good] == [STUDENT_A]


def test_group_stats_is_staff_only(facade, student):
    with pytest.raises(ForbiddenError):
        facade.group_stats(viewer=student, group_id=5, window_start=datetime(2024, 1, 1), window_end=datetime(2024, 2, 1))


def test_occurrence_breakdown(facade, registry, teacher, fixed_now):
    registry.set_outcome(teacher, EXAM, STUDENT_B, "ABSENT", now=fixed_now)

    counts = facade.occurrence_breakdown(viewer=teacher, group_id=5, key=EXAM)

    assert counts[AttendanceStatus.ABSENT] == 1
    assert counts[AttendanceStatus.PENDING] == 1


def test_rsvp_records_for_the_viewer(facade, student, fixed_now):
    record = facade.rsvp(viewer=student, key=LESSON_JAN_15, status="maybe", response="bus strike", now=fixed_now)

    assert record.user_id == STUDENT_A
    assert record.status == AttendanceStatus.MAYBE
    assert record.response == "bus strike"


def test_rsvp_on_ended_occurrence_is_closed(facade, student, fixed_now):
    with pytest.raises(ClosedError):
        facade.rsvp(viewer=student, key=LESSON_JAN_8, status="ATTENDING", now=fixed_now)


def test_rsvp_outside_group_is_not_found(facade, outsider, fixed_now):
    with pytest.raises(NotFoundError):
        facade.rsvp(viewer=outsider, key=LESSON_JAN_15, status="ATTENDING", now=fixed_now)


def test_record_outcome_checks_roster_and_group(templates_repo, groups_repo, registry, other_group_event, teacher, fixed_now):
    templates_repo.create(other_group_event)
    facade = ScheduleFacade(templates_repo, groups_repo, registry)

    record = facade.record_outcome(viewer=teacher, group_id=5, key=LESSON_JAN_8, user_id=STUDENT_B, status="ATTENDED", now=fixed_now)
    assert record.status == AttendanceStatus.ATTENDED

    with pytest.raises(ValidationError):
        facade.record_outcome(viewer=teacher, group_id=5, key=LESSON_JAN_8, user_id=999, status="ATTENDED", now=fixed_now)
    with pytest.raises(NotFoundError):
        facade.record_outcome(
            viewer=teacher,
            group_id=5,
            key=OccurrenceKey(3, datetime(2024, 1, 9, 17, 0)),
            user_id=STUDENT_B,
            status="ATTENDED",
            now=fixed_now,
        )


def test_record_outcome_by_student_is_forbidden(facade, student, fixed_now):
    with pytest.raises(ForbiddenError):
        facade.record_outcome(viewer=student, group_id=5, key=LESSON_JAN_8, user_id=STUDENT_A, status="ATTENDED", now=fixed_now)


def test_export_journal_last_week(facade, registry, teacher):
    now = datetime(2024, 1, 16, 8, 0)
    registry.set_outcome(teacher, EXAM, STUDENT_A, "ATTENDED", now=datetime(2024, 1, 12, 17, 0))

    data = facade.export_journal(viewer=teacher, group_id=5, range_name="week", now=now)

    assert {(r["event"], r["date"]) for r in data.rows} == {("Midterm", "2024-01-12"), ("Algebra lesson", "2024-01-15")}
    assert len(data.rows) == 4
    assert data.summary[0] == {"user_id": STUDENT_A, "total": 2, "attended": 1, "absent": 0, "rate": 50, "bucket": "average"}
