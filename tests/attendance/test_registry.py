from datetime import datetime, timedelta

import pytest

from src.group_schedule.group_schedule.attendance.registry import AttendanceRegistry
from src.group_schedule.group_schedule.core.enums import AttendanceStatus
from src.group_schedule.group_schedule.core.exceptions import (
    ClosedError,
    DeadlinePassedError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from src.group_schedule.group_schedule.events.model import OccurrenceKey

STUDENT_A = 100
STUDENT_B = 101

NEXT_LESSON = OccurrenceKey(template_id=1, start=datetime(2024, 1, 15, 9, 0))
PAST_LESSON = OccurrenceKey(template_id=1, start=datetime(2024, 1, 8, 9, 0))
EXAM = OccurrenceKey(template_id=2, start=datetime(2024, 1, 12, 14, 0))


@pytest.fixture
def registry(attendance_repo, templates_repo):
    return AttendanceRegistry(attendance_repo, templates_repo)


def test_status_is_pending_without_a_record(registry):
    assert registry.get_status(NEXT_LESSON, STUDENT_A) == AttendanceStatus.PENDING
    assert registry.get_record(NEXT_LESSON, STUDENT_A) is None


def test_rsvp_is_readable_and_second_write_overwrites(registry, attendance_repo, student, fixed_now):
    registry.set_rsvp(student, NEXT_LESSON, STUDENT_A, "ATTENDING", now=fixed_now)
    assert registry.get_status(NEXT_LESSON, STUDENT_A) == AttendanceStatus.ATTENDING

    registry.set_rsvp(student, NEXT_LESSON, STUDENT_A, AttendanceStatus.MAYBE, now=fixed_now)

    assert registry.get_status(NEXT_LESSON, STUDENT_A) == AttendanceStatus.MAYBE
    assert len(attendance_repo.records) == 1


def test_rsvp_after_occurrence_end_is_closed(registry, attendance_repo, student, fixed_now):
    with pytest.raises(ClosedError):
        registry.set_rsvp(student, PAST_LESSON, STUDENT_A, "ATTENDING", now=fixed_now)
    assert attendance_repo.writes == 0


def test_rsvp_exactly_at_end_is_closed(registry, student):
    with pytest.raises(ClosedError):
        registry.set_rsvp(student, NEXT_LESSON, STUDENT_A, "ATTENDING", now=datetime(2024, 1, 15, 10, 30))


def test_rsvp_for_another_student_is_forbidden(registry, student, fixed_now):
    with pytest.raises(ForbiddenError):
        registry.set_rsvp(student, NEXT_LESSON, STUDENT_B, "ATTENDING", now=fixed_now)


def test_staff_may_rsvp_on_behalf_of_a_student(registry, teacher, fixed_now):
    registry.set_rsvp(teacher, NEXT_LESSON, STUDENT_B, "NOT_ATTENDING", "sick", now=fixed_now)

    record = registry.get_record(NEXT_LESSON, STUDENT_B)
    assert record.status == AttendanceStatus.NOT_ATTENDING
    assert record.response == "sick"


def test_rsvp_rejects_outcome_and_unknown_statuses(registry, attendance_repo, student, fixed_now):
    with pytest.raises(ValidationError):
        registry.set_rsvp(student, NEXT_LESSON, STUDENT_A, "ATTENDED", now=fixed_now)
    with pytest.raises(ValidationError):
        registry.set_rsvp(student, NEXT_LESSON, STUDENT_A, "GOING", now=fixed_now)
    assert attendance_repo.writes == 0


def test_outcome_by_student_is_forbidden(registry, student, fixed_now):
    with pytest.raises(ForbiddenError):
        registry.set_outcome(student, PAST_LESSON, STUDENT_A, "ATTENDED", now=fixed_now)


def test_outcome_one_second_before_deadline_succeeds(registry, teacher):
    deadline = datetime(2024, 1, 13, 18, 0)

    record = registry.set_outcome(teacher, EXAM, STUDENT_A, "ATTENDED", now=deadline - timedelta(seconds=1))

    assert record.status == AttendanceStatus.ATTENDED
    assert registry.get_status(EXAM, STUDENT_A) == AttendanceStatus.ATTENDED


def test_outcome_one_second_after_deadline_fails(registry, attendance_repo, teacher):
    deadline = datetime(2024, 1, 13, 18, 0)

    with pytest.raises(DeadlinePassedError):
        registry.set_outcome(teacher, EXAM, STUDENT_A, "ABSENT", now=deadline + timedelta(seconds=1))
    assert attendance_repo.writes == 0


def test_outcome_without_deadline_stays_open(registry, admin):
    record = registry.set_outcome(admin, PAST_LESSON, STUDENT_A, "ABSENT", now=datetime(2025, 1, 1))

    assert record.status == AttendanceStatus.ABSENT


def test_identical_write_refreshes_updated_at(registry, teacher, fixed_now):
    first = registry.set_outcome(teacher, PAST_LESSON, STUDENT_A, "ATTENDED", now=fixed_now)
    later = fixed_now + timedelta(minutes=5)

    second = registry.set_outcome(teacher, PAST_LESSON, STUDENT_A, "ATTENDED", now=later)

    assert first.updated_at == fixed_now
    assert second.updated_at == later
    assert second.status == first.status


def test_staff_may_revert_outcome_to_rsvp_status(registry, teacher, fixed_now):
    registry.set_outcome(teacher, PAST_LESSON, STUDENT_A, "ATTENDED", now=fixed_now)

    registry.set_outcome(teacher, PAST_LESSON, STUDENT_A, "ATTENDING", now=fixed_now)

    assert registry.get_status(PAST_LESSON, STUDENT_A) == AttendanceStatus.ATTENDING


def test_write_without_response_keeps_previous_response(registry, student, teacher, fixed_now):
    registry.set_rsvp(student, NEXT_LESSON, STUDENT_A, "MAYBE", "  depends on bus  ", now=fixed_now)

    record = registry.set_outcome(teacher, NEXT_LESSON, STUDENT_A, "ATTENDED", now=fixed_now)

    assert record.response == "depends on bus"


def test_unknown_template_or_start_is_not_found(registry, student, fixed_now):
    with pytest.raises(NotFoundError):
        registry.set_rsvp(student, OccurrenceKey(99, datetime(2024, 1, 15, 9, 0)), STUDENT_A, "MAYBE", now=fixed_now)
    with pytest.raises(NotFoundError):
        registry.set_rsvp(student, OccurrenceKey(1, datetime(2024, 1, 16, 9, 0)), STUDENT_A, "MAYBE", now=fixed_now)


def test_records_for_groups_by_occurrence_then_user(registry, student, teacher, fixed_now):
    registry.set_rsvp(student, NEXT_LESSON, STUDENT_A, "ATTENDING", now=fixed_now)
    registry.set_outcome(teacher, EXAM, STUDENT_B, "ABSENT", now=fixed_now)

    records = registry.records_for([NEXT_LESSON, EXAM, PAST_LESSON])

    assert set(records[NEXT_LESSON]) == {STUDENT_A}
    assert records[EXAM][STUDENT_B].status == AttendanceStatus.ABSENT
    assert PAST_LESSON not in records
    assert registry.records_for([]) == {}


def test_purge_template_removes_only_its_records(registry, attendance_repo, student, teacher, fixed_now):
    registry.set_rsvp(student, NEXT_LESSON, STUDENT_A, "ATTENDING", now=fixed_now)
    registry.set_outcome(teacher, PAST_LESSON, STUDENT_B, "ATTENDED", now=fixed_now)
    registry.set_outcome(teacher, EXAM, STUDENT_B, "ABSENT", now=fixed_now)

    assert registry.purge_template(1) == 2
    assert list(attendance_repo.records) == [(EXAM, STUDENT_B)]
