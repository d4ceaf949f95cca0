from datetime import datetime

import pytest

from src.group_schedule.group_schedule.core.enums import EventType, Frequency, Role, Weekday
from src.group_schedule.group_schedule.events.model import EventTemplate, RecurrenceRule
from src.group_schedule.group_schedule.groups.model import Actor, Group

from tests.fakes import InMemoryAttendance, InMemoryGroups, InMemoryTemplates

TEACHER_ID = 10
ADMIN_ID = 1
STUDENT_A = 100
STUDENT_B = 101
OUTSIDER = 200
GROUP_ID = 5


@pytest.fixture
def fixed_now():
    return datetime(2024, 1, 10, 12, 0, 0)


@pytest.fixture
def teacher():
    return Actor(user_id=TEACHER_ID, role=Role.TEACHER)


@pytest.fixture
def admin():
    return Actor(user_id=ADMIN_ID, role=Role.ADMIN)


@pytest.fixture
def student():
    return Actor(user_id=STUDENT_A, role=Role.STUDENT)


@pytest.fixture
def outsider():
    return Actor(user_id=OUTSIDER, role=Role.STUDENT)


@pytest.fixture
def group():
    return Group(
        group_id=GROUP_ID,
        name="Algebra 1",
        student_ids=frozenset({STUDENT_A, STUDENT_B}),
        teacher_ids=frozenset({TEACHER_ID}),
    )


@pytest.fixture
def weekly_lesson():
    """Mondays 09:00-10:30 from 2024-01-01, until 2024-03-01."""
    return EventTemplate(
        template_id=1,
        title="Algebra lesson",
        event_type=EventType.LESSON,
        start=datetime(2024, 1, 1, 9, 0),
        end=datetime(2024, 1, 1, 10, 30),
        created_by=TEACHER_ID,
        is_recurring=True,
        recurrence_rule=RecurrenceRule(
            frequency=Frequency.WEEKLY,
            interval=1,
            days_of_week=frozenset({Weekday.MONDAY}),
            until=datetime(2024, 3, 1),
        ),
        group_id=GROUP_ID,
        is_attendance_required=True,
    )


@pytest.fixture
def exam():
    return EventTemplate(
        template_id=2,
        title="Midterm",
        event_type=EventType.EXAM,
        start=datetime(2024, 1, 12, 14, 0),
        end=datetime(2024, 1, 12, 16, 0),
        created_by=TEACHER_ID,
        group_id=GROUP_ID,
        attendance_deadline=datetime(2024, 1, 13, 18, 0),
        is_attendance_required=True,
    )


@pytest.fixture
def templates_repo(weekly_lesson, exam):
    return InMemoryTemplates([weekly_lesson, exam])


@pytest.fixture
def groups_repo(group):
    return InMemoryGroups([group])


@pytest.fixture
def attendance_repo():
    return InMemoryAttendance()
