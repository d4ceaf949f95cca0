"""Group Schedule package.

Calendar events for study groups, their recurrence, per-occurrence attendance
and completion statistics. Organized by feature modules (events, recurrence,
attendance, analytics, calendar, schedule) with a thin Flask controller layer
over service/repository layers.
"""
