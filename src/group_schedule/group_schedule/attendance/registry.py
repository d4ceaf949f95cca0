from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Iterable, Optional

from ..common.validators import clean_text, require_enum
from ..core.enums import AttendanceStatus, WritePhase
from ..core.exceptions import DomainError, NotFoundError
from ..events.model import EventTemplate, Occurrence, OccurrenceKey
from ..events.repository import EventTemplateRepository
from ..groups.model import Actor
from ..recurrence.expander import RecurrenceExpander
from .factory import WriteGateFactory
from .gates.base import WriteRequest
from .model import AttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceRegistry:
    """Owns per-(occurrence, user) attendance records.

    Stateless between calls: every write is a single-row upsert in the
    repository, and the gates decide whether it may happen at all.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        templates: EventTemplateRepository,
        *,
        expander: RecurrenceExpander | None = None,
        gate_factory: WriteGateFactory | None = None,
    ):
        self._attendance = attendance
        self._templates = templates
        self._expander = expander or RecurrenceExpander()
        self._gates = gate_factory or WriteGateFactory()

    def get_status(self, key: OccurrenceKey, user_id: int) -> AttendanceStatus:
        record = self._attendance.get(key, int(user_id))
        return record.status if record else AttendanceStatus.PENDING

    def get_record(self, key: OccurrenceKey, user_id: int) -> Optional[AttendanceRecord]:
        return self._attendance.get(key, int(user_id))

    def resolve(self, key: OccurrenceKey) -> tuple[EventTemplate, Occurrence]:
        template = self._templates.get_by_id(key.template_id)
        if not template:
            raise NotFoundError("Event not found")
        occurrence = self._expander.find(template, key.start)
        if not occurrence:
            raise NotFoundError("Event occurrence not found")
        return template, occurrence

    def set_rsvp(
        self,
        actor: Actor,
        key: OccurrenceKey,
        user_id: int,
        status,
        response: Optional[str] = None,
        *,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        return self._write(WritePhase.RSVP, actor, key, user_id, status, response, now=now)

    def set_outcome(
        self,
        actor: Actor,
        key: OccurrenceKey,
        user_id: int,
        status,
        response: Optional[str] = None,
        *,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        return self._write(WritePhase.OUTCOME, actor, key, user_id, status, response, now=now)

    def records_for(self, keys: Iterable[OccurrenceKey]) -> dict[OccurrenceKey, dict[int, AttendanceRecord]]:
        """Bulk read: materialized records grouped by occurrence, then user id."""
        keys = list(keys)
        out: dict[OccurrenceKey, dict[int, AttendanceRecord]] = defaultdict(dict)
        if not keys:
            return out
        for record in self._attendance.list_for_occurrences(keys):
            out[record.key][record.user_id] = record
        return out

    def purge_template(self, template_id: int) -> int:
        removed = self._attendance.delete_for_template(int(template_id))
        logger.info("Removed %d attendance records of template %s", removed, template_id)
        return removed

    def shift_template(self, template_id: int, delta: timedelta) -> int:
        """Keep records attached to their occurrences when a template start moves."""
        if not delta:
            return 0
        moved = self._attendance.shift_template(int(template_id), delta)
        logger.info("Shifted %d attendance records of template %s by %s", moved, template_id, delta)
        return moved

    def _write(
        self,
        phase: WritePhase,
        actor: Actor,
        key: OccurrenceKey,
        user_id: int,
        status,
        response: Optional[str],
        *,
        now: datetime | None,
    ) -> AttendanceRecord:
        now = now or datetime.now()
        status = require_enum(AttendanceStatus, status, "status")
        template, occurrence = self.resolve(key)

        gate = self._gates.for_phase(phase)
        try:
            gate.check(
                WriteRequest(
                    actor=actor,
                    template=template,
                    occurrence=occurrence,
                    user_id=int(user_id),
                    status=status,
                    now=now,
                )
            )
        except DomainError as e:
            logger.warning(
                "Rejected %s write by user %s for user %s on %s: %s",
                phase.value,
                actor.user_id,
                user_id,
                key.encode(),
                e,
            )
            raise

        record = self._attendance.upsert(
            key=occurrence.key,
            user_id=int(user_id),
            status=status,
            response=clean_text(response),
            updated_at=now,
        )
        logger.info(
            "%s %s -> %s for user %s by user %s",
            phase.value,
            key.encode(),
            status.value,
            user_id,
            actor.user_id,
        )
        return record
