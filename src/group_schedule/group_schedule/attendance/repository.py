from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from ..events.model import OccurrenceKey
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get(self, key: OccurrenceKey, user_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def upsert(
        self,
        *,
        key: OccurrenceKey,
        user_id: int,
        status: AttendanceStatus,
        response: Optional[str],
        updated_at: datetime,
    ) -> AttendanceRecord:
        """Create or overwrite the record for (key, user_id) in one atomic write.

        ``response=None`` leaves a previously stored response untouched.
        """

        raise NotImplementedError

    def list_for_occurrences(self, keys: Iterable[OccurrenceKey]) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def delete_for_template(self, template_id: int) -> int:
        """Remove every record of a template's occurrences. Returns rows removed."""

        raise NotImplementedError

    def shift_template(self, template_id: int, delta: timedelta) -> int:
        """Move every record of a template by ``delta``. Returns rows moved."""

        raise NotImplementedError
