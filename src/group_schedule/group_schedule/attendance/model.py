from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import AttendanceStatus
from ..events.model import OccurrenceKey


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one user's attendance for one occurrence.

    Record-on-write: a missing record means PENDING.
    """

    key: OccurrenceKey
    user_id: int
    status: AttendanceStatus
    updated_at: datetime
    response: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "userId": self.user_id,
            "status": self.status.value,
            "response": self.response,
            "updatedAt": self.updated_at.isoformat(),
        }
