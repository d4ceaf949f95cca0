from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import FrozenSet

from ...core.enums import AttendanceStatus, WritePhase
from ...core.exceptions import ValidationError
from ...events.model import EventTemplate, Occurrence
from ...groups.model import Actor


@dataclass(frozen=True)
class WriteRequest:
    actor: Actor
    template: EventTemplate
    occurrence: Occurrence
    user_id: int
    status: AttendanceStatus
    now: datetime


class WriteGate(ABC):
    """Strategy Pattern: encapsulate who may write which statuses, and until when.

    ``check`` raises a DomainError when the write must be refused and returns
    quietly otherwise. It never touches storage.
    """

    phase: WritePhase

    @property
    @abstractmethod
    def allowed_statuses(self) -> FrozenSet[AttendanceStatus]:
        raise NotImplementedError

    def check(self, request: WriteRequest) -> None:
        if request.status not in self.allowed_statuses:
            allowed = ", ".join(sorted(s.value for s in self.allowed_statuses))
            raise ValidationError(f"Status must be one of: {allowed}")
        self.check_authority(request)

    @abstractmethod
    def check_authority(self, request: WriteRequest) -> None:
        raise NotImplementedError
