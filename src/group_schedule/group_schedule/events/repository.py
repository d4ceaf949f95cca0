from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import EventTemplate


class EventTemplateRepository(Protocol):
    def get_by_id(self, template_id: int) -> Optional[EventTemplate]:
        raise NotImplementedError

    def list_for_groups(
        self,
        *,
        group_ids: Sequence[int],
        window_start: datetime,
        window_end: datetime,
        created_by: Optional[int] = None,
    ) -> Sequence[EventTemplate]:
        """Templates that may have occurrences in the window.

        Matches templates of the given groups, plus those created by
        ``created_by`` when set. Recurring templates are returned whenever
        their rule is still active; the expander does the exact filtering.
        """

        raise NotImplementedError

    def create(self, template: EventTemplate) -> int:
        """Persist a new template (``template_id`` is ignored). Returns the new id."""

        raise NotImplementedError

    def update(self, template: EventTemplate) -> bool:
        raise NotImplementedError

    def delete(self, template_id: int) -> bool:
        raise NotImplementedError
