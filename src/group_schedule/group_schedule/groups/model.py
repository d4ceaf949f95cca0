from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet

from ..core.enums import Role


@dataclass(frozen=True)
class Actor:
    """The authenticated caller, as resolved by the auth layer."""

    user_id: int
    role: Role

    @property
    def is_staff(self) -> bool:
        return self.role.is_staff


@dataclass(frozen=True)
class Group:
    """Read model of a study group and its roster."""

    group_id: int
    name: str
    student_ids: FrozenSet[int] = field(default_factory=frozenset)
    teacher_ids: FrozenSet[int] = field(default_factory=frozenset)

    def is_accessible_to(self, actor: Actor) -> bool:
        if actor.role == Role.ADMIN:
            return True
        if actor.role == Role.TEACHER:
            return actor.user_id in self.teacher_ids
        return actor.user_id in self.student_ids

    def roster(self) -> tuple[int, ...]:
        return tuple(sorted(self.student_ids))
