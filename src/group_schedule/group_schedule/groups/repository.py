from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Group


class GroupRepository(Protocol):
    """Read-only access to groups and their rosters.

    Group management itself lives outside this package.
    """

    def get_by_id(self, group_id: int) -> Optional[Group]:
        raise NotImplementedError

    def list_for_member(self, user_id: int) -> Sequence[Group]:
        """Groups where the user is an active student or a teacher."""

        raise NotImplementedError
