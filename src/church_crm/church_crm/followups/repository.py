from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import FollowUpStatus
from .model import FollowUp, FollowUpAction, FollowUpRequest


class FollowUpRepository(Protocol):
    def create_follow_up(self, request: FollowUpRequest, *, now: datetime) -> FollowUp:
        raise NotImplementedError

    def list_open_follow_ups(self, person_id: str, type: Optional[str] = None) -> Sequence[FollowUp]:
        """Follow-ups still `open` or `in-progress`, optionally of one type."""

        raise NotImplementedError

    def get_by_id(self, follow_up_id: str) -> Optional[FollowUp]:
        raise NotImplementedError

    def list_all(self) -> Sequence[FollowUp]:
        raise NotImplementedError

    def update_status(
        self,
        follow_up_id: str,
        status: FollowUpStatus,
        *,
        now: datetime,
    ) -> Optional[FollowUp]:
        raise NotImplementedError

    def log_action(self, action: FollowUpAction) -> None:
        raise NotImplementedError

    def list_actions(self, follow_up_id: str) -> Sequence[FollowUpAction]:
        raise NotImplementedError
