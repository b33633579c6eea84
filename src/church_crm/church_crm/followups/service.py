from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional, Sequence

import structlog

from ..common.datetime_utils import now_local
from ..common.ids import new_id
from ..common.validators import require_non_empty, require_non_negative
from ..core.constants import (
    FOLLOW_UP_TYPE_NEW_GUEST,
    FOLLOW_UP_TYPE_REGULAR_GUEST,
    FOLLOW_UP_TYPE_RETURNING_GUEST,
)
from ..core.enums import FollowUpChannel, FollowUpPriority, FollowUpStatus, NotificationEvent
from ..core.exceptions import NotFoundError
from ..notifications.sink import Notifier
from ..people.repository import PersonRepository
from ..settings.repository import ConfigProvider
from ..storage.store import UnitOfWork
from .model import FollowUp, FollowUpAction, FollowUpRequest
from .repository import FollowUpRepository

logger = structlog.get_logger(__name__)


class FollowUpService:
    """Pastoral care tasks: create, de-dup lookups, status changes, contact log."""

    def __init__(
        self,
        follow_ups: FollowUpRepository,
        people: PersonRepository,
        config: ConfigProvider,
        uow: UnitOfWork,
        *,
        notifier: Optional[Notifier] = None,
    ):
        self._follow_ups = follow_ups
        self._people = people
        self._config = config
        self._uow = uow
        self._notifier = notifier

    def create(
        self,
        *,
        person_id: str,
        type: str,
        title: str,
        due_in_hours: int,
        priority: FollowUpPriority = FollowUpPriority.MEDIUM,
        created_by: str = "system",
        notes: str = "",
        preferred_channel: Optional[FollowUpChannel] = None,
        now: datetime | None = None,
    ) -> FollowUp:
        now = now or now_local()
        require_non_empty(type, "type")
        require_non_negative(due_in_hours, "due_in_hours")

        with self._uow.atomic():
            person = self._people.get_by_id(person_id)
            if not person:
                raise NotFoundError(f"Person {person_id} not found")
            follow_up = self._follow_ups.create_follow_up(
                FollowUpRequest(
                    person_id=person_id,
                    type=type,
                    title=title or f"Follow up: {person.personal_data.full_name}",
                    due_at=now + timedelta(hours=due_in_hours),
                    priority=FollowUpPriority(priority),
                    created_by=created_by,
                    notes=notes,
                    preferred_channel=FollowUpChannel(preferred_channel) if preferred_channel else None,
                ),
                now=now,
            )

        logger.info("follow_up_created", follow_up_id=follow_up.id, person_id=person_id, type=type)
        if self._notifier is not None:
            self._notifier.notify(
                NotificationEvent.FOLLOW_UP_CREATED,
                {"person_id": person_id, "follow_up_id": follow_up.id, "title": follow_up.title},
            )
        return follow_up

    def _create_for_guest_stage(
        self,
        type: str,
        priority: FollowUpPriority,
        hours: int,
        label: str,
        *,
        person_id: str,
        created_by: str,
        notes: str,
        now: datetime | None,
    ) -> FollowUp:
        person = self._people.get_by_id(person_id)
        if not person:
            raise NotFoundError(f"Person {person_id} not found")
        return self.create(
            person_id=person_id,
            type=type,
            title=f"{label}: {person.personal_data.full_name}",
            due_in_hours=hours,
            priority=priority,
            created_by=created_by,
            notes=notes,
            preferred_channel=FollowUpChannel.WHATSAPP,
            now=now,
        )

    def create_for_new_guest(
        self,
        person_id: str,
        *,
        created_by: str = "system",
        notes: str = "",
        now: datetime | None = None,
    ) -> FollowUp:
        timeframes = self._config.get_config().follow_up.timeframes
        return self._create_for_guest_stage(
            FOLLOW_UP_TYPE_NEW_GUEST,
            FollowUpPriority.HIGH,
            timeframes.new_guest_hours,
            "New guest follow-up",
            person_id=person_id,
            created_by=created_by,
            notes=notes,
            now=now,
        )

    def create_for_returning_guest(
        self,
        person_id: str,
        *,
        created_by: str = "system",
        notes: str = "",
        now: datetime | None = None,
    ) -> FollowUp:
        timeframes = self._config.get_config().follow_up.timeframes
        return self._create_for_guest_stage(
            FOLLOW_UP_TYPE_RETURNING_GUEST,
            FollowUpPriority.MEDIUM,
            timeframes.returning_guest_hours,
            "Returning guest follow-up",
            person_id=person_id,
            created_by=created_by,
            notes=notes,
            now=now,
        )

    def create_for_regular_guest(
        self,
        person_id: str,
        *,
        created_by: str = "system",
        notes: str = "",
        now: datetime | None = None,
    ) -> FollowUp:
        timeframes = self._config.get_config().follow_up.timeframes
        return self._create_for_guest_stage(
            FOLLOW_UP_TYPE_REGULAR_GUEST,
            FollowUpPriority.MEDIUM,
            timeframes.regular_guest_hours,
            "Regular guest follow-up",
            person_id=person_id,
            created_by=created_by,
            notes=notes,
            now=now,
        )

    def get(self, follow_up_id: str) -> FollowUp:
        follow_up = self._follow_ups.get_by_id(follow_up_id)
        if not follow_up:
            raise NotFoundError(f"Follow-up {follow_up_id} not found")
        return follow_up

    def has_open(self, person_id: str, type: str) -> bool:
        return bool(self._follow_ups.list_open_follow_ups(person_id, type))

    def list_open(self, person_id: str, type: Optional[str] = None) -> Sequence[FollowUp]:
        return self._follow_ups.list_open_follow_ups(person_id, type)

    def list_all(self) -> Sequence[FollowUp]:
        return self._follow_ups.list_all()

    def update_status(self, follow_up_id: str, status: FollowUpStatus, *, now: datetime | None = None) -> FollowUp:
        now = now or now_local()
        with self._uow.atomic():
            updated = self._follow_ups.update_status(follow_up_id, FollowUpStatus(status), now=now)
        if not updated:
            raise NotFoundError(f"Follow-up {follow_up_id} not found")
        return updated

    def log_action(
        self,
        follow_up_id: str,
        *,
        channel: FollowUpChannel,
        outcome: str,
        created_by: str,
        now: datetime | None = None,
    ) -> FollowUpAction:
        """Record a contact attempt; the follow-up's status is left alone."""
        now = now or now_local()
        require_non_empty(created_by, "created_by")

        with self._uow.atomic():
            self.get(follow_up_id)
            action = FollowUpAction(
                id=new_id("fua"),
                follow_up_id=follow_up_id,
                timestamp=now,
                channel=FollowUpChannel(channel),
                outcome=outcome or "",
                created_by=created_by,
            )
            self._follow_ups.log_action(action)

        logger.info("follow_up_action_logged", follow_up_id=follow_up_id, channel=action.channel.value)
        return action

    def list_actions(self, follow_up_id: str) -> Sequence[FollowUpAction]:
        self.get(follow_up_id)
        return self._follow_ups.list_actions(follow_up_id)
