from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Optional, Sequence

import structlog

from ..common.datetime_utils import now_local
from ..common.ids import new_id
from ..common.validators import require_non_empty
from ..core.enums import GuestType, MessageChannel, NotificationEvent, PersonCategory
from ..core.exceptions import NotFoundError, PromotionNotEligibleError
from ..notifications.messaging import MessagingChannel
from ..notifications.sink import Notifier
from ..settings.repository import ConfigProvider
from ..storage.store import UnitOfWork
from .evolution import apply_attendance_to_person, apply_evolution_rules
from .model import (
    EngagementFlags,
    GuestData,
    MemberData,
    MembershipDetails,
    Person,
    PersonalData,
    PersonAssignment,
    PersonEvolution,
)
from .repository import PersonRepository

logger = structlog.get_logger(__name__)


class PersonService:
    """Use cases around the person registry and the evolution engine."""

    def __init__(
        self,
        people: PersonRepository,
        config: ConfigProvider,
        uow: UnitOfWork,
        *,
        notifier: Optional[Notifier] = None,
        messaging: Optional[MessagingChannel] = None,
    ):
        self._people = people
        self._config = config
        self._uow = uow
        self._notifier = notifier
        self._messaging = messaging

    def _notify(self, event: NotificationEvent, payload: dict) -> None:
        if self._notifier is not None:
            self._notifier.notify(event, payload)

    def get(self, person_id: str) -> Person:
        person = self._people.get_by_id(person_id)
        if not person:
            raise NotFoundError(f"Person {person_id} not found")
        return person

    def list(self, *, category: Optional[PersonCategory] = None) -> Sequence[Person]:
        return self._people.list_all(category=category)

    def register_guest(
        self,
        *,
        personal_data: PersonalData,
        referral_source: str = "walk-in",
        referral_name: Optional[str] = None,
        first_visit_date: Optional[date] = None,
        is_worker: bool = False,
        tags: Sequence[str] = (),
        assignment: Optional[PersonAssignment] = None,
        now: datetime | None = None,
    ) -> Person:
        now = now or now_local()
        require_non_empty(personal_data.first_name, "first_name")
        first_visit_date = first_visit_date or now.date()

        # Registration is the first visit.
        person = Person(
            id=new_id("person"),
            category=PersonCategory.GUEST,
            personal_data=personal_data,
            guest_data=GuestData(
                referral_source=referral_source,
                referral_name=referral_name,
                first_visit_date=first_visit_date,
            ),
            evolution=PersonEvolution(
                visit_count=1,
                total_visits=1,
                first_visit_date=first_visit_date,
                last_visit_date=first_visit_date,
                current_streak=1,
                longest_streak=1,
            ),
            engagement=EngagementFlags(is_worker=bool(is_worker)),
            assignment=assignment or PersonAssignment(),
            tags=tuple(tags),
            created_at=now,
            updated_at=now,
        )

        with self._uow.atomic():
            person = apply_evolution_rules(person, self._config.get_config().evolution, now=now)
            self._people.save(person)

        logger.info("guest_registered", person_id=person.id)
        if person.evolution.guest_type in (None, GuestType.FIRST_TIME):
            self._notify(
                NotificationEvent.NEW_FIRST_TIME_GUEST,
                {"person_id": person.id, "title": f"New first-time guest: {personal_data.full_name}"},
            )
        return person

    def register_member(
        self,
        *,
        personal_data: PersonalData,
        membership: MembershipDetails,
        tags: Sequence[str] = (),
        assignment: Optional[PersonAssignment] = None,
        now: datetime | None = None,
    ) -> Person:
        now = now or now_local()
        require_non_empty(personal_data.first_name, "first_name")

        person = Person(
            id=new_id("person"),
            category=PersonCategory.MEMBER,
            personal_data=personal_data,
            member_data=MemberData(
                membership_date=membership.membership_date,
                membership_status=membership.membership_status,
                membership_number=membership.membership_number,
            ),
            engagement=EngagementFlags(is_worker=bool(membership.is_worker)),
            assignment=assignment or PersonAssignment(),
            tags=tuple(tags),
            created_at=now,
            updated_at=now,
        )

        with self._uow.atomic():
            person = apply_evolution_rules(person, self._config.get_config().evolution, now=now)
            self._people.save(person)

        logger.info("member_registered", person_id=person.id)
        return person

    def update_engagement(
        self,
        person_id: str,
        *,
        is_worker: Optional[bool] = None,
        receives_broadcasts: Optional[bool] = None,
        do_not_contact: Optional[bool] = None,
        now: datetime | None = None,
    ) -> Person:
        """Change only the flags that are given."""
        now = now or now_local()
        changes = {
            k: bool(v)
            for k, v in (
                ("is_worker", is_worker),
                ("receives_broadcasts", receives_broadcasts),
                ("do_not_contact", do_not_contact),
            )
            if v is not None
        }
        with self._uow.atomic():
            person = self.get(person_id)
            updated = replace(person, engagement=replace(person.engagement, **changes), updated_at=now)
            self._people.save(updated)
        logger.info("engagement_updated", person_id=person_id, **changes)
        return updated

    def update_assignment(self, person_id: str, assignment: PersonAssignment, *, now: datetime | None = None) -> Person:
        now = now or now_local()
        with self._uow.atomic():
            person = self.get(person_id)
            updated = replace(person, assignment=assignment, updated_at=now)
            self._people.save(updated)
        return updated

    def apply_attendance(
        self,
        person_id: str,
        *,
        program_id: str,
        on_date: date,
        present: bool,
        now: datetime | None = None,
    ) -> Person:
        now = now or now_local()
        with self._uow.atomic():
            person = self.get(person_id)
            was_ready = person.evolution.ready_for_promotion
            updated = apply_attendance_to_person(
                person,
                program_id=program_id,
                on_date=on_date,
                present=present,
                config=self._config.get_config().evolution,
                now=now,
            )
            self._people.save(updated)

        if updated.evolution.ready_for_promotion and not was_ready:
            logger.info("guest_ready_for_promotion", person_id=person_id, visit_count=updated.evolution.visit_count)
            self._notify(
                NotificationEvent.GUEST_READY_FOR_PROMOTION,
                {"person_id": person_id, "title": f"Ready for membership: {updated.personal_data.full_name}"},
            )
        return updated

    def recompute_evolution(self, person_id: str, *, now: datetime | None = None) -> Person:
        """Re-run classification, e.g. after thresholds were changed."""
        now = now or now_local()
        with self._uow.atomic():
            person = self.get(person_id)
            updated = apply_evolution_rules(person, self._config.get_config().evolution, now=now)
            if updated != person:
                self._people.save(updated)
        return updated

    def record_birthday_message(self, person_id: str, year: int) -> Person:
        with self._uow.atomic():
            person = self.get(person_id)
            updated = replace(person, evolution=replace(person.evolution, last_birthday_message_year=int(year)))
            self._people.save(updated)
        return updated

    def promote_guest_to_member(
        self,
        person_id: str,
        membership: MembershipDetails,
        *,
        force: bool = False,
        now: datetime | None = None,
    ) -> Person:
        """Flip a guest to member; guest data and every history are kept.

        There is no reverse transition.
        """
        now = now or now_local()
        config = self._config.get_config()

        with self._uow.atomic():
            person = self.get(person_id)
            if person.category != PersonCategory.GUEST:
                raise PromotionNotEligibleError("Only guests can be promoted to members")

            ev = person.evolution
            threshold = config.evolution.thresholds.regular_guest_to_member_threshold
            eligible = ev.guest_type == GuestType.REGULAR and ev.visit_count >= threshold
            if not eligible and not force:
                raise PromotionNotEligibleError(
                    f"Guest needs guest_type=regular and at least {threshold} visits "
                    f"(has {ev.guest_type.value if ev.guest_type else 'none'}, {ev.visit_count})"
                )

            is_worker = person.engagement.is_worker if membership.is_worker is None else bool(membership.is_worker)
            promoted = replace(
                person,
                category=PersonCategory.MEMBER,
                member_data=MemberData(
                    membership_date=membership.membership_date,
                    membership_status=membership.membership_status,
                    membership_number=membership.membership_number,
                ),
                engagement=replace(person.engagement, is_worker=is_worker),
                evolution=replace(ev, guest_type=None, ready_for_promotion=False),
                updated_at=now,
            )
            promoted = apply_evolution_rules(promoted, config.evolution, now=now)
            self._people.save(promoted)

        logger.info("guest_promoted", person_id=person_id, forced=bool(force and not eligible))
        if config.messaging.send_welcome_on_promotion:
            self._send_welcome(promoted, config.messaging.welcome_channel, config.messaging.welcome_template,
                               config.system_info.church_name)
        return promoted

    def _send_welcome(self, person: Person, channel: MessageChannel, template: str, church_name: str) -> None:
        if self._messaging is None or person.engagement.do_not_contact:
            return
        body = template.format(
            first_name=person.personal_data.first_name,
            last_name=person.personal_data.last_name,
            full_name=person.personal_data.full_name,
            church_name=church_name,
        )
        try:
            result = self._messaging.send(person.id, channel, body)
        except Exception as exc:
            logger.warning("welcome_message_failed", person_id=person.id, error=str(exc))
            return
        if not result.success:
            logger.warning("welcome_message_failed", person_id=person.id, error=result.error_message)
