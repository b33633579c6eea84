from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional

import structlog

from ..common.datetime_utils import now_local
from ..core.constants import BIRTHDAY_MAX_LAG_DAYS
from ..core.enums import FollowUpPriority, NotificationEvent
from ..notifications.messaging import MessagingChannel
from ..notifications.sink import Notifier
from ..people.model import Person
from ..people.service import PersonService
from ..settings.model import SystemConfig
from ..settings.repository import ConfigProvider
from .model import BirthdayDetail, BirthdayRunResult
from .service import FollowUpService

logger = structlog.get_logger(__name__)

BIRTHDAY_FOLLOW_UP_HOURS = 24


def birthday_in(year: int, dob: date) -> date:
    # Feb 29 birthdays are celebrated on Feb 28 in common years.
    try:
        return dob.replace(year=year)
    except ValueError:
        return date(year, 2, 28)


def due_birthday(dob: date, today: date, lead_time_days: int) -> Optional[date]:
    """The birthday whose (lead-adjusted) target falls within the catch-up window.

    Next year's birthday is checked too, so a lead time that crosses New
    Year is honored.
    """
    for year in (today.year, today.year + 1):
        birthday = birthday_in(year, dob)
        target = birthday - timedelta(days=lead_time_days)
        if target <= today and (today - target).days <= BIRTHDAY_MAX_LAG_DAYS:
            return birthday
    return None


class BirthdayAutomation:
    """Sends birthday greetings or creates follow-ups, once per person per year."""

    def __init__(
        self,
        people: PersonService,
        follow_ups: FollowUpService,
        config: ConfigProvider,
        *,
        messaging: Optional[MessagingChannel] = None,
        notifier: Optional[Notifier] = None,
    ):
        self._people = people
        self._follow_ups = follow_ups
        self._config = config
        self._messaging = messaging
        self._notifier = notifier

    def run_birthday_automation(
        self,
        *,
        now: datetime | None = None,
        dry_run: bool = False,
        created_by: str = "system",
    ) -> BirthdayRunResult:
        now = now or now_local()
        config = self._config.get_config()
        cfg = config.birthdays
        if not cfg.enabled:
            return BirthdayRunResult(config_enabled=False)

        try:
            people = list(self._people.list())
        except Exception as exc:
            logger.exception("birthday_scan_failed", error=str(exc))
            return BirthdayRunResult(config_enabled=True, error=str(exc))

        today = now.date()
        details: list[BirthdayDetail] = []
        for person in people:
            dob = person.personal_data.date_of_birth
            if dob is None or person.engagement.do_not_contact:
                continue
            birthday = due_birthday(dob, today, cfg.lead_time_days)
            if birthday is None or person.evolution.last_birthday_message_year == birthday.year:
                continue

            if dry_run:
                details.append(BirthdayDetail(person_id=person.id, channel=cfg.default_channel.value))
                continue
            details.append(self._handle(person, birthday.year, config, created_by=created_by, now=now))

        result = BirthdayRunResult(
            config_enabled=True,
            considered_count=len(people),
            scheduled_count=len(details),
            sent_count=sum(1 for d in details if d.sent),
            follow_ups_created=sum(1 for d in details if d.follow_up_created),
            details=tuple(details),
        )
        logger.info(
            "birthday_scan_complete",
            scheduled=result.scheduled_count,
            sent=result.sent_count,
            follow_ups_created=result.follow_ups_created,
            dry_run=dry_run,
        )
        return result

    def _handle(self, person: Person, year: int, config: SystemConfig, *, created_by: str, now: datetime) -> BirthdayDetail:
        cfg = config.birthdays
        channel = cfg.default_channel
        full_name = person.personal_data.full_name
        try:
            if cfg.send_automatically:
                body = cfg.message_template.format(
                    first_name=person.personal_data.first_name,
                    last_name=person.personal_data.last_name,
                    full_name=full_name,
                    church_name=config.system_info.church_name,
                )
                if self._messaging is None:
                    return BirthdayDetail(person_id=person.id, channel=channel.value, error="No messaging channel")
                res = self._messaging.send(person.id, channel, body)
                if not res.success:
                    return BirthdayDetail(
                        person_id=person.id,
                        channel=channel.value,
                        error=res.error_message or "Failed to send birthday message",
                    )
                self._people.record_birthday_message(person.id, year)
                self._notify({"person_id": person.id, "title": f"Birthday message sent: {full_name}"})
                return BirthdayDetail(person_id=person.id, channel=channel.value, sent=True)

            follow_up = self._follow_ups.create(
                person_id=person.id,
                type=cfg.follow_up_type,
                title=f"Birthday follow-up: {full_name}",
                due_in_hours=BIRTHDAY_FOLLOW_UP_HOURS,
                priority=FollowUpPriority.MEDIUM,
                created_by=created_by,
                notes="Send a personalised birthday greeting and prayer.",
                now=now,
            )
            self._people.record_birthday_message(person.id, year)
            self._notify(
                {"person_id": person.id, "follow_up_id": follow_up.id, "title": f"Birthday follow-up created: {full_name}"}
            )
            return BirthdayDetail(person_id=person.id, channel=channel.value, follow_up_created=True)
        except Exception as exc:
            logger.warning("birthday_person_failed", person_id=person.id, error=str(exc))
            return BirthdayDetail(person_id=person.id, channel=channel.value, error=str(exc))

    def _notify(self, payload: dict) -> None:
        if self._notifier is not None:
            self._notifier.notify(NotificationEvent.UPCOMING_BIRTHDAY, payload)
