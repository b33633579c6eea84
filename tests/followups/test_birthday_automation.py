from __future__ import annotations

from datetime import date

from church_crm.core.enums import MessageChannel
from church_crm.followups.birthdays import BirthdayAutomation, due_birthday
from church_crm.notifications.model import SendResult
from church_crm.settings.patches import BirthdayPatch


class FakeChannel:
    def __init__(self, success=True):
        self.sent = []
        self._success = success

    def send(self, person_id, channel, body):
        self.sent.append((person_id, channel, body))
        if self._success:
            return SendResult(success=True, provider_message_id="wa-1")
        return SendResult(success=False, error_message="invalid number")


def _automation(container, channel):
    return BirthdayAutomation(
        container.person_service,
        container.follow_up_service,
        container.config_repo,
        messaging=channel,
    )


def test_due_birthday_window():
    today = date(2026, 3, 22)

    assert due_birthday(date(1990, 3, 22), today, 0) == date(2026, 3, 22)
    assert due_birthday(date(1990, 3, 20), today, 0) == date(2026, 3, 20)
    assert due_birthday(date(1990, 3, 19), today, 0) is None
    assert due_birthday(date(1990, 3, 25), today, 0) is None
    assert due_birthday(date(1990, 3, 25), today, 3) == date(2026, 3, 25)


def test_lead_time_across_new_year():
    assert due_birthday(date(1985, 1, 1), date(2026, 12, 30), 2) == date(2027, 1, 1)


def test_leap_day_birthday_in_common_year():
    assert due_birthday(date(2000, 2, 29), date(2026, 2, 28), 0) == date(2026, 2, 28)


def test_follow_up_created_once_per_year(container, make_guest, now):
    guest = make_guest(date_of_birth=date(1990, 3, 22))
    make_guest("No", "Birthday")

    first = container.birthday_automation.run_birthday_automation(now=now)
    second = container.birthday_automation.run_birthday_automation(now=now)

    assert first.config_enabled is True
    assert first.considered_count == 2
    assert first.scheduled_count == 1
    assert first.follow_ups_created == 1
    assert second.scheduled_count == 0
    assert container.person_service.get(guest.id).evolution.last_birthday_message_year == 2026
    [follow_up] = container.follow_up_service.list_open(guest.id, "birthday")
    assert follow_up.title == "Birthday follow-up: Ada Obi"


def test_dry_run_changes_nothing(container, make_guest, now):
    guest = make_guest(date_of_birth=date(1990, 3, 21))

    result = container.birthday_automation.run_birthday_automation(now=now, dry_run=True)

    assert result.scheduled_count == 1
    assert result.follow_ups_created == 0
    assert container.follow_up_service.list_all() == []
    assert container.person_service.get(guest.id).evolution.last_birthday_message_year is None


def test_sends_message_when_automatic(container, make_member, now):
    container.config_service.update_birthdays(BirthdayPatch(send_automatically=True, default_channel=MessageChannel.SMS))
    member = make_member(date_of_birth=date(1979, 3, 22))
    channel = FakeChannel()

    result = _automation(container, channel).run_birthday_automation(now=now)

    assert result.sent_count == 1
    assert channel.sent[0][0] == member.id
    assert channel.sent[0][1] == MessageChannel.SMS
    assert "Happy Birthday Tunde" in channel.sent[0][2]
    assert container.person_service.get(member.id).evolution.last_birthday_message_year == 2026


def test_failed_send_is_captured_and_retried_next_run(container, make_member, now):
    container.config_service.update_birthdays(BirthdayPatch(send_automatically=True))
    member = make_member(date_of_birth=date(1979, 3, 22))

    result = _automation(container, FakeChannel(success=False)).run_birthday_automation(now=now)

    assert result.sent_count == 0
    assert result.details[0].error == "invalid number"
    assert container.person_service.get(member.id).evolution.last_birthday_message_year is None


def test_do_not_contact_is_skipped(container, make_guest, now):
    guest = make_guest(date_of_birth=date(1990, 3, 22))
    container.person_service.update_engagement(guest.id, do_not_contact=True, now=now)

    result = container.birthday_automation.run_birthday_automation(now=now)

    assert result.scheduled_count == 0


def test_disabled_birthdays(container, make_guest, now):
    make_guest(date_of_birth=date(1990, 3, 22))
    container.config_service.update_birthdays(BirthdayPatch(enabled=False))

    result = container.birthday_automation.run_birthday_automation(now=now)

    assert result.config_enabled is False
    assert result.details == ()
