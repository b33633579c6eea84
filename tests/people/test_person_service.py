from __future__ import annotations

from dataclasses import replace
from datetime import date

import pytest

from church_crm.core.enums import GuestType, MemberRating, NotificationEvent, PersonCategory
from church_crm.core.exceptions import NotFoundError, PromotionNotEligibleError
from church_crm.notifications.model import SendResult
from church_crm.people.model import MembershipDetails, PersonAssignment
from church_crm.settings.model import MessagingConfig, SystemConfig
from church_crm.settings.patches import EvolutionPatch, ThresholdsPatch

MEMBERSHIP = MembershipDetails(membership_date=date(2026, 3, 22), membership_number="M-001")


class RecordingChannel:
    def __init__(self, result=None, error=None):
        self.sent = []
        self._result = result or SendResult(success=True, provider_message_id="msg-1")
        self._error = error

    def send(self, person_id, channel, body):
        self.sent.append((person_id, channel, body))
        if self._error:
            raise self._error
        return self._result


def test_new_guest_starts_first_time_and_notifies(container, make_guest):
    guest = make_guest()

    assert guest.category == PersonCategory.GUEST
    assert guest.evolution.guest_type == GuestType.FIRST_TIME
    assert guest.evolution.attendance_history == ()

    events = [n.event_key for n in container.notification_sink.list_unread()]
    assert events == [NotificationEvent.NEW_FIRST_TIME_GUEST.value]


def test_get_unknown_person_raises(container):
    with pytest.raises(NotFoundError):
        container.person_service.get("person_missing")


def test_promotion_requires_member_threshold_even_for_regular_guest(container, make_guest, attend, now):
    guest = make_guest()
    attend(guest.id, 5)
    assert container.person_service.get(guest.id).evolution.guest_type == GuestType.REGULAR

    with pytest.raises(PromotionNotEligibleError):
        container.person_service.promote_guest_to_member(guest.id, MEMBERSHIP, now=now)

    assert container.person_service.get(guest.id).category == PersonCategory.GUEST


def test_force_bypasses_thresholds(container, make_guest, now):
    guest = make_guest()

    promoted = container.person_service.promote_guest_to_member(guest.id, MEMBERSHIP, force=True, now=now)

    assert promoted.category == PersonCategory.MEMBER


def test_members_cannot_be_promoted_even_with_force(container, make_member, now):
    member = make_member()

    with pytest.raises(PromotionNotEligibleError):
        container.person_service.promote_guest_to_member(member.id, MEMBERSHIP, force=True, now=now)


def test_promotion_keeps_history_and_rates_member_immediately(container, make_guest, attend, now):
    guest = make_guest()
    attend(guest.id, 7)
    ready = container.person_service.get(guest.id)
    assert ready.evolution.ready_for_promotion is True

    promoted = container.person_service.promote_guest_to_member(guest.id, MEMBERSHIP, now=now)

    assert promoted.category == PersonCategory.MEMBER
    assert promoted.guest_data == ready.guest_data
    assert promoted.member_data.membership_number == "M-001"
    assert promoted.evolution.attendance_history == ready.evolution.attendance_history
    assert promoted.evolution.visit_count == 8
    assert promoted.evolution.guest_type is None
    assert promoted.evolution.ready_for_promotion is False
    assert promoted.evolution.member_rating == MemberRating.ADHERENT
    assert container.person_service.get(guest.id) == promoted


def test_ready_for_promotion_notified_once(container, make_guest, attend):
    guest = make_guest()
    attend(guest.id, 9)

    events = [n.event_key for n in container.notification_sink.list_unread()]
    assert events.count(NotificationEvent.GUEST_READY_FOR_PROMOTION.value) == 1


def _enable_welcome(container):
    container.config_repo.save_config(replace(SystemConfig(), messaging=MessagingConfig(send_welcome_on_promotion=True)))


def test_welcome_message_sent_on_promotion(container, make_guest, now):
    from church_crm.people.service import PersonService

    channel = RecordingChannel()
    service = PersonService(container.people_repo, container.config_repo, container.uow, messaging=channel)
    _enable_welcome(container)
    guest = make_guest()

    service.promote_guest_to_member(guest.id, MEMBERSHIP, force=True, now=now)

    assert len(channel.sent) == 1
    assert channel.sent[0][0] == guest.id
    assert "Ada" in channel.sent[0][2]


def test_failed_welcome_message_does_not_undo_promotion(container, make_guest, now):
    from church_crm.people.service import PersonService

    channel = RecordingChannel(error=RuntimeError("provider down"))
    service = PersonService(container.people_repo, container.config_repo, container.uow, messaging=channel)
    _enable_welcome(container)
    guest = make_guest()

    promoted = service.promote_guest_to_member(guest.id, MEMBERSHIP, force=True, now=now)

    assert promoted.category == PersonCategory.MEMBER
    assert container.person_service.get(guest.id).category == PersonCategory.MEMBER


def test_do_not_contact_suppresses_welcome(container, make_guest, now):
    from church_crm.people.service import PersonService

    channel = RecordingChannel()
    service = PersonService(container.people_repo, container.config_repo, container.uow, messaging=channel)
    _enable_welcome(container)
    guest = make_guest()
    service.update_engagement(guest.id, do_not_contact=True, now=now)

    service.promote_guest_to_member(guest.id, MEMBERSHIP, force=True, now=now)

    assert channel.sent == []


def test_registration_counts_as_the_first_visit(container, make_guest, now):
    guest = make_guest(first_visit_date=date(2026, 3, 15))

    ev = guest.evolution
    assert (ev.visit_count, ev.total_visits) == (1, 1)
    assert (ev.current_streak, ev.longest_streak) == (1, 1)
    assert ev.first_visit_date == ev.last_visit_date == date(2026, 3, 15)
    assert guest.guest_data.first_visit_date == date(2026, 3, 15)


def test_guest_is_returning_after_one_attended_program(container, make_guest, attend):
    guest = make_guest()
    attend(guest.id, 1)

    assert container.person_service.get(guest.id).evolution.guest_type == GuestType.RETURNING


def test_update_engagement_changes_only_given_flags(container, make_guest, now):
    guest = make_guest(is_worker=True)

    updated = container.person_service.update_engagement(guest.id, do_not_contact=True, now=now)

    assert updated.engagement.do_not_contact is True
    assert updated.engagement.is_worker is True
    assert updated.engagement.receives_broadcasts is True
    assert container.person_service.get(guest.id).engagement == updated.engagement


def test_assignment_is_stored_and_updated(container, make_guest, now):
    guest = make_guest(assignment=PersonAssignment(primary_rm_user_id="rm-1"))
    assert container.person_service.get(guest.id).assignment.primary_rm_user_id == "rm-1"

    container.person_service.update_assignment(
        guest.id, PersonAssignment(primary_rm_user_id="rm-2", secondary_rm_user_ids=("rm-3",), group_id="cell-9"), now=now
    )

    assignment = container.person_service.get(guest.id).assignment
    assert assignment == PersonAssignment(primary_rm_user_id="rm-2", secondary_rm_user_ids=("rm-3",), group_id="cell-9")


def test_recompute_applies_changed_thresholds(container, make_guest, attend, now):
    guest = make_guest()
    attend(guest.id, 2)
    assert container.person_service.get(guest.id).evolution.guest_type == GuestType.RETURNING

    container.config_service.update_evolution(
        EvolutionPatch(thresholds=ThresholdsPatch(returning_to_regular_threshold=3))
    )
    recomputed = container.person_service.recompute_evolution(guest.id, now=now)

    assert recomputed.evolution.guest_type == GuestType.REGULAR
    assert container.person_service.get(guest.id).evolution.guest_type == GuestType.REGULAR
