from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from church_crm.core.enums import FollowUpChannel, FollowUpPriority, FollowUpStatus
from church_crm.core.exceptions import NotFoundError, ValidationError
from church_crm.settings.patches import FollowUpPatch


def test_guest_stage_follow_ups_use_configured_timeframes(container, make_guest, now):
    guest = make_guest()
    service = container.follow_up_service

    new = service.create_for_new_guest(guest.id, now=now)
    returning = service.create_for_returning_guest(guest.id, now=now)
    regular = service.create_for_regular_guest(guest.id, now=now)

    assert [(f.type, f.priority) for f in (new, returning, regular)] == [
        ("new-guest", FollowUpPriority.HIGH),
        ("returning-guest", FollowUpPriority.MEDIUM),
        ("regular-guest", FollowUpPriority.MEDIUM),
    ]
    assert new.due_at == now + timedelta(hours=24)
    assert returning.due_at == now + timedelta(hours=48)
    assert regular.due_at == now + timedelta(hours=72)
    assert all(f.preferred_channel == FollowUpChannel.WHATSAPP for f in (new, returning, regular))
    assert new.title == "New guest follow-up: Ada Obi"


def test_changed_timeframe_moves_due_date(container, make_guest, now):
    guest = make_guest()
    container.config_service.update_follow_up(FollowUpPatch(new_guest_hours=6))

    follow_up = container.follow_up_service.create_for_new_guest(guest.id, created_by="rm-1", now=now)

    assert follow_up.due_at == now + timedelta(hours=6)
    assert follow_up.created_by == "rm-1"


def test_guest_stage_follow_up_for_unknown_person(container, now):
    with pytest.raises(NotFoundError):
        container.follow_up_service.create_for_returning_guest("person_missing", now=now)

    assert container.follow_up_service.list_all() == []


def test_action_log_is_kept_per_follow_up_in_time_order(container, make_guest, now):
    guest = make_guest()
    service = container.follow_up_service
    first = service.create_for_new_guest(guest.id, now=now)
    other = service.create_for_regular_guest(guest.id, now=now)

    later = now + timedelta(hours=2)
    service.log_action(first.id, channel=FollowUpChannel.VISIT, outcome="Met at home", created_by="rm-1", now=later)
    service.log_action(first.id, channel=FollowUpChannel.PHONE_CALL, outcome="No answer", created_by="rm-1", now=now)
    service.log_action(other.id, channel=FollowUpChannel.SMS, outcome="Sent", created_by="rm-2", now=now)

    actions = service.list_actions(first.id)
    assert [(a.channel, a.outcome) for a in actions] == [
        (FollowUpChannel.PHONE_CALL, "No answer"),
        (FollowUpChannel.VISIT, "Met at home"),
    ]
    assert actions[1].timestamp == later
    assert service.get(first.id).status == FollowUpStatus.OPEN


def test_logging_action_needs_known_follow_up_and_author(container, make_guest, now):
    guest = make_guest()
    follow_up = container.follow_up_service.create_for_new_guest(guest.id, now=now)

    with pytest.raises(NotFoundError):
        container.follow_up_service.log_action(
            "fu_missing", channel=FollowUpChannel.SMS, outcome="", created_by="rm-1", now=now
        )
    with pytest.raises(ValidationError):
        container.follow_up_service.log_action(
            follow_up.id, channel=FollowUpChannel.SMS, outcome="", created_by=" ", now=now
        )

    assert container.follow_up_service.list_actions(follow_up.id) == []


def test_completing_sets_completed_at(container, make_guest, now):
    guest = make_guest()
    follow_up = container.follow_up_service.create_for_new_guest(guest.id, now=now)
    done_at = datetime(2026, 3, 23, 9, 0)

    updated = container.follow_up_service.update_status(follow_up.id, FollowUpStatus.COMPLETED, now=done_at)

    assert updated.completed_at == done_at
    assert container.follow_up_service.list_open(guest.id) == []
