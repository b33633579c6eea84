from __future__ import annotations

from datetime import date, datetime, time, timedelta

import pytest

from church_crm.container import build_container
from church_crm.people.model import MembershipDetails, PersonalData
from church_crm.storage.store import InMemoryStore

NOW = datetime(2026, 3, 22, 12, 0, 0)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def container():
    return build_container(store=InMemoryStore())


@pytest.fixture
def make_guest(container):
    def _make(first_name="Ada", last_name="Obi", *, date_of_birth=None, **kwargs):
        kwargs.setdefault("now", NOW)
        return container.person_service.register_guest(
            personal_data=PersonalData(first_name, last_name, date_of_birth=date_of_birth),
            **kwargs,
        )

    return _make


@pytest.fixture
def make_member(container):
    def _make(first_name="Tunde", last_name="Bello", *, date_of_birth=None, is_worker=None):
        return container.person_service.register_member(
            personal_data=PersonalData(first_name, last_name, date_of_birth=date_of_birth),
            membership=MembershipDetails(membership_date=date(2024, 1, 7), is_worker=is_worker),
            now=NOW,
        )

    return _make


@pytest.fixture
def make_program(container):
    def _make(on_date=None, *, type="sunday-service", start_time=time(9, 0), expected_attendance=None, name=None):
        on_date = on_date or NOW.date()
        return container.program_service.create(
            name=name or f"Service {on_date.isoformat()}",
            type=type,
            on_date=on_date,
            start_time=start_time,
            expected_attendance=expected_attendance,
            now=NOW,
        )

    return _make


@pytest.fixture
def attend(container, make_program):
    """Mark `person_id` present at `count` weekly programs ending on `last`."""

    def _attend(person_id, count, *, last=None):
        last = last or NOW.date()
        programs = [make_program(last - timedelta(weeks=count - 1 - i)) for i in range(count)]
        for p in programs:
            container.attendance_ledger.mark_attendance(p.id, person_id, "present", recorded_by="usher-1", now=NOW)
        return programs

    return _attend
