from __future__ import annotations

from datetime import datetime, time

import pytest

from church_crm.core.enums import AttendanceStatus, TallyStatus
from church_crm.core.exceptions import (
    AlreadyMappedError,
    InvalidStateError,
    NoneAvailableError,
    NotFoundError,
    ValidationError,
)
from church_crm.settings.patches import TallyPatch
from church_crm.tally.model import Issued, Logged, Void

ISSUED_AT = datetime(2026, 3, 22, 9, 5)
MAPPED_AT = datetime(2026, 3, 22, 13, 40)


def _codes(tallies):
    return [t.code for t in tallies]


def test_generation_is_idempotent_for_same_count(container, make_program):
    program = make_program()
    tallies = container.tally_service

    first = tallies.generate_tallies_for_program(program.id, 3)
    second = tallies.generate_tallies_for_program(program.id, 3)

    assert _codes(first.created) == ["T001", "T002", "T003"]
    assert (first.from_code, first.to_code) == ("T001", "T003")
    assert second.created == ()
    assert _codes(tallies.list_for_program(program.id)) == ["T001", "T002", "T003"]


def test_topping_up_keeps_existing_codes_and_states(container, make_program):
    program = make_program()
    tallies = container.tally_service
    tallies.generate_tallies_for_program(program.id, 3)
    issued = tallies.issue_tally(program.id, issued_by_user_id="usher-1", now=ISSUED_AT)

    result = tallies.generate_tallies_for_program(program.id, 5)

    assert _codes(result.created) == ["T004", "T005"]
    assert tallies.get(program.id, issued.code).state == issued.state
    assert tallies.get(program.id, "T001").status == TallyStatus.ISSUED


def test_default_count_comes_from_program_expected_attendance(container, make_program):
    program = make_program(expected_attendance=4)

    result = container.tally_service.generate_tallies_for_program(program.id)

    assert len(result.tallies) == 4


def test_generation_follows_configured_prefix_and_padding(container, make_program):
    container.config_service.update_tally(TallyPatch(code_prefix="SUN-", code_padding=4))
    program = make_program()

    result = container.tally_service.generate_tallies_for_program(program.id, 2)

    assert _codes(result.created) == ["SUN-0001", "SUN-0002"]


def test_negative_count_is_rejected(container, make_program):
    program = make_program()

    with pytest.raises(ValidationError):
        container.tally_service.generate_tallies_for_program(program.id, -1)


def test_unknown_program_is_rejected(container):
    with pytest.raises(NotFoundError):
        container.tally_service.generate_tallies_for_program("program_missing", 3)


def test_disabled_feature_is_a_silent_no_op(container, make_program):
    program = make_program()
    container.config_service.update_tally(TallyPatch(enabled=False))

    result = container.tally_service.generate_tallies_for_program(program.id, 3)

    assert result.tallies == () and result.created == ()
    assert container.tally_service.issue_tally(program.id, issued_by_user_id="usher-1") is None


def test_program_creation_can_generate_tallies(container, make_program):
    container.config_service.update_tally(TallyPatch(auto_generate_on_program_create=True))

    program = make_program(expected_attendance=2)

    assert _codes(container.tally_service.list_for_program(program.id)) == ["T001", "T002"]


def test_auto_issue_takes_lowest_available_code(container, make_program):
    program = make_program()
    tallies = container.tally_service
    tallies.generate_tallies_for_program(program.id, 3)
    tallies.issue_tally(program.id, issued_by_user_id="usher-1", code="T001", now=ISSUED_AT)

    tally = tallies.issue_tally(program.id, issued_by_user_id="usher-1", now=ISSUED_AT)

    assert tally.code == "T002"
    assert isinstance(tally.state, Issued)
    assert tally.issued_at == ISSUED_AT


def test_issue_fails_when_none_available(container, make_program):
    program = make_program()
    tallies = container.tally_service
    tallies.generate_tallies_for_program(program.id, 1)
    tallies.issue_tally(program.id, issued_by_user_id="usher-1", now=ISSUED_AT)

    with pytest.raises(NoneAvailableError):
        tallies.issue_tally(program.id, issued_by_user_id="usher-1", now=ISSUED_AT)


def test_issue_explicit_code_must_exist_and_be_available(container, make_program):
    program = make_program()
    tallies = container.tally_service
    tallies.generate_tallies_for_program(program.id, 2)
    tallies.issue_tally(program.id, issued_by_user_id="usher-1", code="T001", now=ISSUED_AT)

    with pytest.raises(InvalidStateError):
        tallies.issue_tally(program.id, issued_by_user_id="usher-1", code="T001", now=ISSUED_AT)
    with pytest.raises(NotFoundError):
        tallies.issue_tally(program.id, issued_by_user_id="usher-1", code="T999", now=ISSUED_AT)


def test_issue_with_known_person_logs_and_records_attendance(container, make_guest, make_program):
    guest = make_guest()
    program = make_program()
    tallies = container.tally_service
    tallies.generate_tallies_for_program(program.id, 2)

    tally = tallies.issue_tally(
        program.id, issued_by_user_id="usher-1", person_id=guest.id, source="qr", now=ISSUED_AT
    )

    assert isinstance(tally.state, Logged)
    assert tally.person_id == guest.id
    record = container.attendance_ledger.get(program.id, guest.id)
    assert record.status == AttendanceStatus.PRESENT
    assert record.timestamp == ISSUED_AT
    assert record.tally_id == tally.id
    assert container.person_service.get(guest.id).evolution.visit_count == 2


def test_issue_with_unknown_person_leaves_tally_available(container, make_program):
    program = make_program()
    tallies = container.tally_service
    tallies.generate_tallies_for_program(program.id, 1)

    with pytest.raises(NotFoundError):
        tallies.issue_tally(program.id, issued_by_user_id="usher-1", person_id="person_missing", now=ISSUED_AT)

    assert tallies.get(program.id, "T001").status == TallyStatus.AVAILABLE


def test_mapping_keeps_arrival_time_not_mapping_time(container, make_guest, make_program):
    guest = make_guest()
    program = make_program()
    tallies = container.tally_service
    tallies.generate_tallies_for_program(program.id, 1)
    issued = tallies.issue_tally(program.id, issued_by_user_id="usher-1", now=ISSUED_AT)

    mapped = tallies.map_tally_to_person(program.id, issued.code, guest.id, source="card", now=MAPPED_AT)

    assert isinstance(mapped.state, Logged)
    assert mapped.state.issued_at == ISSUED_AT
    assert mapped.state.mapped_at == MAPPED_AT
    assert mapped.state.check_in_source == "card"
    record = container.attendance_ledger.get(program.id, guest.id)
    assert record.timestamp == ISSUED_AT
    assert record.recorded_by == "usher-1"


def test_mapping_twice_is_rejected_even_for_same_person(container, make_guest, make_program):
    guest = make_guest()
    program = make_program()
    tallies = container.tally_service
    tallies.generate_tallies_for_program(program.id, 1)
    tallies.issue_tally(program.id, issued_by_user_id="usher-1", now=ISSUED_AT)
    tallies.map_tally_to_person(program.id, "T001", guest.id, now=MAPPED_AT)

    with pytest.raises(AlreadyMappedError):
        tallies.map_tally_to_person(program.id, "T001", guest.id, now=MAPPED_AT)


def test_only_issued_tallies_can_be_mapped(container, make_guest, make_program):
    guest = make_guest()
    program = make_program()
    tallies = container.tally_service
    tallies.generate_tallies_for_program(program.id, 2)
    tallies.void_tally(program.id, "T002", voided_by_user_id="admin", now=ISSUED_AT)

    with pytest.raises(InvalidStateError):
        tallies.map_tally_to_person(program.id, "T001", guest.id, now=MAPPED_AT)
    with pytest.raises(InvalidStateError):
        tallies.map_tally_to_person(program.id, "T002", guest.id, now=MAPPED_AT)
    with pytest.raises(NotFoundError):
        tallies.map_tally_to_person(program.id, "T404", guest.id, now=MAPPED_AT)


def test_mapping_unknown_person_leaves_tally_issued(container, make_program):
    program = make_program()
    tallies = container.tally_service
    tallies.generate_tallies_for_program(program.id, 1)
    tallies.issue_tally(program.id, issued_by_user_id="usher-1", now=ISSUED_AT)

    with pytest.raises(NotFoundError):
        tallies.map_tally_to_person(program.id, "T001", "person_missing", now=MAPPED_AT)

    assert tallies.get(program.id, "T001").status == TallyStatus.ISSUED


def test_void_allowed_from_available_and_issued_only(container, make_guest, make_program):
    guest = make_guest()
    program = make_program()
    tallies = container.tally_service
    tallies.generate_tallies_for_program(program.id, 3)
    tallies.issue_tally(program.id, issued_by_user_id="usher-1", code="T002", now=ISSUED_AT)
    tallies.issue_tally(program.id, issued_by_user_id="usher-1", code="T003", person_id=guest.id, now=ISSUED_AT)

    assert isinstance(tallies.void_tally(program.id, "T001", now=MAPPED_AT).state, Void)
    voided = tallies.void_tally(program.id, "T002", now=MAPPED_AT)
    assert voided.state.issued_at == ISSUED_AT

    with pytest.raises(InvalidStateError):
        tallies.void_tally(program.id, "T003", now=MAPPED_AT)
    with pytest.raises(InvalidStateError):
        tallies.void_tally(program.id, "T001", now=MAPPED_AT)


def test_report_counts_and_arrival_buckets(container, make_guest, make_program):
    guest = make_guest()
    program = make_program(start_time=time(9, 0))
    tallies = container.tally_service
    tallies.generate_tallies_for_program(program.id, 6)

    tallies.issue_tally(program.id, issued_by_user_id="u", now=datetime(2026, 3, 22, 8, 55))
    tallies.issue_tally(program.id, issued_by_user_id="u", now=datetime(2026, 3, 22, 9, 0))
    tallies.issue_tally(program.id, issued_by_user_id="u", now=datetime(2026, 3, 22, 9, 10))
    tallies.issue_tally(program.id, issued_by_user_id="u", person_id=guest.id, now=datetime(2026, 3, 22, 9, 15))
    tallies.issue_tally(program.id, issued_by_user_id="u", now=datetime(2026, 3, 22, 9, 45))
    tallies.void_tally(program.id, "T006", now=datetime(2026, 3, 22, 10, 0))

    report = tallies.report_for_program(program.id, now=datetime(2026, 3, 22, 12, 0))

    assert (report.total, report.available, report.issued, report.logged, report.void) == (6, 0, 5, 1, 1)
    assert {b.label: b.count for b in report.arrival_buckets} == {
        "On Time": 2,
        "0-10 min late": 1,
        "11-20 min late": 1,
        ">20 min late": 1,
    }


def test_report_without_start_time_has_empty_buckets(container, make_program):
    program = make_program(start_time=None)
    tallies = container.tally_service
    tallies.generate_tallies_for_program(program.id, 1)
    tallies.issue_tally(program.id, issued_by_user_id="u", now=ISSUED_AT)

    report = tallies.report_for_program(program.id)

    assert report.issued == 1
    assert all(b.count == 0 for b in report.arrival_buckets)


def test_known_person_tally_after_manual_mark_still_counts(container, make_guest, make_program):
    guest = make_guest()
    program = make_program()
    tallies = container.tally_service
    tallies.generate_tallies_for_program(program.id, 1)
    container.attendance_ledger.mark_attendance(
        program.id, guest.id, AttendanceStatus.PRESENT, recorded_by="usher-1", now=ISSUED_AT
    )

    tally = tallies.issue_tally(program.id, issued_by_user_id="usher-2", person_id=guest.id, now=MAPPED_AT)

    evolution = container.person_service.get(guest.id).evolution
    assert len(evolution.attendance_history) == 2
    assert evolution.visit_count == 3
    assert container.attendance_ledger.get(program.id, guest.id).tally_id == tally.id


def test_voided_tally_that_was_issued_still_counts_as_arrival(container, make_program):
    program = make_program(start_time=time(9, 0))
    tallies = container.tally_service
    tallies.generate_tallies_for_program(program.id, 2)
    tallies.issue_tally(program.id, issued_by_user_id="u", now=datetime(2026, 3, 22, 9, 30))
    tallies.void_tally(program.id, "T001", now=datetime(2026, 3, 22, 9, 35))
    tallies.void_tally(program.id, "T002", now=datetime(2026, 3, 22, 9, 35))

    report = tallies.report_for_program(program.id, now=datetime(2026, 3, 22, 12, 0))

    assert report.void == 2
    assert {b.label: b.count for b in report.arrival_buckets}[">20 min late"] == 1
    assert sum(b.count for b in report.arrival_buckets) == 1
