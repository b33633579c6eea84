from __future__ import annotations

import re
from dataclasses import replace
from datetime import datetime
from typing import Optional, Sequence

import structlog

from ..attendance.service import AttendanceLedger
from ..common.datetime_utils import now_local
from ..common.ids import new_id
from ..common.validators import require_non_empty
from ..core.enums import AttendanceStatus, TallyStatus
from ..core.exceptions import (
    AlreadyMappedError,
    InvalidStateError,
    NoneAvailableError,
    NotFoundError,
    ValidationError,
)
from ..programs.model import Program
from ..programs.repository import ProgramRepository
from ..settings.repository import ConfigProvider
from ..storage.store import UnitOfWork
from .arrival import bucketize_arrivals
from .model import Available, Issued, Logged, Tally, TallyGenerationResult, TallyReport, Void
from .repository import TallyRepository

logger = structlog.get_logger(__name__)

_TRAILING_DIGITS = re.compile(r"(\d+)$")


def sequence_of(code: str) -> int:
    m = _TRAILING_DIGITS.search(code)
    return int(m.group(1)) if m else 0


def format_code(prefix: str, number: int, padding: int) -> str:
    return f"{prefix}{str(number).zfill(padding)}"


class TallyService:
    """Physical arrival tokens: generate, hand out, reconcile, void, report.

    A tally's `issued_at` is the arrival time and is never rewritten when
    the tally is later mapped to a person.
    """

    def __init__(
        self,
        tallies: TallyRepository,
        programs: ProgramRepository,
        ledger: AttendanceLedger,
        config: ConfigProvider,
        uow: UnitOfWork,
    ):
        self._tallies = tallies
        self._programs = programs
        self._ledger = ledger
        self._config = config
        self._uow = uow

    def _program(self, program_id: str) -> Program:
        program = self._programs.get_by_id(program_id)
        if not program:
            raise NotFoundError(f"Program {program_id} not found")
        return program

    def _tally(self, program_id: str, code: str) -> Tally:
        tally = self._tallies.get_by_code(program_id, code)
        if not tally:
            raise NotFoundError(f"Tally {code} not found for program {program_id}")
        return tally

    def list_for_program(self, program_id: str) -> Sequence[Tally]:
        return sorted(self._tallies.list_for_program(program_id), key=lambda t: t.code)

    def get(self, program_id: str, code: str) -> Tally:
        return self._tally(program_id, code)

    def generate_tallies_for_program(
        self,
        program_id: str,
        expected_count: Optional[int] = None,
        *,
        now: datetime | None = None,
    ) -> TallyGenerationResult:
        """Top up a program's tallies to `expected_count`.

        Numbering continues after the highest existing code, so calling this
        again never renames or duplicates tallies.
        """
        now = now or now_local()
        cfg = self._config.get_config().tally
        if not cfg.enabled:
            return TallyGenerationResult(program_id=program_id, tallies=(), created=())

        with self._uow.atomic():
            program = self._program(program_id)
            count = expected_count
            if count is None:
                count = program.expected_attendance or cfg.default_expected_attendance
            if count < 0:
                raise ValidationError("expected_count must be >= 0")

            existing = list(self._tallies.list_for_program(program_id))
            missing = count - len(existing)
            created: list[Tally] = []
            if missing > 0:
                taken = {t.code for t in existing}
                number = max((sequence_of(t.code) for t in existing), default=0)
                while len(created) < missing:
                    number += 1
                    code = format_code(cfg.code_prefix, number, cfg.code_padding)
                    if code in taken:
                        continue
                    taken.add(code)
                    created.append(
                        Tally(
                            id=new_id("tally"),
                            code=code,
                            program_id=program_id,
                            state=Available(),
                            created_at=now,
                            updated_at=now,
                        )
                    )
                self._tallies.save_many(created)

        result = TallyGenerationResult(
            program_id=program_id,
            tallies=tuple(sorted(existing + created, key=lambda t: t.code)),
            created=tuple(created),
        )
        logger.info(
            "tallies_generated",
            program_id=program_id,
            created=len(created),
            total=len(result.tallies),
            from_code=result.from_code,
            to_code=result.to_code,
        )
        return result

    def issue_tally(
        self,
        program_id: str,
        *,
        issued_by_user_id: str,
        code: Optional[str] = None,
        person_id: Optional[str] = None,
        source: Optional[str] = None,
        now: datetime | None = None,
    ) -> Optional[Tally]:
        """Hand out a tally; returns None when tallies are switched off.

        Without `code` the lowest available code is taken. With a known
        `person_id` the tally is logged at once and attendance recorded.
        """
        now = now or now_local()
        if not self._config.get_config().tally.enabled:
            return None
        require_non_empty(issued_by_user_id, "issued_by_user_id")

        with self._uow.atomic():
            self._program(program_id)

            if code:
                tally = self._tally(program_id, code)
                if tally.status != TallyStatus.AVAILABLE:
                    raise InvalidStateError(f"Tally {code} is {tally.status.value}, not available")
            else:
                available = [t for t in self._tallies.list_for_program(program_id) if isinstance(t.state, Available)]
                if not available:
                    raise NoneAvailableError(f"No available tallies left for program {program_id}")
                tally = min(available, key=lambda t: t.code)

            if person_id:
                self._ledger.people.get(person_id)
                state = Logged(
                    issued_at=now,
                    issued_by_user_id=issued_by_user_id,
                    person_id=person_id,
                    mapped_at=now,
                    check_in_source=source,
                )
            else:
                state = Issued(issued_at=now, issued_by_user_id=issued_by_user_id)

            tally = replace(tally, state=state, updated_at=now)
            self._tallies.save(tally)

            if person_id:
                self._ledger.mark_attendance(
                    program_id,
                    person_id,
                    AttendanceStatus.PRESENT,
                    recorded_by=issued_by_user_id,
                    timestamp=now,
                    tally_id=tally.id,
                    now=now,
                )

        logger.info(
            "tally_issued",
            program_id=program_id,
            code=tally.code,
            status=tally.status.value,
            person_id=person_id,
        )
        return tally

    def map_tally_to_person(
        self,
        program_id: str,
        code: str,
        person_id: str,
        *,
        source: Optional[str] = None,
        mapped_by_user_id: Optional[str] = None,
        now: datetime | None = None,
    ) -> Optional[Tally]:
        """Attach an identity to an issued tally.

        The attendance record is stamped with the tally's issue time, not
        the time of mapping.
        """
        now = now or now_local()
        if not self._config.get_config().tally.enabled:
            return None

        with self._uow.atomic():
            tally = self._tally(program_id, code)
            state = tally.state
            if isinstance(state, Logged):
                raise AlreadyMappedError(f"Tally {code} is already mapped to a person")
            if not isinstance(state, Issued):
                raise InvalidStateError(f"Tally {code} is {tally.status.value}; only issued tallies can be mapped")

            self._ledger.people.get(person_id)

            tally = replace(
                tally,
                state=Logged(
                    issued_at=state.issued_at,
                    issued_by_user_id=state.issued_by_user_id,
                    person_id=person_id,
                    mapped_at=now,
                    check_in_source=source,
                ),
                updated_at=now,
            )
            self._tallies.save(tally)
            self._ledger.mark_attendance(
                program_id,
                person_id,
                AttendanceStatus.PRESENT,
                recorded_by=mapped_by_user_id or state.issued_by_user_id,
                timestamp=state.issued_at,
                tally_id=tally.id,
                now=now,
            )

        logger.info("tally_mapped", program_id=program_id, code=code, person_id=person_id, source=source)
        return tally

    def void_tally(
        self,
        program_id: str,
        code: str,
        *,
        voided_by_user_id: Optional[str] = None,
        now: datetime | None = None,
    ) -> Tally:
        now = now or now_local()
        with self._uow.atomic():
            tally = self._tally(program_id, code)
            if not isinstance(tally.state, (Available, Issued)):
                raise InvalidStateError(f"Tally {code} is {tally.status.value} and cannot be voided")
            tally = replace(
                tally,
                state=Void(voided_at=now, voided_by_user_id=voided_by_user_id, issued_at=tally.issued_at),
                updated_at=now,
            )
            self._tallies.save(tally)

        logger.info("tally_voided", program_id=program_id, code=code)
        return tally

    def report_for_program(self, program_id: str, *, now: datetime | None = None) -> TallyReport:
        now = now or now_local()
        program = self._program(program_id)
        tallies = self._tallies.list_for_program(program_id)

        by_status = {s: 0 for s in TallyStatus}
        for t in tallies:
            by_status[t.status] += 1

        return TallyReport(
            program_id=program_id,
            total=len(tallies),
            available=by_status[TallyStatus.AVAILABLE],
            issued=by_status[TallyStatus.ISSUED] + by_status[TallyStatus.LOGGED],
            logged=by_status[TallyStatus.LOGGED],
            void=by_status[TallyStatus.VOID],
            arrival_buckets=bucketize_arrivals(program.starts_at, tallies),
            generated_at=now,
        )
