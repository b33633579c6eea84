from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Optional, Sequence

import structlog

from ..common.datetime_utils import now_local
from ..common.ids import new_id
from ..common.validators import require_non_empty
from ..core.enums import AttendanceStatus
from ..core.exceptions import NotFoundError
from ..people.service import PersonService
from ..programs.repository import ProgramRepository
from ..storage.store import UnitOfWork
from .model import AttendanceEntry, AttendanceRecord
from .repository import AttendanceRepository

logger = structlog.get_logger(__name__)


class AttendanceLedger:
    """Single source of truth for who attended which program.

    Every write is an upsert on (program_id, person_id) and is followed, in
    the same atomic section, by the person's evolution update.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        programs: ProgramRepository,
        people: PersonService,
        uow: UnitOfWork,
    ):
        self._attendance = attendance
        self._programs = programs
        self._people = people
        self._uow = uow

    @property
    def people(self) -> PersonService:
        return self._people

    def mark_attendance(
        self,
        program_id: str,
        person_id: str,
        status: AttendanceStatus,
        *,
        recorded_by: str,
        timestamp: Optional[datetime] = None,
        tally_id: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        """Upsert the record and apply it to the person's evolution.

        `timestamp` is trusted as given. Without one, an existing record keeps
        its timestamp and a new record uses `now`.
        """
        now = now or now_local()
        status = AttendanceStatus(status)
        recorded_by = require_non_empty(recorded_by, "recorded_by")

        with self._uow.atomic():
            program = self._programs.get_by_id(program_id)
            if not program:
                raise NotFoundError(f"Program {program_id} not found")
            self._people.get(person_id)

            existing = self._attendance.get_for_program_and_person(program_id, person_id)
            if existing:
                record = replace(
                    existing,
                    status=status,
                    timestamp=timestamp or existing.timestamp,
                    tally_id=tally_id or existing.tally_id,
                    recorded_by=recorded_by,
                    updated_at=now,
                )
            else:
                record = AttendanceRecord(
                    id=new_id("att"),
                    program_id=program_id,
                    person_id=person_id,
                    status=status,
                    timestamp=timestamp or now,
                    recorded_by=recorded_by,
                    tally_id=tally_id,
                    created_at=now,
                    updated_at=now,
                )
            self._attendance.upsert(record)
            self._people.apply_attendance(
                person_id,
                program_id=program_id,
                on_date=program.date,
                present=status == AttendanceStatus.PRESENT,
                now=now,
            )

        logger.info(
            "attendance_marked",
            program_id=program_id,
            person_id=person_id,
            status=status.value,
            tally_id=record.tally_id,
            updated=existing is not None,
        )
        return record

    def bulk_mark(
        self,
        program_id: str,
        entries: Sequence[AttendanceEntry],
        *,
        recorded_by: str,
        now: datetime | None = None,
    ) -> list[AttendanceRecord]:
        now = now or now_local()
        with self._uow.atomic():
            # Validate the whole batch first so a bad id leaves nothing half-written.
            if not self._programs.get_by_id(program_id):
                raise NotFoundError(f"Program {program_id} not found")
            for e in entries:
                self._people.get(e.person_id)

            return [
                self.mark_attendance(
                    program_id,
                    e.person_id,
                    AttendanceStatus.PRESENT if e.present else AttendanceStatus.ABSENT,
                    recorded_by=recorded_by,
                    timestamp=e.timestamp,
                    now=now,
                )
                for e in entries
            ]

    def get(self, program_id: str, person_id: str) -> Optional[AttendanceRecord]:
        return self._attendance.get_for_program_and_person(program_id, person_id)

    def list_for_program(self, program_id: str) -> Sequence[AttendanceRecord]:
        return self._attendance.list_for_program(program_id)

    def list_for_person(self, person_id: str) -> Sequence[AttendanceRecord]:
        return self._attendance.list_for_person(person_id)
