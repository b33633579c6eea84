from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, time
from typing import Optional, Protocol, Sequence

import structlog

from ..common.datetime_utils import now_local
from ..common.ids import new_id
from ..common.validators import require_non_empty, require_positive
from ..core.enums import ProgramStatus
from ..core.exceptions import NotFoundError
from ..settings.repository import ConfigProvider
from ..storage.store import UnitOfWork
from .model import Program
from .repository import ProgramRepository

logger = structlog.get_logger(__name__)


class TallyGenerator(Protocol):
    def generate_tallies_for_program(self, program_id: str, expected_count: Optional[int] = None): ...


class ProgramService:
    def __init__(
        self,
        programs: ProgramRepository,
        config: ConfigProvider,
        uow: UnitOfWork,
        *,
        tallies: Optional[TallyGenerator] = None,
    ):
        self._programs = programs
        self._config = config
        self._uow = uow
        self._tallies = tallies

    def get(self, program_id: str) -> Program:
        program = self._programs.get_by_id(program_id)
        if not program:
            raise NotFoundError(f"Program {program_id} not found")
        return program

    def list(self) -> Sequence[Program]:
        return self._programs.list_all()

    def list_between(self, *, start: date, end: date) -> Sequence[Program]:
        return self._programs.list_between(start=start, end=end)

    def create(
        self,
        *,
        name: str,
        type: str,
        on_date: date,
        start_time: Optional[time] = None,
        expected_attendance: Optional[int] = None,
        location: Optional[str] = None,
        now: datetime | None = None,
    ) -> Program:
        now = now or now_local()
        config = self._config.get_config()
        if expected_attendance is not None:
            require_positive(expected_attendance, "expected_attendance")

        program = Program(
            id=new_id("program"),
            name=require_non_empty(name, "name"),
            type=require_non_empty(type, "type"),
            date=on_date,
            start_time=start_time,
            expected_attendance=expected_attendance or config.tally.default_expected_attendance,
            location=location,
            created_at=now,
            updated_at=now,
        )

        with self._uow.atomic():
            self._programs.save(program)
            if self._tallies is not None and config.tally.enabled and config.tally.auto_generate_on_program_create:
                self._tallies.generate_tallies_for_program(program.id)

        logger.info("program_created", program_id=program.id, program_type=program.type, date=str(program.date))
        return program

    def update(
        self,
        program_id: str,
        *,
        name: Optional[str] = None,
        start_time: Optional[time] = None,
        status: Optional[ProgramStatus] = None,
        expected_attendance: Optional[int] = None,
        location: Optional[str] = None,
        now: datetime | None = None,
    ) -> Program:
        """Administrative edit; date and type stay fixed once created."""
        now = now or now_local()
        with self._uow.atomic():
            program = self.get(program_id)
            updated = replace(
                program,
                name=require_non_empty(name, "name") if name is not None else program.name,
                start_time=start_time if start_time is not None else program.start_time,
                status=status or program.status,
                expected_attendance=(
                    require_positive(expected_attendance, "expected_attendance")
                    if expected_attendance is not None
                    else program.expected_attendance
                ),
                location=location if location is not None else program.location,
                updated_at=now,
            )
            self._programs.save(updated)
        return updated
