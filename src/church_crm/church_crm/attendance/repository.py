from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_for_program_and_person(self, program_id: str, person_id: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_for_program(self, program_id: str) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_programs(self, program_ids: Iterable[str]) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_person(self, person_id: str) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def upsert(self, record: AttendanceRecord) -> None:
        """Insert or replace keyed on (program_id, person_id)."""

        raise NotImplementedError
