from __future__ import annotations

from datetime import date
from typing import Any, Optional, Sequence

from ..common.datetime_utils import from_iso_datetime, parse_hhmm, parse_iso_date, to_iso
from ..core.enums import ProgramStatus
from ..storage.store import JsonCollection, Store
from .model import Program
from .repository import ProgramRepository


class StoreProgramRepository(ProgramRepository):
    def __init__(self, store: Store):
        self._rows = JsonCollection(store, "programs")

    def get_by_id(self, program_id: str) -> Optional[Program]:
        for r in self._rows.load():
            if r["id"] == program_id:
                return program_from_row(r)
        return None

    def list_all(self) -> Sequence[Program]:
        items = [program_from_row(r) for r in self._rows.load()]
        items.sort(key=lambda p: (p.date, p.name))
        return items

    def list_between(self, *, start: date, end: date) -> Sequence[Program]:
        return [p for p in self.list_all() if start <= p.date <= end]

    def save(self, program: Program) -> None:
        self._rows.upsert(program_to_row(program))


def program_to_row(p: Program) -> dict[str, Any]:
    return {
        "id": p.id,
        "name": p.name,
        "type": p.type,
        "date": to_iso(p.date),
        "start_time": p.start_time.strftime("%H:%M") if p.start_time else None,
        "status": p.status.value,
        "expected_attendance": p.expected_attendance,
        "location": p.location,
        "created_at": to_iso(p.created_at),
        "updated_at": to_iso(p.updated_at),
    }


def program_from_row(r: dict[str, Any]) -> Program:
    expected = r.get("expected_attendance")
    return Program(
        id=str(r["id"]),
        name=r.get("name", ""),
        type=r.get("type", "other"),
        date=parse_iso_date(r["date"]),
        start_time=parse_hhmm(r["start_time"]) if r.get("start_time") else None,
        status=ProgramStatus(r.get("status", ProgramStatus.PLANNED.value)),
        expected_attendance=int(expected) if expected is not None else None,
        location=r.get("location"),
        created_at=from_iso_datetime(r.get("created_at")),
        updated_at=from_iso_datetime(r.get("updated_at")),
    )
