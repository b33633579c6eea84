from __future__ import annotations

from typing import Any, Iterable, Optional, Sequence

from ..common.datetime_utils import from_iso_datetime, to_iso
from ..core.enums import AttendanceStatus
from ..storage.store import JsonCollection, Store
from .model import AttendanceRecord
from .repository import AttendanceRepository


class StoreAttendanceRepository(AttendanceRepository):
    def __init__(self, store: Store):
        self._rows = JsonCollection(store, "attendance")

    def _all(self) -> list[AttendanceRecord]:
        return [record_from_row(r) for r in self._rows.load()]

    def get_for_program_and_person(self, program_id: str, person_id: str) -> Optional[AttendanceRecord]:
        for r in self._rows.load():
            if r["program_id"] == program_id and r["person_id"] == person_id:
                return record_from_row(r)
        return None

    def list_for_program(self, program_id: str) -> Sequence[AttendanceRecord]:
        return [r for r in self._all() if r.program_id == program_id]

    def list_for_programs(self, program_ids: Iterable[str]) -> Sequence[AttendanceRecord]:
        wanted = set(program_ids)
        return [r for r in self._all() if r.program_id in wanted]

    def list_for_person(self, person_id: str) -> Sequence[AttendanceRecord]:
        items = [r for r in self._all() if r.person_id == person_id]
        items.sort(key=lambda r: r.timestamp, reverse=True)
        return items

    def upsert(self, record: AttendanceRecord) -> None:
        rows = self._rows.load()
        row = record_to_row(record)
        for idx, existing in enumerate(rows):
            if existing["program_id"] == record.program_id and existing["person_id"] == record.person_id:
                rows[idx] = row
                break
        else:
            rows.append(row)
        self._rows.save(rows)


def record_to_row(r: AttendanceRecord) -> dict[str, Any]:
    return {
        "id": r.id,
        "program_id": r.program_id,
        "person_id": r.person_id,
        "status": r.status.value,
        "timestamp": to_iso(r.timestamp),
        "recorded_by": r.recorded_by,
        "tally_id": r.tally_id,
        "created_at": to_iso(r.created_at),
        "updated_at": to_iso(r.updated_at),
    }


def record_from_row(r: dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        id=str(r["id"]),
        program_id=r["program_id"],
        person_id=r["person_id"],
        status=AttendanceStatus(r["status"]),
        timestamp=from_iso_datetime(r["timestamp"]),
        recorded_by=r.get("recorded_by", ""),
        tally_id=r.get("tally_id"),
        created_at=from_iso_datetime(r.get("created_at")),
        updated_at=from_iso_datetime(r.get("updated_at")),
    )
