from __future__ import annotations

from typing import Any, Optional, Sequence

from ..common.datetime_utils import from_iso_datetime, to_iso
from ..core.enums import TallyStatus
from ..storage.store import JsonCollection, Store
from .model import Available, Issued, Logged, Tally, TallyState, Void
from .repository import TallyRepository


class StoreTallyRepository(TallyRepository):
    def __init__(self, store: Store):
        self._rows = JsonCollection(store, "tallies")

    def list_for_program(self, program_id: str) -> Sequence[Tally]:
        items = [tally_from_row(r) for r in self._rows.load() if r["program_id"] == program_id]
        items.sort(key=lambda t: t.code)
        return items

    def get_by_code(self, program_id: str, code: str) -> Optional[Tally]:
        for r in self._rows.load():
            if r["program_id"] == program_id and r["code"] == code:
                return tally_from_row(r)
        return None

    def save(self, tally: Tally) -> None:
        self._rows.upsert(tally_to_row(tally))

    def save_many(self, tallies: Sequence[Tally]) -> None:
        rows = self._rows.load()
        index = {r["id"]: i for i, r in enumerate(rows)}
        for t in tallies:
            row = tally_to_row(t)
            if t.id in index:
                rows[index[t.id]] = row
            else:
                index[t.id] = len(rows)
                rows.append(row)
        self._rows.save(rows)


def _state_fields(state: TallyState) -> dict[str, Any]:
    if isinstance(state, Issued):
        return {"issued_at": to_iso(state.issued_at), "issued_by_user_id": state.issued_by_user_id}
    if isinstance(state, Logged):
        return {
            "issued_at": to_iso(state.issued_at),
            "issued_by_user_id": state.issued_by_user_id,
            "person_id": state.person_id,
            "mapped_at": to_iso(state.mapped_at),
            "check_in_source": state.check_in_source,
        }
    if isinstance(state, Void):
        return {
            "voided_at": to_iso(state.voided_at),
            "voided_by_user_id": state.voided_by_user_id,
            "issued_at": to_iso(state.issued_at),
        }
    return {}


def tally_to_row(t: Tally) -> dict[str, Any]:
    row = {
        "id": t.id,
        "code": t.code,
        "program_id": t.program_id,
        "status": t.status.value,
        "created_at": to_iso(t.created_at),
        "updated_at": to_iso(t.updated_at),
    }
    row.update(_state_fields(t.state))
    return row


def _state_from_row(r: dict[str, Any]) -> TallyState:
    status = TallyStatus(r["status"])
    if status == TallyStatus.ISSUED:
        return Issued(issued_at=from_iso_datetime(r["issued_at"]), issued_by_user_id=r.get("issued_by_user_id", ""))
    if status == TallyStatus.LOGGED:
        return Logged(
            issued_at=from_iso_datetime(r["issued_at"]),
            issued_by_user_id=r.get("issued_by_user_id", ""),
            person_id=r["person_id"],
            mapped_at=from_iso_datetime(r["mapped_at"]),
            check_in_source=r.get("check_in_source"),
        )
    if status == TallyStatus.VOID:
        return Void(
            voided_at=from_iso_datetime(r["voided_at"]),
            voided_by_user_id=r.get("voided_by_user_id"),
            issued_at=from_iso_datetime(r.get("issued_at")),
        )
    return Available()


def tally_from_row(r: dict[str, Any]) -> Tally:
    return Tally(
        id=str(r["id"]),
        code=r["code"],
        program_id=r["program_id"],
        state=_state_from_row(r),
        created_at=from_iso_datetime(r.get("created_at")),
        updated_at=from_iso_datetime(r.get("updated_at")),
    )
