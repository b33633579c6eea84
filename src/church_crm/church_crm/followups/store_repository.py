from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Any, Optional, Sequence

from ..common.datetime_utils import from_iso_datetime, to_iso
from ..common.ids import new_id
from ..core.enums import FollowUpChannel, FollowUpPriority, FollowUpStatus
from ..storage.store import JsonCollection, Store
from .model import FollowUp, FollowUpAction, FollowUpRequest
from .repository import FollowUpRepository


class StoreFollowUpRepository(FollowUpRepository):
    def __init__(self, store: Store):
        self._rows = JsonCollection(store, "follow-ups")
        self._actions = JsonCollection(store, "follow-up-actions")

    def create_follow_up(self, request: FollowUpRequest, *, now: datetime) -> FollowUp:
        follow_up = FollowUp(
            id=new_id("fu"),
            person_id=request.person_id,
            type=request.type,
            title=request.title,
            priority=request.priority,
            status=FollowUpStatus.OPEN,
            due_at=request.due_at,
            created_at=now,
            created_by=request.created_by,
            notes=request.notes,
            preferred_channel=request.preferred_channel,
        )
        self._rows.upsert(follow_up_to_row(follow_up))
        return follow_up

    def list_open_follow_ups(self, person_id: str, type: Optional[str] = None) -> Sequence[FollowUp]:
        items = (follow_up_from_row(r) for r in self._rows.load() if r["person_id"] == person_id)
        return [f for f in items if f.is_open and (type is None or f.type == type)]

    def get_by_id(self, follow_up_id: str) -> Optional[FollowUp]:
        for r in self._rows.load():
            if r["id"] == follow_up_id:
                return follow_up_from_row(r)
        return None

    def list_all(self) -> Sequence[FollowUp]:
        return [follow_up_from_row(r) for r in self._rows.load()]

    def update_status(self, follow_up_id: str, status: FollowUpStatus, *, now: datetime) -> Optional[FollowUp]:
        existing = self.get_by_id(follow_up_id)
        if not existing:
            return None
        updated = replace(
            existing,
            status=status,
            completed_at=now if status == FollowUpStatus.COMPLETED else existing.completed_at,
        )
        self._rows.upsert(follow_up_to_row(updated))
        return updated

    def log_action(self, action: FollowUpAction) -> None:
        self._actions.upsert(action_to_row(action))

    def list_actions(self, follow_up_id: str) -> Sequence[FollowUpAction]:
        rows = [r for r in self._actions.load() if r["follow_up_id"] == follow_up_id]
        return sorted((action_from_row(r) for r in rows), key=lambda a: a.timestamp)


def follow_up_to_row(f: FollowUp) -> dict[str, Any]:
    return {
        "id": f.id,
        "person_id": f.person_id,
        "type": f.type,
        "title": f.title,
        "priority": f.priority.value,
        "status": f.status.value,
        "due_at": to_iso(f.due_at),
        "created_at": to_iso(f.created_at),
        "created_by": f.created_by,
        "notes": f.notes,
        "completed_at": to_iso(f.completed_at),
        "preferred_channel": f.preferred_channel.value if f.preferred_channel else None,
    }


def follow_up_from_row(r: dict[str, Any]) -> FollowUp:
    return FollowUp(
        id=str(r["id"]),
        person_id=r["person_id"],
        type=r["type"],
        title=r.get("title") or "",
        priority=FollowUpPriority(r.get("priority") or FollowUpPriority.MEDIUM.value),
        status=FollowUpStatus(r["status"]),
        due_at=from_iso_datetime(r["due_at"]),
        created_at=from_iso_datetime(r["created_at"]),
        created_by=r.get("created_by") or "system",
        notes=r.get("notes") or "",
        completed_at=from_iso_datetime(r.get("completed_at")),
        preferred_channel=FollowUpChannel(r["preferred_channel"]) if r.get("preferred_channel") else None,
    )


def action_to_row(a: FollowUpAction) -> dict[str, Any]:
    return {
        "id": a.id,
        "follow_up_id": a.follow_up_id,
        "timestamp": to_iso(a.timestamp),
        "channel": a.channel.value,
        "outcome": a.outcome,
        "created_by": a.created_by,
    }


def action_from_row(r: dict[str, Any]) -> FollowUpAction:
    return FollowUpAction(
        id=str(r["id"]),
        follow_up_id=r["follow_up_id"],
        timestamp=from_iso_datetime(r["timestamp"]),
        channel=FollowUpChannel(r["channel"]),
        outcome=r.get("outcome") or "",
        created_by=r.get("created_by") or "system",
    )
