from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

import structlog

from ..common.datetime_utils import from_iso_datetime, now_local, to_iso
from ..common.ids import new_id
from ..core.enums import NotificationEvent
from ..settings.repository import ConfigProvider
from ..storage.store import JsonCollection, Store
from .model import Notification

logger = structlog.get_logger(__name__)


class NotificationSink(Protocol):
    def notify(self, event_key: str, payload: dict[str, Any]) -> None:
        raise NotImplementedError


class StoreNotificationSink(NotificationSink):
    """Keeps notifications in the blob store for the staff inbox."""

    def __init__(self, store: Store):
        self._rows = JsonCollection(store, "notifications")

    def notify(self, event_key: str, payload: dict[str, Any]) -> None:
        rows = self._rows.load()
        rows.append(
            {
                "id": new_id("ntf"),
                "event_key": event_key,
                "payload": payload,
                "created_at": to_iso(now_local()),
                "read_at": None,
            }
        )
        self._rows.save(rows)

    def list_unread(self) -> Sequence[Notification]:
        return [
            Notification(
                id=r["id"],
                event_key=r["event_key"],
                payload=r.get("payload") or {},
                created_at=from_iso_datetime(r.get("created_at")),
                read_at=from_iso_datetime(r.get("read_at")),
            )
            for r in self._rows.load()
            if not r.get("read_at")
        ]

    def mark_read(self, notification_id: str) -> bool:
        rows = self._rows.load()
        for r in rows:
            if r["id"] == notification_id:
                r["read_at"] = r.get("read_at") or to_iso(now_local())
                self._rows.save(rows)
                return True
        return False


class Notifier:
    """Fire-and-forget fan-out guarded by the per-event config flag.

    Sink failures are logged and dropped; they never undo the caller's work.
    """

    def __init__(self, sink: Optional[NotificationSink], config: ConfigProvider):
        self._sink = sink
        self._config = config

    def notify(self, event: NotificationEvent, payload: dict[str, Any]) -> None:
        if self._sink is None:
            return
        try:
            if not self._config.get_config().notifications.is_enabled(event):
                return
            self._sink.notify(event.value, payload)
        except Exception as exc:
            logger.warning("notification_failed", event_key=event.value, error=str(exc), error_type=type(exc).__name__)
