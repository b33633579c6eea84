from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional


@dataclass(frozen=True)
class Notification:
    id: str
    event_key: str
    payload: dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    read_at: Optional[datetime] = None


@dataclass(frozen=True)
class SendResult:
    """Outcome of one messaging-channel call."""

    success: bool
    provider_message_id: Optional[str] = None
    error_message: Optional[str] = None
