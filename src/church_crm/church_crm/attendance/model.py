from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Join entity: one record per (program_id, person_id)."""

    id: str
    program_id: str
    person_id: str
    status: AttendanceStatus
    # Effective attendance time. Tally-originated records carry the tally's issued_at.
    timestamp: datetime
    recorded_by: str
    tally_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class AttendanceEntry:
    """One line of a bulk marking request."""

    person_id: str
    present: bool
    timestamp: Optional[datetime] = None
