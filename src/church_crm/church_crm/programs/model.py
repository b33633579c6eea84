from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from ..core.enums import ProgramStatus


@dataclass(frozen=True)
class Program:
    """A scheduled event instance (service, prayer meeting, ...)."""

    id: str
    name: str
    type: str
    date: date
    start_time: Optional[time] = None
    status: ProgramStatus = ProgramStatus.PLANNED
    expected_attendance: Optional[int] = None
    location: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def starts_at(self) -> Optional[datetime]:
        if self.start_time is None:
            return None
        return datetime.combine(self.date, self.start_time)
