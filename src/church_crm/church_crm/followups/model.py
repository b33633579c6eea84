from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..core.constants import OPEN_FOLLOW_UP_STATUSES
from ..core.enums import FollowUpChannel, FollowUpPriority, FollowUpStatus


@dataclass(frozen=True)
class FollowUp:
    id: str
    person_id: str
    type: str  # "absentee", "birthday", "new-guest", ...
    title: str
    priority: FollowUpPriority
    status: FollowUpStatus
    due_at: datetime
    created_at: datetime
    created_by: str
    notes: str = ""
    completed_at: Optional[datetime] = None
    preferred_channel: Optional[FollowUpChannel] = None

    @property
    def is_open(self) -> bool:
        return self.status.value in OPEN_FOLLOW_UP_STATUSES


@dataclass(frozen=True)
class FollowUpRequest:
    person_id: str
    type: str
    title: str
    due_at: datetime
    priority: FollowUpPriority = FollowUpPriority.MEDIUM
    created_by: str = "system"
    notes: str = ""
    preferred_channel: Optional[FollowUpChannel] = None


@dataclass(frozen=True)
class FollowUpAction:
    """One contact attempt recorded against a follow-up."""

    id: str
    follow_up_id: str
    timestamp: datetime
    channel: FollowUpChannel
    outcome: str
    created_by: str


@dataclass(frozen=True)
class AbsenteeDetail:
    person_id: str
    missed_count: int
    missed_program_ids: tuple[str, ...]
    follow_up_created: bool
    follow_up_id: Optional[str] = None
    skipped_reason: Optional[str] = None


@dataclass(frozen=True)
class AbsenteeRunResult:
    rule_enabled: bool
    programs_considered: int = 0
    absentees_found: int = 0
    follow_ups_created: int = 0
    details: tuple[AbsenteeDetail, ...] = ()
    error: Optional[str] = None


@dataclass(frozen=True)
class BirthdayDetail:
    person_id: str
    channel: Optional[str]
    sent: bool = False
    follow_up_created: bool = False
    error: Optional[str] = None


@dataclass(frozen=True)
class BirthdayRunResult:
    config_enabled: bool
    considered_count: int = 0
    scheduled_count: int = 0
    sent_count: int = 0
    follow_ups_created: int = 0
    details: tuple[BirthdayDetail, ...] = field(default_factory=tuple)
    error: Optional[str] = None
