from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from ..core.enums import TallyStatus


@dataclass(frozen=True)
class Available:
    """Printed but not yet handed out."""


@dataclass(frozen=True)
class Issued:
    """Handed out at the gate; identity not known yet."""

    issued_at: datetime
    issued_by_user_id: str


@dataclass(frozen=True)
class Logged:
    """Reconciled with a person. `issued_at` is still the arrival time."""

    issued_at: datetime
    issued_by_user_id: str
    person_id: str
    mapped_at: datetime
    check_in_source: Optional[str] = None


@dataclass(frozen=True)
class Void:
    voided_at: datetime
    voided_by_user_id: Optional[str] = None
    issued_at: Optional[datetime] = None


TallyState = Union[Available, Issued, Logged, Void]

_STATUS_BY_STATE = {
    Available: TallyStatus.AVAILABLE,
    Issued: TallyStatus.ISSUED,
    Logged: TallyStatus.LOGGED,
    Void: TallyStatus.VOID,
}


@dataclass(frozen=True)
class Tally:
    id: str
    code: str
    program_id: str
    state: TallyState
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def status(self) -> TallyStatus:
        return _STATUS_BY_STATE[type(self.state)]

    @property
    def issued_at(self) -> Optional[datetime]:
        return getattr(self.state, "issued_at", None)

    @property
    def person_id(self) -> Optional[str]:
        return getattr(self.state, "person_id", None)


@dataclass(frozen=True)
class TallyGenerationResult:
    program_id: str
    tallies: tuple[Tally, ...]
    created: tuple[Tally, ...]

    @property
    def from_code(self) -> Optional[str]:
        return self.created[0].code if self.created else None

    @property
    def to_code(self) -> Optional[str]:
        return self.created[-1].code if self.created else None


@dataclass(frozen=True)
class ArrivalBucket:
    label: str
    count: int


@dataclass(frozen=True)
class TallyReport:
    program_id: str
    total: int
    available: int
    issued: int  # issued or logged
    logged: int
    void: int
    arrival_buckets: tuple[ArrivalBucket, ...]
    generated_at: datetime
