from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus, GuestType, MemberRating, MembershipStatus, PersonCategory


@dataclass(frozen=True)
class PersonalData:
    first_name: str
    last_name: str
    phone: str = ""
    email: Optional[str] = None
    date_of_birth: Optional[date] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class GuestData:
    referral_source: str = "walk-in"
    referral_name: Optional[str] = None
    first_visit_date: Optional[date] = None


@dataclass(frozen=True)
class MemberData:
    membership_date: date
    membership_status: MembershipStatus = MembershipStatus.ACTIVE
    membership_number: Optional[str] = None


@dataclass(frozen=True)
class EngagementFlags:
    is_worker: bool = False
    receives_broadcasts: bool = True
    # Hard suppression: every outbound action checks this first.
    do_not_contact: bool = False


@dataclass(frozen=True)
class PersonAssignment:
    """Relationship managers and small group responsible for the person."""

    primary_rm_user_id: Optional[str] = None
    secondary_rm_user_ids: tuple[str, ...] = ()
    group_id: Optional[str] = None


@dataclass(frozen=True)
class AttendanceHistoryEntry:
    program_id: str
    date: date
    status: AttendanceStatus


@dataclass(frozen=True)
class RatingHistoryEntry:
    date: datetime
    rating: MemberRating
    attendance_percentage: float


@dataclass(frozen=True)
class PersonEvolution:
    """Classification state embedded in a Person.

    `guest_type` is set only for guests, `member_rating` only for members.
    `attendance_history` is append-only; corrections are new entries.
    """

    visit_count: int = 0
    total_visits: int = 0
    guest_type: Optional[GuestType] = None
    member_rating: Optional[MemberRating] = None
    first_visit_date: Optional[date] = None
    last_visit_date: Optional[date] = None
    current_streak: int = 0
    longest_streak: int = 0
    rating_history: tuple[RatingHistoryEntry, ...] = ()
    attendance_history: tuple[AttendanceHistoryEntry, ...] = ()
    ready_for_promotion: bool = False
    last_birthday_message_year: Optional[int] = None


@dataclass(frozen=True)
class Person:
    id: str
    category: PersonCategory
    personal_data: PersonalData
    evolution: PersonEvolution = field(default_factory=PersonEvolution)
    engagement: EngagementFlags = field(default_factory=EngagementFlags)
    assignment: PersonAssignment = field(default_factory=PersonAssignment)
    guest_data: Optional[GuestData] = None
    member_data: Optional[MemberData] = None
    tags: tuple[str, ...] = ()
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_guest(self) -> bool:
        return self.category == PersonCategory.GUEST

    @property
    def is_member(self) -> bool:
        return self.category == PersonCategory.MEMBER


@dataclass(frozen=True)
class MembershipDetails:
    """Input for guest -> member promotion."""

    membership_date: date
    membership_number: Optional[str] = None
    membership_status: MembershipStatus = MembershipStatus.ACTIVE
    is_worker: Optional[bool] = None
