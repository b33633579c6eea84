from __future__ import annotations

from enum import Enum


class PersonCategory(str, Enum):
    GUEST = "guest"
    MEMBER = "member"


class GuestType(str, Enum):
    FIRST_TIME = "first-time"
    RETURNING = "returning"
    REGULAR = "regular"


class MemberRating(str, Enum):
    REGULAR = "regular"
    ADHERENT = "adherent"
    RETURNING = "returning"
    VISITING = "visiting"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"


class TallyStatus(str, Enum):
    AVAILABLE = "available"
    ISSUED = "issued"
    LOGGED = "logged"
    VOID = "void"


class ProgramStatus(str, Enum):
    PLANNED = "planned"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AttendanceScope(str, Enum):
    """Which subset of people the absentee scan expects at programs."""

    ALL = "all"
    MEMBERS_ONLY = "members-only"
    GUESTS_ONLY = "guests-only"
    MEMBERS_AND_REGULAR_GUESTS = "members-and-regular-guests"


class FollowUpStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    ON_HOLD = "on-hold"


class FollowUpPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class FollowUpChannel(str, Enum):
    WHATSAPP = "whatsapp"
    SMS = "sms"
    EMAIL = "email"
    PHONE_CALL = "phone-call"
    VISIT = "visit"
    OTHER = "other"


class MembershipStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    TRANSFERRED = "transferred"
    SUSPENDED = "suspended"


class MessageChannel(str, Enum):
    WHATSAPP = "whatsapp"
    SMS = "sms"
    EMAIL = "email"


class NotificationEvent(str, Enum):
    NEW_FIRST_TIME_GUEST = "new_first_time_guest"
    GUEST_READY_FOR_PROMOTION = "guest_ready_for_promotion"
    FOLLOW_UP_CREATED = "follow_up_created"
    UPCOMING_BIRTHDAY = "upcoming_birthday"
