from __future__ import annotations

from dataclasses import dataclass, field

from ..core.constants import DEFAULT_EXPECTED_ATTENDANCE, DEFAULT_TALLY_PADDING, DEFAULT_TALLY_PREFIX
from ..core.enums import (
    AttendanceScope,
    FollowUpPriority,
    MemberRating,
    MessageChannel,
    NotificationEvent,
)


@dataclass(frozen=True)
class EvolutionThresholds:
    """Visit counts driving guest classification and promotion eligibility."""

    guest_to_returning_threshold: int = 2
    returning_to_regular_threshold: int = 4
    regular_guest_to_member_threshold: int = 8


@dataclass(frozen=True)
class RatingTier:
    min_attendance_percentage: float
    min_weeks_considered: int


@dataclass(frozen=True)
class MemberRatingThresholds:
    adherent: RatingTier = field(default_factory=lambda: RatingTier(90, 12))
    regular: RatingTier = field(default_factory=lambda: RatingTier(75, 12))
    returning: RatingTier = field(default_factory=lambda: RatingTier(50, 12))
    visiting: RatingTier = field(default_factory=lambda: RatingTier(25, 12))

    def tier(self, rating: MemberRating) -> RatingTier:
        return getattr(self, rating.name.lower())


# Strictest first; the first tier whose threshold is met wins.
RATING_ORDER = (
    MemberRating.ADHERENT,
    MemberRating.REGULAR,
    MemberRating.RETURNING,
    MemberRating.VISITING,
)


@dataclass(frozen=True)
class EvolutionConfig:
    enabled: bool = True
    thresholds: EvolutionThresholds = field(default_factory=EvolutionThresholds)
    member_rating_thresholds: MemberRatingThresholds = field(default_factory=MemberRatingThresholds)
    considered_program_types: tuple[str, ...] = ("sunday-service", "midweek-service")


@dataclass(frozen=True)
class AbsenteeRule:
    enabled: bool = True
    scope: AttendanceScope = AttendanceScope.MEMBERS_AND_REGULAR_GUESTS
    missed_programs_count: int = 2
    within_days: int = 21
    create_follow_up: bool = True
    follow_up_type: str = "absentee"
    follow_up_priority: FollowUpPriority = FollowUpPriority.HIGH


@dataclass(frozen=True)
class FollowUpTimeframes:
    new_guest_hours: int = 24
    returning_guest_hours: int = 48
    regular_guest_hours: int = 72
    absentee_hours: int = 24


@dataclass(frozen=True)
class FollowUpConfig:
    enabled: bool = True
    timeframes: FollowUpTimeframes = field(default_factory=FollowUpTimeframes)
    absentee_rule: AbsenteeRule = field(default_factory=AbsenteeRule)


@dataclass(frozen=True)
class TallyConfig:
    enabled: bool = True
    auto_generate_on_program_create: bool = False
    default_expected_attendance: int = DEFAULT_EXPECTED_ATTENDANCE
    code_prefix: str = DEFAULT_TALLY_PREFIX
    code_padding: int = DEFAULT_TALLY_PADDING


@dataclass(frozen=True)
class AttendanceConfig:
    # Only people flagged as workers are expected at programs.
    track_workers_only: bool = False


@dataclass(frozen=True)
class BirthdayConfig:
    enabled: bool = True
    lead_time_days: int = 0
    default_channel: MessageChannel = MessageChannel.WHATSAPP
    send_automatically: bool = False
    follow_up_type: str = "birthday"
    message_template: str = (
        "Happy Birthday {first_name}! We celebrate you today at {church_name} "
        "and pray that this new year will be full of grace."
    )


@dataclass(frozen=True)
class MessagingConfig:
    send_welcome_on_promotion: bool = False
    welcome_channel: MessageChannel = MessageChannel.WHATSAPP
    welcome_template: str = "Welcome to the family, {first_name}! We are glad you are now a member of {church_name}."


@dataclass(frozen=True)
class NotificationsConfig:
    new_first_time_guest: bool = True
    guest_ready_for_promotion: bool = True
    follow_up_created: bool = True
    upcoming_birthday: bool = True

    def is_enabled(self, event: NotificationEvent) -> bool:
        return bool(getattr(self, event.value, False))


@dataclass(frozen=True)
class SystemInfo:
    church_name: str = "Your Church Name"
    timezone: str = "Africa/Lagos"


@dataclass(frozen=True)
class SystemConfig:
    version: int = 1
    evolution: EvolutionConfig = field(default_factory=EvolutionConfig)
    follow_up: FollowUpConfig = field(default_factory=FollowUpConfig)
    tally: TallyConfig = field(default_factory=TallyConfig)
    attendance: AttendanceConfig = field(default_factory=AttendanceConfig)
    birthdays: BirthdayConfig = field(default_factory=BirthdayConfig)
    messaging: MessagingConfig = field(default_factory=MessagingConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)
    system_info: SystemInfo = field(default_factory=SystemInfo)
