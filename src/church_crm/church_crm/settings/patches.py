"""Typed partial updates, one per config section.

A `None` field keeps the current value. List fields replace the current
value wholesale.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from ..core.enums import AttendanceScope, FollowUpPriority, MessageChannel


@dataclass(frozen=True)
class ThresholdsPatch:
    guest_to_returning_threshold: Optional[int] = None
    returning_to_regular_threshold: Optional[int] = None
    regular_guest_to_member_threshold: Optional[int] = None


@dataclass(frozen=True)
class RatingTierPatch:
    min_attendance_percentage: Optional[float] = None
    min_weeks_considered: Optional[int] = None


@dataclass(frozen=True)
class EvolutionPatch:
    enabled: Optional[bool] = None
    thresholds: Optional[ThresholdsPatch] = None
    adherent: Optional[RatingTierPatch] = None
    regular: Optional[RatingTierPatch] = None
    returning: Optional[RatingTierPatch] = None
    visiting: Optional[RatingTierPatch] = None
    considered_program_types: Optional[Sequence[str]] = None


@dataclass(frozen=True)
class AbsenteeRulePatch:
    enabled: Optional[bool] = None
    scope: Optional[AttendanceScope] = None
    missed_programs_count: Optional[int] = None
    within_days: Optional[int] = None
    create_follow_up: Optional[bool] = None
    follow_up_type: Optional[str] = None
    follow_up_priority: Optional[FollowUpPriority] = None


@dataclass(frozen=True)
class FollowUpPatch:
    enabled: Optional[bool] = None
    new_guest_hours: Optional[int] = None
    returning_guest_hours: Optional[int] = None
    regular_guest_hours: Optional[int] = None
    absentee_hours: Optional[int] = None
    absentee_rule: Optional[AbsenteeRulePatch] = None


@dataclass(frozen=True)
class TallyPatch:
    enabled: Optional[bool] = None
    auto_generate_on_program_create: Optional[bool] = None
    default_expected_attendance: Optional[int] = None
    code_prefix: Optional[str] = None
    code_padding: Optional[int] = None


@dataclass(frozen=True)
class AttendancePatch:
    track_workers_only: Optional[bool] = None


@dataclass(frozen=True)
class BirthdayPatch:
    enabled: Optional[bool] = None
    lead_time_days: Optional[int] = None
    default_channel: Optional[MessageChannel] = None
    send_automatically: Optional[bool] = None
    follow_up_type: Optional[str] = None
    message_template: Optional[str] = None


@dataclass(frozen=True)
class NotificationsPatch:
    new_first_time_guest: Optional[bool] = None
    guest_ready_for_promotion: Optional[bool] = None
    follow_up_created: Optional[bool] = None
    upcoming_birthday: Optional[bool] = None
