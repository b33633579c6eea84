from __future__ import annotations

from dataclasses import asdict
from typing import Any, Protocol

from ..core.enums import AttendanceScope, FollowUpPriority, MessageChannel
from ..storage.store import JsonDocument, Store
from .model import (
    AbsenteeRule,
    AttendanceConfig,
    BirthdayConfig,
    EvolutionConfig,
    EvolutionThresholds,
    FollowUpConfig,
    FollowUpTimeframes,
    MemberRatingThresholds,
    MessagingConfig,
    NotificationsConfig,
    RatingTier,
    SystemConfig,
    SystemInfo,
    TallyConfig,
)


class ConfigProvider(Protocol):
    def get_config(self) -> SystemConfig:
        """Read-only snapshot of the current configuration."""
        raise NotImplementedError


class ConfigRepository(ConfigProvider, Protocol):
    def save_config(self, config: SystemConfig) -> None:
        raise NotImplementedError


class StaticConfigProvider(ConfigProvider):
    """Serves a fixed config; used by automation scripts and tests."""

    def __init__(self, config: SystemConfig | None = None):
        self._config = config or SystemConfig()

    def get_config(self) -> SystemConfig:
        return self._config


class StoreConfigRepository(ConfigRepository):
    def __init__(self, store: Store):
        self._doc = JsonDocument(store, "config")

    def get_config(self) -> SystemConfig:
        raw = self._doc.load()
        if not raw:
            return SystemConfig()
        return config_from_dict(raw)

    def save_config(self, config: SystemConfig) -> None:
        self._doc.save(asdict(config))


def _tier(raw: dict[str, Any] | None, default: RatingTier) -> RatingTier:
    if not raw:
        return default
    return RatingTier(
        min_attendance_percentage=float(raw.get("min_attendance_percentage", default.min_attendance_percentage)),
        min_weeks_considered=int(raw.get("min_weeks_considered", default.min_weeks_considered)),
    )


def config_from_dict(raw: dict[str, Any]) -> SystemConfig:
    """Rebuild a SystemConfig; missing keys fall back to defaults."""
    d = SystemConfig()

    evo = raw.get("evolution") or {}
    th = evo.get("thresholds") or {}
    tiers = evo.get("member_rating_thresholds") or {}
    default_tiers = d.evolution.member_rating_thresholds
    evolution = EvolutionConfig(
        enabled=bool(evo.get("enabled", d.evolution.enabled)),
        thresholds=EvolutionThresholds(
            guest_to_returning_threshold=int(
                th.get("guest_to_returning_threshold", d.evolution.thresholds.guest_to_returning_threshold)
            ),
            returning_to_regular_threshold=int(
                th.get("returning_to_regular_threshold", d.evolution.thresholds.returning_to_regular_threshold)
            ),
            regular_guest_to_member_threshold=int(
                th.get("regular_guest_to_member_threshold", d.evolution.thresholds.regular_guest_to_member_threshold)
            ),
        ),
        member_rating_thresholds=MemberRatingThresholds(
            adherent=_tier(tiers.get("adherent"), default_tiers.adherent),
            regular=_tier(tiers.get("regular"), default_tiers.regular),
            returning=_tier(tiers.get("returning"), default_tiers.returning),
            visiting=_tier(tiers.get("visiting"), default_tiers.visiting),
        ),
        considered_program_types=tuple(evo.get("considered_program_types", d.evolution.considered_program_types)),
    )

    fu = raw.get("follow_up") or {}
    tf = fu.get("timeframes") or {}
    rule = fu.get("absentee_rule") or {}
    dr = d.follow_up.absentee_rule
    follow_up = FollowUpConfig(
        enabled=bool(fu.get("enabled", d.follow_up.enabled)),
        timeframes=FollowUpTimeframes(
            new_guest_hours=int(tf.get("new_guest_hours", d.follow_up.timeframes.new_guest_hours)),
            returning_guest_hours=int(tf.get("returning_guest_hours", d.follow_up.timeframes.returning_guest_hours)),
            regular_guest_hours=int(tf.get("regular_guest_hours", d.follow_up.timeframes.regular_guest_hours)),
            absentee_hours=int(tf.get("absentee_hours", d.follow_up.timeframes.absentee_hours)),
        ),
        absentee_rule=AbsenteeRule(
            enabled=bool(rule.get("enabled", dr.enabled)),
            scope=AttendanceScope(rule.get("scope", dr.scope.value)),
            missed_programs_count=int(rule.get("missed_programs_count", dr.missed_programs_count)),
            within_days=int(rule.get("within_days", dr.within_days)),
            create_follow_up=bool(rule.get("create_follow_up", dr.create_follow_up)),
            follow_up_type=str(rule.get("follow_up_type", dr.follow_up_type)),
            follow_up_priority=FollowUpPriority(rule.get("follow_up_priority", dr.follow_up_priority.value)),
        ),
    )

    ta = raw.get("tally") or {}
    tally = TallyConfig(
        enabled=bool(ta.get("enabled", d.tally.enabled)),
        auto_generate_on_program_create=bool(
            ta.get("auto_generate_on_program_create", d.tally.auto_generate_on_program_create)
        ),
        default_expected_attendance=int(ta.get("default_expected_attendance", d.tally.default_expected_attendance)),
        code_prefix=str(ta.get("code_prefix", d.tally.code_prefix)),
        code_padding=int(ta.get("code_padding", d.tally.code_padding)),
    )

    at = raw.get("attendance") or {}
    attendance = AttendanceConfig(track_workers_only=bool(at.get("track_workers_only", d.attendance.track_workers_only)))

    bd = raw.get("birthdays") or {}
    birthdays = BirthdayConfig(
        enabled=bool(bd.get("enabled", d.birthdays.enabled)),
        lead_time_days=int(bd.get("lead_time_days", d.birthdays.lead_time_days)),
        default_channel=MessageChannel(bd.get("default_channel", d.birthdays.default_channel.value)),
        send_automatically=bool(bd.get("send_automatically", d.birthdays.send_automatically)),
        follow_up_type=str(bd.get("follow_up_type", d.birthdays.follow_up_type)),
        message_template=str(bd.get("message_template", d.birthdays.message_template)),
    )

    ms = raw.get("messaging") or {}
    messaging = MessagingConfig(
        send_welcome_on_promotion=bool(ms.get("send_welcome_on_promotion", d.messaging.send_welcome_on_promotion)),
        welcome_channel=MessageChannel(ms.get("welcome_channel", d.messaging.welcome_channel.value)),
        welcome_template=str(ms.get("welcome_template", d.messaging.welcome_template)),
    )

    nt = raw.get("notifications") or {}
    notifications = NotificationsConfig(
        new_first_time_guest=bool(nt.get("new_first_time_guest", d.notifications.new_first_time_guest)),
        guest_ready_for_promotion=bool(nt.get("guest_ready_for_promotion", d.notifications.guest_ready_for_promotion)),
        follow_up_created=bool(nt.get("follow_up_created", d.notifications.follow_up_created)),
        upcoming_birthday=bool(nt.get("upcoming_birthday", d.notifications.upcoming_birthday)),
    )

    si = raw.get("system_info") or {}
    system_info = SystemInfo(
        church_name=str(si.get("church_name", d.system_info.church_name)),
        timezone=str(si.get("timezone", d.system_info.timezone)),
    )

    return SystemConfig(
        version=int(raw.get("version", d.version)),
        evolution=evolution,
        follow_up=follow_up,
        tally=tally,
        attendance=attendance,
        birthdays=birthdays,
        messaging=messaging,
        notifications=notifications,
        system_info=system_info,
    )
