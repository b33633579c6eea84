from __future__ import annotations

from dataclasses import fields, replace
from typing import Any, Optional

import structlog

from ..common.validators import require_non_empty, require_non_negative, require_percentage, require_positive
from ..core.exceptions import ValidationError
from ..storage.store import UnitOfWork
from .model import (
    AbsenteeRule,
    BirthdayConfig,
    EvolutionConfig,
    FollowUpConfig,
    RatingTier,
    SystemConfig,
    TallyConfig,
)
from .patches import (
    AbsenteeRulePatch,
    AttendancePatch,
    BirthdayPatch,
    EvolutionPatch,
    FollowUpPatch,
    NotificationsPatch,
    RatingTierPatch,
    TallyPatch,
)
from .repository import ConfigRepository

logger = structlog.get_logger(__name__)


def _changes(patch: Any, *, skip: tuple[str, ...] = ()) -> dict[str, Any]:
    return {
        f.name: getattr(patch, f.name)
        for f in fields(patch)
        if f.name not in skip and getattr(patch, f.name) is not None
    }


def _apply_tier(tier: RatingTier, patch: Optional[RatingTierPatch]) -> RatingTier:
    if patch is None:
        return tier
    return replace(tier, **_changes(patch))


def validate_evolution(evolution: EvolutionConfig) -> None:
    th = evolution.thresholds
    require_positive(th.guest_to_returning_threshold, "guest_to_returning_threshold")
    require_positive(th.returning_to_regular_threshold, "returning_to_regular_threshold")
    require_positive(th.regular_guest_to_member_threshold, "regular_guest_to_member_threshold")
    if th.guest_to_returning_threshold >= th.returning_to_regular_threshold:
        raise ValidationError("guest_to_returning_threshold must be lower than returning_to_regular_threshold")

    tiers = evolution.member_rating_thresholds
    for name in ("adherent", "regular", "returning", "visiting"):
        tier: RatingTier = getattr(tiers, name)
        require_percentage(tier.min_attendance_percentage, f"{name}.min_attendance_percentage")
        require_positive(tier.min_weeks_considered, f"{name}.min_weeks_considered")


def validate_absentee_rule(rule: AbsenteeRule) -> None:
    require_positive(rule.missed_programs_count, "missed_programs_count")
    require_positive(rule.within_days, "within_days")
    require_non_empty(rule.follow_up_type, "follow_up_type")


def validate_follow_up(follow_up: FollowUpConfig) -> None:
    tf = follow_up.timeframes
    for name in ("new_guest_hours", "returning_guest_hours", "regular_guest_hours", "absentee_hours"):
        require_non_negative(getattr(tf, name), name)
    validate_absentee_rule(follow_up.absentee_rule)


def validate_tally(tally: TallyConfig) -> None:
    require_positive(tally.code_padding, "code_padding")
    require_positive(tally.default_expected_attendance, "default_expected_attendance")
    if tally.code_prefix is None or any(ch.isdigit() for ch in tally.code_prefix):
        raise ValidationError("code_prefix must not contain digits")


def validate_birthdays(birthdays: BirthdayConfig) -> None:
    require_non_negative(birthdays.lead_time_days, "lead_time_days")
    require_non_empty(birthdays.follow_up_type, "follow_up_type")


class ConfigService:
    """Use case: read and patch the system configuration section by section."""

    def __init__(self, config: ConfigRepository, uow: UnitOfWork):
        self._config = config
        self._uow = uow

    def get(self) -> SystemConfig:
        return self._config.get_config()

    def _save(self, updated: SystemConfig, section: str) -> SystemConfig:
        self._config.save_config(updated)
        logger.info("config_section_updated", section=section)
        return updated

    def update_evolution(self, patch: EvolutionPatch) -> SystemConfig:
        with self._uow.atomic():
            current = self._config.get_config()
            evo = current.evolution
            thresholds = evo.thresholds
            if patch.thresholds is not None:
                thresholds = replace(thresholds, **_changes(patch.thresholds))
            tiers = evo.member_rating_thresholds
            tiers = replace(
                tiers,
                adherent=_apply_tier(tiers.adherent, patch.adherent),
                regular=_apply_tier(tiers.regular, patch.regular),
                returning=_apply_tier(tiers.returning, patch.returning),
                visiting=_apply_tier(tiers.visiting, patch.visiting),
            )
            new_evo = replace(evo, thresholds=thresholds, member_rating_thresholds=tiers)
            if patch.enabled is not None:
                new_evo = replace(new_evo, enabled=patch.enabled)
            if patch.considered_program_types is not None:
                new_evo = replace(new_evo, considered_program_types=tuple(patch.considered_program_types))

            validate_evolution(new_evo)
            return self._save(replace(current, evolution=new_evo), "evolution")

    def update_follow_up(self, patch: FollowUpPatch) -> SystemConfig:
        with self._uow.atomic():
            current = self._config.get_config()
            fu = current.follow_up
            timeframes = replace(fu.timeframes, **_changes(patch, skip=("enabled", "absentee_rule")))
            rule = fu.absentee_rule
            if patch.absentee_rule is not None:
                rule = replace(rule, **_changes(patch.absentee_rule))
            new_fu = replace(fu, timeframes=timeframes, absentee_rule=rule)
            if patch.enabled is not None:
                new_fu = replace(new_fu, enabled=patch.enabled)

            validate_follow_up(new_fu)
            return self._save(replace(current, follow_up=new_fu), "follow_up")

    def update_absentee_rule(self, patch: AbsenteeRulePatch) -> SystemConfig:
        return self.update_follow_up(FollowUpPatch(absentee_rule=patch))

    def update_tally(self, patch: TallyPatch) -> SystemConfig:
        with self._uow.atomic():
            current = self._config.get_config()
            new_tally = replace(current.tally, **_changes(patch))
            validate_tally(new_tally)
            return self._save(replace(current, tally=new_tally), "tally")

    def update_attendance(self, patch: AttendancePatch) -> SystemConfig:
        with self._uow.atomic():
            current = self._config.get_config()
            return self._save(replace(current, attendance=replace(current.attendance, **_changes(patch))), "attendance")

    def update_birthdays(self, patch: BirthdayPatch) -> SystemConfig:
        with self._uow.atomic():
            current = self._config.get_config()
            new_birthdays = replace(current.birthdays, **_changes(patch))
            validate_birthdays(new_birthdays)
            return self._save(replace(current, birthdays=new_birthdays), "birthdays")

    def update_notifications(self, patch: NotificationsPatch) -> SystemConfig:
        with self._uow.atomic():
            current = self._config.get_config()
            return self._save(
                replace(current, notifications=replace(current.notifications, **_changes(patch))),
                "notifications",
            )

    def reset(self) -> SystemConfig:
        with self._uow.atomic():
            return self._save(SystemConfig(), "all")
