"""Evolution engine: guest tiers, member ratings, visit streaks.

Everything here is a pure function of the person, the evolution config and
the reference time `now`; callers persist the returned person.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Optional

from ..core.enums import AttendanceStatus, GuestType, MemberRating, PersonCategory
from ..settings.model import RATING_ORDER, EvolutionConfig, EvolutionThresholds, MemberRatingThresholds
from .model import AttendanceHistoryEntry, Person, PersonEvolution, RatingHistoryEntry


def classify_guest(visit_count: int, thresholds: EvolutionThresholds) -> GuestType:
    # Highest tier first: a count equal to a threshold lands in the higher tier.
    if visit_count >= thresholds.returning_to_regular_threshold:
        return GuestType.REGULAR
    if visit_count >= thresholds.guest_to_returning_threshold:
        return GuestType.RETURNING
    return GuestType.FIRST_TIME


def is_ready_for_promotion(guest_type: Optional[GuestType], visit_count: int, thresholds: EvolutionThresholds) -> bool:
    return guest_type == GuestType.REGULAR and visit_count >= thresholds.regular_guest_to_member_threshold


def attendance_percentage(evolution: PersonEvolution, weeks: int, now: datetime) -> float:
    """Share of `present` entries among history entries in the trailing window."""
    if weeks <= 0:
        return 0.0

    today = now.date()
    start = today - timedelta(days=weeks * 7)
    window = [e for e in evolution.attendance_history if start <= e.date <= today]
    if not window:
        return 0.0

    present = sum(1 for e in window if e.status == AttendanceStatus.PRESENT)
    return present / len(window) * 100


def compute_member_rating(
    evolution: PersonEvolution,
    tiers: MemberRatingThresholds,
    now: datetime,
) -> Optional[tuple[MemberRating, float]]:
    """First tier (strictest first) met over its own window, or None."""
    if not evolution.attendance_history:
        return None

    for rating in RATING_ORDER:
        tier = tiers.tier(rating)
        pct = attendance_percentage(evolution, tier.min_weeks_considered, now)
        if pct >= tier.min_attendance_percentage:
            return rating, pct
    return None


def apply_evolution_rules(person: Person, config: EvolutionConfig, *, now: datetime) -> Person:
    if not config.enabled:
        return person

    evolution = person.evolution

    if person.category == PersonCategory.GUEST:
        guest_type = classify_guest(evolution.visit_count, config.thresholds)
        evolution = replace(
            evolution,
            guest_type=guest_type,
            ready_for_promotion=is_ready_for_promotion(guest_type, evolution.visit_count, config.thresholds),
            member_rating=None,
        )

    elif person.category == PersonCategory.MEMBER:
        computed = compute_member_rating(evolution, config.member_rating_thresholds, now)
        if computed is not None:
            rating, pct = computed
            if rating != evolution.member_rating:
                evolution = replace(
                    evolution,
                    member_rating=rating,
                    rating_history=evolution.rating_history
                    + (RatingHistoryEntry(date=now, rating=rating, attendance_percentage=round(pct, 2)),),
                )
        # No tier met: the previous rating is kept on purpose.
        evolution = replace(evolution, guest_type=None, ready_for_promotion=False)

    return replace(person, evolution=evolution)


def apply_attendance_to_person(
    person: Person,
    *,
    program_id: str,
    on_date: date,
    present: bool,
    config: EvolutionConfig,
    now: datetime,
) -> Person:
    """Append one history entry, update counters and streaks, reclassify."""
    evolution = person.evolution
    entry = AttendanceHistoryEntry(
        program_id=program_id,
        date=on_date,
        status=AttendanceStatus.PRESENT if present else AttendanceStatus.ABSENT,
    )
    history = evolution.attendance_history + (entry,)

    if present:
        current_streak = evolution.current_streak + 1
        evolution = replace(
            evolution,
            attendance_history=history,
            visit_count=evolution.visit_count + 1,
            total_visits=evolution.total_visits + 1,
            current_streak=current_streak,
            longest_streak=max(evolution.longest_streak, current_streak),
            first_visit_date=evolution.first_visit_date or on_date,
            last_visit_date=on_date,
        )
    else:
        evolution = replace(evolution, attendance_history=history, current_streak=0)

    updated = replace(person, evolution=evolution, updated_at=now)
    return apply_evolution_rules(updated, config, now=now)
