from __future__ import annotations

from typing import Any, Optional, Sequence

from ..common.datetime_utils import from_iso_date, from_iso_datetime, to_iso
from ..core.enums import AttendanceStatus, GuestType, MemberRating, MembershipStatus, PersonCategory
from ..storage.store import JsonCollection, Store
from .model import (
    AttendanceHistoryEntry,
    EngagementFlags,
    GuestData,
    MemberData,
    Person,
    PersonalData,
    PersonAssignment,
    PersonEvolution,
    RatingHistoryEntry,
)
from .repository import PersonRepository


class StorePersonRepository(PersonRepository):
    def __init__(self, store: Store):
        self._rows = JsonCollection(store, "people")

    def get_by_id(self, person_id: str) -> Optional[Person]:
        for r in self._rows.load():
            if r["id"] == person_id:
                return person_from_row(r)
        return None

    def list_all(self, *, category: Optional[PersonCategory] = None) -> Sequence[Person]:
        people = [person_from_row(r) for r in self._rows.load()]
        if category is not None:
            people = [p for p in people if p.category == category]
        return people

    def save(self, person: Person) -> None:
        self._rows.upsert(person_to_row(person))


def person_to_row(p: Person) -> dict[str, Any]:
    pd = p.personal_data
    ev = p.evolution
    return {
        "id": p.id,
        "category": p.category.value,
        "personal_data": {
            "first_name": pd.first_name,
            "last_name": pd.last_name,
            "phone": pd.phone,
            "email": pd.email,
            "date_of_birth": to_iso(pd.date_of_birth),
        },
        "evolution": {
            "visit_count": ev.visit_count,
            "total_visits": ev.total_visits,
            "guest_type": ev.guest_type.value if ev.guest_type else None,
            "member_rating": ev.member_rating.value if ev.member_rating else None,
            "first_visit_date": to_iso(ev.first_visit_date),
            "last_visit_date": to_iso(ev.last_visit_date),
            "current_streak": ev.current_streak,
            "longest_streak": ev.longest_streak,
            "rating_history": [
                {"date": to_iso(h.date), "rating": h.rating.value, "attendance_percentage": h.attendance_percentage}
                for h in ev.rating_history
            ],
            "attendance_history": [
                {"program_id": h.program_id, "date": to_iso(h.date), "status": h.status.value}
                for h in ev.attendance_history
            ],
            "ready_for_promotion": ev.ready_for_promotion,
            "last_birthday_message_year": ev.last_birthday_message_year,
        },
        "engagement": {
            "is_worker": p.engagement.is_worker,
            "receives_broadcasts": p.engagement.receives_broadcasts,
            "do_not_contact": p.engagement.do_not_contact,
        },
        "assignment": {
            "primary_rm_user_id": p.assignment.primary_rm_user_id,
            "secondary_rm_user_ids": list(p.assignment.secondary_rm_user_ids),
            "group_id": p.assignment.group_id,
        },
        "guest_data": (
            {
                "referral_source": p.guest_data.referral_source,
                "referral_name": p.guest_data.referral_name,
                "first_visit_date": to_iso(p.guest_data.first_visit_date),
            }
            if p.guest_data
            else None
        ),
        "member_data": (
            {
                "membership_date": to_iso(p.member_data.membership_date),
                "membership_status": p.member_data.membership_status.value,
                "membership_number": p.member_data.membership_number,
            }
            if p.member_data
            else None
        ),
        "tags": list(p.tags),
        "created_at": to_iso(p.created_at),
        "updated_at": to_iso(p.updated_at),
    }


def person_from_row(r: dict[str, Any]) -> Person:
    pd = r.get("personal_data") or {}
    ev = r.get("evolution") or {}
    en = r.get("engagement") or {}
    asg = r.get("assignment") or {}
    gd = r.get("guest_data")
    md = r.get("member_data")

    return Person(
        id=str(r["id"]),
        category=PersonCategory(r["category"]),
        personal_data=PersonalData(
            first_name=pd.get("first_name", ""),
            last_name=pd.get("last_name", ""),
            phone=pd.get("phone") or "",
            email=pd.get("email"),
            date_of_birth=from_iso_date(pd.get("date_of_birth")),
        ),
        evolution=PersonEvolution(
            visit_count=int(ev.get("visit_count", 0)),
            total_visits=int(ev.get("total_visits", 0)),
            guest_type=GuestType(ev["guest_type"]) if ev.get("guest_type") else None,
            member_rating=MemberRating(ev["member_rating"]) if ev.get("member_rating") else None,
            first_visit_date=from_iso_date(ev.get("first_visit_date")),
            last_visit_date=from_iso_date(ev.get("last_visit_date")),
            current_streak=int(ev.get("current_streak", 0)),
            longest_streak=int(ev.get("longest_streak", 0)),
            rating_history=tuple(
                RatingHistoryEntry(
                    date=from_iso_datetime(h["date"]),
                    rating=MemberRating(h["rating"]),
                    attendance_percentage=float(h["attendance_percentage"]),
                )
                for h in ev.get("rating_history", [])
            ),
            attendance_history=tuple(
                AttendanceHistoryEntry(
                    program_id=h["program_id"],
                    date=from_iso_date(h["date"]),
                    status=AttendanceStatus(h["status"]),
                )
                for h in ev.get("attendance_history", [])
            ),
            ready_for_promotion=bool(ev.get("ready_for_promotion", False)),
            last_birthday_message_year=ev.get("last_birthday_message_year"),
        ),
        engagement=EngagementFlags(
            is_worker=bool(en.get("is_worker", False)),
            receives_broadcasts=bool(en.get("receives_broadcasts", True)),
            do_not_contact=bool(en.get("do_not_contact", False)),
        ),
        assignment=PersonAssignment(
            primary_rm_user_id=asg.get("primary_rm_user_id"),
            secondary_rm_user_ids=tuple(asg.get("secondary_rm_user_ids") or ()),
            group_id=asg.get("group_id"),
        ),
        guest_data=(
            GuestData(
                referral_source=gd.get("referral_source", "walk-in"),
                referral_name=gd.get("referral_name"),
                first_visit_date=from_iso_date(gd.get("first_visit_date")),
            )
            if gd
            else None
        ),
        member_data=(
            MemberData(
                membership_date=from_iso_date(md["membership_date"]),
                membership_status=MembershipStatus(md.get("membership_status", "active")),
                membership_number=md.get("membership_number"),
            )
            if md
            else None
        ),
        tags=tuple(r.get("tags") or ()),
        created_at=from_iso_datetime(r.get("created_at")),
        updated_at=from_iso_datetime(r.get("updated_at")),
    )
