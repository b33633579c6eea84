from __future__ import annotations

from typing import Optional

from flask import Flask, jsonify, request

from ..common.http import json_body, optional_date, required, to_plain
from ..container import Container
from ..core.enums import MembershipStatus, PersonCategory
from ..core.exceptions import ValidationError
from .model import MembershipDetails, PersonalData, PersonAssignment


def _personal_data(data: dict) -> PersonalData:
    return PersonalData(
        first_name=str(required(data, "first_name")).strip(),
        last_name=str(data.get("last_name") or "").strip(),
        phone=str(data.get("phone") or "").strip(),
        email=data.get("email") or None,
        date_of_birth=optional_date(data.get("date_of_birth")),
    )


def _membership(data: dict) -> MembershipDetails:
    membership_date = optional_date(data.get("membership_date"))
    if membership_date is None:
        raise ValidationError("membership_date is required")
    return MembershipDetails(
        membership_date=membership_date,
        membership_number=data.get("membership_number") or None,
        membership_status=MembershipStatus(data.get("membership_status") or MembershipStatus.ACTIVE.value),
        is_worker=data.get("is_worker"),
    )


def _optional_flag(data: dict, key: str) -> Optional[bool]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, bool):
        raise ValidationError(f"{key} must be true or false")
    return value


def register(app: Flask, container: Container) -> None:
    @app.route("/api/people", methods=["GET"], endpoint="api_people_list")
    def list_people():
        category = request.args.get("category")
        people = container.person_service.list(category=PersonCategory(category) if category else None)
        return jsonify({"success": True, "people": to_plain(list(people))})

    @app.route("/api/people/<person_id>", methods=["GET"], endpoint="api_people_get")
    def get_person(person_id: str):
        return jsonify({"success": True, "person": to_plain(container.person_service.get(person_id))})

    @app.route("/api/people/guests", methods=["POST"], endpoint="api_people_register_guest")
    def register_guest():
        data = json_body()
        person = container.person_service.register_guest(
            personal_data=_personal_data(data),
            referral_source=data.get("referral_source") or "walk-in",
            referral_name=data.get("referral_name") or None,
            first_visit_date=optional_date(data.get("first_visit_date")),
            is_worker=bool(data.get("is_worker", False)),
            tags=tuple(data.get("tags") or ()),
        )
        return jsonify({"success": True, "person": to_plain(person)}), 201

    @app.route("/api/people/members", methods=["POST"], endpoint="api_people_register_member")
    def register_member():
        data = json_body()
        person = container.person_service.register_member(
            personal_data=_personal_data(data),
            membership=_membership(data),
            tags=tuple(data.get("tags") or ()),
        )
        return jsonify({"success": True, "person": to_plain(person)}), 201

    @app.route("/api/people/<person_id>/promote", methods=["POST"], endpoint="api_people_promote")
    def promote(person_id: str):
        data = json_body()
        person = container.person_service.promote_guest_to_member(
            person_id,
            _membership(data),
            force=bool(data.get("force", False)),
        )
        return jsonify({"success": True, "person": to_plain(person)})

    @app.route("/api/people/<person_id>/engagement", methods=["POST"], endpoint="api_people_engagement")
    def update_engagement(person_id: str):
        data = json_body()
        person = container.person_service.update_engagement(
            person_id,
            is_worker=_optional_flag(data, "is_worker"),
            receives_broadcasts=_optional_flag(data, "receives_broadcasts"),
            do_not_contact=_optional_flag(data, "do_not_contact"),
        )
        return jsonify({"success": True, "person": to_plain(person)})

    @app.route("/api/people/<person_id>/assignment", methods=["POST"], endpoint="api_people_assignment")
    def update_assignment(person_id: str):
        data = json_body()
        person = container.person_service.update_assignment(
            person_id,
            PersonAssignment(
                primary_rm_user_id=data.get("primary_rm_user_id") or None,
                secondary_rm_user_ids=tuple(data.get("secondary_rm_user_ids") or ()),
                group_id=data.get("group_id") or None,
            ),
        )
        return jsonify({"success": True, "person": to_plain(person)})

    @app.route("/api/people/<person_id>/recompute", methods=["POST"], endpoint="api_people_recompute")
    def recompute(person_id: str):
        person = container.person_service.recompute_evolution(person_id)
        return jsonify({"success": True, "person": to_plain(person)})
