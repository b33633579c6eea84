from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import json_body, optional_datetime, required, to_plain
from ..container import Container
from ..core.enums import AttendanceScope, FollowUpChannel, FollowUpStatus
from ..core.exceptions import ValidationError
from .service import FollowUpService

_GUEST_STAGE_CREATORS = {
    "new": FollowUpService.create_for_new_guest,
    "returning": FollowUpService.create_for_returning_guest,
    "regular": FollowUpService.create_for_regular_guest,
}


def register(app: Flask, container: Container) -> None:
    @app.route("/api/cron/absentees", methods=["POST"], endpoint="api_cron_absentees")
    def run_absentees():
        data = json_body()
        scope = data.get("scope")
        try:
            scope = AttendanceScope(scope) if scope else None
        except ValueError as exc:
            raise ValidationError(f"Invalid scope: {scope}") from exc
        result = container.absentee_detector.run_absentee_automation(
            now=optional_datetime(data.get("now")),
            scope=scope,
            created_by=data.get("created_by") or "system",
        )
        status = 500 if result.error else 200
        return jsonify({"success": result.error is None, "result": to_plain(result)}), status

    @app.route("/api/cron/birthdays", methods=["POST"], endpoint="api_cron_birthdays")
    def run_birthdays():
        data = json_body()
        result = container.birthday_automation.run_birthday_automation(
            now=optional_datetime(data.get("now")),
            dry_run=bool(data.get("dry_run", False)),
            created_by=data.get("created_by") or "system",
        )
        status = 500 if result.error else 200
        return jsonify({"success": result.error is None, "result": to_plain(result)}), status

    @app.route("/api/follow-ups", methods=["GET"], endpoint="api_follow_ups_list")
    def list_follow_ups():
        person_id = request.args.get("person_id")
        if person_id:
            items = container.follow_up_service.list_open(person_id, request.args.get("type") or None)
        else:
            items = container.follow_up_service.list_all()
        return jsonify({"success": True, "follow_ups": to_plain(list(items))})

    @app.route("/api/follow-ups/<follow_up_id>/status", methods=["POST"], endpoint="api_follow_ups_status")
    def update_status(follow_up_id: str):
        data = json_body()
        raw = required(data, "status")
        try:
            status = FollowUpStatus(raw)
        except ValueError as exc:
            raise ValidationError(f"Invalid follow-up status: {raw}") from exc
        follow_up = container.follow_up_service.update_status(follow_up_id, status)
        return jsonify({"success": True, "follow_up": to_plain(follow_up)})

    @app.route("/api/follow-ups/guest-stage", methods=["POST"], endpoint="api_follow_ups_guest_stage")
    def create_guest_stage_follow_up():
        data = json_body()
        person_id = str(required(data, "person_id"))
        stage = str(required(data, "stage"))
        create = _GUEST_STAGE_CREATORS.get(stage)
        if create is None:
            raise ValidationError(f"Invalid guest stage: {stage}")
        follow_up = create(
            container.follow_up_service,
            person_id,
            created_by=data.get("created_by") or "system",
            notes=data.get("notes") or "",
        )
        return jsonify({"success": True, "follow_up": to_plain(follow_up)}), 201

    @app.route("/api/follow-ups/<follow_up_id>/actions", methods=["GET"], endpoint="api_follow_ups_actions")
    def list_actions(follow_up_id: str):
        actions = container.follow_up_service.list_actions(follow_up_id)
        return jsonify({"success": True, "actions": to_plain(list(actions))})

    @app.route("/api/follow-ups/<follow_up_id>/actions", methods=["POST"], endpoint="api_follow_ups_log_action")
    def log_action(follow_up_id: str):
        data = json_body()
        raw = required(data, "channel")
        try:
            channel = FollowUpChannel(raw)
        except ValueError as exc:
            raise ValidationError(f"Invalid channel: {raw}") from exc
        action = container.follow_up_service.log_action(
            follow_up_id,
            channel=channel,
            outcome=data.get("outcome") or "",
            created_by=str(required(data, "created_by")),
        )
        return jsonify({"success": True, "action": to_plain(action)}), 201
