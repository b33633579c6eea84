from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_hhmm
from ..common.http import json_body, optional_date, required, to_plain
from ..container import Container
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    def _start_time(value):
        if not value:
            return None
        try:
            return parse_hhmm(value)
        except ValueError as exc:
            raise ValidationError(f"Invalid start_time: {value}") from exc

    @app.route("/api/programs", methods=["GET"], endpoint="api_programs_list")
    def list_programs():
        start = optional_date(request.args.get("start"))
        end = optional_date(request.args.get("end"))
        if start and end:
            programs = container.program_service.list_between(start=start, end=end)
        else:
            programs = container.program_service.list()
        return jsonify({"success": True, "programs": to_plain(list(programs))})

    @app.route("/api/programs/<program_id>", methods=["GET"], endpoint="api_programs_get")
    def get_program(program_id: str):
        return jsonify({"success": True, "program": to_plain(container.program_service.get(program_id))})

    @app.route("/api/programs", methods=["POST"], endpoint="api_programs_create")
    def create_program():
        data = json_body()
        on_date = optional_date(required(data, "date"))
        expected = data.get("expected_attendance")
        program = container.program_service.create(
            name=str(required(data, "name")),
            type=str(required(data, "type")),
            on_date=on_date,
            start_time=_start_time(data.get("start_time")),
            expected_attendance=int(expected) if expected is not None else None,
            location=data.get("location") or None,
        )
        return jsonify({"success": True, "program": to_plain(program)}), 201
