from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import json_body, optional_datetime, required, to_plain
from ..container import Container
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError
from .model import AttendanceEntry


def register(app: Flask, container: Container) -> None:
    def _status(value) -> AttendanceStatus:
        try:
            return AttendanceStatus(value)
        except ValueError as exc:
            raise ValidationError(f"Invalid attendance status: {value}") from exc

    @app.route("/api/programs/<program_id>/attendance", methods=["GET"], endpoint="api_attendance_list")
    def list_attendance(program_id: str):
        container.program_service.get(program_id)
        records = container.attendance_ledger.list_for_program(program_id)
        return jsonify({"success": True, "records": to_plain(list(records))})

    @app.route("/api/programs/<program_id>/attendance", methods=["POST"], endpoint="api_attendance_mark")
    def mark_attendance(program_id: str):
        data = json_body()
        record = container.attendance_ledger.mark_attendance(
            program_id,
            str(required(data, "person_id")),
            _status(data.get("status") or AttendanceStatus.PRESENT.value),
            recorded_by=str(required(data, "recorded_by")),
            timestamp=optional_datetime(data.get("timestamp")),
        )
        return jsonify({"success": True, "record": to_plain(record)})

    @app.route("/api/programs/<program_id>/attendance/bulk", methods=["POST"], endpoint="api_attendance_bulk")
    def bulk_mark(program_id: str):
        data = json_body()
        raw_entries = data.get("entries") or []
        if not isinstance(raw_entries, list):
            raise ValidationError("entries must be a list")
        entries = [
            AttendanceEntry(
                person_id=str(required(e, "person_id")),
                present=bool(e.get("present", True)),
                timestamp=optional_datetime(e.get("timestamp")),
            )
            for e in raw_entries
        ]
        records = container.attendance_ledger.bulk_mark(
            program_id,
            entries,
            recorded_by=str(required(data, "recorded_by")),
        )
        return jsonify({"success": True, "records": to_plain(records)})
