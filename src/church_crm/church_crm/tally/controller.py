from __future__ import annotations

import io
from typing import Optional

import qrcode
from flask import Flask, jsonify, request, send_file

from ..common.http import json_body, required, to_plain
from ..container import Container
from ..core.exceptions import FeatureDisabledError, ValidationError
from .model import Tally


def tally_to_json(tally: Tally) -> dict:
    data = to_plain(tally)
    data["status"] = tally.status.value
    return data


def qr_png(payload: str) -> io.BytesIO:
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=2,
    )
    qr.add_data(payload)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    buf.seek(0)
    return buf


def _expected_count(data: dict) -> Optional[int]:
    raw = data.get("expected_count")
    if raw is None:
        return None
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid expected_count: {raw}") from exc


def register(app: Flask, container: Container) -> None:
    @app.route("/api/programs/<program_id>/tallies", methods=["GET"], endpoint="api_tallies_list")
    def list_tallies(program_id: str):
        container.program_service.get(program_id)
        tallies = container.tally_service.list_for_program(program_id)
        return jsonify({"success": True, "tallies": [tally_to_json(t) for t in tallies]})

    @app.route("/api/programs/<program_id>/tallies/generate", methods=["POST"], endpoint="api_tallies_generate")
    def generate_tallies(program_id: str):
        data = json_body()
        result = container.tally_service.generate_tallies_for_program(program_id, _expected_count(data))
        return jsonify(
            {
                "success": True,
                "created": len(result.created),
                "total": len(result.tallies),
                "from_code": result.from_code,
                "to_code": result.to_code,
            }
        )

    @app.route("/api/programs/<program_id>/tallies/issue", methods=["POST"], endpoint="api_tallies_issue")
    def issue_tally(program_id: str):
        data = json_body()
        tally = container.tally_service.issue_tally(
            program_id,
            issued_by_user_id=str(required(data, "issued_by_user_id")),
            code=data.get("code") or None,
            person_id=data.get("person_id") or None,
            source=data.get("source") or None,
        )
        if tally is None:
            raise FeatureDisabledError("Tallies are disabled")
        return jsonify({"success": True, "tally": tally_to_json(tally)})

    @app.route("/api/programs/<program_id>/tallies/<code>/map", methods=["POST"], endpoint="api_tallies_map")
    def map_tally(program_id: str, code: str):
        data = json_body()
        tally = container.tally_service.map_tally_to_person(
            program_id,
            code,
            str(required(data, "person_id")),
            source=data.get("source") or None,
            mapped_by_user_id=data.get("mapped_by_user_id") or None,
        )
        if tally is None:
            raise FeatureDisabledError("Tallies are disabled")
        return jsonify({"success": True, "tally": tally_to_json(tally)})

    @app.route("/api/programs/<program_id>/tallies/<code>/void", methods=["POST"], endpoint="api_tallies_void")
    def void_tally(program_id: str, code: str):
        data = json_body()
        tally = container.tally_service.void_tally(
            program_id,
            code,
            voided_by_user_id=data.get("voided_by_user_id") or None,
        )
        return jsonify({"success": True, "tally": tally_to_json(tally)})

    @app.route("/api/programs/<program_id>/tallies/report", methods=["GET"], endpoint="api_tallies_report")
    def tally_report(program_id: str):
        report = container.tally_service.report_for_program(program_id)
        return jsonify({"success": True, "report": to_plain(report)})

    @app.route("/api/programs/<program_id>/tallies/<code>/qr.png", methods=["GET"], endpoint="api_tallies_qr")
    def tally_qr(program_id: str, code: str):
        """Printable QR image for one tally; scanning it yields `<program_id>:<code>`."""
        tally = container.tally_service.get(program_id, code)
        return send_file(
            qr_png(f"{tally.program_id}:{tally.code}"),
            mimetype="image/png",
            as_attachment=bool(request.args.get("download")),
            download_name=f"{tally.code}.png",
        )
