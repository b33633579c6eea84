from __future__ import annotations

import pytest

from church_crm.main import create_app
from church_crm.settings.patches import TallyPatch


@pytest.fixture
def client(monkeypatch, container):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app(container=container)
    return app.test_client()


def _guest(client, first_name="Ada"):
    resp = client.post("/api/people/guests", json={"first_name": first_name, "last_name": "Obi"})
    assert resp.status_code == 201
    return resp.get_json()["person"]


def _program(client, **extra):
    body = {"name": "Sunday Service", "type": "sunday-service", "date": "2026-03-22", "start_time": "09:00"}
    body.update(extra)
    resp = client.post("/api/programs", json=body)
    assert resp.status_code == 201
    return resp.get_json()["program"]


def test_register_guest_and_fetch(client):
    guest = _guest(client)

    resp = client.get(f"/api/people/{guest['id']}")

    assert resp.status_code == 200
    person = resp.get_json()["person"]
    assert person["category"] == "guest"
    assert person["evolution"]["guest_type"] == "first-time"


def test_missing_first_name_is_a_bad_request(client):
    resp = client.post("/api/people/guests", json={"last_name": "Obi"})

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "ValidationError"


def test_unknown_person_is_not_found(client):
    resp = client.get("/api/people/person_missing")

    assert resp.status_code == 404
    assert resp.get_json()["success"] is False


def test_tally_flow_over_http(client):
    guest = _guest(client)
    program = _program(client, expected_attendance=3)
    base = f"/api/programs/{program['id']}/tallies"

    generated = client.post(f"{base}/generate", json={}).get_json()
    assert (generated["created"], generated["from_code"], generated["to_code"]) == (3, "T001", "T003")

    issued = client.post(f"{base}/issue", json={"issued_by_user_id": "usher-1"}).get_json()["tally"]
    assert issued["code"] == "T001"
    assert issued["status"] == "issued"

    mapped = client.post(f"{base}/T001/map", json={"person_id": guest["id"], "source": "card"})
    assert mapped.status_code == 200
    assert mapped.get_json()["tally"]["status"] == "logged"

    again = client.post(f"{base}/T001/map", json={"person_id": guest["id"]})
    assert again.status_code == 409
    assert again.get_json()["error"] == "AlreadyMappedError"

    records = client.get(f"/api/programs/{program['id']}/attendance").get_json()["records"]
    assert [r["person_id"] for r in records] == [guest["id"]]
    assert records[0]["timestamp"] == issued["state"]["issued_at"]

    report = client.get(f"{base}/report").get_json()["report"]
    assert report["total"] == 3
    assert report["logged"] == 1


def test_void_then_issue_same_code_conflicts(client):
    program = _program(client, expected_attendance=1)
    base = f"/api/programs/{program['id']}/tallies"
    client.post(f"{base}/generate", json={})

    assert client.post(f"{base}/T001/void", json={}).status_code == 200
    resp = client.post(f"{base}/issue", json={"issued_by_user_id": "usher-1", "code": "T001"})

    assert resp.status_code == 409
    assert resp.get_json()["error"] == "InvalidStateError"


def test_tally_qr_image(client):
    program = _program(client, expected_attendance=1)
    client.post(f"/api/programs/{program['id']}/tallies/generate", json={})

    resp = client.get(f"/api/programs/{program['id']}/tallies/T001/qr.png")

    assert resp.status_code == 200
    assert resp.mimetype == "image/png"
    assert resp.data[:8] == b"\x89PNG\r\n\x1a\n"


def test_unknown_program_tallies_not_found(client):
    resp = client.post("/api/programs/program_missing/tallies/generate", json={"expected_count": 3})

    assert resp.status_code == 404


def test_mark_attendance_over_http(client):
    guest = _guest(client)
    program = _program(client)

    resp = client.post(
        f"/api/programs/{program['id']}/attendance",
        json={"person_id": guest["id"], "status": "present", "recorded_by": "usher-1"},
    )

    assert resp.status_code == 200
    assert resp.get_json()["record"]["status"] == "present"


def test_promote_without_enough_visits_conflicts(client):
    guest = _guest(client)

    resp = client.post(f"/api/people/{guest['id']}/promote", json={"membership_date": "2026-03-22"})

    assert resp.status_code == 409
    assert resp.get_json()["error"] == "PromotionNotEligibleError"


def test_cron_endpoints(client):
    absentees = client.post("/api/cron/absentees", json={"now": "2026-03-22T12:00:00"})
    birthdays = client.post("/api/cron/birthdays", json={"now": "2026-03-22T12:00:00", "dry_run": True})

    assert absentees.status_code == 200
    assert absentees.get_json()["result"]["rule_enabled"] is True
    assert birthdays.status_code == 200
    assert birthdays.get_json()["result"]["config_enabled"] is True


def test_health(client):
    assert client.get("/health").get_json() == {"status": "ok"}


def test_non_numeric_expected_count_is_a_bad_request(client):
    program = _program(client)

    resp = client.post(f"/api/programs/{program['id']}/tallies/generate", json={"expected_count": "lots"})

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "ValidationError"


def test_issue_while_tallies_are_disabled_conflicts(client, container):
    program = _program(client)
    container.config_service.update_tally(TallyPatch(enabled=False))

    resp = client.post(f"/api/programs/{program['id']}/tallies/issue", json={"issued_by_user_id": "usher-1"})

    assert resp.status_code == 409
    assert resp.get_json()["error"] == "FeatureDisabledError"


def test_engagement_flags_over_http(client):
    guest = _guest(client)

    resp = client.post(f"/api/people/{guest['id']}/engagement", json={"do_not_contact": True})
    bad = client.post(f"/api/people/{guest['id']}/engagement", json={"is_worker": "yes"})

    assert resp.status_code == 200
    assert resp.get_json()["person"]["engagement"]["do_not_contact"] is True
    assert bad.status_code == 400


def test_guest_stage_follow_up_and_action_log_over_http(client):
    guest = _guest(client)

    created = client.post("/api/follow-ups/guest-stage", json={"person_id": guest["id"], "stage": "new"})
    assert created.status_code == 201
    follow_up = created.get_json()["follow_up"]
    assert (follow_up["type"], follow_up["priority"]) == ("new-guest", "high")

    logged = client.post(
        f"/api/follow-ups/{follow_up['id']}/actions",
        json={"channel": "phone-call", "outcome": "No answer", "created_by": "rm-1"},
    )
    assert logged.status_code == 201

    actions = client.get(f"/api/follow-ups/{follow_up['id']}/actions").get_json()["actions"]
    assert [(a["channel"], a["outcome"]) for a in actions] == [("phone-call", "No answer")]

    unknown = client.post("/api/follow-ups/guest-stage", json={"person_id": guest["id"], "stage": "vip"})
    assert unknown.status_code == 400
