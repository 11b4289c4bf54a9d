"""
Tests for the Reports endpoints:
- Submitting reports (validation, coercion, trimming).
- Listing pending/actioned reports.
- Approving/denying, including 404 for unknown or already actioned ids.
- Side effects: webhook notifications and ban-list sync scheduling.
"""

import re

import httpx
import pytest

from report_server.notifications import utils as notification_utils

HEX_ID = re.compile(r"^[0-9a-f]{16}$")

VALID_REPORT = {"target": 42, "reporter": 7, "context": "spam", "reason": "scamming"}


# ────────────────────────────────
# Fixtures and helpers
# ────────────────────────────────
@pytest.fixture
def sync_calls(monkeypatch):
    """Record ban-list sync attempts instead of talking to GitHub."""
    calls = []
    monkeypatch.setattr("report_server.banlist.utils.sync_ban", lambda report, settings=None: calls.append(report))
    return calls


@pytest.fixture
def webhook_calls(monkeypatch):
    """Record webhook deliveries as (url, content)."""
    calls = []
    monkeypatch.setattr(
        "report_server.notifications.utils.fire_webhook",
        lambda content, url, timeout=10.0: calls.append((url, content)),
    )
    return calls


def submit(client, **overrides):
    return client.post("/report", json={**VALID_REPORT, **overrides})


# ────────────────────────────────
# Tests: Submission
# ────────────────────────────────
def test_submit_report_success(client):
    """POST /report → 201, pending list holds exactly the new report."""
    response = submit(client)
    assert response.status_code == 201
    data = response.json()
    assert data["success"] is True
    assert HEX_ID.match(data["report_id"])
    assert data["report_id"] in data["message"]

    listing = client.get("/api/reports").json()
    assert len(listing["pending"]) == 1
    assert listing["actioned"] == []
    report = listing["pending"][0]
    assert report["id"] == data["report_id"]
    assert report["status"] == "pending"
    assert report["target"] == 42
    assert report["reporter"] == 7
    assert report["actionedAt"] is None
    assert report["sourceAddress"] == "testclient"


def test_submitted_ids_are_unique_and_ordered(client_factory):
    """POST /report x20 → 20 distinct ids, listed in submission order."""
    client = client_factory(report_rate_limit_max=100)
    ids = [submit(client, context=f"spam {i}").json()["report_id"] for i in range(20)]
    assert len(set(ids)) == 20
    assert all(HEX_ID.match(i) for i in ids)

    pending = client.get("/api/reports").json()["pending"]
    assert [r["id"] for r in pending] == ids


def test_submit_trims_text_and_coerces_numeric_strings(client):
    """Text fields are trimmed; numeric strings become numbers."""
    response = submit(client, target=" 42 ", reporter="7", context="  spam  ", reason="  scamming ")
    assert response.status_code == 201

    report = client.get("/api/reports").json()["pending"][0]
    assert report["target"] == 42
    assert report["reporter"] == 7
    assert report["context"] == "spam"
    assert report["reason"] == "scamming"


def test_submit_without_reason_defaults_to_empty(client):
    payload = {"target": 1, "reporter": 2, "context": "spam"}
    assert client.post("/report", json=payload).status_code == 201
    assert client.get("/api/reports").json()["pending"][0]["reason"] == ""


@pytest.mark.parametrize("missing", ["target", "reporter", "context"])
def test_submit_missing_field(client, missing):
    """POST /report → 400 when a required field is omitted."""
    payload = {k: v for k, v in VALID_REPORT.items() if k != missing}
    response = client.post("/report", json=payload)
    assert response.status_code == 400
    assert "Missing required fields" in response.json()["error"]
    assert client.get("/api/reports").json()["pending"] == []


@pytest.mark.parametrize("context", ["", "   "])
def test_submit_empty_context(client, context):
    response = submit(client, context=context)
    assert response.status_code == 400
    assert "Missing required fields" in response.json()["error"]


@pytest.mark.parametrize(
    "overrides",
    [
        {"target": "abc"},
        {"reporter": "12x"},
        {"target": True},
        {"target": ""},
        {"target": [1]},
        {"context": 123},
        {"context": ["spam"]},
        {"reason": 5},
    ],
)
def test_submit_invalid_types(client, overrides):
    """POST /report → 400 when ids are not finite numbers or text fields are not strings."""
    response = submit(client, **overrides)
    assert response.status_code == 400
    assert "Invalid field types" in response.json()["error"]


def test_submit_malformed_json(client):
    response = client.post("/report", content="{not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert "error" in response.json()


def test_submit_notifies_reports_channel(client_factory, webhook_calls):
    """A submission posts the pending count to the reports webhook."""
    client = client_factory(reports_webhook="https://hooks.example/reports", actions_webhook="https://hooks.example/actions")
    submit(client)
    submit(client)

    assert [url for url, _ in webhook_calls] == ["https://hooks.example/reports"] * 2
    assert "Total pending reports: **2**" in webhook_calls[-1][1]
    assert "/reports" in webhook_calls[-1][1]


def test_failing_webhook_does_not_change_response(client_factory, monkeypatch):
    """A webhook that cannot be reached leaves the 201 response untouched."""
    def unreachable(url, json=None, timeout=None):
        raise httpx.ConnectError("Connection refused")

    monkeypatch.setattr(notification_utils.httpx, "post", unreachable)
    client = client_factory(reports_webhook="https://hooks.example/reports")

    response = submit(client)
    assert response.status_code == 201
    assert response.json()["success"] is True


def test_webhook_error_status_does_not_change_response(client_factory, monkeypatch):
    monkeypatch.setattr(
        notification_utils.httpx, "post", lambda url, json=None, timeout=None: httpx.Response(500, text="boom")
    )
    client = client_factory(reports_webhook="https://hooks.example/reports", actions_webhook="https://hooks.example/actions")

    report_id = submit(client).json()["report_id"]
    response = client.post("/api/action", json={"reportId": report_id, "action": "denied"})
    assert response.status_code == 200
    assert response.json()["success"] is True


# ────────────────────────────────
# Tests: Rate limiting
# ────────────────────────────────
def test_sixth_submission_is_throttled(client):
    """POST /report → 5 accepted, the 6th from the same address gets 429."""
    for _ in range(5):
        assert submit(client).status_code == 201

    response = submit(client)
    assert response.status_code == 429
    assert response.json()["error"] == "Too many reports from this IP, please try again later."
    assert "Retry-After" in response.headers
    assert len(client.get("/api/reports").json()["pending"]) == 5


def test_invalid_submissions_count_towards_limit(client):
    for _ in range(5):
        assert submit(client, context="").status_code == 400
    assert submit(client).status_code == 429


# ────────────────────────────────
# Tests: Actions
# ────────────────────────────────
def test_action_unknown_report(client, sync_calls):
    """POST /api/action → 404 for an id that was never submitted."""
    response = client.post("/api/action", json={"reportId": "deadbeef00000000", "action": "approved"})
    assert response.status_code == 404
    assert response.json()["error"] == "Report not found!"
    assert sync_calls == []


def test_approve_report(client, sync_calls):
    """POST /api/action approved → moved to actioned, ban-list sync attempted once."""
    report_id = submit(client).json()["report_id"]

    response = client.post("/api/action", json={"reportId": report_id, "action": "approved"})
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert "approved" in response.json()["message"]

    listing = client.get("/api/reports").json()
    assert listing["pending"] == []
    assert len(listing["actioned"]) == 1
    actioned = listing["actioned"][0]
    assert actioned["id"] == report_id
    assert actioned["status"] == "approved"
    assert actioned["actionedAt"]

    assert len(sync_calls) == 1
    assert sync_calls[0].id == report_id


def test_deny_report(client, sync_calls):
    """POST /api/action denied → moved to actioned, no ban-list sync."""
    report_id = submit(client).json()["report_id"]

    response = client.post("/api/action", json={"reportId": report_id, "action": "denied"})
    assert response.status_code == 200

    actioned = client.get("/api/reports").json()["actioned"]
    assert actioned[0]["status"] == "denied"
    assert sync_calls == []


LISTING_KEYS = {"id", "target", "reporter", "context", "reason", "timestamp", "sourceAddress", "status", "actionedAt"}


def test_listing_uses_camel_case_keys(client, sync_calls):
    """GET /api/reports → every report carries sourceAddress/actionedAt, never the snake_case names."""
    first = submit(client).json()["report_id"]
    submit(client, target=43)
    client.post("/api/action", json={"reportId": first, "action": "denied"})

    listing = client.get("/api/reports").json()
    pending, actioned = listing["pending"][0], listing["actioned"][0]
    assert set(pending) == LISTING_KEYS
    assert set(actioned) == LISTING_KEYS
    assert pending["actionedAt"] is None
    assert actioned["actionedAt"] is not None
    assert actioned["sourceAddress"] == "testclient"


def test_action_already_actioned_report(client, sync_calls):
    """Actioning the same id twice → second call is 404 and nothing runs twice."""
    report_id = submit(client).json()["report_id"]
    assert client.post("/api/action", json={"reportId": report_id, "action": "approved"}).status_code == 200

    response = client.post("/api/action", json={"reportId": report_id, "action": "denied"})
    assert response.status_code == 404
    listing = client.get("/api/reports").json()
    assert listing["actioned"][0]["status"] == "approved"
    assert len(sync_calls) == 1


@pytest.mark.parametrize(
    "payload",
    [
        {"reportId": "deadbeef00000000", "action": "maybe"},
        {"reportId": "deadbeef00000000"},
        {"action": "approved"},
        {"reportId": "", "action": "approved"},
    ],
)
def test_action_invalid_request(client, payload):
    """POST /api/action → 400 for a missing id or an unknown decision."""
    response = client.post("/api/action", json=payload)
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid action or report ID!"


def test_action_notifications_differ_by_decision(client_factory, webhook_calls, sync_calls):
    client = client_factory(actions_webhook="https://hooks.example/actions")
    first = submit(client, target=111, reporter=222).json()["report_id"]
    second = submit(client, target=333, reporter=444).json()["report_id"]

    client.post("/api/action", json={"reportId": first, "action": "approved"})
    client.post("/api/action", json={"reportId": second, "action": "denied"})

    approved_text, denied_text = [content for _, content in webhook_calls]
    assert "Report Approved" in approved_text and "Report Denied" not in approved_text
    assert "Report Denied" in denied_text and "Report Approved" not in denied_text
    assert "https://rugplay.com/user/111" in approved_text
    assert "https://rugplay.com/user/444" in denied_text
    assert "spam" in denied_text


# ────────────────────────────────
# Tests: Routing
# ────────────────────────────────
@pytest.mark.parametrize("method", ["get", "put", "delete"])
def test_other_methods_on_report_redirect(client, method):
    response = getattr(client, method)("/report", follow_redirects=False)
    assert response.status_code == 301
    assert response.headers["location"] == "/reports"


def test_unknown_path_redirects_to_dashboard(client):
    response = client.get("/somewhere/else", follow_redirects=False)
    assert response.status_code == 301
    assert response.headers["location"] == "/reports"


def test_dashboard_page(client):
    response = client.get("/reports")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "/api/action" in response.text
