"""Sticky Notes API — REST scenarios for listing and submitting notes.

Tests cover:
    - 201 with stored note; color preserved or defaulted
    - 400 on duplicate signature, oversized message, missing/mistyped fields, bad color
    - GET newest first, [] when empty
    - 500 when the store is down; 413 oversized body; 429 over rate limit
"""

from fastapi.testclient import TestClient

from tests.fakes import UnavailableStore


def test_list_empty_returns_empty_array(client):
    res = client.get("/api/sticky-notes")
    assert res.status_code == 200
    assert res.json() == []


def test_create_returns_201_with_stored_note(client, note_body):
    res = client.post("/api/sticky-notes", json=note_body)

    assert res.status_code == 201
    body = res.json()
    assert body["message"] == "hi"
    assert body["signature"] == "sig1"
    assert body["walletAddress"] == "0xabc"
    assert body["color"] == "pink"
    assert "timestamp" in body


def test_duplicate_signature_returns_400_and_store_unchanged(client, api_store, note_body):
    client.post("/api/sticky-notes", json=note_body)

    res = client.post("/api/sticky-notes", json={**note_body, "message": "other"})

    assert res.status_code == 400
    error = res.json()["error"]
    assert error["code"] == "DUPLICATE_SIGNATURE"
    assert error["message"] == "Note with this signature already exists"
    notes = client.get("/api/sticky-notes").json()
    assert [n["message"] for n in notes] == ["hi"]
    assert len(api_store) == 1


def test_message_of_501_chars_rejected_without_mutation(client, api_store, note_body):
    res = client.post("/api/sticky-notes", json={**note_body, "message": "x" * 501})

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"
    assert len(api_store) == 0


def test_omitted_color_defaults_to_yellow(client, note_body):
    body = {k: v for k, v in note_body.items() if k != "color"}
    res = client.post("/api/sticky-notes", json=body)
    assert res.status_code == 201
    assert res.json()["color"] == "yellow"


def test_empty_color_defaults_to_yellow(client, note_body):
    res = client.post("/api/sticky-notes", json={**note_body, "color": ""})
    assert res.status_code == 201
    assert res.json()["color"] == "yellow"


def test_invalid_color_rejected(client, note_body):
    res = client.post("/api/sticky-notes", json={**note_body, "color": "orange"})
    assert res.status_code == 400
    fields = [d["field"] for d in res.json()["error"]["details"]]
    assert any("color" in f for f in fields)


def test_missing_fields_rejected(client):
    res = client.post("/api/sticky-notes", json={"message": "hi"})
    assert res.status_code == 400
    fields = {d["field"] for d in res.json()["error"]["details"]}
    assert "body.signature" in fields
    assert "body.walletAddress" in fields


def test_non_string_signature_rejected(client, note_body):
    res = client.post("/api/sticky-notes", json={**note_body, "signature": 12345})
    assert res.status_code == 400


def test_list_is_newest_first(client, note_body):
    for i in range(3):
        client.post("/api/sticky-notes", json={**note_body, "signature": f"sig{i}"})

    notes = client.get("/api/sticky-notes").json()

    assert [n["signature"] for n in notes] == ["sig2", "sig1", "sig0"]


def test_list_capped_by_configured_limit(make_app, api_store, note_body):
    app = make_app(notes_list_limit=2)
    with TestClient(app) as c:
        for i in range(4):
            c.post("/api/sticky-notes", json={**note_body, "signature": f"sig{i}"})
        assert len(c.get("/api/sticky-notes").json()) == 2


def test_storage_failure_returns_500(make_app, note_body):
    app = make_app(UnavailableStore(), snapshot_policy="pull")
    with TestClient(app) as c:
        assert c.get("/api/sticky-notes").status_code == 500
        res = c.post("/api/sticky-notes", json=note_body)
        assert res.status_code == 500
        assert res.json()["error"]["code"] == "STORAGE_UNAVAILABLE"


def test_oversized_body_returns_413(make_app, api_store, note_body):
    app = make_app(max_body_bytes=64)
    with TestClient(app) as c:
        res = c.post("/api/sticky-notes", json={**note_body, "message": "x" * 200})
        assert res.status_code == 413
        assert res.json()["error"]["code"] == "PAYLOAD_TOO_LARGE"
        assert len(api_store) == 0


def test_rate_limit_returns_429(make_app):
    app = make_app(rate_limit_max=2)
    with TestClient(app) as c:
        assert c.get("/api/sticky-notes").status_code == 200
        assert c.get("/api/sticky-notes").status_code == 200
        res = c.get("/api/sticky-notes")
        assert res.status_code == 429
        assert res.json()["error"]["message"] == (
            "Too many requests from this IP, please try again later."
        )
        assert int(res.headers["Retry-After"]) >= 1
        # probes stay reachable
        assert c.get("/api/health/").status_code == 200


def test_cors_allows_configured_origin(client):
    res = client.get(
        "/api/sticky-notes", headers={"Origin": "http://localhost:3000"},
    )
    assert res.headers["access-control-allow-origin"] == "http://localhost:3000"


def test_cors_ignores_unknown_origin(client):
    res = client.get(
        "/api/sticky-notes", headers={"Origin": "https://evil.example"},
    )
    assert "access-control-allow-origin" not in res.headers
