"""Realtime Channel — WebSocket sessions against the running app.

Tests cover:
    - push policy sends {"type": "initial"} first; pull policy sends nothing
    - An accepted POST is broadcast to connected sockets; a duplicate is not
    - ping → pong; malformed frames → error frame, socket stays open
    - Unknown origins refused (1008); oversized frames close the socket (1009)
"""

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect


def test_push_join_receives_initial_snapshot(client, note_body):
    client.post("/api/sticky-notes", json=note_body)

    with client.websocket_connect("/ws") as ws:
        frame = ws.receive_json()

    assert frame["type"] == "initial"
    assert [n["signature"] for n in frame["notes"]] == ["sig1"]


def test_post_is_broadcast_to_connected_socket(client, note_body):
    with client.websocket_connect("/ws") as ws:
        assert ws.receive_json() == {"type": "initial", "notes": []}

        res = client.post("/api/sticky-notes", json=note_body)
        assert res.status_code == 201

        frame = ws.receive_json()
        assert frame == res.json()


def test_duplicate_is_not_broadcast(client, note_body):
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()
        client.post("/api/sticky-notes", json=note_body)
        assert ws.receive_json()["signature"] == "sig1"

        dup = client.post("/api/sticky-notes", json={**note_body, "message": "again"})
        assert dup.status_code == 400
        client.post("/api/sticky-notes", json={**note_body, "signature": "sig2"})

        # the next frame is the second accepted note, not the duplicate
        assert ws.receive_json()["signature"] == "sig2"


def test_ping_is_answered_with_pong(client):
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()
        ws.send_json({"type": "ping"})
        assert ws.receive_json() == {"type": "pong"}


def test_invalid_json_gets_error_frame_and_socket_stays_open(client):
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()
        ws.send_text("not json")
        error = ws.receive_json()
        assert error["type"] == "error"
        assert error["error"]["code"] == "BAD_REQUEST"

        ws.send_json({"type": "ping"})
        assert ws.receive_json() == {"type": "pong"}


def test_unknown_frame_type_gets_error_frame(client):
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()
        ws.send_json({"type": "subscribe"})
        error = ws.receive_json()
        assert error["type"] == "error"
        assert "subscribe" in error["error"]["message"]


def test_pull_policy_sends_no_initial_frame(make_app, note_body):
    with TestClient(make_app(snapshot_policy="pull")) as c:
        c.post("/api/sticky-notes", json=note_body)
        with c.websocket_connect("/ws") as ws:
            ws.send_json({"type": "ping"})
            # first frame is the pong, no snapshot was pushed
            assert ws.receive_json() == {"type": "pong"}


def test_unknown_origin_refused(client):
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect(
            "/ws", headers={"Origin": "https://evil.example"},
        ) as ws:
            ws.receive_json()
    assert exc.value.code == 1008


def test_allowed_origin_accepted(client):
    with client.websocket_connect(
        "/ws", headers={"Origin": "http://localhost:3000"},
    ) as ws:
        assert ws.receive_json()["type"] == "initial"


def test_oversized_frame_closes_socket(make_app):
    with TestClient(make_app(ws_max_payload_bytes=32)) as c:
        with c.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_text("x" * 64)
            with pytest.raises(WebSocketDisconnect) as exc:
                ws.receive_json()
    assert exc.value.code == 1009


def test_readiness_counts_open_sockets(client):
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()
        assert client.get("/api/health/ready").json()["connections"] == 1
