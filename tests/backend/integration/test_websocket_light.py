"""
Lightweight WebSocket integration tests.
Tests connection registration, ping/pong and that junk frames do not close the stream.
Does NOT test broadcast contents (covered by the route tests through the hub).
"""
from fastapi.testclient import TestClient

from nutshell.core.pubsub import hub
from nutshell.main import app


class TestPushStream:
    """Tests for the /ws push endpoint."""

    def test_ws_accepts_and_registers(self):
        client = TestClient(app)
        with client.websocket_connect("/ws") as websocket:
            assert websocket is not None
            # Round trip guarantees the server side has registered
            websocket.send_json({"type": "ping"})
            websocket.receive_json()
            assert len(hub) == 1

    def test_ping_gets_pong(self):
        client = TestClient(app)
        with client.websocket_connect("/ws") as websocket:
            websocket.send_json({"type": "ping"})
            assert websocket.receive_json() == {"type": "pong", "data": None}

    def test_non_json_frame_is_ignored(self):
        client = TestClient(app)
        with client.websocket_connect("/ws") as websocket:
            websocket.send_text("hello?")
            websocket.send_json({"type": "something_else"})
            websocket.send_json({"type": "ping"})
            assert websocket.receive_json()["type"] == "pong"

    def test_healthz_reports_connections(self):
        client = TestClient(app)
        resp = client.get("/healthz")
        assert resp.status_code == 200
        assert resp.json()["ok"] is True
