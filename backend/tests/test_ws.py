"""
Integration tests for the game WebSocket endpoint.

Tests /ws: snapshot on connect, broadcast to every client, ack to the
sender only, and error acks for frames that never reach the reducer.
"""

from __future__ import annotations

import json

import pytest

from backend.utils.snapshot_hash import hash_snapshot


def send(ws, type=None, payload=None, request_id=None):
    msg = {"payload": payload or {}}
    if type is not None:
        msg["type"] = type
    if request_id is not None:
        msg["requestId"] = request_id
    ws.send_text(json.dumps(msg))


def receive(ws):
    return json.loads(ws.receive_text())


def create_session(ws, request_id="create"):
    """Create a session over ws; returns (state message, ack message)."""
    send(ws, "createSession", {"settings": {"numTeams": 2}}, request_id)
    return receive(ws), receive(ws)


class TestWebSocketConnect:
    def test_snapshot_pushed_on_connect(self, client):
        with client.websocket_connect("/ws") as ws:
            msg = receive(ws)
            assert msg["event"] == "state"
            assert msg["data"] == {"sessions": {}, "teams": {}}
            assert msg["hash"] == hash_snapshot(msg["data"])

    def test_late_joiner_sees_existing_state(self, client):
        with client.websocket_connect("/ws") as first:
            receive(first)
            _, ack = create_session(first)

            with client.websocket_connect("/ws") as second:
                msg = receive(second)
                assert ack["data"]["sessionId"] in msg["data"]["sessions"]

    def test_connection_count(self, client, app):
        hub = app.state.relay.hub
        with client.websocket_connect("/ws") as ws:
            receive(ws)
            assert hub.count == 1
        assert hub.count == 0


class TestWebSocketActions:
    def test_sender_gets_state_then_ack(self, client):
        with client.websocket_connect("/ws") as ws:
            receive(ws)
            state, ack = create_session(ws, request_id="r-1")

            assert state["event"] == "state"
            assert ack["event"] == "ack"
            assert ack["requestId"] == "r-1"
            session_id = ack["data"]["sessionId"]
            assert state["data"]["sessions"][session_id]["currentPhase"] == "team-formation"

    def test_broadcast_reaches_other_clients(self, client):
        with client.websocket_connect("/ws") as gm, client.websocket_connect("/ws") as team:
            receive(gm)
            receive(team)

            _, ack = create_session(gm)
            pushed = receive(team)
            assert pushed["event"] == "state"
            assert ack["data"]["sessionId"] in pushed["data"]["sessions"]

    def test_join_and_select_flow(self, client):
        with client.websocket_connect("/ws") as gm, client.websocket_connect("/ws") as team:
            receive(gm)
            receive(team)
            _, ack = create_session(gm)
            receive(team)
            code = ack["data"]["session"]["sessionCode"]

            send(team, "joinSessionAsTeam", {"sessionCode": code, "name": "Team A"}, "join")
            receive(team)
            join_ack = receive(team)
            team_id = join_ack["data"]["teamId"]
            assert receive(gm)["data"]["teams"][team_id]["name"] == "Team A"

            card = {"id": "mic-60x", "timeCost": 2}
            send(team, "selectCard", {"teamId": team_id, "phase": "acquisition", "card": card}, "sel")
            state = receive(team)
            assert state["data"]["teams"][team_id]["totalTimeCost"] == 2
            assert receive(team) == {"event": "ack", "requestId": "sel", "data": {}}

    def test_join_unknown_code_acks_error(self, client):
        with client.websocket_connect("/ws") as ws:
            receive(ws)
            send(ws, "joinSessionAsTeam", {"sessionCode": "NOPE00", "name": "Lost"}, "j")
            assert receive(ws)["event"] == "state"
            assert receive(ws)["data"] == {"error": "Session not found"}

    def test_unknown_action_acks_error(self, client, store):
        with client.websocket_connect("/ws") as ws:
            receive(ws)
            send(ws, "doSomethingUnknown", {}, "u")
            state = receive(ws)
            assert state["data"] == {"sessions": {}, "teams": {}}
            ack = receive(ws)
            assert ack["data"] == {"error": "Unknown action: doSomethingUnknown"}

    def test_state_hash_matches_store(self, client, store):
        with client.websocket_connect("/ws") as ws:
            receive(ws)
            state, _ = create_session(ws)
            assert state["hash"] == hash_snapshot(store.snapshot)


class TestWebSocketErrors:
    def test_missing_type(self, client, store):
        with client.websocket_connect("/ws") as ws:
            receive(ws)
            send(ws, payload={"settings": {}}, request_id="m")
            ack = receive(ws)
            assert ack["event"] == "ack"
            assert ack["requestId"] == "m"
            assert ack["data"] == {"error": "Missing action type"}
            assert store.snapshot == {"sessions": {}, "teams": {}}

    def test_not_json(self, client):
        with client.websocket_connect("/ws") as ws:
            receive(ws)
            ws.send_text("definitely not json")
            assert receive(ws)["data"] == {"error": "Malformed message"}

    def test_json_array(self, client):
        with client.websocket_connect("/ws") as ws:
            receive(ws)
            ws.send_text("[1, 2, 3]")
            assert receive(ws)["data"] == {"error": "Malformed message"}

    def test_wrong_field_types(self, client):
        with client.websocket_connect("/ws") as ws:
            receive(ws)
            ws.send_text(json.dumps({"type": 5, "payload": "x"}))
            assert receive(ws)["data"] == {"error": "Malformed message"}

    def test_connection_survives_errors(self, client):
        with client.websocket_connect("/ws") as ws:
            receive(ws)
            ws.send_text("garbage")
            receive(ws)
            state, ack = create_session(ws)
            assert ack["data"]["sessionId"] in state["data"]["sessions"]

    @pytest.mark.parametrize("delta", ["1e308", "NaN", "-Infinity"])
    def test_unusable_timer_delta_is_noop(self, client, store, delta):
        with client.websocket_connect("/ws") as ws:
            receive(ws)
            _, created = create_session(ws)
            session_id = created["data"]["sessionId"]
            before = store.session(session_id)["phaseEndTime"]

            ws.send_text(
                '{"type": "adjustPhaseTimer", "requestId": "t", '
                f'"payload": {{"sessionId": "{session_id}", "deltaMinutes": {delta}}}}}'
            )
            assert receive(ws)["event"] == "state"
            ack = receive(ws)
            assert ack == {"event": "ack", "requestId": "t", "data": {}}
            assert store.session(session_id)["phaseEndTime"] == before

            state, ack = create_session(ws)
            assert ack["data"]["sessionId"] in state["data"]["sessions"]

    def test_failing_action_acks_error_and_keeps_connection(self, client, app, monkeypatch):
        relay = app.state.relay
        handle = relay.handle

        async def flaky(envelope):
            if envelope.type == "advancePhase":
                raise RuntimeError("boom")
            return await handle(envelope)

        monkeypatch.setattr(relay, "handle", flaky)

        with client.websocket_connect("/ws") as ws:
            receive(ws)
            send(ws, "advancePhase", {"sessionId": "s"}, request_id="a")
            assert receive(ws) == {"event": "ack", "requestId": "a", "data": {"error": "Internal error"}}

            state, ack = create_session(ws)
            assert ack["data"]["sessionId"] in state["data"]["sessions"]
            assert relay.hub.count == 1


class TestHttpActionBroadcast:
    def test_http_action_reaches_websockets(self, client):
        with client.websocket_connect("/ws") as ws:
            receive(ws)
            res = client.post("/api/actions", json={"type": "createSession", "payload": {}})
            assert res.status_code == 200
            session_id = res.json()["ack"]["sessionId"]
            assert session_id in receive(ws)["data"]["sessions"]
