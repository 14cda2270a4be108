"""Unit tests for ActionRelay and ConnectionHub, with in-memory fake sockets."""

from __future__ import annotations

import asyncio
import json

import pytest

from backend.models.actions import ActionEnvelope
from backend.services.connection_hub import ConnectionHub, ack_message, state_message
from backend.services.relay import ActionRelay
from engine.kernel.store import GameStore

pytestmark = pytest.mark.asyncio


class FakeSocket:
    def __init__(self, fail: bool = False):
        self.sent: list[dict] = []
        self.fail = fail

    async def send_text(self, text: str) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(json.loads(text))


@pytest.fixture
def relay():
    return ActionRelay(GameStore(), ConnectionHub())


class TestConnectionHub:
    async def test_connect_sends_snapshot(self):
        hub = ConnectionHub()
        ws = FakeSocket()
        await hub.connect(ws, {"sessions": {}, "teams": {}})
        assert ws.sent[0]["event"] == "state"
        assert hub.count == 1

    async def test_broadcast_drops_failed_sockets(self):
        hub = ConnectionHub()
        good, bad = FakeSocket(), FakeSocket()
        await hub.connect(good, {"sessions": {}, "teams": {}})
        await hub.connect(bad, {"sessions": {}, "teams": {}})
        bad.fail = True

        delivered = await hub.broadcast({"sessions": {}, "teams": {}})

        assert delivered == 1
        assert hub.count == 1
        assert len(good.sent) == 2

    async def test_disconnect_unknown_id_is_harmless(self):
        hub = ConnectionHub()
        hub.disconnect("nope")
        assert hub.count == 0

    async def test_send_to_unknown_id(self):
        assert await ConnectionHub().send("nope", "{}") is False


class TestMessages:
    async def test_ack_message_uses_wire_names(self):
        assert json.loads(ack_message({"teamId": "t"}, "r")) == {
            "event": "ack",
            "requestId": "r",
            "data": {"teamId": "t"},
        }

    async def test_state_message_ignores_extra_keys(self):
        msg = json.loads(state_message({"sessions": {}, "teams": {}}))
        assert set(msg) == {"event", "data", "hash"}
        assert msg["data"] == {"sessions": {}, "teams": {}}


class TestActionRelay:
    async def test_handle_returns_ack_and_snapshot(self, relay):
        ack, snapshot = await relay.handle(ActionEnvelope(type="createSession", payload={}))
        assert ack["sessionId"] in snapshot["sessions"]
        assert relay.snapshot is snapshot

    async def test_handle_broadcasts_to_everyone(self, relay):
        sockets = [FakeSocket() for _ in range(3)]
        for ws in sockets:
            await relay.attach(ws)

        await relay.handle(ActionEnvelope(type="createSession", payload={}))

        for ws in sockets:
            assert len(ws.sent) == 2
            assert len(ws.sent[1]["data"]["sessions"]) == 1

    async def test_rejected_action_still_broadcasts(self, relay):
        ws = FakeSocket()
        await relay.attach(ws)
        ack, _ = await relay.handle(ActionEnvelope(type="advancePhase", payload={"sessionId": "missing"}))
        assert ack == {}
        assert len(ws.sent) == 2

    async def test_missing_type_never_applies(self, relay):
        ws = FakeSocket()
        await relay.attach(ws)
        ack, snapshot = await relay.handle(ActionEnvelope(payload={}))
        assert ack == {"error": "Missing action type"}
        assert snapshot == {"sessions": {}, "teams": {}}
        assert len(ws.sent) == 1

    async def test_none_payload_treated_as_empty(self, relay):
        ack, _ = await relay.handle(ActionEnvelope(type="createSession"))
        assert "sessionId" in ack

    async def test_concurrent_actions_all_apply(self, relay):
        ack, _ = await relay.handle(ActionEnvelope(type="createSession", payload={}))
        code = ack["session"]["sessionCode"]

        await asyncio.gather(*[
            relay.handle(ActionEnvelope(type="joinSessionAsTeam", payload={"sessionCode": code, "name": f"T{n}"}))
            for n in range(25)
        ])

        assert len(relay.snapshot["teams"]) == 25

    async def test_broadcasts_arrive_in_apply_order(self, relay):
        ws = FakeSocket()
        await relay.attach(ws)
        await asyncio.gather(*[relay.handle(ActionEnvelope(type="createSession", payload={})) for _ in range(5)])
        counts = [len(msg["data"]["sessions"]) for msg in ws.sent]
        assert counts == [0, 1, 2, 3, 4, 5]
