"""
WebSocket endpoint for live game play.

Accepts connections at /ws. Every client receives the full game snapshot on
connect and after every action anyone applies; the sender of an action also
receives an ack carrying the handler's reply.

Protocol:
  Client → Server:  {"type": "<action>", "payload": {...}, "requestId": "..."}
  Server → Client:  {"event": "state", "data": {"sessions", "teams"}, "hash": "..."}
  Server → Sender:  {"event": "ack", "requestId": "...", "data": {...}}

The sender always sees the state push for its action before its ack.
"""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from backend.models.actions import ActionEnvelope
from backend.services.connection_hub import ack_message
from backend.services.relay import INTERNAL_ERROR, MALFORMED_MESSAGE_ERROR, ActionRelay

logger = logging.getLogger(__name__)

router = APIRouter(tags=["websocket"])


def _parse_envelope(raw: str) -> ActionEnvelope | None:
    try:
        msg = json.loads(raw)
    except json.JSONDecodeError:
        return None
    if not isinstance(msg, dict):
        return None
    try:
        return ActionEnvelope.model_validate(msg)
    except ValidationError:
        return None


@router.websocket("/ws")
async def game_websocket(websocket: WebSocket) -> None:
    relay: ActionRelay = websocket.app.state.relay

    await websocket.accept()
    conn_id = await relay.attach(websocket)

    try:
        while True:
            raw = await websocket.receive_text()

            envelope = _parse_envelope(raw)
            if envelope is None:
                logger.warning("ws: malformed message conn_id=%s: %r", conn_id, raw[:200])
                await websocket.send_text(ack_message({"error": MALFORMED_MESSAGE_ERROR}))
                continue

            try:
                ack, _ = await relay.handle(envelope)
            except Exception as e:
                logger.exception("ws: action failed conn_id=%s type=%s: %s", conn_id, envelope.type, e)
                ack = {"error": INTERNAL_ERROR}
            await websocket.send_text(ack_message(ack, envelope.request_id))

    except WebSocketDisconnect:
        logger.info("ws: client disconnected conn_id=%s", conn_id)
    finally:
        relay.detach(conn_id)
