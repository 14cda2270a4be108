"""
Connection hub: the set of open game websockets.

Policy is "full snapshot on every change": no diffs, no per-entity
subscriptions. Every connection gets the whole {sessions, teams} tree on
connect and again after every action, the sender included.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from fastapi import WebSocket

from backend.models.actions import AckMessage, StateMessage, StateSnapshot
from backend.utils.snapshot_hash import hash_snapshot

logger = logging.getLogger(__name__)


def state_message(snapshot: dict[str, Any]) -> str:
    """Serialize the state push sent to every client."""
    message = StateMessage(
        data=StateSnapshot(sessions=snapshot["sessions"], teams=snapshot["teams"]),
        hash=hash_snapshot(snapshot),
    )
    return message.model_dump_json()


def ack_message(ack: dict[str, Any], request_id: str | int | None = None) -> str:
    """Serialize the reply sent to the one client that issued an action."""
    return AckMessage(request_id=request_id, data=ack).model_dump_json(by_alias=True)


class ConnectionHub:
    """Tracks open websockets by connection id and fans state out to them."""

    def __init__(self) -> None:
        self._connections: dict[str, WebSocket] = {}

    @property
    def count(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket, snapshot: dict[str, Any]) -> str:
        """Register an accepted websocket and push the current snapshot to it."""
        conn_id = uuid.uuid4().hex[:8]
        self._connections[conn_id] = websocket
        logger.info("hub: connected conn_id=%s total=%d", conn_id, self.count)
        await websocket.send_text(state_message(snapshot))
        return conn_id

    def disconnect(self, conn_id: str) -> None:
        if self._connections.pop(conn_id, None) is not None:
            logger.info("hub: disconnected conn_id=%s total=%d", conn_id, self.count)

    async def send(self, conn_id: str, text: str) -> bool:
        """Send one frame to one connection. A failed send drops the connection."""
        websocket = self._connections.get(conn_id)
        if websocket is None:
            return False
        try:
            await websocket.send_text(text)
        except Exception as e:
            logger.warning("hub: dropping conn_id=%s after failed send: %s", conn_id, e)
            self.disconnect(conn_id)
            return False
        return True

    async def broadcast(self, snapshot: dict[str, Any]) -> int:
        """Push the snapshot to every connection. Returns how many got it."""
        text = state_message(snapshot)
        delivered = 0
        for conn_id in list(self._connections):
            if await self.send(conn_id, text):
                delivered += 1
        return delivered
