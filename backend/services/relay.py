"""
Action relay: the one place networked actions enter the core.

Each action runs apply → replace → broadcast under a single asyncio.Lock, so
no action ever sees a snapshot another action is halfway through replacing,
and every client receives broadcasts in the order actions were applied.
Actions from one connection are applied in receipt order; across
connections the last applied wins.

The relay answers the sender with the handler's ack (new ids, lookup
errors); everyone else learns about the change from the broadcast.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

from fastapi import WebSocket

from backend.models.actions import ActionEnvelope
from backend.services.connection_hub import ConnectionHub
from engine.kernel.store import GameStore
from engine.kernel.types import ActionResult

logger = logging.getLogger(__name__)

MISSING_TYPE_ERROR = "Missing action type"
MALFORMED_MESSAGE_ERROR = "Malformed message"
INTERNAL_ERROR = "Internal error"


class ActionRelay:
    """Owns the authoritative GameStore and the hub that mirrors it to clients."""

    def __init__(self, store: GameStore | None = None, hub: ConnectionHub | None = None) -> None:
        self.store = store if store is not None else GameStore()
        self.hub = hub if hub is not None else ConnectionHub()
        self._lock = asyncio.Lock()

    @property
    def snapshot(self) -> dict[str, Any]:
        return self.store.snapshot

    async def attach(self, websocket: WebSocket) -> str:
        """Register a websocket and send it the current snapshot."""
        async with self._lock:
            return await self.hub.connect(websocket, self.store.snapshot)

    def detach(self, conn_id: str) -> None:
        self.hub.disconnect(conn_id)

    async def handle(self, envelope: ActionEnvelope) -> tuple[dict[str, Any], dict[str, Any]]:
        """
        Apply one envelope and broadcast the resulting snapshot.

        Returns (ack, snapshot). The ack is {} when the handler has nothing to
        say; the snapshot is the one this action produced and broadcast.
        An envelope without a type never reaches the reducer.
        """
        if not envelope.type:
            logger.warning("relay: envelope without action type")
            return {"error": MISSING_TYPE_ERROR}, self.store.snapshot

        result = await self.apply(envelope.type, envelope.payload or {})
        return result.ack or {}, result.state

    async def apply(self, type: str, payload: dict[str, Any]) -> ActionResult:
        start_ms = time.monotonic()

        async with self._lock:
            result = self.store.apply(type, payload)
            delivered = await self.hub.broadcast(result.state)

        latency_ms = int((time.monotonic() - start_ms) * 1000)
        if result.applied:
            logger.info("relay: applied type=%s clients=%d latency=%dms", type, delivered, latency_ms)
        else:
            logger.debug(
                "relay: no-op type=%s reason=%s details=%s latency=%dms",
                type,
                result.reason,
                result.details,
                latency_ms,
            )
        return result
