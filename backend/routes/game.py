"""HTTP routes for the game: snapshot reads, the catalog, and an action fallback."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request

from backend.models.actions import ActionEnvelope, ActionResponse, StateResponse, StateSnapshot
from backend.services.relay import ActionRelay
from backend.utils.snapshot_hash import hash_snapshot

router = APIRouter(prefix="/api", tags=["game"])


def _relay(request: Request) -> ActionRelay:
    return request.app.state.relay


def _state(snapshot: dict[str, Any]) -> StateSnapshot:
    return StateSnapshot(sessions=snapshot["sessions"], teams=snapshot["teams"])


@router.get("/state", response_model=StateResponse)
async def get_state(request: Request) -> StateResponse:
    """Current authoritative snapshot."""
    snapshot = _relay(request).snapshot
    return StateResponse(state=_state(snapshot), hash=hash_snapshot(snapshot))


@router.post("/actions", response_model=ActionResponse)
async def post_action(envelope: ActionEnvelope, request: Request) -> ActionResponse:
    """
    Apply one action over plain HTTP.

    Same semantics as the websocket: the resulting snapshot is broadcast to
    every connected socket. The caller gets the ack and the snapshot back in
    one response, since it holds no socket to be pushed to.
    """
    ack, snapshot = await _relay(request).handle(envelope)
    return ActionResponse(ack=ack, state=_state(snapshot), hash=hash_snapshot(snapshot))


@router.get("/catalog")
async def get_catalog(request: Request) -> dict[str, Any]:
    """Card and experiment reference data the clients render from."""
    return request.app.state.catalog.to_dict()
