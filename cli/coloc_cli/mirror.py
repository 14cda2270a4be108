"""
Client-side game mirror.

GameClient holds a local copy of {sessions, teams} and exposes one method
per game action. With a connected transport each action is sent to the
server and the returned snapshot replaces the local copy. Without one (solo
play, or after the server became unreachable) the same reducer the server
runs is applied to the local copy, so both modes accept and reject exactly
the same actions.
"""

from __future__ import annotations

import logging
from typing import Any, Literal, Protocol

from engine.kernel import events
from engine.kernel.store import GameStore
from engine.kernel.types import ActionResult, experiment_from_roll

logger = logging.getLogger(__name__)

Role = Literal["gm", "team"]


class Transport(Protocol):
    connected: bool

    def send(self, type: str, payload: dict[str, Any]) -> tuple[dict[str, Any], dict[str, Any]] | None: ...

    def fetch_state(self) -> dict[str, Any] | None: ...


class GameClient:
    """One player's (or the GM's) view of the game."""

    def __init__(self, transport: Transport | None = None, store: GameStore | None = None):
        self.transport = transport
        self.store = store if store is not None else GameStore()
        self.role: Role | None = None
        self.current_session_id: str | None = None
        self.current_team_id: str | None = None
        # Result of the last action applied locally; None after a server round trip
        self.last_result: ActionResult | None = None

    # ── State access ─────────────────────────────────────────────────────

    @property
    def connected(self) -> bool:
        return self.transport is not None and self.transport.connected

    @property
    def snapshot(self) -> dict[str, Any]:
        return self.store.snapshot

    def receive_state(self, snapshot: dict[str, Any]) -> None:
        """Replace the local copy with a snapshot pushed by the server."""
        self.store.reset({"sessions": snapshot.get("sessions", {}), "teams": snapshot.get("teams", {})})

    def sync(self) -> bool:
        """Pull the server snapshot. Returns False when offline."""
        if not self.connected:
            return False
        snapshot = self.transport.fetch_state()
        if snapshot is None:
            return False
        self.receive_state(snapshot)
        return True

    def current_session(self) -> dict[str, Any] | None:
        if self.current_session_id is None:
            return None
        return self.store.session(self.current_session_id)

    def current_team(self) -> dict[str, Any] | None:
        if self.current_team_id is None:
            return None
        return self.store.team(self.current_team_id)

    def teams_in_session(self, session_id: str | None = None) -> list[dict[str, Any]]:
        session_id = session_id or self.current_session_id
        if session_id is None:
            return []
        return self.store.teams_in_session(session_id)

    # ── Dispatch ─────────────────────────────────────────────────────────

    def dispatch(self, action: dict[str, Any]) -> dict[str, Any]:
        """
        Send or apply one {type, payload} envelope. Returns the ack ({} if none).

        An error status from the server propagates as httpx.HTTPStatusError and
        nothing is applied locally.
        """
        type, payload = action["type"], action["payload"]

        if self.connected:
            reply = self.transport.send(type, payload)
            if reply is not None:
                ack, snapshot = reply
                self.receive_state(snapshot)
                self.last_result = None
                return ack

        result = self.store.apply(type, payload)
        self.last_result = result
        if not result.applied:
            logger.debug("mirror: %s not applied reason=%s", type, result.reason)
        return result.ack or {}

    # ── Session / GM ─────────────────────────────────────────────────────

    def create_session(self, settings: dict[str, Any] | None = None) -> dict[str, Any] | None:
        """Create a session and take the GM role for it."""
        ack = self.dispatch(events.create_session(settings))
        session_id = ack.get("sessionId")
        if not session_id:
            return None
        self.current_session_id = session_id
        self.role = "gm"
        return self.store.session(session_id)

    def join_session_as_gm(self, gm_code: str) -> dict[str, Any] | None:
        """Take the GM role for an existing session, found by its GM code."""
        self.sync()
        session = self.store.find_session(gm_code=gm_code.strip().upper())
        if session is None:
            return None
        self.current_session_id = session["id"]
        self.current_team_id = None
        self.role = "gm"
        return session

    def advance_phase(self, session_id: str | None = None) -> dict[str, Any]:
        return self.dispatch(events.advance_phase(session_id or self.current_session_id))

    def previous_phase(self, session_id: str | None = None) -> dict[str, Any]:
        return self.dispatch(events.previous_phase(session_id or self.current_session_id))

    def adjust_phase_timer(self, delta_minutes: int | float, session_id: str | None = None) -> dict[str, Any]:
        return self.dispatch(events.adjust_phase_timer(session_id or self.current_session_id, delta_minutes))

    def set_show_timer_to_participants(self, show: bool, session_id: str | None = None) -> dict[str, Any]:
        return self.dispatch(events.set_show_timer_to_participants(session_id or self.current_session_id, show))

    # ── Team ─────────────────────────────────────────────────────────────

    def join_session_as_team(
        self,
        session_code: str,
        name: str,
        members: dict[str, str] | None = None,
    ) -> dict[str, Any] | None:
        """Join by public session code and take the team role. None if no such session."""
        ack = self.dispatch(events.join_session_as_team(session_code.strip().upper(), name, members))
        team_id = ack.get("teamId")
        if not team_id:
            return None
        self.current_team_id = team_id
        self.current_session_id = ack.get("sessionId")
        self.role = "team"
        return self.store.team(team_id)

    def set_team_experiment(
        self,
        experiment_number: int,
        is_live: bool,
        last_roll: dict[str, int] | None = None,
        team_id: str | None = None,
    ) -> dict[str, Any]:
        return self.dispatch(
            events.set_team_experiment(team_id or self.current_team_id, experiment_number, is_live, last_roll)
        )

    def roll_experiment(self, d1: int, d2: int, team_id: str | None = None) -> dict[str, Any]:
        """Assign the experiment two dice decide: d1 picks it, an odd d2 makes it live."""
        number, is_live = experiment_from_roll(d1, d2)
        return self.set_team_experiment(number, is_live, {"d1": d1, "d2": d2}, team_id=team_id)

    def select_card(self, phase: str, card: dict[str, Any], team_id: str | None = None) -> dict[str, Any]:
        return self.dispatch(events.select_card(team_id or self.current_team_id, phase, card))

    def deselect_card(self, phase: str, card_id: str, team_id: str | None = None) -> dict[str, Any]:
        return self.dispatch(events.deselect_card(team_id or self.current_team_id, phase, card_id))

    # ── GM actions on a team ─────────────────────────────────────────────

    def assign_reviewer_concern(self, team_id: str, card: dict[str, Any]) -> dict[str, Any]:
        return self.dispatch(events.assign_reviewer_concern(team_id, card))

    def unassign_reviewer_concern(self, team_id: str, card_id: str) -> dict[str, Any]:
        return self.dispatch(events.unassign_reviewer_concern(team_id, card_id))

    def assign_reviewer_detail(self, team_id: str, card: dict[str, Any]) -> dict[str, Any]:
        return self.dispatch(events.assign_reviewer_detail(team_id, card))

    def unassign_reviewer_detail(self, team_id: str, card_id: str) -> dict[str, Any]:
        return self.dispatch(events.unassign_reviewer_detail(team_id, card_id))

    def gm_add_card_to_team(self, team_id: str, phase: str, card: dict[str, Any]) -> dict[str, Any]:
        return self.dispatch(events.gm_add_card_to_team(team_id, phase, card))

    def gm_remove_card_from_team(self, team_id: str, phase: str, card_id: str) -> dict[str, Any]:
        return self.dispatch(events.gm_remove_card_from_team(team_id, phase, card_id))
