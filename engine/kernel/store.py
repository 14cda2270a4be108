"""
coLoc Kernel: State Holder

An explicitly owned cell for the current {sessions, teams} snapshot.
Mutation happens only by swapping in a reducer's output; nothing edits the
snapshot in place, so references handed out earlier stay valid.

The server relay owns one GameStore, each offline mirror owns another.
"""

from __future__ import annotations

import threading
from typing import Any

from engine.kernel.reducer import apply_action, empty_state
from engine.kernel.types import ActionResult


class GameStore:
    """Authoritative snapshot plus the single entry point that changes it."""

    def __init__(self, snapshot: dict[str, Any] | None = None) -> None:
        self._snapshot = snapshot if snapshot is not None else empty_state()
        self._lock = threading.Lock()

    @property
    def snapshot(self) -> dict[str, Any]:
        return self._snapshot

    def apply(self, type: str, payload: dict[str, Any] | None = None) -> ActionResult:
        """Apply one action and replace the snapshot with the result, atomically."""
        with self._lock:
            result = apply_action(self._snapshot, type, payload)
            self._snapshot = result.state
        return result

    def reset(self, snapshot: dict[str, Any] | None = None) -> None:
        """Replace the whole snapshot, e.g. with one pushed by the server."""
        with self._lock:
            self._snapshot = snapshot if snapshot is not None else empty_state()

    def session(self, session_id: str) -> dict[str, Any] | None:
        return self._snapshot["sessions"].get(session_id)

    def team(self, team_id: str) -> dict[str, Any] | None:
        return self._snapshot["teams"].get(team_id)

    def find_session(self, *, session_code: str | None = None, gm_code: str | None = None) -> dict[str, Any] | None:
        """Look a session up by its public join code or its GM code."""
        for session in self._snapshot["sessions"].values():
            if session_code is not None and session.get("sessionCode") == session_code:
                return session
            if gm_code is not None and session.get("gmCode") == gm_code:
                return session
        return None

    def teams_in_session(self, session_id: str) -> list[dict[str, Any]]:
        return [t for t in self._snapshot["teams"].values() if t.get("sessionId") == session_id]
