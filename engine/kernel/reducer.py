"""
coLoc Kernel: Reducer

Pure function: (state, action type, payload) → ActionResult

No IO. The only values a handler invents are ids, join codes and timestamps,
built at apply time. The input state is never modified: accepted actions
return a new top-level dict that shares every untouched session and team,
rejected actions return the input object itself.

Both execution contexts call this module (the server relay inside its
websocket handler, the offline mirror directly), so the two can't drift.
"""

from __future__ import annotations

import math
import secrets
import string
import uuid
from typing import Any

from engine.kernel.types import (
    ACTION_TYPES,
    DEFAULT_SETTINGS,
    DUPLICATE_ASSIGNMENT,
    DUPLICATE_CARD,
    INCOMPATIBLE_CARD,
    INVALID_PAYLOAD,
    MAX_TIMESTAMP_MS,
    MINUTE_MS,
    NEXT_PHASE,
    NO_ACTIVE_TIMER,
    NO_PREVIOUS_PHASE,
    PREV_PHASE,
    REQUIREMENT_UNMET,
    SELECTION_PHASES,
    SESSION_NOT_FOUND,
    TEAM_NOT_FOUND,
    TIMED_PHASE_SETTINGS,
    TIMER_FLOOR_MS,
    UNKNOWN_ACTION,
    ActionResult,
    now_ms,
)

_CODE_ALPHABET = string.ascii_uppercase + string.digits
_CODE_LENGTH = 6

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def empty_state() -> dict[str, Any]:
    """The snapshot before any session exists."""
    return {"sessions": {}, "teams": {}}


def apply_action(state: dict[str, Any], type: str, payload: dict[str, Any] | None = None) -> ActionResult:
    """
    Apply one action to the current snapshot.

    Unknown action types leave the state untouched and answer with an
    error ack. A non-dict payload is treated as empty.
    """
    handler = _HANDLERS.get(type)
    if handler is None:
        return ActionResult(
            state=state,
            ack={"error": f"Unknown action: {type}"},
            applied=False,
            reason=UNKNOWN_ACTION,
        )
    if not isinstance(payload, dict):
        payload = {}
    return handler(state, payload)


def replay(actions: list[dict[str, Any]], state: dict[str, Any] | None = None) -> dict[str, Any]:
    """
    Fold a list of {type, payload} envelopes over a snapshot.
    replay([a1, a2]) == apply(apply(empty(), a1).state, a2).state
    """
    snapshot = state if state is not None else empty_state()
    for action in actions:
        snapshot = apply_action(snapshot, action.get("type", ""), action.get("payload")).state
    return snapshot


def compute_time_cost(team: dict[str, Any]) -> int:
    """
    Sum of timeCost over every card a team carries: the three selection
    lists plus the reviewer concerns and details assigned by the GM.
    """
    selected = team.get("selectedCards") or {}
    review = team.get("reviewOutcome") or {}
    cards = [
        *selected.get("acquisition", []),
        *selected.get("analysis", []),
        *selected.get("details", []),
        *review.get("assignedConcerns", []),
        *review.get("assignedDetails", []),
    ]
    return sum(card.get("timeCost", 0) for card in cards)


def generate_code() -> str:
    """Short human-typeable join code, e.g. 'K3F9QZ'."""
    return "".join(secrets.choice(_CODE_ALPHABET) for _ in range(_CODE_LENGTH))


def generate_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _reject(state: dict, reason: str, **details: Any) -> ActionResult:
    return ActionResult(state=state, applied=False, reason=reason, details=details)


def _ok(state: dict, ack: dict[str, Any] | None = None) -> ActionResult:
    return ActionResult(state=state, ack=ack)


def _with_session(state: dict, session: dict) -> dict:
    return {"sessions": {**state["sessions"], session["id"]: session}, "teams": state["teams"]}


def _with_team(state: dict, team: dict) -> dict:
    return {"sessions": state["sessions"], "teams": {**state["teams"], team["id"]: team}}


def _with_cost(team: dict) -> dict:
    """Recompute the cached totalTimeCost. Every team mutation goes through here."""
    team["totalTimeCost"] = compute_time_cost(team)
    return team


def _all_selected(team: dict) -> list[dict]:
    selected = team["selectedCards"]
    return [*selected["acquisition"], *selected["analysis"], *selected["details"]]


def _contains(cards: list[dict], card_id: str) -> bool:
    return any(c.get("id") == card_id for c in cards)


def _valid_card(card: Any) -> bool:
    if not isinstance(card, dict) or not isinstance(card.get("id"), str):
        return False
    cost = card.get("timeCost", 0)
    if not isinstance(cost, int) or isinstance(cost, bool) or cost < 0:
        return False
    return _id_list(card.get("incompatibleWith")) and _id_list(card.get("requires"))


def _id_list(value: Any) -> bool:
    """True for a missing value or a list of card ids."""
    if value is None:
        return True
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


def _is_number(value: Any) -> bool:
    """A real, finite number. NaN and Infinity arrive through JSON too."""
    if not isinstance(value, int | float) or isinstance(value, bool):
        return False
    return math.isfinite(value)


def _shift(base_ms: int, minutes: int | float) -> int | None:
    """base_ms moved by `minutes`, or None when the result is no usable timestamp."""
    offset = minutes * MINUTE_MS
    if not math.isfinite(offset):
        return None
    shifted = base_ms + int(offset)
    if not -MAX_TIMESTAMP_MS <= shifted <= MAX_TIMESTAMP_MS:
        return None
    return shifted


def _session_for(state: dict, payload: dict) -> dict | None:
    session_id = payload.get("sessionId")
    if not isinstance(session_id, str):
        return None
    return state["sessions"].get(session_id)


def _team_for(state: dict, payload: dict) -> dict | None:
    team_id = payload.get("teamId")
    if not isinstance(team_id, str):
        return None
    return state["teams"].get(team_id)


def _minutes_from_now(minutes: int | float) -> int | None:
    return _shift(now_ms(), minutes)


def _team_formation_minutes(session: dict) -> int | float:
    return session["settings"].get("teamFormationTime", DEFAULT_SETTINGS["teamFormationTime"])


# ---------------------------------------------------------------------------
# Session handlers
# ---------------------------------------------------------------------------


def _handle_create_session(state: dict, payload: dict) -> ActionResult:
    given = payload.get("settings")
    if given is not None and not isinstance(given, dict):
        return _reject(state, INVALID_PAYLOAD, field="settings")

    settings = {**DEFAULT_SETTINGS, **{k: v for k, v in (given or {}).items() if v is not None}}
    now = now_ms()
    for key in ("teamFormationTime", "acquisitionTime", "analysisTime"):
        if not _is_number(settings[key]) or settings[key] < 0 or _shift(now, settings[key]) is None:
            return _reject(state, INVALID_PAYLOAD, field=key)

    session_id = generate_id()
    session = {
        "id": session_id,
        "gmCode": generate_code(),
        "sessionCode": generate_code(),
        "status": "setup",
        "settings": settings,
        "currentPhase": "team-formation",
        "phaseEndTime": _shift(now, settings["teamFormationTime"]),
        "showTimerToParticipants": True,
        "createdAt": now,
    }
    return _ok(_with_session(state, session), ack={"sessionId": session_id, "session": session})


def _handle_advance_phase(state: dict, payload: dict) -> ActionResult:
    session = _session_for(state, payload)
    if session is None:
        return _reject(state, SESSION_NOT_FOUND)

    phase = NEXT_PHASE[session["currentPhase"]]
    phase_end_time = session["phaseEndTime"]
    setting = TIMED_PHASE_SETTINGS.get(phase)
    if setting is not None:
        phase_end_time = _minutes_from_now(session["settings"].get(setting, DEFAULT_SETTINGS[setting]))
        if phase_end_time is None:
            return _reject(state, INVALID_PAYLOAD, field=setting)

    updated = {**session, "currentPhase": phase, "status": phase, "phaseEndTime": phase_end_time}
    return _ok(_with_session(state, updated))


def _handle_previous_phase(state: dict, payload: dict) -> ActionResult:
    session = _session_for(state, payload)
    if session is None:
        return _reject(state, SESSION_NOT_FOUND)

    phase = PREV_PHASE[session["currentPhase"]]
    if phase == session["currentPhase"]:
        return _reject(state, NO_PREVIOUS_PHASE)

    # Landing on team-formation re-arms a full window, not the time that was left
    phase_end_time = None
    if phase == "team-formation":
        phase_end_time = _minutes_from_now(_team_formation_minutes(session))
        if phase_end_time is None:
            return _reject(state, INVALID_PAYLOAD, field="teamFormationTime")

    updated = {**session, "currentPhase": phase, "status": phase, "phaseEndTime": phase_end_time}
    return _ok(_with_session(state, updated))


def _handle_adjust_phase_timer(state: dict, payload: dict) -> ActionResult:
    session = _session_for(state, payload)
    if session is None:
        return _reject(state, SESSION_NOT_FOUND)
    if session["phaseEndTime"] is None:
        return _reject(state, NO_ACTIVE_TIMER)

    delta = payload.get("deltaMinutes")
    if not _is_number(delta):
        return _reject(state, INVALID_PAYLOAD, field="deltaMinutes")

    shifted = _shift(session["phaseEndTime"], delta)
    if shifted is None:
        return _reject(state, INVALID_PAYLOAD, field="deltaMinutes")

    floor = now_ms() + TIMER_FLOOR_MS
    updated = {**session, "phaseEndTime": max(floor, shifted)}
    return _ok(_with_session(state, updated))


def _handle_set_show_timer(state: dict, payload: dict) -> ActionResult:
    session = _session_for(state, payload)
    if session is None:
        return _reject(state, SESSION_NOT_FOUND)

    show = payload.get("show")
    if not isinstance(show, bool):
        return _reject(state, INVALID_PAYLOAD, field="show")

    updated = {**session, "showTimerToParticipants": show}
    return _ok(_with_session(state, updated))


# ---------------------------------------------------------------------------
# Team handlers
# ---------------------------------------------------------------------------


def _handle_join_session_as_team(state: dict, payload: dict) -> ActionResult:
    code = payload.get("sessionCode")
    session = next((s for s in state["sessions"].values() if s["sessionCode"] == code), None)
    if session is None:
        return ActionResult(
            state=state,
            ack={"error": "Session not found"},
            applied=False,
            reason=SESSION_NOT_FOUND,
        )

    team_id = generate_id()
    team = {
        "id": team_id,
        "sessionId": session["id"],
        "name": payload.get("name") or "",
        "members": payload.get("members") or {},
        "experiment": {"number": 0, "isLive": False},
        "selectedCards": {"acquisition": [], "analysis": [], "details": []},
        "totalTimeCost": 0,
        "status": "planning",
        "reviewOutcome": {
            "concerns": [],
            "defenses": [],
            "finalScore": 0,
            "assignedConcerns": [],
            "assignedDetails": [],
        },
        "gmAddedCardIds": [],
    }
    return _ok(
        _with_team(state, team),
        ack={"teamId": team_id, "sessionId": session["id"], "team": team, "session": session},
    )


def _handle_set_team_experiment(state: dict, payload: dict) -> ActionResult:
    team = _team_for(state, payload)
    if team is None:
        return _reject(state, TEAM_NOT_FOUND)

    number = payload.get("experimentNumber")
    if not isinstance(number, int) or isinstance(number, bool) or not 0 <= number <= 6:
        return _reject(state, INVALID_PAYLOAD, field="experimentNumber")

    experiment: dict[str, Any] = {"number": number, "isLive": bool(payload.get("isLive"))}
    if payload.get("lastRoll") is not None:
        experiment["lastRoll"] = payload["lastRoll"]

    return _ok(_with_team(state, {**team, "experiment": experiment}))


def _handle_select_card(state: dict, payload: dict) -> ActionResult:
    team = _team_for(state, payload)
    if team is None:
        return _reject(state, TEAM_NOT_FOUND)

    phase, card = payload.get("phase"), payload.get("card")
    if phase not in SELECTION_PHASES or not _valid_card(card):
        return _reject(state, INVALID_PAYLOAD)

    card_id = card["id"]
    if _contains(team["selectedCards"][phase], card_id):
        return _reject(state, DUPLICATE_CARD, card=card_id)

    # Symmetric, and checked across all three lists whatever the target phase
    selected = _all_selected(team)
    blocked_by = card.get("incompatibleWith") or []
    for other in selected:
        if card_id in (other.get("incompatibleWith") or []) or other.get("id") in blocked_by:
            return _reject(state, INCOMPATIBLE_CARD, card=card_id, conflicts_with=other.get("id"))

    # Any one listed requirement is enough
    required = card.get("requires") or []
    if required:
        selected_ids = {c.get("id") for c in selected}
        if all(req not in selected_ids for req in required):
            return _reject(state, REQUIREMENT_UNMET, card=card_id, requires=list(required))

    updated = {
        **team,
        "selectedCards": {**team["selectedCards"], phase: [*team["selectedCards"][phase], card]},
    }
    return _ok(_with_team(state, _with_cost(updated)))


def _handle_deselect_card(state: dict, payload: dict) -> ActionResult:
    team = _team_for(state, payload)
    if team is None:
        return _reject(state, TEAM_NOT_FOUND)

    phase, card_id = payload.get("phase"), payload.get("cardId")
    if phase not in SELECTION_PHASES:
        return _reject(state, INVALID_PAYLOAD, field="phase")

    updated = {
        **team,
        "selectedCards": {
            **team["selectedCards"],
            phase: [c for c in team["selectedCards"][phase] if c.get("id") != card_id],
        },
    }
    # A GM-added card the team dropped is no longer GM-added anywhere
    still_selected = {c.get("id") for c in _all_selected(updated)}
    gm_added = team.get("gmAddedCardIds") or []
    updated["gmAddedCardIds"] = [i for i in gm_added if i in still_selected]
    return _ok(_with_team(state, _with_cost(updated)))


def _assign(list_key: str):
    """Build an assign handler for one of the reviewOutcome card lists."""

    def handler(state: dict, payload: dict) -> ActionResult:
        team = _team_for(state, payload)
        if team is None:
            return _reject(state, TEAM_NOT_FOUND)

        card = payload.get("card")
        if not _valid_card(card):
            return _reject(state, INVALID_PAYLOAD, field="card")

        current = team["reviewOutcome"].get(list_key, [])
        if _contains(current, card["id"]):
            return _reject(state, DUPLICATE_ASSIGNMENT, card=card["id"])

        updated = {**team, "reviewOutcome": {**team["reviewOutcome"], list_key: [*current, card]}}
        return _ok(_with_team(state, _with_cost(updated)))

    return handler


def _unassign(list_key: str):
    """Build an unassign handler for one of the reviewOutcome card lists."""

    def handler(state: dict, payload: dict) -> ActionResult:
        team = _team_for(state, payload)
        if team is None:
            return _reject(state, TEAM_NOT_FOUND)

        card_id = payload.get("cardId")
        current = team["reviewOutcome"].get(list_key, [])
        updated = {
            **team,
            "reviewOutcome": {**team["reviewOutcome"], list_key: [c for c in current if c.get("id") != card_id]},
        }
        return _ok(_with_team(state, _with_cost(updated)))

    return handler


def _handle_gm_add_card(state: dict, payload: dict) -> ActionResult:
    """GM injection skips the incompatibility and requirement checks."""
    team = _team_for(state, payload)
    if team is None:
        return _reject(state, TEAM_NOT_FOUND)

    phase, card = payload.get("phase"), payload.get("card")
    if phase not in SELECTION_PHASES or not _valid_card(card):
        return _reject(state, INVALID_PAYLOAD)
    if _contains(team["selectedCards"][phase], card["id"]):
        return _reject(state, DUPLICATE_CARD, card=card["id"])

    gm_added = team.get("gmAddedCardIds") or []
    updated = {
        **team,
        "selectedCards": {**team["selectedCards"], phase: [*team["selectedCards"][phase], card]},
        "gmAddedCardIds": gm_added if card["id"] in gm_added else [*gm_added, card["id"]],
    }
    return _ok(_with_team(state, _with_cost(updated)))


def _handle_gm_remove_card(state: dict, payload: dict) -> ActionResult:
    team = _team_for(state, payload)
    if team is None:
        return _reject(state, TEAM_NOT_FOUND)

    phase, card_id = payload.get("phase"), payload.get("cardId")
    if phase not in SELECTION_PHASES:
        return _reject(state, INVALID_PAYLOAD, field="phase")

    updated = {
        **team,
        "selectedCards": {
            **team["selectedCards"],
            phase: [c for c in team["selectedCards"][phase] if c.get("id") != card_id],
        },
        "gmAddedCardIds": [i for i in team.get("gmAddedCardIds") or [] if i != card_id],
    }
    return _ok(_with_team(state, _with_cost(updated)))


# ---------------------------------------------------------------------------
# Dispatch table
# ---------------------------------------------------------------------------

_HANDLERS: dict[str, Any] = {
    "createSession": _handle_create_session,
    "joinSessionAsTeam": _handle_join_session_as_team,
    "setTeamExperiment": _handle_set_team_experiment,
    "advancePhase": _handle_advance_phase,
    "previousPhase": _handle_previous_phase,
    "adjustPhaseTimer": _handle_adjust_phase_timer,
    "setShowTimerToParticipants": _handle_set_show_timer,
    "selectCard": _handle_select_card,
    "deselectCard": _handle_deselect_card,
    "assignReviewerConcern": _assign("assignedConcerns"),
    "unassignReviewerConcern": _unassign("assignedConcerns"),
    "assignReviewerDetail": _assign("assignedDetails"),
    "unassignReviewerDetail": _unassign("assignedDetails"),
    "gmAddCardToTeam": _handle_gm_add_card,
    "gmRemoveCardFromTeam": _handle_gm_remove_card,
}

if set(_HANDLERS) != ACTION_TYPES:
    raise RuntimeError("dispatch table out of sync with ACTION_TYPES")
