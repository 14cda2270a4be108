"""
coLoc Kernel: Action Construction

Factory functions for well-formed {type, payload} envelopes.
Used by the client mirror to build the exact payload it either sends to the
server or applies locally, and by tests to build actions concisely.
"""

from __future__ import annotations

from typing import Any

from engine.kernel.types import ActionType


def make_action(type: ActionType | str, payload: dict[str, Any] | None = None, **fields: Any) -> dict[str, Any]:
    """
    Build an action envelope. Keyword fields are merged into the payload
    and None values dropped, so optional keys stay off the wire.
    """
    merged = {**(payload or {}), **fields}
    return {"type": type, "payload": {k: v for k, v in merged.items() if v is not None}}


def create_session(settings: dict[str, Any] | None = None) -> dict[str, Any]:
    return make_action("createSession", settings=settings or {})


def join_session_as_team(session_code: str, name: str, members: dict[str, str] | None = None) -> dict[str, Any]:
    return make_action("joinSessionAsTeam", sessionCode=session_code, name=name, members=members or {})


def set_team_experiment(
    team_id: str,
    experiment_number: int,
    is_live: bool,
    last_roll: dict[str, int] | None = None,
) -> dict[str, Any]:
    return make_action(
        "setTeamExperiment",
        teamId=team_id,
        experimentNumber=experiment_number,
        isLive=is_live,
        lastRoll=last_roll,
    )


def advance_phase(session_id: str) -> dict[str, Any]:
    return make_action("advancePhase", sessionId=session_id)


def previous_phase(session_id: str) -> dict[str, Any]:
    return make_action("previousPhase", sessionId=session_id)


def adjust_phase_timer(session_id: str, delta_minutes: int | float) -> dict[str, Any]:
    return make_action("adjustPhaseTimer", sessionId=session_id, deltaMinutes=delta_minutes)


def set_show_timer_to_participants(session_id: str, show: bool) -> dict[str, Any]:
    return make_action("setShowTimerToParticipants", sessionId=session_id, show=show)


def select_card(team_id: str, phase: str, card: dict[str, Any]) -> dict[str, Any]:
    return make_action("selectCard", teamId=team_id, phase=phase, card=card)


def deselect_card(team_id: str, phase: str, card_id: str) -> dict[str, Any]:
    return make_action("deselectCard", teamId=team_id, phase=phase, cardId=card_id)


def assign_reviewer_concern(team_id: str, card: dict[str, Any]) -> dict[str, Any]:
    return make_action("assignReviewerConcern", teamId=team_id, card=card)


def unassign_reviewer_concern(team_id: str, card_id: str) -> dict[str, Any]:
    return make_action("unassignReviewerConcern", teamId=team_id, cardId=card_id)


def assign_reviewer_detail(team_id: str, card: dict[str, Any]) -> dict[str, Any]:
    return make_action("assignReviewerDetail", teamId=team_id, card=card)


def unassign_reviewer_detail(team_id: str, card_id: str) -> dict[str, Any]:
    return make_action("unassignReviewerDetail", teamId=team_id, cardId=card_id)


def gm_add_card_to_team(team_id: str, phase: str, card: dict[str, Any]) -> dict[str, Any]:
    return make_action("gmAddCardToTeam", teamId=team_id, phase=phase, card=card)


def gm_remove_card_from_team(team_id: str, phase: str, card_id: str) -> dict[str, Any]:
    return make_action("gmRemoveCardFromTeam", teamId=team_id, phase=phase, cardId=card_id)
