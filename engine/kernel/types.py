"""
coLoc Kernel: Shared Types

Data classes and lookup tables used across the reducer, the state holder,
the catalog, and both execution contexts (server relay, offline mirror).

Snapshot shape (the wire format every client renders):

    {
        "sessions": {session_id: Session},
        "teams":    {team_id: Team},
    }

Sessions and teams are plain dicts with camelCase keys, because the snapshot
is broadcast verbatim to browser clients. Cards and experiments are catalog
values and get real dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal

# ---------------------------------------------------------------------------
# Phases
# ---------------------------------------------------------------------------

Phase = Literal["setup", "team-formation", "acquisition", "analysis", "review", "complete"]

PHASES: tuple[Phase, ...] = (
    "setup",
    "team-formation",
    "acquisition",
    "analysis",
    "review",
    "complete",
)

NEXT_PHASE: dict[str, Phase] = {
    "setup": "team-formation",
    "team-formation": "acquisition",
    "acquisition": "analysis",
    "analysis": "review",
    "review": "complete",
    "complete": "complete",
}

PREV_PHASE: dict[str, Phase] = {
    "setup": "setup",
    "team-formation": "setup",
    "acquisition": "team-formation",
    "analysis": "acquisition",
    "review": "analysis",
    "complete": "review",
}

# Phases armed from session settings when advancePhase lands on them
TIMED_PHASE_SETTINGS: dict[str, str] = {
    "acquisition": "acquisitionTime",
    "analysis": "analysisTime",
}

# ---------------------------------------------------------------------------
# Selections, modes, actions
# ---------------------------------------------------------------------------

SelectionPhase = Literal["acquisition", "analysis", "details"]

SELECTION_PHASES: tuple[SelectionPhase, ...] = ("acquisition", "analysis", "details")

GameMode = Literal["time-attack", "budget"]

GAME_MODES: tuple[GameMode, ...] = ("time-attack", "budget")

CardCategory = Literal["microscopy", "analysis", "details", "review"]

CARD_CATEGORIES: set[str] = {"microscopy", "analysis", "details", "review"}

ActionType = Literal[
    "createSession",
    "joinSessionAsTeam",
    "setTeamExperiment",
    "advancePhase",
    "previousPhase",
    "adjustPhaseTimer",
    "setShowTimerToParticipants",
    "selectCard",
    "deselectCard",
    "assignReviewerConcern",
    "unassignReviewerConcern",
    "assignReviewerDetail",
    "unassignReviewerDetail",
    "gmAddCardToTeam",
    "gmRemoveCardFromTeam",
]

ACTION_TYPES: frozenset[str] = frozenset(
    {
        "createSession",
        "joinSessionAsTeam",
        "setTeamExperiment",
        "advancePhase",
        "previousPhase",
        "adjustPhaseTimer",
        "setShowTimerToParticipants",
        "selectCard",
        "deselectCard",
        "assignReviewerConcern",
        "unassignReviewerConcern",
        "assignReviewerDetail",
        "unassignReviewerDetail",
        "gmAddCardToTeam",
        "gmRemoveCardFromTeam",
    }
)

# ---------------------------------------------------------------------------
# Settings defaults and timer constants
# ---------------------------------------------------------------------------

DEFAULT_SETTINGS: dict[str, Any] = {
    "numTeams": 4,
    "teamFormationTime": 4,
    "acquisitionTime": 10,
    "analysisTime": 10,
    "gameMode": "time-attack",
}

MINUTE_MS = 60 * 1000

# adjustPhaseTimer never leaves less than this on the clock
TIMER_FLOOR_MS = MINUTE_MS

# Largest epoch-ms deadline a browser client can hold exactly (2**53 - 1)
MAX_TIMESTAMP_MS = 9_007_199_254_740_991

# Rejection reason codes carried by ActionResult.reason
SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
TEAM_NOT_FOUND = "TEAM_NOT_FOUND"
DUPLICATE_CARD = "DUPLICATE_CARD"
INCOMPATIBLE_CARD = "INCOMPATIBLE_CARD"
REQUIREMENT_UNMET = "REQUIREMENT_UNMET"
DUPLICATE_ASSIGNMENT = "DUPLICATE_ASSIGNMENT"
NO_ACTIVE_TIMER = "NO_ACTIVE_TIMER"
NO_PREVIOUS_PHASE = "NO_PREVIOUS_PHASE"
INVALID_PAYLOAD = "INVALID_PAYLOAD"
UNKNOWN_ACTION = "UNKNOWN_ACTION"


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Card:
    """
    A catalog card. Immutable; teams hold copies of its wire dict.

    The reducer only ever reads id, timeCost, incompatibleWith and requires.
    """

    id: str
    name: str
    category: CardCategory
    time_cost: int = 0
    description: str = ""
    incompatible_with: tuple[str, ...] = ()
    requires: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    icon_path: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "timeCost": self.time_cost,
            "incompatibleWith": list(self.incompatible_with),
            "requires": list(self.requires),
            "tags": list(self.tags),
        }
        if self.icon_path is not None:
            d["iconPath"] = self.icon_path
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Card:
        return cls(
            id=d["id"],
            name=d.get("name", d["id"]),
            category=d.get("category", "microscopy"),
            time_cost=int(d.get("timeCost", 0)),
            description=d.get("description", ""),
            incompatible_with=tuple(d.get("incompatibleWith") or ()),
            requires=tuple(d.get("requires") or ()),
            tags=tuple(d.get("tags") or ()),
            icon_path=d.get("iconPath"),
        )


@dataclass(frozen=True)
class ExperimentDefinition:
    """One of the six experiments a team can be assigned by dice roll."""

    id: int
    title: str
    stainings: tuple[str, ...] = ()
    question: str = ""
    icon_path: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "stainings": list(self.stainings),
            "question": self.question,
        }
        if self.icon_path is not None:
            d["iconPath"] = self.icon_path
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ExperimentDefinition:
        return cls(
            id=int(d["id"]),
            title=d.get("title", ""),
            stainings=tuple(d.get("stainings") or ()),
            question=d.get("question", ""),
            icon_path=d.get("iconPath"),
        )


@dataclass
class ActionResult:
    """
    Result of applying one action to a snapshot.
    The reducer never throws; it always returns one of these.

    `state` and `ack` are what travels over the wire. `applied` and `reason`
    stay local: they tell the caller why a silent no-op happened.
    """

    state: dict[str, Any]
    ack: dict[str, Any] | None = None
    applied: bool = True
    reason: str | None = None
    details: dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def now_ms() -> int:
    """Current UTC time as integer epoch milliseconds."""
    return int(datetime.now(UTC).timestamp() * 1000)


def assigned_experiment(team: dict[str, Any]) -> int | None:
    """Return the team's experiment number, or None while unassigned (wire value 0)."""
    number = (team.get("experiment") or {}).get("number", 0)
    return number or None


def experiment_from_roll(d1: int, d2: int) -> tuple[int, bool]:
    """
    Map two dice to an experiment assignment.

    Die 1 picks the experiment (1-6). Die 2 picks the specimen:
    odd is live, even is fixed.
    """
    if not (1 <= d1 <= 6 and 1 <= d2 <= 6):
        raise ValueError(f"dice values must be 1-6, got {d1}, {d2}")
    return d1, d2 % 2 == 1
