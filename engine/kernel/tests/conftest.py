"""
Engine kernel test configuration.

Shared fixtures: a controllable clock, deterministic ids and join codes, and
a few prepared snapshots (one session, one team) built through the reducer.
"""

import itertools

import pytest

from engine.kernel import reducer
from engine.kernel.reducer import apply_action, empty_state

NOW = 1_700_000_000_000


class Clock:
    """Stand-in for now_ms() that only moves when a test moves it."""

    def __init__(self, now: int):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


def _card(card_id, time_cost=0, incompatible_with=None, requires=None, category="microscopy"):
    """Minimal card dict in the wire shape."""
    return {
        "id": card_id,
        "name": card_id,
        "category": category,
        "timeCost": time_cost,
        "incompatibleWith": incompatible_with or [],
        "requires": requires or [],
    }


@pytest.fixture
def make_card():
    return _card


@pytest.fixture
def clock(monkeypatch):
    c = Clock(NOW)
    monkeypatch.setattr(reducer, "now_ms", c)
    return c


class IdCounter:
    """Counters standing in for uuid ids and random join codes: id-1, id-2 / CODE01, CODE02."""

    def __init__(self):
        self.reset()

    def reset(self):
        self._ids = itertools.count(1)
        self._codes = itertools.count(1)

    def next_id(self) -> str:
        return f"id-{next(self._ids)}"

    def next_code(self) -> str:
        return f"CODE{next(self._codes):02d}"


@pytest.fixture
def fixed_ids(monkeypatch):
    counter = IdCounter()
    monkeypatch.setattr(reducer, "generate_id", counter.next_id)
    monkeypatch.setattr(reducer, "generate_code", counter.next_code)
    return counter


@pytest.fixture
def empty():
    return empty_state()


@pytest.fixture
def with_session(empty, clock):
    r = apply_action(empty, "createSession", {"settings": {
        "numTeams": 4,
        "acquisitionTime": 10,
        "analysisTime": 10,
        "gameMode": "time-attack",
    }})
    assert r.applied
    return r.state, r.ack["sessionId"]


@pytest.fixture
def with_team(with_session):
    state, session_id = with_session
    code = state["sessions"][session_id]["sessionCode"]
    r = apply_action(state, "joinSessionAsTeam", {
        "sessionCode": code,
        "name": "Team A",
        "members": {"Alice": "Microscopist", "Bob": "Analyst"},
    })
    assert r.applied
    return r.state, r.ack["teamId"]
