"""Tests for the small helpers in engine.kernel.types and the action factories."""

import pytest

from engine.kernel import events, reducer
from engine.kernel.types import ACTION_TYPES, UNKNOWN_ACTION, assigned_experiment, experiment_from_roll


class TestExperimentFromRoll:
    @pytest.mark.parametrize("d1", range(1, 7))
    def test_first_die_picks_experiment(self, d1):
        assert experiment_from_roll(d1, 2)[0] == d1

    @pytest.mark.parametrize("d2,live", [(1, True), (2, False), (3, True), (4, False), (5, True), (6, False)])
    def test_second_die_picks_specimen(self, d2, live):
        assert experiment_from_roll(1, d2)[1] is live

    @pytest.mark.parametrize("d1,d2", [(0, 1), (7, 1), (1, 0), (1, 7)])
    def test_out_of_range(self, d1, d2):
        with pytest.raises(ValueError):
            experiment_from_roll(d1, d2)


class TestAssignedExperiment:
    def test_zero_is_unassigned(self):
        assert assigned_experiment({"experiment": {"number": 0, "isLive": False}}) is None

    def test_assigned(self):
        assert assigned_experiment({"experiment": {"number": 4, "isLive": True}}) == 4

    def test_missing_experiment(self):
        assert assigned_experiment({}) is None


class TestActionFactories:
    def test_every_factory_builds_a_known_type(self):
        built = [
            events.create_session(),
            events.join_session_as_team("ABC123", "Team"),
            events.set_team_experiment("t", 1, True),
            events.advance_phase("s"),
            events.previous_phase("s"),
            events.adjust_phase_timer("s", 2),
            events.set_show_timer_to_participants("s", False),
            events.select_card("t", "acquisition", {"id": "c"}),
            events.deselect_card("t", "acquisition", "c"),
            events.assign_reviewer_concern("t", {"id": "c"}),
            events.unassign_reviewer_concern("t", "c"),
            events.assign_reviewer_detail("t", {"id": "c"}),
            events.unassign_reviewer_detail("t", "c"),
            events.gm_add_card_to_team("t", "analysis", {"id": "c"}),
            events.gm_remove_card_from_team("t", "analysis", "c"),
        ]
        assert {a["type"] for a in built} == ACTION_TYPES

    def test_camel_case_payload(self):
        action = events.set_team_experiment("t", 3, True, {"d1": 3, "d2": 1})
        assert action == {
            "type": "setTeamExperiment",
            "payload": {"teamId": "t", "experimentNumber": 3, "isLive": True, "lastRoll": {"d1": 3, "d2": 1}},
        }

    def test_none_fields_dropped(self):
        action = events.set_team_experiment("t", 3, False)
        assert "lastRoll" not in action["payload"]


class TestDispatchTable:
    def test_one_handler_per_action_type(self):
        assert set(reducer._HANDLERS) == ACTION_TYPES

    def test_every_action_type_is_dispatched(self, empty):
        for action_type in ACTION_TYPES:
            r = reducer.apply_action(empty, action_type, {})
            assert r.reason != UNKNOWN_ACTION
