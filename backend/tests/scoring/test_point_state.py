import os, sys
import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..")))
from discstats.scoring import point_state
from discstats.scoring.point_state import IllegalTransition, Phase


def _run(events, starting_o_line=True):
    state = point_state.init_state({"hasLineup": True, "startingOLine": starting_o_line})
    for ev in events:
        state = point_state.apply(ev, state)
    return state


def test_initial_phase_depends_on_line_and_side():
    assert point_state.init_state({"hasLineup": False})["phase"] == Phase.AWAITING_LINE
    assert (
        point_state.init_state({"hasLineup": True, "startingOLine": True})["phase"]
        == Phase.AWAITING_PICKUP
    )
    assert (
        point_state.init_state({"hasLineup": True, "startingOLine": False})["phase"]
        == Phase.AWAITING_PULL
    )


def test_offense_point_tracks_holder_until_goal():
    state = _run(
        [
            {"kind": "pickup", "throwerId": 1},
            {"kind": "pass", "throwerId": 1, "receiverId": 2},
            {"kind": "pass", "throwerId": 2, "receiverId": 3},
        ]
    )
    summary = point_state.summary(state)
    assert summary["phase"] == "offense"
    assert summary["possessionSide"] == "our"
    assert summary["holderId"] == 3

    state = point_state.convert_trailing_pass(state, "goal", 3)
    summary = point_state.summary(state)
    assert summary["phase"] == "point_complete"
    assert summary["scoredBy"] == "our"
    assert summary["possessionSide"] is None
    assert [ev["kind"] for ev in summary["events"]] == ["pickup", "pass", "goal"]
    assert summary["events"][-1]["convertedFrom"] == "pass"
    assert summary["events"][-1]["throwerId"] == 2


def test_defense_point_through_turnovers():
    state = _run(
        [
            {"kind": "pull", "throwerId": 4},
            {"kind": "d", "defenderId": 5},
            {"kind": "pickup", "throwerId": 6},
            {"kind": "throwaway", "throwerId": 6},
            {"kind": "interception", "defenderId": 7},
        ],
        starting_o_line=False,
    )
    assert state["phase"] == Phase.OFFENSE
    assert state["holder"] == 7


def test_pull_out_of_bounds_waits_for_pickup():
    state = _run([{"kind": "pull_ob"}], starting_o_line=False)
    assert state["phase"] == Phase.AWAITING_PICKUP
    assert point_state.possession_side(state["phase"]) == "our"


@pytest.mark.parametrize(
    "kind, scored_by",
    [("callahan", "our"), ("opponent_goal", "opponent")],
)
def test_defense_can_end_the_point(kind, scored_by):
    state = _run(
        [{"kind": "pull", "throwerId": 1}, {"kind": kind, "defenderId": 2}],
        starting_o_line=False,
    )
    assert state["phase"] == Phase.POINT_COMPLETE
    assert state["scoredBy"] == scored_by


def test_opponent_turnover_hands_us_the_disc():
    state = _run(
        [{"kind": "pull", "throwerId": 1}, {"kind": "opponent_turnover"}],
        starting_o_line=False,
    )
    assert state["phase"] == Phase.AWAITING_PICKUP


def test_drop_replaces_trailing_pass():
    state = _run(
        [
            {"kind": "pickup", "throwerId": 1},
            {"kind": "pass", "throwerId": 1, "receiverId": 2},
        ]
    )
    state = point_state.convert_trailing_pass(state, "drop")
    assert state["phase"] == Phase.DEFENSE
    assert len(state["events"]) == 2
    assert state["events"][-1]["kind"] == point_state.EventKind.DROP
    assert state["events"][-1]["receiverId"] == 2


def test_conversion_requires_trailing_pass_and_receiver():
    state = _run([{"kind": "pickup", "throwerId": 1}])
    with pytest.raises(IllegalTransition):
        point_state.convert_trailing_pass(state, "goal", 1)

    state = point_state.apply({"kind": "pass", "throwerId": 1, "receiverId": 2}, state)
    with pytest.raises(IllegalTransition):
        point_state.convert_trailing_pass(state, "goal", 3)
    with pytest.raises(IllegalTransition):
        point_state.convert_trailing_pass(state, "throwaway", 2)


@pytest.mark.parametrize(
    "events, msg",
    [
        ([{"kind": "goal"}], "not allowed"),
        ([{"kind": "pickup"}], "requires throwerId"),
        ([{"kind": "pickup", "throwerId": 1}, {"kind": "pass", "throwerId": 1, "receiverId": 1}], "themselves"),
        ([{"kind": "pickup", "throwerId": 1}, {"kind": "pull"}], "not allowed"),
        ([{"kind": "layout"}], "unknown event kind"),
    ],
    ids=["goal-before-pickup", "pickup-without-thrower", "self-pass", "pull-on-offense", "unknown-kind"],
)
def test_rejects_illegal_events(events, msg):
    with pytest.raises(IllegalTransition) as exc:
        _run(events)
    assert msg in str(exc.value)


def test_events_need_a_line():
    state = point_state.init_state({"hasLineup": False})
    with pytest.raises(IllegalTransition):
        point_state.apply({"kind": "pull", "throwerId": 1}, state)


def test_completed_point_absorbs_later_events():
    state = _run(
        [{"kind": "pull", "throwerId": 1}, {"kind": "opponent_goal"}],
        starting_o_line=False,
    )
    state = point_state.apply({"kind": "pickup", "throwerId": 2}, state)
    assert state["phase"] == Phase.POINT_COMPLETE
    assert state["scoredBy"] == "opponent"
    assert len(state["events"]) == 3


def test_replay_is_deterministic():
    events = [
        {"id": 1, "kind": "pickup", "throwerId": 1},
        {"id": 2, "kind": "pass", "throwerId": 1, "receiverId": 2},
        {"id": 3, "kind": "throwaway", "throwerId": 2},
        {"id": 4, "kind": "d", "defenderId": 3},
    ]
    config = {"hasLineup": True, "startingOLine": True}
    first = point_state.summary(point_state.replay(events, config))
    second = point_state.summary(point_state.replay(events, config))
    assert first == second
    assert first["phase"] == "awaiting_pickup"
    assert [ev["id"] for ev in first["events"]] == [1, 2, 3, 4]
