import os, sys
import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..")))
from discstats.scoring import score


def _point(ours=None, theirs=None, scored_by=None):
    return {"ourScoreAfter": ours, "opponentScoreAfter": theirs, "scoredBy": scored_by}


def test_first_point_starts_level():
    assert score.starting_score({}, 1) == (0, 0)


def test_start_is_previous_ending():
    points = {1: _point(1, 0, "our"), 2: _point(1, 1, "opponent")}
    assert score.starting_score(points, 2) == (1, 0)
    assert score.starting_score(points, 3) == (1, 1)


def test_open_point_carries_its_start_forward():
    points = {1: _point(1, 0, "our"), 2: _point()}
    assert score.starting_score(points, 3) == (1, 0)
    assert score.current_score(score.starting_score(points, 2), None) == (1, 0)


def test_finalize_adds_one_for_the_scorer():
    assert score.finalize((2, 3), "our") == (3, 3)
    assert score.finalize((2, 3), "opponent") == (2, 4)
    with pytest.raises(ValueError):
        score.finalize((0, 0), "nobody")


def test_scored_by_comes_from_the_scoring_event():
    # stored endings disagree with the recorded scorer; the scorer wins
    points = {1: _point(1, 0, "our"), 2: _point(2, 0, "opponent"), 3: _point()}
    assert score.scored_by(points, 1) == "our"
    assert score.scored_by(points, 2) == "opponent"
    assert score.scored_by(points, 3) is None
    assert score.scored_by(points, 4) is None


def test_sequence_endings_follow_scorers_in_order():
    points = {
        1: _point(1, 0, "opponent"),
        2: _point(1, 1, "opponent"),
        3: _point(),
        4: _point(9, 9, "our"),
    }
    assert score.sequence_endings(points) == {1: (0, 1), 2: (0, 2), 3: None, 4: (1, 2)}
    assert score.sequence_endings({}) == {}


def test_scoring_side_pulls_next():
    points = {1: _point(1, 0, "our"), 2: _point(1, 1, "opponent"), 3: _point()}
    # we scored point 1, so we pull (D line) on point 2
    assert score.starting_o_line(points, 2, "opponent") is False
    assert score.starting_o_line(points, 3, "our") is True
    # point 3 is unfinished, point 4 falls back to the starting puller
    assert score.starting_o_line(points, 4, "our") is False
    assert score.starting_o_line(points, 4, "opponent") is True


def test_point_one_follows_starting_puller():
    assert score.starting_o_line({}, 1, "our") is False
    assert score.starting_o_line({}, 1, "opponent") is True


def test_game_score_is_latest_finalized():
    assert score.game_score({}) == {"our": 0, "opponent": 0}
    points = {1: _point(1, 0, "our"), 2: _point(2, 0, "our"), 3: _point()}
    assert score.game_score(points) == {"our": 2, "opponent": 0}
