import os, sys
import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..")))
from discstats.scoring import ratio


def _fmt(value):
    return ratio.format_ratio(value) if value else None


def test_abba_alternates_in_pairs_after_first_point():
    sequence = [_fmt(ratio.required_ratio("abba", 7, n)) for n in range(1, 8)]
    assert sequence == ["4m3f", "4m3f", "3m4f", "3m4f", "4m3f", "4m3f", "3m4f"]


def test_abba_follows_point_one_ratio():
    first = ratio.parse_ratio("3m4f")
    sequence = [_fmt(ratio.required_ratio("abba", 7, n, first)) for n in range(2, 6)]
    assert sequence == ["3m4f", "4m3f", "4m3f", "3m4f"]


def test_abba_short_handed_point_one_keeps_majority():
    short = ratio.parse_ratio("2m3f")
    assert _fmt(ratio.required_ratio("abba", 7, 2, short)) == "3m4f"


@pytest.mark.parametrize("rule", ["offense", "endzone"])
def test_constant_rules_keep_one_ratio(rule):
    first = ratio.parse_ratio("2m2f")
    assert {_fmt(ratio.required_ratio(rule, 4, n, first)) for n in range(1, 6)} == {"2m2f"}


def test_no_gender_rule_has_no_requirement():
    assert ratio.required_ratio("none", 5, 3) is None


def test_lock_applies_to_abba_after_point_one():
    assert ratio.ratio_locked("abba", 1) is False
    assert ratio.ratio_locked("abba", 2) is True
    assert ratio.ratio_locked("offense", 4) is False


@pytest.mark.parametrize(
    "team_size, expected",
    [
        (4, ["3m1f", "2m2f", "1m3f"]),
        (5, ["3m2f", "2m3f"]),
        (6, ["4m2f", "3m3f", "2m4f"]),
        (7, ["4m3f", "3m4f"]),
    ],
)
def test_valid_splits(team_size, expected):
    assert [ratio.format_ratio(s) for s in ratio.valid_splits(team_size)] == expected


def test_cycle_walks_valid_splits():
    current = ratio.parse_ratio("3m1f")
    seen = []
    for _ in range(4):
        current = ratio.cycle_target_ratio(current, 4, locked=False)
        seen.append(ratio.format_ratio(current))
    assert seen == ["2m2f", "1m3f", "3m1f", "2m2f"]


def test_cycle_is_noop_when_locked():
    current = ratio.parse_ratio("4m3f")
    assert ratio.cycle_target_ratio(current, 7, locked=True) == current


def test_cycle_from_unknown_ratio_starts_over():
    assert ratio.cycle_target_ratio({"male": 5, "female": 2}, 7, locked=False) == {
        "male": 4,
        "female": 3,
    }


def test_parse_ratio_is_lenient_about_case_and_spacing():
    assert ratio.parse_ratio(" 4M 3F ") == {"male": 4, "female": 3}


@pytest.mark.parametrize("value", ["", "4-3", "m3f", None])
def test_parse_ratio_rejects_garbage(value):
    with pytest.raises(ValueError):
        ratio.parse_ratio(value)


def test_team_size_bounds():
    with pytest.raises(ValueError):
        ratio.valid_splits(8)
    with pytest.raises(ValueError):
        ratio.required_ratio("abba", 3, 1)
    with pytest.raises(ValueError):
        ratio.required_ratio("mixed", 7, 1)
