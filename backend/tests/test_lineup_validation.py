import pytest

from discstats.services.validation import (
    RatioMismatch,
    ValidationError,
    WrongSize,
    lineup_ratio,
    resolve_lineup,
    validate_lineup,
)

GENDERS = {1: "male", 2: "male", 3: "female", 4: "female", 5: "other"}


def test_resolves_roles_from_gender() -> None:
    lineup = resolve_lineup(
        [{"playerId": 1}, {"playerId": 3}, {"playerId": 5, "role": "female"}],
        GENDERS,
        team_size=4,
    )
    assert lineup == [
        {"playerId": 1, "role": "male"},
        {"playerId": 3, "role": "female"},
        {"playerId": 5, "role": "female"},
    ]
    assert lineup_ratio(lineup) == {"male": 1, "female": 2}


def test_other_player_may_skip_role_without_gender_rule() -> None:
    lineup = resolve_lineup([{"playerId": 5}], GENDERS, team_size=4, require_roles=False)
    assert lineup == [{"playerId": 5, "role": None}]


@pytest.mark.parametrize(
    "entries, msg",
    [
        ([], "at least one player"),
        ([{"playerId": i} for i in (1, 2, 3, 4, 5)], "at most 4"),
        ([{"playerId": 1}, {"playerId": 1}], "more than once"),
        ([{"playerId": 99}], "not on this roster"),
        ([{"playerId": 1, "role": "female"}], "cannot play the female role"),
        ([{"playerId": 5}], "must be assigned"),
        ([{"playerId": 5, "role": "cutter"}], "role must be male or female"),
        ([{"playerId": "1"}], "must reference a player id"),
    ],
    ids=[
        "empty",
        "too-many",
        "duplicate",
        "unknown-player",
        "wrong-role",
        "missing-role",
        "bad-role",
        "non-integer-id",
    ],
)
def test_rejects_invalid_lines(entries, msg) -> None:
    with pytest.raises(ValidationError) as exc:
        resolve_lineup(entries, GENDERS, team_size=4)
    assert msg.lower() in str(exc.value).lower()


def test_legal_line_has_no_violations() -> None:
    lineup = [{"playerId": i, "role": r} for i, r in enumerate(["male"] * 2 + ["female"] * 2)]
    assert validate_lineup(lineup, 4, {"male": 2, "female": 2}) == []


def test_short_line_reports_size_and_ratio() -> None:
    lineup = [{"playerId": 1, "role": "male"}, {"playerId": 3, "role": "female"}]
    violations = validate_lineup(lineup, 4, {"male": 2, "female": 2})
    assert violations == [
        WrongSize(actual=2, expected=4),
        RatioMismatch(actual="1m1f", expected="2m2f"),
    ]
    assert violations[0].code == "wrong_size"
    assert "2 player(s); 4 required" in violations[0].describe()
    assert "requires 2m2f" in violations[1].describe()


def test_ratio_is_ignored_without_requirement() -> None:
    lineup = [{"playerId": i, "role": None} for i in range(4)]
    assert validate_lineup(lineup, 4, None) == []
