import math

import pytest

from tennisprice.markets import (
    BO3_GAME_SPREAD,
    BO5_GAME_SPREAD,
    Market,
    Probability,
    game_handicap,
    game_handicaps,
    game_spread,
    game_total,
    game_totals,
    match_games,
    moneyline,
    set_handicap,
    set_handicaps,
    set_total,
    set_totals,
)
from tennisprice.sim import SimulatedMatch, SimulatedSet


def _match(a_sets, b_sets, *scores):
    return SimulatedMatch(
        a_sets=a_sets,
        b_sets=b_sets,
        set_results=[SimulatedSet(a, b) for a, b in scores],
    )


@pytest.fixture
def matches():
    return [
        _match(2, 1, (6, 4), (4, 6), (6, 3)),
        _match(2, 0, (6, 2), (6, 1)),
        _match(0, 2, (3, 6), (2, 6)),
        _match(2, 1, (7, 6), (3, 6), (6, 4)),
    ]


@pytest.mark.parametrize(
    "best_of, expected",
    [(3, 8.5), (5, 12.5), (1, 0.0), (-1, 0.0), (7, 0.0)],
)
def test_game_spread(best_of, expected):
    assert game_spread(best_of) == expected


def test_moneyline(matches):
    result = moneyline(matches)
    assert result.market is Market.MONEYLINE
    assert result.line == "ml"
    assert result.prob_a == pytest.approx(0.75, abs=0.001)
    assert result.prob_b == pytest.approx(0.25, abs=0.001)


@pytest.mark.parametrize(
    "match, expected",
    [
        (_match(0, 0, (6, 4), (4, 6), (6, 3)), (16, 13)),
        (_match(0, 0, (6, 2), (6, 1)), (12, 3)),
        (_match(0, 0), (0, 0)),
    ],
)
def test_match_games(match, expected):
    assert match_games(match) == expected


@pytest.mark.parametrize(
    "handicap, prob_a, prob_b",
    [(0.0, 0.5, 0.5), (5.0, 0.75, 0.25), (-5.0, 0.25, 0.75)],
)
def test_game_handicap(matches, handicap, prob_a, prob_b):
    result = game_handicap(matches, handicap)
    assert result.market is Market.HANDICAP
    assert result.line == f"{handicap:.1f}"
    assert result.prob_a == pytest.approx(prob_a, abs=0.001)
    assert result.prob_b == pytest.approx(prob_b, abs=0.001)


@pytest.mark.parametrize(
    "best_of, expected_len",
    [(3, int(2 * BO3_GAME_SPREAD + 1)), (5, int(2 * BO5_GAME_SPREAD + 1))],
)
def test_game_handicaps(matches, best_of, expected_len):
    result = game_handicaps(matches, best_of)
    assert len(result) == expected_len
    assert all(p.market is Market.HANDICAP for p in result)


def test_game_handicaps_ranges(matches):
    bo3 = game_handicaps(matches, 3)
    assert len(bo3) == 18
    assert bo3[0].line == "-8.5"
    assert bo3[-1].line == "8.5"
    assert len(game_handicaps(matches, 5)) == 26


@pytest.mark.parametrize(
    "total, prob_a", [(20.5, 0.5), (30.5, 0.25), (10.5, 1.0)]
)
def test_game_total(matches, total, prob_a):
    result = game_total(matches, total)
    assert result.market is Market.TOTAL
    assert result.line == f"{total:.1f}"
    assert result.prob_a == pytest.approx(prob_a, abs=0.001)


@pytest.mark.parametrize(
    "best_of, first, last", [(3, "12.5", "36.5"), (5, "18.5", "60.5")]
)
def test_game_totals(matches, best_of, first, last):
    result = game_totals(matches, best_of)
    assert result
    assert result[0].line == first
    assert result[-1].line == last


@pytest.mark.parametrize(
    "handicap, prob_a, prob_b",
    [(0.0, 0.75, 0.25), (1.5, 0.75, 0.25), (-1.5, 0.25, 0.75)],
)
def test_set_handicap(matches, handicap, prob_a, prob_b):
    result = set_handicap(matches, handicap)
    assert result.market is Market.HANDICAP
    assert result.prob_a == pytest.approx(prob_a, abs=0.001)
    assert result.prob_b == pytest.approx(prob_b, abs=0.001)


@pytest.mark.parametrize("best_of, expected_len", [(3, 4), (5, 6)])
def test_set_handicaps(matches, best_of, expected_len):
    assert len(set_handicaps(matches, best_of)) == expected_len


def test_set_handicap_lines(matches):
    assert [p.line for p in set_handicaps(matches, 3)] == ["-1.5", "-0.5", "0.5", "1.5"]


@pytest.mark.parametrize("total, prob_a", [(2.5, 0.5), (1.5, 1.0), (3.5, 0.0)])
def test_set_total(matches, total, prob_a):
    result = set_total(matches, total)
    assert result.market is Market.TOTAL
    assert result.prob_a == pytest.approx(prob_a, abs=0.001)


@pytest.mark.parametrize("best_of, expected_len", [(3, 1), (5, 2)])
def test_set_totals(matches, best_of, expected_len):
    result = set_totals(matches, best_of)
    assert len(result) == expected_len
    assert all(p.market is Market.TOTAL for p in result)


def test_set_totals_lines(matches):
    assert [p.line for p in set_totals(matches, 5)] == ["3.5", "4.5"]
    assert [p.line for p in set_totals(matches, 3)] == ["2.5"]


def test_probability_structure(matches):
    ml = moneyline(matches)
    assert ml.prob_a + ml.prob_b == 1.0
    gh = game_handicap(matches, 0.0)
    assert gh.prob_a + gh.prob_b == pytest.approx(1.0, abs=0.001)
    sh = set_handicap(matches, 0.0)
    assert sh.prob_a + sh.prob_b == pytest.approx(1.0, abs=0.001)


def test_empty_simulation_moneyline_is_nan():
    result = moneyline([])
    assert result.market is Market.MONEYLINE
    assert result.line == "ml"
    assert math.isnan(result.prob_a) is True
    assert math.isnan(result.prob_b) is True


def test_single_match_moneyline():
    result = moneyline([_match(2, 0, (6, 0), (6, 0))])
    assert result.prob_a == 1.0
    assert result.prob_b == 0.0


def test_all_functions_return_correct_markets(matches):
    assert moneyline(matches).market is Market.MONEYLINE
    assert all(p.market is Market.HANDICAP for p in game_handicaps(matches, 3))
    assert all(p.market is Market.TOTAL for p in game_totals(matches, 3))
    assert all(p.market is Market.HANDICAP for p in set_handicaps(matches, 3))
    assert all(p.market is Market.TOTAL for p in set_totals(matches, 3))


@pytest.mark.parametrize(
    "build",
    [
        lambda m: [moneyline(m)],
        lambda m: game_handicaps(m, 3),
        lambda m: game_totals(m, 3),
        lambda m: set_handicaps(m, 3),
        lambda m: set_totals(m, 3),
    ],
)
def test_probability_bounds(matches, build):
    for prob in build(matches):
        assert 0.0 <= prob.prob_a <= 1.0
        assert 0.0 <= prob.prob_b <= 1.0
        assert prob.prob_a + prob.prob_b == pytest.approx(1.0, abs=0.001)


def test_probability_to_dict_keys():
    prob = Probability(Market.HANDICAP, "0.5", 0.55, 0.45)
    assert prob.to_dict() == {"Market": "AH", "Line": "0.5", "probA": 0.55, "probB": 0.45}


def test_probability_round_trip():
    prob = Probability(Market.TOTAL, "20.5", 0.53, 0.47)
    assert Probability.from_dict(prob.to_dict()) == prob


def test_probability_from_dict_rejects_unknown_market():
    with pytest.raises(ValueError):
        Probability.from_dict({"Market": "XX", "Line": "ml", "probA": 0.5, "probB": 0.5})