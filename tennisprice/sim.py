"""Monte Carlo simulation of tennis matches from point-on-serve probabilities."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from functools import lru_cache

DEFAULT_SIMULATIONS = 1_000_000
MAX_TIEBREAK_POINTS = 30
GAMES_TO_WIN_SET = 6

_DEFAULT_RNG = random.Random()


class InvalidBestOfError(ValueError):
    """Raised when a match is not best of 3 or best of 5 sets."""

    def __init__(self, message: str = "invalid number of sets") -> None:
        super().__init__(message)


@dataclass
class SimulatedSet:
    """Games won by each side in one set."""

    a_games: int = 0
    b_games: int = 0


@dataclass
class SimulatedMatch:
    """Sets won by each player and the individual set scores."""

    a_sets: int = 0
    b_sets: int = 0
    set_results: list[SimulatedSet] = field(default_factory=list)


def _rng_or_default(rng: random.Random | None) -> random.Random:
    return rng if rng is not None else _DEFAULT_RNG


def simulate_match(
    player_a: float,
    player_b: float,
    best_of: int,
    simulations: int | None = DEFAULT_SIMULATIONS,
    rng: random.Random | None = None,
) -> list[SimulatedMatch]:
    """Simulate a match `simulations` times and return every result.

    A missing or non-positive number of simulations falls back to one million.
    """
    if best_of not in (3, 5):
        raise InvalidBestOfError()
    sets_to_win = best_of // 2 + 1
    count = simulations if simulations is not None and simulations > 0 else DEFAULT_SIMULATIONS
    generator = _rng_or_default(rng)
    return [
        simulate_single_match(player_a, player_b, sets_to_win, generator)
        for _ in range(count)
    ]


def simulate_single_match(
    p_a: float,
    p_b: float,
    sets_to_win: int,
    rng: random.Random | None = None,
) -> SimulatedMatch:
    """Play one match until a player has won `sets_to_win` sets.

    The players alternate serving first in each set, starting with A. Each
    recorded set score is given from the side of the player who served first
    in that set.
    """
    generator = _rng_or_default(rng)
    match = SimulatedMatch()
    while match.a_sets != sets_to_win and match.b_sets != sets_to_win:
        a_serves_first = (match.a_sets + match.b_sets) % 2 == 0
        if a_serves_first:
            played = simulate_set(p_a, p_b, True, generator)
        else:
            played = simulate_set(p_b, p_a, True, generator)

        first_server_won = played.a_games > played.b_games
        if first_server_won == a_serves_first:
            match.a_sets += 1
        else:
            match.b_sets += 1
        match.set_results.append(played)
    return match


@lru_cache(maxsize=4096)
def tiebreak_win_probability(
    prob_a_serve: float, prob_b_serve: float, a_serves_first: bool
) -> float:
    """Probability that A wins a tiebreak, capped at 30 points played."""

    @lru_cache(maxsize=None)
    def win_from(a_points: int, b_points: int) -> float:
        if a_points >= 7 and a_points >= b_points + 2:
            return 1.0
        if b_points >= 7 and b_points >= a_points + 2:
            return 0.0
        played = a_points + b_points
        if played >= MAX_TIEBREAK_POINTS:
            return 0.5

        if played == 0:
            a_serving = a_serves_first
        else:
            # Serve pattern: first, other, other, first, first, other, ...
            pair_index = (played - 1) // 2
            a_serving = (not a_serves_first) if pair_index % 2 == 0 else a_serves_first

        p_point = prob_a_serve if a_serving else 1.0 - prob_b_serve
        return p_point * win_from(a_points + 1, b_points) + (1.0 - p_point) * win_from(
            a_points, b_points + 1
        )

    return win_from(0, 0)


def a_wins_tiebreak(
    prob_a_serve: float,
    prob_b_serve: float,
    a_serves_first: bool,
    rng: random.Random | None = None,
) -> bool:
    """Draw the winner of a tiebreak; True when A wins."""
    probability = tiebreak_win_probability(prob_a_serve, prob_b_serve, a_serves_first)
    return probability > _rng_or_default(rng).random()


def simulate_set(
    a: float,
    b: float,
    first_serves_first: bool = True,
    rng: random.Random | None = None,
) -> SimulatedSet:
    """Simulate a set; `a` and `b` are each player's point-on-serve probability.

    `first_serves_first` tells whether the player with probability `a` serves
    the first game. At six games all a tiebreak decides the set.
    """
    generator = _rng_or_default(rng)
    result = SimulatedSet()
    first_serving = first_serves_first
    hold_first = game_win_probability(a)
    hold_second = game_win_probability(b)

    while True:
        if result.a_games == GAMES_TO_WIN_SET and result.b_games == GAMES_TO_WIN_SET:
            if a_wins_tiebreak(a, b, first_serves_first, generator):
                result.a_games += 1
            else:
                result.b_games += 1
            return result

        hold = hold_first if first_serving else hold_second
        server_holds = generator.random() < hold
        if server_holds == first_serving:
            result.a_games += 1
        else:
            result.b_games += 1

        leader = max(result.a_games, result.b_games)
        if leader >= GAMES_TO_WIN_SET and abs(result.a_games - result.b_games) >= 2:
            return result
        first_serving = not first_serving


@lru_cache(maxsize=4096)
def game_win_probability(p: float) -> float:
    """Probability that the server wins a game given the point-on-serve probability."""
    q = 1.0 - p
    denominator = 1.0 - 2.0 * p * q
    if abs(denominator) < 1e-10:
        if p > 0.5:
            p_deuce = 0.999
        elif p < 0.5:
            p_deuce = 0.001
        else:
            p_deuce = 0.5
    else:
        p_deuce = max(0.001, min(0.999, (p * p) / denominator))

    win_4_0 = p**4
    win_4_1 = 4 * p**4 * q
    win_4_2 = 10 * p**4 * q**2
    reach_deuce = 20 * p**3 * q**3
    return win_4_0 + win_4_1 + win_4_2 + reach_deuce * p_deuce