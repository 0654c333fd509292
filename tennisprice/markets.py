"""Betting-market probabilities derived from simulated tennis matches."""

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from tennisprice.sim import SimulatedMatch

BO3_GAME_SPREAD = 8.5
BO5_GAME_SPREAD = 12.5


class Market(str, Enum):
    """Kind of betting market."""

    MONEYLINE = "ML"
    HANDICAP = "AH"
    TOTAL = "OU"


@dataclass(frozen=True)
class Probability:
    """Probabilities of both sides of one market line."""

    market: Market
    line: str
    prob_a: float
    prob_b: float

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready form of this probability."""
        return {
            "Market": self.market.value,
            "Line": self.line,
            "probA": self.prob_a,
            "probB": self.prob_b,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Probability:
        """Build a probability from its JSON-ready form."""
        return cls(
            market=Market(data["Market"]),
            line=str(data["Line"]),
            prob_a=float(data["probA"]),
            prob_b=float(data["probB"]),
        )


def _share(hits: int, total: int) -> float:
    # An empty sample yields NaN rather than an error.
    return hits / total if total else math.nan


def _probability(
    market: Market,
    line: str,
    matches: Sequence[SimulatedMatch],
    condition: Callable[[SimulatedMatch], bool],
) -> Probability:
    hits = sum(1 for match in matches if condition(match))
    share = _share(hits, len(matches))
    return Probability(market=market, line=line, prob_a=share, prob_b=1 - share)


def _format_line(value: float) -> str:
    return f"{value:.1f}"


def _unit_steps(start: float, stop: float) -> Iterator[float]:
    value = start
    while value <= stop:
        yield value
        value += 1


def game_spread(best_of: int) -> float:
    """Largest game handicap offered for a best-of-3 or best-of-5 match; 0 otherwise."""
    return {3: BO3_GAME_SPREAD, 5: BO5_GAME_SPREAD}.get(best_of, 0.0)


def match_games(match: SimulatedMatch) -> tuple[int, int]:
    """Total games won by each side over all sets of a match."""
    return (
        sum(s.a_games for s in match.set_results),
        sum(s.b_games for s in match.set_results),
    )


def moneyline(matches: Sequence[SimulatedMatch]) -> Probability:
    """Probability that player A wins the match."""
    return _probability(Market.MONEYLINE, "ml", matches, lambda m: m.a_sets > m.b_sets)


def game_handicap(matches: Sequence[SimulatedMatch], handicap: float) -> Probability:
    """Probability that A's games plus the handicap exceed B's games."""

    def covers(match: SimulatedMatch) -> bool:
        a_games, b_games = match_games(match)
        return a_games + handicap > b_games

    return _probability(Market.HANDICAP, _format_line(handicap), matches, covers)


def game_handicaps(matches: Sequence[SimulatedMatch], best_of: int) -> list[Probability]:
    """Game handicap lines from minus to plus the spread, one game apart."""
    spread = game_spread(best_of)
    return [game_handicap(matches, line) for line in _unit_steps(-spread, spread)]


def game_total(matches: Sequence[SimulatedMatch], total: float) -> Probability:
    """Probability that more than `total` games are played."""

    def over(match: SimulatedMatch) -> bool:
        return sum(match_games(match)) > total

    return _probability(Market.TOTAL, _format_line(total), matches, over)


def game_totals(matches: Sequence[SimulatedMatch], best_of: int) -> list[Probability]:
    """Total-games lines from the shortest possible match to the longest."""
    low = (int(best_of / 2) + 1) * 6 + 0.5
    high = best_of * 6 * 2 + 0.5
    return [game_total(matches, line) for line in _unit_steps(low, high)]


def set_handicap(matches: Sequence[SimulatedMatch], handicap: float) -> Probability:
    """Probability that A's sets plus the handicap exceed B's sets."""
    return _probability(
        Market.HANDICAP,
        _format_line(handicap),
        matches,
        lambda m: m.a_sets + handicap > m.b_sets,
    )


def set_handicaps(matches: Sequence[SimulatedMatch], best_of: int) -> list[Probability]:
    """Set handicap lines: ±1.5 for best of 3, ±2.5 otherwise."""
    limit = 1.5 if best_of == 3 else 2.5
    return [set_handicap(matches, line) for line in _unit_steps(-limit, limit)]


def set_total(matches: Sequence[SimulatedMatch], total: float) -> Probability:
    """Probability that more than `total` sets are played."""
    return _probability(
        Market.TOTAL,
        _format_line(total),
        matches,
        lambda m: m.a_sets + m.b_sets > total,
    )


def set_totals(matches: Sequence[SimulatedMatch], best_of: int) -> list[Probability]:
    """Total-sets lines: 2.5 for best of 3, 3.5 and 4.5 otherwise."""
    lines: Iterable[float] = (2.5,) if best_of == 3 else _unit_steps(3.5, 4.5)
    return [set_total(matches, line) for line in lines]