"""Progression stat rules shared by the service and the client mirror.

Win rate is derived from wins/losses on every read and is never stored.
"""

from typing import NamedTuple


class OutcomeTotals(NamedTuple):
    """Aggregate score/wins/losses after applying one game outcome."""

    score: int
    wins: int
    losses: int


def apply_outcome(score: int, wins: int, losses: int, *, won: bool) -> OutcomeTotals:
    """Return new aggregates: a win adds one point, a loss removes one (floored at zero)."""
    if won:
        return OutcomeTotals(score=score + 1, wins=wins + 1, losses=losses)
    return OutcomeTotals(score=max(0, score - 1), wins=wins, losses=losses + 1)


def win_rate(wins: int, losses: int) -> float:
    """Percentage of games won, 0.0 when no games have been played."""
    total = wins + losses
    if total == 0:
        return 0.0
    return 100.0 * wins / total
