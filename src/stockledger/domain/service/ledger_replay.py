"""Reconstruct stock quantities from movement history.

The movement log is the source of truth: folding every movement's signed
effects from zero must reproduce the current stock entries exactly.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass

from stockledger.domain.model.movement import Movement
from stockledger.domain.model.stock import StockEntry, StockKey


@dataclass(frozen=True)
class Discrepancy:
    key: StockKey
    recorded: int
    replayed: int


def replay_movements(movements: Iterable[Movement]) -> dict[StockKey, int]:
    """Sum the signed effects of ``movements`` per stock key."""
    totals: dict[StockKey, int] = defaultdict(int)
    for movement in movements:
        for key, delta in movement.effects():
            totals[key] += delta
    return dict(totals)


def find_discrepancies(
    entries: Iterable[StockEntry], replayed: dict[StockKey, int]
) -> list[Discrepancy]:
    """Compare recorded entries with replayed totals, in lock order."""
    recorded = {e.key: e.quantity for e in entries}
    mismatches: list[Discrepancy] = []
    for key in sorted(recorded.keys() | replayed.keys(), key=lambda k: k.lock_order):
        have = recorded.get(key, 0)
        want = replayed.get(key, 0)
        if have != want:
            mismatches.append(Discrepancy(key=key, recorded=have, replayed=want))
    return mismatches
