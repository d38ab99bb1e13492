"""
Ship catalog helpers.

Placement walks the catalog in order, each kind repeated by its count. A fleet
is complete once every entry of that sequence has been placed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from naval.logic.record import Fleet
    from naval.logic.settings import GameRules, ShipKind


def placement_order(rules: GameRules) -> tuple[ShipKind, ...]:
    """Return the sequence of ship kinds in the order they are placed."""
    return tuple(kind for kind in rules.ships for _ in range(kind.count))


def next_ship_kind(rules: GameRules, fleet: Fleet) -> ShipKind | None:
    """Return the kind the fleet's owner places next, or None once complete."""
    order = placement_order(rules)
    placed = len(fleet.ships)
    if placed >= len(order):
        return None
    return order[placed]


def is_fleet_complete(rules: GameRules, fleet: Fleet) -> bool:
    """Check whether every catalog entry has been placed its count of times."""
    placed: dict[str, int] = {}
    for ship in fleet.ships:
        placed[ship.name] = placed.get(ship.name, 0) + 1
    return all(placed.get(kind.name, 0) >= kind.count for kind in rules.ships)
