"""
Attack resolution.

resolve_attack is a pure function of (attack list, coordinate, defender
fleet): it returns the new attack list and the new defender fleet instead of
editing the fetched record, and the caller writes both back in one update.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from naval.logic.board import Coord
from naval.logic.record import Fleet, Ship


class AttackResolution(BaseModel):
    """Outcome of one attack coordinate against a defender fleet."""

    model_config = ConfigDict(frozen=True)

    coord: Coord
    already_attacked: bool = False
    hit: bool = False
    sunk_ship_name: str | None = None  # first ship newly sunk by this attack
    all_sunk: bool = False
    attacks: tuple[Coord, ...]  # attacker's attack list after this attack
    fleet: Fleet  # defender fleet after this attack


def resolve_attack(attacker_attacks: tuple[Coord, ...], coord: Coord, defender_fleet: Fleet) -> AttackResolution:
    """
    Resolve one attack.

    A coordinate already in the attacker's list is flagged as already
    attacked and scores nothing, so a resubmitted attack is never counted
    twice. Otherwise every ship covering the coordinate gains a hit.

    Args:
        attacker_attacks: Coordinates the attacker fired at before this attack
        coord: Target coordinate
        defender_fleet: Defender's fleet before this attack

    Returns:
        AttackResolution carrying the flags and the updated attack list and fleet

    """
    coord = (coord[0], coord[1])
    if coord in attacker_attacks:
        return AttackResolution(
            coord=coord,
            already_attacked=True,
            attacks=attacker_attacks,
            fleet=defender_fleet,
            all_sunk=defender_fleet.all_sunk,
        )

    hit = False
    sunk_ship_name: str | None = None
    ships: list[Ship] = []
    for ship in defender_fleet.ships:
        if ship.occupies(coord):
            hit = True
            ship = ship.model_copy(update={"hits": ship.hits + 1})  # noqa: PLW2901
            if ship.is_sunk and sunk_ship_name is None:
                sunk_ship_name = ship.name
        ships.append(ship)

    fleet = Fleet(ships=tuple(ships))
    return AttackResolution(
        coord=coord,
        hit=hit,
        sunk_ship_name=sunk_ship_name,
        all_sunk=fleet.all_sunk,
        attacks=(*attacker_attacks, coord),
        fleet=fleet,
    )
