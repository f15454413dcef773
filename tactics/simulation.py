"""
Simulation context and command executor.

Handles:
- Validating and applying spawn / move / attack / wait / end-turn commands
- Keeping tile occupancy and unit positions in agreement
- Read-only queries for presentation and computer sides (selection, range, forecast)

Every command validates fully before mutating anything, so a rejected
command leaves the simulation untouched.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Callable
from pathlib import Path

from .map import GameMap
from .units import Unit, UnitCatalog, UnitRoster
from .movement import compute_costs, compute_range, find_path
from .combat import CombatResolver, CombatOutcome, in_attack_range
from .turn import TurnManager, TurnContext
from .errors import InvalidTarget, IllegalAction, ResourceExhausted, TurnViolation, CommandError
from .commands import (
    Command, Spawn, Move, Attack, Wait, EndTurn, DomainEvent, CommandResult,
)

logger = logging.getLogger(__name__)


@dataclass
class Selection:
    """Legal actions for a unit right now."""
    unit_id: int
    moves: set[tuple[int, int]] = field(default_factory=set)
    attacks: list[int] = field(default_factory=list)  # defender ids

    def to_dict(self) -> dict:
        return {
            "unit_id": self.unit_id,
            "moves": sorted(list(p) for p in self.moves),
            "attacks": self.attacks,
        }


class Simulation:
    """
    One independent game: board, units, turn order and combat RNG.

    Nothing here is global, so any number of simulations can live side by
    side (tests, lookahead, several server sessions).
    """

    def __init__(
        self,
        game_map: GameMap,
        catalog: Optional[UnitCatalog] = None,
        total_sides: int = 2,
        rng_seed: Optional[int] = None,
        data_path: Path | str = "data",
    ):
        self.map = game_map
        self.catalog = catalog or UnitCatalog(data_path)
        self.roster = UnitRoster()
        self.turns = TurnManager(total_sides)
        self.combat = CombatResolver(rng_seed)
        self._last_outcome: Optional[CombatOutcome] = None

        self._handlers: dict[type, Callable[..., CommandResult]] = {
            Spawn: lambda c: self.spawn_unit(c.type_id, c.owner, c.position),
            Move: lambda c: self.move_unit(c.unit_id, c.target),
            Attack: lambda c: self.attack_unit(c.attacker_id, c.defender_id),
            Wait: lambda c: self.wait_unit(c.unit_id),
            EndTurn: lambda c: self.end_turn(),
        }

    # Outputs
    @property
    def turn(self) -> TurnContext:
        return self.turns.snapshot()

    @property
    def last_outcome(self) -> Optional[CombatOutcome]:
        return self._last_outcome

    def get_unit(self, unit_id: int) -> Optional[Unit]:
        return self.roster.get_unit(unit_id)

    def roster_for(self, side: int) -> list[Unit]:
        """A side's active units in spawn order."""
        return self.roster.get_units_by_side(side)

    def enemies_of(self, side: int) -> list[Unit]:
        return self.roster.get_enemies_of(side)

    def snapshot(self) -> dict:
        return {
            "turn": self.turns.context.to_dict(),
            "width": self.map.width,
            "height": self.map.height,
            "tiles": self.map.snapshot(),
            "units": [u.to_dict() for u in self.roster.all_units()],
        }

    # Occupancy: the only code that writes Tile.occupant_id or Unit.position
    def _relocate(self, unit: Unit, destination: tuple[int, int]):
        if unit.position is not None:
            self.map.get_tile(*unit.position).occupant_id = None
        self.map.get_tile(*destination).occupant_id = unit.id
        unit.position = destination

    def _vacate(self, unit: Unit):
        if unit.position is not None:
            self.map.get_tile(*unit.position).occupant_id = None
        unit.position = None

    # Queries
    def _require_unit(self, unit_id: int) -> Unit:
        unit = self.roster.get_unit(unit_id)
        if unit is None:
            raise InvalidTarget(f"No unit with id {unit_id}")
        return unit

    def movement_range(self, unit_id: int) -> set[tuple[int, int]]:
        """Every tile the unit could reach on a move, ignoring turn and flags."""
        return compute_range(self.map, self._require_unit(unit_id))

    def attack_targets(self, unit_id: int) -> list[int]:
        """Enemy ids the unit could hit from where it stands, ignoring turn and flags."""
        unit = self._require_unit(unit_id)
        targets = []
        for enemy in self.roster.get_enemies_of(unit.owner):
            if self._can_engage(unit, enemy):
                targets.append(enemy.id)
        return targets

    def _can_engage(self, attacker: Unit, defender: Unit) -> bool:
        # Same type-wide range that decides counter-attacks
        if not attacker.unit_type.can_target(defender.type_id):
            return False
        distance = self.map.distance(attacker.position, defender.position)
        return in_attack_range(attacker.unit_type, distance)

    def select_unit(self, unit_id: int) -> Selection:
        """Legal moves and attacks for the unit; empty when it is not its side's turn."""
        unit = self._require_unit(unit_id)
        selection = Selection(unit_id=unit.id)
        if not self.turns.is_current_side(unit.owner):
            return selection

        if unit.can_move():
            selection.moves = {
                pos for pos in compute_range(self.map, unit)
                if self.map.get_occupant(pos) is None
            }
        if unit.can_attack():
            selection.attacks = self.attack_targets(unit.id)
        return selection

    def forecast(self, attacker_id: int, defender_id: int) -> CombatOutcome:
        """Expected result of an attack with no random spread."""
        attacker = self._require_unit(attacker_id)
        defender = self._require_unit(defender_id)
        return self.combat.forecast(attacker, defender, self.map)

    # Commands
    def execute(self, command: Command) -> CommandResult:
        """Apply a command, turning a rejection into a failed result."""
        handler = self._handlers.get(type(command))
        if handler is None:
            raise TypeError(f"Not a command: {command!r}")
        try:
            result = handler(command)
        except CommandError as e:
            logger.debug(f"Rejected {command.kind}: {e}")
            return CommandResult(ok=False, command=command, error=e)
        result.command = command
        return result

    def _check_turn(self, unit: Unit):
        if not self.turns.is_current_side(unit.owner):
            raise TurnViolation(
                f"Unit {unit.id} belongs to side {unit.owner}, "
                f"side {self.turns.current_side} is acting"
            )

    def spawn_unit(self, type_id: str, owner: int, position: tuple[int, int]) -> CommandResult:
        unit_type = self.catalog.get(type_id)
        if unit_type is None:
            raise InvalidTarget(f"Unknown unit type: {type_id}")
        if not 0 <= owner < self.turns.context.total_sides:
            raise InvalidTarget(f"No side {owner}")
        position = tuple(position)
        if not self.map.in_bounds(*position):
            raise InvalidTarget(f"Tile {position} is off the board")
        if self.map.get_occupant(position) is not None:
            raise IllegalAction(f"Tile {position} is occupied")

        unit = self.roster.create(unit_type, owner)
        self._relocate(unit, position)
        logger.info(f"Spawned {type_id} #{unit.id} for side {owner} at {position}")

        return CommandResult(
            ok=True,
            unit_id=unit.id,
            events=[DomainEvent("unit_spawned", unit.to_dict())],
        )

    def move_unit(self, unit_id: int, target: tuple[int, int]) -> CommandResult:
        unit = self._require_unit(unit_id)
        self._check_turn(unit)
        if unit.has_moved:
            raise IllegalAction(f"Unit {unit.id} has already moved")
        if unit.fuel <= 0:
            raise ResourceExhausted(f"Unit {unit.id} has no fuel")
        target = tuple(target)
        if not self.map.in_bounds(*target):
            raise InvalidTarget(f"Tile {target} is off the board")
        if self.map.get_occupant(target) is not None:
            raise IllegalAction(f"Tile {target} is occupied")

        costs = compute_costs(self.map, unit)
        if target not in costs:
            raise IllegalAction(f"Tile {target} is out of range for unit {unit.id}")

        path = find_path(self.map, unit, target)
        origin = unit.position
        # Only the destination tile is charged, never below zero
        destination = self.map.get_tile(*target)
        fuel_used = min(unit.fuel, self.map.get_movement_cost(destination, unit.unit_type))

        self._relocate(unit, target)
        unit.fuel -= fuel_used
        unit.has_moved = True

        return CommandResult(
            ok=True,
            unit_id=unit.id,
            events=[DomainEvent("unit_moved", {
                "unit_id": unit.id,
                "from": list(origin),
                "to": list(target),
                "path": [list(p) for p in path],
                "fuel_used": fuel_used,
            })],
        )

    def attack_unit(self, attacker_id: int, defender_id: int) -> CommandResult:
        attacker = self._require_unit(attacker_id)
        defender = self._require_unit(defender_id)
        if attacker.owner == defender.owner:
            raise InvalidTarget(f"Unit {defender.id} is not an enemy of unit {attacker.id}")
        self._check_turn(attacker)
        if attacker.has_attacked:
            raise IllegalAction(f"Unit {attacker.id} has already attacked")
        if attacker.ammo <= 0:
            raise ResourceExhausted(f"Unit {attacker.id} has no ammo")
        if not attacker.unit_type.can_target(defender.type_id):
            raise IllegalAction(f"{attacker.type_id} cannot target {defender.type_id}")
        if not self._can_engage(attacker, defender):
            raise IllegalAction(f"Unit {defender.id} is out of range of unit {attacker.id}")

        outcome = self.combat.resolve(attacker, defender, self.map)
        entry = attacker.unit_type.get_attack_entry(defender.type_id)

        if entry.uses_ammo:
            attacker.ammo -= 1
        attacker.has_attacked = True
        defender.hp = outcome.defender_hp

        events = [
            DomainEvent("unit_attacked", {
                "attacker_id": attacker.id,
                "defender_id": defender.id,
                "damage": outcome.attacker_damage,
            }),
            DomainEvent("unit_damaged", {"unit_id": defender.id, "hp": defender.hp}),
        ]
        if defender.hp <= 0:
            events.append(self._destroy(defender))

        if outcome.countered:
            attacker.hp = outcome.attacker_hp
            events.append(DomainEvent("counter_attack", {
                "attacker_id": defender.id,
                "defender_id": attacker.id,
                "damage": outcome.defender_damage,
            }))
            events.append(DomainEvent("unit_damaged", {"unit_id": attacker.id, "hp": attacker.hp}))
            if attacker.hp <= 0:
                events.append(self._destroy(attacker))

        self._last_outcome = outcome
        logger.info(
            f"Unit {attacker.id} attacked {defender.id}: "
            f"{outcome.attacker_damage}/{outcome.defender_damage} -> {outcome.winner.value}"
        )
        return CommandResult(ok=True, unit_id=attacker.id, outcome=outcome, events=events)

    def _destroy(self, unit: Unit) -> DomainEvent:
        position = unit.position
        self._vacate(unit)
        self.roster.remove(unit.id)
        logger.info(f"Unit {unit.id} ({unit.type_id}, side {unit.owner}) destroyed")
        return DomainEvent("unit_destroyed", {
            "unit_id": unit.id,
            "owner": unit.owner,
            "position": list(position) if position else None,
        })

    def wait_unit(self, unit_id: int) -> CommandResult:
        """End the unit's actions for this turn where it stands."""
        unit = self._require_unit(unit_id)
        self._check_turn(unit)
        unit.has_moved = True
        unit.has_attacked = True
        return CommandResult(
            ok=True,
            unit_id=unit.id,
            events=[DomainEvent("unit_waited", {"unit_id": unit.id})],
        )

    def end_turn(self) -> CommandResult:
        ending = self.turns.current_side
        context = self.turns.end_turn(self.roster)
        return CommandResult(
            ok=True,
            turn=context,
            events=[DomainEvent("turn_ended", {"side": ending, **context.to_dict()})],
        )
