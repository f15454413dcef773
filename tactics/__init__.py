"""
Tactical grid simulation engine.

Core modules:
- map: Square grid terrain and occupancy
- units: Unit types, unit state and the active roster
- movement: Movement range (cost-weighted reachability)
- combat: Damage, counter-attack and outcome
- turn: Side rotation and turn/day counters
- simulation: Command validation and execution
- scenario: Board and starting forces from YAML
"""

from .map import GameMap, Tile, TerrainType, TerrainInfo, IMPASSABLE
from .units import UnitCatalog, UnitRoster, Unit, UnitType, AttackEntry
from .movement import compute_range, compute_costs, find_path
from .combat import (
    CombatResolver, CombatOutcome, CombatWinner, calculate_damage, can_counter, in_attack_range,
)
from .turn import TurnManager, TurnContext
from .errors import CommandError, InvalidTarget, IllegalAction, ResourceExhausted, TurnViolation
from .commands import (
    Command, Spawn, Move, Attack, Wait, EndTurn, DomainEvent, CommandResult,
)
from .simulation import Simulation, Selection
from .scenario import Scenario, SideConfig, UnitPlacement, load_scenario, default_scenario

__all__ = [
    # Map
    "GameMap", "Tile", "TerrainType", "TerrainInfo", "IMPASSABLE",
    # Units
    "UnitCatalog", "UnitRoster", "Unit", "UnitType", "AttackEntry",
    # Movement
    "compute_range", "compute_costs", "find_path",
    # Combat
    "CombatResolver", "CombatOutcome", "CombatWinner", "calculate_damage", "can_counter",
    "in_attack_range",
    # Turn Management
    "TurnManager", "TurnContext",
    # Commands
    "CommandError", "InvalidTarget", "IllegalAction", "ResourceExhausted", "TurnViolation",
    "Command", "Spawn", "Move", "Attack", "Wait", "EndTurn", "DomainEvent", "CommandResult",
    # Simulation
    "Simulation", "Selection",
    "Scenario", "SideConfig", "UnitPlacement", "load_scenario", "default_scenario",
]
