"""
Unit state management for the tactical simulation.

Handles:
- Immutable per-type stat tables (attack-by-target, movement-by-terrain)
- Per-unit mutable state (health, fuel, ammo, action flags, position)
- The roster of active units, addressed by stable integer ids
"""

import itertools
import logging
import yaml
from dataclasses import dataclass, field
from typing import Optional
from pathlib import Path

from .map import TerrainType, IMPASSABLE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttackEntry:
    """How one unit type engages another."""
    damage: int  # base damage, 0 = cannot target
    min_range: int = 1
    max_range: int = 1
    uses_ammo: bool = True


@dataclass(frozen=True)
class UnitType:
    """Stat table shared by every unit of a type."""
    id: str
    name: str
    max_hp: int
    fuel: int  # capacity
    ammo: int  # capacity
    movement: int  # movement budget per move action
    cost: int
    attack_table: dict[str, AttackEntry] = field(default_factory=dict)
    movement_table: dict[TerrainType, int] = field(default_factory=dict)

    def get_movement_cost(self, terrain: TerrainType) -> int:
        return self.movement_table.get(terrain, IMPASSABLE)

    def get_attack_entry(self, target_type_id: str) -> Optional[AttackEntry]:
        return self.attack_table.get(target_type_id)

    def get_attack_damage(self, target_type_id: str) -> int:
        entry = self.attack_table.get(target_type_id)
        return entry.damage if entry else 0

    def can_target(self, target_type_id: str) -> bool:
        return self.get_attack_damage(target_type_id) > 0

    @property
    def can_attack_anything(self) -> bool:
        return any(entry.damage > 0 for entry in self.attack_table.values())

    def get_attack_range(self) -> tuple[int, int]:
        """
        Type-wide engagement range.

        Tightest min and widest max over every entry that deals damage,
        (1, 1) when the type has no damaging entry.
        """
        entries = [e for e in self.attack_table.values() if e.damage > 0]
        if not entries:
            return (1, 1)
        return (min(e.min_range for e in entries), max(e.max_range for e in entries))

    def has_indirect_attack(self) -> bool:
        return self.get_attack_range()[0] > 1


@dataclass
class Unit:
    """Runtime state of a unit on the board."""
    id: int
    unit_type: UnitType
    owner: int  # side index
    hp: int
    fuel: int
    ammo: int
    has_moved: bool = False
    has_attacked: bool = False
    position: Optional[tuple[int, int]] = None  # kept in step with Tile.occupant_id

    @property
    def type_id(self) -> str:
        return self.unit_type.id

    def health_fraction(self) -> float:
        return self.hp / max(1, self.unit_type.max_hp)

    def can_move(self) -> bool:
        return not self.has_moved and self.fuel > 0

    def can_attack(self) -> bool:
        return not self.has_attacked and self.ammo > 0

    def is_action_complete(self) -> bool:
        return self.has_moved and self.has_attacked

    def reset_turn(self):
        """Clear per-turn action flags."""
        self.has_moved = False
        self.has_attacked = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.unit_type.id,
            "owner": self.owner,
            "hp": self.hp,
            "max_hp": self.unit_type.max_hp,
            "fuel": self.fuel,
            "ammo": self.ammo,
            "has_moved": self.has_moved,
            "has_attacked": self.has_attacked,
            "position": list(self.position) if self.position else None,
        }


# Movement tables shared by the default types
FOOT = {
    TerrainType.PLAIN: 1, TerrainType.ROAD: 1, TerrainType.BRIDGE: 1,
    TerrainType.SHORE: 1, TerrainType.FOREST: 1, TerrainType.MOUNTAIN: 2,
    TerrainType.RIVER: 2,
}
BOOTS = {**FOOT, TerrainType.MOUNTAIN: 1, TerrainType.RIVER: 1}
TREADS = {
    TerrainType.PLAIN: 1, TerrainType.ROAD: 1, TerrainType.BRIDGE: 1,
    TerrainType.SHORE: 1, TerrainType.FOREST: 2,
}
TIRES = {
    TerrainType.PLAIN: 2, TerrainType.ROAD: 1, TerrainType.BRIDGE: 1,
    TerrainType.SHORE: 1, TerrainType.FOREST: 3,
}

# Column order of the default attack rows
TARGET_ORDER = [
    "infantry", "mech", "recon", "tank", "medium_tank", "neo_tank",
    "mega_tank", "apc", "artillery", "anti_air",
]


class UnitCatalog:
    """Unit type definitions, from schema or built-in defaults."""

    def __init__(self, data_path: Path | str = "data"):
        self.data_path = Path(data_path)
        self.types: dict[str, UnitType] = {}
        self._load_unit_schema()

    def _load_unit_schema(self):
        schema_path = self.data_path / "schema" / "units.yaml"
        if not schema_path.exists():
            logger.warning(f"Unit schema not found: {schema_path}, using defaults")
            self._create_default_unit_types()
            return

        with open(schema_path) as f:
            schema = yaml.safe_load(f) or {}

        for type_id, info in schema.get("unit_types", {}).items():
            self.types[type_id] = self._parse_unit_type(type_id, info, schema_path)
        logger.info(f"Loaded {len(self.types)} unit types")

    def _parse_unit_type(self, type_id: str, info: dict, source: Path) -> UnitType:
        attack_table = {}
        for target, entry in (info.get("attack") or {}).items():
            if isinstance(entry, int):
                entry = {"damage": entry}
            min_range = entry.get("min_range", 1)
            max_range = entry.get("max_range", min_range)
            if min_range < 1 or max_range < min_range:
                raise ValueError(f"Bad attack range for {type_id} -> {target} in {source}")
            attack_table[target] = AttackEntry(
                damage=entry.get("damage", 0),
                min_range=min_range,
                max_range=max_range,
                uses_ammo=entry.get("uses_ammo", True),
            )

        movement_table = {}
        for terrain_id, cost in (info.get("movement") or {}).items():
            try:
                terrain = TerrainType(terrain_id)
            except ValueError:
                raise ValueError(f"Unknown terrain kind {terrain_id!r} for {type_id} in {source}")
            movement_table[terrain] = IMPASSABLE if cost == "impassable" else int(cost)

        return UnitType(
            id=type_id,
            name=info.get("name", type_id.replace("_", " ").title()),
            max_hp=info.get("max_hp", 10),
            fuel=info.get("fuel", 99),
            ammo=info.get("ammo", 0),
            movement=info.get("movement_points", 3),
            cost=info.get("cost", 1000),
            attack_table=attack_table,
            movement_table=movement_table,
        )

    def _create_default_unit_types(self):
        """Create default unit types if schema not found."""
        # name: (fuel, ammo, move, cost, movement table, damage row, range, uses ammo)
        defaults = {
            "infantry": (99, 99, 3, 1000, FOOT,
                         [55, 45, 12, 5, 1, 1, 1, 14, 15, 5], (1, 1), False),
            "mech": (70, 3, 2, 3000, BOOTS,
                     [65, 55, 85, 55, 15, 15, 5, 75, 70, 65], (1, 1), True),
            "recon": (80, 99, 8, 4000, TIRES,
                      [70, 65, 35, 6, 1, 1, 1, 45, 45, 4], (1, 1), False),
            "tank": (70, 9, 6, 7000, TREADS,
                     [75, 70, 85, 55, 15, 15, 10, 75, 70, 65], (1, 1), True),
            "medium_tank": (50, 8, 5, 16000, TREADS,
                            [105, 95, 105, 85, 55, 45, 25, 105, 105, 105], (1, 1), True),
            "neo_tank": (99, 9, 6, 22000, TREADS,
                         [125, 115, 125, 105, 75, 55, 35, 125, 115, 115], (1, 1), True),
            "mega_tank": (50, 3, 4, 28000, TREADS,
                          [135, 125, 195, 180, 125, 115, 65, 195, 195, 195], (1, 1), True),
            "apc": (70, 0, 6, 5000, TREADS, None, (1, 1), False),
            "artillery": (50, 9, 5, 6000, TREADS,
                          [90, 85, 80, 70, 45, 40, 15, 70, 75, 75], (2, 3), True),
            "anti_air": (60, 9, 6, 8000, TREADS,
                         [105, 105, 60, 25, 10, 5, 1, 50, 50, 45], (1, 1), True),
        }
        names = {"apc": "APC", "anti_air": "Anti-Air"}
        for tid, (fuel, ammo, move, cost, movement, row, (lo, hi), uses_ammo) in defaults.items():
            attack_table = {}
            if row:
                attack_table = {
                    target: AttackEntry(damage, lo, hi, uses_ammo)
                    for target, damage in zip(TARGET_ORDER, row)
                }
            self.types[tid] = UnitType(
                id=tid, name=names.get(tid, tid.replace("_", " ").title()),
                max_hp=10, fuel=fuel, ammo=ammo, movement=move, cost=cost,
                attack_table=attack_table, movement_table=dict(movement),
            )

    def get(self, type_id: str) -> Optional[UnitType]:
        return self.types.get(type_id)

    def ids(self) -> list[str]:
        return list(self.types)


class UnitRoster:
    """Active units keyed by id, in spawn order."""

    def __init__(self):
        self.units: dict[int, Unit] = {}
        self._next_id = itertools.count(1)

    def create(self, unit_type: UnitType, owner: int) -> Unit:
        """Register a fresh full-strength unit. Placement is up to the caller."""
        unit = Unit(
            id=next(self._next_id),
            unit_type=unit_type,
            owner=owner,
            hp=unit_type.max_hp,
            fuel=unit_type.fuel,
            ammo=unit_type.ammo,
        )
        self.units[unit.id] = unit
        return unit

    def remove(self, unit_id: int) -> Optional[Unit]:
        return self.units.pop(unit_id, None)

    # Query methods
    def get_unit(self, unit_id: int) -> Optional[Unit]:
        return self.units.get(unit_id)

    def all_units(self) -> list[Unit]:
        return list(self.units.values())

    def get_units_by_side(self, side: int) -> list[Unit]:
        return [u for u in self.units.values() if u.owner == side]

    def get_enemies_of(self, side: int) -> list[Unit]:
        return [u for u in self.units.values() if u.owner != side]

    def sides_with_units(self) -> set[int]:
        return {u.owner for u in self.units.values()}

    def __len__(self) -> int:
        return len(self.units)

    def get_stats(self) -> dict:
        """Get unit statistics."""
        stats = {
            "total_units": len(self.units),
            "by_side": {},
            "by_type": {},
        }
        for unit in self.units.values():
            stats["by_side"][unit.owner] = stats["by_side"].get(unit.owner, 0) + 1
            stats["by_type"][unit.type_id] = stats["by_type"].get(unit.type_id, 0) + 1
        return stats
