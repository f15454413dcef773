"""
Square grid map system for the tactical simulation.

Handles:
- Terrain kinds and their base movement cost / defense bonus (schema or defaults)
- Tile occupancy (at most one unit id per tile)
- Board generation: explicit layouts, the default pattern, seeded random boards
"""

import logging
import math
import random
import yaml
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from pathlib import Path

logger = logging.getLogger(__name__)

# Sentinel cost for terrain no unit (or no unit of a given type) may enter
IMPASSABLE = 999

DEFAULT_WIDTH = 15
DEFAULT_HEIGHT = 15


class TerrainType(Enum):
    PLAIN = "plain"
    FOREST = "forest"
    MOUNTAIN = "mountain"
    RIVER = "river"
    SEA = "sea"
    ROAD = "road"
    BRIDGE = "bridge"
    REEF = "reef"
    PIPE = "pipe"
    WATERFALL = "waterfall"
    SHORE = "shore"


# One character per tile in layout rows
TERRAIN_SYMBOLS = {
    ".": TerrainType.PLAIN,
    "F": TerrainType.FOREST,
    "M": TerrainType.MOUNTAIN,
    "~": TerrainType.RIVER,
    "W": TerrainType.SEA,
    "=": TerrainType.ROAD,
    "B": TerrainType.BRIDGE,
    "R": TerrainType.REEF,
    "P": TerrainType.PIPE,
    "X": TerrainType.WATERFALL,
    "_": TerrainType.SHORE,
}


@dataclass
class TerrainInfo:
    """Terrain kind properties loaded from schema."""
    id: str
    name: str
    movement_cost: int  # base cost, IMPASSABLE blocks every unit type
    defense_bonus: int  # percent, 0-100


@dataclass
class Tile:
    """Single grid square."""
    x: int
    y: int
    terrain: TerrainType
    movement_cost: int
    defense_bonus: int
    occupant_id: Optional[int] = None  # id of the unit standing here

    @property
    def position(self) -> tuple[int, int]:
        return (self.x, self.y)

    @property
    def is_occupied(self) -> bool:
        return self.occupant_id is not None

    @property
    def is_impassable(self) -> bool:
        return self.movement_cost >= IMPASSABLE


class GameMap:
    """
    Rectangular tile grid.

    Origin is the top-left corner, x grows east and y grows south.
    Terrain is fixed once the map has been generated; only occupancy changes.
    """

    def __init__(self, width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT,
                 data_path: Path | str = "data"):
        if width <= 0 or height <= 0:
            raise ValueError(f"Map dimensions must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self.data_path = Path(data_path)
        self.terrain_info: dict[str, TerrainInfo] = {}
        self.tiles: dict[tuple[int, int], Tile] = {}

        self._load_terrain_schema()
        self._fill(TerrainType.PLAIN)

    def _load_terrain_schema(self):
        """Load terrain definitions, falling back to built-in values."""
        self._create_default_terrain_info()

        schema_path = self.data_path / "schema" / "terrain.yaml"
        if not schema_path.exists():
            return

        with open(schema_path) as f:
            schema = yaml.safe_load(f) or {}

        for terrain_id, info in schema.get("terrain_types", {}).items():
            try:
                TerrainType(terrain_id)
            except ValueError:
                raise ValueError(f"Unknown terrain kind in {schema_path}: {terrain_id}")
            cost = info.get("movement_cost", 1)
            if cost == "impassable":
                cost = IMPASSABLE
            self.terrain_info[terrain_id] = TerrainInfo(
                id=terrain_id,
                name=info.get("name", terrain_id.title()),
                movement_cost=int(cost),
                defense_bonus=int(info.get("defense_bonus", 0)),
            )

    def _create_default_terrain_info(self):
        """Create default terrain info if schema not found."""
        defaults = {
            "plain": (1, 0),
            "forest": (1, 20),
            "mountain": (2, 30),
            "river": (2, 0),
            "sea": (1, 0),
            "road": (1, 0),
            "bridge": (1, 0),
            "reef": (1, 10),
            "pipe": (1, 0),
            "waterfall": (IMPASSABLE, 0),
            "shore": (1, 0),
        }
        for tid, (move, defense) in defaults.items():
            self.terrain_info[tid] = TerrainInfo(
                id=tid, name=tid.title(),
                movement_cost=move, defense_bonus=defense,
            )

    def _fill(self, terrain: TerrainType):
        for y in range(self.height):
            for x in range(self.width):
                self._paint(x, y, terrain)

    def _paint(self, x: int, y: int, terrain: TerrainType):
        """Set terrain for a tile. Only used while generating."""
        info = self.terrain_info[terrain.value]
        self.tiles[(x, y)] = Tile(
            x=x, y=y,
            terrain=terrain,
            movement_cost=info.movement_cost,
            defense_bonus=info.defense_bonus,
        )

    # Generation
    @classmethod
    def from_rows(cls, rows: list[str], data_path: Path | str = "data") -> "GameMap":
        """Build a map from layout rows, one symbol (see TERRAIN_SYMBOLS) per tile."""
        if not rows:
            raise ValueError("Layout has no rows")
        width = len(rows[0])
        if any(len(row) != width for row in rows):
            raise ValueError("Layout rows must all have the same length")

        game_map = cls(width, len(rows), data_path)
        for y, row in enumerate(rows):
            for x, symbol in enumerate(row):
                terrain = TERRAIN_SYMBOLS.get(symbol)
                if terrain is None:
                    raise ValueError(f"Unknown terrain symbol {symbol!r} at ({x}, {y})")
                game_map._paint(x, y, terrain)
        return game_map

    @classmethod
    def generate_default(cls, width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT,
                         data_path: Path | str = "data") -> "GameMap":
        """Deterministic pattern: scattered forest, mountain peaks, a river down the middle."""
        game_map = cls(width, height, data_path)
        for y in range(height):
            for x in range(width):
                if (x + y) % 5 == 0 and 2 < x < width - 3 and 2 < y < height - 3:
                    terrain = TerrainType.FOREST
                elif x % 7 == 0 and y % 7 == 0 and 0 < x < width - 1 and 0 < y < height - 1:
                    terrain = TerrainType.MOUNTAIN
                elif x == width // 2 and 3 < y < height - 3:
                    terrain = TerrainType.RIVER
                else:
                    terrain = TerrainType.PLAIN
                game_map._paint(x, y, terrain)
        return game_map

    @classmethod
    def generate_random(cls, width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT,
                        seed: Optional[int] = None,
                        data_path: Path | str = "data") -> "GameMap":
        """Seeded random terrain, weighted towards open ground."""
        rng = random.Random(seed)
        game_map = cls(width, height, data_path)
        for y in range(height):
            for x in range(width):
                roll = rng.random()
                if roll < 0.6:
                    terrain = TerrainType.PLAIN
                elif roll < 0.75:
                    terrain = TerrainType.FOREST
                elif roll < 0.85:
                    terrain = TerrainType.MOUNTAIN
                elif roll < 0.95:
                    terrain = TerrainType.RIVER
                else:
                    terrain = TerrainType.ROAD
                game_map._paint(x, y, terrain)
        logger.info(f"Generated random {width}x{height} map (seed={seed})")
        return game_map

    # Grid operations
    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get_tile(self, x: int, y: int) -> Optional[Tile]:
        """Get tile at coordinates."""
        return self.tiles.get((x, y))

    def get_neighbors(self, x: int, y: int) -> list[Tile]:
        """Get the orthogonally adjacent tiles (north, south, west, east)."""
        directions = [(0, -1), (0, 1), (-1, 0), (1, 0)]
        neighbors = []
        for dx, dy in directions:
            tile = self.get_tile(x + dx, y + dy)
            if tile:
                neighbors.append(tile)
        return neighbors

    @staticmethod
    def distance(a: tuple[int, int], b: tuple[int, int]) -> int:
        """Manhattan distance between two positions."""
        return abs(a[0] - b[0]) + abs(a[1] - b[1])

    @property
    def center(self) -> tuple[float, float]:
        """Geometric center of the board."""
        return ((self.width - 1) / 2, (self.height - 1) / 2)

    def distance_to_center(self, position: tuple[int, int]) -> float:
        return math.dist(position, self.center)

    # Movement and combat support
    def get_movement_cost(self, tile: Tile, unit_type) -> int:
        """Cost for a unit type to enter this tile."""
        if tile.is_impassable:
            return IMPASSABLE
        return unit_type.get_movement_cost(tile.terrain)

    def get_defense_bonus(self, position: tuple[int, int]) -> int:
        tile = self.get_tile(*position)
        return tile.defense_bonus if tile else 0

    def get_occupant(self, position: tuple[int, int]) -> Optional[int]:
        tile = self.get_tile(*position)
        return tile.occupant_id if tile else None

    # Utility
    def snapshot(self) -> list[dict]:
        """Per-tile terrain and occupancy, row by row."""
        return [
            {
                "x": tile.x,
                "y": tile.y,
                "terrain": tile.terrain.value,
                "defense": tile.defense_bonus,
                "occupant": tile.occupant_id,
            }
            for _, tile in sorted(self.tiles.items(), key=lambda item: (item[0][1], item[0][0]))
        ]

    def get_stats(self) -> dict:
        """Get map statistics."""
        terrain_counts = {}
        for tile in self.tiles.values():
            terrain = tile.terrain.value
            terrain_counts[terrain] = terrain_counts.get(terrain, 0) + 1

        return {
            "width": self.width,
            "height": self.height,
            "total_tiles": len(self.tiles),
            "occupied_tiles": sum(1 for t in self.tiles.values() if t.is_occupied),
            "terrain_distribution": terrain_counts,
        }
