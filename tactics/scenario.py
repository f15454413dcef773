"""
Scenario loading: board, sides and starting units from YAML.
"""

import logging
import yaml
from dataclasses import dataclass, field
from typing import Optional
from pathlib import Path

from .map import GameMap, DEFAULT_WIDTH, DEFAULT_HEIGHT
from .units import UnitCatalog
from .simulation import Simulation
from .errors import CommandError

logger = logging.getLogger(__name__)

DEFAULT_SIDES = [("Orange Star", "ai"), ("Blue Moon", "ai")]


@dataclass
class SideConfig:
    name: str
    controller: str = "ai"  # "ai" or "human"
    difficulty: str = "normal"

    @property
    def is_ai(self) -> bool:
        return self.controller == "ai"


@dataclass
class UnitPlacement:
    type_id: str
    owner: int
    x: int
    y: int


@dataclass
class Scenario:
    """Everything needed to set up a fresh simulation."""
    name: str
    sides: list[SideConfig]
    units: list[UnitPlacement] = field(default_factory=list)
    rows: Optional[list[str]] = None
    generate: str = "default"  # "default" or "random" when rows are not given
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    map_seed: Optional[int] = None
    max_turns: int = 20

    def build_map(self, data_path: Path | str = "data") -> GameMap:
        if self.rows:
            return GameMap.from_rows(self.rows, data_path)
        if self.generate == "random":
            return GameMap.generate_random(self.width, self.height, self.map_seed, data_path)
        if self.generate == "default":
            return GameMap.generate_default(self.width, self.height, data_path)
        raise ValueError(f"Unknown map generator: {self.generate}")

    def build(self, rng_seed: Optional[int] = None, data_path: Path | str = "data",
              catalog: Optional[UnitCatalog] = None) -> Simulation:
        """Create a simulation and spawn the starting units."""
        sim = Simulation(
            self.build_map(data_path),
            catalog=catalog or UnitCatalog(data_path),
            total_sides=len(self.sides),
            rng_seed=rng_seed,
        )
        for placement in self.units:
            try:
                sim.spawn_unit(placement.type_id, placement.owner, (placement.x, placement.y))
            except CommandError as e:
                raise ValueError(f"Cannot place {placement} in {self.name!r}: {e}") from e
        logger.info(f"Scenario {self.name!r} ready: {len(sim.roster)} units, {len(self.sides)} sides")
        return sim


def default_scenario() -> Scenario:
    """Two infantry and two tanks on the default 15x15 board."""
    return Scenario(
        name="Skirmish",
        sides=[SideConfig(name=name, controller=ctrl) for name, ctrl in DEFAULT_SIDES],
        units=[
            UnitPlacement("infantry", 0, 2, 2),
            UnitPlacement("tank", 0, 5, 5),
            UnitPlacement("infantry", 1, 8, 8),
            UnitPlacement("tank", 1, 10, 10),
        ],
    )


def load_scenario(name_or_path: str | Path, data_path: Path | str = "data") -> Scenario:
    """
    Load a scenario by file path or by name under data/scenarios/.

    Falls back to the built-in skirmish when the file does not exist.
    """
    path = Path(name_or_path)
    if not path.suffix:
        path = Path(data_path) / "scenarios" / f"{name_or_path}.yaml"
    if not path.exists():
        logger.warning(f"Scenario not found: {path}, using built-in skirmish")
        return default_scenario()

    with open(path) as f:
        data = yaml.safe_load(f) or {}
    return parse_scenario(data, source=str(path))


def parse_scenario(data: dict, source: str = "<scenario>") -> Scenario:
    info = data.get("scenario", {})
    sides = [
        SideConfig(
            name=side.get("name", f"Side {i}"),
            controller=side.get("controller", "ai"),
            difficulty=side.get("difficulty", "normal"),
        )
        for i, side in enumerate(data.get("sides", []))
    ] or [SideConfig(name=name, controller=ctrl) for name, ctrl in DEFAULT_SIDES]

    for side in sides:
        if side.controller not in ("ai", "human"):
            raise ValueError(f"Bad controller {side.controller!r} for {side.name} in {source}")

    board = data.get("map", {})
    units = []
    for entry in data.get("units", []):
        owner = entry.get("owner", 0)
        if not 0 <= owner < len(sides):
            raise ValueError(f"Unit owner {owner} has no side in {source}")
        units.append(UnitPlacement(
            type_id=entry["type"], owner=owner, x=entry["x"], y=entry["y"],
        ))

    return Scenario(
        name=info.get("name", "Unnamed"),
        sides=sides,
        units=units,
        rows=board.get("rows"),
        generate=board.get("generate", "default"),
        width=board.get("width", DEFAULT_WIDTH),
        height=board.get("height", DEFAULT_HEIGHT),
        map_seed=board.get("seed"),
        max_turns=info.get("max_turns", 20),
    )
