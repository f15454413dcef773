"""Shared fixtures: small boards on the built-in rule tables."""
from pathlib import Path

import pytest

from tactics import GameMap, Simulation, UnitCatalog

REPO_DATA = Path(__file__).resolve().parent.parent / "data"


@pytest.fixture
def empty_data(tmp_path) -> Path:
    """A data directory with no YAML, so every loader uses its defaults."""
    return tmp_path


@pytest.fixture
def catalog(empty_data) -> UnitCatalog:
    return UnitCatalog(empty_data)


@pytest.fixture
def make_sim(empty_data, catalog):
    """Build a simulation from layout rows (or an all-plain board)."""
    def make(rows=None, width=9, height=9, seed=7, sides=2) -> Simulation:
        if rows:
            game_map = GameMap.from_rows(rows, empty_data)
        else:
            game_map = GameMap(width, height, empty_data)
        return Simulation(game_map, catalog=catalog, total_sides=sides, rng_seed=seed)
    return make


@pytest.fixture
def sim(make_sim) -> Simulation:
    return make_sim()


def spawn(sim: Simulation, type_id: str, owner: int, pos: tuple[int, int]):
    """Spawn and return the unit object."""
    result = sim.spawn_unit(type_id, owner, pos)
    return sim.get_unit(result.unit_id)
