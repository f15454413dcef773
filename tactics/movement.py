"""
Movement range calculation.

Cost-weighted search (Dijkstra) from a unit's tile over its orthogonal
neighbours, bounded by the unit type's movement budget. Read-only: nothing
here touches unit or tile state.
"""

import heapq

from .map import GameMap, IMPASSABLE
from .units import Unit

Position = tuple[int, int]


def _search(game_map: GameMap, unit: Unit) -> tuple[dict[Position, int], dict[Position, Position]]:
    """Cheapest cost to every affordable tile, plus the predecessor of each."""
    origin = unit.position
    budget = unit.unit_type.movement
    costs: dict[Position, int] = {origin: 0}
    came_from: dict[Position, Position] = {}
    frontier = [(0, origin)]

    while frontier:
        cost, current = heapq.heappop(frontier)
        if cost > costs[current]:
            continue  # stale entry

        for neighbor in game_map.get_neighbors(*current):
            # Another unit blocks both stopping and passing through
            if neighbor.occupant_id is not None and neighbor.occupant_id != unit.id:
                continue

            step = game_map.get_movement_cost(neighbor, unit.unit_type)
            if step >= IMPASSABLE:
                continue

            new_cost = cost + step
            if new_cost > budget:
                continue

            pos = neighbor.position
            if pos not in costs or new_cost < costs[pos]:
                costs[pos] = new_cost
                came_from[pos] = current
                heapq.heappush(frontier, (new_cost, pos))

    return costs, came_from


def compute_costs(game_map: GameMap, unit: Unit) -> dict[Position, int]:
    """Map of reachable position -> cheapest accumulated terrain cost."""
    if unit.position is None:
        return {}
    costs, _ = _search(game_map, unit)
    return costs


def compute_range(game_map: GameMap, unit: Unit) -> set[Position]:
    """All positions the unit can reach this move, its own tile included."""
    return set(compute_costs(game_map, unit))


def find_path(game_map: GameMap, unit: Unit, target: Position) -> list[Position]:
    """Cheapest path from the unit's tile to target, or [] when out of range."""
    if unit.position is None:
        return []
    costs, came_from = _search(game_map, unit)
    if target not in costs:
        return []

    current = target
    path = [current]
    while current in came_from:
        current = came_from[current]
        path.append(current)
    return list(reversed(path))
