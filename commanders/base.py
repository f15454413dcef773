"""
Base commander for computer-controlled sides.
"""

import logging
import yaml
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields
from typing import Iterator, Optional
from pathlib import Path

from tactics import Simulation, Unit, Command, Move, Attack, Wait, EndTurn, CommandResult, TurnViolation

logger = logging.getLogger(__name__)

DIFFICULTY_MULTIPLIERS = {
    "easy": 0.6,
    "normal": 1.0,
    "hard": 1.2,
    "expert": 1.4,
}


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


@dataclass
class PlannerConfig:
    """Tuning for a computer-controlled side."""
    aggressiveness: float = 0.7  # 0-1, pull towards the enemy
    explore_factor: float = 0.3  # 0-1, pull towards the board center
    difficulty: str = "normal"

    # Attack scoring
    kill_bonus: float = 100.0
    damage_weight: float = 2.0
    counter_weight: float = 1.5
    missing_hp_weight: float = 0.5
    cost_weight: float = 0.01

    # Move scoring
    proximity_horizon: float = 20.0
    attack_position_bonus: float = 50.0
    defense_weight: float = 0.5
    center_horizon: float = 10.0

    # Pacing for presentation layers, seconds
    action_delay: float = 1.0
    turn_end_delay: float = 2.0

    difficulty_multipliers: dict[str, float] = field(
        default_factory=lambda: dict(DIFFICULTY_MULTIPLIERS)
    )

    def __post_init__(self):
        self.aggressiveness = _clamp(self.aggressiveness)
        self.explore_factor = _clamp(self.explore_factor)
        if self.difficulty not in self.difficulty_multipliers:
            raise ValueError(f"Unknown difficulty: {self.difficulty}")

    @property
    def effective_aggressiveness(self) -> float:
        """Aggressiveness after the difficulty multiplier, kept in [0, 1]."""
        return _clamp(self.aggressiveness * self.difficulty_multipliers[self.difficulty])

    @classmethod
    def from_dict(cls, data: dict, difficulty: Optional[str] = None) -> "PlannerConfig":
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        if "difficulty_multipliers" in values:
            values["difficulty_multipliers"] = {
                **DIFFICULTY_MULTIPLIERS, **values["difficulty_multipliers"]
            }
        if difficulty is not None:
            values["difficulty"] = difficulty
        return cls(**values)


def load_planner_config(data_path: Path | str = "data",
                        difficulty: Optional[str] = None) -> PlannerConfig:
    """Read planner tuning from data/schema/ai.yaml, defaults if missing."""
    config_path = Path(data_path) / "schema" / "ai.yaml"
    if not config_path.exists():
        return PlannerConfig.from_dict({}, difficulty)

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}
    return PlannerConfig.from_dict(data.get("planner", {}), difficulty)


@dataclass
class PlanState:
    """Bookkeeping while a turn is planned, so units don't collide."""
    claimed_tiles: set[tuple[int, int]] = field(default_factory=set)
    doomed: set[int] = field(default_factory=set)  # enemies a planned attack kills


class Commander(ABC):
    """Base class for a computer-controlled side."""

    def __init__(self, side: int, config: Optional[PlannerConfig] = None):
        self.side = side
        self.config = config or PlannerConfig()

    @abstractmethod
    def decide(self, sim: Simulation, unit: Unit, state: PlanState) -> Command:
        """Pick one command for the unit."""
        pass

    def fallback(self, sim: Simulation, unit: Unit, failed: Command) -> Optional[Command]:
        """Next command to try after `failed` was rejected, None to give up on the unit."""
        if isinstance(failed, Wait):
            return None
        return Wait(unit.id)

    def plan_turn(self, sim: Simulation) -> list[Command]:
        """One command per unit that still has something to do, in roster order."""
        state = PlanState()
        plan = []
        for unit in sim.roster_for(self.side):
            if unit.is_action_complete():
                continue
            command = self.decide(sim, unit, state)
            if isinstance(command, Move):
                state.claimed_tiles.add(command.target)
            plan.append(command)
        logger.info(f"Side {self.side} planned {len(plan)} commands")
        return plan

    def iter_turn(self, sim: Simulation) -> Iterator[CommandResult]:
        """
        Plan, then apply commands one at a time, yielding each result.

        A rejected command falls through to `fallback` for the same unit.
        The last result is always the end of the turn.
        """
        if not sim.turns.is_current_side(self.side):
            raise TurnViolation(f"Side {self.side} cannot play during side {sim.turns.current_side}'s turn")

        for command in self.plan_turn(sim):
            while command is not None:
                result = sim.execute(command)
                yield result
                if result.ok:
                    break
                logger.warning(f"Side {self.side}: {command.kind} rejected ({result.error})")
                unit = sim.get_unit(_acting_unit_id(command))
                command = self.fallback(sim, unit, command) if unit else None

        yield sim.execute(EndTurn())

    def play_turn(self, sim: Simulation) -> list[CommandResult]:
        """Drain the whole turn with no pacing."""
        return list(self.iter_turn(sim))


def _acting_unit_id(command: Command) -> Optional[int]:
    if isinstance(command, Attack):
        return command.attacker_id
    return getattr(command, "unit_id", None)
