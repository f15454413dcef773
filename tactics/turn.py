"""
Turn sequencing for the tactical simulation.

Sides act one at a time in a fixed rotation: 0 -> 1 -> ... -> n-1 -> 0.
Wrapping back to side 0 starts a new turn and a new day.
"""

import logging
from dataclasses import dataclass, replace

from .units import UnitRoster

logger = logging.getLogger(__name__)


@dataclass
class TurnContext:
    """Whose turn it is."""
    current_side: int = 0
    total_sides: int = 2
    turn: int = 1
    day: int = 1

    def to_dict(self) -> dict:
        return {
            "current_side": self.current_side,
            "total_sides": self.total_sides,
            "turn": self.turn,
            "day": self.day,
        }


class TurnManager:
    """Owns the TurnContext. Only end_turn mutates it."""

    def __init__(self, total_sides: int = 2):
        if total_sides < 1:
            raise ValueError(f"Need at least one side, got {total_sides}")
        self.context = TurnContext(current_side=0, total_sides=total_sides, turn=1, day=1)

    @property
    def current_side(self) -> int:
        return self.context.current_side

    def is_current_side(self, side: int) -> bool:
        return side == self.context.current_side

    def snapshot(self) -> TurnContext:
        return replace(self.context)

    def end_turn(self, roster: UnitRoster) -> TurnContext:
        """Reset the ending side's action flags and hand over to the next side."""
        ending = self.context.current_side
        for unit in roster.get_units_by_side(ending):
            unit.reset_turn()

        self.context.current_side = (ending + 1) % self.context.total_sides
        if self.context.current_side == 0:
            self.context.turn += 1
            self.context.day += 1

        logger.info(
            f"Side {ending} ended turn; side {self.context.current_side} to act "
            f"(turn {self.context.turn}, day {self.context.day})"
        )
        return self.snapshot()
