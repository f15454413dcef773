"""
Command and result types shared by human input and computer sides.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Optional, Union

from .combat import CombatOutcome
from .errors import CommandError
from .turn import TurnContext


@dataclass(frozen=True)
class Spawn:
    type_id: str
    owner: int
    position: tuple[int, int]
    kind = "spawn"


@dataclass(frozen=True)
class Move:
    unit_id: int
    target: tuple[int, int]
    kind = "move"


@dataclass(frozen=True)
class Attack:
    attacker_id: int
    defender_id: int
    kind = "attack"


@dataclass(frozen=True)
class Wait:
    unit_id: int
    kind = "wait"


@dataclass(frozen=True)
class EndTurn:
    kind = "end_turn"


Command = Union[Spawn, Move, Attack, Wait, EndTurn]


def command_to_dict(command: Command) -> dict:
    return {"kind": command.kind, **asdict(command)}


@dataclass
class DomainEvent:
    """Something that happened while applying a command."""
    kind: str  # e.g. "unit_moved", "unit_destroyed", "turn_ended"
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"kind": self.kind, **self.data}


@dataclass
class CommandResult:
    """What a command did, or why it was refused."""
    ok: bool
    command: Optional[Command] = None
    events: list[DomainEvent] = field(default_factory=list)
    error: Optional[CommandError] = None
    outcome: Optional[CombatOutcome] = None
    unit_id: Optional[int] = None
    turn: Optional[TurnContext] = None

    def to_dict(self) -> dict:
        result = {
            "ok": self.ok,
            "command": command_to_dict(self.command) if self.command else None,
            "events": [e.to_dict() for e in self.events],
        }
        if self.error is not None:
            result["error"] = {"kind": self.error.kind, "message": str(self.error)}
        if self.outcome is not None:
            result["outcome"] = self.outcome.to_dict()
        if self.unit_id is not None:
            result["unit_id"] = self.unit_id
        if self.turn is not None:
            result["turn"] = self.turn.to_dict()
        return result
