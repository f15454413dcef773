"""
Command rejection errors.

Raised by the simulation before any state is touched, so a rejected
command always leaves the board as it was.
"""

import re


class CommandError(Exception):
    """Base class for a command the simulation refused."""

    @property
    def kind(self) -> str:
        # InvalidTarget -> invalid_target
        return re.sub(r"(?<!^)(?=[A-Z])", "_", type(self).__name__).lower()


class InvalidTarget(CommandError):
    """Unknown unit id, unknown unit type, or a tile off the board."""


class IllegalAction(CommandError):
    """Range, occupancy or action-flag rules forbid the command."""


class ResourceExhausted(CommandError):
    """No fuel or ammo left for the action."""


class TurnViolation(CommandError):
    """The acting unit does not belong to the side whose turn it is."""
