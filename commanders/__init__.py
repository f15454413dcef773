"""
Computer-controlled sides.

Planning is pure: a commander reads the simulation and returns commands,
which are then applied through the same executor human input uses.
"""

from .base import Commander, PlannerConfig, PlanState, load_planner_config
from .heuristic import HeuristicCommander

__all__ = ["Commander", "PlannerConfig", "PlanState", "load_planner_config", "HeuristicCommander"]
