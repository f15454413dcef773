"""
Heuristic commander: attack if possible, otherwise reposition, otherwise wait.
"""

import logging
import math
from typing import Optional

from tactics import Simulation, Unit, Command, Move, Attack, Wait, in_attack_range

from .base import Commander, PlanState

logger = logging.getLogger(__name__)


class HeuristicCommander(Commander):
    """
    Scores every legal option for a unit and takes the best one.

    Priority per unit:
    1. Attack the best target in range (kill bonus, damage dealt vs counter taken,
       finishing off wounded units, expensive targets)
    2. Move to the best tile in range (closing on the nearest enemy, getting it
       into range, defensive terrain, drifting towards the center)
    3. Wait
    Ties keep the first candidate found.
    """

    def decide(self, sim: Simulation, unit: Unit, state: PlanState) -> Command:
        if unit.can_attack():
            command = self.choose_attack(sim, unit, state)
            if command is not None:
                return command

        if unit.can_move():
            command = self.choose_move(sim, unit, state)
            if command is not None:
                return command

        return Wait(unit.id)

    def fallback(self, sim: Simulation, unit: Unit, failed: Command) -> Optional[Command]:
        # A refused attack still leaves the move step of the chain
        if isinstance(failed, Attack) and unit.can_move():
            command = self.choose_move(sim, unit, PlanState())
            if command is not None:
                return command
        return super().fallback(sim, unit, failed)

    # Attack
    def score_attack(self, sim: Simulation, unit: Unit, target: Unit) -> float:
        cfg = self.config
        outcome = sim.forecast(unit.id, target.id)

        score = 0.0
        if outcome.defender_hp <= 0:
            score += cfg.kill_bonus
        score += cfg.damage_weight * outcome.attacker_damage
        score -= cfg.counter_weight * outcome.defender_damage
        score += cfg.missing_hp_weight * (target.unit_type.max_hp - target.hp)
        score += cfg.cost_weight * target.unit_type.cost
        return score

    def choose_attack(self, sim: Simulation, unit: Unit, state: PlanState) -> Optional[Attack]:
        best: Optional[Unit] = None
        best_score = None
        for target_id in sim.attack_targets(unit.id):
            if target_id in state.doomed:
                continue
            target = sim.get_unit(target_id)
            score = self.score_attack(sim, unit, target)
            logger.debug(f"Unit {unit.id} attack {target_id}: {score:.2f}")
            if best_score is None or score > best_score:
                best, best_score = target, score

        if best is None:
            return None
        if sim.forecast(unit.id, best.id).defender_hp <= 0:
            state.doomed.add(best.id)
        return Attack(unit.id, best.id)

    # Move
    def nearest_enemy(self, sim: Simulation, unit: Unit, state: PlanState) -> Optional[Unit]:
        enemies = [e for e in sim.enemies_of(unit.owner) if e.id not in state.doomed]
        if not enemies:
            return None
        return min(enemies, key=lambda e: math.dist(unit.position, e.position))

    def score_tile(self, sim: Simulation, unit: Unit, position: tuple[int, int],
                   enemy: Optional[Unit]) -> float:
        cfg = self.config
        score = 0.0

        if enemy is not None:
            distance = math.dist(position, enemy.position)
            score += (cfg.proximity_horizon - distance) * cfg.effective_aggressiveness

            if unit.unit_type.can_target(enemy.type_id):
                reach = sim.map.distance(position, enemy.position)
                if in_attack_range(unit.unit_type, reach):
                    score += cfg.attack_position_bonus

        score += sim.map.get_defense_bonus(position) * cfg.defense_weight
        score += (cfg.center_horizon - sim.map.distance_to_center(position)) * cfg.explore_factor
        return score

    def choose_move(self, sim: Simulation, unit: Unit, state: PlanState) -> Optional[Move]:
        enemy = self.nearest_enemy(sim, unit, state)

        best: Optional[tuple[int, int]] = None
        best_score = None
        for position in sorted(sim.movement_range(unit.id)):
            if sim.map.get_occupant(position) is not None or position in state.claimed_tiles:
                continue
            score = self.score_tile(sim, unit, position, enemy)
            if best_score is None or score > best_score:
                best, best_score = position, score

        if best is None:
            return None
        logger.debug(f"Unit {unit.id} move to {best}: {best_score:.2f}")
        return Move(unit.id, best)
