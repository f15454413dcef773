"""
Combat resolution: damage, terrain defense, counter-attack and outcome.
"""

import random
from dataclasses import dataclass
from typing import Optional
from enum import Enum

from .map import GameMap
from .units import Unit, UnitType

VARIANCE_MIN = 0.9
VARIANCE_MAX = 1.1


class CombatWinner(Enum):
    NONE = "none"  # both survive
    ATTACKER = "attacker"
    DEFENDER = "defender"
    DRAW = "draw"


@dataclass
class CombatOutcome:
    """Result of one engagement. Not persisted."""
    attacker_id: int
    defender_id: int
    attacker_damage: int  # dealt by the attacker
    defender_damage: int  # dealt back by the counter, 0 if none
    attacker_hp: int
    defender_hp: int
    winner: CombatWinner
    countered: bool = False
    distance: int = 1

    def to_dict(self) -> dict:
        return {
            "attacker_id": self.attacker_id,
            "defender_id": self.defender_id,
            "attacker_damage": self.attacker_damage,
            "defender_damage": self.defender_damage,
            "attacker_hp": self.attacker_hp,
            "defender_hp": self.defender_hp,
            "winner": self.winner.value,
            "countered": self.countered,
            "distance": self.distance,
        }


def calculate_damage(attacker: Unit, target_type: UnitType, defense_bonus: int,
                     variance: float) -> int:
    """
    Damage the attacker deals to a unit of target_type.

    base * health fraction * (1 - defense%) * variance, rounded,
    at least 1 whenever base damage is positive.
    """
    base = attacker.unit_type.get_attack_damage(target_type.id)
    if base <= 0:
        return 0
    raw = base * attacker.health_fraction() * (1 - defense_bonus / 100) * variance
    return max(1, round(raw))


def in_attack_range(unit_type: UnitType, distance: int) -> bool:
    min_range, max_range = unit_type.get_attack_range()
    return min_range <= distance <= max_range


def can_counter(attacker: Unit, defender: Unit, distance: int) -> bool:
    """Whether the defender strikes back after being hit (and surviving)."""
    if not defender.unit_type.can_target(attacker.unit_type.id):
        return False
    if defender.ammo <= 0:
        return False
    # Type-wide range, not the range of this particular pairing
    return in_attack_range(defender.unit_type, distance)


def determine_winner(attacker_hp: int, defender_hp: int) -> CombatWinner:
    if attacker_hp <= 0 and defender_hp <= 0:
        return CombatWinner.DRAW
    if attacker_hp <= 0:
        return CombatWinner.DEFENDER
    if defender_hp <= 0:
        return CombatWinner.ATTACKER
    return CombatWinner.NONE


class CombatResolver:
    """Resolves engagements. Owns the only random draws in the simulation."""

    def __init__(self, rng_seed: Optional[int] = None):
        self.rng = random.Random(rng_seed)

    def roll_variance(self) -> float:
        """Uniform damage multiplier in [0.9, 1.1]."""
        return self.rng.uniform(VARIANCE_MIN, VARIANCE_MAX)

    def resolve(self, attacker: Unit, defender: Unit, game_map: GameMap,
                variance: Optional[float] = None,
                counter_variance: Optional[float] = None) -> CombatOutcome:
        """
        Work out an engagement without touching either unit.

        Both damages come from pre-combat health. The attack lands first;
        a defender brought to 0 HP does not counter. Variances not supplied
        are drawn from the resolver's RNG (the counter roll only happens
        when a counter does).
        """
        distance = game_map.distance(attacker.position, defender.position)

        if variance is None:
            variance = self.roll_variance()
        damage = calculate_damage(
            attacker, defender.unit_type,
            game_map.get_defense_bonus(defender.position), variance,
        )
        defender_hp = max(0, defender.hp - damage)

        counter = 0
        countered = False
        if damage > 0 and defender_hp > 0 and can_counter(attacker, defender, distance):
            if counter_variance is None:
                counter_variance = self.roll_variance()
            counter = calculate_damage(
                defender, attacker.unit_type,
                game_map.get_defense_bonus(attacker.position), counter_variance,
            )
            countered = counter > 0
        attacker_hp = max(0, attacker.hp - counter)

        return CombatOutcome(
            attacker_id=attacker.id,
            defender_id=defender.id,
            attacker_damage=damage,
            defender_damage=counter,
            attacker_hp=attacker_hp,
            defender_hp=defender_hp,
            winner=determine_winner(attacker_hp, defender_hp),
            countered=countered,
            distance=distance,
        )

    def forecast(self, attacker: Unit, defender: Unit, game_map: GameMap) -> CombatOutcome:
        """Expected outcome with both variances fixed at 1.0. Consumes no randomness."""
        return self.resolve(attacker, defender, game_map, variance=1.0, counter_variance=1.0)
