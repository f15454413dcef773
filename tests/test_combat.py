"""Tests for combat resolution."""
import pytest

from tactics import (
    Attack, AttackEntry, CombatResolver, CombatWinner, GameMap, Simulation, UnitCatalog, UnitType,
    calculate_damage, can_counter,
)
from tactics.combat import determine_winner, VARIANCE_MIN, VARIANCE_MAX
from tactics.map import TerrainType

from conftest import spawn


def test_damage_full_health_no_defense(sim):
    tank = spawn(sim, "tank", 0, (1, 1))
    infantry = spawn(sim, "infantry", 1, (1, 2))
    assert calculate_damage(tank, infantry.unit_type, 0, 1.0) == 75


def test_damage_scales_with_health(sim):
    tank = spawn(sim, "tank", 0, (1, 1))
    infantry = spawn(sim, "infantry", 1, (1, 2))
    tank.hp = 5
    assert calculate_damage(tank, infantry.unit_type, 0, 1.0) == round(75 * 0.5)


def test_terrain_defense_reduces_damage(sim):
    a = spawn(sim, "infantry", 0, (1, 1))
    b = spawn(sim, "infantry", 1, (1, 2))
    assert calculate_damage(a, b.unit_type, 20, 1.0) == 44
    assert calculate_damage(a, b.unit_type, 30, 1.1) == round(55 * 0.7 * 1.1)


def test_minimum_damage_is_one(sim):
    infantry = spawn(sim, "infantry", 0, (1, 1))
    mega = spawn(sim, "mega_tank", 1, (1, 2))
    infantry.hp = 1
    assert calculate_damage(infantry, mega.unit_type, 30, 0.9) == 1


def test_no_damage_when_type_cannot_target(sim):
    apc = spawn(sim, "apc", 0, (1, 1))
    infantry = spawn(sim, "infantry", 1, (1, 2))
    assert calculate_damage(apc, infantry.unit_type, 0, 1.0) == 0


def test_tank_destroys_infantry_without_counter(sim):
    tank = spawn(sim, "tank", 0, (2, 2))
    infantry = spawn(sim, "infantry", 1, (2, 3))
    outcome = sim.combat.resolve(tank, infantry, sim.map, variance=1.0)
    assert outcome.attacker_damage == 75
    assert outcome.defender_hp == 0
    assert outcome.defender_damage == 0
    assert not outcome.countered
    assert outcome.attacker_hp == 10
    assert outcome.winner == CombatWinner.ATTACKER


def test_counter_uses_pre_combat_health(sim):
    infantry = spawn(sim, "infantry", 0, (2, 2))
    tank = spawn(sim, "tank", 1, (2, 3))
    outcome = sim.combat.forecast(infantry, tank, sim.map)
    assert outcome.attacker_damage == 5
    assert outcome.defender_hp == 5
    assert outcome.countered
    # full-health counter, not half-health
    assert outcome.defender_damage == 75
    assert outcome.attacker_hp == 0
    assert outcome.winner == CombatWinner.DEFENDER


def test_no_counter_outside_defender_range(sim):
    artillery = spawn(sim, "artillery", 0, (2, 2))
    tank = spawn(sim, "tank", 1, (2, 4))
    artillery.hp = 1
    outcome = sim.combat.forecast(artillery, tank, sim.map)
    assert outcome.distance == 2
    assert outcome.attacker_damage == 7
    assert outcome.defender_hp == 3
    assert outcome.defender_damage == 0
    assert outcome.winner == CombatWinner.NONE


def test_no_counter_without_ammo(sim):
    infantry = spawn(sim, "infantry", 0, (2, 2))
    tank = spawn(sim, "tank", 1, (2, 3))
    tank.ammo = 0
    outcome = sim.combat.forecast(infantry, tank, sim.map)
    assert outcome.defender_damage == 0
    assert outcome.winner == CombatWinner.NONE


def custom_catalog(empty_data) -> UnitCatalog:
    catalog = UnitCatalog(empty_data)
    plains = {TerrainType.PLAIN: 1}
    catalog.types["drone"] = UnitType(
        id="drone", name="Drone", max_hp=10, fuel=50, ammo=5, movement=4, cost=2000,
        attack_table={"infantry": AttackEntry(5)}, movement_table=plains,
    )
    # short range against one type, long range against another
    catalog.types["launcher"] = UnitType(
        id="launcher", name="Launcher", max_hp=10, fuel=50, ammo=5, movement=2, cost=9000,
        attack_table={
            "tank": AttackEntry(50, 1, 1),
            "drone": AttackEntry(30, 2, 3),
            "infantry": AttackEntry(0, 1, 5),
        },
        movement_table=plains,
    )
    return catalog


def test_no_counter_when_defender_cannot_target(empty_data):
    sim = Simulation(GameMap(5, 5, empty_data), catalog=custom_catalog(empty_data))
    drone = spawn(sim, "drone", 0, (1, 1))
    infantry = spawn(sim, "infantry", 1, (1, 2))
    assert not can_counter(drone, infantry, 1)
    outcome = sim.combat.forecast(drone, infantry, sim.map)
    assert outcome.defender_damage == 0


def test_counter_range_is_type_wide(empty_data):
    sim = Simulation(GameMap(6, 6, empty_data), catalog=custom_catalog(empty_data))
    tank = spawn(sim, "tank", 0, (0, 0))
    launcher = spawn(sim, "launcher", 1, (0, 3))
    # zero-damage entries do not widen the range
    assert launcher.unit_type.get_attack_range() == (1, 3)
    # tank pairing is range 1, but the type-wide range lets it answer at 3
    assert can_counter(tank, launcher, 3)
    assert not can_counter(tank, launcher, 4)


def test_attack_range_matches_counter_range(empty_data):
    sim = Simulation(GameMap(6, 6, empty_data), catalog=custom_catalog(empty_data))
    launcher = spawn(sim, "launcher", 0, (0, 0))
    tank = spawn(sim, "tank", 1, (0, 3))
    # the tank pairing alone is range 1, the launcher type reaches 3
    assert can_counter(tank, launcher, 3)
    assert sim.attack_targets(launcher.id) == [tank.id]
    result = sim.execute(Attack(launcher.id, tank.id))
    assert result.ok
    assert launcher.has_attacked
    assert not result.outcome.countered


def test_winner_rules():
    assert determine_winner(0, 0) == CombatWinner.DRAW
    assert determine_winner(0, 4) == CombatWinner.DEFENDER
    assert determine_winner(4, 0) == CombatWinner.ATTACKER
    assert determine_winner(4, 4) == CombatWinner.NONE


def test_variance_bounds_and_seed():
    a = CombatResolver(rng_seed=11)
    b = CombatResolver(rng_seed=11)
    rolls = [a.roll_variance() for _ in range(200)]
    assert all(VARIANCE_MIN <= r <= VARIANCE_MAX for r in rolls)
    assert rolls == [b.roll_variance() for _ in range(200)]


def test_resolve_does_not_mutate(sim):
    infantry = spawn(sim, "infantry", 0, (2, 2))
    tank = spawn(sim, "tank", 1, (2, 3))
    before = sim.snapshot()
    first = sim.combat.forecast(infantry, tank, sim.map)
    second = sim.combat.forecast(infantry, tank, sim.map)
    assert first == second
    assert sim.snapshot() == before


@pytest.mark.parametrize("variance", [0.9, 1.0, 1.1])
def test_random_resolution_stays_in_band(sim, variance):
    infantry = spawn(sim, "infantry", 0, (2, 2))
    tank = spawn(sim, "tank", 1, (2, 3))
    outcome = sim.combat.resolve(infantry, tank, sim.map, variance=variance, counter_variance=1.0)
    assert outcome.attacker_damage == max(1, round(5 * variance))
