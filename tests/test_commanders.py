"""Tests for computer-controlled sides."""
import pytest

from tactics import Attack, EndTurn, Move, Wait, TurnViolation
from commanders import Commander, HeuristicCommander, PlannerConfig, load_planner_config

from conftest import REPO_DATA, spawn


# Configuration

def test_config_clamps_weights():
    cfg = PlannerConfig(aggressiveness=1.7, explore_factor=-0.2)
    assert cfg.aggressiveness == 1.0
    assert cfg.explore_factor == 0.0


def test_difficulty_scales_aggressiveness():
    assert PlannerConfig(aggressiveness=0.5, difficulty="easy").effective_aggressiveness == pytest.approx(0.3)
    assert PlannerConfig(aggressiveness=0.5, difficulty="normal").effective_aggressiveness == 0.5
    assert PlannerConfig(aggressiveness=0.9, difficulty="expert").effective_aggressiveness == 1.0


def test_unknown_difficulty():
    with pytest.raises(ValueError):
        PlannerConfig(difficulty="nightmare")


def test_load_config(empty_data):
    cfg = load_planner_config(REPO_DATA, "hard")
    assert cfg.aggressiveness == 0.7
    assert cfg.difficulty == "hard"
    assert cfg.kill_bonus == 100
    assert load_planner_config(empty_data) == PlannerConfig()


# Attack choice

def test_attacks_when_target_in_range(sim):
    tank = spawn(sim, "tank", 0, (4, 4))
    infantry = spawn(sim, "infantry", 1, (4, 5))
    plan = HeuristicCommander(0).plan_turn(sim)
    assert plan == [Attack(tank.id, infantry.id)]


def test_prefers_valuable_kill(sim):
    tank = spawn(sim, "tank", 0, (4, 4))
    spawn(sim, "infantry", 1, (4, 5))
    recon = spawn(sim, "recon", 1, (5, 4))
    assert HeuristicCommander(0).plan_turn(sim) == [Attack(tank.id, recon.id)]


def test_avoids_costly_counter(sim):
    infantry = spawn(sim, "infantry", 0, (4, 4))
    spawn(sim, "tank", 1, (4, 5))
    weak = spawn(sim, "infantry", 1, (3, 4))
    weak.hp = 1
    assert HeuristicCommander(0).plan_turn(sim) == [Attack(infantry.id, weak.id)]


def test_attack_score_terms(sim):
    tank = spawn(sim, "tank", 0, (4, 4))
    infantry = spawn(sim, "infantry", 1, (4, 5))
    infantry.hp = 6
    score = HeuristicCommander(0).score_attack(sim, tank, infantry)
    # kill + 2*75 - 0 counter + 0.5*4 missing + 0.01*1000
    assert score == pytest.approx(100 + 150 + 2 + 10)


def test_does_not_overkill_a_doomed_target(sim):
    first = spawn(sim, "tank", 0, (4, 4))
    spawn(sim, "tank", 0, (5, 5))
    infantry = spawn(sim, "infantry", 1, (4, 5))
    plan = HeuristicCommander(0).plan_turn(sim)
    attacks = [c for c in plan if isinstance(c, Attack)]
    assert attacks == [Attack(first.id, infantry.id)]


# Move choice

def test_closes_distance(sim):
    infantry = spawn(sim, "infantry", 0, (0, 0))
    spawn(sim, "tank", 1, (8, 8))
    [command] = HeuristicCommander(0).plan_turn(sim)
    assert isinstance(command, Move)
    assert sim.map.distance(command.target, (8, 8)) < 16


def test_moves_into_attack_position(sim):
    tank = spawn(sim, "tank", 0, (0, 4))
    spawn(sim, "infantry", 1, (5, 4))
    [command] = HeuristicCommander(0).plan_turn(sim)
    assert isinstance(command, Move)
    assert command.unit_id == tank.id
    assert sim.map.distance(command.target, (5, 4)) == 1


def test_prefers_defensive_terrain_when_otherwise_equal(make_sim):
    sim = make_sim(rows=[
        ".....",
        ".....",
        "..F..",
        ".....",
        ".....",
    ])
    infantry = spawn(sim, "infantry", 0, (2, 0))
    cfg = PlannerConfig(aggressiveness=0.0, explore_factor=0.0)
    [command] = HeuristicCommander(0, cfg).plan_turn(sim)
    assert command == Move(infantry.id, (2, 2))


def test_units_do_not_claim_the_same_tile(sim):
    spawn(sim, "infantry", 0, (0, 0))
    spawn(sim, "infantry", 0, (0, 2))
    spawn(sim, "infantry", 0, (2, 0))
    spawn(sim, "tank", 1, (8, 8))
    plan = HeuristicCommander(0).plan_turn(sim)
    targets = [c.target for c in plan if isinstance(c, Move)]
    assert len(targets) == 3
    assert len(set(targets)) == 3


def test_waits_when_nothing_to_do(sim):
    apc = spawn(sim, "apc", 0, (4, 4))
    apc.fuel = 0
    spawn(sim, "tank", 1, (4, 5))
    assert HeuristicCommander(0).plan_turn(sim) == [Wait(apc.id)]


def test_skips_finished_units(sim):
    infantry = spawn(sim, "infantry", 0, (4, 4))
    sim.wait_unit(infantry.id)
    assert HeuristicCommander(0).plan_turn(sim) == []


# Playing a turn

def test_planning_is_pure(sim):
    spawn(sim, "tank", 0, (1, 1))
    spawn(sim, "infantry", 0, (2, 1))
    spawn(sim, "infantry", 1, (6, 6))
    before = sim.snapshot()
    commander = HeuristicCommander(0)
    assert commander.plan_turn(sim) == commander.plan_turn(sim)
    assert sim.snapshot() == before


def test_play_turn_ends_turn(sim):
    spawn(sim, "tank", 0, (1, 1))
    spawn(sim, "infantry", 0, (2, 1))
    spawn(sim, "infantry", 1, (6, 6))
    results = HeuristicCommander(0).play_turn(sim)
    assert all(r.ok for r in results)
    assert isinstance(results[-1].command, EndTurn)
    assert sim.turn.current_side == 1


def test_play_turn_out_of_turn(sim):
    spawn(sim, "infantry", 1, (6, 6))
    with pytest.raises(TurnViolation):
        HeuristicCommander(1).play_turn(sim)


class StaleCommander(Commander):
    """Always asks for a move that is far out of range."""

    def decide(self, sim, unit, state):
        return Move(unit.id, (8, 8))


def test_rejected_command_falls_back_to_wait(sim):
    infantry = spawn(sim, "infantry", 0, (0, 0))
    results = StaleCommander(0).play_turn(sim)
    assert [r.ok for r in results] == [False, True, True]
    assert results[1].command == Wait(infantry.id)
    assert isinstance(results[2].command, EndTurn)


def test_refused_attack_falls_through_to_move(sim):
    tank = spawn(sim, "tank", 0, (0, 0))
    spawn(sim, "infantry", 1, (8, 8))
    commander = HeuristicCommander(0)
    command = commander.fallback(sim, tank, Attack(tank.id, 999))
    assert isinstance(command, Move)


def test_zero_delay_replay_is_deterministic(make_sim):
    def play():
        sim = make_sim(width=12, height=12, seed=3)
        for pos in [(0, 0), (1, 0), (0, 1)]:
            spawn(sim, "tank", 0, pos)
        for pos in [(11, 11), (10, 11), (11, 10)]:
            spawn(sim, "infantry", 1, pos)
        commanders = [HeuristicCommander(0), HeuristicCommander(1)]
        for _ in range(6):
            commanders[sim.turn.current_side].play_turn(sim)
        return sim.snapshot()

    assert play() == play()
