"""Tests for turn sequencing."""
import pytest

from tactics import TurnManager, TurnContext, UnitRoster

from conftest import spawn


def test_initial_context():
    manager = TurnManager(2)
    assert manager.context == TurnContext(current_side=0, total_sides=2, turn=1, day=1)


def test_two_side_cycle():
    manager = TurnManager(2)
    roster = UnitRoster()

    ctx = manager.end_turn(roster)
    assert (ctx.current_side, ctx.turn, ctx.day) == (1, 1, 1)

    ctx = manager.end_turn(roster)
    assert (ctx.current_side, ctx.turn, ctx.day) == (0, 2, 2)

    ctx = manager.end_turn(roster)
    assert (ctx.current_side, ctx.turn, ctx.day) == (1, 2, 2)


def test_three_sides_wrap_once_per_round():
    manager = TurnManager(3)
    roster = UnitRoster()
    sides = [manager.end_turn(roster).current_side for _ in range(6)]
    assert sides == [1, 2, 0, 1, 2, 0]
    assert manager.context.turn == 3


def test_end_turn_resets_only_ending_side(sim):
    mine = spawn(sim, "infantry", 0, (1, 1))
    theirs = spawn(sim, "infantry", 1, (5, 5))
    for unit in (mine, theirs):
        unit.has_moved = True
        unit.has_attacked = True

    sim.turns.end_turn(sim.roster)

    assert not mine.has_moved and not mine.has_attacked
    assert theirs.has_moved and theirs.has_attacked


def test_returned_context_is_a_copy():
    manager = TurnManager(2)
    ctx = manager.end_turn(UnitRoster())
    ctx.current_side = 0
    assert manager.current_side == 1
    assert manager.is_current_side(1)


def test_needs_a_side():
    with pytest.raises(ValueError):
        TurnManager(0)
