"""
Headless match runner for the tactical simulation.

Every side is played by a computer commander until one side is wiped out
or the turn limit is reached.
"""

import os
import json
import logging
from pathlib import Path
from datetime import datetime
from typing import Optional

from dotenv import load_dotenv

from tactics import Simulation, load_scenario
from commanders import HeuristicCommander, load_planner_config

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class Match:
    """Runs a scenario with computer commanders on every side."""

    def __init__(
        self,
        data_path: str = "data",
        scenario: str = "skirmish",
        log_dir: str = "logs",
        rng_seed: Optional[int] = None,
    ):
        self.data_path = Path(data_path)
        self.scenario = load_scenario(scenario, self.data_path)
        self.log_dir = Path(log_dir)
        self.rng_seed = rng_seed

        logger.info(f"Setting up scenario: {self.scenario.name}")
        self.sim: Simulation = self.scenario.build(rng_seed=rng_seed, data_path=self.data_path)

        self.commanders = [
            HeuristicCommander(side, load_planner_config(self.data_path, cfg.difficulty))
            for side, cfg in enumerate(self.scenario.sides)
        ]

        self.max_turns = self.scenario.max_turns
        self.game_log: list[dict] = []
        self.start_time: Optional[datetime] = None

    def winner(self) -> Optional[int]:
        """The last side with units left, if only one remains."""
        sides = self.sim.roster.sides_with_units()
        if len(sides) == 1:
            return next(iter(sides))
        return None

    def is_over(self, max_turns: int) -> bool:
        return (self.winner() is not None
                or not self.sim.roster
                or self.sim.turn.turn > max_turns)

    def run_side_turn(self) -> dict:
        """Let the side to act play its turn."""
        context = self.sim.turn
        side = context.current_side
        results = self.commanders[side].play_turn(self.sim)

        turn_log = {
            "turn": context.turn,
            "day": context.day,
            "side": side,
            "side_name": self.scenario.sides[side].name,
            "commands": [r.to_dict() for r in results],
            "rejected": sum(1 for r in results if not r.ok),
            "units_left": self.sim.roster.get_stats()["by_side"],
        }
        self._log_event("side_turn", turn_log)
        logger.info(
            f"Turn {context.turn} side {side}: {len(results)} commands, "
            f"{turn_log['rejected']} rejected"
        )
        return turn_log

    def run(self, max_turns: Optional[int] = None) -> dict:
        """Play until a winner emerges or the turn limit is reached."""
        self.max_turns = max_turns or self.scenario.max_turns
        max_turns = self.max_turns
        self.start_time = datetime.now()
        self._log_event("game_start", {
            "scenario": self.scenario.name,
            "seed": self.rng_seed,
            "map": self.sim.map.get_stats(),
            "state": self.sim.snapshot(),
        })

        while not self.is_over(max_turns):
            self.run_side_turn()

        results = self._compile_results()
        self._log_event("game_end", results)
        self._save_game_log()
        return results

    def _compile_results(self) -> dict:
        winner = self.winner()
        return {
            "turns_played": min(self.sim.turn.turn, self.max_turns),
            "winner": self.scenario.sides[winner].name if winner is not None else None,
            "surviving_forces": {
                cfg.name: len(self.sim.roster_for(side))
                for side, cfg in enumerate(self.scenario.sides)
            },
            "duration": str(datetime.now() - self.start_time) if self.start_time else None,
        }

    def _log_event(self, event_type: str, data: dict):
        self.game_log.append({
            "timestamp": datetime.now().isoformat(),
            "event": event_type,
            "data": data,
        })

    def _save_game_log(self) -> Path:
        self.log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_path = self.log_dir / f"match_{timestamp}.json"

        with open(log_path, "w") as f:
            json.dump(self.game_log, f, indent=2, default=str)

        logger.info(f"Game log saved to: {log_path}")
        return log_path


def main():
    """Run a computer-vs-computer match."""
    import argparse

    load_dotenv(Path(__file__).parent / ".env")
    seed = os.environ.get("TACTICS_SEED")

    parser = argparse.ArgumentParser(description="Tactical grid match runner")
    parser.add_argument("--scenario", default="skirmish", help="Scenario name or YAML path")
    parser.add_argument("--turns", type=int, default=None, help="Max turns (default: scenario defined)")
    parser.add_argument("--data", default=os.environ.get("TACTICS_DATA", "data"), help="Data directory path")
    parser.add_argument("--logs", default="logs", help="Log directory path")
    parser.add_argument("--seed", type=int, default=int(seed) if seed else None, help="Combat RNG seed")

    args = parser.parse_args()

    match = Match(
        data_path=args.data,
        scenario=args.scenario,
        log_dir=args.logs,
        rng_seed=args.seed,
    )
    results = match.run(max_turns=args.turns)

    print("\n" + "="*60)
    print("FINAL RESULTS")
    print("="*60)
    print(f"Turns played: {results['turns_played']}")
    print(f"Winner: {results['winner'] or 'none'}")
    for name, count in results["surviving_forces"].items():
        print(f"Surviving units - {name}: {count}")
    print(f"Duration: {results['duration']}")


if __name__ == "__main__":
    main()
