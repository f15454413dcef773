"""
WebSocket game server for human vs computer matches.

Each connection gets its own simulation. The human side sends commands,
computer sides reply with their actions one at a time, paced for display.
"""

import os
import json
import asyncio
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv(Path(__file__).parent / ".env")

import websockets

from tactics import (
    Simulation, Scenario, load_scenario, Command, Move, Attack, Wait, EndTurn,
    CommandError,
)
from commanders import HeuristicCommander, load_planner_config

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DATA_PATH = Path(os.environ.get("TACTICS_DATA", "data"))


class GameSession:
    """One human side against computer commanders."""

    def __init__(self, data_path: Optional[Path] = None):
        self.data_path = data_path or DATA_PATH
        self.scenario: Optional[Scenario] = None
        self.sim: Optional[Simulation] = None
        self.human_side = 0
        self.commanders: dict[int, HeuristicCommander] = {}

    def initialize(self, scenario: str = "skirmish", human_side: Optional[int] = None,
                   rng_seed: Optional[int] = None):
        self.scenario = load_scenario(scenario, self.data_path)
        if human_side is None:
            humans = [i for i, side in enumerate(self.scenario.sides) if not side.is_ai]
            human_side = humans[0] if humans else 0
        if not 0 <= human_side < len(self.scenario.sides):
            raise ValueError(f"Scenario has no side {human_side}")

        self.human_side = human_side
        self.sim = self.scenario.build(rng_seed=rng_seed, data_path=self.data_path)
        self.commanders = {
            side: HeuristicCommander(side, load_planner_config(self.data_path, cfg.difficulty))
            for side, cfg in enumerate(self.scenario.sides)
            if side != human_side
        }
        logger.info(
            f"Game initialized: scenario={self.scenario.name}, human side={human_side}, "
            f"computer sides={sorted(self.commanders)}"
        )

    def winner(self) -> Optional[int]:
        sides = self.sim.roster.sides_with_units()
        return next(iter(sides)) if len(sides) == 1 else None

    def is_over(self) -> bool:
        return (self.winner() is not None
                or not self.sim.roster
                or self.sim.turn.turn > self.scenario.max_turns)

    def human_to_act(self) -> bool:
        return self.sim.turns.is_current_side(self.human_side)

    def parse_command(self, msg: dict) -> Command:
        msg_type = msg.get("type")
        if msg_type == "move":
            return Move(int(msg["unit_id"]), (int(msg["x"]), int(msg["y"])))
        if msg_type == "attack":
            return Attack(int(msg["attacker_id"]), int(msg["defender_id"]))
        if msg_type == "wait":
            return Wait(int(msg["unit_id"]))
        return EndTurn()

    def game_over_data(self) -> dict:
        winner = self.winner()
        return {
            "winner": winner,
            "winner_name": self.scenario.sides[winner].name if winner is not None else None,
            "turn": self.sim.turn.to_dict(),
        }


# ── WebSocket Game Server ──


async def handle_websocket(websocket):
    """Handle a single WebSocket connection (one game session)."""
    session: Optional[GameSession] = None

    async def send_json(msg_type: str, data: dict):
        await websocket.send(json.dumps({"type": msg_type, **data}, default=str))

    async def run_computer_turns():
        """Let every computer side play until the human is up again."""
        while not session.human_to_act() and not session.is_over():
            side = session.sim.turn.current_side
            commander = session.commanders[side]
            for result in commander.iter_turn(session.sim):
                await send_json("ai_action", {"side": side, "result": result.to_dict()})
                await asyncio.sleep(commander.config.action_delay)
            await asyncio.sleep(commander.config.turn_end_delay)

        if session.is_over():
            await send_json("game_over", session.game_over_data())
        else:
            await send_json("turn_started", {
                "turn": session.sim.turn.to_dict(),
                "state": session.sim.snapshot(),
            })

    try:
        async for raw in websocket:
            try:
                msg = json.loads(raw)
            except json.JSONDecodeError:
                await send_json("error", {"message": "Invalid JSON"})
                continue

            msg_type = msg.get("type", "")

            if msg_type == "start_game":
                session = GameSession()
                try:
                    session.initialize(
                        scenario=msg.get("scenario", "skirmish"),
                        human_side=msg.get("side"),
                        rng_seed=msg.get("seed"),
                    )
                except ValueError as e:
                    session = None
                    await send_json("error", {"message": str(e)})
                    continue

                await send_json("game_init", {
                    "scenario": session.scenario.name,
                    "human_side": session.human_side,
                    "sides": [
                        {"name": s.name, "controller": "human" if i == session.human_side else "ai"}
                        for i, s in enumerate(session.scenario.sides)
                    ],
                    "max_turns": session.scenario.max_turns,
                    "state": session.sim.snapshot(),
                })
                await run_computer_turns()
                continue

            if session is None:
                await send_json("error", {"message": "No game in progress"})
                continue
            if session.is_over():
                await send_json("game_over", session.game_over_data())
                continue

            if msg_type == "select_unit":
                try:
                    unit_id = int(msg.get("unit_id", -1))
                except (TypeError, ValueError):
                    await send_json("error", {"message": "Malformed select_unit request"})
                    continue
                try:
                    selection = session.sim.select_unit(unit_id)
                except CommandError as e:
                    await send_json("error", {"message": str(e), "kind": e.kind})
                    continue
                await send_json("selection", selection.to_dict())

            elif msg_type in ("move", "attack", "wait", "end_turn"):
                if not session.human_to_act():
                    await send_json("error", {"message": "Not your turn", "kind": "turn_violation"})
                    continue
                try:
                    command = session.parse_command(msg)
                except (KeyError, TypeError, ValueError):
                    await send_json("error", {"message": f"Malformed {msg_type} command"})
                    continue

                result = session.sim.execute(command)
                await send_json("command_result", result.to_dict())
                if result.ok and isinstance(command, EndTurn):
                    await run_computer_turns()
                elif session.is_over():
                    await send_json("game_over", session.game_over_data())

            else:
                await send_json("error", {"message": f"Unknown message type: {msg_type}"})

    except websockets.exceptions.ConnectionClosed:
        logger.info("Client disconnected")


async def main():
    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8080"))

    logger.info(f"Starting server on ws://{host}:{port}")

    async with websockets.serve(
        handle_websocket,
        host,
        port,
        max_size=1024 * 1024,
    ):
        await asyncio.Future()  # run forever


if __name__ == "__main__":
    asyncio.run(main())
