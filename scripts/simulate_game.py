"""Simulate a game between computer agents and print the event log."""

import logging

from unotable.agents import HeuristicAgent, RandomAgent
from unotable.engine.game_state import format_event
from unotable.orchestration.game_runner import GameRunner


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    agents = {
        "p1": HeuristicAgent("expert", name="Expert", seed=1),
        "p2": HeuristicAgent("hard", name="Hard", seed=2),
        "p3": HeuristicAgent("easy", name="Easy", seed=3),
        "p4": RandomAgent("Random", seed=4),
    }

    runner = GameRunner(agents, seed=42, rules={"stackDrawTwo": True, "targetScore": 200})
    result = runner.run()

    for event in runner.game.get_event_log()[-20:]:
        print(f"> {format_event(event)}")

    print(f"Game finished! Winner: {result.winner}")
    print(f"Turns: {result.num_turns}, rounds: {len(result.rounds)}")
    print(f"Scores: {result.scores}")


if __name__ == "__main__":
    main()
