"""Tournament - run many games and aggregate results."""

import logging
import random
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from unotable.engine import Rules
from unotable.orchestration.game_runner import GameRunner

logger = logging.getLogger(__name__)


@dataclass
class TournamentResult:
    wins: Dict[str, int] = field(default_factory=dict)
    total_scores: Dict[str, int] = field(default_factory=dict)
    games: int = 0
    draws: int = 0


def run_tournament(
    agents: dict[str, Any],
    num_games: int = 100,
    seed: int | None = None,
    rules: Rules | Mapping[str, Any] | None = None,
    max_rounds: Optional[int] = None,
) -> TournamentResult:
    """Run a tournament of `num_games` games between the same agents.

    Seating alternates between the given order and its reverse so no agent
    always moves first. A game without a winner (round limit, timeout) counts
    as a draw; its scores still count.
    """
    player_ids = list(agents.keys())
    wins: Dict[str, int] = defaultdict(int)
    scores: Dict[str, int] = defaultdict(int)
    draws = 0

    rng = random.Random(seed)
    for g in range(num_games):
        order = player_ids if g % 2 == 0 else list(reversed(player_ids))
        ordered_agents = {pid: agents[pid] for pid in order}
        runner = GameRunner(ordered_agents, seed=rng.randint(0, 2**31 - 1), rules=rules, max_rounds=max_rounds)
        result = runner.run()
        logger.info("Game %d/%d: winner=%s after %d turns", g + 1, num_games, result.winner, result.num_turns)
        if result.winner:
            wins[result.winner] += 1
        else:
            draws += 1
        for pid, score in result.scores.items():
            scores[pid] += score

    return TournamentResult(
        wins={pid: wins.get(pid, 0) for pid in player_ids},
        total_scores={pid: scores.get(pid, 0) for pid in player_ids},
        games=num_games,
        draws=draws,
    )
