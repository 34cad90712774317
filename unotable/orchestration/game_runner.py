"""Single game runner."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional

from unotable.agent.decision import AIDecision, apply_ai_decision, decide_ai_turn
from unotable.agent.protocol import ChallengingAgent
from unotable.agents.human_agent import HumanAgent
from unotable.engine import Game, Phase, Player, RoundResult, Rules

if TYPE_CHECKING:
    from unotable.agent.protocol import AgentProtocol

logger = logging.getLogger(__name__)

MAX_TURNS_PER_ROUND = 1000


class UnoChallengeWindow:
    """Tracks how long each player stuck on one uncalled card stays challengeable.

    The engine only knows whether a player can be challenged; the time limit
    (`uno_challenge_window` ms) is the caller's to enforce.
    """

    def __init__(self, window_ms: int, clock: Callable[[], float] = time.monotonic):
        self._window = window_ms / 1000.0
        self._clock = clock
        self._deadlines: Dict[str, float] = {}

    def sync(self, challengeable_ids: List[str]) -> None:
        """Open windows for newly exposed players and forget the rest."""
        now = self._clock()
        for pid in challengeable_ids:
            self._deadlines.setdefault(pid, now + self._window)
        for pid in list(self._deadlines):
            if pid not in challengeable_ids:
                del self._deadlines[pid]

    def is_open(self, player_id: str) -> bool:
        deadline = self._deadlines.get(player_id)
        return deadline is not None and self._clock() <= deadline

    def open_targets(self) -> List[str]:
        return [pid for pid in self._deadlines if self.is_open(pid)]

    def close(self, player_id: str) -> None:
        self._deadlines.pop(player_id, None)


@dataclass
class GameResult:
    """Result of a completed game."""

    winner: Optional[str]
    num_turns: int
    player_ids: tuple[str, ...]
    scores: Dict[str, int] = field(default_factory=dict)
    rounds: List[RoundResult] = field(default_factory=list)
    reason: str = "target_score"


class GameRunner:
    """Runs a UNO game to completion, one agent per seat.

    `agents` maps player ids to agents; seat order follows the mapping. A game
    ends when someone reaches the target score, after `max_rounds` rounds, or
    when `max_game_time` runs out (the current round is then ended by fewest
    cards).
    """

    def __init__(
        self,
        agents: dict[str, "AgentProtocol"],
        seed: Optional[int] = None,
        rules: Rules | Mapping[str, Any] | None = None,
        max_rounds: Optional[int] = None,
        max_turns_per_round: int = MAX_TURNS_PER_ROUND,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._agents = agents
        self._seed = seed
        self._rules = rules if isinstance(rules, Rules) else Rules.from_dict(rules or {})
        self._max_rounds = max_rounds
        self._max_turns = max_turns_per_round
        self._clock = clock
        self.game: Optional[Game] = None

    def _build_game(self) -> Game:
        players = [
            Player(id=pid, name=agent.name, is_human=isinstance(agent, HumanAgent))
            for pid, agent in self._agents.items()
        ]
        return Game(players, rules=self._rules, seed=self._seed)

    def run(self) -> GameResult:
        """Run the game and return the result."""
        game = self._build_game()
        self.game = game
        windows = UnoChallengeWindow(self._rules.uno_challenge_window, clock=self._clock)
        started = self._clock()
        rounds: List[RoundResult] = []
        num_turns = 0
        round_turns = 0
        reason = "target_score"

        while not game.is_game_over():
            if game.phase is Phase.ROUND_OVER:
                rounds.append(game.round_result)
                if self._max_rounds is not None and len(rounds) >= self._max_rounds:
                    reason = "max_rounds"
                    break
                game.start_new_round()
                round_turns = 0
                continue

            if self._out_of_time(started):
                logger.info("Game time limit reached, ending round %d", game.round_number)
                game.force_end_round("timeout")
                reason = "timeout"
                break
            if round_turns >= self._max_turns:
                logger.warning("Round %d hit %d turns, ending it", game.round_number, self._max_turns)
                game.force_end_round("max_turns")
                round_turns = 0
                continue

            pid = game.get_current_player().id
            agent = self._agents[pid]
            decision = decide_ai_turn(game, agent)
            if decision is None:
                break
            if not apply_ai_decision(game, pid, decision):
                logger.warning("[%s] decision %s was rejected", agent.name, decision)
                if not self._apply_any_legal(game, pid):
                    break
            num_turns += 1
            round_turns += 1
            self._offer_challenges(game, windows)

        if game.round_result is not None and (not rounds or rounds[-1] is not game.round_result):
            rounds.append(game.round_result)

        return GameResult(
            winner=game.winner.id if game.winner else None,
            num_turns=num_turns,
            player_ids=tuple(self._agents),
            scores={p.id: p.score for p in game.players},
            rounds=rounds,
            reason=reason,
        )

    def _apply_any_legal(self, game: Game, pid: str) -> bool:
        # A voluntary draw is refused when the deck is exhausted and a play exists
        for action in game.get_legal_actions(pid):
            if apply_ai_decision(game, pid, AIDecision.from_action(action)):
                return True
        return False

    def _out_of_time(self, started: float) -> bool:
        limit_ms = self._rules.max_game_time
        return limit_ms > 0 and (self._clock() - started) * 1000 >= limit_ms

    def _offer_challenges(self, game: Game, windows: UnoChallengeWindow) -> None:
        """Let agents that implement the challenge hooks act on what just happened."""
        if not game.is_playing():
            return

        top = game.get_top_card()
        target_id = game.wild_draw_four_player_id
        if top is not None and top.value == "wild_draw_four" and target_id is not None:
            facing = game.get_current_player()
            agent = self._agents[facing.id]
            if (
                isinstance(agent, ChallengingAgent)
                and game.can_challenge_wild_draw_four(target_id)
                and agent.should_challenge_wild_draw_four(game.get_player_view(facing.id), target_id)
            ):
                game.challenge_wild_draw_four(facing.id, target_id)

        if not game.rules.enable_uno_challenges:
            return
        windows.sync([p.id for p in game.get_uno_challengeable_players()])
        for target in windows.open_targets():
            for pid, agent in self._agents.items():
                if pid == target or not isinstance(agent, ChallengingAgent):
                    continue
                if agent.should_challenge_uno(game.get_player_view(pid), target):
                    game.challenge_uno(pid, target)
                    windows.close(target)
                    break
