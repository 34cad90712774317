"""Narrow decision interface between the engine and computer players.

An agent only ever sees a PlayerView and the legal actions for the seat it
plays, and its answer is applied through the same public mutators a human
caller uses.
"""

import logging
from dataclasses import dataclass, replace
from typing import Literal, Optional

from unotable.agent.protocol import AgentProtocol
from unotable.engine import Action, Color, DrawCard, Game, PlayCard

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AIDecision:
    action: Literal["play", "draw"]
    card_id: Optional[str] = None
    chosen_color: Optional[Color] = None
    target_player_id: Optional[str] = None
    call_uno: bool = False
    reasoning: str = ""

    @classmethod
    def from_action(cls, action: Action, reasoning: str = "") -> "AIDecision":
        if isinstance(action, PlayCard):
            return cls(
                action="play",
                card_id=action.card.id,
                chosen_color=action.chosen_color,
                target_player_id=action.target_player_id,
                call_uno=action.call_uno,
                reasoning=reasoning,
            )
        return cls(action="draw", reasoning=reasoning)


def _untargeted(action: Action) -> Action:
    # Legal actions never carry a swap target or UNO call; both are free choices
    if isinstance(action, PlayCard):
        return replace(action, target_player_id=None, call_uno=False)
    return action


def _fallback(legal_actions: list[Action]) -> Action:
    for a in legal_actions:
        if isinstance(a, DrawCard):
            return a
    return legal_actions[0]


def decide_ai_turn(game: Game, agent: Optional[AgentProtocol] = None) -> Optional[AIDecision]:
    """Ask `agent` (a HeuristicAgent at the game's ai_difficulty by default) for
    the current player's move.

    Returns None when the game is not in progress or there is nothing legal to
    do. Answers outside the legal set are replaced by a draw, or by the first
    legal play when drawing is not allowed.
    """
    if not game.is_playing():
        return None
    player = game.get_current_player()
    legal = game.get_legal_actions(player.id)
    if not legal:
        return None

    if agent is None:
        from unotable.agents.heuristic_agent import HeuristicAgent

        agent = HeuristicAgent(difficulty=game.rules.ai_difficulty)

    view = game.get_player_view(player.id)
    action = agent.get_action(view, legal, player.id)
    if action is None:
        action = _fallback(legal)
    elif _untargeted(action) not in legal:
        logger.warning("[%s] returned an illegal action %s, falling back", agent.name, action)
        action = _fallback(legal)

    reasoning = getattr(agent, "last_reasoning", "") or ""
    return AIDecision.from_action(action, reasoning=reasoning)


def apply_ai_decision(game: Game, player_id: str, decision: AIDecision) -> bool:
    """Apply a decision through play_card / draw_card. Stale decisions return False."""
    if decision.action == "play":
        if decision.card_id is None:
            return False
        return game.play_card(
            player_id,
            decision.card_id,
            chosen_color=decision.chosen_color,
            is_uno_call=decision.call_uno,
            target_player_id=decision.target_player_id,
        )
    return game.draw_card(player_id)
