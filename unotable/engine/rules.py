"""UNO rules: actions, card legality and legal-action enumeration.

The same checks back `Game.play_card` and every agent, so an automated player
can never pick an action the engine would refuse.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Union

from unotable.engine.card import PLAYABLE_COLORS, Card, Color
from unotable.engine.config import Rules

if TYPE_CHECKING:
    from unotable.engine.game import Game


@dataclass(frozen=True)
class PlayCard:
    """Action: play a card. For wilds, chosen_color is required."""

    card: Card
    chosen_color: Optional[Color] = None
    call_uno: bool = False
    target_player_id: Optional[str] = None


@dataclass(frozen=True)
class DrawCard:
    """Action: draw a card, or the whole pending penalty."""

    pass


Action = Union[PlayCard, DrawCard]


def active_color(top: Optional[Card], wild_color: Optional[Color]) -> Optional[Color]:
    """Color that must be matched: the chosen color under a wild, else the top card's color.

    None while a wild sits on top with no color chosen yet.
    """
    if top is None:
        return None
    if top.is_wild:
        return wild_color
    return top.color


def can_stack(card: Card, penalty_value: Optional[str], rules: Rules) -> bool:
    """Whether `card` may be added to a pending penalty opened by `penalty_value`."""
    if penalty_value == "draw_two":
        return rules.stack_draw_two and card.value == "draw_two"
    if penalty_value == "wild_draw_four":
        return rules.stack_draw_four and card.value == "wild_draw_four"
    return False


def is_legal_play(
    card: Card,
    top: Optional[Card],
    wild_color: Optional[Color],
    draw_penalty: int,
    penalty_value: Optional[str],
    rules: Rules,
) -> bool:
    if draw_penalty > 0 and not can_stack(card, penalty_value, rules):
        return False
    if top is None:
        return True
    return card.can_play_on(top, active_color(top, wild_color))


def legal_cards(game: "Game", player_id: str) -> List[Card]:
    """Cards `player_id` may play right now (empty when it is not their turn)."""
    if not game.is_playing():
        return []
    current = game.get_current_player()
    if current.id != player_id:
        return []
    return [
        card for card in current.hand
        if is_legal_play(
            card,
            game.get_top_card(),
            game.wild_color,
            game.draw_penalty,
            game.penalty_value,
            game.rules,
        )
    ]


def get_legal_actions(game: "Game", player_id: str) -> List[Action]:
    """Return all legal actions for the current player.

    Wild cards expand into one action per color. DrawCard is included when a
    penalty is pending, when nothing can be played, or when the rules allow
    drawing with a playable card in hand and a card is left to draw.
    """
    playable = legal_cards(game, player_id)
    if not game.is_playing() or game.get_current_player().id != player_id:
        return []

    actions: List[Action] = []
    for card in playable:
        if card.is_wild:
            for color in PLAYABLE_COLORS:
                actions.append(PlayCard(card=card, chosen_color=color))
        else:
            actions.append(PlayCard(card=card))

    can_draw = game.deck.draw_count > 0 or game.deck.can_reshuffle
    if game.draw_penalty > 0 or not playable or (game.rules.allow_draw_when_playable and can_draw):
        actions.append(DrawCard())

    return actions


def describe_effect(card: Card, num_players: int, wild_color: Optional[Color], draw_penalty: int) -> str:
    """Human-readable effect text for the action-card event."""
    if card.value == "skip":
        return "Skip next player"
    if card.value == "reverse":
        return "Skip next player (2-player Reverse)" if num_players == 2 else "Reverse direction"
    if card.value == "draw_two":
        return f"Draw Two (+{draw_penalty})"
    if card.value == "wild":
        return f"Wild - color changed to {wild_color.value if wild_color else '?'}"
    if card.value == "wild_draw_four":
        return f"Wild Draw Four (+{draw_penalty}) - color changed to {wild_color.value if wild_color else '?'}"
    return ""
