"""Builders for hand-made game positions."""

import itertools
from typing import Iterable, Optional, Sequence

from unotable.engine import Card, Color, Game, Player, Rules

_ids = itertools.count(1000)


def card(color: str, value: str) -> Card:
    """A card with a fresh id that never collides with deck ids."""
    return Card(id=f"t{next(_ids)}", color=Color(color), value=value)


def wild(value: str = "wild") -> Card:
    return card("wild", value)


def filler(n: int, color: str = "green", value: str = "3") -> list[Card]:
    return [card(color, value) for _ in range(n)]


def make_game(num_players: int = 2, humans: Iterable[int] = (), **rules) -> Game:
    """Seeded game; debug_mode is on so every mutation checks card conservation."""
    rules.setdefault("debug_mode", True)
    players = [
        Player(id=f"p{i}", name=f"P{i}", is_human=i in set(humans))
        for i in range(num_players)
    ]
    return Game(players, rules=Rules(**rules), seed=7, clock=lambda: 0.0)


def rig(
    game: Game,
    hands: Sequence[Sequence[Card]],
    top: Card,
    draw: Sequence[Card] = (),
    under: Sequence[Card] = (),
    current: int = 0,
    wild_color: Optional[Color] = None,
) -> Game:
    """Replace the dealt position with an exact one.

    `draw` lists cards in the order they will be drawn; `under` is the discard
    pile below `top`.
    """
    for player, hand in zip(game.players, hands):
        player.set_hand(list(hand))
    game.deck.discard_pile = list(under) + [top]
    game.deck.draw_pile = list(reversed(draw))
    game.current_player_index = current
    game.wild_color = wild_color
    game.draw_penalty = 0
    game.penalty_value = None
    game.previous_active_color = None
    game.wild_draw_four_player_id = None
    game.skip_next = False
    game.skip_count = 0
    game.consecutive_skips = 0
    game.detector.reset()
    game.deck_size = game.total_cards()
    return game


def event_names(game: Game) -> list[str]:
    return [e.event for e in game.get_event_log()]


def last_event(game: Game, name: str):
    return next(e for e in reversed(game.get_event_log()) if e.event == name)
