"""Heuristic agent - rule-of-thumb play at four difficulty levels."""

import random
from collections import Counter
from typing import Optional, Sequence

from unotable.engine import Action, Card, Color, PlayerView
from unotable.engine.card import PLAYABLE_COLORS, CardKind
from unotable.engine.config import AIDifficulty
from unotable.engine.rules import DrawCard, PlayCard

# Opponent hand size at which blocking with an action card takes priority
THREAT_HAND_SIZE = 2
# Own hand size above which expert play keeps action cards in reserve
CONSERVE_HAND_SIZE = 5


def choose_wild_color(hand: Sequence[Card], playing: Optional[Card] = None) -> Color:
    """Most frequent color left in hand after `playing` leaves it; red on an all-wild hand."""
    counts = Counter(c.color for c in hand if c is not playing and c.color in PLAYABLE_COLORS)
    if not counts:
        return Color.RED
    # Ties go to the earlier color in PLAYABLE_COLORS so the choice is stable
    return max(PLAYABLE_COLORS, key=lambda color: counts[color])


class HeuristicAgent:
    """Computer player that scores cards with simple heuristics.

    - easy: random legal card
    - normal: action cards first, then color matches
    - hard: blocks a next player close to winning, otherwise mostly normal
    - expert: also conserves action cards with a big hand and plays the
      color it holds most of, keeping wilds for last
    """

    def __init__(
        self,
        difficulty: AIDifficulty | str = AIDifficulty.EXPERT,
        name: Optional[str] = None,
        seed: Optional[int] = None,
    ):
        self.difficulty = AIDifficulty(difficulty)
        self._name = name or f"heuristic-{self.difficulty.value}"
        self._rng = random.Random(seed)
        self.last_reasoning = ""

    @property
    def name(self) -> str:
        return self._name

    def get_action(
        self,
        player_view: PlayerView,
        legal_actions: list[Action],
        player_id: str,
    ) -> Action | None:
        if not legal_actions:
            return None
        plays = [a for a in legal_actions if isinstance(a, PlayCard)]
        if not plays:
            self.last_reasoning = "No playable card"
            return next(a for a in legal_actions if isinstance(a, DrawCard))

        cards = list({a.card.id: a.card for a in plays}.values())
        card = self._choose_card(cards, player_view)
        if card.is_wild:
            color = choose_wild_color(player_view.my_hand, playing=card)
            self.last_reasoning += f", choosing {color.value}"
            return next(a for a in plays if a.card.id == card.id and a.chosen_color == color)
        return next(a for a in plays if a.card.id == card.id)

    def _choose_card(self, cards: list[Card], view: PlayerView) -> Card:
        if self.difficulty is AIDifficulty.EASY:
            return self._easy(cards)
        if self.difficulty is AIDifficulty.NORMAL:
            return self._normal(cards, view)
        if self.difficulty is AIDifficulty.HARD:
            return self._hard(cards, view)
        return self._expert(cards, view)

    def _easy(self, cards: list[Card]) -> Card:
        self.last_reasoning = "Random playable card"
        return self._rng.choice(cards)

    def _normal(self, cards: list[Card], view: PlayerView) -> Card:
        actions = [c for c in cards if c.is_action]
        if actions:
            self.last_reasoning = "Playing an action card"
            return self._rng.choice(actions)
        color_matches = [c for c in cards if not c.is_wild and c.color == view.active_color]
        if color_matches:
            self.last_reasoning = "Matching the active color"
            return self._rng.choice(color_matches)
        return self._easy(cards)

    def _hard(self, cards: list[Card], view: PlayerView) -> Card:
        if self._next_player_threatens(view):
            actions = [c for c in cards if c.is_action]
            if actions:
                self.last_reasoning = f"Blocking {view.next_player}"
                return self._rng.choice(actions)
        if self._rng.random() < 0.7:
            return self._normal(cards, view)
        return self._easy(cards)

    def _expert(self, cards: list[Card], view: PlayerView) -> Card:
        if self._next_player_threatens(view):
            actions = [c for c in cards if c.is_action]
            if actions:
                self.last_reasoning = f"Blocking {view.next_player}"
                skips = [c for c in actions if c.value == "skip"]
                return (skips or actions)[0]

        if len(view.my_hand) > CONSERVE_HAND_SIZE and len(cards) > 3:
            plain = [c for c in cards if c.kind is CardKind.NUMBER]
            if plain:
                self.last_reasoning = "Conserving action cards"
                return self._by_scarcity(plain, view)

        non_wild = [c for c in cards if not c.is_wild]
        if non_wild and not self._next_player_threatens(view):
            # Wilds go last
            self.last_reasoning = "Keeping wilds for later"
            return self._by_scarcity(non_wild, view)
        return self._hard(cards, view)

    def _by_scarcity(self, cards: list[Card], view: PlayerView) -> Card:
        """Play from the color we hold most of; higher points first."""
        counts = Counter(c.color for c in view.my_hand)
        return max(cards, key=lambda c: (counts[c.color], c.points))

    def _next_player_threatens(self, view: PlayerView) -> bool:
        return view.num_cards_per_player.get(view.next_player, 99) <= THREAT_HAND_SIZE

    def should_challenge_uno(self, player_view: PlayerView, target_id: str) -> bool:
        if self.difficulty is AIDifficulty.EASY:
            return False
        if self.difficulty is AIDifficulty.NORMAL:
            return self._rng.random() < 0.5
        return True

    def should_challenge_wild_draw_four(self, player_view: PlayerView, target_id: str) -> bool:
        """Bigger hands are more likely to have held the old color."""
        target_cards = player_view.num_cards_per_player.get(target_id, 0)
        if self.difficulty is AIDifficulty.EXPERT:
            return target_cards >= 4
        if self.difficulty is AIDifficulty.HARD:
            return target_cards >= 6
        return False
