"""Deck creation, shuffling and the draw/discard piles."""

import logging
import random
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from unotable.engine.card import ACTION_VALUES, PLAYABLE_COLORS, Card, Color

logger = logging.getLogger(__name__)

STANDARD_DECK_SIZE = 108


def create_deck(seed: int | None = None, rng: Optional[random.Random] = None) -> List[Card]:
    """Create a standard 108-card UNO deck.

    - 4 colors × (one 0, two each of 1-9): 76 cards
    - 4 colors × two each of Skip, Reverse, Draw Two: 24 cards
    - 4 Wild, 4 Wild Draw Four: 8 cards
    - Total: 108 cards

    Ids are assigned in construction order ("0".."107"), then the deck is
    shuffled with `rng` (or a Random seeded with `seed`).
    """
    cards: List[Card] = []

    def add(color: Color, value: str) -> None:
        cards.append(Card(id=str(len(cards)), color=color, value=value))

    for color in PLAYABLE_COLORS:
        # One zero per color
        add(color, "0")
        # Two of each 1-9 per color
        for number in range(1, 10):
            add(color, str(number))
            add(color, str(number))

    for color in PLAYABLE_COLORS:
        for value in ACTION_VALUES:
            add(color, value)
            add(color, value)

    for _ in range(4):
        add(Color.WILD, "wild")
        add(Color.WILD, "wild_draw_four")

    if rng is None:
        rng = random.Random(seed)
    rng.shuffle(cards)

    return cards


@dataclass
class DrawResult:
    """Outcome of a multi-card draw.

    `is_exhausted` is set when fewer cards than requested could be supplied,
    even after reshuffling the discard pile.
    """

    drawn: List[Card] = field(default_factory=list)
    is_exhausted: bool = False


class Deck:
    """Owns the draw pile and the discard pile.

    The top of either pile is its last element. Reshuffling moves every discard
    card except the current top card back into the draw pile.
    """

    def __init__(
        self,
        cards: Optional[List[Card]] = None,
        rng: Optional[random.Random] = None,
        on_reshuffle: Optional[Callable[[int], None]] = None,
    ):
        self._rng = rng or random.Random()
        self.draw_pile: List[Card] = list(cards) if cards is not None else create_deck(rng=self._rng)
        self.discard_pile: List[Card] = []
        self._on_reshuffle = on_reshuffle

    @property
    def draw_count(self) -> int:
        return len(self.draw_pile)

    @property
    def discard_count(self) -> int:
        return len(self.discard_pile)

    @property
    def can_reshuffle(self) -> bool:
        return len(self.discard_pile) > 1

    def shuffle(self) -> None:
        """Randomize the draw pile order."""
        self._rng.shuffle(self.draw_pile)

    def get_top_card(self) -> Optional[Card]:
        return self.discard_pile[-1] if self.discard_pile else None

    def discard(self, card: Card) -> None:
        self.discard_pile.append(card)

    def reshuffle_if_needed(self) -> bool:
        """Refill an empty draw pile from the discard pile.

        Returns True when a reshuffle happened.
        """
        if self.draw_pile:
            return False
        return self._reshuffle()

    def force_reshuffle(self) -> bool:
        """Move every discard card except the top into the draw pile, whatever
        the draw pile currently holds.

        When the draw pile is empty and only the top card is left to discard,
        the top card goes too, leaving no card on the discard pile. Returns
        True when cards were moved.
        """
        if self.can_reshuffle:
            return self._reshuffle()
        if self.draw_pile or not self.discard_pile:
            return False
        self.draw_pile = self.discard_pile
        self.discard_pile = []
        logger.debug("Forced the last discard into the draw pile")
        if self._on_reshuffle is not None:
            self._on_reshuffle(len(self.draw_pile))
        return True

    def _reshuffle(self) -> bool:
        if not self.can_reshuffle:
            return False
        top = self.discard_pile[-1]
        self.draw_pile.extend(self.discard_pile[:-1])
        self.discard_pile = [top]
        self.shuffle()
        logger.debug("Reshuffled discard pile, %d cards in draw pile", len(self.draw_pile))
        if self._on_reshuffle is not None:
            self._on_reshuffle(len(self.draw_pile))
        return True

    def draw_card(self) -> Optional[Card]:
        """Draw one card, reshuffling first if needed. None when exhausted."""
        self.reshuffle_if_needed()
        if not self.draw_pile:
            return None
        return self.draw_pile.pop()

    def draw_cards(self, count: int) -> DrawResult:
        result = DrawResult()
        for _ in range(max(0, count)):
            card = self.draw_card()
            if card is None:
                result.is_exhausted = True
                break
            result.drawn.append(card)
        return result

    def return_to_draw_pile(self, card: Card) -> None:
        """Put a card back into the draw pile and shuffle (used when a Wild Draw
        Four is flipped as the starting card)."""
        self.draw_pile.append(card)
        self.shuffle()
