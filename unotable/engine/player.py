"""Player state: hand, score and UNO call status."""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from unotable.engine.card import PLAYABLE_COLORS, Card, Color


@dataclass
class Player:
    """A seat at the table.

    `has_called_uno` is only meaningful while the hand holds exactly one card;
    any addition that brings the hand above one card clears it.
    """

    id: str
    name: str
    is_human: bool = False
    score: int = 0
    hand: List[Card] = field(default_factory=list)
    has_called_uno: bool = False

    @property
    def hand_size(self) -> int:
        return len(self.hand)

    def has_one_card(self) -> bool:
        return len(self.hand) == 1

    def is_empty(self) -> bool:
        return not self.hand

    def add_cards(self, cards: Iterable[Card]) -> None:
        self.hand.extend(cards)
        if len(self.hand) > 1:
            self.has_called_uno = False

    def remove_card(self, card_id: str) -> Optional[Card]:
        for i, card in enumerate(self.hand):
            if card.id == card_id:
                return self.hand.pop(i)
        return None

    def get_card(self, card_id: str) -> Optional[Card]:
        return next((c for c in self.hand if c.id == card_id), None)

    def has_card(self, card_id: str) -> bool:
        return self.get_card(card_id) is not None

    def set_hand(self, cards: Iterable[Card]) -> None:
        """Replace the whole hand (hand swaps and rotations)."""
        self.hand = list(cards)
        self.has_called_uno = False

    def call_uno(self) -> bool:
        if not self.has_one_card():
            return False
        self.has_called_uno = True
        return True

    def reset_uno_call(self) -> None:
        self.has_called_uno = False

    def should_be_penalized_for_uno(self) -> bool:
        return self.has_one_card() and not self.has_called_uno

    def hand_points(self) -> int:
        return sum(c.points for c in self.hand)

    def has_color(self, color: Color) -> bool:
        return any(c.color == color for c in self.hand)

    def color_counts(self) -> Dict[Color, int]:
        counts = {color: 0 for color in PLAYABLE_COLORS}
        for card in self.hand:
            if card.color in counts:
                counts[card.color] += 1
        return counts

    def preferred_color(self) -> Color:
        """Most frequent playable color in hand; red when the hand holds only wilds."""
        counts = self.color_counts()
        best = max(PLAYABLE_COLORS, key=lambda c: counts[c])
        return best if counts[best] > 0 else Color.RED
