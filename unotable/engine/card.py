"""Card and Color types for UNO."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Color(str, Enum):
    """Card colors. WILD is only ever carried by wild cards."""

    RED = "red"
    BLUE = "blue"
    GREEN = "green"
    YELLOW = "yellow"
    WILD = "wild"


PLAYABLE_COLORS = (Color.RED, Color.BLUE, Color.GREEN, Color.YELLOW)

NUMBER_VALUES = ("0", "1", "2", "3", "4", "5", "6", "7", "8", "9")
ACTION_VALUES = ("skip", "reverse", "draw_two")
WILD_VALUES = ("wild", "wild_draw_four")
CARD_VALUES = NUMBER_VALUES + ACTION_VALUES + WILD_VALUES

ACTION_POINTS = 20
WILD_POINTS = 50


class CardKind(str, Enum):
    """Broad card classification used for scoring and effect resolution."""

    NUMBER = "number"
    ACTION = "action"
    WILD = "wild"


@dataclass(frozen=True)
class Card:
    """A UNO card.

    For number/action cards: color is one of the four playable colors, value is
    "0"-"9", "skip", "reverse" or "draw_two".
    For wild cards: color is Color.WILD, value is "wild" or "wild_draw_four".
    """

    id: str
    color: Color
    value: str

    def __post_init__(self) -> None:
        if self.value not in CARD_VALUES:
            raise ValueError(f"Invalid card value: {self.value}")
        if self.value in WILD_VALUES and self.color is not Color.WILD:
            raise ValueError("Wild cards must have color=wild")
        if self.value not in WILD_VALUES and self.color is Color.WILD:
            raise ValueError("Non-wild cards must have a playable color")

    @property
    def kind(self) -> CardKind:
        if self.value in WILD_VALUES:
            return CardKind.WILD
        if self.value in ACTION_VALUES:
            return CardKind.ACTION
        return CardKind.NUMBER

    @property
    def is_wild(self) -> bool:
        return self.kind is CardKind.WILD

    @property
    def is_action(self) -> bool:
        """Skip, Reverse and Draw Two."""
        return self.kind is CardKind.ACTION

    @property
    def points(self) -> int:
        """Score value of this card when left in an opponent's hand."""
        if self.kind is CardKind.WILD:
            return WILD_POINTS
        if self.kind is CardKind.ACTION:
            return ACTION_POINTS
        return int(self.value)

    def can_play_on(self, top: "Card", active_color: Optional[Color]) -> bool:
        """Check whether this card may follow `top` under the active color.

        `active_color` of None means the color is unresolved (a wild with no
        chosen color), in which case any card may follow.
        """
        if self.is_wild:
            return True
        if active_color is None:
            return True
        if self.color == active_color:
            return True
        return self.value == top.value

    def matches_exactly(self, other: "Card") -> bool:
        """Same color and value (identity ignored)."""
        return self.color == other.color and self.value == other.value

    def __str__(self) -> str:
        if self.is_wild:
            return self.value
        return f"{self.color.value}_{self.value}"
