"""Rules configuration.

Rules usually come from user-editable settings, so out-of-range values are
clamped to the nearest valid bound instead of rejected.
"""

import logging
import re
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict, Mapping

logger = logging.getLogger(__name__)


class DeadlockResolution(str, Enum):
    END_ROUND = "end_round"
    FORCE_RESHUFFLE = "force_reshuffle"


class AIDifficulty(str, Enum):
    EASY = "easy"
    NORMAL = "normal"
    HARD = "hard"
    EXPERT = "expert"


# field name -> (min, max); None means unbounded on that side
NUMERIC_BOUNDS: Dict[str, tuple[int | None, int | None]] = {
    "uno_challenge_window": (0, 10_000),
    "wild_card_skip": (0, 3),
    "target_score": (100, 1000),
    "max_game_time": (0, None),
    "hand_size": (1, 15),
    "wild_draw_four_challenge_penalty": (0, 10),
}


@dataclass
class Rules:
    """Game rules. Defaults follow the official rules."""

    stack_draw_two: bool = False
    stack_draw_four: bool = False
    must_play_if_drawable: bool = False
    allow_draw_when_playable: bool = True
    enable_jump_in: bool = False
    enable_seven_zero: bool = False
    enable_swap_hands: bool = False
    enable_uno_challenges: bool = True
    uno_challenge_window: int = 2000  # ms
    wild_card_skip: int = 0
    deadlock_resolution: DeadlockResolution = DeadlockResolution.END_ROUND
    target_score: int = 500
    ai_difficulty: AIDifficulty = AIDifficulty.EXPERT
    max_game_time: int = 0  # ms, 0 = unlimited
    debug_mode: bool = False
    hand_size: int = 7
    wild_draw_four_challenge_penalty: int = 2

    def __post_init__(self) -> None:
        self.deadlock_resolution = _coerce_enum(
            DeadlockResolution, self.deadlock_resolution, DeadlockResolution.END_ROUND, "deadlock_resolution"
        )
        self.ai_difficulty = _coerce_enum(AIDifficulty, self.ai_difficulty, AIDifficulty.EXPERT, "ai_difficulty")
        for name, (low, high) in NUMERIC_BOUNDS.items():
            default = self.__dataclass_fields__[name].default
            setattr(self, name, _clamp(name, getattr(self, name), low, high, default))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Rules":
        """Build rules from camelCase or snake_case keys. Unknown keys are ignored."""
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            name = _to_snake(key)
            if name not in known:
                logger.warning("Ignoring unknown rule %r", key)
                continue
            kwargs[name] = value
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Enum):
                value = value.value
            out[_to_camel(f.name)] = value
        return out

    def replace(self, **changes: Any) -> "Rules":
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data.update(changes)
        return Rules(**data)


def _to_snake(key: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()


def _to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _coerce_enum(enum_cls, value, default, name: str):
    try:
        return enum_cls(value)
    except ValueError:
        logger.warning("Invalid %s %r, using %s", name, value, default.value)
        return default


def _clamp(name: str, value: Any, low: int | None, high: int | None, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        logger.warning("Rule %s=%r is not a number, using %d", name, value, default)
        return default
    clamped = number
    if low is not None and clamped < low:
        clamped = low
    if high is not None and clamped > high:
        clamped = high
    if clamped != number:
        logger.warning("Rule %s=%d out of range, clamped to %d", name, number, clamped)
    return clamped
