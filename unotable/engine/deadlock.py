"""Cycle detection over game-state fingerprints.

Two fingerprints are tracked per turn:

- the strategic hash (sorted hand sizes, top card, current player,
  direction, chosen wild color) repeats in play loops such as endless
  Skip/Reverse exchanges, whatever the piles look like;
- the resource hash adds the draw and discard pile counts and repeats when
  the same position keeps coming back with the same card scarcity.

A fingerprint seen REPEAT_THRESHOLD times within the last HISTORY_SIZE turns
flags a deadlock.
"""

import hashlib
from collections import Counter, deque
from dataclasses import dataclass
from typing import Deque, Iterable, Optional

from unotable.engine.card import Card, Color

HISTORY_SIZE = 20
REPEAT_THRESHOLD = 3


def _digest(parts: Iterable[object]) -> str:
    raw = "|".join(str(p) for p in parts)
    return hashlib.blake2b(raw.encode("utf-8"), digest_size=8).hexdigest()


def strategic_state_hash(
    hand_sizes: Iterable[int],
    top_card: Optional[Card],
    current_player_index: int,
    direction: str,
    wild_color: Optional[Color],
) -> str:
    top = f"{top_card.color.value}:{top_card.value}" if top_card else "-"
    return _digest((
        ",".join(str(n) for n in sorted(hand_sizes)),
        top,
        current_player_index,
        direction,
        wild_color.value if wild_color else "-",
    ))


def resource_state_hash(strategic_hash: str, draw_count: int, discard_count: int) -> str:
    return _digest((strategic_hash, draw_count, discard_count))


@dataclass(frozen=True)
class DeadlockInfo:
    """Read-only snapshot of the detector for UIs and tests."""

    is_deadlocked: bool
    reason: Optional[str]
    play_loop_cycle_detected: bool
    resource_exhaustion_cycle_detected: bool
    current_state_hash: Optional[str]
    state_history_length: int
    consecutive_skips: int
    resolutions_this_round: int


class DeadlockDetector:
    def __init__(self, history_size: int = HISTORY_SIZE, repeat_threshold: int = REPEAT_THRESHOLD):
        self._repeat_threshold = repeat_threshold
        self.strategic_history: Deque[str] = deque(maxlen=history_size)
        self.resource_history: Deque[str] = deque(maxlen=history_size)
        self.play_loop_cycle_detected = False
        self.resource_exhaustion_cycle_detected = False

    def record(self, strategic_hash: str, resource_hash: str) -> bool:
        """Append both fingerprints; True when either has now repeated too often."""
        self.strategic_history.append(strategic_hash)
        self.resource_history.append(resource_hash)
        self.play_loop_cycle_detected = (
            Counter(self.strategic_history)[strategic_hash] >= self._repeat_threshold
        )
        self.resource_exhaustion_cycle_detected = (
            Counter(self.resource_history)[resource_hash] >= self._repeat_threshold
        )
        return self.play_loop_cycle_detected or self.resource_exhaustion_cycle_detected

    @property
    def current_hash(self) -> Optional[str]:
        return self.strategic_history[-1] if self.strategic_history else None

    def reset(self) -> None:
        self.strategic_history.clear()
        self.resource_history.clear()
        self.play_loop_cycle_detected = False
        self.resource_exhaustion_cycle_detected = False
