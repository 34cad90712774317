"""Append-only event log polled by observers (UI, loggers, replays)."""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)

MAX_EVENTS = 1000


class EventName(str, Enum):
    CARD_PLAYED = "onCardPlayed"
    CARD_DRAWN = "onCardDrawn"
    TURN_CHANGE = "onTurnChange"
    UNO_CALLED = "onUnoCalled"
    UNO_CHALLENGED = "onUnoChallenged"
    WILD_DRAW_FOUR_CHALLENGED = "onWildDrawFourChallenged"
    DECK_RESHUFFLED = "onDeckReshuffled"
    ACTION_CARD_PLAYED = "onActionCardPlayed"
    ROUND_END = "onRoundEnd"
    GAME_END = "onGameEnd"
    DEADLOCK_RESOLVED = "onDeadlockResolved"


@dataclass(frozen=True)
class GameEvent:
    event: str
    data: Tuple[Any, ...]
    timestamp: float

    def to_dict(self) -> dict:
        return {"event": self.event, "data": list(self.data), "timestamp": self.timestamp}


class EventLog:
    """Bounded log of the most recent events.

    `total` counts every event ever appended, so a poller can ask for what it
    has not seen yet with `since(previous_total)` even after old entries have
    been dropped.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None, max_events: int = MAX_EVENTS):
        self._clock = clock or time.time
        self._max_events = max_events
        self._events: List[GameEvent] = []
        self.total = 0

    def append(self, name: EventName, *data: Any) -> GameEvent:
        event = GameEvent(event=name.value, data=tuple(data), timestamp=self._clock())
        self._events.append(event)
        if len(self._events) > self._max_events:
            self._events = self._events[-self._max_events:]
        self.total += 1
        logger.debug("EVENT: %s %s", event.event, event.data)
        return event

    def entries(self) -> List[GameEvent]:
        return list(self._events)

    def since(self, total_seen: int) -> List[GameEvent]:
        missing = self.total - total_seen
        if missing <= 0:
            return []
        return self._events[-missing:]

    def clear(self) -> None:
        self._events = []

    def __len__(self) -> int:
        return len(self._events)
