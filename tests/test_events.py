"""Event log tests."""

from unotable.engine import EventName
from unotable.engine.events import EventLog
from unotable.engine.game_state import format_event

from helpers import card, filler, make_game, rig


def test_log_is_bounded() -> None:
    log = EventLog(clock=lambda: 1.5, max_events=5)
    for i in range(8):
        log.append(EventName.UNO_CALLED, f"p{i}")
    assert len(log) == 5
    assert log.total == 8
    assert [e.data[0] for e in log.entries()] == ["p3", "p4", "p5", "p6", "p7"]
    assert log.entries()[0].timestamp == 1.5


def test_since_returns_unseen_events() -> None:
    log = EventLog(clock=lambda: 0.0)
    log.append(EventName.UNO_CALLED, "a")
    seen = log.total
    log.append(EventName.UNO_CALLED, "b")
    log.append(EventName.TURN_CHANGE, "c", "clockwise")

    assert [e.data[0] for e in log.since(seen)] == ["b", "c"]
    assert log.since(log.total) == []


def test_event_to_dict() -> None:
    log = EventLog(clock=lambda: 42.0)
    event = log.append(EventName.CARD_DRAWN, "p0", 2, False, False)
    assert event.to_dict() == {"event": "onCardDrawn", "data": ["p0", 2, False, False], "timestamp": 42.0}


def test_game_log_stays_within_limit() -> None:
    game = make_game(2)
    rig(game, [filler(2), filler(2)], top=card("red", "5"))
    for _ in range(1200):
        game.event_log.append(EventName.UNO_CALLED, "p0")
    assert len(game.get_event_log()) == 1000


def test_play_produces_ordered_events() -> None:
    game = make_game(3)
    skip = card("red", "skip")
    rig(game, [[skip, card("red", "1"), card("red", "2")], filler(2), filler(2)], top=card("red", "5"))
    start = game.event_log.total

    game.play_card("p0", skip.id)
    names = [e.event for e in game.event_log.since(start)]
    assert names == ["onCardPlayed", "onActionCardPlayed", "onTurnChange"]
    assert [format_event(e) for e in game.event_log.since(start)] == [
        "p0 played red_skip",
        "p0: Skip next player",
        "turn -> p2 (clockwise)",
    ]
