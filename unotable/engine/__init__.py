"""Game engine for UNO."""

from unotable.engine.card import Card, Color
from unotable.engine.config import AIDifficulty, DeadlockResolution, Rules
from unotable.engine.deadlock import DeadlockInfo
from unotable.engine.deck import Deck, create_deck
from unotable.engine.errors import ConfigurationError, InvariantViolation, UnoEngineError
from unotable.engine.events import EventName, GameEvent
from unotable.engine.game import Game
from unotable.engine.game_state import Direction, GameSnapshot, Phase, PlayerView, RoundResult
from unotable.engine.player import Player
from unotable.engine.rules import (
    Action,
    PlayCard,
    DrawCard,
    get_legal_actions,
)

__all__ = [
    "Card",
    "Color",
    "AIDifficulty",
    "DeadlockResolution",
    "Rules",
    "DeadlockInfo",
    "Deck",
    "create_deck",
    "ConfigurationError",
    "InvariantViolation",
    "UnoEngineError",
    "EventName",
    "GameEvent",
    "Game",
    "Direction",
    "GameSnapshot",
    "Phase",
    "PlayerView",
    "RoundResult",
    "Player",
    "Action",
    "PlayCard",
    "DrawCard",
    "get_legal_actions",
]
