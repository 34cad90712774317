"""Read-only snapshots of a game.

`GameSnapshot` is what a UI polls; `PlayerView` is what an agent sees (its
own hand plus public information only).
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from unotable.engine.card import Card, Color
from unotable.engine.events import GameEvent

if TYPE_CHECKING:
    from unotable.engine.game import Game


class Direction(str, Enum):
    CLOCKWISE = "clockwise"
    COUNTERCLOCKWISE = "counterclockwise"

    @property
    def step(self) -> int:
        return 1 if self is Direction.CLOCKWISE else -1

    def flipped(self) -> "Direction":
        if self is Direction.CLOCKWISE:
            return Direction.COUNTERCLOCKWISE
        return Direction.CLOCKWISE


class Phase(str, Enum):
    PLAYING = "playing"
    ROUND_OVER = "round_over"
    GAME_OVER = "game_over"


@dataclass(frozen=True)
class RoundResult:
    """How a round ended. winner_id is None for a drawn round."""

    winner_id: Optional[str]
    points: int
    reason: str


@dataclass(frozen=True)
class PlayerSummary:
    id: str
    name: str
    is_human: bool
    hand_size: int
    score: int
    has_called_uno: bool
    turn_order: int


@dataclass(frozen=True)
class GameSnapshot:
    """Complete public state of a game at one point in time."""

    players: tuple[PlayerSummary, ...]
    current_player_id: str
    current_player_index: int
    direction: Direction
    phase: Phase
    top_card: Optional[Card]
    wild_color: Optional[Color]
    active_color: Optional[Color]
    draw_penalty: int
    skip_next: bool
    deck_count: int
    discard_count: int
    round_number: int
    consecutive_skips: int
    round_result: Optional[RoundResult] = None
    winner_id: Optional[str] = None
    rules: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_game(cls, game: "Game") -> "GameSnapshot":
        current = game.get_current_player()
        return cls(
            players=tuple(
                PlayerSummary(
                    id=p.id,
                    name=p.name,
                    is_human=p.is_human,
                    hand_size=p.hand_size,
                    score=p.score,
                    has_called_uno=p.has_called_uno,
                    turn_order=i,
                )
                for i, p in enumerate(game.players)
            ),
            current_player_id=current.id,
            current_player_index=game.current_player_index,
            direction=game.direction,
            phase=game.phase,
            top_card=game.get_top_card(),
            wild_color=game.wild_color,
            active_color=game.get_active_color(),
            draw_penalty=game.draw_penalty,
            skip_next=game.skip_next,
            deck_count=game.get_deck_count(),
            discard_count=game.deck.discard_count,
            round_number=game.round_number,
            consecutive_skips=game.consecutive_skips,
            round_result=game.round_result,
            winner_id=game.winner.id if game.winner else None,
            rules=game.rules.to_dict(),
        )

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly dict (enums as their values)."""
        top = self.top_card
        return {
            "players": [asdict(p) for p in self.players],
            "currentPlayerId": self.current_player_id,
            "currentPlayerIndex": self.current_player_index,
            "direction": self.direction.value,
            "phase": self.phase.value,
            "topCard": {"id": top.id, "color": top.color.value, "value": top.value} if top else None,
            "wildColor": self.wild_color.value if self.wild_color else None,
            "activeColor": self.active_color.value if self.active_color else None,
            "drawPenalty": self.draw_penalty,
            "skipNext": self.skip_next,
            "deckCount": self.deck_count,
            "discardCount": self.discard_count,
            "roundNumber": self.round_number,
            "consecutiveSkips": self.consecutive_skips,
            "roundResult": asdict(self.round_result) if self.round_result else None,
            "winnerId": self.winner_id,
            "rules": dict(self.rules),
        }


def format_event(event: GameEvent) -> str:
    """One-line text for an event, used in agent prompts and the CLI."""
    data = event.data
    name = event.event
    if name == "onCardPlayed":
        text = f"{data[0]} played {data[2]}"
        if data[3]:
            text += f" (chose {data[3]})"
        return text
    if name == "onCardDrawn":
        text = f"{data[0]} drew {data[1]} card{'s' if data[1] != 1 else ''}"
        if data[2]:
            text += " and played it"
        return text
    if name == "onTurnChange":
        return f"turn -> {data[0]} ({data[1]})"
    if name == "onUnoCalled":
        return f"{data[0]} called UNO"
    if name == "onUnoChallenged":
        return f"{data[0]} caught {data[1]} without UNO (+{data[3]})"
    if name == "onWildDrawFourChallenged":
        outcome = "succeeded" if data[2] else "failed"
        return f"{data[0]} challenged {data[1]}'s wild_draw_four: {outcome}, {data[3]} drew {data[4]}"
    if name == "onActionCardPlayed":
        return f"{data[0]}: {data[2]}"
    if name == "onDeckReshuffled":
        return f"deck reshuffled ({data[0]} cards)"
    if name == "onRoundEnd":
        return f"round over: {data[0] or 'draw'} +{data[1]} ({data[2]})"
    if name == "onGameEnd":
        return f"game over: {data[0]} wins"
    if name == "onDeadlockResolved":
        return f"deadlock ({data[0]}) resolved by {data[1]}"
    return f"{name} {data}"


@dataclass
class PlayerView:
    """Filtered game state visible to a single player.

    Contains only that player's hand and public info.
    """

    player_id: str
    my_hand: List[Card]
    top_discard: Optional[Card]
    active_color: Optional[Color]
    current_player: str
    direction: Direction
    draw_penalty: int
    penalty_value: Optional[str]
    player_order: tuple[str, ...]
    num_cards_per_player: Dict[str, int]
    scores: Dict[str, int]
    next_player: str
    rules: Dict[str, Any]
    history: List[str]  # Recent game events

    @classmethod
    def from_game(cls, game: "Game", player_id: str) -> "PlayerView":
        """Create a player view from the full game, hiding other players' hands."""
        player = game.get_player(player_id)
        # Last 10 plays/draws/calls; turn changes are noise in a prompt
        events = [e for e in game.get_event_log() if e.event != "onTurnChange"]
        return cls(
            player_id=player_id,
            my_hand=list(player.hand) if player else [],
            top_discard=game.get_top_card(),
            active_color=game.get_active_color(),
            current_player=game.get_current_player().id,
            direction=game.direction,
            draw_penalty=game.draw_penalty,
            penalty_value=game.penalty_value,
            player_order=tuple(p.id for p in game.players),
            num_cards_per_player={p.id: p.hand_size for p in game.players},
            scores={p.id: p.score for p in game.players},
            next_player=game.get_next_player().id,
            rules=game.rules.to_dict(),
            history=[format_event(e) for e in events[-10:]],
        )
