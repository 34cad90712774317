"""The rules engine: one Game instance owns a deck, the players and all turn state.

Every public mutator validates first and returns False without touching
anything when the action is illegal. Deck exhaustion never raises; it goes
through deadlock resolution before the mutator returns.
"""

import functools
import logging
import random
from typing import Any, Callable, List, Mapping, Optional, Sequence, Union

from unotable.engine.card import PLAYABLE_COLORS, Card, Color
from unotable.engine.config import DeadlockResolution, Rules
from unotable.engine.deadlock import (
    DeadlockDetector,
    DeadlockInfo,
    resource_state_hash,
    strategic_state_hash,
)
from unotable.engine.deck import Deck, DrawResult
from unotable.engine.errors import ConfigurationError, InvariantViolation
from unotable.engine.events import EventLog, EventName, GameEvent
from unotable.engine.game_state import (
    Direction,
    GameSnapshot,
    Phase,
    PlayerView,
    RoundResult,
)
from unotable.engine.player import Player
from unotable.engine.rules import (
    Action,
    active_color,
    describe_effect,
    get_legal_actions,
    is_legal_play,
    legal_cards,
)

logger = logging.getLogger(__name__)

MIN_PLAYERS = 2
MAX_PLAYERS = 10
# force_reshuffle resolutions allowed per round before falling back to end_round
MAX_FORCED_RESHUFFLES = 3


def _mutator(method: Callable[..., Any]) -> Callable[..., Any]:
    """Run the conservation check after a public mutator when debug_mode is on."""

    @functools.wraps(method)
    def wrapper(self: "Game", *args: Any, **kwargs: Any) -> Any:
        result = method(self, *args, **kwargs)
        if self.rules.debug_mode:
            self.check_conservation()
        return result

    return wrapper


def _parse_color(value: Union[Color, str, None]) -> Optional[Color]:
    if value is None:
        return None
    try:
        color = Color(value)
    except ValueError:
        return None
    return color if color in PLAYABLE_COLORS else None


class Game:
    """A game of UNO between 2 and 10 players.

    `players` may be names (ids become "player_0", "player_1", ... and every
    seat is computer-controlled) or ready-made Player objects. The first round
    is dealt immediately. Randomness comes only from `rng` (or a Random seeded
    with `seed`).
    """

    def __init__(
        self,
        players: Sequence[Union[str, Player]],
        rules: Union[Rules, Mapping[str, Any], None] = None,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], float]] = None,
        deck_cards: Optional[List[Card]] = None,
    ):
        if not MIN_PLAYERS <= len(players) <= MAX_PLAYERS:
            raise ConfigurationError(f"UNO needs {MIN_PLAYERS}-{MAX_PLAYERS} players, got {len(players)}")
        if rules is None:
            rules = Rules()
        elif not isinstance(rules, Rules):
            rules = Rules.from_dict(rules)
        self.rules: Rules = rules
        self._rng = rng or random.Random(seed)
        self.event_log = EventLog(clock=clock)

        self.players: List[Player] = [
            p if isinstance(p, Player) else Player(id=f"player_{i}", name=p)
            for i, p in enumerate(players)
        ]
        if len({p.id for p in self.players}) != len(self.players):
            raise ConfigurationError("Player ids must be unique")

        self.phase = Phase.PLAYING
        self.round_number = 0
        self.round_result: Optional[RoundResult] = None
        self.round_winner: Optional[Player] = None
        self.winner: Optional[Player] = None
        self.detector = DeadlockDetector()
        self._deal_round(deck_cards)

    # ------------------------------------------------------------------
    # Round setup
    # ------------------------------------------------------------------

    def _reset_turn_state(self) -> None:
        self.current_player_index = 0
        self.direction = Direction.CLOCKWISE
        self.draw_penalty = 0
        self.penalty_value: Optional[str] = None
        self.wild_color: Optional[Color] = None
        self.previous_active_color: Optional[Color] = None
        self.wild_draw_four_player_id: Optional[str] = None
        self.skip_next = False
        self.skip_count = 0
        self.consecutive_skips = 0
        self.forced_reshuffles = 0
        self.deadlock_reason: Optional[str] = None
        self.detector.reset()

    def _deal_round(self, deck_cards: Optional[List[Card]] = None) -> None:
        self.deck = Deck(cards=deck_cards, rng=self._rng, on_reshuffle=self._on_reshuffle)
        self.deck_size = self.deck.draw_count
        self._reset_turn_state()
        self.phase = Phase.PLAYING
        self.round_result = None
        self.round_winner = None
        self.round_number += 1

        for p in self.players:
            p.set_hand([])

        for _ in range(self.rules.hand_size):
            for p in self.players:
                card = self.deck.draw_card()
                if card is not None:
                    p.add_cards([card])

        first = self.deck.draw_card()
        # Wild Draw Four can never start the discard pile
        while first is not None and first.value == "wild_draw_four":
            if all(c.value == "wild_draw_four" for c in self.deck.draw_pile):
                raise ConfigurationError("No valid starting card left in the deck")
            logger.debug("Wild Draw Four as first card - reshuffling it back")
            self.deck.return_to_draw_pile(first)
            first = self.deck.draw_card()
        if first is None:
            raise ConfigurationError("Deck too small to start a round")
        self.deck.discard(first)
        self._apply_first_card(first)
        logger.debug("Round %d started with %s", self.round_number, first)
        self.event_log.append(EventName.TURN_CHANGE, self.get_current_player().id, self.direction.value)

    def _apply_first_card(self, card: Card) -> None:
        n = len(self.players)
        if card.value == "skip":
            self.current_player_index = self.direction.step % n
        elif card.value == "reverse":
            self.direction = self.direction.flipped()
            if n == 2:
                self.current_player_index = 1
        elif card.value == "draw_two":
            self.draw_penalty = 2
            self.penalty_value = "draw_two"
        # A starting Wild leaves wild_color unset until someone chooses

    def _on_reshuffle(self, remaining: int) -> None:
        self.event_log.append(EventName.DECK_RESHUFFLED, remaining)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_player(self, player_id: str) -> Optional[Player]:
        return next((p for p in self.players if p.id == player_id), None)

    def get_players(self) -> List[Player]:
        return list(self.players)

    def get_current_player(self) -> Player:
        return self.players[self.current_player_index]

    def get_next_player(self) -> Player:
        return self.players[(self.current_player_index + self.direction.step) % len(self.players)]

    def get_top_card(self) -> Optional[Card]:
        return self.deck.get_top_card()

    def get_active_color(self) -> Optional[Color]:
        return active_color(self.get_top_card(), self.wild_color)

    def get_deck_count(self) -> int:
        return self.deck.draw_count

    def get_discard_pile(self) -> List[Card]:
        return list(self.deck.discard_pile)

    def get_event_log(self) -> List[GameEvent]:
        return self.event_log.entries()

    def get_state(self) -> GameSnapshot:
        return GameSnapshot.from_game(self)

    def get_player_view(self, player_id: str) -> PlayerView:
        return PlayerView.from_game(self, player_id)

    def get_legal_actions(self, player_id: str) -> List[Action]:
        return get_legal_actions(self, player_id)

    def get_deadlock_info(self) -> DeadlockInfo:
        return DeadlockInfo(
            is_deadlocked=self.deadlock_reason is not None,
            reason=self.deadlock_reason,
            play_loop_cycle_detected=self.detector.play_loop_cycle_detected,
            resource_exhaustion_cycle_detected=self.detector.resource_exhaustion_cycle_detected,
            current_state_hash=self.detector.current_hash,
            state_history_length=len(self.detector.strategic_history),
            consecutive_skips=self.consecutive_skips,
            resolutions_this_round=self.forced_reshuffles,
        )

    def is_playing(self) -> bool:
        return self.phase is Phase.PLAYING

    def is_game_over(self) -> bool:
        return self.phase is Phase.GAME_OVER

    def is_color_unresolved(self) -> bool:
        top = self.get_top_card()
        return top is not None and top.is_wild and self.wild_color is None

    def can_challenge_uno(self, target_id: str) -> bool:
        target = self.get_player(target_id)
        return (
            self.rules.enable_uno_challenges
            and self.is_playing()
            and target is not None
            and target.should_be_penalized_for_uno()
        )

    def get_uno_challengeable_players(self) -> List[Player]:
        return [p for p in self.players if self.can_challenge_uno(p.id)]

    def can_challenge_wild_draw_four(self, target_id: str) -> bool:
        top = self.get_top_card()
        return (
            self.is_playing()
            and top is not None
            and top.value == "wild_draw_four"
            and self.wild_draw_four_player_id == target_id
            and self.previous_active_color is not None
        )

    def total_cards(self) -> int:
        return self.deck.draw_count + self.deck.discard_count + sum(p.hand_size for p in self.players)

    def check_conservation(self) -> None:
        total = self.total_cards()
        if total != self.deck_size:
            raise InvariantViolation(f"Card count is {total}, expected {self.deck_size}")

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    @_mutator
    def play_card(
        self,
        player_id: str,
        card_id: str,
        chosen_color: Union[Color, str, None] = None,
        is_uno_call: bool = False,
        target_player_id: Optional[str] = None,
    ) -> bool:
        """Play `card_id` from the current player's hand.

        Wild cards need `chosen_color`. `is_uno_call` lets a human call UNO in
        the same step as the play that leaves them one card. `target_player_id`
        picks the hand to swap with for a Seven (Seven-Zero) or a Wild (Swap
        Hands).
        """
        if not self.is_playing():
            return False
        player = self.get_player(player_id)
        if player is None or self.get_current_player().id != player_id:
            return False
        card = player.get_card(card_id)
        if card is None or not self._is_legal(card):
            return False
        color = _parse_color(chosen_color)
        if card.is_wild and color is None:
            return False
        if target_player_id is not None:
            target = self.get_player(target_player_id)
            if target is None or target is player:
                return False
        self._resolve_play(player, card, color if card.is_wild else None, is_uno_call, target_player_id)
        return True

    @_mutator
    def draw_card(self, player_id: str) -> bool:
        """Draw one card, or the whole pending penalty, and end the turn."""
        if not self.is_playing():
            return False
        player = self.get_player(player_id)
        if player is None or self.get_current_player().id != player_id:
            return False

        if self.draw_penalty > 0:
            self._take_penalty(player)
            return True

        playable = legal_cards(self, player_id)
        if playable and not self.rules.allow_draw_when_playable:
            return False

        if not self.deck.draw_count and not self.deck.can_reshuffle:
            if playable:
                return False
            # Nothing to draw, nothing to play
            self._resolve_deadlock("deck_exhausted")
            if self.is_playing():
                self._skip_stuck_player()
            return True

        card = self.deck.draw_card()
        player.add_cards([card])
        self.consecutive_skips = 0

        if self.rules.must_play_if_drawable and self._is_legal(card):
            logger.debug("Auto-playing drawn card %s", card)
            self.event_log.append(EventName.CARD_DRAWN, player.id, 1, True, False)
            color = player.preferred_color() if card.is_wild else None
            self._resolve_play(player, card, color, False, None)
            return True

        self.event_log.append(EventName.CARD_DRAWN, player.id, 1, False, False)
        self._advance_turn()
        return True

    @_mutator
    def choose_color(self, player_id: str, color: Union[Color, str]) -> bool:
        """Pick the active color for a starting Wild."""
        if not self.is_playing() or not self.is_color_unresolved():
            return False
        if self.get_current_player().id != player_id:
            return False
        chosen = _parse_color(color)
        if chosen is None:
            return False
        self.wild_color = chosen
        self.event_log.append(
            EventName.ACTION_CARD_PLAYED, player_id, str(self.get_top_card()), f"Color chosen: {chosen.value}"
        )
        return True

    @_mutator
    def jump_in(self, player_id: str, card_id: str, is_uno_call: bool = False) -> bool:
        """Play a card identical to the top card out of turn (house rule)."""
        if not self.rules.enable_jump_in or not self.is_playing():
            return False
        player = self.get_player(player_id)
        if player is None:
            return False
        card = player.get_card(card_id)
        top = self.get_top_card()
        # A wild's color is unresolved until chosen, so no card is identical to it
        if card is None or top is None or top.is_wild or card.is_wild:
            return False
        if self.draw_penalty > 0 or not card.matches_exactly(top):
            return False
        self.current_player_index = self.players.index(player)
        self.skip_next = False
        self.skip_count = 0
        self.event_log.append(EventName.ACTION_CARD_PLAYED, player.id, str(card), "Jump-in")
        self._resolve_play(player, card, None, is_uno_call, None)
        return True

    @_mutator
    def call_uno(self, player_id: str) -> bool:
        if not self.is_playing():
            return False
        player = self.get_player(player_id)
        if player is None or not player.call_uno():
            return False
        self.event_log.append(EventName.UNO_CALLED, player.id)
        return True

    @_mutator
    def challenge_uno(self, challenger_id: str, target_id: str) -> bool:
        """Catch a player sitting on one card without having called UNO.

        The target draws 2 cards on success. Any other case is a no-op.
        """
        challenger = self.get_player(challenger_id)
        if challenger is None or challenger_id == target_id or not self.can_challenge_uno(target_id):
            return False
        target = self.get_player(target_id)
        result = self._deal(target, 2)
        target.reset_uno_call()
        logger.debug("UNO challenge by %s succeeded against %s", challenger.name, target.name)
        self.event_log.append(EventName.UNO_CHALLENGED, challenger.id, target.id, True, len(result.drawn))
        return True

    @_mutator
    def challenge_wild_draw_four(self, challenger_id: str, target_id: str) -> bool:
        """Challenge the Wild Draw Four on top of the pile.

        Succeeds when the target held a card of the color that was active right
        before they played it. On success the target draws the pending penalty
        and the player facing it keeps the turn. On failure the challenger pays
        the extra challenge penalty; if the challenger was the one facing the
        penalty they draw it too and lose the turn.
        """
        challenger = self.get_player(challenger_id)
        target = self.get_player(target_id)
        if challenger is None or target is None or challenger is target:
            return False
        if not self.can_challenge_wild_draw_four(target_id):
            return False

        guilty = target.has_color(self.previous_active_color)
        self.wild_draw_four_player_id = None

        if guilty:
            amount = self.draw_penalty
            self._clear_penalty()
            result = self._deal(target, amount)
            logger.debug("Wild Draw Four challenge by %s succeeded", challenger.name)
            self.event_log.append(
                EventName.WILD_DRAW_FOUR_CHALLENGED, challenger.id, target.id, True, target.id, len(result.drawn)
            )
            return True

        facing_penalty = challenger is self.get_current_player() and self.draw_penalty > 0
        amount = self.rules.wild_draw_four_challenge_penalty
        if facing_penalty:
            amount += self.draw_penalty
            self._clear_penalty()
        result = self._deal(challenger, amount)
        logger.debug("Wild Draw Four challenge by %s failed", challenger.name)
        self.event_log.append(
            EventName.WILD_DRAW_FOUR_CHALLENGED, challenger.id, target.id, False, challenger.id, len(result.drawn)
        )
        if facing_penalty and self.is_playing():
            self._advance_turn()
        return False

    @_mutator
    def force_end_round(self, reason: str = "timeout") -> bool:
        """End the current round now, as the end_round deadlock policy would."""
        if not self.is_playing():
            return False
        self._end_round_by_fewest_cards(reason)
        return True

    @_mutator
    def start_new_round(self) -> bool:
        """Deal a new round keeping scores. Only valid after a round ended."""
        if self.phase is not Phase.ROUND_OVER:
            return False
        self._deal_round()
        return True

    @_mutator
    def restart_game(self) -> bool:
        for p in self.players:
            p.score = 0
        self.winner = None
        self.round_number = 0
        self._deal_round()
        return True

    # ------------------------------------------------------------------
    # Play resolution
    # ------------------------------------------------------------------

    def _is_legal(self, card: Card) -> bool:
        return is_legal_play(
            card, self.get_top_card(), self.wild_color, self.draw_penalty, self.penalty_value, self.rules
        )

    def _resolve_play(
        self,
        player: Player,
        card: Card,
        chosen_color: Optional[Color],
        is_uno_call: bool,
        target_player_id: Optional[str],
    ) -> None:
        if card.value == "wild_draw_four":
            # Captured before the card touches the pile; challenges read only this
            self.previous_active_color = self.get_active_color()
        player.remove_card(card.id)
        self.deck.discard(card)
        self.wild_color = chosen_color if card.is_wild else None
        self.wild_draw_four_player_id = player.id if card.value == "wild_draw_four" else None
        self.consecutive_skips = 0
        self.event_log.append(
            EventName.CARD_PLAYED, player.id, card.id, str(card), chosen_color.value if chosen_color else None
        )

        if player.has_one_card() and (is_uno_call or not player.is_human):
            player.call_uno()
            self.event_log.append(EventName.UNO_CALLED, player.id)

        if player.is_empty():
            self._finish_round(player, "empty_hand")
            return

        effect = self._apply_effect(player, card, target_player_id)
        if effect:
            self.event_log.append(EventName.ACTION_CARD_PLAYED, player.id, str(card), effect)
        self._advance_turn()

    def _apply_effect(self, player: Player, card: Card, target_player_id: Optional[str]) -> str:
        n = len(self.players)
        value = card.value
        if value == "skip":
            self.skip_next = True
        elif value == "reverse":
            self.direction = self.direction.flipped()
            if n == 2:
                self.skip_next = True
        elif value in ("draw_two", "wild_draw_four"):
            self.draw_penalty += 2 if value == "draw_two" else 4
            self.penalty_value = value
        elif value == "wild":
            self.skip_count = self.rules.wild_card_skip
            if self.rules.enable_swap_hands and target_player_id is not None:
                target = self.get_player(target_player_id)
                self._swap_hands(player, target)
                return f"Wild - color changed to {self.wild_color.value}, swapped hands with {target.name}"
        elif value == "7" and self.rules.enable_seven_zero:
            target = self.get_player(target_player_id) if target_player_id else self._fewest_cards_opponent(player)
            self._swap_hands(player, target)
            return f"Seven - swapped {player.name} & {target.name}"
        elif value == "0" and self.rules.enable_seven_zero:
            self._rotate_hands()
            return "Zero - rotate hands in play direction"

        effect = describe_effect(card, n, self.wild_color, self.draw_penalty)
        if value == "wild" and self.skip_count:
            effect += f", skips {self.skip_count}"
        return effect

    def _fewest_cards_opponent(self, player: Player) -> Player:
        return min((p for p in self.players if p is not player), key=lambda p: p.hand_size)

    def _swap_hands(self, first: Player, second: Player) -> None:
        first_hand, second_hand = list(first.hand), list(second.hand)
        first.set_hand(second_hand)
        second.set_hand(first_hand)
        self._auto_call_uno([first, second])
        logger.debug("Hands swapped between %s and %s", first.name, second.name)

    def _rotate_hands(self) -> None:
        n = len(self.players)
        hands = [list(p.hand) for p in self.players]
        step = self.direction.step
        for i, hand in enumerate(hands):
            self.players[(i + step) % n].set_hand(hand)
        self._auto_call_uno(self.players)
        logger.debug("Hands rotated %s", self.direction.value)

    def _auto_call_uno(self, players: List[Player]) -> None:
        """Call UNO for computer players left on one card by a hand exchange."""
        for p in players:
            if not p.is_human and p.should_be_penalized_for_uno():
                p.call_uno()
                self.event_log.append(EventName.UNO_CALLED, p.id)

    def _clear_penalty(self) -> None:
        self.draw_penalty = 0
        self.penalty_value = None

    def _take_penalty(self, player: Player) -> None:
        amount = self.draw_penalty
        self._clear_penalty()
        self.wild_draw_four_player_id = None
        result = self._deal(player, amount)
        self.event_log.append(EventName.CARD_DRAWN, player.id, len(result.drawn), False, result.is_exhausted)
        logger.debug("%s drew %d of %d penalty cards", player.name, len(result.drawn), amount)
        if not self.is_playing():
            return
        if result.drawn:
            self.consecutive_skips = 0
            self._advance_turn()
        else:
            self._skip_stuck_player()

    def _deal(self, player: Player, amount: int) -> DrawResult:
        """Give `player` up to `amount` cards; exhaustion goes through deadlock resolution."""
        result = self.deck.draw_cards(amount)
        player.add_cards(result.drawn)
        if result.is_exhausted and self._resolve_deadlock("deck_exhausted"):
            more = self.deck.draw_cards(amount - len(result.drawn))
            player.add_cards(more.drawn)
            result = DrawResult(drawn=result.drawn + more.drawn, is_exhausted=more.is_exhausted)
        return result

    # ------------------------------------------------------------------
    # Turn progression and deadlocks
    # ------------------------------------------------------------------

    def _advance_turn(self) -> None:
        steps = 1 + (1 if self.skip_next else 0) + self.skip_count
        self.skip_next = False
        self.skip_count = 0
        n = len(self.players)
        self.current_player_index = (self.current_player_index + self.direction.step * steps) % n
        self.event_log.append(EventName.TURN_CHANGE, self.get_current_player().id, self.direction.value)
        self._detect_cycles()

    def _detect_cycles(self) -> None:
        strategic = strategic_state_hash(
            (p.hand_size for p in self.players),
            self.get_top_card(),
            self.current_player_index,
            self.direction.value,
            self.wild_color,
        )
        resource = resource_state_hash(strategic, self.deck.draw_count, self.deck.discard_count)
        if self.detector.record(strategic, resource):
            reason = "play_loop" if self.detector.play_loop_cycle_detected else "resource_cycle"
            logger.info("State cycle detected (%s)", reason)
            self._resolve_deadlock(reason)

    def _skip_stuck_player(self) -> None:
        """Pass the turn of a player who could neither play nor draw."""
        self.consecutive_skips += 1
        if self.consecutive_skips > len(self.players):
            self._resolve_deadlock("consecutive_skips", allow_reshuffle=False)
            return
        self._advance_turn()

    def _resolve_deadlock(self, reason: str, allow_reshuffle: bool = True) -> bool:
        """Apply the configured policy. True when the draw pile was refilled."""
        self.deadlock_reason = reason
        use_reshuffle = (
            allow_reshuffle
            and self.rules.deadlock_resolution is DeadlockResolution.FORCE_RESHUFFLE
            and self.forced_reshuffles < MAX_FORCED_RESHUFFLES
        )
        if not use_reshuffle:
            logger.info("Deadlock (%s): ending round", reason)
            self.event_log.append(EventName.DEADLOCK_RESOLVED, reason, DeadlockResolution.END_ROUND.value, False)
            self._end_round_by_fewest_cards(reason)
            return False

        self.forced_reshuffles += 1
        reshuffled = self.deck.force_reshuffle()
        if self.get_top_card() is None:
            # Whatever is played next starts the pile
            self.wild_color = None
            self.previous_active_color = None
            self.wild_draw_four_player_id = None
        self.detector.reset()
        logger.info("Deadlock (%s): forced reshuffle, refilled=%s", reason, reshuffled)
        self.event_log.append(
            EventName.DEADLOCK_RESOLVED, reason, DeadlockResolution.FORCE_RESHUFFLE.value, reshuffled
        )
        self.deadlock_reason = None
        return reshuffled and self.deck.draw_count > 0

    def _end_round_by_fewest_cards(self, reason: str) -> None:
        fewest = min(p.hand_size for p in self.players)
        candidates = [p for p in self.players if p.hand_size == fewest]
        if len(candidates) > 1:
            lowest = min(p.hand_points() for p in candidates)
            candidates = [p for p in candidates if p.hand_points() == lowest]
        winner = candidates[0] if len(candidates) == 1 else None
        self._finish_round(winner, reason)

    def _finish_round(self, winner: Optional[Player], reason: str) -> None:
        points = 0
        if winner is not None:
            points = sum(p.hand_points() for p in self.players if p is not winner)
            winner.score += points
        self.round_winner = winner
        self.round_result = RoundResult(winner_id=winner.id if winner else None, points=points, reason=reason)
        scores = {p.id: p.score for p in self.players}
        logger.info("Round %d ended (%s): winner=%s +%d", self.round_number, reason,
                    winner.name if winner else "none", points)
        self.event_log.append(EventName.ROUND_END, winner.id if winner else None, points, reason, scores)

        if winner is not None and winner.score >= self.rules.target_score:
            self.phase = Phase.GAME_OVER
            self.winner = winner
            logger.info("Game won by %s with %d", winner.name, winner.score)
            self.event_log.append(EventName.GAME_END, winner.id, scores)
        else:
            self.phase = Phase.ROUND_OVER
