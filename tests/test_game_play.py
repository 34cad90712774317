"""Tests for the play/draw state machine and card effects."""

import pytest

from unotable.agent.decision import apply_ai_decision, decide_ai_turn
from unotable.engine import (
    Color,
    ConfigurationError,
    Direction,
    DrawCard,
    Game,
    Phase,
    PlayCard,
    Rules,
    RoundResult,
)
from unotable.engine.rules import is_legal_play

from helpers import card, event_names, filler, last_event, make_game, rig, wild


def test_new_game_deal() -> None:
    game = make_game(4)
    assert [p.hand_size for p in game.players] == [7, 7, 7, 7]
    assert game.deck.discard_count == 1
    assert game.get_deck_count() == 108 - 28 - 1
    assert game.total_cards() == 108
    assert game.get_top_card().value != "wild_draw_four"
    assert game.round_number == 1
    assert game.is_playing()
    assert "onTurnChange" in event_names(game)


def test_player_count_limits() -> None:
    with pytest.raises(ConfigurationError):
        Game(["solo"])
    with pytest.raises(ConfigurationError):
        Game([f"p{i}" for i in range(11)])
    # ConfigurationError is also a ValueError
    with pytest.raises(ValueError):
        Game([])


def test_names_become_computer_players() -> None:
    game = Game(["Ann", "Bob", "Cid"], seed=3)
    assert [p.id for p in game.players] == ["player_0", "player_1", "player_2"]
    assert not any(p.is_human for p in game.players)


def test_play_out_of_turn_is_rejected() -> None:
    game = make_game(2)
    c = card("red", "1")
    rig(game, [[card("red", "2"), card("blue", "2")], [c, card("blue", "3")]], top=card("red", "5"))
    log_size = len(game.get_event_log())

    assert not game.play_card("p1", c.id)
    assert game.players[1].hand_size == 2
    assert len(game.get_event_log()) == log_size


def test_illegal_card_is_rejected() -> None:
    game = make_game(2)
    bad = card("blue", "7")
    rig(game, [[bad, card("green", "1")], filler(2)], top=card("red", "5"))

    assert not game.play_card("p0", bad.id)
    assert not game.play_card("p0", "no-such-card")
    assert game.get_current_player().id == "p0"


def test_number_card_passes_turn() -> None:
    game = make_game(3)
    c = card("red", "8")
    rig(game, [[c, card("blue", "1")], filler(2), filler(2)], top=card("red", "5"))

    assert game.play_card("p0", c.id)
    assert game.get_top_card() == c
    assert game.get_current_player().id == "p1"
    played = last_event(game, "onCardPlayed")
    assert played.data == ("p0", c.id, "red_8", None)


def test_skip() -> None:
    game = make_game(3)
    skip = card("red", "skip")
    rig(game, [[skip, card("red", "1")], filler(2), filler(2)], top=card("red", "5"))

    assert game.play_card("p0", skip.id)
    assert game.get_current_player().id == "p2"
    assert last_event(game, "onActionCardPlayed").data[2] == "Skip next player"


def test_reverse_three_players() -> None:
    game = make_game(3)
    rev = card("red", "reverse")
    rig(game, [[rev, card("red", "1")], filler(2), filler(2)], top=card("red", "5"))

    assert game.play_card("p0", rev.id)
    assert game.direction is Direction.COUNTERCLOCKWISE
    assert game.get_current_player().id == "p2"
    assert game.get_next_player().id == "p1"


def test_reverse_two_players_acts_as_skip() -> None:
    game = make_game(2)
    rev = card("red", "reverse")
    rig(game, [[rev, card("red", "1")], filler(2)], top=card("red", "5"))

    assert game.play_card("p0", rev.id)
    assert game.get_current_player().id == "p0"


def test_wild_needs_a_color() -> None:
    game = make_game(2)
    w = wild()
    rig(game, [[w, card("red", "1")], filler(2)], top=card("red", "5"))

    assert not game.play_card("p0", w.id)
    assert not game.play_card("p0", w.id, chosen_color="wild")
    assert game.play_card("p0", w.id, chosen_color="blue")
    assert game.wild_color is Color.BLUE
    assert game.get_active_color() is Color.BLUE
    assert last_event(game, "onCardPlayed").data[3] == "blue"


def test_playing_a_colored_card_clears_wild_color() -> None:
    game = make_game(2)
    c = card("blue", "4")
    rig(game, [filler(2), [c, card("red", "1")]], top=wild(), current=1, wild_color=Color.BLUE)

    assert game.play_card("p1", c.id)
    assert game.wild_color is None
    assert game.get_active_color() is Color.BLUE


def test_two_player_draw_two() -> None:
    game = make_game(2)
    d2 = card("red", "draw_two")
    red8 = card("red", "8")
    rig(game, [[d2, card("red", "1")], [red8, card("green", "4")]], top=card("red", "5"), draw=filler(5))

    assert game.play_card("p0", d2.id)
    assert game.draw_penalty == 2
    assert game.get_current_player().id == "p1"
    # A pending penalty blocks every non-stacking play
    assert game.get_legal_actions("p1") == [DrawCard()]
    assert not game.play_card("p1", red8.id)

    assert game.draw_card("p1")
    assert game.players[1].hand_size == 4
    assert game.draw_penalty == 0
    assert game.get_current_player().id == "p0"
    assert last_event(game, "onCardDrawn").data == ("p1", 2, False, False)


def test_stacked_draw_twos_accumulate() -> None:
    game = make_game(3, stack_draw_two=True)
    d2s = [card(color, "draw_two") for color in ("red", "blue", "green")]
    rig(
        game,
        [[d2s[0], card("red", "1")], [d2s[1], card("red", "2")], [d2s[2], card("red", "3")]],
        top=card("red", "5"),
        draw=filler(10),
    )

    for pid, c in zip(("p0", "p1", "p2"), d2s):
        assert game.play_card(pid, c.id)
    assert game.draw_penalty == 6
    assert game.get_current_player().id == "p0"

    assert game.draw_card("p0")
    assert game.players[0].hand_size == 7
    assert not game.players[0].has_called_uno
    assert game.get_current_player().id == "p1"


def test_stacking_disabled_by_default() -> None:
    game = make_game(2)
    d2a, d2b = card("red", "draw_two"), card("blue", "draw_two")
    rig(game, [[d2a, card("red", "1")], [d2b, card("red", "2")]], top=card("red", "5"), draw=filler(5))

    assert game.play_card("p0", d2a.id)
    assert not game.play_card("p1", d2b.id)


def test_stacking_only_same_type() -> None:
    rules = Rules(stack_draw_two=True, stack_draw_four=True)
    top = card("red", "draw_two")
    assert is_legal_play(card("blue", "draw_two"), top, None, 2, "draw_two", rules)
    assert not is_legal_play(wild("wild_draw_four"), top, None, 2, "draw_two", rules)
    assert not is_legal_play(card("red", "draw_two"), wild("wild_draw_four"), Color.RED, 4, "wild_draw_four", rules)
    assert is_legal_play(wild("wild_draw_four"), wild("wild_draw_four"), Color.RED, 4, "wild_draw_four", rules)


def test_voluntary_draw_passes_turn() -> None:
    game = make_game(2)
    drawn = card("red", "9")
    rig(game, [[card("blue", "1")], filler(2)], top=card("red", "5"), draw=[drawn])

    assert game.draw_card("p0")
    assert game.players[0].has_card(drawn.id)
    assert game.get_current_player().id == "p1"
    assert last_event(game, "onCardDrawn").data == ("p0", 1, False, False)


def test_draw_refused_when_holding_a_play_if_rule_off() -> None:
    game = make_game(2, allow_draw_when_playable=False)
    rig(game, [[card("red", "1"), card("blue", "2")], filler(2)], top=card("red", "5"), draw=filler(3))

    assert not game.draw_card("p0")
    assert DrawCard() not in game.get_legal_actions("p0")
    assert game.players[0].hand_size == 2


def test_winning_a_round_scores_opponent_cards() -> None:
    game = make_game(2)
    last = card("red", "9")
    rig(
        game,
        [[last], [card("blue", "1"), wild("wild_draw_four"), card("red", "skip")]],
        top=card("red", "5"),
        draw=filler(3),
    )

    assert game.play_card("p0", last.id)
    assert game.phase is Phase.ROUND_OVER
    assert game.players[0].score == 71
    assert game.round_result == RoundResult(winner_id="p0", points=71, reason="empty_hand")
    assert last_event(game, "onRoundEnd").data[:3] == ("p0", 71, "empty_hand")
    assert not game.draw_card("p1")

    assert game.start_new_round()
    assert game.is_playing()
    assert game.round_number == 2
    assert [p.hand_size for p in game.players] == [7, 7]
    assert game.players[0].score == 71


def test_reaching_target_score_ends_game() -> None:
    game = make_game(2, target_score=100)
    last = card("red", "9")
    rig(game, [[last], [wild("wild_draw_four"), wild("wild_draw_four")]], top=card("red", "5"))

    assert game.play_card("p0", last.id)
    assert game.phase is Phase.GAME_OVER
    assert game.winner.id == "p0"
    assert last_event(game, "onGameEnd").data[0] == "p0"
    assert not game.start_new_round()

    assert game.restart_game()
    assert game.is_playing()
    assert game.winner is None
    assert [p.score for p in game.players] == [0, 0]


def test_snapshot_reflects_state() -> None:
    game = make_game(3)
    rig(game, [filler(2), filler(3), filler(4)], top=wild(), wild_color=Color.GREEN, current=1)

    snap = game.get_state()
    assert snap.current_player_id == "p1"
    assert snap.active_color is Color.GREEN
    assert [p.hand_size for p in snap.players] == [2, 3, 4]
    data = snap.to_dict()
    assert data["activeColor"] == "green"
    assert data["topCard"]["value"] == "wild"
    assert data["rules"]["targetScore"] == 500


def test_player_view_hides_other_hands() -> None:
    game = make_game(3)
    rig(game, [filler(2), filler(3), filler(4)], top=card("red", "5"))

    view = game.get_player_view("p1")
    assert view.my_hand == game.players[1].hand
    assert view.num_cards_per_player == {"p0": 2, "p1": 3, "p2": 4}
    assert view.next_player == "p1"


def test_cards_are_conserved_through_a_game() -> None:
    game = Game(["a", "b", "c", "d"], rules=Rules(stack_draw_two=True, debug_mode=True), seed=11)
    for _ in range(400):
        if not game.is_playing():
            break
        decision = decide_ai_turn(game)
        assert decision is not None
        assert apply_ai_decision(game, game.get_current_player().id, decision)
        assert game.total_cards() == 108
