"""Rules configuration tests."""

import logging

from unotable.engine import AIDifficulty, DeadlockResolution, Game, Rules


def test_defaults_follow_official_rules() -> None:
    rules = Rules()
    assert not rules.stack_draw_two
    assert not rules.stack_draw_four
    assert rules.allow_draw_when_playable
    assert rules.enable_uno_challenges
    assert rules.deadlock_resolution is DeadlockResolution.END_ROUND
    assert rules.ai_difficulty is AIDifficulty.EXPERT
    assert rules.target_score == 500
    assert rules.hand_size == 7
    assert rules.wild_draw_four_challenge_penalty == 2


def test_out_of_range_values_are_clamped(caplog) -> None:
    with caplog.at_level(logging.WARNING):
        rules = Rules(target_score=50, wild_card_skip=9, uno_challenge_window=-5, max_game_time=-1, hand_size=40)
    assert rules.target_score == 100
    assert rules.wild_card_skip == 3
    assert rules.uno_challenge_window == 0
    assert rules.max_game_time == 0
    assert rules.hand_size == 15
    assert "target_score" in caplog.text

    assert Rules(target_score=5000).target_score == 1000


def test_non_numeric_value_falls_back_to_default() -> None:
    assert Rules(target_score="lots").target_score == 500


def test_unknown_enum_value_falls_back(caplog) -> None:
    with caplog.at_level(logging.WARNING):
        rules = Rules(deadlock_resolution="panic", ai_difficulty="godlike")
    assert rules.deadlock_resolution is DeadlockResolution.END_ROUND
    assert rules.ai_difficulty is AIDifficulty.EXPERT
    assert Rules(deadlock_resolution="force_reshuffle").deadlock_resolution is DeadlockResolution.FORCE_RESHUFFLE


def test_from_dict_accepts_camel_and_snake_case(caplog) -> None:
    with caplog.at_level(logging.WARNING):
        rules = Rules.from_dict({"stackDrawTwo": True, "wild_card_skip": 2, "aiDifficulty": "easy", "noSuchRule": 1})
    assert rules.stack_draw_two
    assert rules.wild_card_skip == 2
    assert rules.ai_difficulty is AIDifficulty.EASY
    assert "noSuchRule" in caplog.text


def test_to_dict_uses_camel_case() -> None:
    data = Rules(enable_jump_in=True).to_dict()
    assert data["enableJumpIn"] is True
    assert data["deadlockResolution"] == "end_round"
    assert data["unoChallengeWindow"] == 2000
    assert Rules.from_dict(data) == Rules(enable_jump_in=True)


def test_replace_revalidates() -> None:
    rules = Rules().replace(wild_card_skip=7, stack_draw_four=True)
    assert rules.wild_card_skip == 3
    assert rules.stack_draw_four


def test_game_accepts_rule_mapping() -> None:
    game = Game(["a", "b"], rules={"handSize": 5, "targetScore": 200}, seed=2)
    assert game.rules.target_score == 200
    assert [p.hand_size for p in game.players] == [5, 5]
