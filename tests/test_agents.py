"""Tests for built-in agents and the decision interface."""

from types import SimpleNamespace

import pytest

from unotable.agent.decision import AIDecision, apply_ai_decision, decide_ai_turn
from unotable.agents import HeuristicAgent, HumanAgent, LLMAgent, RandomAgent
from unotable.agents.heuristic_agent import choose_wild_color
from unotable.agents.llm_agent import _parse_action_response
from unotable.engine import Color, DrawCard, PlayCard

from helpers import card, filler, make_game, rig, wild


def _skip_or_number_position():
    game = make_game(3)
    skip, number = card("red", "skip"), card("red", "4")
    hand = [skip, number] + filler(5, "blue", "2")
    rig(game, [hand, [card("green", "1"), card("green", "2")], filler(6)], top=card("red", "5"), draw=filler(5))
    return game, skip, number


def test_random_agent_returns_legal_action() -> None:
    game, _, _ = _skip_or_number_position()
    legal = game.get_legal_actions("p0")
    agent = RandomAgent(seed=3)
    for _ in range(10):
        action = agent.get_action(game.get_player_view("p0"), legal, "p0")
        assert action in legal
        assert isinstance(action, PlayCard)
    assert agent.get_action(game.get_player_view("p0"), [], "p0") is None


def test_expert_blocks_threatening_next_player() -> None:
    game, skip, _ = _skip_or_number_position()
    agent = HeuristicAgent("expert", seed=1)
    action = agent.get_action(game.get_player_view("p0"), game.get_legal_actions("p0"), "p0")
    assert action == PlayCard(card=skip)
    assert agent.last_reasoning == "Blocking p1"


def test_expert_keeps_wilds_for_later() -> None:
    game = make_game(2)
    w, blue = wild(), card("blue", "5")
    rig(game, [[w, blue, card("blue", "7")], filler(5)], top=card("red", "5"), draw=filler(5))
    agent = HeuristicAgent("expert", seed=1)
    action = agent.get_action(game.get_player_view("p0"), game.get_legal_actions("p0"), "p0")
    assert action == PlayCard(card=blue)


def test_heuristic_draws_when_nothing_fits() -> None:
    game = make_game(2)
    rig(game, [[card("blue", "1")], filler(5)], top=card("red", "5"), draw=filler(5))
    for level in ("easy", "normal", "hard", "expert"):
        agent = HeuristicAgent(level, seed=0)
        assert agent.get_action(game.get_player_view("p0"), game.get_legal_actions("p0"), "p0") == DrawCard()


def test_wild_color_follows_hand() -> None:
    w = wild()
    hand = [w, card("green", "1"), card("green", "2"), card("red", "3")]
    assert choose_wild_color(hand, playing=w) is Color.GREEN
    assert choose_wild_color([w], playing=w) is Color.RED


def test_challenge_appetite_by_difficulty() -> None:
    game, _, _ = _skip_or_number_position()
    view = game.get_player_view("p0")
    assert not HeuristicAgent("easy").should_challenge_uno(view, "p1")
    assert HeuristicAgent("expert").should_challenge_uno(view, "p1")
    # p2 holds 6 cards
    assert HeuristicAgent("expert").should_challenge_wild_draw_four(view, "p2")
    assert HeuristicAgent("hard").should_challenge_wild_draw_four(view, "p2")
    assert not HeuristicAgent("hard").should_challenge_wild_draw_four(view, "p1")


def test_decide_ai_turn_default_agent() -> None:
    game, skip, _ = _skip_or_number_position()
    decision = decide_ai_turn(game)
    assert decision == AIDecision(action="play", card_id=skip.id, reasoning="Blocking p1")

    assert apply_ai_decision(game, "p0", decision)
    assert game.get_current_player().id == "p2"
    # Same decision again is stale
    assert not apply_ai_decision(game, "p0", decision)


def test_decide_ai_turn_replaces_illegal_answer() -> None:
    game = make_game(2)
    rig(game, [[card("red", "1"), card("blue", "9")], filler(5)], top=card("red", "5"), draw=filler(5))

    class Cheater:
        name = "cheater"

        def get_action(self, view, legal_actions, player_id):
            return PlayCard(card=card("blue", "9"))

    decision = decide_ai_turn(game, Cheater())
    assert decision.action == "draw"


def test_decide_ai_turn_outside_play() -> None:
    game = make_game(2)
    game.force_end_round()
    assert decide_ai_turn(game) is None


def test_human_agent_reads_choice_and_uno_call() -> None:
    game = make_game(2, humans=[0])
    c = card("red", "1")
    rig(game, [[c, card("blue", "2")], filler(3)], top=card("red", "5"), draw=filler(5))
    legal = game.get_legal_actions("p0")
    answers = iter([str(legal.index(PlayCard(card=c))), "y"])
    agent = HumanAgent(input_fn=lambda prompt: next(answers), output_fn=lambda text: None)

    action = agent.get_action(game.get_player_view("p0"), legal, "p0")
    assert action == PlayCard(card=c, call_uno=True)


def test_human_agent_retries_bad_input() -> None:
    game = make_game(2, humans=[0])
    rig(game, [[card("blue", "1")], filler(3)], top=card("red", "5"), draw=filler(5))
    answers = iter(["x", "99", "0"])
    agent = HumanAgent(input_fn=lambda prompt: next(answers), output_fn=lambda text: None)

    action = agent.get_action(game.get_player_view("p0"), game.get_legal_actions("p0"), "p0")
    assert action == DrawCard()


@pytest.mark.parametrize(
    "response,expected",
    [
        ('{"action_index": 1}', 1),
        ("Sure! {'action_index': 0}", 0),
        ("I pick action_index: 1 because red", 1),
        ("I will DRAW", 2),
        ("go with 0.", 0),
    ],
)
def test_parse_action_response(response, expected) -> None:
    actions = [PlayCard(card=card("red", "1")), PlayCard(card=card("red", "2")), DrawCard()]
    assert _parse_action_response(response, actions) == actions[expected]


def test_parse_action_response_gives_up() -> None:
    assert _parse_action_response("no idea", [DrawCard()]) is None


class _FakeCompletions:
    def __init__(self, replies):
        self._replies = list(replies)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self._replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=reply))])


def _fake_client(replies):
    completions = _FakeCompletions(replies)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


def test_llm_agent_uses_model_answer() -> None:
    game, _, number = _skip_or_number_position()
    legal = game.get_legal_actions("p0")
    client, completions = _fake_client([f'{{"action_index": {legal.index(PlayCard(card=number))}}}'])
    agent = LLMAgent(provider="groq", model="llama3", client=client)

    assert agent.get_action(game.get_player_view("p0"), legal, "p0") == PlayCard(card=number)
    assert completions.calls[0]["model"] == "llama3"
    assert "Your hand" in completions.calls[0]["messages"][0]["content"]


def test_llm_agent_falls_back_after_failures() -> None:
    game, skip, _ = _skip_or_number_position()
    client, completions = _fake_client([RuntimeError("down"), "no idea", RuntimeError("down")])
    agent = LLMAgent(provider="ollama", model="llama3", client=client, fallback=HeuristicAgent("expert", seed=1))

    action = agent.get_action(game.get_player_view("p0"), game.get_legal_actions("p0"), "p0")
    assert action == PlayCard(card=skip)
    assert len(completions.calls) == 3
    assert agent.last_reasoning.startswith("Fallback")


def test_llm_agent_rejects_unknown_provider() -> None:
    with pytest.raises(ValueError):
        LLMAgent(provider="carrier-pigeon")
