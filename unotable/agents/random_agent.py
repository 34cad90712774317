"""Random agent - uniform random legal move."""

import random
from typing import Optional

from unotable.engine import Action, PlayerView
from unotable.engine.rules import PlayCard


class RandomAgent:
    """Picks any legal action at random.

    With `prefer_play` set it only draws when nothing can be played, which
    keeps simulated games short.
    """

    def __init__(self, name: str = "random", seed: Optional[int] = None, prefer_play: bool = True):
        self._name = name
        self._rng = random.Random(seed)
        self._prefer_play = prefer_play

    @property
    def name(self) -> str:
        return self._name

    def get_action(self, view: PlayerView, actions: list[Action], player_id: str) -> Action | None:
        if not actions:
            return None
        if self._prefer_play:
            play_actions = [a for a in actions if isinstance(a, PlayCard)]
            if play_actions:
                return self._rng.choice(play_actions)
        return self._rng.choice(actions)
