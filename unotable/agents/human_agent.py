"""Human agent - reads actions from terminal."""

from dataclasses import replace
from typing import Callable

from unotable.engine import Action, PlayerView
from unotable.engine.rules import DrawCard, PlayCard


class HumanAgent:
    """Agent that prompts the human for input via terminal."""

    def __init__(
        self,
        name: str = "human",
        input_fn: Callable[[str], str] = input,
        output_fn: Callable[[str], None] = print,
    ):
        self._name = name
        self._input = input_fn
        self._print = output_fn

    @property
    def name(self) -> str:
        return self._name

    def _ask_yes_no(self, question: str) -> bool:
        try:
            return self._input(f"{question} [y/N]: ").strip().lower() in ("y", "yes")
        except EOFError:
            return False

    def get_action(
        self,
        player_view: PlayerView,
        legal_actions: list[Action],
        player_id: str,
    ) -> Action | None:
        if not legal_actions:
            return None

        color = player_view.active_color.value if player_view.active_color else "any"
        self._print("\n--- Your turn ---")
        self._print("Your hand: " + " ".join(str(c) for c in player_view.my_hand))
        self._print(f"Top discard: {player_view.top_discard} (color: {color})")
        if player_view.draw_penalty:
            self._print(f"Pending penalty: draw {player_view.draw_penalty}")
        others = ", ".join(
            f"{pid}={n}" for pid, n in player_view.num_cards_per_player.items() if pid != player_id
        )
        self._print(f"Opponents: {others}")
        self._print("\nLegal actions:")
        for i, a in enumerate(legal_actions):
            if isinstance(a, DrawCard):
                self._print(f"  {i}: DRAW")
            else:
                extra = f" (choose color: {a.chosen_color.value})" if a.chosen_color else ""
                self._print(f"  {i}: PLAY {a.card}{extra}")

        action = self._read_choice(legal_actions)
        if isinstance(action, PlayCard):
            action = self._complete_play(action, player_view, player_id)
        return action

    def _read_choice(self, legal_actions: list[Action]) -> Action:
        while True:
            try:
                raw = self._input("Enter number: ").strip()
                idx = int(raw)
                if 0 <= idx < len(legal_actions):
                    return legal_actions[idx]
            except ValueError:
                pass
            except EOFError:
                return next((a for a in legal_actions if isinstance(a, DrawCard)), legal_actions[0])
            self._print("Invalid. Try again.")

    def _complete_play(self, action: PlayCard, view: PlayerView, player_id: str) -> PlayCard:
        """Ask for the optional parts of a play: a swap target and the UNO call."""
        rules = view.rules
        wants_target = (action.card.value == "7" and rules.get("enableSevenZero")) or (
            action.card.value == "wild" and rules.get("enableSwapHands")
        )
        if wants_target:
            others = [pid for pid in view.player_order if pid != player_id]
            self._print("Swap hands with: " + ", ".join(f"{i}: {pid}" for i, pid in enumerate(others)))
            try:
                idx = int(self._input("Enter number (blank for default): ").strip())
                if 0 <= idx < len(others):
                    action = replace(action, target_player_id=others[idx])
            except (ValueError, EOFError):
                pass

        if len(view.my_hand) == 2 and self._ask_yes_no("Call UNO?"):
            action = replace(action, call_uno=True)
        return action

    def should_challenge_uno(self, player_view: PlayerView, target_id: str) -> bool:
        return self._ask_yes_no(f"{target_id} has one card and did not call UNO. Challenge?")

    def should_challenge_wild_draw_four(self, player_view: PlayerView, target_id: str) -> bool:
        return self._ask_yes_no(f"Challenge {target_id}'s Wild Draw Four?")
