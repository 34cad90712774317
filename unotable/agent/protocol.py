"""Agent protocol - interface that computer, LLM and human agents implement."""

from typing import Protocol, runtime_checkable

from unotable.engine import Action, PlayerView


class AgentProtocol(Protocol):
    """Interface for UNO-playing agents."""

    @property
    def name(self) -> str:
        """Display name for the agent."""
        ...

    def get_action(
        self,
        player_view: PlayerView,
        legal_actions: list[Action],
        player_id: str,
    ) -> Action | None:
        """Choose an action given the player view and legal actions.

        Args:
            player_view: Filtered view with only this player's hand and public info.
            legal_actions: List of valid actions to choose from.
            player_id: This agent's player ID.

        Returns:
            One of the legal actions, or None to draw (when DrawCard is legal).
        """
        ...


@runtime_checkable
class ChallengingAgent(Protocol):
    """Optional extension: agents that decide on UNO and Wild Draw Four challenges.

    The runner asks only agents that implement these methods; anyone else
    never challenges.
    """

    def should_challenge_uno(self, player_view: PlayerView, target_id: str) -> bool:
        ...

    def should_challenge_wild_draw_four(self, player_view: PlayerView, target_id: str) -> bool:
        ...
