"""Game orchestration."""

from unotable.orchestration.game_runner import GameResult, GameRunner, UnoChallengeWindow
from unotable.orchestration.tournament import TournamentResult, run_tournament

__all__ = ["GameResult", "GameRunner", "UnoChallengeWindow", "TournamentResult", "run_tournament"]
