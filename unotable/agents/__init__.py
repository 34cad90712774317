"""Built-in agents."""

from unotable.agents.heuristic_agent import HeuristicAgent
from unotable.agents.human_agent import HumanAgent
from unotable.agents.llm_agent import LLMAgent
from unotable.agents.random_agent import RandomAgent

__all__ = ["HeuristicAgent", "HumanAgent", "LLMAgent", "RandomAgent"]
