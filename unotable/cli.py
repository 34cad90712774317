"""CLI entry point."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import typer
from dotenv import load_dotenv

if TYPE_CHECKING:
    from unotable.agent.protocol import AgentProtocol
    from unotable.engine import Rules

# Load environment variables from .env file
load_dotenv()

app = typer.Typer(help="UNO game with computer, LLM and human agents")


def _parse_value(raw: str) -> Any:
    lowered = raw.strip().lower()
    if lowered in ("true", "yes", "on"):
        return True
    if lowered in ("false", "no", "off"):
        return False
    try:
        return int(raw)
    except ValueError:
        return raw.strip()


def _parse_rules(rule_specs: Optional[List[str]]) -> "Rules":
    from unotable.engine import Rules

    values: Dict[str, Any] = {}
    for spec in rule_specs or []:
        if "=" not in spec:
            raise typer.BadParameter(f"Rules are key=value, got {spec!r}")
        key, raw = spec.split("=", 1)
        values[key.strip()] = _parse_value(raw)
    return Rules.from_dict(values)


def _parse_agents(
    agent_specs: str,
    llm_provider: str,
    llm_model: str,
    rules: "Rules",
    seed: Optional[int],
) -> dict[str, "AgentProtocol"]:
    from unotable.agents import HeuristicAgent, HumanAgent, LLMAgent, RandomAgent

    parts = [s.strip().lower() for s in agent_specs.split(",") if s.strip()]
    agents: dict[str, AgentProtocol] = {}
    for i, part in enumerate(parts):
        pid = f"player_{i}"
        if ":" in part:
            kind, option = part.split(":", 1)
        else:
            kind, option = part, None
        agent_seed = None if seed is None else seed + i

        if kind == "llm":
            agents[pid] = LLMAgent(provider=llm_provider, model=option or llm_model)
        elif kind == "human":
            agents[pid] = HumanAgent(name=f"Human_{i}")
        elif kind == "heuristic":
            agents[pid] = HeuristicAgent(difficulty=option or rules.ai_difficulty, seed=agent_seed)
        elif kind == "random":
            agents[pid] = RandomAgent(name=f"random_{i}", seed=agent_seed)
        else:
            raise typer.BadParameter(
                f"Unknown agent type: {kind}. Use 'heuristic', 'random', 'llm' or 'human'."
            )
    return agents


def _setup_logging(level: str, rules: "Rules") -> None:
    if rules.debug_mode:
        level = "DEBUG"
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


RULE_HELP = "Rule override as key=value, repeatable (e.g. --rule stackDrawTwo=true --rule targetScore=200)"


@app.command()
def play(
    agents: str = typer.Option(
        "human,heuristic,heuristic,heuristic",
        "--agents",
        "-a",
        help="Comma-separated: heuristic[:difficulty], random, llm[:model_name], human",
    ),
    llm_provider: str = typer.Option(
        "openrouter",
        "--llm-provider",
        "-p",
        help="LLM provider: openrouter, groq, ollama or huggingface",
    ),
    llm_model: str = typer.Option(
        "openai/gpt-4o-mini",
        "--llm-model",
        "-m",
        help="Model name (e.g. openai/gpt-4o-mini, meta-llama/llama-3-8b-instruct)",
    ),
    rule: Optional[List[str]] = typer.Option(None, "--rule", "-r", help=RULE_HELP),
    rounds: Optional[int] = typer.Option(None, "--rounds", help="Stop after this many rounds"),
    seed: Optional[int] = typer.Option(None, "--seed", "-s", help="Random seed"),
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level"),
) -> None:
    """Run a single UNO game."""
    from unotable.orchestration.game_runner import GameRunner

    rules = _parse_rules(rule)
    _setup_logging(log_level, rules)
    agent_map = _parse_agents(agents, llm_provider, llm_model, rules, seed)
    runner = GameRunner(agent_map, seed=seed, rules=rules, max_rounds=rounds)
    result = runner.run()
    for i, round_result in enumerate(result.rounds, start=1):
        typer.echo(f"Round {i}: {round_result.winner_id or 'draw'} +{round_result.points} ({round_result.reason})")
    typer.echo(f"Winner: {result.winner or 'None (no one reached the target score)'}")
    typer.echo(f"Turns: {result.num_turns}")
    for pid, score in sorted(result.scores.items(), key=lambda x: -x[1]):
        typer.echo(f"  {pid} ({agent_map[pid].name}): {score}")


@app.command()
def tournament(
    agents: str = typer.Option(
        "heuristic:expert,heuristic:easy",
        "--agents",
        "-a",
        help="Comma-separated agent types (e.g. heuristic:hard,random,llm:llama3)",
    ),
    games: int = typer.Option(100, "--games", "-g", help="Number of games"),
    llm_provider: str = typer.Option(
        "openrouter",
        "--llm-provider",
        "-p",
        help="LLM provider: openrouter, groq, ollama or huggingface",
    ),
    llm_model: str = typer.Option(
        "openai/gpt-4o-mini",
        "--llm-model",
        "-m",
        help="Model name",
    ),
    rule: Optional[List[str]] = typer.Option(None, "--rule", "-r", help=RULE_HELP),
    rounds: Optional[int] = typer.Option(None, "--rounds", help="Rounds per game (default: play to target score)"),
    seed: Optional[int] = typer.Option(None, "--seed", "-s", help="Random seed"),
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level"),
) -> None:
    """Run a tournament."""
    from unotable.orchestration.tournament import run_tournament

    rules = _parse_rules(rule)
    _setup_logging(log_level, rules)
    agent_map = _parse_agents(agents, llm_provider, llm_model, rules, seed)
    result = run_tournament(agent_map, num_games=games, seed=seed, rules=rules, max_rounds=rounds)
    typer.echo(f"Tournament results ({result.games} games, {result.draws} without winner):")
    for pid, w in sorted(result.wins.items(), key=lambda x: -x[1]):
        typer.echo(f"  {pid} ({agent_map[pid].name}): {w} wins, {result.total_scores[pid]} points")


if __name__ == "__main__":
    app()
