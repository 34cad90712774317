"""LLM agent using OpenAI library with OpenRouter, Groq, Ollama or Hugging Face."""

import json
import logging
import os
import re
import time
from typing import Optional

from openai import OpenAI

from unotable.agents.heuristic_agent import HeuristicAgent
from unotable.engine import Action, PlayerView
from unotable.engine.rules import DrawCard

logger = logging.getLogger(__name__)

OPENROUTER_BASE = "https://openrouter.ai/api/v1"
GROQ_BASE = "https://api.groq.com/openai/v1"
OLLAMA_BASE = "http://localhost:11434/v1"
HUGGINGFACE_BASE = "https://router.huggingface.co/v1"

MAX_ATTEMPTS = 3


def _format_player_view(pv: PlayerView, player_id: str) -> str:
    """Format player view as text for the LLM."""
    lines = [
        "=== Your hand ===",
        " ".join(str(c) for c in pv.my_hand),
        "",
        "=== Top card on discard ===",
        str(pv.top_discard) if pv.top_discard else "None",
        "",
        "=== Current color to match ===",
        pv.active_color.value.upper() if pv.active_color else "any",
        "",
        "=== Other players' card counts ===",
    ]
    for pid, count in pv.num_cards_per_player.items():
        if pid != player_id:
            lines.append(f"  {pid}: {count} cards")
    lines.extend([
        "",
        "=== Direction ===",
        pv.direction.value,
        "",
        "=== Next player ===",
        pv.next_player,
        "",
        "=== Pending draw penalty (for you) ===",
        str(pv.draw_penalty),
        "",
        "=== Game History (last 10 events) ===",
    ])
    if pv.history:
        lines.extend(f"- {h}" for h in pv.history)
    else:
        lines.append("No history yet.")
    return "\n".join(lines)


def _format_legal_actions(actions: list[Action]) -> str:
    """Format legal actions as text."""
    options = []
    for i, a in enumerate(actions):
        if isinstance(a, DrawCard):
            options.append(f"{i}: DRAW")
        else:
            color = f" color={a.chosen_color.value}" if a.chosen_color else ""
            options.append(f"{i}: PLAY {a.card}{color}")
    return "\n".join(options)


def _index_from(data: object, actions: list[Action]) -> Action | None:
    if isinstance(data, dict) and "action_index" in data:
        try:
            idx = int(data["action_index"])
        except (TypeError, ValueError):
            return None
        if 0 <= idx < len(actions):
            return actions[idx]
        logger.debug("Index %d out of range (0-%d)", idx, len(actions) - 1)
    return None


def _parse_action_response(response: str, actions: list[Action]) -> Action | None:
    """Parse LLM response into an Action."""
    # 1. A JSON object, strict first, then with single quotes swapped
    json_match = re.search(r"(\{.*?\})", response, re.DOTALL)
    if json_match:
        json_str = json_match.group(1)
        for candidate in (json_str, json_str.replace("'", '"')):
            try:
                action = _index_from(json.loads(candidate), actions)
            except json.JSONDecodeError:
                continue
            if action is not None:
                return action

    # 2. "action_index": N with any quoting
    match = re.search(r'["\']?action_index["\']?\s*:\s*(\d+)', response, re.IGNORECASE)
    if match:
        idx = int(match.group(1))
        if 0 <= idx < len(actions):
            return actions[idx]
        logger.debug("Index %d out of range (0-%d) from regex", idx, len(actions) - 1)

    # 3. The word DRAW
    if "DRAW" in response.upper():
        for a in actions:
            if isinstance(a, DrawCard):
                return a

    # 4. Last resort: a standalone number
    cleaned_response = re.sub(r"[{}\[\]\"'.,:]", " ", response)
    for word in cleaned_response.split():
        if word.isdigit():
            idx = int(word)
            if 0 <= idx < len(actions):
                return actions[idx]

    return None


class LLMAgent:
    """Agent that uses an LLM to choose actions.

    Falls back to a HeuristicAgent when every attempt fails or no answer can
    be parsed.
    """

    def __init__(
        self,
        provider: str = "openrouter",
        model: str = "openai/gpt-4o-mini",
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        rate_limit: Optional[float] = None,
        client: Optional[OpenAI] = None,
        fallback: Optional[HeuristicAgent] = None,
    ):
        if provider == "openrouter":
            base_url = OPENROUTER_BASE
            key = api_key or os.environ.get("OPENROUTER_API_KEY")
        elif provider == "groq":
            base_url = GROQ_BASE
            key = api_key or os.environ.get("GROQ_API_KEY")
        elif provider == "ollama":
            base_url = os.environ.get("OLLAMA_BASE_URL", OLLAMA_BASE)
            key = "ollama"
        elif provider == "huggingface":
            base_url = HUGGINGFACE_BASE
            key = api_key or os.environ.get("HUGGINGFACE_API_KEY")
        else:
            raise ValueError(f"Unknown provider: {provider}")

        if client is None:
            if not key:
                raise ValueError(f"API key required for {provider}. Set {provider.upper()}_API_KEY or pass api_key.")
            client = OpenAI(api_key=key, base_url=base_url)

        self._client = client
        self._model = model
        self._timeout = timeout
        self._provider = provider
        self._rate_limit = rate_limit  # Requests per minute
        self._request_history: list[float] = []
        self._fallback = fallback or HeuristicAgent()
        self.last_reasoning = ""

        logger.info(
            "[%s] provider=%s base_url=%s timeout=%ss rate_limit=%s rpm",
            self.name, provider, base_url, timeout, rate_limit or "None",
        )

    @property
    def name(self) -> str:
        return f"llm-{self._model}"

    def _wait_for_rate_limit(self) -> None:
        """Block if rate limit is exceeded."""
        if not self._rate_limit:
            return

        now = time.time()
        self._request_history = [t for t in self._request_history if now - t < 60.0]

        if len(self._request_history) >= self._rate_limit:
            # Wait until the oldest request in the window expires
            wait_time = 60.0 - (now - self._request_history[0])
            if wait_time > 0:
                logger.info("[%s] Rate limit reached, waiting %.2fs", self.name, wait_time)
                time.sleep(wait_time)

        self._request_history.append(time.time())

    def _ask(self, prompt: str) -> str:
        kwargs = {
            "model": self._model,
            "messages": [{"role": "user", "content": prompt}],
            "timeout": self._timeout,
        }
        # JSON mode only where the provider is known to support it
        if "gpt-4" in self._model or "gpt-3.5" in self._model or self._provider == "groq":
            kwargs["response_format"] = {"type": "json_object"}
        resp = self._client.chat.completions.create(**kwargs)
        return resp.choices[0].message.content or ""

    def get_action(
        self,
        player_view: PlayerView,
        legal_actions: list[Action],
        player_id: str,
    ) -> Action | None:
        if not legal_actions:
            return None

        prompt = f"""You are playing UNO.
Objective: Win by playing all your cards. Match the top discard card by color (red, blue, green, yellow) or value (0-9, skip, reverse, draw_two). Wild cards can be played on anything.

{_format_player_view(player_view, player_id)}

=== Legal actions ===
{_format_legal_actions(legal_actions)}

INSTRUCTIONS:
Select the best action to win the game.
Analyze the game history and board state.
Respond with a JSON object containing the index of your chosen action.
Example: {{"action_index": 2}}
"""

        for attempt in range(1, MAX_ATTEMPTS + 1):
            start_time = time.time()
            try:
                self._wait_for_rate_limit()
                logger.debug("[%s] Attempt %d: sending request to %s", self.name, attempt, self._provider)
                content = self._ask(prompt)
            except Exception as e:
                logger.warning(
                    "[%s] Error on attempt %d after %.2fs: %s: %s",
                    self.name, attempt, time.time() - start_time, type(e).__name__, e,
                )
                continue

            logger.debug("[%s] Received response in %.2fs", self.name, time.time() - start_time)
            action = _parse_action_response(content, legal_actions)
            if action is not None:
                self.last_reasoning = f"LLM choice: {content.strip()[:200]}"
                return action
            logger.warning("[%s] Failed to parse action from response: %r", self.name, content)

        logger.warning("[%s] All retries failed, using heuristic fallback", self.name)
        action = self._fallback.get_action(player_view, legal_actions, player_id)
        self.last_reasoning = f"Fallback: {self._fallback.last_reasoning}"
        return action

    def should_challenge_uno(self, player_view: PlayerView, target_id: str) -> bool:
        return self._fallback.should_challenge_uno(player_view, target_id)

    def should_challenge_wild_draw_four(self, player_view: PlayerView, target_id: str) -> bool:
        return self._fallback.should_challenge_wild_draw_four(player_view, target_id)
