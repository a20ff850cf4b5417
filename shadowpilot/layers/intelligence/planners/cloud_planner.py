import os
import json
import logging
from typing import Any, Dict, List, Optional

from shadowpilot.core.errors import PlanValidationError
from shadowpilot.core.plan import ActionStep, parse_plan
from .base import PlannerInterface

logger = logging.getLogger(__name__)

# provider -> (API key variable, default model), in auto-selection order
PROVIDERS = {
    "openai": ("OPENAI_API_KEY", "gpt-4o"),
    "anthropic": ("ANTHROPIC_API_KEY", "claude-3-5-sonnet-latest"),
}

SYSTEM_PROMPT = """You are a web automation planner.
You turn an INSTRUCTION into an ordered list of browser actions for the page described by the SNAPSHOT.

The snapshot lists interactive elements. Elements inside a shadow DOM appear in their host's "shadowChildren".

Output a valid JSON object of the form:
{"actions": [
  {"sequence": 1, "action": {"kind": "goto", "url": "https://..."}},
  {"sequence": 2,
   "prerequisite": [{"action": "switchToShadowRoot", "target": "<host css selector>"}],
   "action": {"kind": "input", "target": "<placeholder, name or id of the field>", "value": "<text>"}}
]}

RULES:
- Only use the kinds "goto" and "input".
- List one "switchToShadowRoot" prerequisite per shadow host between the document and the field, outermost first.
- Copy placeholder tokens such as <SENSITIVE_0> verbatim; never guess their values.
"""


class CloudPlanner(PlannerInterface):
    """
    Planner backed by the OpenAI or Anthropic API.

    The provider is picked from OPENAI_API_KEY / ANTHROPIC_API_KEY unless
    given explicitly. Instructions must already be redacted; they are sent
    as they are, together with the JSON snapshot.
    """

    def __init__(self, provider: str = "auto", model: Optional[str] = None):
        self.provider = self._pick_provider(provider)
        key_var, default_model = PROVIDERS[self.provider]
        self.model = model or default_model
        self.client = self._make_client(os.environ.get(key_var))
        logger.info(f"[CloudPlanner] Using {self.provider} ({self.model})")

    @staticmethod
    def _pick_provider(provider: str) -> str:
        if provider != "auto":
            if provider not in PROVIDERS:
                raise ValueError(f"Unknown provider '{provider}'")
            return provider
        for name, (key_var, _) in PROVIDERS.items():
            if os.environ.get(key_var):
                return name
        raise ValueError("No API keys found for CloudPlanner. Set OPENAI_API_KEY or ANTHROPIC_API_KEY.")

    def _make_client(self, api_key: Optional[str]):
        try:
            if self.provider == "openai":
                from openai import OpenAI
                return OpenAI(api_key=api_key)
            from anthropic import Anthropic
            return Anthropic(api_key=api_key)
        except ImportError:
            raise ImportError(f"The {self.provider} client is missing: pip install shadowpilot[cloud]")

    def plan(self, instruction: str, snapshot: List[Any]) -> List[ActionStep]:
        """Ask the model for an action list and validate it."""
        nodes = json.dumps([node.to_dict() for node in snapshot], separators=(",", ":"))
        prompt = (
            f"INSTRUCTION: {instruction}\n\n"
            f"PAGE SNAPSHOT (JSON):\n{nodes}\n\n"
            "Respond with the JSON action list."
        )

        if self.provider == "openai":
            reply = self._complete_openai(prompt)
        else:
            reply = self._complete_anthropic(prompt)

        steps = parse_plan(self._load_json(reply))
        logger.info(f"[CloudPlanner] Planned {len(steps)} steps")
        return steps

    def _complete_openai(self, prompt: str) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            response_format={"type": "json_object"},
        )
        return response.choices[0].message.content

    def _complete_anthropic(self, prompt: str) -> str:
        message = self.client.messages.create(
            model=self.model,
            max_tokens=2048,
            system=SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
        )
        text = message.content[0].text
        # Replies are often wrapped in a markdown fence or surrounded by prose
        if "```json" in text:
            return text.split("```json", 1)[1].split("```", 1)[0]
        start, end = text.find("{"), text.rfind("}")
        return text[start:end + 1] if start != -1 else text

    @staticmethod
    def _load_json(content: Optional[str]) -> Dict[str, Any]:
        try:
            return json.loads(content or "")
        except json.JSONDecodeError as e:
            raise PlanValidationError(f"Planner reply is not valid JSON: {e}") from e
