"""Memory detection using an LLM."""

import json
import logging
from typing import Any

from groq import Groq

from ..models import Candidate, Category, MemoryType, Turn
from ..text import dedup_key
from .base import ASSISTANT, USER, Detector, ExtractionRun

logger = logging.getLogger(__name__)

EXTRACTION_PROMPT = """Analyze this conversation between a user and their companion and extract stable things worth remembering about the user for future conversations.

Return ONLY valid JSON:
{
  "memories": [
    {"type": "<type>", "content": "<statement about the user>", "importance": <1-10>, "key": "<short topic>"},
    ...
  ]
}

Rules:
- type is one of: fact, preference, boundary, milestone, joke, pattern, emotional_state, scenario
- content is written in third person ("User lives in Lisbon", not "I live in Lisbon")
- key is a short stable topic for the memory ("location", "favourite food")
- boundaries get importance 10, casual preferences 5-8
- Only stable information, no passing moods
- If there is nothing new, return {"memories": []}

Conversation to analyze:
"""


class ModelDetector(Detector):
    """Asks an LLM for candidates instead of matching a pattern catalogue.

    Not registered by default. A failed call or an unparseable response
    yields no candidates.
    """

    def __init__(self, llm_client: Groq, model: str = "llama-3.1-70b-versatile") -> None:
        """Initialize the detector.

        Args:
            llm_client: The Groq client for LLM calls.
            model: The model to use for extraction.
        """
        self.client = llm_client
        self.model = model

    @property
    def name(self) -> str:
        return "model"

    def detect(self, run: ExtractionRun) -> list[Candidate]:
        if not run.turns:
            return []

        full_prompt = EXTRACTION_PROMPT + self._format_conversation(run.turns)

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": full_prompt}],
                temperature=0.1,
            )
            content = response.choices[0].message.content or ""
        except Exception as e:
            logger.warning(f"Model extraction failed: {e}")
            return []

        candidates = []
        for candidate in self._parse_response(content):
            if run.claim(Category.MODEL, candidate.key):
                candidates.append(candidate)
        return candidates

    def _format_conversation(self, turns: list[Turn]) -> str:
        """Format turns into a readable conversation string."""
        lines = []
        for turn in turns:
            if turn.role == USER:
                lines.append(f"User: {turn.content}")
            elif turn.role == ASSISTANT:
                lines.append(f"Companion: {turn.content}")
        return "\n".join(lines)

    def _parse_response(self, content: str) -> list[Candidate]:
        """Parse LLM response into candidates.

        Args:
            content: The raw LLM response.

        Returns:
            List of candidates, empty on parse error.
        """
        json_str = content.strip()
        if json_str.startswith("```"):
            # Drop the markdown fence lines
            json_str = "\n".join(
                line for line in json_str.split("\n") if not line.startswith("```")
            )

        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse extraction response: {e}")
            return []

        if not isinstance(data, dict) or not isinstance(data.get("memories"), list):
            logger.warning("Invalid response structure: missing 'memories' list")
            return []

        candidates = []
        for item in data["memories"]:
            candidate = self._to_candidate(item)
            if candidate is None:
                logger.warning(f"Skipping invalid memory item: {item}")
                continue
            candidates.append(candidate)
        return candidates

    def _to_candidate(self, item: Any) -> Candidate | None:
        if not isinstance(item, dict):
            return None
        content = str(item.get("content") or "").strip()
        if not content:
            return None
        try:
            memory_type = MemoryType(item.get("type", "fact"))
            importance = int(item.get("importance", 5))
        except (TypeError, ValueError):
            return None
        importance = min(max(importance, 1), 10)
        key = dedup_key(str(item.get("key") or content))
        return Candidate(
            type=memory_type,
            content=content,
            importance=importance,
            category=Category.MODEL,
            key=f"{memory_type.value}:{key}",
            context={"model": self.model},
        )
