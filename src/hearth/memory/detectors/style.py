"""Communication-style detection."""

import re

from ..models import Candidate, Category, MemoryType
from .base import Detector, ExtractionRun

STYLE_IMPORTANCE = 8
STYLE_KEY = "communication_style"

DIRECTIVE_PATTERN = re.compile(
    r"\b(?:tell me|describe|explain to me|answer me|look at me|listen to me|"
    r"breathe|focus on|repeat after me|show me)\b",
    re.IGNORECASE,
)

STYLE_CONTENT = (
    "User responds well to a long, directive communication style with detailed "
    "responses. Use clear direction and follow-up questions."
)


class StyleDetector(Detector):
    """Emits one style preference when the window shows a long, directive register.

    This is a run-level signal: it looks at the assistant turns of the whole
    window and produces at most one candidate per run.
    """

    @property
    def name(self) -> str:
        return "style"

    def detect(self, run: ExtractionRun) -> list[Candidate]:
        if not run.user_turns:
            return []

        min_length = run.config.style_min_length
        signal = any(
            len(turn.content) > min_length or DIRECTIVE_PATTERN.search(turn.content)
            for turn in run.assistant_turns
        )
        if not signal or not run.claim(Category.STYLE, STYLE_KEY):
            return []

        return [
            Candidate(
                type=MemoryType.PREFERENCE,
                content=STYLE_CONTENT,
                importance=STYLE_IMPORTANCE,
                category=Category.STYLE,
                key=STYLE_KEY,
            )
        ]
