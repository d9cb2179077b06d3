"""Playful-moment detection."""

import re

from ..models import Candidate, Category, MemoryType
from ..text import dedup_key, truncate
from .base import USER, Detector, ExtractionRun

JOKE_IMPORTANCE = 5

LAUGHTER_PATTERN = re.compile(r"\b(?:lol|lmao|haha+|hehe+|funny|joke|hilarious)\b", re.IGNORECASE)


class HumorDetector(Detector):
    """Keeps the first playful user turn of a window as a shared joke."""

    @property
    def name(self) -> str:
        return "humor"

    def detect(self, run: ExtractionRun) -> list[Candidate]:
        for index, turn in run.indexed(USER):
            if not LAUGHTER_PATTERN.search(turn.content):
                continue
            excerpt = truncate(turn.content, 200)
            key = dedup_key(excerpt, 60)
            if not run.claim(Category.JOKE, key):
                continue
            return [
                Candidate(
                    type=MemoryType.JOKE,
                    content=f"Shared a playful moment: {excerpt}",
                    importance=JOKE_IMPORTANCE,
                    category=Category.JOKE,
                    key=key,
                    context={"turn_index": index},
                )
            ]
        return []
