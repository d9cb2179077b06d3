"""Preference and boundary detection."""

import re

from ..models import Candidate, Category, MemoryType
from ..text import clip_fragment, dedup_key, sentence_around, tokens, truncate
from .base import USER, Detector, ExtractionRun

PREFERENCE_IMPORTANCE = 8
BOUNDARY_IMPORTANCE = 10

PREFERENCE_PATTERN = re.compile(
    r"\b(?:i like|i love|i enjoy|i prefer|i crave|i adore|i'm into|i am into|"
    r"i'm a fan of|i am a fan of|i appreciate|i'm a big fan of)\s+([^.!?,;\n]+)",
    re.IGNORECASE,
)

# Fragments that belong to the nickname detector.
NICKNAME_FRAGMENT = re.compile(r"^(?:being called|to be called|it when you call me)\b", re.IGNORECASE)

BOUNDARY_PATTERN = re.compile(
    r"\b(?:i\s+(?:don't|do not|won't|will not|never)\s+(?:want|like|do|enjoy|allow|let)|"
    r"i\s+hate|i\s+refuse|i'm not (?:into|comfortable)|i am not (?:into|comfortable)|"
    r"hard limit|soft limit|my limit|off[- ]limits|boundary|boundaries)\b",
    re.IGNORECASE,
)


def preference_content(fragment: str) -> str:
    return f"User likes/prefers: {fragment}"


def boundary_content(clause: str) -> str:
    return f"User boundary: {clause}"


class PreferenceDetector(Detector):
    """Captures what the user says they like, love, enjoy or prefer.

    The fragment after the preference verb is cut at the first sentence or
    clause punctuation; its normalised form is the dedup key.
    """

    @property
    def name(self) -> str:
        return "preference"

    def detect(self, run: ExtractionRun) -> list[Candidate]:
        candidates = []
        for index, turn in run.indexed(USER):
            for match in PREFERENCE_PATTERN.finditer(turn.content):
                fragment = clip_fragment(match.group(1))
                if not tokens(fragment) or NICKNAME_FRAGMENT.match(fragment):
                    continue
                key = dedup_key(fragment)
                if not run.claim(Category.PREFERENCE, key):
                    continue
                candidates.append(
                    Candidate(
                        type=MemoryType.PREFERENCE,
                        content=preference_content(fragment),
                        importance=PREFERENCE_IMPORTANCE,
                        category=Category.PREFERENCE,
                        key=key,
                        context={
                            "turn_index": index,
                            "source_excerpt": truncate(turn.content, 200),
                        },
                    )
                )
        return candidates


class BoundaryDetector(Detector):
    """Records explicit limits and refusals stated by the user."""

    @property
    def name(self) -> str:
        return "boundary"

    def detect(self, run: ExtractionRun) -> list[Candidate]:
        candidates = []
        for index, turn in run.indexed(USER):
            for match in BOUNDARY_PATTERN.finditer(turn.content):
                clause = truncate(sentence_around(turn.content, match.start(), match.end()), 300)
                if not clause:
                    continue
                key = dedup_key(clause)
                if not run.claim(Category.BOUNDARY, key):
                    continue
                candidates.append(
                    Candidate(
                        type=MemoryType.BOUNDARY,
                        content=boundary_content(clause),
                        importance=BOUNDARY_IMPORTANCE,
                        category=Category.BOUNDARY,
                        key=key,
                        context={"turn_index": index},
                    )
                )
        return candidates
