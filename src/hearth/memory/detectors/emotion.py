"""Positive emotional-moment detection."""

import re

from ..models import Candidate, Category, MemoryType
from ..text import dedup_key, normalize, sentence_span, truncate
from .base import USER, Detector, ExtractionRun

POSITIVE_MOMENT_IMPORTANCE = 7
MOMENT_KEY_LENGTH = 60

AFFECT_PATTERN = re.compile(
    r"\b(?:i'm|i am|i feel|i felt|i was|i'm so|i am so|i feel so)\s+(?:so\s+|really\s+|very\s+)?"
    r"(happy|glad|excited|thrilled|delighted|pleased|grateful|thankful|relieved|"
    r"amazing|wonderful|safe|loved|proud|calm|at peace)\b"
    r"|\b(?:that|it|this)\s+(?:made|makes)\s+me\s+(?:feel\s+)?(?:so\s+)?"
    r"(happy|glad|smile|good|great|safe|relieved)\b"
    r"|\b(?:that|it|this)\s+(?:was|felt)\s+(?:so\s+)?(great|amazing|wonderful|good|lovely)\b"
    r"|\bi\s+(enjoyed)\s+(?:that|it|this)\b",
    re.IGNORECASE,
)

CAUSE_PATTERN = re.compile(r"\b(?:when|after|because|since|that)\s+(.+)", re.IGNORECASE)


def moment_content(clause: str) -> str:
    return f"User felt happy/positive about: {clause}. Reference this to bring them joy."


class EmotionDetector(Detector):
    """Records moments the user describes with positive affect.

    The clause that explains the feeling ("... because you remembered my
    birthday") is kept when present, otherwise the whole sentence. Moments
    are deduplicated by a truncated normalised key of that clause.
    """

    @property
    def name(self) -> str:
        return "emotion"

    def detect(self, run: ExtractionRun) -> list[Candidate]:
        candidates = []
        for index, turn in run.indexed(USER):
            for match in AFFECT_PATTERN.finditer(turn.content):
                begin, stop = sentence_span(turn.content, match.start(), match.end())
                sentence = turn.content[begin:stop]
                clause = _cause(sentence, match.end() - begin)
                clause = truncate(clause, 200)
                if not clause:
                    continue
                key = dedup_key(clause, MOMENT_KEY_LENGTH)
                if not run.claim(Category.POSITIVE_MOMENT, key):
                    continue
                emotion = normalize(next(g for g in match.groups() if g))
                candidates.append(
                    Candidate(
                        type=MemoryType.EMOTIONAL_STATE,
                        content=moment_content(clause),
                        importance=POSITIVE_MOMENT_IMPORTANCE,
                        category=Category.POSITIVE_MOMENT,
                        key=key,
                        context={
                            "emotion": emotion,
                            "turn_index": index,
                            "source_excerpt": truncate(turn.content, 200),
                        },
                    )
                )
        return candidates


def _cause(sentence: str, after: int) -> str:
    """The explaining clause following the affect words, or the whole sentence."""
    match = CAUSE_PATTERN.search(sentence, max(after, 0))
    if match and match.group(1).strip():
        return match.group(1).strip()
    return sentence.strip()
