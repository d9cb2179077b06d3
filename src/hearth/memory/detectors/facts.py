"""Catalogue-driven personal fact detection."""

import re
from dataclasses import dataclass

from ..models import Candidate, Category, MemoryType
from ..text import truncate
from .base import USER, Detector, ExtractionRun


@dataclass(frozen=True)
class FactPattern:
    """One kind of personal fact and how to recognise it.

    Attributes:
        kind: Fact kind, also the dedup and search key ("age", "location").
        pattern: Regex matched against user turns.
        template: Content template, formatted with the match groups.
        importance: Importance of the resulting record.
    """

    kind: str
    pattern: re.Pattern[str]
    template: str
    importance: int = 6

    def render(self, match: re.Match[str]) -> str | None:
        groups = [g.strip() for g in match.groups() if g is not None]
        if any(not g for g in groups):
            return None
        return self.template.format(*groups)


_PLACE = r"([A-Z][\w'-]*(?:\s+[A-Z][\w'-]*){0,3})"

DEFAULT_FACT_PATTERNS = [
    FactPattern(
        kind="name",
        pattern=re.compile(r"\b(?i:my name is|my name's)\s+([A-Z][\w'-]*)"),
        template="User's name is {0}.",
        importance=8,
    ),
    FactPattern(
        kind="age",
        pattern=re.compile(
            r"\b(?:i'm|i am|i turned|i just turned)\s+(\d{1,2})\s*(?:years old|yrs old|yo\b|y/o)",
            re.IGNORECASE,
        ),
        template="User is {0} years old.",
        importance=7,
    ),
    FactPattern(
        kind="origin",
        pattern=re.compile(r"\b(?i:i'm from|i am from|i come from)\s+" + _PLACE),
        template="User is from {0}.",
    ),
    FactPattern(
        kind="location",
        pattern=re.compile(r"\b(?i:i live in|i'm living in|i am living in|i moved to)\s+" + _PLACE),
        template="User lives in {0}.",
    ),
    FactPattern(
        kind="remote_work",
        pattern=re.compile(r"\bi work (?:remotely|from home)\b", re.IGNORECASE),
        template="User works remotely.",
    ),
    FactPattern(
        kind="occupation",
        pattern=re.compile(
            r"\bi work as (?:an? )?([a-z][\w -]{1,40}?)(?=[.!?,;\n]| and | but |$)",
            re.IGNORECASE,
        ),
        template="User works as {0}.",
        importance=7,
    ),
    FactPattern(
        kind="workplace",
        pattern=re.compile(r"\b(?i:i work at|i work for)\s+" + _PLACE),
        template="User works at {0}.",
    ),
    FactPattern(
        kind="relationship_status",
        pattern=re.compile(
            r"\b(?:i'm|i am)\s+(married|single|divorced|engaged|widowed|separated)\b",
            re.IGNORECASE,
        ),
        template="User is {0}.",
        importance=8,
    ),
    FactPattern(
        kind="height",
        pattern=re.compile(
            r"\b(?:i'm|i am)\s+(\d'\s?\d{1,2}\"?|\d{3}\s?cm|\d(?:\.\d{1,2})?\s?m)\s+tall\b",
            re.IGNORECASE,
        ),
        template="User is {0} tall.",
    ),
    FactPattern(
        kind="weight",
        pattern=re.compile(r"\bi weigh\s+(\d{2,3}\s?(?:kg|kgs|kilos|lbs|pounds))\b", re.IGNORECASE),
        template="User weighs {0}.",
        importance=5,
    ),
    FactPattern(
        kind="pet",
        pattern=re.compile(
            r"\b(?i:i have an? |my )(dog|cat|puppy|kitten|bird|parrot|rabbit|bunny|hamster)"
            r"(?i:\s+(?:named|called)\s+|'s name is\s+|\s+is called\s+)([A-Z][\w'-]*)"
        ),
        template="User has a {0} named {1}.",
        importance=5,
    ),
]


class FactDetector(Detector):
    """Matches a fixed catalogue of factual patterns in user turns.

    Every fact kind is gated independently: at most one fact of each kind
    is emitted per run, the first mention in window order.
    """

    def __init__(self, patterns: list[FactPattern] | None = None) -> None:
        self.patterns = list(patterns) if patterns is not None else list(DEFAULT_FACT_PATTERNS)

    @property
    def name(self) -> str:
        return "facts"

    def detect(self, run: ExtractionRun) -> list[Candidate]:
        candidates = []
        for fact in self.patterns:
            for index, turn in run.indexed(USER):
                match = fact.pattern.search(turn.content)
                if match is None:
                    continue
                content = fact.render(match)
                if content is None or not run.claim(Category.FACT, fact.kind):
                    continue
                candidates.append(
                    Candidate(
                        type=MemoryType.FACT,
                        content=content,
                        importance=fact.importance,
                        category=Category.FACT,
                        key=fact.kind,
                        context={
                            "fact_kind": fact.kind,
                            "turn_index": index,
                            "source_excerpt": truncate(turn.content, 200),
                        },
                    )
                )
                break
        return candidates
