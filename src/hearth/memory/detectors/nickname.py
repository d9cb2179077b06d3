"""Identity and nickname detection."""

import re

from ..models import Candidate, Category, MemoryType
from ..text import normalize, truncate
from .base import ASSISTANT, USER, Detector, ExtractionRun

NICKNAME_IMPORTANCE = 9

SELF_NAMING_PATTERNS = [
    re.compile(
        r"\b(?:you can call me|just call me|call me|i like being called|"
        r"i like to be called|i prefer to be called|i'd like to be called|"
        r"my nickname is|refer to me as|address me as)\s+"
        r"([a-z][\w'-]*(?:\s+[a-z][\w'-]*)?)",
        re.IGNORECASE,
    ),
    # Capitalised so "I'm here for you" is not read as a name.
    re.compile(r"\b(?i:i'm|i am)\s+(?:(?i:your)\s+)?([A-Z][\w'-]*)\s+(?i:to you|for you)\b"),
]

# Words that follow "call me" without being a name ("call me later").
NOT_A_NAME = frozenset(
    {
        "a", "after", "again", "an", "anything", "anytime", "back", "before",
        "by", "if", "it", "later", "maybe", "now", "please", "something",
        "sometime", "soon", "that", "the", "tomorrow", "tonight", "what",
        "whatever", "when", "whenever",
    }
)


def self_named_content(term: str) -> str:
    return f"User prefers to be called: {term}. Use this naturally in conversations."


def endearment_content(term: str) -> str:
    return f"User responds positively to being called: {term}. Use this naturally in conversations."


class NicknameDetector(Detector):
    """Finds the names and address terms the user wants to be called.

    Two signals are used:
    - explicit self-naming in user turns ("call me X", "I'm X to you");
    - configured address terms used by the assistant, kept only when the
      next user turn affirms them (agreement words or reuse of the term).

    Each normalised term produces at most one candidate per run.
    """

    def __init__(self) -> None:
        self._term_pattern: re.Pattern[str] | None = None
        self._affirm_pattern: re.Pattern[str] | None = None
        self._compiled_for: tuple[tuple[str, ...], tuple[str, ...]] | None = None

    @property
    def name(self) -> str:
        return "nickname"

    def detect(self, run: ExtractionRun) -> list[Candidate]:
        self._compile(run.config.nickname_terms, run.config.affirmation_words)
        candidates = self._self_naming(run)
        candidates.extend(self._endearments(run))
        return candidates

    def _compile(self, terms: list[str], affirmations: list[str]) -> None:
        """Build the term and affirmation regexes for the current config."""
        signature = (tuple(terms), tuple(affirmations))
        if signature == self._compiled_for:
            return
        self._term_pattern = _alternation(terms)
        self._affirm_pattern = _alternation(affirmations)
        self._compiled_for = signature

    def _self_naming(self, run: ExtractionRun) -> list[Candidate]:
        candidates = []
        known_terms = set(run.config.nickname_terms)
        blocked = NOT_A_NAME | set(run.config.name_blocklist)

        for index, turn in run.indexed(USER):
            for pattern in SELF_NAMING_PATTERNS:
                for match in pattern.finditer(turn.content):
                    term = _pick_term(match.group(1), known_terms, blocked)
                    if term is None:
                        continue
                    key = normalize(term)
                    if not run.claim(Category.NICKNAME, key):
                        continue
                    candidates.append(
                        Candidate(
                            type=MemoryType.PREFERENCE,
                            content=self_named_content(term),
                            importance=NICKNAME_IMPORTANCE,
                            category=Category.NICKNAME,
                            key=key,
                            context={
                                "extracted_nickname": term,
                                "turn_index": index,
                                "source_excerpt": truncate(turn.content, 200),
                            },
                        )
                    )
        return candidates

    def _endearments(self, run: ExtractionRun) -> list[Candidate]:
        if self._term_pattern is None:
            return []

        candidates = []
        for index, turn in run.indexed(ASSISTANT):
            reply = run.next_user_turn(index)
            if reply is None:
                continue
            for match in self._term_pattern.finditer(turn.content):
                term = normalize(match.group(0))
                if not self._affirmed(term, reply.content):
                    continue
                if not run.claim(Category.NICKNAME, term):
                    continue
                candidates.append(
                    Candidate(
                        type=MemoryType.PREFERENCE,
                        content=endearment_content(term),
                        importance=NICKNAME_IMPORTANCE,
                        category=Category.NICKNAME,
                        key=term,
                        context={
                            "term_of_endearment": term,
                            "turn_index": index,
                            "source_excerpt": truncate(reply.content, 200),
                        },
                    )
                )
        return candidates

    def _affirmed(self, term: str, reply: str) -> bool:
        """Whether a user reply accepts the term: agreement or reuse."""
        if re.search(rf"\b{re.escape(term)}\b", reply, re.IGNORECASE):
            return True
        return bool(self._affirm_pattern and self._affirm_pattern.search(reply))


def _alternation(words: list[str]) -> re.Pattern[str] | None:
    """Word-bounded, case-insensitive alternation, longest words first."""
    cleaned = sorted({w.strip() for w in words if w.strip()}, key=len, reverse=True)
    if not cleaned:
        return None
    body = "|".join(r"\s+".join(re.escape(p) for p in w.split()) for w in cleaned)
    return re.compile(rf"\b(?:{body})\b", re.IGNORECASE)


def _pick_term(captured: str, known_terms: set[str], blocked: frozenset[str]) -> str | None:
    """Choose the name from a one- or two-word capture.

    The second word is kept only when the pair is a configured term
    ("good girl"); otherwise the first word is the name, unless it is
    blocked ("call me later", "call me crazy").
    """
    words = captured.split()
    if len(words) > 1 and normalize(" ".join(words[:2])) in known_terms:
        return " ".join(words[:2])
    first = words[0].strip("'-")
    if not first or first.lower() in blocked:
        return None
    return first
