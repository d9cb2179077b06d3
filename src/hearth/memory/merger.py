"""Merge decisions for extracted candidates.

Each candidate is compared against the scoped corpus and ends up as an
insert, an update or a skip. Two signals then run over the corpus itself:
explicit contradictions of stored likes rewrite the record, and
meta-corrections ("that's wrong", "I meant") flag matching records for
verification.
"""

import logging
import re

from ..config import MemoryConfig
from .detectors.base import USER
from .models import (
    Candidate,
    Category,
    ExtractionResult,
    Memory,
    MemoryType,
    MemoryUpdate,
    Turn,
    VerificationFlag,
)
from .text import TEMPLATE_WORDS, clip_fragment, normalize, stored_term, token_overlap, tokens

logger = logging.getLogger(__name__)

CONTRADICTION_PATTERN = re.compile(
    r"\b(?:i don't like|i do not like|i hate|i dislike|i'm not into|i am not into|"
    r"i no longer like|i don't enjoy)\s+(.+?)(?:[.!?,;]|$)",
    re.IGNORECASE | re.MULTILINE,
)

# Stored content that records a positive preference.
LIKING_PATTERN = re.compile(
    r"\b(?:likes|loves|enjoys|prefers|responds positively)\b", re.IGNORECASE
)
NO_LONGER_PATTERN = re.compile(r"\bno longer likes\b", re.IGNORECASE)

# Trailing filler after a negated subject ("I don't like X anymore").
TRAILING_FILLER = re.compile(r"\s+(?:anymore|any more|at all|either|now)$")

CORRECTION_PATTERN = re.compile(
    r"\b(?:that's not right|that is not right|that's wrong|that is wrong|actually|"
    r"correction|i meant|i said|not what i said)\b",
    re.IGNORECASE,
)

# Correction vocabulary and record boilerplate, ignored when matching
# corrected records.
IGNORED_WORDS = TEMPLATE_WORDS | {
    "actually", "correction", "meant", "said", "not", "right", "wrong", "that's", "what",
}

MIN_TOKEN_LENGTH = 3


def contradiction_content(subject: str) -> str:
    return f"User no longer likes: {subject}. Updated based on conversation."


class MemoryMerger:
    """Decides insert / update / skip for candidates against a corpus."""

    def __init__(self, config: MemoryConfig | None = None) -> None:
        self.config = config or MemoryConfig()

    def merge(
        self,
        candidates: list[Candidate],
        corpus: list[Memory],
        turns: list[Turn],
        owner: str,
        persona_id: str | None,
    ) -> ExtractionResult:
        """Build the extraction result for one run.

        Args:
            candidates: Detector output, in detector order.
            corpus: Existing records; only those visible to owner + persona
                are considered.
            turns: The scanned window, used for contradiction and
                correction signals.
            owner: Owner of new records.
            persona_id: Persona scope of new records.

        Returns:
            New records, update instructions, verification flags and the
            search keys of skipped candidates.
        """
        scoped = [m for m in corpus if m.id is not None and m.visible_to(owner, persona_id)]
        result = ExtractionResult()
        updated: set[str] = set()
        negations = find_negations(turns)

        # Contradictions take precedence over content updates of the same record.
        for update in self.find_contradictions(turns, scoped, candidates):
            result.updates.append(update)
            updated.add(update.target_id)

        for candidate in candidates:
            if _negated_later(candidate, negations):
                logger.debug("Dropping %s, negated later in the window", candidate.search_key)
                result.skipped.append(candidate.search_key)
                continue

            memory = candidate.to_memory(owner, persona_id)

            if any(self.equivalent(memory, pending) for pending in result.new_records):
                result.skipped.append(candidate.search_key)
                continue

            existing = self.find_equivalent(memory, scoped)
            if existing is None:
                result.new_records.append(memory)
                continue

            if normalize(existing.content) == normalize(memory.content):
                result.skipped.append(candidate.search_key)
                continue

            if existing.id in updated:
                logger.debug("Record %s already updated in this run", existing.id)
                result.skipped.append(candidate.search_key)
                continue

            result.updates.append(MemoryUpdate(target_id=existing.id, new_content=memory.content))
            updated.add(existing.id)

        result.flagged = self.find_corrections(turns, scoped, exclude=updated)
        return result

    def find_equivalent(self, memory: Memory, corpus: list[Memory]) -> Memory | None:
        """First record in corpus holding the same underlying fact."""
        for existing in corpus:
            if self.equivalent(memory, existing):
                return existing
        return None

    def equivalent(self, memory: Memory, existing: Memory) -> bool:
        """Category-specific equivalence between a new and an existing record.

        - nicknames: the stored term re-extracted from both contents is equal;
        - anything sharing type and search key is the same fact;
        - otherwise same type and identical normalised content, identical
          normalised prefix, or token overlap above the threshold.
        """
        if memory.category == Category.NICKNAME:
            term = stored_term(memory.content)
            return term is not None and term == stored_term(existing.content)

        if memory.type != existing.type:
            return False

        if memory.search_key and memory.search_key == existing.search_key:
            return True

        new_text = normalize(memory.content)
        old_text = normalize(existing.content)
        if new_text == old_text:
            return True

        prefix = self.config.near_duplicate_prefix
        if len(new_text) >= prefix and new_text[:prefix] == old_text[:prefix]:
            return True

        return token_overlap(new_text, old_text) >= self.config.near_duplicate_threshold

    def find_contradictions(
        self,
        turns: list[Turn],
        corpus: list[Memory],
        candidates: list[Candidate] | None = None,
    ) -> list[MemoryUpdate]:
        """Rewrite stored likes the user now explicitly negates.

        A negation is ignored when a liking candidate from a later turn of
        the window restates the like. At most one update per record; the
        first negation in window order wins.
        """
        candidates = candidates or []
        updates = []
        targeted: set[str] = set()
        for index, subject in find_negations(turns):
            if any(_restated_after(c, subject, index) for c in candidates):
                continue
            for memory in corpus:
                if memory.id in targeted or not _implies_liking(memory.type, memory.content):
                    continue
                if not _mentions(memory.content, subject):
                    continue
                updates.append(
                    MemoryUpdate(
                        target_id=memory.id,
                        new_content=contradiction_content(subject),
                        reason="contradiction",
                    )
                )
                targeted.add(memory.id)
        return updates

    def find_corrections(
        self,
        turns: list[Turn],
        corpus: list[Memory],
        exclude: set[str] | None = None,
    ) -> list[VerificationFlag]:
        """Flag records mentioned in a user turn that corrects the assistant."""
        exclude = exclude or set()
        corrected: set[str] = set()
        for turn in turns:
            if turn.role == USER and CORRECTION_PATTERN.search(turn.content):
                corrected.update(_meaningful(turn.content))
        if not corrected:
            return []

        flags = []
        for memory in corpus:
            if memory.id in exclude:
                continue
            if corrected & _meaningful(memory.content):
                flags.append(VerificationFlag(target_id=memory.id))
        return flags


def find_negations(turns: list[Turn]) -> list[tuple[int, str]]:
    """(window position, normalised subject) of each "I don't like X" in user turns."""
    negations = []
    for index, turn in enumerate(turns):
        if turn.role != USER:
            continue
        for match in CONTRADICTION_PATTERN.finditer(turn.content):
            subject = TRAILING_FILLER.sub("", normalize(clip_fragment(match.group(1))))
            if tokens(subject):
                negations.append((index, subject))
    return negations


def _implies_liking(memory_type: MemoryType, content: str) -> bool:
    if memory_type != MemoryType.PREFERENCE:
        return False
    if NO_LONGER_PATTERN.search(content):
        return False
    return LIKING_PATTERN.search(content) is not None


def _mentions(content: str, subject: str) -> bool:
    return re.search(rf"(?<!\w){re.escape(subject)}(?!\w)", normalize(content)) is not None


def _liking_candidate(candidate: Candidate) -> bool:
    if candidate.category == Category.NICKNAME:
        return False
    return _implies_liking(candidate.type, candidate.content)


def _negated_later(candidate: Candidate, negations: list[tuple[int, str]]) -> bool:
    """Whether a like is withdrawn by a negation at or after its own turn.

    Candidates without a turn position are treated as preceding every
    negation in the window.
    """
    if not negations or not _liking_candidate(candidate):
        return False
    position = candidate.context.get("turn_index")
    for index, subject in negations:
        if (position is None or index >= position) and _mentions(candidate.content, subject):
            return True
    return False


def _restated_after(candidate: Candidate, subject: str, index: int) -> bool:
    position = candidate.context.get("turn_index")
    if position is None or position <= index or not _liking_candidate(candidate):
        return False
    return _mentions(candidate.content, subject)


def _meaningful(text: str) -> set[str]:
    return {
        t for t in tokens(text) if len(t) >= MIN_TOKEN_LENGTH and t not in IGNORED_WORDS
    }
