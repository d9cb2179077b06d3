"""Selection and ranking of memories for a generation request."""

from datetime import datetime, timezone

from ..config import MemoryConfig
from .models import Category, Memory
from .strength import as_utc, effective_strength, utcnow
from .text import stored_term

_NEVER = datetime.min.replace(tzinfo=timezone.utc)


class MemoryRetriever:
    """Ranks a scoped corpus into the list injected into context.

    Base order is importance descending, then strength descending. Two
    categories are handled before the base ranking:

    - nicknames are deduplicated per term and ordered by the configured
      priority list, so identity framing is stable between turns;
    - positive moments rotate: the least recently and least often used are
      picked first, so the same anecdote is not repeated every turn.
    """

    def __init__(self, config: MemoryConfig | None = None) -> None:
        self.config = config or MemoryConfig()

    def select(
        self,
        corpus: list[Memory],
        owner: str,
        persona_id: str | None,
        budget: int,
        now: datetime | None = None,
    ) -> list[Memory]:
        """Pick up to budget records visible to owner + persona.

        Args:
            corpus: Candidate records, typically the owner's corpus.
            owner: Owner to select for.
            persona_id: Active persona, None for shared records only.
            budget: Maximum number of records returned.
            now: Reference time for effective strength.

        Returns:
            Records in injection order.
        """
        if budget <= 0:
            return []
        now = now or utcnow()

        scoped = [m for m in corpus if m.visible_to(owner, persona_id)]

        nicknames: list[Memory] = []
        moments: list[Memory] = []
        rest: list[Memory] = []
        for memory in scoped:
            if _nickname_term(memory) is not None:
                nicknames.append(memory)
            elif memory.category == Category.POSITIVE_MOMENT:
                moments.append(memory)
            else:
                rest.append(memory)

        selected = self.rank_nicknames(nicknames, now)
        selected += self.rotate_moments(moments)
        selected += self.rank(rest, now)
        return selected[:budget]

    def rank(self, memories: list[Memory], now: datetime) -> list[Memory]:
        """Base ranking: importance, then effective strength, both descending."""
        return sorted(
            memories,
            key=lambda m: (-m.importance, -effective_strength(m, now, self.config)),
        )

    def rank_nicknames(self, memories: list[Memory], now: datetime) -> list[Memory]:
        """One record per term, in fixed priority order."""
        by_term: dict[str, Memory] = {}
        for memory in self.rank(memories, now):
            term = _nickname_term(memory)
            if term is not None and term not in by_term:
                by_term[term] = memory

        terms = sorted(by_term, key=lambda t: (self.config.nickname_rank(t), t))
        return [by_term[t] for t in terms][: self.config.max_nicknames]

    def rotate_moments(self, memories: list[Memory]) -> list[Memory]:
        """Least recently used moments first, then least often used."""

        def rotation_key(memory: Memory) -> tuple:
            last = as_utc(memory.last_accessed) if memory.last_accessed else _NEVER
            created = as_utc(memory.created_at) if memory.created_at else _NEVER
            return (memory.last_accessed is not None, last, memory.access_count, created)

        return sorted(memories, key=rotation_key)[: self.config.positive_moment_slots]


def _nickname_term(memory: Memory) -> str | None:
    """Term of a nickname record, None for any other record."""
    return stored_term(memory.content)
