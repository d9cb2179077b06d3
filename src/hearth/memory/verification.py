"""Scheduling of memories to reconfirm with the user."""

from datetime import datetime, timedelta, timezone

from ..config import MemoryConfig
from .models import Memory
from .strength import as_utc, utcnow

_NEVER = datetime.min.replace(tzinfo=timezone.utc)


class VerificationScheduler:
    """Picks records that are stale or were flagged by a correction.

    Advisory only: the scheduler never mutates records. Flagged records
    come first, then never-accessed records, then the oldest accessed.
    """

    def __init__(self, config: MemoryConfig | None = None) -> None:
        self.config = config or MemoryConfig()

    def is_due(self, memory: Memory, now: datetime) -> bool:
        """Whether a record should be offered for reconfirmation."""
        if memory.context.get("needs_verification"):
            return True
        if memory.last_accessed is None:
            return True
        cutoff = as_utc(now) - timedelta(days=self.config.verification_stale_days)
        return as_utc(memory.last_accessed) < cutoff

    def select(
        self,
        corpus: list[Memory],
        owner: str,
        persona_id: str | None,
        limit: int,
        now: datetime | None = None,
    ) -> list[Memory]:
        if limit <= 0:
            return []
        now = now or utcnow()
        due = [
            m for m in corpus if m.visible_to(owner, persona_id) and self.is_due(m, now)
        ]
        return sorted(due, key=_verification_order)[:limit]


def _verification_order(memory: Memory) -> tuple:
    flagged = bool(memory.context.get("needs_verification"))
    last = as_utc(memory.last_accessed) if memory.last_accessed else _NEVER
    created = as_utc(memory.created_at) if memory.created_at else _NEVER
    return (not flagged, memory.last_accessed is not None, last, created)
