"""Strength and decay model.

Pure functions over a record's importance, access history and age. Both
the merger (on update) and the retriever (ranking, access boost) use them;
the decay pass applies decayed_strength to the stored value.
"""

from datetime import datetime, timezone

from ..config import MemoryConfig
from .models import Memory

INITIAL_STRENGTH = 1.0
UPDATED_STRENGTH = 1.0

_SECONDS_PER_DAY = 86400.0


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def idle_days(memory: Memory, now: datetime) -> float:
    """Days since the record was last accessed, or created if never accessed."""
    reference = memory.last_accessed or memory.created_at
    if reference is None:
        return 0.0
    elapsed = (as_utc(now) - as_utc(reference)).total_seconds() / _SECONDS_PER_DAY
    return max(elapsed, 0.0)


def decay_rate(importance: int, config: MemoryConfig) -> float:
    """Daily strength loss, inversely proportional to importance."""
    return config.decay_base_rate / max(importance, 1)


def decay_ceiling(memory: Memory, now: datetime, config: MemoryConfig) -> float:
    """Highest strength a record may hold after idling until now."""
    idle = max(idle_days(memory, now) - config.decay_grace_days, 0.0)
    return min(max(1.0 - decay_rate(memory.importance, config) * idle, 0.0), 1.0)


def decayed_strength(memory: Memory, now: datetime, config: MemoryConfig) -> float:
    """Strength after a decay pass at the given instant.

    Never higher than the current strength and never below 0, so repeated
    passes are monotonic.
    """
    return max(min(memory.strength, decay_ceiling(memory, now, config)), 0.0)


def effective_strength(memory: Memory, now: datetime, config: MemoryConfig) -> float:
    """Strength used for ranking at query time."""
    return decayed_strength(memory, now, config)


def boosted_strength(strength: float, config: MemoryConfig) -> float:
    """Strength after the record is used in a response."""
    return min(strength + config.access_boost, 1.0)
