"""Tests for the strength and decay model."""

from datetime import datetime, timedelta, timezone

import pytest

from hearth.config import MemoryConfig
from hearth.memory.models import Memory
from hearth.memory.strength import (
    boosted_strength,
    decay_rate,
    decayed_strength,
    effective_strength,
    idle_days,
)

NOW = datetime(2026, 6, 1, tzinfo=timezone.utc)


@pytest.fixture
def config() -> MemoryConfig:
    return MemoryConfig()


def make_memory(importance: int = 5, strength: float = 1.0, **kwargs) -> Memory:
    kwargs.setdefault("created_at", NOW)
    return Memory(
        owner="u1",
        type="preference",
        content="User likes/prefers: tea",
        importance=importance,
        strength=strength,
        **kwargs,
    )


class TestIdleDays:
    """Tests for idle time."""

    def test_from_created_at_when_never_accessed(self):
        memory = make_memory(created_at=NOW - timedelta(days=10))
        assert idle_days(memory, NOW) == pytest.approx(10.0)

    def test_from_last_accessed(self):
        memory = make_memory(
            created_at=NOW - timedelta(days=100),
            last_accessed=NOW - timedelta(days=2),
        )
        assert idle_days(memory, NOW) == pytest.approx(2.0)

    def test_naive_datetimes_are_utc(self):
        memory = make_memory(created_at=datetime(2026, 5, 31))
        assert idle_days(memory, NOW) == pytest.approx(1.0)

    def test_future_timestamps_clamp_to_zero(self):
        memory = make_memory(created_at=NOW + timedelta(days=1))
        assert idle_days(memory, NOW) == 0.0


class TestDecay:
    """Tests for decay."""

    def test_no_decay_within_grace_period(self, config: MemoryConfig):
        memory = make_memory(created_at=NOW - timedelta(days=20))
        assert decayed_strength(memory, NOW, config) == 1.0

    def test_decays_after_grace_period(self, config: MemoryConfig):
        memory = make_memory(importance=5, created_at=NOW - timedelta(days=40))
        # 10 idle days past grace at 0.05 / 5 per day
        assert decayed_strength(memory, NOW, config) == pytest.approx(0.9)

    def test_high_importance_decays_slower(self, config: MemoryConfig):
        created = NOW - timedelta(days=60)
        casual = decayed_strength(make_memory(importance=2, created_at=created), NOW, config)
        boundary = decayed_strength(make_memory(importance=10, created_at=created), NOW, config)
        assert boundary > casual

    def test_rate_inverse_to_importance(self, config: MemoryConfig):
        assert decay_rate(10, config) == pytest.approx(decay_rate(1, config) / 10)

    def test_never_below_zero(self, config: MemoryConfig):
        memory = make_memory(importance=1, created_at=NOW - timedelta(days=10_000))
        assert decayed_strength(memory, NOW, config) == 0.0

    def test_repeated_passes_are_monotonic(self, config: MemoryConfig):
        """Without access, decay never raises strength and stays within [0, 1]."""
        memory = make_memory(importance=3, created_at=NOW - timedelta(days=31))
        previous = memory.strength
        for day in range(0, 2000, 7):
            memory.strength = decayed_strength(memory, NOW + timedelta(days=day), config)
            assert 0.0 <= memory.strength <= previous
            previous = memory.strength
        assert memory.strength == 0.0

    def test_repeated_pass_at_same_instant_is_stable(self, config: MemoryConfig):
        memory = make_memory(created_at=NOW - timedelta(days=50))
        memory.strength = decayed_strength(memory, NOW, config)
        once = memory.strength
        memory.strength = decayed_strength(memory, NOW, config)
        assert memory.strength == once

    def test_decay_keeps_lower_strength(self, config: MemoryConfig):
        """A record already below the ceiling is not raised."""
        memory = make_memory(strength=0.3, created_at=NOW - timedelta(days=31))
        assert decayed_strength(memory, NOW, config) == 0.3

    def test_effective_strength_matches_decay(self, config: MemoryConfig):
        memory = make_memory(created_at=NOW - timedelta(days=40))
        assert effective_strength(memory, NOW, config) == decayed_strength(memory, NOW, config)


class TestBoost:
    """Tests for access boost."""

    def test_boost(self, config: MemoryConfig):
        assert boosted_strength(0.5, config) == pytest.approx(0.6)

    def test_boost_capped(self, config: MemoryConfig):
        assert boosted_strength(0.95, config) == 1.0
