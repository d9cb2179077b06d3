"""Tests for memory data models."""

import pytest

from hearth.memory.models import (
    Candidate,
    Category,
    ExtractionResult,
    Memory,
    MemoryType,
    MemoryUpdate,
    Turn,
)


class TestMemory:
    """Tests for the Memory dataclass."""

    def test_defaults(self):
        """New records start at full strength with no access history."""
        memory = Memory(owner="u1", type=MemoryType.FACT, content="User is 30 years old.")
        assert memory.strength == 1.0
        assert memory.importance == 5
        assert memory.access_count == 0
        assert memory.last_accessed is None
        assert memory.persona_id is None
        assert memory.context == {}

    def test_type_coerced_from_string(self):
        """String types are converted to MemoryType."""
        memory = Memory(owner="u1", type="boundary", content="x")
        assert memory.type is MemoryType.BOUNDARY

    def test_unknown_type_rejected(self):
        """Unknown types raise ValueError."""
        with pytest.raises(ValueError):
            Memory(owner="u1", type="gossip", content="x")

    @pytest.mark.parametrize("importance", [0, 11, -3])
    def test_importance_out_of_range(self, importance: int):
        """Importance must be within 1..10."""
        with pytest.raises(ValueError, match="importance"):
            Memory(owner="u1", type="fact", content="x", importance=importance)

    @pytest.mark.parametrize("strength", [-0.1, 1.01])
    def test_strength_out_of_range(self, strength: float):
        """Strength must be within 0..1."""
        with pytest.raises(ValueError, match="strength"):
            Memory(owner="u1", type="fact", content="x", strength=strength)

    def test_negative_access_count_rejected(self):
        with pytest.raises(ValueError):
            Memory(owner="u1", type="fact", content="x", access_count=-1)

    def test_category_and_search_key_from_context(self):
        """category and search_key are read from context."""
        memory = Memory(
            owner="u1",
            type="fact",
            content="x",
            context={"category": "fact", "search_key": "fact:age"},
        )
        assert memory.category == "fact"
        assert memory.search_key == "fact:age"

    def test_shared_record_visible_to_every_persona(self):
        """A record without persona is visible to all personas of its owner."""
        memory = Memory(owner="u1", type="fact", content="x")
        assert memory.is_shared
        assert memory.visible_to("u1", None)
        assert memory.visible_to("u1", "p1")
        assert not memory.visible_to("u2", "p1")

    def test_scoped_record_visible_only_to_its_persona(self):
        """A persona-scoped record is hidden from other personas."""
        memory = Memory(owner="u1", type="fact", content="x", persona_id="p1")
        assert not memory.is_shared
        assert memory.visible_to("u1", "p1")
        assert not memory.visible_to("u1", "p2")
        assert not memory.visible_to("u1", None)


class TestCandidate:
    """Tests for Candidate."""

    def test_search_key(self):
        candidate = Candidate(
            type=MemoryType.FACT,
            content="User is 30 years old.",
            importance=7,
            category=Category.FACT,
            key="age",
        )
        assert candidate.search_key == "fact:age"

    def test_to_memory_records_provenance(self):
        """to_memory copies fields and tags category and search key."""
        candidate = Candidate(
            type=MemoryType.PREFERENCE,
            content="User likes/prefers: tea",
            importance=8,
            category=Category.PREFERENCE,
            key="tea",
            context={"turn_index": 0},
        )
        memory = candidate.to_memory("u1", "p1")

        assert memory.owner == "u1"
        assert memory.persona_id == "p1"
        assert memory.type is MemoryType.PREFERENCE
        assert memory.importance == 8
        assert memory.strength == 1.0
        assert memory.id is None
        assert memory.context["category"] == "preference"
        assert memory.context["search_key"] == "preference:tea"
        assert memory.context["turn_index"] == 0
        assert "category" not in candidate.context


class TestTurn:
    """Tests for Turn."""

    def test_from_dict(self):
        turn = Turn.from_dict({"role": "user", "content": "hi"})
        assert turn == Turn(role="user", content="hi")

    def test_from_dict_missing_content(self):
        """Missing or None content becomes an empty string."""
        turn = Turn.from_dict({"role": "assistant", "content": None})
        assert turn.content == ""


class TestExtractionResult:
    """Tests for ExtractionResult."""

    def test_is_empty(self):
        assert ExtractionResult().is_empty

    def test_skips_alone_are_empty(self):
        """Skip decisions have no side effects."""
        assert ExtractionResult(skipped=["nickname:star"]).is_empty

    def test_updates_are_not_empty(self):
        result = ExtractionResult(updates=[MemoryUpdate(target_id="a", new_content="b")])
        assert not result.is_empty
