"""Data models for the memory system."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

IMPORTANCE_MIN = 1
IMPORTANCE_MAX = 10


class MemoryType(str, Enum):
    """Kinds of knowledge a memory record can hold."""

    FACT = "fact"
    PREFERENCE = "preference"
    BOUNDARY = "boundary"
    MILESTONE = "milestone"
    JOKE = "joke"
    PATTERN = "pattern"
    EMOTIONAL_STATE = "emotional_state"
    SCENARIO = "scenario"


class Category:
    """Detector categories recorded in a memory's context."""

    NICKNAME = "nickname"
    PREFERENCE = "preference"
    BOUNDARY = "boundary"
    FACT = "fact"
    POSITIVE_MOMENT = "positive_moment"
    STYLE = "style"
    JOKE = "joke"
    MODEL = "model"


@dataclass(frozen=True)
class Turn:
    """A single conversational turn.

    Attributes:
        role: 'user' or 'assistant' (other roles are ignored by detectors).
        content: The turn text.
    """

    role: str
    content: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Turn":
        """Create from a {role, content} message dict."""
        return cls(role=str(data.get("role", "")), content=str(data.get("content") or ""))


@dataclass
class Memory:
    """A memory record about a user.

    Attributes:
        owner: User the memory belongs to.
        type: Kind of memory.
        content: Canonical statement of the remembered fact.
        importance: Priority weight fixed at creation (1-10).
        strength: Current relevance score (0-1).
        persona_id: Persona scope, None when shared across personas.
        context: Provenance metadata, never used for identity comparison.
        id: Database ID, None for records not yet persisted.
        created_at: When the record was created.
        last_accessed: When the record was last used or updated.
        access_count: Number of times the record was used.
    """

    owner: str
    type: MemoryType
    content: str
    importance: int = 5
    strength: float = 1.0
    persona_id: str | None = None
    context: dict[str, Any] = field(default_factory=dict)
    id: str | None = None
    created_at: datetime | None = None
    last_accessed: datetime | None = None
    access_count: int = 0

    def __post_init__(self) -> None:
        self.type = MemoryType(self.type)
        if not IMPORTANCE_MIN <= self.importance <= IMPORTANCE_MAX:
            raise ValueError(
                f"importance must be between {IMPORTANCE_MIN} and {IMPORTANCE_MAX}, "
                f"got {self.importance}"
            )
        if not 0.0 <= self.strength <= 1.0:
            raise ValueError(f"strength must be between 0 and 1, got {self.strength}")
        if self.access_count < 0:
            raise ValueError("access_count must not be negative")

    @property
    def category(self) -> str | None:
        """Detector category that produced this record, if known."""
        return self.context.get("category")

    @property
    def search_key(self) -> str | None:
        """Normalised identity key recorded at extraction time, if any."""
        return self.context.get("search_key")

    @property
    def is_shared(self) -> bool:
        """Whether the record is visible to every persona of its owner."""
        return self.persona_id is None

    def visible_to(self, owner: str, persona_id: str | None) -> bool:
        """Whether this record belongs in the context of owner + persona.

        Shared records are visible to every persona; persona-scoped records
        only to their own persona.
        """
        if self.owner != owner:
            return False
        return self.persona_id is None or self.persona_id == persona_id


@dataclass
class Candidate:
    """A not-yet-persisted extraction result awaiting a merge decision.

    Attributes:
        type: Kind of memory to create.
        content: Canonical statement.
        importance: Fixed per detector.
        category: Detector category (see Category).
        key: Normalised dedup key within the category.
        context: Extra provenance (source excerpt, turn index, ...).
        strength: Always 1.0 for fresh candidates.
    """

    type: MemoryType
    content: str
    importance: int
    category: str
    key: str
    context: dict[str, Any] = field(default_factory=dict)
    strength: float = 1.0

    @property
    def search_key(self) -> str:
        return f"{self.category}:{self.key}"

    def to_memory(self, owner: str, persona_id: str | None) -> Memory:
        """Build the record to insert for this candidate."""
        context = dict(self.context)
        context["category"] = self.category
        context["search_key"] = self.search_key
        return Memory(
            owner=owner,
            persona_id=persona_id,
            type=self.type,
            content=self.content,
            importance=self.importance,
            strength=self.strength,
            context=context,
        )


@dataclass(frozen=True)
class MemoryUpdate:
    """Instruction to rewrite an existing record.

    Attributes:
        target_id: Record to rewrite.
        new_content: Replacement content.
        reason: 'content_update' or 'contradiction'.
    """

    target_id: str
    new_content: str
    reason: str = "content_update"


@dataclass(frozen=True)
class VerificationFlag:
    """Marks an existing record as possibly outdated."""

    target_id: str
    reason: str = "correction"


@dataclass
class ExtractionResult:
    """Outcome of one extraction run."""

    new_records: list[Memory] = field(default_factory=list)
    updates: list[MemoryUpdate] = field(default_factory=list)
    flagged: list[VerificationFlag] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.new_records or self.updates or self.flagged)


@dataclass
class ApplyReport:
    """Outcome of persisting an extraction result."""

    inserted: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    flagged: list[str] = field(default_factory=list)
    failures: int = 0
