"""Memory extraction from conversation windows."""

import logging
from typing import Any

from ..config import MemoryConfig
from .detectors import DetectorRegistry, ExtractionRun, default_registry
from .detectors.base import USER
from .merger import MemoryMerger
from .models import Candidate, ExtractionResult, Memory, Turn

logger = logging.getLogger(__name__)


def to_turns(window: list[Turn] | list[dict[str, Any]]) -> list[Turn]:
    """Accept Turn objects or {role, content} message dicts."""
    return [t if isinstance(t, Turn) else Turn.from_dict(t) for t in window]


class MemoryExtractor:
    """Turns a window of turns into candidates and merge decisions.

    Extraction is a pure function of its inputs: nothing is persisted
    here. Detectors run sequentially over one ExtractionRun so same-run
    deduplication sees every key already emitted.
    """

    def __init__(
        self,
        config: MemoryConfig | None = None,
        registry: DetectorRegistry | None = None,
        merger: MemoryMerger | None = None,
    ) -> None:
        """Initialize the extractor.

        Args:
            config: Memory configuration. Defaults to MemoryConfig().
            registry: Detectors to run. Defaults to the standard set.
            merger: Merge policy. Defaults to MemoryMerger(config).
        """
        self.config = config or MemoryConfig()
        self.registry = registry or default_registry(self.config)
        self.merger = merger or MemoryMerger(self.config)

    def detect(self, window: list[Turn] | list[dict[str, Any]]) -> list[Candidate]:
        """Run every detector over the window.

        Returns:
            Candidates in detector order, empty for windows with too little
            user text.
        """
        turns = to_turns(window)
        if not self._has_user_text(turns):
            return []
        return self.registry.run(ExtractionRun(turns=turns, config=self.config))

    def extract(
        self,
        window: list[Turn] | list[dict[str, Any]],
        owner: str,
        persona_id: str | None,
        corpus: list[Memory],
    ) -> ExtractionResult:
        """Extract new records and updates for one window.

        Args:
            window: Ordered turns to scan.
            owner: User the records belong to.
            persona_id: Active persona scope, None for shared records.
            corpus: Existing records of the owner.

        Returns:
            The merge decisions for this window.
        """
        turns = to_turns(window)
        if not self._has_user_text(turns):
            return ExtractionResult()
        candidates = self.detect(turns)
        result = self.merger.merge(candidates, corpus, turns, owner, persona_id)
        logger.debug(
            "Extracted %d new, %d updates, %d flagged, %d skipped",
            len(result.new_records),
            len(result.updates),
            len(result.flagged),
            len(result.skipped),
        )
        return result

    def _has_user_text(self, turns: list[Turn]) -> bool:
        user_text = "".join(t.content.strip() for t in turns if t.role == USER)
        return len(user_text) >= self.config.min_user_chars
