"""Base detector interface and registry."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from ...config import MemoryConfig
from ..models import Candidate, Turn

logger = logging.getLogger(__name__)

USER = "user"
ASSISTANT = "assistant"


@dataclass
class ExtractionRun:
    """State shared by all detectors during one extraction call.

    Attributes:
        turns: The ordered window being scanned.
        config: Memory configuration (catalogues and thresholds).
        seen: (category, key) pairs already emitted in this run.
    """

    turns: list[Turn]
    config: MemoryConfig
    seen: set[tuple[str, str]] = field(default_factory=set)

    def claim(self, category: str, key: str) -> bool:
        """Reserve a dedup key. Returns False if it was already emitted."""
        marker = (category, key)
        if not key or marker in self.seen:
            return False
        self.seen.add(marker)
        return True

    def indexed(self, role: str) -> list[tuple[int, Turn]]:
        """Turns of one role, with their position in the window."""
        return [(i, t) for i, t in enumerate(self.turns) if t.role == role]

    @property
    def user_turns(self) -> list[Turn]:
        return [t for t in self.turns if t.role == USER]

    @property
    def assistant_turns(self) -> list[Turn]:
        return [t for t in self.turns if t.role == ASSISTANT]

    def next_user_turn(self, position: int) -> Turn | None:
        """First user turn after the given window position."""
        for turn in self.turns[position + 1 :]:
            if turn.role == USER:
                return turn
        return None


class Detector(ABC):
    """Base interface for all candidate detectors."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique detector name."""
        ...

    @abstractmethod
    def detect(self, run: ExtractionRun) -> list[Candidate]:
        """Scan the run's window and return new candidates.

        Implementations must claim each dedup key through run.claim()
        before emitting a candidate for it.
        """
        ...


class DetectorRegistry:
    """Ordered registry of detectors run sequentially over a window."""

    def __init__(self) -> None:
        self._detectors: dict[str, Detector] = {}

    def register(self, detector: Detector) -> None:
        """Register a detector."""
        if detector.name in self._detectors:
            raise ValueError(f"Detector '{detector.name}' already registered")
        self._detectors[detector.name] = detector

    def unregister(self, name: str) -> None:
        """Unregister a detector by name."""
        if name in self._detectors:
            del self._detectors[name]

    def get(self, name: str) -> Detector | None:
        """Get a detector by name."""
        return self._detectors.get(name)

    def list_detectors(self) -> list[str]:
        """List registered detector names in run order."""
        return list(self._detectors.keys())

    def run(self, run: ExtractionRun) -> list[Candidate]:
        """Run every detector in registration order.

        A failing detector is logged and skipped; candidates from the
        others are still returned.
        """
        candidates: list[Candidate] = []
        for detector in self._detectors.values():
            try:
                candidates.extend(detector.detect(run))
            except Exception as e:
                logger.warning("Detector %s failed: %s", detector.name, e)
        return candidates
