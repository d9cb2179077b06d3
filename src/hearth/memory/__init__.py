"""Memory module: extraction, merging, ranking and storage of memories."""

from .detectors import Detector, DetectorRegistry, default_registry
from .extractor import MemoryExtractor
from .manager import MemoryManager
from .merger import MemoryMerger
from .models import (
    ApplyReport,
    Candidate,
    ExtractionResult,
    Memory,
    MemoryType,
    MemoryUpdate,
    Turn,
    VerificationFlag,
)
from .retriever import MemoryRetriever
from .store import MemoryStore
from .transcript import parse_transcript
from .verification import VerificationScheduler

__all__ = [
    "ApplyReport",
    "Candidate",
    "Detector",
    "DetectorRegistry",
    "ExtractionResult",
    "Memory",
    "MemoryExtractor",
    "MemoryManager",
    "MemoryMerger",
    "MemoryRetriever",
    "MemoryStore",
    "MemoryType",
    "MemoryUpdate",
    "Turn",
    "VerificationFlag",
    "VerificationScheduler",
    "default_registry",
    "parse_transcript",
]
