"""Candidate detectors and their registry."""

from groq import Groq

from ...config import MemoryConfig
from .base import Detector, DetectorRegistry, ExtractionRun
from .emotion import EmotionDetector
from .facts import DEFAULT_FACT_PATTERNS, FactDetector, FactPattern
from .humor import HumorDetector
from .model import ModelDetector
from .nickname import NicknameDetector
from .preference import BoundaryDetector, PreferenceDetector
from .style import StyleDetector

__all__ = [
    "DEFAULT_FACT_PATTERNS",
    "BoundaryDetector",
    "Detector",
    "DetectorRegistry",
    "EmotionDetector",
    "ExtractionRun",
    "FactDetector",
    "FactPattern",
    "HumorDetector",
    "ModelDetector",
    "NicknameDetector",
    "PreferenceDetector",
    "StyleDetector",
    "default_registry",
]


def default_registry(
    config: MemoryConfig | None = None,
    llm_client: Groq | None = None,
) -> DetectorRegistry:
    """Build the standard detector set in run order.

    The model detector is appended only when enabled in config and a
    client is given.
    """
    config = config or MemoryConfig()
    registry = DetectorRegistry()
    registry.register(NicknameDetector())
    registry.register(PreferenceDetector())
    registry.register(BoundaryDetector())
    registry.register(FactDetector())
    registry.register(EmotionDetector())
    registry.register(StyleDetector())
    registry.register(HumorDetector())
    if config.model_detector and llm_client is not None:
        registry.register(ModelDetector(llm_client, model=config.model))
    return registry
