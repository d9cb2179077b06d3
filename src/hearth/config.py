"""Memory configuration loader.

Loads memory configuration from ~/.hearth/config.json. Keyword catalogues,
priority lists and tuning constants live here instead of inside the
detectors, so each deployment can override them.
"""

import json
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".hearth" / "config.json"

DEFAULT_NICKNAME_TERMS = [
    "princess",
    "pet",
    "babygirl",
    "sweetheart",
    "baby",
    "honey",
    "darling",
    "dear",
    "babe",
    "sugar",
    "good girl",
    "good boy",
    "my little one",
]

DEFAULT_NICKNAME_PRIORITY = [
    "princess",
    "pet",
    "babygirl",
    "sweetheart",
    "darling",
    "honey",
    "baby",
    "babe",
]

DEFAULT_AFFIRMATION_WORDS = [
    "yes",
    "yeah",
    "love",
    "like",
    "thanks",
    "thank you",
    "good",
    "perfect",
    "please",
    "ma'am",
    "sir",
]

# Words that follow "call me" as a description rather than a name.
DEFAULT_NAME_BLOCKLIST = [
    "crazy",
    "stupid",
    "silly",
    "dumb",
    "weird",
    "insane",
    "lazy",
    "naive",
    "paranoid",
    "dramatic",
    "old-fashioned",
    "selfish",
    "boring",
    "sensitive",
]


@dataclass
class MemoryConfig:
    """Configuration for the memory subsystem.

    Attributes:
        db_path: SQLite database for the memory corpus.
        log_dir: Directory for the JSONL event log.
        nickname_terms: Address terms scanned for in assistant turns.
        nickname_priority: Fixed retrieval order for nickname records.
        affirmation_words: Words marking a user reply as affirming.
        name_blocklist: Words never taken as a name after "call me".
        max_nicknames: Nickname records included per retrieval.
        positive_moment_slots: Rotating positive-moment records per retrieval.
        access_boost: Strength added when a record is used in a response.
        decay_base_rate: Daily strength loss at importance 1.
        decay_grace_days: Idle days before decay starts.
        verification_stale_days: Idle days before a record needs reconfirming.
        verification_strength: Strength assigned to records flagged by a correction.
        near_duplicate_threshold: Token overlap that counts as the same fact.
        near_duplicate_prefix: Normalised prefix length compared for duplicates.
        style_min_length: Assistant turn length that signals a long register.
        min_user_chars: Windows with less user text than this yield nothing.
        import_batch_size: Insert batch size for transcript imports.
        model_detector: Register the LLM-backed detector.
        model: Model used by the LLM-backed detector.
    """

    db_path: Path | None = None
    log_dir: Path | None = None
    nickname_terms: list[str] = field(default_factory=lambda: list(DEFAULT_NICKNAME_TERMS))
    nickname_priority: list[str] = field(
        default_factory=lambda: list(DEFAULT_NICKNAME_PRIORITY)
    )
    affirmation_words: list[str] = field(
        default_factory=lambda: list(DEFAULT_AFFIRMATION_WORDS)
    )
    name_blocklist: list[str] = field(default_factory=lambda: list(DEFAULT_NAME_BLOCKLIST))
    max_nicknames: int = 3
    positive_moment_slots: int = 2
    access_boost: float = 0.1
    decay_base_rate: float = 0.05
    decay_grace_days: float = 30.0
    verification_stale_days: int = 30
    verification_strength: float = 0.5
    near_duplicate_threshold: float = 0.8
    near_duplicate_prefix: int = 100
    style_min_length: int = 500
    min_user_chars: int = 4
    import_batch_size: int = 50
    model_detector: bool = False
    model: str = "llama-3.1-70b-versatile"

    def __post_init__(self) -> None:
        """Validate config and set defaults."""
        if self.db_path is None:
            self.db_path = Path.home() / ".hearth" / "memory.db"

        if self.log_dir is None:
            self.log_dir = Path.home() / ".hearth" / "logs"

        if self.max_nicknames < 0 or self.positive_moment_slots < 0:
            raise ValueError("quota sizes must not be negative")

        if not 0.0 <= self.access_boost <= 1.0:
            raise ValueError("access_boost must be between 0 and 1")

        if self.decay_base_rate < 0 or self.decay_grace_days < 0:
            raise ValueError("decay settings must not be negative")

        if not 0.0 <= self.verification_strength <= 1.0:
            raise ValueError("verification_strength must be between 0 and 1")

        if not 0.0 < self.near_duplicate_threshold <= 1.0:
            raise ValueError("near_duplicate_threshold must be in (0, 1]")

        if self.import_batch_size < 1:
            raise ValueError("import_batch_size must be at least 1")

        self.nickname_terms = [t.strip().lower() for t in self.nickname_terms if t.strip()]
        self.name_blocklist = [t.strip().lower() for t in self.name_blocklist if t.strip()]
        self.nickname_priority = [
            t.strip().lower() for t in self.nickname_priority if t.strip()
        ]

    def nickname_rank(self, term: str) -> int:
        """Position of a term in the priority list, or past the end if absent."""
        try:
            return self.nickname_priority.index(term.lower())
        except ValueError:
            return len(self.nickname_priority)


_PATH_FIELDS = {"db_path", "log_dir"}
_LIST_FIELDS = {"nickname_terms", "nickname_priority", "affirmation_words", "name_blocklist"}


def load_config(config_path: Path | None = None) -> MemoryConfig:
    """Load MemoryConfig from a JSON file.

    The config file should have this structure:
    ```json
    {
      "memory": {
        "db_path": "~/.hearth/memory.db",
        "nickname_priority": ["princess", "pet"],
        "positive_moment_slots": 2,
        "decay_grace_days": 30
      }
    }
    ```

    Args:
        config_path: Path to config file. Uses DEFAULT_CONFIG_PATH if None.

    Returns:
        MemoryConfig instance with loaded values.
    """
    path = config_path or DEFAULT_CONFIG_PATH

    if not path.exists():
        logger.debug("No config file at %s, using defaults", path)
        return MemoryConfig()

    try:
        with open(path, "r") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.warning("Invalid JSON in %s: %s. Using defaults.", path, e)
        return MemoryConfig()
    except OSError as e:
        logger.warning("Cannot read %s: %s. Using defaults.", path, e)
        return MemoryConfig()

    return _parse_config(data)


def _parse_config(data: dict[str, Any]) -> MemoryConfig:
    """Parse config dictionary into MemoryConfig.

    Unknown keys and values of the wrong type are ignored.

    Args:
        data: Parsed JSON data.

    Returns:
        MemoryConfig instance.
    """
    memory_data = data.get("memory", {})
    if not isinstance(memory_data, dict):
        return MemoryConfig()

    defaults = MemoryConfig()
    kwargs: dict[str, Any] = {}

    for f in fields(MemoryConfig):
        if f.name not in memory_data:
            continue
        value = memory_data[f.name]

        if f.name in _PATH_FIELDS:
            if isinstance(value, str) and value:
                kwargs[f.name] = Path(value).expanduser()
            continue

        if f.name in _LIST_FIELDS:
            if isinstance(value, list) and all(isinstance(v, str) for v in value):
                kwargs[f.name] = value
            continue

        default = getattr(defaults, f.name)
        if isinstance(default, bool):
            if isinstance(value, bool):
                kwargs[f.name] = value
        elif isinstance(default, float):
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                kwargs[f.name] = float(value)
        elif isinstance(default, int):
            if isinstance(value, int) and not isinstance(value, bool):
                kwargs[f.name] = value
        elif isinstance(default, str):
            if isinstance(value, str):
                kwargs[f.name] = value

    try:
        return MemoryConfig(**kwargs)
    except ValueError as e:
        logger.warning("Invalid memory config: %s. Using defaults.", e)
        return MemoryConfig()


def save_config(config: MemoryConfig, config_path: Path | None = None) -> None:
    """Save MemoryConfig to a JSON file.

    Only values that differ from the defaults are written.

    Args:
        config: The config to save.
        config_path: Path to write to. Uses DEFAULT_CONFIG_PATH if None.
    """
    path = config_path or DEFAULT_CONFIG_PATH

    path.parent.mkdir(parents=True, exist_ok=True)

    defaults = MemoryConfig()
    memory_data: dict[str, Any] = {}

    for f in fields(MemoryConfig):
        value = getattr(config, f.name)
        if value == getattr(defaults, f.name):
            continue
        memory_data[f.name] = str(value) if f.name in _PATH_FIELDS else value

    data: dict[str, Any] = {}
    if memory_data:
        data["memory"] = memory_data

    try:
        with open(path, "w") as f:
            json.dump(data, f, indent=2)
    except OSError as e:
        logger.error("Failed to save config to %s: %s", path, e)
        raise
