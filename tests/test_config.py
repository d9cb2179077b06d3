"""Tests for memory configuration loading and saving."""

import json
from pathlib import Path

import pytest

from hearth.config import (
    DEFAULT_NICKNAME_PRIORITY,
    MemoryConfig,
    load_config,
    save_config,
)


class TestMemoryConfig:
    """Tests for MemoryConfig dataclass."""

    def test_default_values(self) -> None:
        """Should have sensible defaults."""
        config = MemoryConfig()

        assert config.db_path == Path.home() / ".hearth" / "memory.db"
        assert config.log_dir == Path.home() / ".hearth" / "logs"
        assert config.nickname_priority == DEFAULT_NICKNAME_PRIORITY
        assert config.max_nicknames == 3
        assert config.positive_moment_slots == 2
        assert config.access_boost == 0.1
        assert config.near_duplicate_threshold == 0.8
        assert config.model_detector is False

    def test_custom_values(self, tmp_path: Path) -> None:
        """Should accept custom values."""
        config = MemoryConfig(
            db_path=tmp_path / "memory.db",
            positive_moment_slots=4,
            decay_grace_days=7,
        )

        assert config.db_path == tmp_path / "memory.db"
        assert config.positive_moment_slots == 4
        assert config.decay_grace_days == 7

    def test_terms_normalised(self) -> None:
        """Catalogue entries are lowercased and blanks dropped."""
        config = MemoryConfig(nickname_terms=[" Darling ", "", "Pet"])
        assert config.nickname_terms == ["darling", "pet"]

    def test_invalid_access_boost(self) -> None:
        with pytest.raises(ValueError, match="access_boost"):
            MemoryConfig(access_boost=1.5)

    def test_invalid_quota(self) -> None:
        with pytest.raises(ValueError, match="must not be negative"):
            MemoryConfig(positive_moment_slots=-1)

    def test_invalid_threshold(self) -> None:
        with pytest.raises(ValueError, match="near_duplicate_threshold"):
            MemoryConfig(near_duplicate_threshold=0)

    def test_invalid_batch_size(self) -> None:
        with pytest.raises(ValueError, match="at least 1"):
            MemoryConfig(import_batch_size=0)

    def test_nickname_rank(self) -> None:
        """Should rank by priority list, unknown terms last."""
        config = MemoryConfig(nickname_priority=["princess", "pet"])

        assert config.nickname_rank("princess") == 0
        assert config.nickname_rank("Pet") == 1
        assert config.nickname_rank("honey") == 2


class TestLoadConfig:
    """Tests for load_config function."""

    def test_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        config = load_config(tmp_path / "missing.json")
        assert config == MemoryConfig()

    def test_loads_from_file(self, tmp_path: Path) -> None:
        """Should load the memory section from a JSON file."""
        config_path = tmp_path / "config.json"
        config_path.write_text(
            json.dumps(
                {
                    "memory": {
                        "db_path": str(tmp_path / "custom.db"),
                        "nickname_priority": ["pet", "princess"],
                        "positive_moment_slots": 1,
                        "decay_grace_days": 10,
                        "model_detector": True,
                    }
                }
            )
        )

        config = load_config(config_path)

        assert config.db_path == tmp_path / "custom.db"
        assert config.nickname_priority == ["pet", "princess"]
        assert config.positive_moment_slots == 1
        assert config.decay_grace_days == 10.0
        assert config.model_detector is True

    def test_loads_name_blocklist(self, tmp_path: Path) -> None:
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"memory": {"name_blocklist": ["Grumpy", " "]}}))

        assert load_config(config_path).name_blocklist == ["grumpy"]

    def test_invalid_json_uses_defaults(self, tmp_path: Path) -> None:
        config_path = tmp_path / "config.json"
        config_path.write_text("{not json")
        assert load_config(config_path) == MemoryConfig()

    def test_wrong_types_ignored(self, tmp_path: Path) -> None:
        """Values of the wrong type fall back to defaults."""
        config_path = tmp_path / "config.json"
        config_path.write_text(
            json.dumps(
                {
                    "memory": {
                        "max_nicknames": "three",
                        "model_detector": 1,
                        "nickname_terms": ["ok", 5],
                        "access_boost": 0.2,
                    }
                }
            )
        )

        config = load_config(config_path)

        assert config.max_nicknames == 3
        assert config.model_detector is False
        assert config.nickname_terms == MemoryConfig().nickname_terms
        assert config.access_boost == 0.2

    def test_invalid_values_use_defaults(self, tmp_path: Path) -> None:
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"memory": {"import_batch_size": 0}}))
        assert load_config(config_path).import_batch_size == 50

    def test_missing_memory_section(self, tmp_path: Path) -> None:
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"other": {}}))
        assert load_config(config_path) == MemoryConfig()


class TestSaveConfig:
    """Tests for save_config function."""

    def test_writes_only_non_defaults(self, tmp_path: Path) -> None:
        config_path = tmp_path / "nested" / "config.json"
        save_config(MemoryConfig(positive_moment_slots=5), config_path)

        data = json.loads(config_path.read_text())
        assert data == {"memory": {"positive_moment_slots": 5}}

    def test_defaults_write_empty_object(self, tmp_path: Path) -> None:
        config_path = tmp_path / "config.json"
        save_config(MemoryConfig(), config_path)
        assert json.loads(config_path.read_text()) == {}

    def test_round_trip(self, tmp_path: Path) -> None:
        config_path = tmp_path / "config.json"
        original = MemoryConfig(
            db_path=tmp_path / "memory.db",
            nickname_priority=["pet"],
            verification_stale_days=14,
        )

        save_config(original, config_path)

        assert load_config(config_path) == original
