"""Tests for JSONL logging."""

import json
import tempfile
from pathlib import Path

import pytest

from hearth.logging import JSONLLogger, LogEntry, configure_logger, get_logger


@pytest.fixture
def temp_log_dir():
    """Create a temporary directory for logs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def logger(temp_log_dir: Path) -> JSONLLogger:
    return JSONLLogger(log_dir=temp_log_dir)


def read_entries(logger: JSONLLogger) -> list[dict]:
    with open(logger.log_path) as f:
        return [json.loads(line) for line in f]


def test_log_entry_to_dict():
    """Test LogEntry excludes None and empty values."""
    entry = LogEntry(timestamp="2026-01-01T00:00:00Z", event="test")
    data = entry.to_dict()

    assert "timestamp" in data
    assert "event" in data
    assert "owner" not in data  # None excluded
    assert "extra" not in data  # Empty dict excluded


def test_log_creates_file(logger: JSONLLogger):
    """Test that logging creates the log file."""
    logger.log("test_event")

    assert logger.log_path.exists()


def test_log_writes_jsonl(logger: JSONLLogger):
    """Test that logs are written in JSONL format."""
    logger.log("event1", owner="u1")
    logger.log("event2", owner="u2")

    entries = read_entries(logger)

    assert len(entries) == 2
    assert entries[0]["event"] == "event1"
    assert entries[0]["owner"] == "u1"
    assert entries[1]["event"] == "event2"


def test_log_extraction(logger: JSONLLogger):
    logger.log_extraction("u1", "p1", new=2, updates=1, flagged=0, skipped=3)

    entry = read_entries(logger)[0]
    assert entry["event"] == "extraction"
    assert entry["persona_id"] == "p1"
    assert entry["count"] == 3
    assert entry["extra"] == {"new": 2, "updates": 1, "flagged": 0, "skipped": 3}


def test_log_retrieval(logger: JSONLLogger):
    """Test logging which records were selected."""
    logger.log_retrieval("u1", None, 5, ["a", "b"])

    entry = read_entries(logger)[0]
    assert entry["event"] == "retrieval"
    assert entry["memory_ids"] == ["a", "b"]
    assert entry["count"] == 2
    assert entry["extra"]["budget"] == 5
    assert "persona_id" not in entry


def test_log_retrieval_error(logger: JSONLLogger):
    logger.log_retrieval("u1", None, 5, [], error="db locked")

    entry = read_entries(logger)[0]
    assert entry["error"] == "db locked"
    assert entry["count"] == 0


def test_log_apply_failure(logger: JSONLLogger):
    logger.log_apply_failure("u1", "update", "disk full", memory_id="abc")

    entry = read_entries(logger)[0]
    assert entry["event"] == "apply_failure"
    assert entry["memory_ids"] == ["abc"]
    assert entry["extra"]["action"] == "update"


def test_log_import(logger: JSONLLogger):
    logger.log_import("u1", "p1", turns=12, batches=2, inserted=60)

    entry = read_entries(logger)[0]
    assert entry["event"] == "import"
    assert entry["count"] == 60
    assert entry["extra"] == {"turns": 12, "batches": 2}


def test_log_error_with_context(logger: JSONLLogger):
    logger.log_error("boom", owner="u1", context="process_turn")

    entry = read_entries(logger)[0]
    assert entry["error"] == "boom"
    assert entry["extra"]["context"] == "process_turn"


def test_rotation(temp_log_dir: Path):
    """Test log rotation when max size is exceeded."""
    logger = JSONLLogger(log_dir=temp_log_dir, max_size_mb=0.001)  # ~1KB

    # Write enough to trigger rotation
    for i in range(100):
        logger.log(f"event_{i}", data="x" * 100)

    log_files = list(temp_log_dir.glob("memory*.jsonl"))
    assert len(log_files) >= 2


def test_extra_fields(logger: JSONLLogger):
    """Test that extra fields are included."""
    logger.log("custom", custom_field="value", another=123)

    entry = read_entries(logger)[0]
    assert entry["extra"]["custom_field"] == "value"
    assert entry["extra"]["another"] == 123


def test_configure_logger(tmp_path: Path):
    configured = configure_logger(tmp_path / "events")

    assert get_logger() is configured
    assert configured.log_dir == tmp_path / "events"
