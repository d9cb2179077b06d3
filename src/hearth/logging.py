"""JSONL logging for memory observability."""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


@dataclass
class LogEntry:
    """A single log entry."""

    timestamp: str
    event: str
    owner: str | None = None
    persona_id: str | None = None
    memory_ids: list[str] | None = None
    count: int | None = None
    duration_ms: float | None = None
    error: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict, excluding None values."""
        data = asdict(self)
        return {k: v for k, v in data.items() if v is not None and v != {} and v != []}


class JSONLLogger:
    """Logger that writes structured memory events in JSONL format."""

    def __init__(
        self,
        log_dir: str | Path | None = None,
        filename: str = "memory.jsonl",
        max_size_mb: float = 10.0,
    ) -> None:
        if log_dir is None:
            log_dir = Path.home() / ".hearth" / "logs"
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.filename = filename
        self.max_size_bytes = int(max_size_mb * 1024 * 1024)

    @property
    def log_path(self) -> Path:
        """Current log file path."""
        return self.log_dir / self.filename

    def _rotate_if_needed(self) -> None:
        """Rotate log file if it exceeds max size."""
        if not self.log_path.exists():
            return

        if self.log_path.stat().st_size >= self.max_size_bytes:
            timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S_%f")
            rotated_name = f"{self.log_path.stem}_{timestamp}.jsonl"
            self.log_path.rename(self.log_dir / rotated_name)

    def _write(self, entry: LogEntry) -> None:
        """Write a log entry to the file."""
        self._rotate_if_needed()

        with open(self.log_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry.to_dict(), ensure_ascii=False) + "\n")

    def log(
        self,
        event: str,
        *,
        owner: str | None = None,
        persona_id: str | None = None,
        memory_ids: list[str] | None = None,
        count: int | None = None,
        duration_ms: float | None = None,
        error: str | None = None,
        **extra: Any,
    ) -> None:
        """Log an event."""
        entry = LogEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            event=event,
            owner=owner,
            persona_id=persona_id,
            memory_ids=memory_ids,
            count=count,
            duration_ms=duration_ms,
            error=error,
            extra=extra if extra else {},
        )
        self._write(entry)

    def log_extraction(
        self,
        owner: str,
        persona_id: str | None,
        *,
        new: int,
        updates: int,
        flagged: int,
        skipped: int,
        duration_ms: float | None = None,
    ) -> None:
        """Log the outcome of an extraction run."""
        self.log(
            "extraction",
            owner=owner,
            persona_id=persona_id,
            count=new + updates,
            duration_ms=duration_ms,
            new=new,
            updates=updates,
            flagged=flagged,
            skipped=skipped,
        )

    def log_apply_failure(
        self,
        owner: str,
        action: str,
        error: str,
        *,
        memory_id: str | None = None,
    ) -> None:
        """Log a single insert/update that could not be persisted."""
        self.log(
            "apply_failure",
            owner=owner,
            memory_ids=[memory_id] if memory_id else None,
            error=error,
            action=action,
        )

    def log_retrieval(
        self,
        owner: str,
        persona_id: str | None,
        budget: int,
        memory_ids: list[str],
        *,
        error: str | None = None,
    ) -> None:
        """Log which records were selected for a generation request."""
        self.log(
            "retrieval",
            owner=owner,
            persona_id=persona_id,
            memory_ids=memory_ids,
            count=len(memory_ids),
            error=error,
            budget=budget,
        )

    def log_verification(
        self,
        owner: str,
        persona_id: str | None,
        memory_ids: list[str],
    ) -> None:
        """Log records offered for reconfirmation."""
        self.log(
            "verification",
            owner=owner,
            persona_id=persona_id,
            memory_ids=memory_ids,
            count=len(memory_ids),
        )

    def log_decay(self, lowered: int, *, owner: str | None = None) -> None:
        """Log a decay pass."""
        self.log("decay", owner=owner, count=lowered)

    def log_import(
        self,
        owner: str,
        persona_id: str | None,
        turns: int,
        batches: int,
        inserted: int,
    ) -> None:
        """Log a bulk transcript import."""
        self.log(
            "import",
            owner=owner,
            persona_id=persona_id,
            count=inserted,
            turns=turns,
            batches=batches,
        )

    def log_error(self, error: str, *, owner: str | None = None, context: str | None = None) -> None:
        """Log an error."""
        if context:
            self.log("error", owner=owner, error=error, context=context)
        else:
            self.log("error", owner=owner, error=error)


# Global logger instance
_logger: JSONLLogger | None = None


def get_logger() -> JSONLLogger:
    """Get the global logger instance."""
    global _logger
    if _logger is None:
        _logger = JSONLLogger()
    return _logger


def configure_logger(log_dir: str | Path | None = None, max_size_mb: float = 10.0) -> JSONLLogger:
    """Configure and return the global logger."""
    global _logger
    _logger = JSONLLogger(log_dir=log_dir, max_size_mb=max_size_mb)
    return _logger
