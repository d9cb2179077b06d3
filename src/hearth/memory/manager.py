"""Memory manager for orchestrating extraction, storage and retrieval."""

import logging
import time
from datetime import datetime
from typing import Any

from ..config import MemoryConfig
from ..logging import JSONLLogger, get_logger
from .extractor import MemoryExtractor
from .models import ApplyReport, ExtractionResult, Memory, Turn
from .retriever import MemoryRetriever
from .store import MemoryStore
from .strength import decayed_strength, utcnow
from .transcript import parse_transcript
from .verification import VerificationScheduler

logger = logging.getLogger(__name__)

TYPE_HEADINGS = {
    "fact": "Facts",
    "preference": "Preferences",
    "boundary": "Boundaries",
    "milestone": "Milestones",
    "joke": "Shared jokes",
    "pattern": "Patterns",
    "emotional_state": "Happy moments",
    "scenario": "Scenarios",
}


class MemoryManager:
    """Orchestrates memory operations for the chat application.

    This is the main interface of the memory system. Extraction and
    retrieval are best-effort: failures are logged and degrade to "no
    memory effects" instead of failing the conversational turn.
    """

    def __init__(
        self,
        store: MemoryStore,
        config: MemoryConfig | None = None,
        extractor: MemoryExtractor | None = None,
        retriever: MemoryRetriever | None = None,
        scheduler: VerificationScheduler | None = None,
        event_logger: JSONLLogger | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            store: The MemoryStore for persistence.
            config: Memory configuration. Defaults to MemoryConfig().
            extractor: Extraction pipeline. Defaults to the standard detectors.
            retriever: Ranking policy for retrieval.
            scheduler: Verification scheduler.
            event_logger: JSONL event log. Defaults to the global logger.
        """
        self.store = store
        self.config = config or MemoryConfig()
        self.extractor = extractor or MemoryExtractor(self.config)
        self.retriever = retriever or MemoryRetriever(self.config)
        self.scheduler = scheduler or VerificationScheduler(self.config)
        self.events = event_logger or get_logger()

    def extract(
        self,
        turns: list[Turn] | list[dict[str, Any]],
        owner: str,
        persona_id: str | None,
        corpus: list[Memory] | None = None,
    ) -> ExtractionResult:
        """Extract new records and updates without persisting anything.

        Args:
            turns: Window of turns to scan.
            owner: User the window belongs to.
            persona_id: Active persona scope.
            corpus: Existing records. Read from the store when None.

        Returns:
            The extraction result to pass to apply().
        """
        if corpus is None:
            corpus = self.store.list_scoped(owner, persona_id)
        return self.extractor.extract(turns, owner, persona_id, corpus)

    def apply_insert(self, memory: Memory, now: datetime | None = None) -> Memory:
        """Persist a new record."""
        return self.store.insert(memory, now=now)

    def apply_update(self, target_id: str, new_content: str, now: datetime | None = None) -> bool:
        """Rewrite a record's content, resetting strength and last_accessed."""
        return self.store.apply_update(target_id, new_content, now=now)

    def apply(
        self,
        result: ExtractionResult,
        owner: str | None = None,
        now: datetime | None = None,
    ) -> ApplyReport:
        """Persist an extraction result, record by record.

        A failing record is logged and counted; records already written
        are kept.

        Args:
            result: Output of extract().
            owner: Owner for log events. Defaults to the records' owner.
            now: Timestamp for inserts and updates.

        Returns:
            What was written and how many records failed.
        """
        report = ApplyReport()
        now = now or utcnow()

        for memory in result.new_records:
            try:
                stored = self.apply_insert(memory, now=now)
                report.inserted.append(stored.id)
            except Exception as e:
                report.failures += 1
                logger.warning(f"Failed to insert memory: {e}")
                self.events.log_apply_failure(owner or memory.owner, "insert", str(e))

        for update in result.updates:
            try:
                if self.apply_update(update.target_id, update.new_content, now=now):
                    report.updated.append(update.target_id)
                else:
                    logger.debug("Update target %s no longer exists", update.target_id)
            except Exception as e:
                report.failures += 1
                logger.warning(f"Failed to update memory {update.target_id}: {e}")
                self.events.log_apply_failure(
                    owner or "", "update", str(e), memory_id=update.target_id
                )

        for flag in result.flagged:
            try:
                if self.store.mark_for_verification(
                    flag.target_id, self.config.verification_strength
                ):
                    report.flagged.append(flag.target_id)
            except Exception as e:
                report.failures += 1
                logger.warning(f"Failed to flag memory {flag.target_id}: {e}")
                self.events.log_apply_failure(
                    owner or "", "flag", str(e), memory_id=flag.target_id
                )

        return report

    def process_turn(
        self,
        turns: list[Turn] | list[dict[str, Any]],
        owner: str,
        persona_id: str | None,
    ) -> ApplyReport:
        """Extract from the latest window and persist the result.

        Called after each assistant turn. Never raises: a failure yields
        an empty report.
        """
        start = time.monotonic()
        try:
            result = self.extract(turns, owner, persona_id)
            report = self.apply(result, owner=owner)
        except Exception as e:
            logger.warning(f"Memory extraction failed: {e}")
            self.events.log_error(str(e), owner=owner, context="process_turn")
            return ApplyReport()

        self.events.log_extraction(
            owner,
            persona_id,
            new=len(report.inserted),
            updates=len(report.updated),
            flagged=len(report.flagged),
            skipped=len(result.skipped),
            duration_ms=(time.monotonic() - start) * 1000,
        )
        return report

    def retrieve(
        self,
        owner: str,
        persona_id: str | None,
        budget: int,
        now: datetime | None = None,
    ) -> list[Memory]:
        """Select records to inject into the next generation request.

        Returns an empty list if the store cannot be read.
        """
        try:
            corpus = self.store.list_scoped(owner, persona_id)
            selected = self.retriever.select(corpus, owner, persona_id, budget, now=now)
        except Exception as e:
            logger.warning(f"Memory retrieval failed: {e}")
            self.events.log_retrieval(owner, persona_id, budget, [], error=str(e))
            return []

        self.events.log_retrieval(owner, persona_id, budget, [m.id for m in selected])
        return selected

    def needs_verification(
        self,
        owner: str,
        persona_id: str | None,
        limit: int = 3,
        now: datetime | None = None,
    ) -> list[Memory]:
        """Records worth reconfirming with the user. Empty on failure."""
        try:
            corpus = self.store.list_scoped(owner, persona_id)
            due = self.scheduler.select(corpus, owner, persona_id, limit, now=now)
        except Exception as e:
            logger.warning(f"Verification scheduling failed: {e}")
            return []

        if due:
            self.events.log_verification(owner, persona_id, [m.id for m in due])
        return due

    def record_access(self, memory_id: str, now: datetime | None = None) -> Memory | None:
        """Reinforce a record believed to have influenced a response."""
        return self.store.record_access(memory_id, self.config.access_boost, now=now)

    def run_decay(self, owner: str | None = None, now: datetime | None = None) -> int:
        """Lower the strength of idle records.

        Out-of-band pass; only strength is touched and it never increases.

        Args:
            owner: Restrict the pass to one owner. All records when None.
            now: Reference time.

        Returns:
            Number of records whose strength was lowered.
        """
        now = now or utcnow()
        memories = self.store.list_owner(owner) if owner else self.store.list_all()

        lowered = 0
        for memory in memories:
            strength = decayed_strength(memory, now, self.config)
            if strength < memory.strength:
                self.store.set_strength(memory.id, strength)
                lowered += 1

        self.events.log_decay(lowered, owner=owner)
        return lowered

    def import_transcript(
        self,
        text: str,
        owner: str,
        persona_id: str | None = None,
        assistant_names: tuple[str, ...] = (),
    ) -> ApplyReport:
        """Bulk import a pasted conversation.

        The whole transcript is one extraction window; new records are
        inserted in batches of import_batch_size.

        Args:
            text: The pasted transcript.
            owner: User to import for.
            persona_id: Persona scope of the imported records.
            assistant_names: Extra speaker labels meaning the assistant.

        Returns:
            The apply report. Failed batches count every record in them.
        """
        turns = parse_transcript(text, assistant_names)
        if not turns:
            logger.info("Transcript contained no turns")
            return ApplyReport()

        result = self.extract(turns, owner, persona_id)

        report = self.apply(
            ExtractionResult(updates=result.updates, flagged=result.flagged), owner=owner
        )

        batch_size = self.config.import_batch_size
        batches = 0
        for start in range(0, len(result.new_records), batch_size):
            batch = result.new_records[start : start + batch_size]
            batches += 1
            try:
                stored = self.store.insert_many(batch, batch_size=batch_size)
                report.inserted.extend(m.id for m in stored)
            except Exception as e:
                report.failures += len(batch)
                logger.warning(f"Failed to import batch {batches}: {e}")
                self.events.log_apply_failure(owner, "import", str(e))

        self.events.log_import(owner, persona_id, len(turns), batches, len(report.inserted))
        return report

    def format_for_prompt(self, memories: list[Memory]) -> str:
        """Format memories as a block for injection into the system prompt.

        Args:
            memories: Records in injection order.

        Returns:
            Memory block grouped by type, or empty string if no memories.
        """
        if not memories:
            return ""

        groups: dict[str, list[str]] = {}
        for memory in memories:
            groups.setdefault(memory.type.value, []).append(memory.content)

        sections = []
        for type_name, contents in groups.items():
            heading = TYPE_HEADINGS.get(type_name, type_name)
            lines = "\n".join(f"- {content}" for content in contents)
            sections.append(f"{heading}:\n{lines}")
        content = "\n\n".join(sections)

        return f"""<memory>
What you know about the user:
{content}
</memory>"""
