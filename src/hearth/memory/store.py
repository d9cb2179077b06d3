"""SQLite storage for memory records."""

import json
import sqlite3
import uuid
from datetime import datetime
from pathlib import Path

from .models import Memory
from .strength import UPDATED_STRENGTH, as_utc, utcnow

_COLUMNS = (
    "id, owner, persona_id, type, content, importance, strength, context, "
    "created_at, last_accessed, access_count"
)


class MemoryStore:
    """Persistent storage for memory records using SQLite.

    There is no uniqueness constraint on content: logical uniqueness is
    decided by the merger before anything is inserted. Timestamps are
    stored as ISO-8601 UTC strings and context as JSON text.
    """

    def __init__(self, db_path: Path) -> None:
        """Initialize the store with a database path.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create the database connection."""
        if self._conn is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self.db_path)
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def init_db(self) -> None:
        """Create the memories table if it doesn't exist."""
        conn = self._get_connection()
        conn.execute("""
            CREATE TABLE IF NOT EXISTS memories (
                id             TEXT PRIMARY KEY,
                owner          TEXT NOT NULL,
                persona_id     TEXT,
                type           TEXT NOT NULL,
                content        TEXT NOT NULL,
                importance     INTEGER NOT NULL CHECK (importance BETWEEN 1 AND 10),
                strength       REAL NOT NULL CHECK (strength BETWEEN 0.0 AND 1.0),
                context        TEXT NOT NULL DEFAULT '{}',
                created_at     TEXT NOT NULL,
                last_accessed  TEXT,
                access_count   INTEGER NOT NULL DEFAULT 0 CHECK (access_count >= 0)
            )
        """)
        conn.execute("CREATE INDEX IF NOT EXISTS idx_memories_owner ON memories(owner)")
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_memories_scope ON memories(owner, persona_id)"
        )
        conn.commit()

    def insert(self, memory: Memory, now: datetime | None = None) -> Memory:
        """Insert a new record.

        Args:
            memory: The record to insert. Its id, if any, is ignored.
            now: Creation time. Defaults to the current UTC time.

        Returns:
            The record with its assigned id and created_at.
        """
        conn = self._get_connection()
        stored = self._prepare(memory, now or utcnow())
        conn.execute(
            f"INSERT INTO memories ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            self._to_params(stored),
        )
        conn.commit()
        return stored

    def insert_many(
        self,
        memories: list[Memory],
        batch_size: int = 50,
        now: datetime | None = None,
    ) -> list[Memory]:
        """Insert records in batches, one transaction per batch.

        A failing batch is rolled back and the error raised; batches
        committed before it are kept.

        Args:
            memories: Records to insert.
            batch_size: Records per transaction.
            now: Creation time for every record.

        Returns:
            The inserted records with ids assigned.
        """
        conn = self._get_connection()
        now = now or utcnow()
        inserted: list[Memory] = []
        for start in range(0, len(memories), max(batch_size, 1)):
            batch = [self._prepare(m, now) for m in memories[start : start + batch_size]]
            try:
                conn.executemany(
                    f"INSERT INTO memories ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    [self._to_params(m) for m in batch],
                )
                conn.commit()
            except sqlite3.Error:
                conn.rollback()
                raise
            inserted.extend(batch)
        return inserted

    def get(self, memory_id: str) -> Memory | None:
        """Get a record by id, or None if it doesn't exist."""
        conn = self._get_connection()
        cursor = conn.execute(f"SELECT {_COLUMNS} FROM memories WHERE id = ?", (memory_id,))
        row = cursor.fetchone()
        return self._row_to_memory(row) if row else None

    def list_scoped(self, owner: str, persona_id: str | None) -> list[Memory]:
        """Records visible to owner + persona.

        Shared records plus the persona's own, or shared records only when
        persona_id is None.
        """
        conn = self._get_connection()
        if persona_id is None:
            cursor = conn.execute(
                f"SELECT {_COLUMNS} FROM memories WHERE owner = ? AND persona_id IS NULL "
                "ORDER BY created_at, rowid",
                (owner,),
            )
        else:
            cursor = conn.execute(
                f"SELECT {_COLUMNS} FROM memories WHERE owner = ? "
                "AND (persona_id IS NULL OR persona_id = ?) ORDER BY created_at, rowid",
                (owner, persona_id),
            )
        return [self._row_to_memory(row) for row in cursor.fetchall()]

    def list_owner(self, owner: str) -> list[Memory]:
        """Every record of an owner, across all personas."""
        conn = self._get_connection()
        cursor = conn.execute(
            f"SELECT {_COLUMNS} FROM memories WHERE owner = ? ORDER BY created_at, rowid",
            (owner,),
        )
        return [self._row_to_memory(row) for row in cursor.fetchall()]

    def list_all(self) -> list[Memory]:
        """Every stored record."""
        conn = self._get_connection()
        cursor = conn.execute(f"SELECT {_COLUMNS} FROM memories ORDER BY created_at, rowid")
        return [self._row_to_memory(row) for row in cursor.fetchall()]

    def apply_update(
        self,
        memory_id: str,
        new_content: str,
        now: datetime | None = None,
    ) -> bool:
        """Replace a record's content and reset its trust.

        Strength goes back to 1.0, last_accessed advances to now and any
        pending verification flag is cleared. access_count is unchanged.

        Returns:
            True if the record exists and was updated.
        """
        memory = self.get(memory_id)
        if memory is None:
            return False

        context = dict(memory.context)
        context.pop("needs_verification", None)

        conn = self._get_connection()
        conn.execute(
            """
            UPDATE memories
            SET content = ?, strength = ?, last_accessed = ?, context = ?
            WHERE id = ?
            """,
            (
                new_content,
                UPDATED_STRENGTH,
                _to_iso(now or utcnow()),
                json.dumps(context, ensure_ascii=False),
                memory_id,
            ),
        )
        conn.commit()
        return True

    def record_access(
        self,
        memory_id: str,
        boost: float,
        now: datetime | None = None,
    ) -> Memory | None:
        """Reinforce a record used in a response.

        Returns:
            The updated record, or None if it doesn't exist.
        """
        conn = self._get_connection()
        cursor = conn.execute(
            """
            UPDATE memories
            SET strength = MIN(strength + ?, 1.0),
                access_count = access_count + 1,
                last_accessed = ?
            WHERE id = ?
            """,
            (boost, _to_iso(now or utcnow()), memory_id),
        )
        conn.commit()
        if cursor.rowcount == 0:
            return None
        return self.get(memory_id)

    def mark_for_verification(self, memory_id: str, strength: float) -> bool:
        """Lower a record's strength and flag it for reconfirmation.

        Returns:
            True if the record exists.
        """
        memory = self.get(memory_id)
        if memory is None:
            return False

        context = dict(memory.context)
        context["needs_verification"] = True

        conn = self._get_connection()
        conn.execute(
            "UPDATE memories SET strength = MIN(strength, ?), context = ? WHERE id = ?",
            (strength, json.dumps(context, ensure_ascii=False), memory_id),
        )
        conn.commit()
        return True

    def set_strength(self, memory_id: str, strength: float) -> bool:
        """Overwrite a record's strength. Used by the decay pass."""
        conn = self._get_connection()
        cursor = conn.execute(
            "UPDATE memories SET strength = ? WHERE id = ?",
            (strength, memory_id),
        )
        conn.commit()
        return cursor.rowcount > 0

    def delete(self, memory_id: str) -> bool:
        """Delete a record by its id.

        Returns:
            True if a record was deleted, False otherwise.
        """
        conn = self._get_connection()
        cursor = conn.execute("DELETE FROM memories WHERE id = ?", (memory_id,))
        conn.commit()
        return cursor.rowcount > 0

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _prepare(self, memory: Memory, now: datetime) -> Memory:
        """Copy of memory with a fresh id and creation time."""
        return Memory(
            id=uuid.uuid4().hex,
            owner=memory.owner,
            persona_id=memory.persona_id,
            type=memory.type,
            content=memory.content,
            importance=memory.importance,
            strength=memory.strength,
            context=dict(memory.context),
            created_at=as_utc(memory.created_at or now),
            last_accessed=as_utc(memory.last_accessed) if memory.last_accessed else None,
            access_count=memory.access_count,
        )

    def _to_params(self, memory: Memory) -> tuple:
        return (
            memory.id,
            memory.owner,
            memory.persona_id,
            memory.type.value,
            memory.content,
            memory.importance,
            memory.strength,
            json.dumps(memory.context, ensure_ascii=False),
            _to_iso(memory.created_at),
            _to_iso(memory.last_accessed) if memory.last_accessed else None,
            memory.access_count,
        )

    def _row_to_memory(self, row: sqlite3.Row) -> Memory:
        """Convert a database row to a Memory."""
        return Memory(
            id=row["id"],
            owner=row["owner"],
            persona_id=row["persona_id"],
            type=row["type"],
            content=row["content"],
            importance=row["importance"],
            strength=row["strength"],
            context=json.loads(row["context"] or "{}"),
            created_at=_from_iso(row["created_at"]),
            last_accessed=_from_iso(row["last_accessed"]),
            access_count=row["access_count"],
        )


def _to_iso(value: datetime) -> str:
    return as_utc(value).isoformat()


def _from_iso(value: str | None) -> datetime | None:
    if not value:
        return None
    return as_utc(datetime.fromisoformat(value))
