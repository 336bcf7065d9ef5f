"""Chat transcript persistence.

Saving is best effort: a failed write is logged and reported as ``False``
so the conversation is never interrupted by the database.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Optional

import aiosqlite

from agent_friend.storage.models import MessageRecord

logger = logging.getLogger("agent_friend.storage")

_SQLITE_PREFIX = "sqlite:///"
_MEMORY = ":memory:"


class TranscriptStore:
    """Async SQLite store for user and assistant turns.

    Parameters
    ----------
    db_path:
        Filesystem path to the SQLite file, or ``":memory:"``.  Parent
        directories are created on :meth:`connect`.
    """

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = str(db_path)
        self._conn: Optional[aiosqlite.Connection] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open the connection and create the ``messages`` table."""
        if self.db_path != _MEMORY:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = await aiosqlite.connect(self.db_path)
        self._conn.row_factory = sqlite3.Row
        await self._conn.executescript(
            """\
            CREATE TABLE IF NOT EXISTS messages (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                role TEXT NOT NULL,
                content TEXT NOT NULL,
                created_at TIMESTAMP NOT NULL
            );
            """
        )
        await self._conn.commit()

    async def close(self) -> None:
        if self._conn is not None:
            await self._conn.close()
            self._conn = None

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    # ------------------------------------------------------------------
    # Transcript
    # ------------------------------------------------------------------

    async def save(self, role: str, text: str) -> bool:
        """Append one turn. Returns ``False`` instead of raising on failure."""
        if self._conn is None:
            logger.warning("Transcript store is not connected; %s message not saved", role)
            return False
        try:
            record = MessageRecord(role=role, content=text)
            await self._conn.execute(
                "INSERT INTO messages (role, content, created_at) VALUES (?, ?, ?)",
                (record.role, record.content, record.created_at.isoformat()),
            )
            await self._conn.commit()
        except Exception as exc:
            logger.warning("Failed to save %s message: %s", role, exc)
            return False
        return True

    async def recent(self, limit: int = 20) -> list[MessageRecord]:
        """The last *limit* turns, oldest first."""
        if self._conn is None:
            return []
        cursor = await self._conn.execute(
            "SELECT id, role, content, created_at FROM messages ORDER BY id DESC LIMIT ?",
            (limit,),
        )
        rows = await cursor.fetchall()
        return [MessageRecord(**dict(row)) for row in reversed(rows)]


class NullTranscriptStore:
    """Stand-in used when no database is configured."""

    is_connected = False

    async def connect(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def save(self, role: str, text: str) -> bool:
        return True

    async def recent(self, limit: int = 20) -> list[MessageRecord]:
        return []


def resolve_sqlite_path(database_url: str) -> str | None:
    """Map ``sqlite:///path`` or a bare path to a file path; ``None`` if unsupported."""
    url = database_url.strip()
    if url.startswith(_SQLITE_PREFIX):
        return url[len(_SQLITE_PREFIX):] or None
    if "://" in url:
        return None
    return url


async def open_store(database_url: str | None) -> TranscriptStore | NullTranscriptStore:
    """Return a connected store for *database_url*.

    An empty URL gives the no-op store.  Unsupported URLs and connection
    failures are logged and also fall back to the no-op store.
    """
    if not database_url or not database_url.strip():
        logger.info("No database configured; transcripts will not be saved")
        return NullTranscriptStore()

    path = resolve_sqlite_path(database_url)
    if path is None:
        logger.warning("Unsupported database URL %r; transcripts will not be saved", database_url)
        return NullTranscriptStore()

    store = TranscriptStore(path)
    try:
        await store.connect()
    except (OSError, sqlite3.Error) as exc:
        logger.warning("Could not open transcript database %s: %s", path, exc)
        await store.close()
        return NullTranscriptStore()
    return store
