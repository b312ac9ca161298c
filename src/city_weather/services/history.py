"""SQLite-backed search history store."""

import asyncio
import sqlite3
from pathlib import Path

import structlog
from prometheus_client import Counter

from city_weather.api.schemas import SearchHistoryEntry
from city_weather.config import Settings

logger = structlog.get_logger()

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS search_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    city TEXT NOT NULL,
    date TEXT,
    time TEXT,
    created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);

CREATE INDEX IF NOT EXISTS idx_search_history_created_at ON search_history(created_at);
"""

INSERT_SQL = "INSERT INTO search_history (city, date, time) VALUES (?, ?, ?)"

RECENT_SQL = """
SELECT id, city, date, time, created_at
FROM search_history
ORDER BY created_at DESC, id DESC
LIMIT ?
"""

# Metrics
history_writes = Counter(
    "history_writes_total",
    "Total search history writes",
    ["status"],
)


class HistoryStorageError(Exception):
    """Raised when the history database is unavailable or a query fails."""


class HistoryStore:
    """Append-only log of weather searches.

    SQLite work runs in worker threads with one connection per operation.
    The store must be initialized before use and closed on shutdown.
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize store with settings. No I/O happens until ``initialize``."""
        self._db_path = settings.history_db_path
        self._limit = settings.history_limit
        self._initialized = False
        self._pending: set[asyncio.Task[int | None]] = set()

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def pending_writes(self) -> int:
        """Number of background writes not yet finished."""
        return len(self._pending)

    async def initialize(self) -> None:
        """Create the schema if needed and mark the store ready.

        Raises:
            HistoryStorageError: If the database cannot be opened or created
        """
        await asyncio.to_thread(self._create_schema)
        self._initialized = True
        logger.info("History store initialized", db_path=self._db_path)

    async def close(self) -> None:
        """Wait for pending writes, then refuse further operations."""
        await self.drain()
        self._initialized = False
        logger.info("History store closed", db_path=self._db_path)

    async def record(self, city: str, date: str | None, time: str | None) -> int:
        """Append a search and return its assigned id.

        Empty ``date`` or ``time`` strings are stored as NULL.

        Raises:
            ValueError: If city is empty
            HistoryStorageError: If the store is unavailable
        """
        if not city:
            raise ValueError("city must not be empty")
        self._ensure_initialized()
        return await asyncio.to_thread(self._insert, city, date or None, time or None)

    async def recent(self) -> list[SearchHistoryEntry]:
        """Return the most recent searches, newest first.

        Raises:
            HistoryStorageError: If the store is unavailable
        """
        self._ensure_initialized()
        rows = await asyncio.to_thread(self._select_recent)
        return [
            SearchHistoryEntry(
                id=row["id"],
                city=row["city"],
                date=row["date"],
                time=row["time"],
                createdAt=row["created_at"],
            )
            for row in rows
        ]

    def record_in_background(
        self, city: str, date: str | None, time: str | None
    ) -> asyncio.Task[int | None]:
        """Schedule ``record`` without waiting for it.

        Failures are logged and counted, never raised to the caller.
        """
        task = asyncio.create_task(self._record_logged(city, date, time))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        """Wait until all scheduled background writes have finished."""
        while self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    async def is_healthy(self) -> bool:
        """Check that the store is initialized and the database answers."""
        if not self._initialized:
            return False
        return await asyncio.to_thread(self._ping)

    def _ping(self) -> bool:
        try:
            conn = self._connect()
        except HistoryStorageError:
            return False
        try:
            conn.execute("SELECT 1 FROM search_history LIMIT 1")
        except sqlite3.Error:
            return False
        finally:
            conn.close()
        return True

    async def _record_logged(self, city: str, date: str | None, time: str | None) -> int | None:
        try:
            entry_id = await self.record(city, date, time)
        except (HistoryStorageError, ValueError) as e:
            history_writes.labels(status="error").inc()
            logger.error("Failed to save search to history", city=city, error=str(e))
            return None
        history_writes.labels(status="success").inc()
        logger.info("Search history added", history_id=entry_id, city=city)
        return entry_id

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise HistoryStorageError("History store is not initialized")

    def _connect(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(self._db_path)
        except sqlite3.Error as e:
            raise HistoryStorageError(f"Cannot open history database: {e}") from e
        conn.row_factory = sqlite3.Row
        return conn

    def _create_schema(self) -> None:
        parent = Path(self._db_path).parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise HistoryStorageError(f"Cannot create history directory: {e}") from e

        conn = self._connect()
        try:
            conn.executescript(SCHEMA_SQL)
            conn.commit()
        except sqlite3.Error as e:
            raise HistoryStorageError(f"Cannot create history schema: {e}") from e
        finally:
            conn.close()

    def _insert(self, city: str, date: str | None, time: str | None) -> int:
        conn = self._connect()
        try:
            cursor = conn.execute(INSERT_SQL, (city, date, time))
            conn.commit()
        except sqlite3.Error as e:
            raise HistoryStorageError(f"Cannot write search history: {e}") from e
        finally:
            conn.close()
        entry_id = cursor.lastrowid
        if entry_id is None:
            raise HistoryStorageError("Insert returned no row id")
        return entry_id

    def _select_recent(self) -> list[sqlite3.Row]:
        conn = self._connect()
        try:
            return conn.execute(RECENT_SQL, (self._limit,)).fetchall()
        except sqlite3.Error as e:
            raise HistoryStorageError(f"Cannot read search history: {e}") from e
        finally:
            conn.close()
