#  pctrl - Database Connection
#
#  Async SQLite manager with WAL mode and transaction support.
#  The schema is brought up to date by db/migrate.py before the
#  aiosqlite connection is opened.
#
#  Depends on: db/migrate.py
#  Used by:    store/store.py, container.py (via DI), tests

import asyncio
import logging
import sqlite3
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from pctrl.db.migrate import run_migrations

logger = logging.getLogger("pctrl.db")


class Database:
    """Async SQLite database with WAL mode.

    Uses aiosqlite which runs SQLite on a dedicated background thread,
    so no threading.Lock is needed on our side.

    Foreign keys are left off: cross-entity ids are soft references and
    dependent rows (project links) are removed explicitly by the store.
    """

    def __init__(self):
        self._conn: aiosqlite.Connection | None = None
        self._path: Path | None = None
        self._in_transaction: bool = False
        self._tx_lock: asyncio.Lock = asyncio.Lock()
        self._tx_owner: asyncio.Task | None = None
        self.schema_version: int | None = None

    async def init(self, db_path: str | Path):
        """Open or create the database, applying pending migrations first."""
        self._path = Path(db_path)
        self._path.parent.mkdir(parents=True, exist_ok=True)

        self.schema_version = await asyncio.to_thread(run_migrations, self._path)

        self._conn = await aiosqlite.connect(str(self._path))
        self._conn.row_factory = sqlite3.Row
        await self._conn.execute("PRAGMA journal_mode=WAL")

        logger.info("Database initialized at %s (schema v%s)", self._path, self.schema_version)

    @property
    def path(self) -> Path | None:
        return self._path

    @property
    def conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Database not initialized. Call await db.init() first.")
        return self._conn

    @asynccontextmanager
    async def transaction(self):
        """Atomic read+write transaction. Rolls back on exception.

        Uses BEGIN IMMEDIATE to acquire a write lock upfront. An
        asyncio.Lock serializes concurrent coroutines sharing the same
        connection, so a second coroutine waits until the first
        transaction commits or rolls back.

        Safe to nest within the same task: if the current asyncio task
        already owns a transaction, inner calls are no-ops (SQLite has no
        true nested transactions without SAVEPOINTs).
        """
        current = asyncio.current_task()
        if self._in_transaction and self._tx_owner is current:
            yield self.conn
            return

        async with self._tx_lock:
            self._in_transaction = True
            self._tx_owner = current
            try:
                await self.conn.execute("BEGIN IMMEDIATE")
                try:
                    yield self.conn
                    await self.conn.commit()
                except BaseException:
                    await self.conn.rollback()
                    raise
            finally:
                self._in_transaction = False
                self._tx_owner = None

    async def execute_write(self, sql: str, params: tuple | list = ()) -> aiosqlite.Cursor:
        """Execute a write query and commit.

        Inside a transaction() block, participates in the outer transaction
        (no auto-commit). Outside, auto-commits.
        """
        cursor = await self.conn.execute(sql, params)
        if not self._in_transaction:
            await self.conn.commit()
        return cursor

    async def execute_many_write(self, statements: list[tuple[str, tuple | list]]):
        """Execute multiple write statements atomically."""
        async with self.transaction():
            for sql, params in statements:
                await self.conn.execute(sql, params)

    async def fetchone(self, sql: str, params: tuple | list = ()) -> sqlite3.Row | None:
        cursor = await self.conn.execute(sql, params)
        return await cursor.fetchone()

    async def fetchall(self, sql: str, params: tuple | list = ()) -> list[sqlite3.Row]:
        cursor = await self.conn.execute(sql, params)
        return await cursor.fetchall()

    async def close(self):
        """Close the database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None
