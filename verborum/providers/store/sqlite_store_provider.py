"""SQLite-backed storage engine for the word index.

Persists authors, texts and per-text word counts to a local SQLite
database at ``data/svl-stats.db``.  Uses ``aiosqlite`` for async I/O.

One connection is opened in autocommit mode and every transaction is
started explicitly with ``BEGIN``.  An ``asyncio.Lock`` serializes access
to it: a write transaction holds the lock until it commits or rolls back,
so readers never observe a half-written ingestion run.  Reads run with
``PRAGMA query_only`` switched on, which makes SQLite itself reject any
write smuggled into a read script.
"""

from __future__ import annotations

import asyncio
import json
import sqlite3
from collections.abc import Iterable, Mapping
from pathlib import Path
from types import TracebackType
from typing import Any

import aiosqlite
import structlog

from verborum.interfaces.store_provider import (
    IStoreProvider,
    IStoreTransaction,
    NamedRows,
    StoreParams,
)
from verborum.utils.errors import StorageError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/svl-stats.db")

_CREATE_AUTHORS_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS authors (
    author_id   INTEGER PRIMARY KEY,
    name        TEXT    NOT NULL,
    source_url  TEXT    NOT NULL
);
"""

_CREATE_TEXTS_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS texts (
    text_id     INTEGER NOT NULL,
    author_id   INTEGER NOT NULL,
    source_url  TEXT    NOT NULL,
    raw_content TEXT    NOT NULL,
    PRIMARY KEY (text_id, author_id)
);
"""

_CREATE_WORDS_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS words (
    word        TEXT    NOT NULL,
    text_id     INTEGER NOT NULL,
    count       INTEGER NOT NULL CHECK (count > 0),
    PRIMARY KEY (word, text_id)
) WITHOUT ROWID;
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_words_text ON words(text_id);",
    "CREATE INDEX IF NOT EXISTS idx_texts_author ON texts(author_id);",
]


def _casefold(value: Any) -> Any:
    """SQL ``casefold(x)``: Unicode-aware lowercasing (SQLite's lower() is ASCII-only)."""
    return value.casefold() if isinstance(value, str) else value


def _coerce_value(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, list):
        return json.dumps(value, ensure_ascii=False)
    raise StorageError(
        f"Unsupported parameter type {type(value).__name__}",
        provider_name="sqlite",
    )


def _coerce_params(params: StoreParams) -> Mapping[str, Any] | tuple[Any, ...]:
    if params is None:
        return ()
    if isinstance(params, Mapping):
        return {key: _coerce_value(value) for key, value in params.items()}
    if isinstance(params, (list, tuple)):
        return tuple(_coerce_value(value) for value in params)
    raise StorageError(
        f"Parameters must be a mapping or a sequence, got {type(params).__name__}",
        provider_name="sqlite",
    )


async def _named_rows(cursor: aiosqlite.Cursor) -> NamedRows:
    rows = await cursor.fetchall()
    headers = [column[0] for column in cursor.description or ()]
    return NamedRows(headers=headers, rows=[tuple(row) for row in rows])


class SQLiteTransaction(IStoreTransaction):
    """An explicit SQLite transaction holding the provider lock until it ends."""

    def __init__(self, provider: SQLiteStoreProvider, write: bool) -> None:
        self._provider = provider
        self._write = write
        self._active = False

    async def __aenter__(self) -> SQLiteTransaction:
        conn = self._provider._require_connection()
        await self._provider._lock.acquire()
        try:
            if not self._write:
                await conn.execute("PRAGMA query_only = ON")
            await conn.execute("BEGIN IMMEDIATE" if self._write else "BEGIN")
        except sqlite3.Error as exc:
            await self._release()
            raise StorageError(f"Could not begin transaction: {exc}", provider_name="sqlite") from exc
        self._active = True
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._active:
            await self.rollback()
            if exc is None:
                logger.warning("transaction_closed_without_commit", write=self._write)

    async def execute(self, template: str, params: StoreParams = None) -> NamedRows:
        conn = self._require_active()
        try:
            cursor = await conn.execute(template, _coerce_params(params))
            return await _named_rows(cursor)
        except (sqlite3.Error, OverflowError) as exc:
            raise StorageError(str(exc), provider_name="sqlite") from exc

    async def execute_many(self, template: str, param_rows: Iterable[StoreParams]) -> int:
        conn = self._require_active()
        rows = [_coerce_params(params) for params in param_rows]
        if not rows:
            return 0
        try:
            await conn.executemany(template, rows)
        except (sqlite3.Error, OverflowError) as exc:
            raise StorageError(str(exc), provider_name="sqlite") from exc
        return len(rows)

    async def commit(self) -> None:
        conn = self._require_active()
        try:
            await conn.execute("COMMIT")
        except sqlite3.Error as exc:
            await self.rollback()
            raise StorageError(f"Commit failed: {exc}", provider_name="sqlite") from exc
        self._active = False
        await self._release()

    async def rollback(self) -> None:
        if not self._active:
            return
        self._active = False
        conn = self._provider._require_connection()
        try:
            await conn.execute("ROLLBACK")
        except sqlite3.OperationalError:
            # SQLite already rolled back on its own (e.g. after a disk error).
            logger.debug("rollback_without_transaction")
        finally:
            await self._release()

    def _require_active(self) -> aiosqlite.Connection:
        if not self._active:
            raise StorageError("Transaction is not active", provider_name="sqlite")
        return self._provider._require_connection()

    async def _release(self) -> None:
        try:
            if not self._write:
                await self._provider._require_connection().execute("PRAGMA query_only = OFF")
        finally:
            self._provider._lock.release()


class SQLiteStoreProvider(IStoreProvider):
    """SQLite storage engine for the word index."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path) if str(db_path) != ":memory:" else db_path
        self._conn: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    @property
    def db_path(self) -> str | Path:
        return self._db_path

    async def initialize(self) -> None:
        """Open the database and create tables and indices if they don't exist."""
        if self._conn is None:
            if isinstance(self._db_path, Path):
                self._db_path.parent.mkdir(parents=True, exist_ok=True)
            try:
                self._conn = await aiosqlite.connect(str(self._db_path), isolation_level=None)
                await self._conn.create_function("casefold", 1, _casefold, deterministic=True)
            except sqlite3.Error as exc:
                raise StorageError(f"Could not open {self._db_path}: {exc}", provider_name="sqlite") from exc

        async with self.begin_transaction(write=True) as tx:
            await tx.execute(_CREATE_AUTHORS_TABLE_SQL)
            await tx.execute(_CREATE_TEXTS_TABLE_SQL)
            await tx.execute(_CREATE_WORDS_TABLE_SQL)
            for idx_sql in _CREATE_INDICES_SQL:
                await tx.execute(idx_sql)
            await tx.commit()
        logger.info("index_db_initialized", path=str(self._db_path))

    async def execute_read(self, template: str, params: StoreParams = None) -> NamedRows:
        async with self.begin_transaction(write=False) as tx:
            rows = await tx.execute(template, params)
            await tx.commit()
        return rows

    async def execute_write(self, template: str, params: StoreParams = None) -> NamedRows:
        async with self.begin_transaction(write=True) as tx:
            rows = await tx.execute(template, params)
            await tx.commit()
        return rows

    def begin_transaction(self, write: bool = True) -> SQLiteTransaction:
        return SQLiteTransaction(self, write=write)

    async def close(self) -> None:
        if self._conn is not None:
            await self._conn.close()
            self._conn = None

    def get_provider_name(self) -> str:
        return "sqlite"

    def _require_connection(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise StorageError("Store is not initialized; call initialize() first", provider_name="sqlite")
        return self._conn
