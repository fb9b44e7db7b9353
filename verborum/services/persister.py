"""Transactional bulk persistence of an ingestion run's aggregate.

The :class:`IndexPersister` translates a :class:`CorpusAggregator` into
keyed writes against the storage engine, all inside **one** write
transaction:

    1. (optional) clear the previous index -- ids restart at 1 every run,
       so rows of an older, larger run would otherwise survive
    2. authors  -- (author_id) -> (name, source_url)
    3. texts    -- (text_id, author_id) -> (source_url, raw_content)
    4. words    -- (word, text_id) -> (count), one row per distinct pair,
                   never one per occurrence

Writes are upserts, so a persist of the same aggregate twice is harmless.
If any write fails the transaction is rolled back and a
:class:`~verborum.utils.errors.StorageError` propagates; readers keep
seeing the previous index in full.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from itertools import islice
from typing import TypeVar

import structlog

from verborum.interfaces.store_provider import IStoreProvider, IStoreTransaction, StoreParams
from verborum.models.ingestion import PersistResult
from verborum.services.aggregator import CorpusAggregator
from verborum.utils.errors import StorageError

logger = structlog.get_logger(logger_name=__name__)

_T = TypeVar("_T")

_DEFAULT_BATCH_SIZE = 500

_CLEAR_SQL = [
    "DELETE FROM words;",
    "DELETE FROM texts;",
    "DELETE FROM authors;",
]

_UPSERT_AUTHOR_SQL = """\
INSERT INTO authors (author_id, name, source_url)
VALUES (?, ?, ?)
ON CONFLICT(author_id)
DO UPDATE SET name = excluded.name, source_url = excluded.source_url;
"""

_UPSERT_TEXT_SQL = """\
INSERT INTO texts (text_id, author_id, source_url, raw_content)
VALUES (?, ?, ?, ?)
ON CONFLICT(text_id, author_id)
DO UPDATE SET source_url = excluded.source_url, raw_content = excluded.raw_content;
"""

_UPSERT_WORD_SQL = """\
INSERT INTO words (word, text_id, count)
VALUES (?, ?, ?)
ON CONFLICT(word, text_id)
DO UPDATE SET count = excluded.count;
"""


def _batched(rows: Iterable[_T], size: int) -> Iterator[list[_T]]:
    iterator = iter(rows)
    while batch := list(islice(iterator, size)):
        yield batch


class IndexPersister:
    """Writes an aggregate to the storage engine atomically.

    Parameters
    ----------
    store:
        The storage engine handle, passed explicitly.
    batch_size:
        Rows per ``execute_many`` call inside the transaction.
    replace_existing:
        Clear the previous index inside the same transaction before
        writing (default ``True``).
    """

    def __init__(
        self,
        store: IStoreProvider,
        batch_size: int = _DEFAULT_BATCH_SIZE,
        replace_existing: bool = True,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self._store = store
        self._batch_size = batch_size
        self._replace_existing = replace_existing

    async def persist(self, aggregator: CorpusAggregator) -> PersistResult:
        """Persist *aggregator* in one transaction.

        Raises
        ------
        StorageError
            If any write or the commit fails; nothing of this run is
            visible afterwards.
        """
        logger.info(
            "persist_started",
            authors=len(aggregator.authors),
            documents=len(aggregator.documents),
            unique_words=aggregator.unique_word_count,
        )
        try:
            async with self._store.begin_transaction(write=True) as tx:
                if self._replace_existing:
                    for sql in _CLEAR_SQL:
                        await tx.execute(sql)

                authors_written = await self._write_rows(
                    tx,
                    _UPSERT_AUTHOR_SQL,
                    (
                        (author.author_id, author.name, author.source_url)
                        for author in aggregator.authors.values()
                    ),
                )
                documents_written = await self._write_rows(
                    tx,
                    _UPSERT_TEXT_SQL,
                    (
                        (doc.text_id, doc.author_id, doc.source_url, doc.raw_content)
                        for doc in aggregator.documents.values()
                    ),
                )
                words_written = await self._write_rows(
                    tx,
                    _UPSERT_WORD_SQL,
                    ((str(word), text_id, count) for word, text_id, count in aggregator.iter_word_counts()),
                )
                await tx.commit()
        except StorageError as exc:
            logger.error("persist_rolled_back", error=str(exc))
            raise

        result = PersistResult(
            authors_written=authors_written,
            documents_written=documents_written,
            words_written=words_written,
        )
        logger.info("persist_committed", **result.model_dump())
        return result

    async def _write_rows(
        self,
        tx: IStoreTransaction,
        template: str,
        rows: Iterable[StoreParams],
    ) -> int:
        written = 0
        for batch in _batched(rows, self._batch_size):
            written += await tx.execute_many(template, batch)
        return written
