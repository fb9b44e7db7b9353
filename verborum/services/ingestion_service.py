"""Orchestrator for one corpus ingestion run.

Pipeline stages: **resolve -> fetch -> tokenize -> aggregate -> persist**.

The :class:`IngestionService` coordinates four collaborators without any
of them knowing about each other:

    1. CorpusDirectoryResolver -- the author index, then every author's
       work listing (listing pages fetched concurrently)
    2. IFetcher                -- the document bodies, through a fixed pool
       of worker tasks
    3. CorpusAggregator        -- tokenizes and folds each body, driven by a
       single consumer task so the word table is never shared
    4. IndexPersister          -- writes the aggregate in one transaction

Per-item failures (an unreachable author page, a 404 document) are
recorded in the :class:`IngestionReport` and never abort the run.  The
author index itself is the root of the crawl: if it cannot be fetched or
parsed, :meth:`IngestionService.run` raises.
"""

from __future__ import annotations

import asyncio
import time
import uuid

import structlog

from verborum.interfaces.fetcher import IFetcher
from verborum.models.corpus import AuthorListing, WorkListing
from verborum.models.ingestion import FetchFailure, IngestionReport, PersistResult
from verborum.services.aggregator import CorpusAggregator
from verborum.services.corpus_directory import CorpusDirectoryResolver
from verborum.services.persister import IndexPersister
from verborum.utils.concurrency import fan_in_pool, throttled_gather
from verborum.utils.errors import FetchError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_WORKERS = 10


class IngestionService:
    """Runs the resolve -> fetch -> fold -> persist pipeline once.

    Parameters
    ----------
    fetcher:
        Bounded-concurrency fetcher; its semaphore is the real cap on
        in-flight requests.
    resolver:
        Catalogue resolver sharing *fetcher*.
    aggregator:
        The aggregate this run folds into.
    persister:
        Optional.  When ``None`` the run stops after aggregation and the
        report's ``persisted`` field stays empty.
    workers:
        Number of document worker tasks.  Defaults to the fetcher's
        concurrency cap when it exposes one.
    ordered_fold:
        Fold documents in discovery order instead of completion order so
        that ``text_id`` assignment is reproducible.
    """

    def __init__(
        self,
        fetcher: IFetcher,
        resolver: CorpusDirectoryResolver,
        aggregator: CorpusAggregator,
        persister: IndexPersister | None = None,
        workers: int | None = None,
        ordered_fold: bool = False,
    ) -> None:
        self._fetcher = fetcher
        self._resolver = resolver
        self._aggregator = aggregator
        self._persister = persister
        self._workers = workers or getattr(fetcher, "max_concurrency", _DEFAULT_WORKERS)
        self._ordered_fold = ordered_fold

    @property
    def aggregator(self) -> CorpusAggregator:
        return self._aggregator

    async def run(self) -> IngestionReport:
        """Ingest the whole corpus and return the run report.

        Raises
        ------
        FetchError, DirectoryParseError
            If the author index cannot be fetched or parsed.
        StorageError
            If the persist transaction fails (it is rolled back).
        """
        # Every log line of this run carries the same run_id.
        with structlog.contextvars.bound_contextvars(run_id=uuid.uuid4().hex[:12]):
            return await self._run()

    async def _run(self) -> IngestionReport:
        started = time.perf_counter()
        failures: list[FetchFailure] = []

        authors = await self._resolver.list_authors()
        author_ids = [self._aggregator.add_author(a.name, a.url) for a in authors]

        jobs = await self._resolve_works(authors, author_ids, failures)
        logger.info("ingestion_started", authors=len(authors), documents=len(jobs), workers=self._workers)

        ingested = 0

        def _fold(_idx: int, job: tuple[int, WorkListing], outcome: str | Exception) -> None:
            nonlocal ingested
            author_id, work = job
            if isinstance(outcome, FetchError):
                logger.warning(
                    "document_fetch_failed",
                    url=work.url,
                    status_code=outcome.status_code,
                    error=outcome.message,
                )
                failures.append(
                    FetchFailure(url=work.url, reason=outcome.message, status_code=outcome.status_code)
                )
                return
            if isinstance(outcome, Exception):
                raise outcome
            text_id = self._aggregator.add_document(work.url, outcome, author_id)
            ingested += 1
            logger.debug("document_folded", url=work.url, text_id=text_id)

        await fan_in_pool(
            jobs,
            produce=lambda job: self._fetcher.fetch_text(job[1].url),
            consume=_fold,
            workers=self._workers,
            ordered=self._ordered_fold,
        )

        persisted: PersistResult | None = None
        if self._persister is not None:
            persisted = await self._persister.persist(self._aggregator)

        report = IngestionReport(
            authors=len(authors),
            documents_discovered=len(jobs),
            documents_ingested=ingested,
            word_count=self._aggregator.word_count,
            unique_word_count=self._aggregator.unique_word_count,
            failures=failures,
            persisted=persisted,
            elapsed_seconds=round(time.perf_counter() - started, 3),
        )
        logger.info(
            "ingestion_complete",
            summary=report.summary(),
            failures=len(failures),
            word_count=report.word_count,
            unique_word_count=report.unique_word_count,
            elapsed_seconds=report.elapsed_seconds,
        )
        return report

    async def _resolve_works(
        self,
        authors: list[AuthorListing],
        author_ids: list[int],
        failures: list[FetchFailure],
    ) -> list[tuple[int, WorkListing]]:
        """Fetch every author's work listing; failed listings become failures."""
        limiter = asyncio.Semaphore(self._workers)
        listings = await throttled_gather(
            [self._resolver.list_works(author.url) for author in authors],
            semaphore=limiter,
        )

        jobs: list[tuple[int, WorkListing]] = []
        for author, author_id, listing in zip(authors, author_ids, listings):
            if isinstance(listing, FetchError):
                logger.warning("work_listing_failed", url=author.url, error=listing.message)
                failures.append(
                    FetchFailure(
                        url=author.url,
                        reason=listing.message,
                        status_code=listing.status_code,
                        stage="works",
                    )
                )
                continue
            if isinstance(listing, Exception):
                # Any other listing error is recorded against its author as well.
                logger.warning("work_listing_unparsable", url=author.url, error=repr(listing))
                failures.append(FetchFailure(url=author.url, reason=repr(listing), stage="works"))
                continue
            if isinstance(listing, BaseException):
                raise listing
            jobs.extend((author_id, work) for work in listing)
        return jobs
