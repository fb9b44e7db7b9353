# =============================================================================
# verborum/cli/ingest.py -- CLI for building and querying the word index
# =============================================================================
#
# Supported subcommands:
#
#   create-schema -- create the SQLite tables and indexes (idempotent)
#   fetch-stats   -- crawl the corpus, aggregate word statistics and persist
#                    them in one transaction, then print the run report
#   repl          -- interactive shell over the persisted index
#
# Configuration comes from config/config.yaml merged with SVL_* environment
# variables (see verborum.config.loader); command-line flags override both.
#
# Usage examples:
#   python -m verborum.cli.ingest create-schema
#   python -m verborum.cli.ingest fetch-stats --max-concurrency 5 --json-logs
#   python -m verborum.cli.ingest repl --db data/svl-stats.db
# =============================================================================

"""Standalone CLI for the Statistica Verborum word index.

Usage::

    python -m verborum.cli.ingest create-schema

    python -m verborum.cli.ingest fetch-stats

    python -m verborum.cli.ingest repl

Also installed as the ``svl`` console script.
"""

from __future__ import annotations

import argparse
import asyncio
import sys

import structlog

from verborum.config.loader import load_config
from verborum.models.ingestion import IngestionReport
from verborum.utils.errors import VerborumError
from verborum.utils.logging import configure_logging

logger = structlog.get_logger(logger_name=__name__)


def _build_store(config: dict):  # noqa: ANN202
    from verborum.providers.store.sqlite_store_provider import SQLiteStoreProvider

    return SQLiteStoreProvider(db_path=config["storage"]["db_path"])


def _build_ingestion_service(config: dict, store):  # noqa: ANN001, ANN202
    """Wire fetcher, resolver, tokenizer, aggregator and persister from *config*.

    Returns
    -------
    tuple[IngestionService, HttpxFetcher]
        The service and the fetcher it owns; the caller closes the fetcher.
    """
    from verborum.providers.http.httpx_fetcher import HttpxFetcher
    from verborum.services.aggregator import CorpusAggregator
    from verborum.services.corpus_directory import CorpusDirectoryResolver
    from verborum.services.ingestion_service import IngestionService
    from verborum.services.persister import IndexPersister
    from verborum.services.tokenizer import Tokenizer

    fetch = config.get("fetch", {})
    storage = config.get("storage", {})

    fetcher = HttpxFetcher(
        max_concurrency=fetch["max_concurrent_requests"],
        timeout=fetch["timeout"],
        user_agent=fetch["user_agent"],
    )
    resolver = CorpusDirectoryResolver(fetcher, index_url=config["corpus"]["index_url"])
    aggregator = CorpusAggregator(tokenizer=Tokenizer.from_config(config))
    persister = IndexPersister(
        store,
        batch_size=storage.get("batch_size", 500),
        replace_existing=storage.get("replace_existing", True),
    )
    service = IngestionService(
        fetcher=fetcher,
        resolver=resolver,
        aggregator=aggregator,
        persister=persister,
        ordered_fold=config.get("aggregation", {}).get("ordered_fold", False),
    )
    return service, fetcher


def _print_report(report: IngestionReport, aggregator) -> None:  # noqa: ANN001
    print("Ingestion complete:")
    print(f"  {report.summary()}")
    print(f"  Authors:          {report.authors}")
    print(f"  Words:            {report.word_count}")
    print(f"  Unique words:     {report.unique_word_count}")
    print(f"  In a single text: {aggregator.words_in_single_text()}")
    print(f"  Time:             {report.elapsed_seconds:.2f}s")
    if report.persisted is not None:
        print(f"  Rows written:     {report.persisted.words_written} word rows")

    if report.failures:
        print(f"\n  Failures ({len(report.failures)}):")
        for failure in report.failures:
            status = f" [{failure.status_code}]" if failure.status_code else ""
            print(f"    {failure.stage:<8} {failure.url}{status}: {failure.reason}")

    top = aggregator.top_words(10)
    if top:
        print("\n  Most frequent words:")
        for word, count in top:
            print(f"    {word:<20} {count}")


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


async def _handle_create_schema(config: dict) -> int:
    """Create the index tables."""
    store = _build_store(config)
    try:
        await store.initialize()
    finally:
        await store.close()
    print(f"Schema ready: {store.db_path}")
    return 0


async def _handle_fetch_stats(config: dict) -> int:
    """Crawl, aggregate and persist the corpus."""
    store = _build_store(config)
    try:
        await store.initialize()
        service, fetcher = _build_ingestion_service(config, store)
        try:
            print(f"Fetching corpus from {config['corpus']['index_url']}")
            report = await service.run()
        finally:
            await fetcher.aclose()
    finally:
        await store.close()

    _print_report(report, service.aggregator)
    return 0


async def _handle_repl(config: dict) -> int:
    """Run the interactive shell."""
    from verborum.cli.repl import Shell

    store = _build_store(config)
    try:
        await store.initialize()
        shell = Shell(store, default_limit=config.get("query", {}).get("default_limit", 25))
        await shell.run()
    finally:
        await store.close()
    return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="svl",
        description="Build and query word frequency statistics for a classical-language corpus.",
    )
    parser.add_argument("--config", default="config/config.yaml", help="YAML config file")
    parser.add_argument("--db", dest="db_path", help="SQLite database path (overrides config)")
    parser.add_argument("--log-level", dest="log_level", help="DEBUG, INFO, WARNING or ERROR")
    parser.add_argument(
        "--json-logs",
        action="store_true",
        dest="json_logs",
        help="Emit logs as JSON lines",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # -- create-schema --
    subparsers.add_parser("create-schema", help="Create the index tables")

    # -- fetch-stats --
    fetch_parser = subparsers.add_parser("fetch-stats", help="Crawl the corpus and persist word statistics")
    fetch_parser.add_argument("--index-url", dest="index_url", help="Author index page URL")
    fetch_parser.add_argument(
        "--max-concurrency",
        dest="max_concurrency",
        type=int,
        help="Maximum number of in-flight requests",
    )
    fetch_parser.add_argument(
        "--ordered",
        action="store_true",
        help="Fold documents in discovery order (reproducible text ids)",
    )
    fetch_parser.add_argument(
        "--keep-existing",
        action="store_true",
        dest="keep_existing",
        help="Upsert into the existing index instead of replacing it",
    )

    # -- repl --
    subparsers.add_parser("repl", help="Interactive query shell")

    return parser


def _apply_overrides(config: dict, args: argparse.Namespace) -> dict:
    if args.db_path:
        config.setdefault("storage", {})["db_path"] = args.db_path
    if args.log_level:
        config.setdefault("logging", {})["level"] = args.log_level
    if getattr(args, "index_url", None):
        config.setdefault("corpus", {})["index_url"] = args.index_url
    if getattr(args, "max_concurrency", None):
        config.setdefault("fetch", {})["max_concurrent_requests"] = args.max_concurrency
    if getattr(args, "ordered", False):
        config.setdefault("aggregation", {})["ordered_fold"] = True
    if getattr(args, "keep_existing", False):
        config.setdefault("storage", {})["replace_existing"] = False
    return config


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.

    Parses the subcommand, loads the merged configuration, configures
    logging and dispatches to the handler.  Application errors are printed
    to stderr and turn into exit status 1.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    try:
        config = _apply_overrides(load_config(args.config), args)
    except VerborumError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    configure_logging(
        log_level=config.get("logging", {}).get("level", "INFO"),
        json_output=args.json_logs,
    )

    handlers = {
        "create-schema": _handle_create_schema,
        "fetch-stats": _handle_fetch_stats,
        "repl": _handle_repl,
    }
    try:
        exit_code = asyncio.run(handlers[args.command](config))
    except VerborumError as exc:
        logger.error("command_failed", command=args.command, error=str(exc))
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
