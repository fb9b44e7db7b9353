"""Utility modules for Statistica Verborum.

- **errors** -- Exception hierarchy rooted at VerborumError; each pipeline
  stage raises its own subclass so callers can handle failures per item.
- **concurrency** -- semaphore-throttled gather and the worker-pool /
  single-consumer fan-in used by the ingestion driver.
- **logging** -- structlog setup with a dual renderer (console or JSON).
"""

from verborum.utils.concurrency import fan_in_pool, throttled_gather
from verborum.utils.errors import (
    ConfigurationError,
    DirectoryParseError,
    EmptyQueryError,
    FetchError,
    InvalidArgumentError,
    MissingArgumentError,
    MissingCommandError,
    QueryError,
    QueryParseError,
    StorageError,
    UnknownCommandError,
    UnmatchedQuotesError,
    VerborumError,
)
from verborum.utils.logging import configure_logging, get_logger

__all__ = [
    "ConfigurationError",
    "DirectoryParseError",
    "EmptyQueryError",
    "FetchError",
    "InvalidArgumentError",
    "MissingArgumentError",
    "MissingCommandError",
    "QueryError",
    "QueryParseError",
    "StorageError",
    "UnknownCommandError",
    "UnmatchedQuotesError",
    "VerborumError",
    "configure_logging",
    "fan_in_pool",
    "get_logger",
    "throttled_gather",
]
