"""Custom exception hierarchy for Statistica Verborum.

All application exceptions inherit from :class:`VerborumError`, which
carries an optional ``provider_name`` so error handlers can identify which
collaborator (e.g. "httpx", "sqlite", "latin_library") caused the failure.

The hierarchy is organized by pipeline stage:

    VerborumError  (base -- catch-all for any verborum error)
    +-- FetchError            (transport: connection, timeout, non-2xx, plaintext URL)
    +-- DirectoryParseError   (catalogue page layout not recognised)
    +-- StorageError          (storage engine failure; aborts a persist step)
    +-- ConfigurationError    (startup / invalid config)
    +-- QueryError            (query interpreter, recoverable)
        +-- QueryParseError
        |   +-- EmptyQueryError
        |   +-- MissingCommandError
        |   +-- UnmatchedQuotesError
        +-- UnknownCommandError
        +-- MissingArgumentError
        +-- InvalidArgumentError

Fetch and directory errors are collected per item by the ingestion driver;
storage errors abort the run; query errors go back to the shell for display.
"""

from __future__ import annotations


class VerborumError(Exception):
    """Base exception for all Statistica Verborum errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name``.  ``__str__`` prefixes the provider name in brackets
    for structured log output, e.g. ``[httpx] HTTP 404 for https://...``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Ingestion errors
# ---------------------------------------------------------------------------

class FetchError(VerborumError):
    """Raised when a document or listing page cannot be fetched.

    ``status_code`` is set for non-2xx responses and ``None`` for
    connection failures, timeouts and rejected plaintext URLs.
    """

    def __init__(
        self,
        message: str = "Fetch failed",
        url: str = "",
        status_code: int | None = None,
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._url = url
        self._status_code = status_code

    @property
    def url(self) -> str:
        return self._url

    @property
    def status_code(self) -> int | None:
        return self._status_code


class DirectoryParseError(VerborumError):
    """Raised when the top-level catalogue page lacks its author selector."""

    def __init__(
        self,
        message: str = "Corpus directory could not be parsed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class StorageError(VerborumError):
    """Raised when the storage engine rejects a script or a transaction fails."""

    def __init__(
        self,
        message: str = "Storage operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(VerborumError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Query interpreter errors
# ---------------------------------------------------------------------------

class QueryError(VerborumError):
    """Base class for recoverable query interpreter errors."""

    def __init__(
        self,
        message: str = "Query failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class QueryParseError(QueryError):
    """Raised when a query line cannot be tokenized into a command."""


class EmptyQueryError(QueryParseError):
    def __init__(self, message: str = "Empty query") -> None:
        super().__init__(message=message)


class MissingCommandError(QueryParseError):
    def __init__(self, message: str = "Missing command name") -> None:
        super().__init__(message=message)


class UnmatchedQuotesError(QueryParseError):
    def __init__(self, message: str = "Unmatched quotes in query") -> None:
        super().__init__(message=message)


class UnknownCommandError(QueryError):
    """Raised when an unrecognized command is executed.

    ``suggestion`` holds the closest known command name, if any.
    """

    def __init__(self, command: str, suggestion: str | None = None) -> None:
        message = f"Unknown query: {command}"
        if suggestion:
            message += f" (did you mean '{suggestion}'?)"
        super().__init__(message=message)
        self._command = command
        self._suggestion = suggestion

    @property
    def command(self) -> str:
        return self._command

    @property
    def suggestion(self) -> str | None:
        return self._suggestion


class MissingArgumentError(QueryError):
    def __init__(self, command: str, argument: str) -> None:
        super().__init__(message=f"Missing argument for '{command}': {argument}")


class InvalidArgumentError(QueryError):
    def __init__(self, command: str, argument: str, reason: str) -> None:
        super().__init__(message=f"Invalid argument for '{command}': {argument!r} ({reason})")
