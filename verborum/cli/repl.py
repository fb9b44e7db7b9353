# =============================================================================
# verborum/cli/repl.py -- Interactive query shell
# =============================================================================
#
# A minimal read-eval-print loop over the persisted index:
#
#   /top "la" 5        -- a line starting with "/" is a query command,
#                         parsed and compiled by verborum.services.query
#   SELECT * FROM ...  -- any other line is a raw SQL statement, run
#                         through IStoreProvider.execute_write
#
# Every result is printed as a plain text table.  Query and storage errors
# are printed and the loop continues; only EOF, "/quit" or Ctrl-C end it.
# No line editing or history.
# =============================================================================

"""Interactive shell for the word index."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any, TextIO

import structlog

from verborum.interfaces.store_provider import IStoreProvider, NamedRows
from verborum.services.query import DEFAULT_LIMIT, Query
from verborum.utils.errors import QueryError, StorageError, UnknownCommandError

logger = structlog.get_logger(logger_name=__name__)

PROMPT = "svl> "
QUERY_PREFIX = "/"
_EXIT_COMMANDS = frozenset({"quit", "exit", "q"})
_MAX_CELL_WIDTH = 60


def _cell(value: Any) -> str:
    text = "" if value is None else str(value)
    text = " ".join(text.split())
    if len(text) > _MAX_CELL_WIDTH:
        text = text[: _MAX_CELL_WIDTH - 3] + "..."
    return text


def format_table(rows: NamedRows) -> str:
    """Render *rows* as a fixed-width text table with a row-count footer."""
    if not rows.headers:
        return f"({len(rows)} rows)"

    cells = [[_cell(value) for value in row] for row in rows.rows]
    widths = [len(header) for header in rows.headers]
    for row in cells:
        for idx, value in enumerate(row):
            widths[idx] = max(widths[idx], len(value))

    lines = [
        "  ".join(header.ljust(widths[idx]) for idx, header in enumerate(rows.headers)),
        "  ".join("-" * width for width in widths),
    ]
    for row in cells:
        lines.append("  ".join(value.ljust(widths[idx]) for idx, value in enumerate(row)).rstrip())
    suffix = "row" if len(rows) == 1 else "rows"
    lines.append(f"({len(rows)} {suffix})")
    return "\n".join(lines)


class Shell:
    """Evaluates shell lines against a store and renders the results.

    Parameters
    ----------
    store:
        An initialized storage engine.
    default_limit:
        Row limit for search commands that do not give one.
    out:
        Stream the results are written to.
    """

    def __init__(self, store: IStoreProvider, default_limit: int = DEFAULT_LIMIT, out: TextIO | None = None) -> None:
        self._store = store
        self._default_limit = default_limit
        self._out = out

    async def evaluate(self, line: str) -> NamedRows | None:
        """Run one line; returns ``None`` for a blank line.

        Raises
        ------
        QueryError
            For malformed or unknown query commands.
        StorageError
            If the store rejects the statement.
        """
        stripped = line.strip()
        if not stripped:
            return None
        if stripped.startswith(QUERY_PREFIX):
            command = Query.parse(stripped[len(QUERY_PREFIX) :]).to_command(default_limit=self._default_limit)
            return await command.execute(self._store)
        return await self._store.execute_write(stripped)

    async def handle_line(self, line: str) -> str | None:
        """Evaluate *line* and return the text to print, errors included."""
        try:
            rows = await self.evaluate(line)
        except UnknownCommandError as exc:
            return f"{exc.message}. Type /help for the command list."
        except QueryError as exc:
            return f"Query error: {exc.message}"
        except StorageError as exc:
            logger.debug("shell_statement_failed", error=exc.message)
            return f"Storage error: {exc.message}"
        if rows is None:
            return None
        return format_table(rows)

    async def run(self, read_line: Callable[[str], str] = input) -> None:
        """Loop until EOF or an exit command."""
        self._write("Statistica Verborum shell. Queries start with '/', /help lists them, /quit exits.")
        while True:
            try:
                line = await asyncio.to_thread(read_line, PROMPT)
            except (EOFError, KeyboardInterrupt):
                self._write("")
                return
            stripped = line.strip()
            if stripped.startswith(QUERY_PREFIX) and stripped[len(QUERY_PREFIX) :].strip().lower() in _EXIT_COMMANDS:
                return
            output = await self.handle_line(line)
            if output is not None:
                self._write(output)

    def _write(self, text: str) -> None:
        print(text, file=self._out)
