"""Typed query commands and their execution against the store.

A parsed :class:`~verborum.services.query.parser.Query` resolves to either
a :class:`Command` (one of the closed :class:`CommandKind` set, with its
arguments validated) or an :class:`UnknownCommand`.  Executing a command
compiles it to one parameterized read-only query and runs it through
``IStoreProvider.execute_read``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

import structlog
from rapidfuzz import fuzz, process

from verborum.interfaces.store_provider import IStoreProvider, NamedRows, StoreParams
from verborum.models.corpus import Word
from verborum.services.query.search import Search, SearchKind, SearchMode
from verborum.utils.errors import InvalidArgumentError, MissingArgumentError, UnknownCommandError

if TYPE_CHECKING:
    from verborum.services.query.parser import Query

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_LIMIT = 25

_SUGGESTION_CUTOFF = 60.0

# Largest value SQLite can bind as an INTEGER.
MAX_LIMIT = 2**63 - 1

_COUNT_SQL = (
    "SELECT word, SUM(count) AS total, COUNT(text_id) AS texts "
    "FROM words WHERE word = :term GROUP BY word"
)

_STATS_SQL = (
    "SELECT "
    "(SELECT COALESCE(SUM(count), 0) FROM words) AS total_words, "
    "(SELECT COUNT(DISTINCT word) FROM words) AS unique_words, "
    "(SELECT COUNT(*) FROM texts) AS texts, "
    "(SELECT COUNT(*) FROM authors) AS authors"
)


class CommandKind(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    """The closed set of query commands."""

    TOP = "top"
    TEXTS = "texts"
    ENDING = "ending"
    CONTAINING = "containing"
    WORD = "word"
    AUTHOR = "author"
    COUNT = "count"
    STATS = "stats"
    HELP = "help"

    @property
    def usage(self) -> str:
        return _USAGE[self][0]

    @property
    def description(self) -> str:
        return _USAGE[self][1]


_USAGE: dict[CommandKind, tuple[str, str]] = {
    CommandKind.TOP: ("top <prefix> [limit]", "words starting with prefix, most widespread first"),
    CommandKind.TEXTS: ("texts <prefix> [limit]", "texts containing a word starting with prefix"),
    CommandKind.ENDING: ("ending <suffix> [limit]", "words ending with suffix"),
    CommandKind.CONTAINING: ("containing <substring> [limit]", "words containing substring"),
    CommandKind.WORD: (
        "word <term> [starts|ends|contains|eq|neq] [cs|ci] [limit]",
        "words matching term under a search mode",
    ),
    CommandKind.AUTHOR: (
        "author <term> [starts|ends|contains|eq|neq] [cs|ci] [limit]",
        "authors whose name matches term",
    ),
    CommandKind.COUNT: ("count <word>", "total count and text count of one word"),
    CommandKind.STATS: ("stats", "total words, unique words, texts and authors"),
    CommandKind.HELP: ("help", "this table"),
}

# Commands that are a fixed search over words or texts with a [limit] argument.
_FIXED_SEARCHES: dict[CommandKind, tuple[SearchKind, SearchMode]] = {
    CommandKind.TOP: (SearchKind.WORD, SearchMode.STARTS_WITH),
    CommandKind.TEXTS: (SearchKind.TEXT, SearchMode.STARTS_WITH),
    CommandKind.ENDING: (SearchKind.WORD, SearchMode.ENDS_WITH),
    CommandKind.CONTAINING: (SearchKind.WORD, SearchMode.CONTAINS),
}

_ARGUMENT_NAMES: dict[CommandKind, str] = {
    CommandKind.TOP: "prefix",
    CommandKind.TEXTS: "prefix",
    CommandKind.ENDING: "suffix",
    CommandKind.CONTAINING: "substring",
    CommandKind.WORD: "term",
    CommandKind.AUTHOR: "term",
    CommandKind.COUNT: "word",
}


# ======================================================================
# Argument parsing
# ======================================================================


def parse_limit(command: str, token: str) -> int:
    """Parse a limit token; it must be a positive integer.

    Raises
    ------
    InvalidArgumentError
        For anything that is not a positive integer or exceeds
        ``MAX_LIMIT``.
    """
    if not (token.isascii() and token.isdigit()):
        raise InvalidArgumentError(command, token, "limit must be a positive integer")
    limit = int(token)
    if limit < 1:
        raise InvalidArgumentError(command, token, "limit must be a positive integer")
    if limit > MAX_LIMIT:
        raise InvalidArgumentError(command, token, f"limit must be at most {MAX_LIMIT}")
    return limit


def _required(kind: CommandKind, args: list[str]) -> str:
    if not args or not args[0]:
        raise MissingArgumentError(kind.value, _ARGUMENT_NAMES[kind])
    return args[0]


def _no_extra(kind: CommandKind, args: list[str], allowed: int) -> None:
    if len(args) > allowed:
        raise InvalidArgumentError(kind.value, args[allowed], "unexpected argument")


def _parse_fixed_search(kind: CommandKind, args: list[str], default_limit: int) -> Search:
    term = _required(kind, args)
    _no_extra(kind, args, 2)
    limit = parse_limit(kind.value, args[1]) if len(args) > 1 else default_limit
    search_kind, mode = _FIXED_SEARCHES[kind]
    return Search(kind=search_kind, mode=mode, term=term, limit=limit)


def _parse_free_search(
    kind: CommandKind,
    search_kind: SearchKind,
    args: list[str],
    default_limit: int,
) -> Search:
    """``<term> [mode] [cs|ci] [limit]`` with the optional tokens in any order."""
    term = _required(kind, args)
    mode = SearchMode.STARTS_WITH
    case_sensitive = False
    limit = default_limit
    seen: set[str] = set()

    for token in args[1:]:
        lowered = token.lower()
        candidate = SearchMode.from_token(token)
        if candidate is not None:
            slot = "mode"
            mode = candidate
        elif lowered in ("cs", "ci"):
            slot = "case"
            case_sensitive = lowered == "cs"
        elif token.isascii() and token.isdigit():
            slot = "limit"
            limit = parse_limit(kind.value, token)
        else:
            raise InvalidArgumentError(
                kind.value, token, "expected a search mode, cs/ci or a limit"
            )
        if slot in seen:
            raise InvalidArgumentError(kind.value, token, f"{slot} given twice")
        seen.add(slot)

    return Search(
        kind=search_kind,
        mode=mode,
        term=term,
        case_sensitive=case_sensitive,
        limit=limit,
    )


# ======================================================================
# Commands
# ======================================================================


@dataclass(frozen=True)
class Command:
    """A validated command, ready to compile and execute.

    ``search`` is set for the search commands; ``term`` for ``count``.
    """

    kind: CommandKind
    search: Search | None = None
    term: str | None = None

    def compile(self) -> tuple[str, StoreParams] | None:
        """Return ``(sql, params)``, or ``None`` for commands answered locally."""
        if self.search is not None:
            return self.search.compile()
        if self.kind is CommandKind.COUNT:
            return _COUNT_SQL, {"term": str(Word(self.term or ""))}
        if self.kind is CommandKind.STATS:
            return _STATS_SQL, None
        if self.kind is CommandKind.HELP:
            return None
        raise AssertionError(f"Command {self.kind!r} has nothing to compile")

    async def execute(self, store: IStoreProvider) -> NamedRows:
        """Run the command against *store* and return its rows.

        Raises
        ------
        StorageError
            If the store rejects the compiled query.
        """
        compiled = self.compile()
        if compiled is None:
            return help_table()
        template, params = compiled
        rows = await store.execute_read(template, params)
        logger.debug("query_executed", command=self.kind.value, rows=len(rows))
        return rows


@dataclass(frozen=True)
class UnknownCommand:
    """A command name outside :class:`CommandKind`; executing it raises."""

    name: str
    suggestion: str | None = None

    async def execute(self, store: IStoreProvider) -> NamedRows:  # noqa: ARG002
        raise UnknownCommandError(self.name, self.suggestion)


def suggest_command(name: str) -> str | None:
    """Closest command name to *name*, or ``None`` if nothing is close enough."""
    match = process.extractOne(
        name.lower(),
        [kind.value for kind in CommandKind],
        scorer=fuzz.ratio,
        score_cutoff=_SUGGESTION_CUTOFF,
    )
    return match[0] if match else None


def help_table() -> NamedRows:
    return NamedRows(
        headers=["command", "description"],
        rows=[(kind.usage, kind.description) for kind in CommandKind],
    )


def build_command(query: Query, default_limit: int | None = None) -> Command | UnknownCommand:
    """Resolve *query* into a :class:`Command` or :class:`UnknownCommand`.

    Raises
    ------
    MissingArgumentError, InvalidArgumentError
        If the arguments do not fit the command.
    """
    limit = default_limit if default_limit is not None else DEFAULT_LIMIT
    try:
        kind = CommandKind(query.name.lower())
    except ValueError:
        return UnknownCommand(name=query.name, suggestion=suggest_command(query.name))

    args = query.args
    if kind in _FIXED_SEARCHES:
        return Command(kind=kind, search=_parse_fixed_search(kind, args, limit))
    if kind is CommandKind.WORD:
        return Command(kind=kind, search=_parse_free_search(kind, SearchKind.WORD, args, limit))
    if kind is CommandKind.AUTHOR:
        return Command(kind=kind, search=_parse_free_search(kind, SearchKind.AUTHOR, args, limit))
    if kind is CommandKind.COUNT:
        term = _required(kind, args)
        _no_extra(kind, args, 1)
        return Command(kind=kind, term=term)
    if kind in (CommandKind.STATS, CommandKind.HELP):
        _no_extra(kind, args, 0)
        return Command(kind=kind)
    raise AssertionError(f"Unhandled command kind: {kind!r}")
