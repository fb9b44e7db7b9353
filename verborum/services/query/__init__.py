"""Query interpreter: parse a command line, compile it, run it read-only."""

from verborum.services.query.commands import (
    DEFAULT_LIMIT,
    Command,
    CommandKind,
    UnknownCommand,
    build_command,
    help_table,
    parse_limit,
    suggest_command,
)
from verborum.services.query.parser import Query
from verborum.services.query.search import Search, SearchKind, SearchMode

__all__ = [
    "DEFAULT_LIMIT",
    "Command",
    "CommandKind",
    "Query",
    "Search",
    "SearchKind",
    "SearchMode",
    "UnknownCommand",
    "build_command",
    "help_table",
    "parse_limit",
    "suggest_command",
]
