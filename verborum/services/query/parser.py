"""Query line parser: ``command arg "quoted arg" ...``.

Splits one line of the command language into a command name and its
arguments.  Arguments are separated by spaces or tabs; a double-quoted
section may contain whitespace and is joined to any unquoted characters
touching it, the way a shell would.  Leading and trailing whitespace is
insignificant.

Errors are typed and recoverable:

- empty input                         -> :class:`EmptyQueryError`
- a quoted but empty command name     -> :class:`MissingCommandError`
- an opening quote that never closes  -> :class:`UnmatchedQuotesError`

Unknown command *names* are not parse errors; see
:meth:`Query.to_command`.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from verborum.services.query.commands import Command, UnknownCommand, build_command
from verborum.utils.errors import EmptyQueryError, MissingCommandError, UnmatchedQuotesError

_SEPARATORS = frozenset(" \t")
_QUOTE = '"'


def _split_arguments(line: str) -> list[str]:
    tokens: list[str] = []
    current: list[str] = []
    in_token = False
    idx = 0
    while idx < len(line):
        ch = line[idx]
        if ch == _QUOTE:
            end = line.find(_QUOTE, idx + 1)
            if end == -1:
                raise UnmatchedQuotesError(f"Unmatched quotes starting at column {idx + 1}")
            current.append(line[idx + 1 : end])
            in_token = True
            idx = end + 1
            continue
        if ch in _SEPARATORS:
            if in_token:
                tokens.append("".join(current))
                current, in_token = [], False
        else:
            current.append(ch)
            in_token = True
        idx += 1
    if in_token:
        tokens.append("".join(current))
    return tokens


@dataclass(frozen=True)
class Query:
    """A parsed query line: a command name plus its raw string arguments."""

    name: str
    args: list[str] = field(default_factory=list)

    @classmethod
    def parse(cls, line: str) -> Query:
        """Parse one query line.

        Raises
        ------
        QueryParseError
            ``EmptyQueryError``, ``MissingCommandError`` or
            ``UnmatchedQuotesError``.
        """
        stripped = line.strip(" \t\r\n")
        if not stripped:
            raise EmptyQueryError()

        tokens = _split_arguments(stripped)
        name, *args = tokens
        if not name:
            raise MissingCommandError()
        return cls(name=name, args=args)

    def to_command(self, default_limit: int | None = None) -> Command | UnknownCommand:
        """Resolve the command name into a typed, compiled-ready command.

        Returns a :class:`Command`, or an :class:`UnknownCommand` for names
        outside the command set.

        Raises
        ------
        MissingArgumentError, InvalidArgumentError
            If the arguments do not fit the command.
        """
        return build_command(self, default_limit=default_limit)
