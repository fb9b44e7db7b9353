"""Search modes and their compilation to SQL predicates.

A :class:`Search` pairs *what* is searched (:class:`SearchKind`) with
*how* the term is matched (:class:`SearchMode`).  Both enums are closed;
each member compiles to its own SQL through an explicit method, so adding
a member without a compilation branch fails loudly instead of falling
through to a default.

Every compiled query is parameterized: the search term and the limit are
bound as ``:term`` and ``:limit`` and never spliced into the SQL text.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from verborum.interfaces.store_provider import StoreParams


class SearchMode(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    """How a stored value is compared against the search term."""

    STARTS_WITH = "starts"
    ENDS_WITH = "ends"
    CONTAINS = "contains"
    IS_EQUAL = "eq"
    IS_NOT_EQUAL = "neq"

    @classmethod
    def from_token(cls, token: str) -> SearchMode | None:
        """Resolve a command-line token (or one of its aliases) to a mode."""
        token = token.lower()
        try:
            return cls(token)
        except ValueError:
            return _MODE_ALIASES.get(token)

    def predicate(self, column: str, case_sensitive: bool = False) -> str:
        """Return the SQL predicate comparing *column* with ``:term``.

        Case-insensitive predicates casefold the column; the caller binds
        an already casefolded term (see :meth:`Search.bound_term`).
        """
        lhs = column if case_sensitive else f"casefold({column})"
        if self is SearchMode.STARTS_WITH:
            return f"substr({lhs}, 1, length(:term)) = :term"
        if self is SearchMode.ENDS_WITH:
            return (
                f"length({lhs}) >= length(:term) "
                f"AND substr({lhs}, length({lhs}) - length(:term) + 1) = :term"
            )
        if self is SearchMode.CONTAINS:
            return f"instr({lhs}, :term) > 0"
        if self is SearchMode.IS_EQUAL:
            return f"{lhs} = :term"
        if self is SearchMode.IS_NOT_EQUAL:
            return f"{lhs} <> :term"
        raise AssertionError(f"Unhandled search mode: {self!r}")


_MODE_ALIASES: dict[str, SearchMode] = {
    "prefix": SearchMode.STARTS_WITH,
    "suffix": SearchMode.ENDS_WITH,
    "substring": SearchMode.CONTAINS,
    "equals": SearchMode.IS_EQUAL,
    "not-equals": SearchMode.IS_NOT_EQUAL,
}


class SearchKind(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    """The relation a search runs against."""

    WORD = "word"
    TEXT = "text"
    AUTHOR = "author"

    def template(self, predicate: str) -> str:
        """Return the full SELECT for this kind with *predicate* in its WHERE clause."""
        if self is SearchKind.WORD:
            return (
                "SELECT word, SUM(count) AS total, COUNT(text_id) AS texts "
                f"FROM words WHERE {predicate} "
                "GROUP BY word ORDER BY texts DESC, total DESC, word LIMIT :limit"
            )
        if self is SearchKind.TEXT:
            return (
                "SELECT t.text_id, t.source_url, a.name AS author, SUM(w.count) AS matches "
                "FROM words w "
                "JOIN texts t ON t.text_id = w.text_id "
                "LEFT JOIN authors a ON a.author_id = t.author_id "
                f"WHERE {predicate} "
                "GROUP BY t.text_id, t.author_id "
                "ORDER BY matches DESC, t.text_id LIMIT :limit"
            )
        if self is SearchKind.AUTHOR:
            return (
                "SELECT a.author_id, a.name, a.source_url, COUNT(t.text_id) AS texts "
                "FROM authors a LEFT JOIN texts t ON t.author_id = a.author_id "
                f"WHERE {predicate} "
                "GROUP BY a.author_id ORDER BY a.name, a.author_id LIMIT :limit"
            )
        raise AssertionError(f"Unhandled search kind: {self!r}")

    @property
    def column(self) -> str:
        """The column the search term is matched against."""
        if self is SearchKind.WORD:
            return "word"
        if self is SearchKind.TEXT:
            return "w.word"
        if self is SearchKind.AUTHOR:
            return "a.name"
        raise AssertionError(f"Unhandled search kind: {self!r}")


@dataclass(frozen=True)
class Search:
    """One compiled-ready search: kind, mode, term, case policy and limit."""

    kind: SearchKind
    mode: SearchMode
    term: str
    case_sensitive: bool = False
    limit: int = 25

    def bound_term(self) -> str:
        return self.term if self.case_sensitive else self.term.casefold()

    def compile(self) -> tuple[str, StoreParams]:
        """Return ``(sql, params)`` ready for ``IStoreProvider.execute_read``."""
        predicate = self.mode.predicate(self.kind.column, self.case_sensitive)
        return self.kind.template(predicate), {"term": self.bound_term(), "limit": self.limit}
