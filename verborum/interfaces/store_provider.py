"""Abstract base classes for the storage engine.

The core treats the storage engine as an opaque transactional store that
runs parameterized scripts and answers with a headered row set.  Nothing
outside ``verborum.providers.store`` knows which engine sits behind this
contract.

Values exchanged with the engine are limited to int, float, str, bool,
list and None.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from types import TracebackType
from typing import Any, Union

StoreValue = Union[int, float, str, bool, list, None]
StoreParams = Union[Mapping[str, StoreValue], Sequence[StoreValue], None]


@dataclass(frozen=True)
class NamedRows:
    """A headered row set returned by the storage engine."""

    headers: list[str] = field(default_factory=list)
    rows: list[tuple[Any, ...]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    def column(self, name: str) -> list[Any]:
        """Return every value of column *name*; raises ``KeyError`` if absent."""
        try:
            idx = self.headers.index(name)
        except ValueError:
            raise KeyError(name) from None
        return [row[idx] for row in self.rows]

    def as_dicts(self) -> list[dict[str, Any]]:
        return [dict(zip(self.headers, row)) for row in self.rows]


class IStoreTransaction(ABC):
    """A transaction handle.

    Used as an async context manager: leaving the block without
    :meth:`commit` (or through an exception) rolls every write back.
    """

    @abstractmethod
    async def execute(self, template: str, params: StoreParams = None) -> NamedRows:
        """Run one script inside the transaction."""

    @abstractmethod
    async def execute_many(self, template: str, param_rows: Iterable[StoreParams]) -> int:
        """Run *template* once per parameter row; returns the number of rows run."""

    @abstractmethod
    async def commit(self) -> None:
        """Make every write of this transaction visible atomically."""

    @abstractmethod
    async def rollback(self) -> None:
        """Discard every write of this transaction."""

    async def __aenter__(self) -> IStoreTransaction:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.rollback()


class IStoreProvider(ABC):
    """Contract for the transactional storage engine."""

    @abstractmethod
    async def initialize(self) -> None:
        """Open the engine and create the index schema if it is missing."""

    @abstractmethod
    async def execute_read(self, template: str, params: StoreParams = None) -> NamedRows:
        """Run a read-only script; writes are rejected by the engine."""

    @abstractmethod
    async def execute_write(self, template: str, params: StoreParams = None) -> NamedRows:
        """Run a script that may write, committed on success."""

    @abstractmethod
    def begin_transaction(self, write: bool = True) -> IStoreTransaction:
        """Return a transaction handle; nothing is visible to readers until commit."""

    @abstractmethod
    async def close(self) -> None:
        """Close the engine handle."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"sqlite"``."""
