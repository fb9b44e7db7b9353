"""Public interface definitions for the external collaborators of the core.

The core reaches the network and the storage engine exclusively through
the abstract base classes defined here.  Concrete adapters live in
``verborum.providers`` and are injected through constructors; no component
looks up a process-wide handle.

CONCRETE PROVIDER MAP:
    Interface        ->  Concrete implementations (in verborum/providers/)
    ---------------------------------------------------------------------
    IFetcher         ->  HttpxFetcher
    IStoreProvider   ->  SQLiteStoreProvider
"""

from verborum.interfaces.fetcher import FetchOutcome, IFetcher
from verborum.interfaces.store_provider import (
    IStoreProvider,
    IStoreTransaction,
    NamedRows,
    StoreParams,
    StoreValue,
)

__all__ = [
    "FetchOutcome",
    "IFetcher",
    "IStoreProvider",
    "IStoreTransaction",
    "NamedRows",
    "StoreParams",
    "StoreValue",
]
