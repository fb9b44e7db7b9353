"""Storage engine providers.

SQLiteStoreProvider stores the word index (authors, texts, per-text word
counts) in data/svl-stats.db and exposes the read/write/transaction
contract of IStoreProvider.
"""

from verborum.providers.store.sqlite_store_provider import SQLiteStoreProvider, SQLiteTransaction

__all__ = ["SQLiteStoreProvider", "SQLiteTransaction"]
