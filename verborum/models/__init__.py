"""Statistica Verborum domain models -- re-exports all public model classes.

    - corpus.py     -- catalogue listings, Author, Document, Word, WordStat
    - ingestion.py  -- FetchFailure, PersistResult, IngestionReport
"""

from __future__ import annotations

from verborum.models.corpus import (
    Author,
    AuthorListing,
    Document,
    Word,
    WordStat,
    WorkListing,
)
from verborum.models.ingestion import FetchFailure, IngestionReport, PersistResult

__all__ = [
    "Author",
    "AuthorListing",
    "Document",
    "FetchFailure",
    "IngestionReport",
    "PersistResult",
    "Word",
    "WordStat",
    "WorkListing",
]
