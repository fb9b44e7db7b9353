"""Corpus data models: catalogue rows, authors, texts, words and word stats.

Records that are written once per ingestion run (Author, Document and the
catalogue listings) are frozen pydantic v2 models.  ``Word`` is a ``str``
subclass so it hashes and compares like the normalized string it wraps.
``WordStat`` is the only mutable record: the Aggregator increments it on
every occurrence of its word.

Identifier conventions:
    - ``author_id`` and ``text_id`` are dense integers starting at 1,
      assigned by :class:`verborum.services.aggregator.CorpusAggregator`.
    - ``text_id`` order is the order documents were folded into the
      Aggregator, which is fetch *completion* order unless the run was
      configured with ``ordered_fold``.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field


class Word(str):
    """A normalized word form.

    The constructor lowercases its input, so ``Word("Arma") == Word("arma")``
    and both hash the same.  Stripping non-alphabetic characters is the
    tokenizer's job; ``Word`` only normalizes case.
    """

    __slots__ = ()

    def __new__(cls, value: str) -> Word:
        return super().__new__(cls, value.lower())

    def __repr__(self) -> str:
        return f"Word({str.__repr__(self)})"


@dataclass(slots=True)
class WordStat:
    """Occurrence counts of one word, keyed by ``text_id``."""

    word: Word
    per_document_counts: dict[int, int] = field(default_factory=dict)

    def global_count(self) -> int:
        return sum(self.per_document_counts.values())

    def text_ids(self) -> set[int]:
        return {text_id for text_id, count in self.per_document_counts.items() if count > 0}

    def increment(self, text_id: int, by: int = 1) -> None:
        self.per_document_counts[text_id] = self.per_document_counts.get(text_id, 0) + by


# ---------------------------------------------------------------------------
# Catalogue rows produced by the corpus directory resolver.
# ---------------------------------------------------------------------------
class AuthorListing(BaseModel):
    """One entry of the corpus author index (name + author page URL)."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Author name as shown in the index.")
    url: str = Field(description="Absolute URL of the author's work listing page.")


class WorkListing(BaseModel):
    """One work linked from an author page."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(description="Work title as shown on the author page.")
    url: str = Field(description="Absolute URL of the work's full text.")


# ---------------------------------------------------------------------------
# Persisted entities.
# ---------------------------------------------------------------------------
class Author(BaseModel):
    """An author registered during one ingestion run."""

    model_config = ConfigDict(frozen=True)

    author_id: int = Field(ge=1, description="Sequential id, stable within one run.")
    name: str
    source_url: str


class Document(BaseModel):
    """A fetched text (one work's full body), tokenized and counted as a unit."""

    model_config = ConfigDict(frozen=True)

    text_id: int = Field(ge=1, description="Fold-order sequence number.")
    source_url: str
    author_id: int = Field(ge=1, description="Reference to the owning Author.")
    raw_content: str = Field(repr=False)
