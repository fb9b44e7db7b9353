"""Corpus-wide word frequency aggregation.

The :class:`CorpusAggregator` owns the in-memory index of one ingestion
run: the registered authors, the folded documents and the word table
(``Word -> WordStat``).  It is deliberately single-threaded: the ingestion
driver folds documents into it one at a time from a single consumer task,
so the word table needs no locking however many fetches run concurrently.

Counters:
    - ``word_count`` is incremented once per non-empty word occurrence.
    - ``unique_word_count`` is *derived* from the size of the word table on
      every access and never tracked separately, so the two cannot drift.

Identifiers start at 1 and are handed out densely in call order.
"""

from __future__ import annotations

import heapq
from collections.abc import Iterator, Mapping

import structlog

from verborum.models.corpus import Author, Document, Word, WordStat
from verborum.services.tokenizer import Tokenizer

logger = structlog.get_logger(logger_name=__name__)


class CorpusAggregator:
    """Accumulates per-word and per-document counts across a corpus.

    Parameters
    ----------
    tokenizer:
        The single tokenization policy used for every document folded
        into this aggregate.  Defaults to a strict-mode :class:`Tokenizer`.
    """

    def __init__(self, tokenizer: Tokenizer | None = None) -> None:
        self._tokenizer = tokenizer or Tokenizer()
        self._authors: dict[int, Author] = {}
        self._documents: dict[int, Document] = {}
        self._words: dict[Word, WordStat] = {}
        self._word_count = 0

    # ------------------------------------------------------------------
    # Folding
    # ------------------------------------------------------------------

    def add_author(self, name: str, source_url: str) -> int:
        """Register an author and return its new ``author_id``."""
        author_id = len(self._authors) + 1
        self._authors[author_id] = Author(author_id=author_id, name=name, source_url=source_url)
        return author_id

    def add_document(self, source_url: str, raw_content: str, author_id: int) -> int:
        """Tokenize and fold one document; returns its new ``text_id``.

        Raises
        ------
        KeyError
            If *author_id* was not registered with :meth:`add_author`.
        """
        if author_id not in self._authors:
            raise KeyError(f"Unknown author_id {author_id}")

        text_id = len(self._documents) + 1
        self._documents[text_id] = Document(
            text_id=text_id,
            source_url=source_url,
            author_id=author_id,
            raw_content=raw_content,
        )
        for word in self._tokenizer.tokenize(raw_content):
            self.add_word(text_id, word)
        return text_id

    def add_word(self, text_id: int, word: str) -> None:
        """Count one occurrence of *word* in document *text_id*.

        Empty words are ignored.  Plain strings are normalized to
        :class:`Word` (lowercased) before counting.

        Raises
        ------
        KeyError
            If *text_id* does not belong to a folded document.
        """
        if text_id not in self._documents:
            raise KeyError(f"Unknown text_id {text_id}")
        if not isinstance(word, Word):
            word = Word(word)
        if not word:
            return

        stat = self._words.get(word)
        if stat is None:
            stat = self._words[word] = WordStat(word=word)
        stat.increment(text_id)
        self._word_count += 1

    def merge(self, other: CorpusAggregator) -> dict[int, int]:
        """Fold every document of *other* into this aggregate.

        Documents are re-numbered from this aggregate's next free
        ``text_id`` in *other*'s id order.  Authors are matched by
        ``source_url``; unknown authors are registered with fresh ids.
        *other* is left unchanged.

        Returns
        -------
        dict[int, int]
            Mapping from *other*'s ``text_id`` to the new ``text_id``.
        """
        authors_by_url = {author.source_url: author.author_id for author in self._authors.values()}
        author_map: dict[int, int] = {}
        for author in other.authors.values():
            existing = authors_by_url.get(author.source_url)
            if existing is None:
                existing = self.add_author(author.name, author.source_url)
                authors_by_url[author.source_url] = existing
            author_map[author.author_id] = existing

        text_map: dict[int, int] = {}
        for old_id in sorted(other.documents):
            document = other.documents[old_id]
            new_id = len(self._documents) + 1
            self._documents[new_id] = Document(
                text_id=new_id,
                source_url=document.source_url,
                author_id=author_map[document.author_id],
                raw_content=document.raw_content,
            )
            text_map[old_id] = new_id

        # Re-use the other side's counts instead of re-tokenizing, so a
        # merge never depends on both sides sharing a tokenizer policy.
        for word, other_stat in other.words.items():
            stat = self._words.get(word)
            if stat is None:
                stat = self._words[word] = WordStat(word=word)
            for old_id, count in other_stat.per_document_counts.items():
                stat.increment(text_map[old_id], count)
                self._word_count += count

        logger.debug("aggregates_merged", documents=len(text_map), authors=len(author_map))
        return text_map

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    @property
    def tokenizer(self) -> Tokenizer:
        return self._tokenizer

    @property
    def authors(self) -> Mapping[int, Author]:
        return self._authors

    @property
    def documents(self) -> Mapping[int, Document]:
        return self._documents

    @property
    def words(self) -> Mapping[Word, WordStat]:
        return self._words

    @property
    def word_count(self) -> int:
        return self._word_count

    @property
    def unique_word_count(self) -> int:
        return len(self._words)

    def word_stat(self, word: str) -> WordStat | None:
        return self._words.get(Word(word))

    def global_count(self, word: str) -> int:
        stat = self.word_stat(word)
        return stat.global_count() if stat is not None else 0

    def iter_word_counts(self) -> Iterator[tuple[Word, int, int]]:
        """Yield ``(word, text_id, count)`` for every distinct pair, sorted by word."""
        for word in sorted(self._words):
            for text_id, count in sorted(self._words[word].per_document_counts.items()):
                yield word, text_id, count

    def words_in_single_text(self) -> int:
        """Number of words that occur in exactly one document."""
        return sum(1 for stat in self._words.values() if len(stat.text_ids()) == 1)

    def top_words(self, n: int = 10) -> list[tuple[Word, int]]:
        """The *n* most frequent words with their global counts, ties by word."""
        counted = ((stat.global_count(), word) for word, stat in self._words.items())
        best = heapq.nsmallest(n, counted, key=lambda pair: (-pair[0], pair[1]))
        return [(word, count) for count, word in best]

    def __str__(self) -> str:
        return (
            f"{len(self._authors)} authors, {len(self._documents)} texts, "
            f"{self._word_count} words, {self.unique_word_count} unique words, "
            f"{self.words_in_single_text()} found in a single text"
        )
