"""Query commands executed against a persisted SQLite index."""

from __future__ import annotations

import pytest
import pytest_asyncio

from verborum.interfaces.store_provider import NamedRows
from verborum.providers.store.sqlite_store_provider import SQLiteStoreProvider
from verborum.services.aggregator import CorpusAggregator
from verborum.services.persister import IndexPersister
from verborum.services.query import Query


@pytest_asyncio.fixture
async def indexed_store(store: SQLiteStoreProvider) -> SQLiteStoreProvider:
    """Two authors, three texts, ten words (seven distinct)."""
    aggregator = CorpusAggregator()
    vergil = aggregator.add_author("Vergilius", "https://corpus.test/vergil.html")
    ovid = aggregator.add_author("Ovidius", "https://corpus.test/ovid.html")
    aggregator.add_document("https://corpus.test/vergil/aen1.shtml", "arma virum arma cano", vergil)
    aggregator.add_document("https://corpus.test/vergil/aen2.shtml", "arma amor Roma", vergil)
    aggregator.add_document("https://corpus.test/ovid/am1.shtml", "amor omnia vincit", ovid)
    await IndexPersister(store).persist(aggregator)
    return store


async def _run(store: SQLiteStoreProvider, line: str) -> NamedRows:
    return await Query.parse(line).to_command().execute(store)


class TestWordSearches:
    @pytest.mark.asyncio
    async def test_top(self, indexed_store: SQLiteStoreProvider) -> None:
        rows = await _run(indexed_store, "top a")
        assert rows.headers == ["word", "total", "texts"]
        assert rows.rows == [("arma", 3, 2), ("amor", 2, 2)]

    @pytest.mark.asyncio
    async def test_top_with_limit(self, indexed_store: SQLiteStoreProvider) -> None:
        rows = await _run(indexed_store, "top a 1")
        assert rows.column("word") == ["arma"]

    @pytest.mark.asyncio
    async def test_ending(self, indexed_store: SQLiteStoreProvider) -> None:
        rows = await _run(indexed_store, "ending a")
        assert rows.rows == [("arma", 3, 2), ("omnia", 1, 1), ("roma", 1, 1)]

    @pytest.mark.asyncio
    async def test_suffix_longer_than_word(self, indexed_store: SQLiteStoreProvider) -> None:
        rows = await _run(indexed_store, "ending xarma")
        assert rows.rows == []

    @pytest.mark.asyncio
    async def test_containing(self, indexed_store: SQLiteStoreProvider) -> None:
        rows = await _run(indexed_store, "containing in")
        assert rows.column("word") == ["vincit"]

    @pytest.mark.asyncio
    async def test_word_equal_case_insensitive(self, indexed_store: SQLiteStoreProvider) -> None:
        rows = await _run(indexed_store, "word Roma eq")
        assert rows.rows == [("roma", 1, 1)]

    @pytest.mark.asyncio
    async def test_word_equal_case_sensitive(self, indexed_store: SQLiteStoreProvider) -> None:
        rows = await _run(indexed_store, "word Roma eq cs")
        assert rows.rows == []

    @pytest.mark.asyncio
    async def test_word_not_equal(self, indexed_store: SQLiteStoreProvider) -> None:
        rows = await _run(indexed_store, "word arma neq")
        assert sorted(rows.column("word")) == ["amor", "cano", "omnia", "roma", "vincit", "virum"]

    @pytest.mark.asyncio
    async def test_term_is_bound_not_spliced(self, indexed_store: SQLiteStoreProvider) -> None:
        rows = await _run(indexed_store, "word \"' OR 1=1 --\" contains")
        assert rows.rows == []


class TestTextAndAuthorSearches:
    @pytest.mark.asyncio
    async def test_texts_ranked_by_matches(self, indexed_store: SQLiteStoreProvider) -> None:
        rows = await _run(indexed_store, "texts arm")
        assert rows.headers == ["text_id", "source_url", "author", "matches"]
        assert rows.column("text_id") == [1, 2]
        assert rows.column("matches") == [2, 1]
        assert rows.column("author") == ["Vergilius", "Vergilius"]

    @pytest.mark.asyncio
    async def test_texts_tie_broken_by_id(self, indexed_store: SQLiteStoreProvider) -> None:
        rows = await _run(indexed_store, "texts am")
        assert rows.column("text_id") == [2, 3]

    @pytest.mark.asyncio
    async def test_author_prefix_ignores_case(self, indexed_store: SQLiteStoreProvider) -> None:
        rows = await _run(indexed_store, "author VERG")
        assert rows.headers == ["author_id", "name", "source_url", "texts"]
        assert rows.rows == [(1, "Vergilius", "https://corpus.test/vergil.html", 2)]

    @pytest.mark.asyncio
    async def test_author_suffix(self, indexed_store: SQLiteStoreProvider) -> None:
        rows = await _run(indexed_store, "author us ends")
        assert rows.column("name") == ["Ovidius", "Vergilius"]


class TestSummaries:
    @pytest.mark.asyncio
    async def test_count(self, indexed_store: SQLiteStoreProvider) -> None:
        rows = await _run(indexed_store, "count ARMA")
        assert rows.rows == [("arma", 3, 2)]

    @pytest.mark.asyncio
    async def test_count_of_absent_word(self, indexed_store: SQLiteStoreProvider) -> None:
        rows = await _run(indexed_store, "count bellum")
        assert rows.rows == []

    @pytest.mark.asyncio
    async def test_stats(self, indexed_store: SQLiteStoreProvider) -> None:
        rows = await _run(indexed_store, "stats")
        assert rows.as_dicts() == [{"total_words": 10, "unique_words": 7, "texts": 3, "authors": 2}]

    @pytest.mark.asyncio
    async def test_help_lists_every_command(self, indexed_store: SQLiteStoreProvider) -> None:
        rows = await _run(indexed_store, "help")
        assert len(rows) == 9
