"""Unit tests for the models and the error hierarchy."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from verborum.models import (
    Author,
    Document,
    FetchFailure,
    IngestionReport,
    PersistResult,
    Word,
    WordStat,
)
from verborum.utils.errors import (
    ConfigurationError,
    DirectoryParseError,
    EmptyQueryError,
    FetchError,
    InvalidArgumentError,
    MissingArgumentError,
    QueryError,
    StorageError,
    UnknownCommandError,
    VerborumError,
)

# ======================================================================
# Word and WordStat
# ======================================================================


class TestWord:
    def test_lowercases_on_construction(self) -> None:
        assert Word("Arma") == "arma"
        assert Word("ARMA") == Word("arma")
        assert hash(Word("Arma")) == hash("arma")

    def test_repr(self) -> None:
        assert repr(Word("Roma")) == "Word('roma')"

    def test_word_stat_counts(self) -> None:
        stat = WordStat(word=Word("arma"))
        stat.increment(1)
        stat.increment(1)
        stat.increment(3, by=4)
        assert stat.global_count() == 6
        assert stat.text_ids() == {1, 3}


# ======================================================================
# Records
# ======================================================================


class TestRecords:
    def test_author_is_frozen(self) -> None:
        author = Author(author_id=1, name="Cicero", source_url="https://corpus.test/cicero.html")
        with pytest.raises(ValidationError):
            author.name = "Tully"

    def test_ids_start_at_one(self) -> None:
        with pytest.raises(ValidationError):
            Author(author_id=0, name="Nemo", source_url="https://corpus.test/nemo.html")
        with pytest.raises(ValidationError):
            Document(text_id=0, source_url="https://corpus.test/x", author_id=1, raw_content="")

    def test_document_repr_hides_raw_content(self) -> None:
        document = Document(text_id=1, source_url="https://corpus.test/x", author_id=1, raw_content="secretum")
        assert "secretum" not in repr(document)

    def test_report_summary(self) -> None:
        report = IngestionReport(
            authors=2,
            documents_discovered=4,
            documents_ingested=3,
            failures=[FetchFailure(url="https://corpus.test/lost", reason="HTTP 404", status_code=404)],
            persisted=PersistResult(authors_written=2, documents_written=3, words_written=40),
        )
        assert report.summary() == "3 of 4 documents ingested"
        assert report.failures[0].stage == "document"


# ======================================================================
# Errors
# ======================================================================


class TestErrors:
    def test_hierarchy(self) -> None:
        for cls in (FetchError, DirectoryParseError, StorageError, ConfigurationError, QueryError):
            assert issubclass(cls, VerborumError)
        for cls in (EmptyQueryError, UnknownCommandError, MissingArgumentError, InvalidArgumentError):
            assert issubclass(cls, QueryError)

    def test_str_includes_provider(self) -> None:
        error = StorageError("disk full", provider_name="sqlite")
        assert str(error) == "[sqlite] disk full"
        assert error.message == "disk full"
        assert error.provider_name == "sqlite"

    def test_fetch_error_carries_url_and_status(self) -> None:
        error = FetchError("HTTP 503", url="https://corpus.test/x", status_code=503)
        assert error.url == "https://corpus.test/x"
        assert error.status_code == 503

    def test_unknown_command_message(self) -> None:
        assert UnknownCommandError("tpo", suggestion="top").message == "Unknown query: tpo (did you mean 'top'?)"
        assert UnknownCommandError("xyzzy").message == "Unknown query: xyzzy"

    def test_argument_errors_name_the_command(self) -> None:
        assert "top" in MissingArgumentError("top", "prefix").message
        assert "'0'" in InvalidArgumentError("top", "0", "limit must be a positive integer").message
