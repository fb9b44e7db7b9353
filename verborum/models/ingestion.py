"""Run-level result models for ingestion and persistence.

``IngestionReport`` is what ``svl fetch-stats`` prints: a partial run is a
normal outcome, so the report carries the per-item failures instead of the
run raising on the first unreachable page.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class FetchFailure(BaseModel):
    """A listing page or document that could not be fetched or parsed."""

    model_config = ConfigDict(frozen=True)

    url: str
    reason: str
    status_code: int | None = None
    stage: str = Field(default="document", description='"works" or "document".')


class PersistResult(BaseModel):
    """Row counts written by one committed persist transaction."""

    model_config = ConfigDict(frozen=True)

    authors_written: int = Field(default=0, ge=0)
    documents_written: int = Field(default=0, ge=0)
    words_written: int = Field(default=0, ge=0, description="Distinct (word, text_id) rows.")


class IngestionReport(BaseModel):
    """Summary of one end-to-end ingestion run."""

    model_config = ConfigDict(frozen=True)

    authors: int = Field(default=0, ge=0)
    documents_discovered: int = Field(default=0, ge=0)
    documents_ingested: int = Field(default=0, ge=0)
    word_count: int = Field(default=0, ge=0)
    unique_word_count: int = Field(default=0, ge=0)
    failures: list[FetchFailure] = Field(default_factory=list)
    persisted: PersistResult | None = None
    elapsed_seconds: float = Field(default=0.0, ge=0.0)

    def summary(self) -> str:
        return f"{self.documents_ingested} of {self.documents_discovered} documents ingested"
