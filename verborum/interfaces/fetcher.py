"""Abstract base class for corpus fetchers.

Defines the contract for retrieving document bodies and listing pages.
The ingestion driver and the corpus directory resolver only ever talk to
this interface, so tests inject fakes and the httpx implementation stays
swappable.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass

from bs4 import BeautifulSoup

from verborum.utils.errors import FetchError


@dataclass(frozen=True)
class FetchOutcome:
    """Result of one fetch issued through :meth:`IFetcher.fetch_many`.

    Exactly one of ``body`` and ``error`` is set.
    """

    url: str
    body: str | None = None
    error: FetchError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class IFetcher(ABC):
    """Contract for bounded-concurrency HTTP fetching.

    Implementations must hold a concurrency permit only while a request is
    on the wire (request sent until body fully read), must refuse
    plaintext ``http://`` URLs, and must never retry on their own.
    """

    @abstractmethod
    async def fetch_text(self, url: str) -> str:
        """Fetch *url* and return the decoded response body.

        Raises
        ------
        verborum.utils.errors.FetchError
            On connection failure, timeout, non-2xx status or a
            non-HTTPS URL.
        """

    @abstractmethod
    async def fetch_html(self, url: str) -> BeautifulSoup:
        """Fetch *url* and return the parsed HTML document.

        Parsing happens after the concurrency permit is released.
        """

    @abstractmethod
    def fetch_many(self, urls: Sequence[str]) -> AsyncIterator[FetchOutcome]:
        """Fetch every URL concurrently and yield outcomes in completion order.

        A failing URL yields an outcome carrying its :class:`FetchError`;
        it never aborts the other fetches.
        """

    @abstractmethod
    async def aclose(self) -> None:
        """Release network resources owned by the fetcher."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"httpx"``."""
