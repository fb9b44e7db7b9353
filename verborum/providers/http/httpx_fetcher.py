"""Bounded-concurrency corpus fetcher using httpx.

A single ``asyncio.Semaphore`` caps the number of requests on the wire.
The permit is held from sending the request until the body has been read
(``AsyncClient.get`` reads the body before returning); decoding and HTML
parsing happen after release, so the cap governs network concurrency only.

Only HTTPS is accepted.  Plaintext URLs are refused before a permit is
taken, and plaintext redirect hops are refused by a request event hook on
clients this class builds itself and by a post-response check on injected
clients.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Sequence
from urllib.parse import urlparse

import httpx
import structlog
from bs4 import BeautifulSoup

from verborum.interfaces.fetcher import FetchOutcome, IFetcher
from verborum.utils.errors import FetchError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_TIMEOUT = 30.0
_DEFAULT_MAX_CONCURRENCY = 10
_DEFAULT_USER_AGENT = "statistica-verborum/0.1"


def _is_https(url: str | httpx.URL) -> bool:
    return urlparse(str(url)).scheme == "https"


async def _reject_plaintext(request: httpx.Request) -> None:
    if request.url.scheme != "https":
        raise httpx.UnsupportedProtocol(f"Refusing plaintext request to {request.url}", request=request)


class HttpxFetcher(IFetcher):
    """Corpus fetcher backed by ``httpx.AsyncClient``.

    Parameters
    ----------
    http_client:
        Optional pre-built client (tests inject one with
        ``httpx.MockTransport``).  When omitted the fetcher builds and owns
        its client.
    max_concurrency:
        Maximum number of requests in flight at once.
    timeout:
        Per-request timeout in seconds, for owned clients.
    user_agent:
        User-Agent header, for owned clients.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        max_concurrency: int = _DEFAULT_MAX_CONCURRENCY,
        timeout: float = _DEFAULT_TIMEOUT,
        user_agent: str = _DEFAULT_USER_AGENT,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers={
                "User-Agent": user_agent,
                "Accept": "text/html,application/xhtml+xml,text/plain;q=0.9,*/*;q=0.8",
            },
            follow_redirects=True,
            event_hooks={"request": [_reject_plaintext]},
        )
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._max_concurrency = max_concurrency

    @property
    def max_concurrency(self) -> int:
        return self._max_concurrency

    # ------------------------------------------------------------------
    # IFetcher implementation
    # ------------------------------------------------------------------

    async def fetch_text(self, url: str) -> str:
        """Fetch *url* and return its decoded body."""
        response = await self._get(url)
        return response.text

    async def fetch_html(self, url: str) -> BeautifulSoup:
        """Fetch *url* and parse it with BeautifulSoup's ``html.parser``."""
        text = await self.fetch_text(url)
        return BeautifulSoup(text, "html.parser")

    async def fetch_many(self, urls: Sequence[str]) -> AsyncIterator[FetchOutcome]:
        """Fetch all *urls* concurrently, yielding outcomes as they complete."""

        async def _one(url: str) -> FetchOutcome:
            try:
                return FetchOutcome(url=url, body=await self.fetch_text(url))
            except FetchError as exc:
                return FetchOutcome(url=url, error=exc)

        tasks = [asyncio.create_task(_one(url)) for url in urls]
        try:
            for next_done in asyncio.as_completed(tasks):
                yield await next_done
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def get_provider_name(self) -> str:
        return "httpx"

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _get(self, url: str) -> httpx.Response:
        if not _is_https(url):
            raise FetchError(
                message=f"Refusing non-HTTPS URL {url}",
                url=url,
                provider_name=self.get_provider_name(),
            )

        async with self._semaphore:
            try:
                response = await self._client.get(url)
            except httpx.TimeoutException as exc:
                raise FetchError(
                    message=f"Timeout fetching {url}: {exc}",
                    url=url,
                    provider_name=self.get_provider_name(),
                ) from exc
            except httpx.HTTPError as exc:
                raise FetchError(
                    message=f"HTTP error fetching {url}: {exc}",
                    url=url,
                    provider_name=self.get_provider_name(),
                ) from exc

        if any(not _is_https(hop.url) for hop in response.history) or not _is_https(response.url):
            raise FetchError(
                message=f"Redirected to a non-HTTPS URL while fetching {url}",
                url=url,
                provider_name=self.get_provider_name(),
            )
        if not response.is_success:
            raise FetchError(
                message=f"HTTP {response.status_code} for {url}",
                url=url,
                status_code=response.status_code,
                provider_name=self.get_provider_name(),
            )

        logger.debug("fetched", url=url, status=response.status_code, bytes=len(response.content))
        return response
