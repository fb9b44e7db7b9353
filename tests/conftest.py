"""Shared pytest fixtures for the Statistica Verborum test suite."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Iterable
from pathlib import Path
from typing import Any

import httpx
import pytest
import pytest_asyncio

from verborum.interfaces.store_provider import IStoreProvider, IStoreTransaction, NamedRows, StoreParams
from verborum.providers.http.httpx_fetcher import HttpxFetcher
from verborum.providers.store.sqlite_store_provider import SQLiteStoreProvider
from verborum.utils.errors import StorageError

# ---------------------------------------------------------------------------
# A small fake corpus site
# ---------------------------------------------------------------------------

INDEX_URL = "https://corpus.test/index.html"

INDEX_HTML = """
<html><body>
<h1>Corpus</h1>
<form name="authors">
  <select name="dest">
    <option value="">Choose an author</option>
    <option value="cicero.html">Cicero</option>
    <option value="caesar.html">Caesar</option>
  </select>
</form>
</body></html>
"""

CICERO_HTML = """
<html><body>
<table>
  <tr><td><a href="cicero/cat1.shtml">In Catilinam I</a></td></tr>
  <tr><td><a href="cicero/cat2.shtml">In Catilinam II</a></td></tr>
  <tr><td><a href="cicero.html">Cicero</a></td></tr>
</table>
</body></html>
"""

CAESAR_HTML = """
<html><body>
<table>
  <tr><td><a href="caesar/gall1.shtml">De Bello Gallico I</a></td></tr>
  <tr><td><a href="caesar/missing.shtml">Lost Book</a></td></tr>
</table>
</body></html>
"""

CAT1_HTML = "<html><body><p>Quo usque tandem abutere, Catilina, patientia nostra?</p></body></html>"
CAT2_HTML = "<html><body><p>Tandem aliquando, Quirites, Catilinam ejecimus.</p></body></html>"
GALL1_HTML = "<html><body><p>Gallia est omnis divisa in partes tres.</p></body></html>"

SITE: dict[str, tuple[int, str]] = {
    INDEX_URL: (200, INDEX_HTML),
    "https://corpus.test/cicero.html": (200, CICERO_HTML),
    "https://corpus.test/caesar.html": (200, CAESAR_HTML),
    "https://corpus.test/cicero/cat1.shtml": (200, CAT1_HTML),
    "https://corpus.test/cicero/cat2.shtml": (200, CAT2_HTML),
    "https://corpus.test/caesar/gall1.shtml": (200, GALL1_HTML),
}


def site_handler(pages: dict[str, tuple[int, str]]) -> Callable[[httpx.Request], httpx.Response]:
    """Build a MockTransport handler serving *pages*; anything else is a 404."""

    def _handler(request: httpx.Request) -> httpx.Response:
        status, body = pages.get(str(request.url), (404, "Not Found"))
        return httpx.Response(status, text=body, headers={"Content-Type": "text/html; charset=utf-8"})

    return _handler


@pytest.fixture
def site_pages() -> dict[str, tuple[int, str]]:
    """A mutable copy of the fake site, so tests can add or break pages."""
    return dict(SITE)


@pytest_asyncio.fixture
async def site_fetcher(site_pages: dict[str, tuple[int, str]]) -> AsyncIterator[HttpxFetcher]:
    """An HttpxFetcher whose client talks to the fake site."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(site_handler(site_pages)))
    fetcher = HttpxFetcher(http_client=client, max_concurrency=2)
    yield fetcher
    await client.aclose()


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def store(tmp_path: Path) -> AsyncIterator[SQLiteStoreProvider]:
    """An initialized SQLite store in a temporary directory."""
    provider = SQLiteStoreProvider(db_path=tmp_path / "svl-test.db")
    await provider.initialize()
    yield provider
    await provider.close()


class _RecordingTransaction(IStoreTransaction):
    def __init__(self, owner: FailingStore) -> None:
        self._owner = owner
        self._pending: list[tuple[str, Any]] = []
        self._done = False

    async def execute(self, template: str, params: StoreParams = None) -> NamedRows:
        self._owner.tick()
        self._pending.append((template, params))
        return NamedRows(headers=[], rows=[])

    async def execute_many(self, template: str, param_rows: Iterable[StoreParams]) -> int:
        rows = list(param_rows)
        self._owner.tick()
        self._pending.extend((template, row) for row in rows)
        return len(rows)

    async def commit(self) -> None:
        self._owner.committed.extend(self._pending)
        self._owner.commits += 1
        self._done = True

    async def rollback(self) -> None:
        if not self._done:
            self._owner.rollbacks += 1
            self._done = True


class FailingStore(IStoreProvider):
    """In-memory fake store whose N-th write call raises ``StorageError``.

    Only committed writes land in ``committed``; ``fail_on=None`` never fails.
    """

    def __init__(self, fail_on: int | None = None) -> None:
        self.fail_on = fail_on
        self.calls = 0
        self.commits = 0
        self.rollbacks = 0
        self.committed: list[tuple[str, Any]] = []

    def tick(self) -> None:
        self.calls += 1
        if self.fail_on is not None and self.calls == self.fail_on:
            raise StorageError(f"injected failure on write {self.calls}", provider_name="fake")

    async def initialize(self) -> None:
        return None

    async def execute_read(self, template: str, params: StoreParams = None) -> NamedRows:
        return NamedRows(headers=[], rows=[])

    async def execute_write(self, template: str, params: StoreParams = None) -> NamedRows:
        async with self.begin_transaction(write=True) as tx:
            rows = await tx.execute(template, params)
            await tx.commit()
        return rows

    def begin_transaction(self, write: bool = True) -> IStoreTransaction:
        return _RecordingTransaction(self)

    async def close(self) -> None:
        return None

    def get_provider_name(self) -> str:
        return "fake"
