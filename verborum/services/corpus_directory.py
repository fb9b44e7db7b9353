# =============================================================================
# verborum/services/corpus_directory.py -- Corpus Directory Resolver
# =============================================================================
#
# Turns the corpus site's listing pages into a catalogue:
#   1. Author index -- the index page carries a <form> whose <select> lists
#                      every author; each <option value="..."> points at the
#                      author's page (relative to the index URL).
#   2. Work listing -- an author page lists its works as links inside one
#                      or more <table> elements.
#
# Parsing is brittle by nature: it follows the upstream page layout.  The
# author index is the root of the whole crawl, so a missing <form>/<select>
# there is a hard failure (DirectoryParseError).  An author page without a
# table just yields no works and a warning.
#
# Dependencies:
#   - beautifulsoup4 -- HTML parsing (through IFetcher.fetch_html)
#   - structlog      -- structured logging
# =============================================================================

from __future__ import annotations

from urllib.parse import urldefrag, urljoin

import structlog
from bs4 import BeautifulSoup

from verborum.interfaces.fetcher import IFetcher
from verborum.models.corpus import AuthorListing, WorkListing
from verborum.utils.errors import DirectoryParseError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_INDEX_URL = "https://www.thelatinlibrary.com/index.html"


def _absolute_url(base_url: str, href: str) -> str | None:
    """Resolve *href* against *base_url* without its fragment; ``None`` if malformed."""
    try:
        return urldefrag(urljoin(base_url, href)).url
    except ValueError:
        return None


def parse_author_index(soup: BeautifulSoup, base_url: str) -> list[AuthorListing]:
    """Extract ``(name, url)`` pairs from the author ``<select>`` of the index page.

    Raises
    ------
    DirectoryParseError
        If the page has no ``<form>`` containing a ``<select>``.
    """
    select = None
    for form in soup.find_all("form"):
        select = form.find("select")
        if select is not None:
            break
    if select is None:
        raise DirectoryParseError(f"No author <form>/<select> found on {base_url}")

    authors: list[AuthorListing] = []
    seen: set[str] = set()
    for option in select.find_all("option"):
        value = (option.get("value") or "").strip()
        name = option.get_text(" ", strip=True)
        if not value or not name:
            continue
        url = _absolute_url(base_url, value)
        if url is None:
            logger.warning("author_link_invalid", index_url=base_url, href=value)
            continue
        if url in seen:
            continue
        seen.add(url)
        authors.append(AuthorListing(name=name, url=url))
    return authors


def parse_work_listing(soup: BeautifulSoup, author_url: str) -> list[WorkListing]:
    """Extract ``(title, url)`` pairs from the links inside the page's tables.

    Returns an empty list when the page has no table.
    """
    tables = soup.find_all("table")
    if not tables:
        logger.warning("work_table_missing", url=author_url)
        return []

    works: list[WorkListing] = []
    seen: set[str] = set()
    for table in tables:
        for link in table.find_all("a", href=True):
            href = link["href"].strip()
            title = link.get_text(" ", strip=True)
            if not href or not title or href.startswith(("mailto:", "javascript:")):
                continue
            url = _absolute_url(author_url, href)
            if url is None:
                logger.warning("work_link_invalid", author_url=author_url, href=href)
                continue
            if url in seen or url == urldefrag(author_url).url:
                continue
            seen.add(url)
            works.append(WorkListing(title=title, url=url))
    return works


class CorpusDirectoryResolver:
    """Resolves the corpus catalogue through an :class:`IFetcher`.

    Parameters
    ----------
    fetcher:
        Fetcher used for the index and author pages.
    index_url:
        URL of the page that carries the author ``<select>``.
    """

    def __init__(self, fetcher: IFetcher, index_url: str = _DEFAULT_INDEX_URL) -> None:
        self._fetcher = fetcher
        self._index_url = index_url

    @property
    def index_url(self) -> str:
        return self._index_url

    async def list_authors(self) -> list[AuthorListing]:
        """Return every author of the index page, in page order.

        Raises
        ------
        FetchError
            If the index page cannot be fetched.
        DirectoryParseError
            If the index page has no author selector.
        """
        soup = await self._fetcher.fetch_html(self._index_url)
        authors = parse_author_index(soup, self._index_url)
        logger.info("authors_resolved", count=len(authors), index_url=self._index_url)
        return authors

    async def list_works(self, author_url: str) -> list[WorkListing]:
        """Return the works linked from *author_url*, in page order.

        Raises
        ------
        FetchError
            If the author page cannot be fetched; the caller records it as
            a per-author failure.
        """
        soup = await self._fetcher.fetch_html(author_url)
        works = parse_work_listing(soup, author_url)
        logger.debug("works_resolved", author_url=author_url, count=len(works))
        return works
