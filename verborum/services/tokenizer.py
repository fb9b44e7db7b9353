"""Document tokenization into normalized word forms.

Turns a raw document body into a lazy stream of :class:`~verborum.models.corpus.Word`
values.  Two design goals:

1. **One policy per corpus** -- the split mode, HTML extraction and denylist
   are fixed when the Tokenizer is built.  Mixing policies across documents
   would silently skew the aggregate counts, so the ingestion driver builds
   exactly one instance per run.

2. **Markup never reaches the splitter** -- pages from the corpus are HTML.
   With ``extract_html`` on (the default) BeautifulSoup turns the page into
   text first and decodes character references such as ``&amp;``, even
   in documents without tags.  That leaves the denylist as a small net
   for remnants of malformed markup rather than the main defence.

Splitting modes:

- ``whitespace``: fragments are separated by runs of whitespace, so
  ``"bellum,pax"`` becomes the single word ``"bellumpax"``.
- ``strict`` (default): fragments are separated by any run of characters
  that are not letters or digits, so the same input yields ``"bellum"`` and
  ``"pax"``.

Each fragment is then lowercased and stripped of every non-alphabetic
character and of every letter that has no lowercase form (``str.isalpha`` is Unicode-aware, so ``"Rōma"`` stays ``"rōma"``).
Lowercasing happens first because a few characters lowercase to a letter
plus a combining mark, and the mark must not survive.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from enum import Enum

import structlog
from bs4 import BeautifulSoup

from verborum.models.corpus import Word
from verborum.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)

# Markup remnants that survive naive character stripping.
DEFAULT_DENYLIST = frozenset({"br", "p", "hrefa", "nbsp"})

_DEFAULT_MAX_TOKEN_LENGTH = 64

_NBSP_ENTITY = re.compile(r"&nbsp;?", re.IGNORECASE)
_WHITESPACE_FRAGMENT = re.compile(r"\S+")
_STRICT_FRAGMENT = re.compile(r"[^\W_]+")
# Tags or character references; either one sends the document through BeautifulSoup.
_MARKUP_HINT = re.compile(r"<[A-Za-z!/]|&(?:[A-Za-z][A-Za-z0-9]*|#[0-9]+|#[xX][0-9A-Fa-f]+);")


class TokenizeMode(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    """How a document is split into candidate fragments."""

    WHITESPACE = "whitespace"
    STRICT = "strict"


class Tokenizer:
    """Splits raw documents into normalized words.

    Parameters
    ----------
    mode:
        Fragment splitting policy (default ``strict``).
    extract_html:
        Convert HTML documents to text with BeautifulSoup before splitting
        (default ``True``).  Plain-text documents pass through untouched.
    denylist:
        Normalized words that are never yielded.
    max_token_length:
        Fragments longer than this (after normalization) are dropped;
        ``None`` disables the cap.
    """

    def __init__(
        self,
        mode: TokenizeMode | str = TokenizeMode.STRICT,
        extract_html: bool = True,
        denylist: Iterable[str] = DEFAULT_DENYLIST,
        max_token_length: int | None = _DEFAULT_MAX_TOKEN_LENGTH,
    ) -> None:
        try:
            self._mode = TokenizeMode(mode)
        except ValueError as exc:
            raise ConfigurationError(f"Unknown tokenizer mode: {mode!r}") from exc
        if max_token_length is not None and max_token_length < 1:
            raise ConfigurationError(f"max_token_length must be >= 1, got {max_token_length}")
        self._extract_html = extract_html
        self._denylist = frozenset(word.lower() for word in denylist)
        self._max_token_length = max_token_length
        self._fragment_re = _STRICT_FRAGMENT if self._mode is TokenizeMode.STRICT else _WHITESPACE_FRAGMENT

    @classmethod
    def from_config(cls, config: dict) -> Tokenizer:
        """Build a Tokenizer from the ``tokenizer`` section of the merged config."""
        section = config.get("tokenizer", {}) or {}
        return cls(
            mode=section.get("mode", TokenizeMode.STRICT),
            extract_html=section.get("extract_html", True),
            denylist=section.get("denylist", DEFAULT_DENYLIST),
            max_token_length=section.get("max_token_length", _DEFAULT_MAX_TOKEN_LENGTH),
        )

    @property
    def mode(self) -> TokenizeMode:
        return self._mode

    def tokenize(self, raw_document: str) -> Iterator[Word]:
        """Yield the normalized words of *raw_document* in document order.

        The result is a fresh generator on every call, so tokenizing the
        same input twice yields the same sequence.
        """
        text = self._to_text(raw_document)
        for match in self._fragment_re.finditer(text):
            word = self.normalize(match.group())
            if word is not None:
                yield word

    def normalize(self, fragment: str) -> Word | None:
        """Normalize one fragment, or return ``None`` if it must be dropped."""
        if fragment.startswith(("<", ">")):
            return None
        # Letters without a lowercase form (e.g. U+03D2) are dropped like punctuation.
        cleaned = "".join(ch for ch in fragment.lower() if ch.isalpha() and not ch.isupper())
        if not cleaned or cleaned in self._denylist:
            return None
        if self._max_token_length is not None and len(cleaned) > self._max_token_length:
            return None
        return Word(cleaned)

    def _to_text(self, raw_document: str) -> str:
        text = _NBSP_ENTITY.sub(" ", raw_document)
        if self._extract_html and _MARKUP_HINT.search(text):
            soup = BeautifulSoup(text, "html.parser")
            for element in soup(["script", "style"]):
                element.decompose()
            text = soup.get_text(" ")
        return text
