"""Content extraction: turns raw HTML into :class:`ScrapedContent`."""

from __future__ import annotations

import re
from typing import List

from bs4 import BeautifulSoup

from linkray.scraper.models import ScrapedContent
from linkray.urls import resolve_link

DEFAULT_MAX_CHARS = 10_000
UNKNOWN_TITLE = "Unknown"

# Elements that never carry readable page content.
_NOISE_TAGS = ["script", "style", "nav", "footer", "header", "iframe", "noscript", "svg"]

# Content containers in priority order; the longest text wins, ties keep the
# earlier selector.
_CONTENT_SELECTORS = ["main", "article", '[role="main"]', "#content", ".content", "body"]

_WHITESPACE = re.compile(r"\s+")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _collapse(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def _select_text(soup: BeautifulSoup, selector: str) -> str:
    """Text of every element matching *selector*, with element boundaries kept."""
    return " ".join(el.get_text(separator=" ") for el in soup.select(selector))


def _extract_title(soup: BeautifulSoup) -> str:
    """Return ``<title>``, else the first ``<h1>``, else ``"Unknown"``."""
    if soup.title is not None:
        title = _collapse(soup.title.get_text())
        if title:
            return title
    h1 = soup.find("h1")
    if h1 is not None:
        heading = _collapse(h1.get_text())
        if heading:
            return heading
    return UNKNOWN_TITLE


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_content(html: str, max_chars: int = DEFAULT_MAX_CHARS) -> ScrapedContent:
    """Strip *html* down to its significant readable text and title.

    Non-content elements are removed first, then each selector in
    ``_CONTENT_SELECTORS`` is tried and the one producing the most text is
    kept.  Whitespace runs collapse to single spaces and the result is cut to
    *max_chars*.  Pure and deterministic.
    """
    soup = BeautifulSoup(html or "", "html.parser")

    # Title first: <title> lives in <head>, and the first <h1> may sit inside
    # a <header> that is about to be removed.
    title = _extract_title(soup)

    for tag in soup(_NOISE_TAGS):
        tag.decompose()

    text = ""
    for selector in _CONTENT_SELECTORS:
        candidate = _collapse(_select_text(soup, selector))
        if len(candidate) > len(text):
            text = candidate

    # Documents may omit the optional <body> tag; then take the whole tree.
    if not text:
        for tag in soup(["head", "title"]):
            tag.decompose()
        text = _collapse(soup.get_text(separator=" "))

    return ScrapedContent(text=text[:max_chars], title=title)


def extract_links(html: str, base_url: str) -> List[str]:
    """Return de-duplicated absolute http(s) links from ``<a href>`` tags.

    Links are resolved against *base_url*, fragments are dropped, and
    document order is preserved.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    seen: set[str] = set()
    links: List[str] = []
    for anchor in soup.find_all("a", href=True):
        url = resolve_link(anchor["href"], base_url)
        if url and url not in seen:
            seen.add(url)
            links.append(url)
    return links
