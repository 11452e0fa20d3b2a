"""Data models for the scraper pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class CrawlPage:
    """The raw HTTP response for a single URL fetch."""

    url: str
    html: str
    status_code: int
    final_url: Optional[str] = None


@dataclass
class ScrapedContent:
    """Cleaned, readable text extracted from one HTML document."""

    text: str
    title: str


@dataclass
class CrawlResult:
    """The aggregated document produced by a crawl.

    ``text`` concatenates every qualifying page, each prefixed by a
    ``---`` delimiter and its URL in brackets.  ``title`` joins the distinct
    page titles with `` | ``.
    """

    text: str
    title: str
    pages_visited: List[str] = field(default_factory=list)
    pages_used: List[str] = field(default_factory=list)
    failures: Dict[str, str] = field(default_factory=dict)

    def as_content(self) -> ScrapedContent:
        return ScrapedContent(text=self.text, title=self.title)
