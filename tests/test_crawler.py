"""Tests for the bounded breadth-first crawler.

A dict-backed stub fetcher stands in for the network; every test records the
URLs it was asked for so budget and revisit rules can be asserted directly.
"""

from __future__ import annotations

import threading
from typing import Dict, List, Optional

import pytest

from linkray.errors import FetchTimeoutError, NoContentError
from linkray.scraper.crawler import PAGE_DELIMITER, crawl_site
from linkray.scraper.fetcher import FetchStatusError
from linkray.scraper.models import CrawlPage

_FILLER = "This page has plenty of readable text for the crawler to keep around."


def _page(title: str, links: List[str], body: Optional[str] = None) -> str:
    anchors = "".join(f'<a href="{href}">{href}</a>' for href in links)
    text = body if body is not None else f"{title}. {_FILLER}"
    return f"<html><head><title>{title}</title></head><body><main><p>{text}</p>{anchors}</main></body></html>"


class StubFetcher:
    """Serves pages from a dict; unknown URLs raise the configured error."""

    def __init__(self, pages: Dict[str, object]) -> None:
        self.pages = pages
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def __call__(self, url: str) -> CrawlPage:
        with self._lock:
            self.calls.append(url)
        outcome = self.pages.get(url)
        if outcome is None:
            raise FetchStatusError(404)
        if isinstance(outcome, Exception):
            raise outcome
        return CrawlPage(url=url, html=outcome, status_code=200, final_url=url)


SEED = "https://example.com/"


# ---------------------------------------------------------------------------
# Budget and traversal
# ---------------------------------------------------------------------------

class TestCrawlBudget:
    def test_never_fetches_more_than_max_pages(self) -> None:
        fetcher = StubFetcher({
            SEED: _page("Home", ["/a", "/b", "/c", "/d"]),
            "https://example.com/a": _page("A", []),
            "https://example.com/b": _page("B", []),
            "https://example.com/c": _page("C", []),
            "https://example.com/d": _page("D", []),
        })
        result = crawl_site(SEED, max_pages=3, fetcher=fetcher, concurrency=4)

        assert len(fetcher.calls) == 3
        assert result.pages_visited == [SEED, "https://example.com/a", "https://example.com/b"]

    def test_single_page_budget_fetches_only_the_seed(self) -> None:
        fetcher = StubFetcher({SEED: _page("Home", ["/a"]), "https://example.com/a": _page("A", [])})
        result = crawl_site(SEED, max_pages=1, fetcher=fetcher)

        assert fetcher.calls == [SEED]
        assert result.pages_used == [SEED]

    def test_no_url_fetched_twice(self) -> None:
        fetcher = StubFetcher({
            SEED: _page("Home", ["/a", "/b", "/", "/a#frag"]),
            "https://example.com/a": _page("A", ["/", "/b"]),
            "https://example.com/b": _page("B", ["/a", SEED]),
        })
        result = crawl_site(SEED, max_pages=10, fetcher=fetcher, concurrency=2)

        assert sorted(fetcher.calls) == sorted(set(fetcher.calls))
        assert len(result.pages_visited) == 3

    def test_only_same_site_links_are_followed(self) -> None:
        fetcher = StubFetcher({
            SEED: _page("Home", ["https://other.com/x", "https://www.example.com/y", "https://blog.example.com/"]),
            "https://www.example.com/y": _page("Y", []),
        })
        crawl_site(SEED, max_pages=10, fetcher=fetcher)

        assert fetcher.calls == [SEED, "https://www.example.com/y"]

    def test_asset_links_are_skipped(self) -> None:
        fetcher = StubFetcher({
            SEED: _page("Home", ["/brochure.pdf", "/logo.png", "/about"]),
            "https://example.com/about": _page("About", []),
        })
        crawl_site(SEED, max_pages=10, fetcher=fetcher)

        assert fetcher.calls == [SEED, "https://example.com/about"]

    def test_breadth_first_order(self) -> None:
        fetcher = StubFetcher({
            SEED: _page("Home", ["/a", "/b"]),
            "https://example.com/a": _page("A", ["/a/deep"]),
            "https://example.com/b": _page("B", []),
            "https://example.com/a/deep": _page("Deep", []),
        })
        result = crawl_site(SEED, max_pages=10, fetcher=fetcher, concurrency=1)

        assert result.pages_visited == [
            SEED,
            "https://example.com/a",
            "https://example.com/b",
            "https://example.com/a/deep",
        ]


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

class TestCrawlAggregation:
    def test_sections_are_delimited_and_labelled(self) -> None:
        fetcher = StubFetcher({
            SEED: _page("Home", ["/a"]),
            "https://example.com/a": _page("A", []),
        })
        result = crawl_site(SEED, max_pages=5, fetcher=fetcher)

        assert result.text.startswith(f"{PAGE_DELIMITER}[{SEED}]\nHome. ")
        assert f"{PAGE_DELIMITER}[https://example.com/a]\nA. " in result.text
        assert result.title == "Home | A"

    def test_short_pages_are_left_out_but_their_links_followed(self) -> None:
        fetcher = StubFetcher({
            SEED: _page("Home", ["/a"], body="tiny"),
            "https://example.com/a": _page("A", []),
        })
        result = crawl_site(SEED, max_pages=5, fetcher=fetcher, min_page_chars=50)

        assert result.pages_used == ["https://example.com/a"]
        assert f"[{SEED}]" not in result.text

    def test_per_page_text_is_capped(self) -> None:
        fetcher = StubFetcher({SEED: _page("Home", [], body="x" * 5000)})
        result = crawl_site(SEED, max_pages=1, fetcher=fetcher, page_chars=100)

        assert result.text == f"{PAGE_DELIMITER}[{SEED}]\n" + "x" * 100

    def test_failed_pages_are_recorded_and_skipped(self) -> None:
        fetcher = StubFetcher({
            SEED: _page("Home", ["/gone", "/ok"]),
            "https://example.com/ok": _page("OK", []),
        })
        result = crawl_site(SEED, max_pages=5, fetcher=fetcher)

        assert result.failures == {"https://example.com/gone": "fetch_failed"}
        assert result.pages_used == [SEED, "https://example.com/ok"]

    def test_concurrent_batches_keep_submission_order(self) -> None:
        pages = {SEED: _page("Home", [f"/p{i}" for i in range(6)])}
        for i in range(6):
            pages[f"https://example.com/p{i}"] = _page(f"P{i}", [])
        result = crawl_site(SEED, max_pages=10, fetcher=StubFetcher(pages), concurrency=4)

        assert result.pages_used == [SEED] + [f"https://example.com/p{i}" for i in range(6)]


# ---------------------------------------------------------------------------
# Failure modes
# ---------------------------------------------------------------------------

class TestCrawlFailures:
    def test_seed_timeout_raises_no_content_with_seed_error(self) -> None:
        fetcher = StubFetcher({SEED: FetchTimeoutError()})
        with pytest.raises(NoContentError) as exc_info:
            crawl_site(SEED, max_pages=5, fetcher=fetcher)

        assert isinstance(exc_info.value.seed_error, FetchTimeoutError)

    def test_every_page_too_short_raises_no_content(self) -> None:
        fetcher = StubFetcher({SEED: _page("Home", [], body="hi")})
        with pytest.raises(NoContentError) as exc_info:
            crawl_site(SEED, max_pages=5, fetcher=fetcher)

        assert exc_info.value.seed_error is None
        assert exc_info.value.status_code == 422

    def test_seed_http_error_is_kept_as_seed_error(self) -> None:
        fetcher = StubFetcher({})
        with pytest.raises(NoContentError) as exc_info:
            crawl_site(SEED, max_pages=3, fetcher=fetcher)

        assert isinstance(exc_info.value.seed_error, FetchStatusError)
        assert fetcher.calls == [SEED]
