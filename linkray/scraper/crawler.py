"""Bounded breadth-first crawler producing one aggregated document per site.

The crawl starts at the seed URL, follows same-site links only, fetches at
most ``max_pages`` distinct URLs and never fetches a URL twice.  Pages are
fetched in small batches on a ``ThreadPoolExecutor``; results are consumed
in submission order so the aggregated document is deterministic for a given
set of responses.
"""

from __future__ import annotations

import logging
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional, Union
from urllib.parse import urlsplit

from linkray.config import settings
from linkray.errors import LinkRayError, NoContentError
from linkray.scraper.extractor import extract_content, extract_links
from linkray.scraper.fetcher import build_client, fetch_page
from linkray.scraper.models import CrawlPage, CrawlResult
from linkray.urls import same_site

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], CrawlPage]

PAGE_DELIMITER = "\n---\n"
TITLE_SEPARATOR = " | "

_ASSET_EXTENSIONS = (
    ".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg", ".ico", ".bmp",
    ".pdf", ".zip", ".gz", ".tar", ".rar", ".7z", ".exe", ".dmg", ".apk",
    ".mp3", ".mp4", ".avi", ".mov", ".webm", ".wav",
    ".css", ".js", ".json", ".xml", ".rss", ".woff", ".woff2", ".ttf",
    ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _is_asset(url: str) -> bool:
    return urlsplit(url).path.lower().endswith(_ASSET_EXTENSIONS)


def _fetch_batch(
    batch: list[str], fetcher: Fetcher, concurrency: int
) -> list[Union[CrawlPage, Exception]]:
    """Fetch every URL in *batch*; failures are returned in place of pages."""

    def _safe_fetch(url: str) -> Union[CrawlPage, Exception]:
        try:
            return fetcher(url)
        except Exception as exc:  # noqa: BLE001
            return exc

    if len(batch) == 1 or concurrency <= 1:
        return [_safe_fetch(url) for url in batch]

    with ThreadPoolExecutor(max_workers=min(concurrency, len(batch))) as pool:
        return list(pool.map(_safe_fetch, batch))


def _describe(exc: Exception) -> str:
    if isinstance(exc, LinkRayError):
        return exc.kind.value
    return type(exc).__name__


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def crawl_site(
    seed: str,
    max_pages: int,
    fetcher: Optional[Fetcher] = None,
    page_chars: Optional[int] = None,
    min_page_chars: Optional[int] = None,
    concurrency: Optional[int] = None,
    timeout: Optional[float] = None,
) -> CrawlResult:
    """Crawl the site rooted at *seed* and aggregate its readable text.

    Args:
        seed: Normalized start URL.
        max_pages: Maximum number of distinct URLs fetched.
        fetcher: ``(url) -> CrawlPage`` callable.  Defaults to
            :func:`~linkray.scraper.fetcher.fetch_page` on a shared client.
        page_chars: Per-page text cap passed to the extractor.
        min_page_chars: Pages with less extracted text are left out of the
            aggregate (their links are still followed).
        concurrency: Maximum parallel fetches per batch.
        timeout: Per-page fetch deadline in seconds.

    Returns:
        A :class:`CrawlResult` whose ``text`` holds one
        ``"\\n---\\n[<url>]\\n<text>"`` section per qualifying page.

    Raises:
        NoContentError: No page yielded usable text.  ``seed_error`` holds
            the seed page's fetch error when the seed itself failed.
    """
    page_chars = page_chars if page_chars is not None else settings.quick_page_chars
    min_page_chars = min_page_chars if min_page_chars is not None else settings.min_page_chars
    concurrency = max(1, concurrency if concurrency is not None else settings.crawl_concurrency)
    max_pages = max(1, max_pages)

    client = None
    if fetcher is None:
        client = build_client(timeout)
        fetcher = lambda url: fetch_page(url, timeout=timeout, client=client)  # noqa: E731

    queue: deque[str] = deque([seed])
    known: set[str] = {seed}
    result = CrawlResult(text="", title="")
    sections: list[str] = []
    titles: list[str] = []
    seed_error: Optional[LinkRayError] = None

    try:
        while queue and len(result.pages_visited) < max_pages:
            batch: list[str] = []
            while (
                queue
                and len(batch) < concurrency
                and len(result.pages_visited) + len(batch) < max_pages
            ):
                batch.append(queue.popleft())
            result.pages_visited.extend(batch)

            for url, outcome in zip(batch, _fetch_batch(batch, fetcher, concurrency)):
                if isinstance(outcome, Exception):
                    logger.warning("Skipping %s: %r", url, outcome)
                    result.failures[url] = _describe(outcome)
                    if url == seed and isinstance(outcome, LinkRayError):
                        seed_error = outcome
                    continue

                page = outcome
                base_url = page.final_url or url
                known.add(base_url)

                try:
                    content = extract_content(page.html, max_chars=page_chars)
                    links = extract_links(page.html, base_url)
                except Exception as exc:  # noqa: BLE001
                    logger.warning("Could not parse %s: %r", url, exc)
                    result.failures[url] = _describe(exc)
                    continue

                if len(content.text) >= min_page_chars:
                    sections.append(f"{PAGE_DELIMITER}[{url}]\n{content.text}")
                    result.pages_used.append(url)
                    if content.title and content.title not in titles:
                        titles.append(content.title)

                # Stop discovering once the budget is fully spoken for.
                for link in links:
                    if len(result.pages_visited) + len(queue) >= max_pages:
                        break
                    if link in known or _is_asset(link) or not same_site(link, seed):
                        continue
                    known.add(link)
                    queue.append(link)
    finally:
        if client is not None:
            client.close()

    if not sections:
        raise NoContentError(seed_error=seed_error)

    result.text = "".join(sections)
    result.title = TITLE_SEPARATOR.join(titles)
    logger.info(
        "Crawled %s: %d page(s) fetched, %d used, %d failed",
        seed,
        len(result.pages_visited),
        len(result.pages_used),
        len(result.failures),
    )
    return result
