"""HTTP fetcher with a hard wall-clock deadline.

``httpx`` timeouts apply per network operation, so a server that is slow to
answer and then trickles bytes can keep a request alive far beyond the
configured timeout.  ``fetch_page`` therefore runs the request on a worker
thread and waits for it against an absolute deadline; when the deadline
passes the caller gets :class:`FetchTimeoutError` straight away and the
in-flight request is aborted.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Optional

import httpx

from linkray.config import settings
from linkray.errors import FetchFailedError, FetchTimeoutError
from linkray.scraper.models import CrawlPage

logger = logging.getLogger(__name__)

# Many sites block default or bot-identifying clients.
_BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}


class FetchStatusError(FetchFailedError):
    """The server answered with a non-2xx status."""

    def __init__(self, status: int) -> None:
        super().__init__(f"HTTP {status}: site returned an error", status=status)


class FetchTransportError(FetchFailedError):
    """Connection, DNS, TLS or protocol failure; no status was received."""


def build_client(timeout: Optional[float] = None) -> httpx.Client:
    """Return an ``httpx.Client`` preconfigured with browser-like headers."""
    return httpx.Client(
        headers=_BROWSER_HEADERS,
        timeout=timeout if timeout is not None else settings.fetch_timeout,
        follow_redirects=True,
    )


class _PageRequest:
    """One GET running on a worker thread; :meth:`abort` may be called from any thread."""

    def __init__(self, http: httpx.Client, url: str, timeout: float, max_bytes: int) -> None:
        self.http = http
        self.url = url
        self.timeout = timeout
        self.max_bytes = max_bytes
        self.aborted = threading.Event()
        self._response: Optional[httpx.Response] = None

    def run(self) -> CrawlPage:
        with self.http.stream("GET", self.url, timeout=self.timeout) as response:
            self._response = response
            if self.aborted.is_set():
                raise FetchTimeoutError()
            if not response.is_success:
                raise FetchStatusError(response.status_code)
            return CrawlPage(
                url=self.url,
                html=self._read_body(response),
                status_code=response.status_code,
                final_url=str(response.url),
            )

    def abort(self) -> None:
        self.aborted.set()
        response = self._response
        if response is not None:
            response.close()

    def _read_body(self, response: httpx.Response) -> str:
        chunks: list[bytes] = []
        received = 0
        for chunk in response.iter_bytes():
            if self.aborted.is_set():
                raise FetchTimeoutError()
            chunks.append(chunk)
            received += len(chunk)
            if received >= self.max_bytes:
                break
        body = b"".join(chunks)[: self.max_bytes]
        encoding = response.encoding or "utf-8"
        return body.decode(encoding, errors="replace")


def fetch_page(
    url: str,
    timeout: Optional[float] = None,
    max_bytes: Optional[int] = None,
    client: Optional[httpx.Client] = None,
) -> CrawlPage:
    """GET *url* and return its body as a :class:`CrawlPage`.

    Args:
        url: Absolute http(s) URL.
        timeout: Wall-clock budget in seconds for the whole request,
            including connecting, waiting for headers and reading the body.
            Defaults to ``settings.fetch_timeout``.
        max_bytes: Body size cap; longer bodies are truncated.
        client: Optional shared client (a crawl reuses one connection pool).

    Raises:
        FetchTimeoutError: The deadline passed before the body was read.
        FetchStatusError: The server returned a non-2xx status.
        FetchTransportError: Any other network failure.

    No retries happen here; fallback lives in the crawler and analyzer.
    """
    timeout = timeout if timeout is not None else settings.fetch_timeout
    max_bytes = max_bytes if max_bytes is not None else settings.fetch_max_bytes
    deadline = time.monotonic() + timeout

    owns_client = client is None
    http = client if client is not None else build_client(timeout)
    request = _PageRequest(http, url, timeout, max_bytes)
    worker = ThreadPoolExecutor(max_workers=1, thread_name_prefix="linkray-fetch")
    try:
        future = worker.submit(request.run)
        try:
            return future.result(timeout=max(deadline - time.monotonic(), 0.0))
        except FutureTimeoutError:
            logger.info("Fetch of %s exceeded its %.1fs deadline", url, timeout)
            request.abort()
            raise FetchTimeoutError() from None
    except httpx.TimeoutException as exc:
        logger.info("Fetch timed out for %s: %r", url, exc)
        raise FetchTimeoutError() from exc
    except httpx.HTTPError as exc:
        logger.info("Fetch failed for %s: %r", url, exc)
        raise FetchTransportError() from exc
    finally:
        worker.shutdown(wait=False)
        if owns_client:
            http.close()
