"""Request orchestration: URL in, :class:`ScanResult` out.

Per request the service moves through::

    validate → identify → cache lookup ─hit──────────────────────────→ done
                                       └miss→ crawl → analyze → persist → done

Any stage may raise a :class:`~linkray.errors.LinkRayError`; nothing is
persisted unless the analysis succeeded.  Collaborators (store, analyzer,
identity resolver, fetcher) are passed in, so tests can substitute stubs.
"""

from __future__ import annotations

import logging
import sqlite3
import time
import uuid
from typing import Callable, Optional

from linkray.analysis.analyzer import AIAnalyzer, FailurePolicy
from linkray.analysis.backends import build_backends
from linkray.auth import IdentityResolver, build_identity_resolver
from linkray.config import Settings, settings as default_settings
from linkray.db.models import Identity, Scan, ScanResult
from linkray.db.scans import MAX_RECENT_LIMIT, ScanStore, SqliteScanStore
from linkray.errors import NoContentError, PersistenceFailedError, UnauthenticatedError
from linkray.profiles import AnalysisProfile, deep_profile, quick_profile
from linkray.scraper.crawler import Fetcher, crawl_site
from linkray.scraper.models import ScrapedContent
from linkray.urls import fingerprint, normalize_url, screenshot_url

logger = logging.getLogger(__name__)

ANONYMOUS_SCAN_ID = "anon"


class ScanService:
    def __init__(
        self,
        store: ScanStore,
        analyzer: AIAnalyzer,
        identity: Optional[IdentityResolver] = None,
        fetcher: Optional[Fetcher] = None,
        cfg: Optional[Settings] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.analyzer = analyzer
        self.identity = identity
        self.fetcher = fetcher
        self.cfg = cfg or default_settings
        self.clock = clock
        self.quick = quick_profile(self.cfg)
        self.deep = deep_profile(self.cfg)

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def analyze(
        self,
        url: str,
        credential: Optional[str] = None,
        deep: bool = False,
    ) -> ScanResult:
        """Analyze *url* and return a result, from cache when a fresh one exists.

        Args:
            url: Raw user input; normalized before anything else happens.
            credential: Optional bearer token.  A token that does not resolve
                makes the request anonymous.
            deep: Use the crawling profile instead of the single-page one.

        Raises:
            InvalidURLError, FetchTimeoutError, FetchFailedError,
            NoContentError, AIAnalysisFailedError, PersistenceFailedError.
        """
        profile = self.deep if deep else self.quick
        normalized = normalize_url(url)
        url_hash = fingerprint(normalized)
        shot = screenshot_url(normalized, self.cfg.screenshot_url_template)

        identity = self._identify(credential) if credential else None
        if credential and identity is None:
            logger.warning("Credential did not resolve; analyzing %s anonymously", normalized)
        owner_id = identity.user_id if identity else None

        cached = self._lookup(url_hash, owner_id, profile)
        if cached is not None:
            logger.info("Cache hit for %s (%s)", normalized, profile.mode)
            return ScanResult.from_scan(cached, shot, from_cache=True)

        logger.info("Cache miss for %s; running %s analysis", normalized, profile.mode)
        content = self._acquire(normalized, profile)
        analysis = self.analyzer.analyze(content, profile.template)

        scan = Scan(
            id=ANONYMOUS_SCAN_ID if owner_id is None else str(uuid.uuid4()),
            owner_id=owner_id,
            url_hash=url_hash,
            url=normalized,
            summary=analysis.summary,
            risk_score=analysis.risk_score,
            reason=analysis.reason,
            category=analysis.category,
            tags=list(analysis.tags),
            screenshot_url=shot,
            mode=profile.mode,
            created_at=int(self.clock()),
        )

        if owner_id is None:
            return ScanResult.from_scan(scan, shot, from_cache=False)

        try:
            saved = self.store.upsert(scan)
        except Exception as exc:
            logger.exception("Failed to persist scan of %s for %s", normalized, owner_id)
            raise PersistenceFailedError() from exc
        return ScanResult.from_scan(saved, shot, from_cache=False)

    def list_recent(self, credential: Optional[str] = None, limit: int = 10) -> list[Scan]:
        """Return the caller's most recent scans, newest first.

        Without a credential the system-wide list is returned only when
        ``allow_anonymous_recent`` is enabled.

        Raises:
            UnauthenticatedError: No usable identity.
            PersistenceFailedError: The store could not be read.
        """
        limit = max(1, min(MAX_RECENT_LIMIT, limit))
        identity = self._identify(credential) if credential else None
        if identity is None and (credential or not self.cfg.allow_anonymous_recent):
            raise UnauthenticatedError()

        owner_id = identity.user_id if identity else None
        try:
            return self.store.list_recent(owner_id, limit)
        except Exception as exc:
            logger.exception("Failed to list recent scans")
            raise PersistenceFailedError("Failed to fetch recent scans") from exc

    # ------------------------------------------------------------------
    # Pipeline stages
    # ------------------------------------------------------------------

    def _identify(self, credential: str) -> Optional[Identity]:
        if self.identity is None:
            return None
        return self.identity.resolve(credential)

    def _lookup(
        self, url_hash: str, owner_id: Optional[str], profile: AnalysisProfile
    ) -> Optional[Scan]:
        if owner_id is None and not self.cfg.share_cache_with_anonymous:
            return None

        max_age = self.cfg.cache_max_age or None
        try:
            cached = self.store.get_by_fingerprint(
                url_hash,
                owner_id=owner_id,
                max_age=max_age,
                any_owner=owner_id is None,
                modes=profile.accepted_modes,
            )
        except Exception:
            logger.warning("Cache lookup failed; treating as a miss", exc_info=True)
            return None

        if cached is None:
            return None
        # The store is trusted for neither ownership nor freshness.
        if owner_id is not None and cached.owner_id != owner_id:
            return None
        if max_age is not None and self.clock() - cached.created_at > max_age:
            return None
        if not profile.satisfied_by(cached.mode):
            return None
        return cached

    def _acquire(self, url: str, profile: AnalysisProfile) -> ScrapedContent:
        try:
            crawl = crawl_site(
                url,
                max_pages=profile.max_pages,
                fetcher=self.fetcher,
                page_chars=profile.page_chars,
                min_page_chars=self.cfg.min_page_chars,
                concurrency=self.cfg.crawl_concurrency,
                timeout=self.cfg.fetch_timeout,
            )
        except NoContentError as exc:
            if profile.surface_fetch_errors and exc.seed_error is not None:
                raise exc.seed_error from exc
            raise
        return crawl.as_content()


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

def build_service(conn: sqlite3.Connection, cfg: Optional[Settings] = None) -> ScanService:
    """Wire a :class:`ScanService` from settings and an initialised DB connection."""
    cfg = cfg or default_settings
    store = SqliteScanStore(conn)
    identity = build_identity_resolver(cfg, conn, lock=store.lock)
    analyzer = AIAnalyzer(build_backends(cfg), policy=FailurePolicy(cfg.ai_failure_policy))
    return ScanService(store=store, analyzer=analyzer, identity=identity, cfg=cfg)
