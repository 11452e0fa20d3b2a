"""Tests for the HTTP API (``/api/analyze``, ``/api/recent``, ``/healthz``).

The TestClient lifespan builds a service from real settings; each test
replaces ``app.state.service`` with one wired to an in-memory DB, a stub
fetcher and a stub model backend.  No network or model calls are made.
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from linkray.analysis.analyzer import AIAnalyzer
from linkray.analysis.backends import ModelBackend
from linkray.api.app import create_app
from linkray.auth import LocalTokenResolver
from linkray.config import Settings, settings
from linkray.db.connection import get_connection
from linkray.db.migrations import init_db
from linkray.db.scans import SqliteScanStore
from linkray.db.tokens import issue_token
from linkray.scraper.fetcher import FetchStatusError
from linkray.scraper.models import CrawlPage
from linkray.service import ScanService

_HTML = (
    "<html><head><title>Example Domain</title></head><body><main>"
    "<p>This domain is for use in illustrative examples in documents.</p>"
    '<a href="/about">About</a></main></body></html>'
)


# ---------------------------------------------------------------------------
# Stubs
# ---------------------------------------------------------------------------

def _fetch(url: str) -> CrawlPage:
    if url.startswith("https://example.com/"):
        return CrawlPage(url=url, html=_HTML, status_code=200, final_url=url)
    raise FetchStatusError(404)


class StubBackend(ModelBackend):
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail

    @property
    def name(self) -> str:
        return "stub:model"

    def complete(self, prompt: str) -> str:
        if self.fail:
            raise RuntimeError("quota exceeded")
        return json.dumps({
            "summary": "An example site.", "risk_score": 90, "reason": "Well known.",
            "category": "Tech", "tags": ["safe"],
        })


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def conn():
    c = get_connection(db_path=":memory:")  # type: ignore[arg-type]
    init_db(c)
    yield c
    c.close()


def _make_service(conn, fail: bool = False) -> ScanService:
    store = SqliteScanStore(conn)
    return ScanService(
        store=store,
        analyzer=AIAnalyzer([StubBackend(fail=fail)]),
        identity=LocalTokenResolver(conn, lock=store.lock),
        fetcher=_fetch,
        cfg=Settings(crawl_concurrency=1, deep_max_pages=3, allow_anonymous_recent=False),
    )


@pytest.fixture()
def client(conn, tmp_path, monkeypatch):
    """Return a TestClient whose service uses the in-memory DB."""
    monkeypatch.setattr(settings, "workspace_dir", tmp_path)
    app = create_app()

    with TestClient(app, raise_server_exceptions=True) as c:
        # Lifespan has run by this point; override its service with ours.
        c.app.state.service = _make_service(conn)
        yield c


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

class TestHealth:
    def test_healthz(self, client) -> None:
        resp = client.get("/healthz")
        assert resp.status_code == 200
        assert resp.json() == {"ok": True}


class TestAnalyze:
    def test_quick_analysis(self, client) -> None:
        resp = client.post("/api/analyze", json={"url": "example.com"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        data = body["data"]
        assert data["url"] == "https://example.com/"
        assert data["risk_score"] == 90
        assert data["from_cache"] is False
        assert data["reason"] is None
        assert "https%3A%2F%2Fexample.com%2F" in data["screenshot_url"]

    def test_deep_analysis(self, client) -> None:
        resp = client.post("/api/analyze/deep", json={"url": "https://example.com"})

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["mode"] == "deep"
        assert data["reason"] == "Well known."

    def test_invalid_url(self, client) -> None:
        resp = client.post("/api/analyze", json={"url": "not a url!!"})

        assert resp.status_code == 400
        assert resp.json() == {
            "success": False,
            "error": {"kind": "invalid_url", "message": "Invalid URL format"},
        }

    def test_missing_body_field(self, client) -> None:
        resp = client.post("/api/analyze", json={})

        assert resp.status_code == 422
        assert resp.json()["error"]["kind"] == "invalid_request"

    def test_upstream_http_error(self, client) -> None:
        resp = client.post("/api/analyze", json={"url": "https://other.example.org/"})

        assert resp.status_code == 502
        assert resp.json()["error"]["kind"] == "fetch_failed"

    def test_ai_failure(self, client, conn) -> None:
        client.app.state.service = _make_service(conn, fail=True)
        resp = client.post("/api/analyze", json={"url": "example.com"})

        assert resp.status_code == 503
        assert resp.json()["error"]["kind"] == "ai_analysis_failed"

    def test_signed_in_request_is_cached(self, client, conn) -> None:
        headers = {"Authorization": f"Bearer {issue_token(conn, 'alice')}"}
        first = client.post("/api/analyze", json={"url": "example.com"}, headers=headers)
        second = client.post("/api/analyze", json={"url": "example.com"}, headers=headers)

        assert first.json()["data"]["from_cache"] is False
        assert second.json()["data"]["from_cache"] is True
        assert second.json()["data"]["id"] == first.json()["data"]["id"]


class TestRecent:
    def test_requires_authentication(self, client) -> None:
        resp = client.get("/api/recent")

        assert resp.status_code == 401
        assert resp.json()["error"] == {"kind": "unauthenticated", "message": "Not authenticated"}

    def test_lists_own_scans(self, client, conn) -> None:
        headers = {"Authorization": f"Bearer {issue_token(conn, 'alice')}"}
        client.post("/api/analyze", json={"url": "example.com"}, headers=headers)

        resp = client.get("/api/recent", headers=headers)

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert len(data) == 1
        assert data[0]["owner_id"] == "alice"
        assert data[0]["url"] == "https://example.com/"

    def test_limit_out_of_range(self, client, conn) -> None:
        headers = {"Authorization": f"Bearer {issue_token(conn, 'alice')}"}
        resp = client.get("/api/recent", params={"limit": 0}, headers=headers)
        assert resp.status_code == 422


class TestUnhandledErrors:
    def test_unexpected_exception_becomes_internal_error(self, conn, tmp_path, monkeypatch) -> None:
        monkeypatch.setattr(settings, "workspace_dir", tmp_path)
        app = create_app()

        with TestClient(app, raise_server_exceptions=False) as c:
            broken = MagicMock()
            broken.analyze.side_effect = RuntimeError("boom")
            c.app.state.service = broken
            resp = c.post("/api/analyze", json={"url": "example.com"})

        assert resp.status_code == 500
        assert resp.json()["error"]["kind"] == "internal_error"
