"""Analysis endpoints.

Routes
------
POST /api/analyze         Body: {"url": "..."}    → quick, single-page analysis
POST /api/analyze/deep    Body: {"url": "..."}    → multi-page crawl analysis

Both accept an optional ``Authorization: Bearer <token>`` header.  Signed-in
callers get owner-scoped caching and their results are saved.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Header, Request

from linkray.api.schemas import ScanRequest, ScanResponse
from linkray.auth import parse_bearer

router = APIRouter()


def _run(request: Request, body: ScanRequest, authorization: Optional[str], deep: bool) -> dict[str, Any]:
    service = request.app.state.service
    result = service.analyze(body.url, credential=parse_bearer(authorization), deep=deep)
    return {"success": True, "data": result.to_dict()}


@router.post("", response_model=ScanResponse)
def analyze_endpoint(
    body: ScanRequest,
    request: Request,
    authorization: Optional[str] = Header(default=None),
) -> dict[str, Any]:
    """Fetch the submitted page, analyze it and return the assessment."""
    return _run(request, body, authorization, deep=False)


@router.post("/deep", response_model=ScanResponse)
def deep_analyze_endpoint(
    body: ScanRequest,
    request: Request,
    authorization: Optional[str] = Header(default=None),
) -> dict[str, Any]:
    """Crawl the site breadth-first, then analyze the aggregated content."""
    return _run(request, body, authorization, deep=True)
