"""Recent scans endpoint.

Routes
------
GET /api/recent?limit=10    → the caller's newest scans first
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Header, Query, Request

from linkray.api.schemas import RecentResponse
from linkray.auth import parse_bearer

router = APIRouter()


@router.get("", response_model=RecentResponse)
def recent_endpoint(
    request: Request,
    limit: int = Query(10, ge=1, le=100),
    authorization: Optional[str] = Header(default=None),
) -> dict[str, Any]:
    service = request.app.state.service
    scans = service.list_recent(credential=parse_bearer(authorization), limit=limit)
    return {"success": True, "data": [scan.to_dict() for scan in scans]}
