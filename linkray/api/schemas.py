"""Request/response bodies shared by the API routers."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class ScanRequest(BaseModel):
    url: str = Field(..., min_length=1, max_length=2048)


class ScanOut(BaseModel):
    id: str
    owner_id: Optional[str] = None
    url: str
    summary: str
    risk_score: int
    reason: Optional[str] = None
    category: str
    tags: list[str]
    screenshot_url: str
    mode: str
    created_at: int


class ScanResultOut(ScanOut):
    from_cache: bool


class ScanResponse(BaseModel):
    success: bool = True
    data: ScanResultOut


class RecentResponse(BaseModel):
    success: bool = True
    data: list[ScanOut]
