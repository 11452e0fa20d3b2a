"""Dataclass models representing DB rows and pipeline results.

These are plain Python objects – not ORM models.  The DB layer serialises /
deserialises to and from these types.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Optional

MODE_QUICK = "quick"
MODE_DEEP = "deep"


@dataclass
class Scan:
    id: str
    owner_id: Optional[str]
    url_hash: str
    url: str
    summary: str
    risk_score: int
    category: str
    tags: list[str] = field(default_factory=list)
    reason: Optional[str] = None
    screenshot_url: str = ""
    mode: str = MODE_QUICK
    created_at: int = 0

    def tags_json(self) -> str:
        """Serialise tags to a JSON string for storage."""
        return json.dumps(self.tags)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ScanResult(Scan):
    """A :class:`Scan` as returned to the caller; never stored as-is."""

    from_cache: bool = False

    @classmethod
    def from_scan(cls, scan: Scan, screenshot_url: str, from_cache: bool) -> "ScanResult":
        data = asdict(replace(scan, screenshot_url=screenshot_url))
        return cls(**data, from_cache=from_cache)


@dataclass
class Identity:
    """An authenticated caller, as resolved from a bearer credential."""

    user_id: str
    email: Optional[str] = None
