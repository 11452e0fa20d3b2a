"""Scan persistence: the cache/store behind the analysis pipeline.

:class:`ScanStore` is the interface the orchestrator depends on;
:class:`SqliteScanStore` implements it on the ``scans`` table.
"""

from __future__ import annotations

import json
import sqlite3
import threading
import time
import uuid
from abc import ABC, abstractmethod
from typing import Callable, Optional, Sequence

from linkray.db.models import Scan

MAX_RECENT_LIMIT = 100


# ---------------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------------

class ScanStore(ABC):
    @abstractmethod
    def get_by_fingerprint(
        self,
        url_hash: str,
        owner_id: Optional[str] = None,
        max_age: Optional[int] = None,
        any_owner: bool = False,
        modes: Optional[Sequence[str]] = None,
    ) -> Optional[Scan]:
        """Return the newest scan for *url_hash*, or ``None``.

        Args:
            url_hash: URL fingerprint.
            owner_id: Only consider this owner's rows.
            max_age: Freshness window in seconds; older rows are ignored.
                ``None`` disables the check.
            any_owner: When *owner_id* is ``None``, consider every owner's
                rows instead of only ownerless ones.
            modes: Only consider rows produced in one of these modes;
                ``None`` accepts any mode.
        """

    @abstractmethod
    def upsert(self, scan: Scan) -> Scan:
        """Insert *scan*, or overwrite the row with the same
        ``(owner_id, url_hash)``.  Returns the stored row."""

    @abstractmethod
    def list_recent(self, owner_id: Optional[str], limit: int = 10) -> list[Scan]:
        """Newest-first scans of *owner_id*, or of everyone when ``None``."""


# ---------------------------------------------------------------------------
# SQLite implementation
# ---------------------------------------------------------------------------

def _row_to_scan(row: sqlite3.Row) -> Scan:
    return Scan(
        id=row["id"],
        owner_id=row["owner_id"],
        url_hash=row["url_hash"],
        url=row["url"],
        summary=row["summary"],
        risk_score=row["risk_score"],
        reason=row["reason"],
        category=row["category"],
        tags=json.loads(row["tags"] or "[]"),
        screenshot_url=row["screenshot_url"],
        mode=row["mode"],
        created_at=row["created_at"],
    )


class SqliteScanStore(ScanStore):
    """``scans`` table access.

    A single connection may be shared by request threads, so every statement
    runs under one lock; the upsert itself is atomic via
    ``ON CONFLICT(owner_id, url_hash) DO UPDATE``.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        clock: Callable[[], float] = time.time,
        lock: Optional[threading.Lock] = None,
    ) -> None:
        self.conn = conn
        self._clock = clock
        self.lock = lock or threading.Lock()

    def get_by_fingerprint(
        self,
        url_hash: str,
        owner_id: Optional[str] = None,
        max_age: Optional[int] = None,
        any_owner: bool = False,
        modes: Optional[Sequence[str]] = None,
    ) -> Optional[Scan]:
        clauses = ["url_hash = ?"]
        params: list[object] = [url_hash]

        if owner_id is not None:
            clauses.append("owner_id = ?")
            params.append(owner_id)
        elif not any_owner:
            clauses.append("owner_id IS NULL")

        if max_age is not None:
            clauses.append("created_at >= ?")
            params.append(int(self._clock()) - max_age)

        if modes is not None:
            clauses.append(f"mode IN ({', '.join('?' * len(modes))})")
            params.extend(modes)

        query = (
            f"SELECT * FROM scans WHERE {' AND '.join(clauses)} "  # noqa: S608
            "ORDER BY created_at DESC LIMIT 1"
        )
        with self.lock:
            row = self.conn.execute(query, params).fetchone()
        return _row_to_scan(row) if row else None

    def upsert(self, scan: Scan) -> Scan:
        if scan.owner_id is None:
            # NULL owners never conflict in a UNIQUE index, so rows would pile up.
            raise ValueError("upsert() requires an owner_id")

        now = int(self._clock())
        with self.lock:
            with self.conn:
                self.conn.execute(
                    """
                    INSERT INTO scans (
                        id, owner_id, url_hash, url, summary, risk_score, reason,
                        category, tags, screenshot_url, mode, from_cache, created_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 0, ?)
                    ON CONFLICT (owner_id, url_hash) DO UPDATE SET
                        url = excluded.url,
                        summary = excluded.summary,
                        risk_score = excluded.risk_score,
                        reason = excluded.reason,
                        category = excluded.category,
                        tags = excluded.tags,
                        screenshot_url = excluded.screenshot_url,
                        mode = excluded.mode,
                        created_at = excluded.created_at
                    """,
                    (
                        scan.id or str(uuid.uuid4()),
                        scan.owner_id,
                        scan.url_hash,
                        scan.url,
                        scan.summary,
                        scan.risk_score,
                        scan.reason,
                        scan.category,
                        scan.tags_json(),
                        scan.screenshot_url,
                        scan.mode,
                        now,
                    ),
                )
            row = self.conn.execute(
                "SELECT * FROM scans WHERE owner_id = ? AND url_hash = ?",
                (scan.owner_id, scan.url_hash),
            ).fetchone()
        return _row_to_scan(row)

    def list_recent(self, owner_id: Optional[str], limit: int = 10) -> list[Scan]:
        limit = max(1, min(MAX_RECENT_LIMIT, limit))
        with self.lock:
            if owner_id is not None:
                rows = self.conn.execute(
                    "SELECT * FROM scans WHERE owner_id = ? "
                    "ORDER BY created_at DESC, rowid DESC LIMIT ?",
                    (owner_id, limit),
                ).fetchall()
            else:
                rows = self.conn.execute(
                    "SELECT * FROM scans ORDER BY created_at DESC, rowid DESC LIMIT ?",
                    (limit,),
                ).fetchall()
        return [_row_to_scan(r) for r in rows]
