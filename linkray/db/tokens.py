"""CRUD operations for the ``api_tokens`` table (local bearer credentials)."""

from __future__ import annotations

import secrets
import sqlite3
from time import time
from typing import Optional

from linkray.db.models import Identity


def issue_token(conn: sqlite3.Connection, user_id: str, email: Optional[str] = None) -> str:
    """Create and return a new opaque bearer token for *user_id*."""
    token = secrets.token_urlsafe(32)
    with conn:
        conn.execute(
            "INSERT INTO api_tokens (token, user_id, email, created_at) VALUES (?, ?, ?, ?)",
            (token, user_id, email, int(time())),
        )
    return token


def get_token_identity(conn: sqlite3.Connection, token: str) -> Optional[Identity]:
    """Return the identity owning *token*, or ``None`` if it is unknown."""
    row = conn.execute(
        "SELECT user_id, email FROM api_tokens WHERE token = ?", (token,)
    ).fetchone()
    return Identity(user_id=row["user_id"], email=row["email"]) if row else None


def revoke_token(conn: sqlite3.Connection, token: str) -> bool:
    """Delete *token*.  Returns ``True`` if a row was removed."""
    with conn:
        cursor = conn.execute("DELETE FROM api_tokens WHERE token = ?", (token,))
    return cursor.rowcount > 0
