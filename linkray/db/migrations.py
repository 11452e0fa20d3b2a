"""Schema bootstrap and versioning for the LinkRay database.

``schema.sql`` always describes the latest layout and only uses
``IF NOT EXISTS`` DDL, so replaying it is harmless.  Changes that cannot be
expressed that way (column additions, data fixes) go into ``MIGRATIONS``
and are recorded in ``schema_version`` once applied.
"""

from __future__ import annotations

import sqlite3
from typing import List, Tuple

from linkray.config import settings

# (version, statement) pairs, applied in ascending order after the schema.
MIGRATIONS: List[Tuple[int, str]] = []

_VERSION_TABLE = """
CREATE TABLE IF NOT EXISTS schema_version (
    version     INTEGER PRIMARY KEY,
    applied_at  INTEGER NOT NULL DEFAULT (strftime('%s', 'now'))
)
"""


def init_db(conn: sqlite3.Connection) -> None:
    """Bring *conn* up to the current schema; safe to call on every start."""
    conn.executescript(settings.schema_path.read_text(encoding="utf-8"))
    with conn:
        conn.execute(_VERSION_TABLE)
    migrate(conn)


def current_version(conn: sqlite3.Connection) -> int:
    """Highest migration recorded in ``schema_version`` (``0`` for a fresh DB)."""
    (version,) = conn.execute("SELECT COALESCE(MAX(version), 0) FROM schema_version").fetchone()
    return version


def migrate(conn: sqlite3.Connection) -> int:
    """Apply pending :data:`MIGRATIONS`; returns how many were applied."""
    applied = current_version(conn)
    pending = sorted(m for m in MIGRATIONS if m[0] > applied)
    for version, statement in pending:
        with conn:
            conn.execute(statement)
            conn.execute("INSERT INTO schema_version (version) VALUES (?)", (version,))
    return len(pending)
