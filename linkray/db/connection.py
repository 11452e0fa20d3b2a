"""SQLite connection factory.

Usage::

    from linkray.db import get_connection, init_db

    conn = get_connection()
    init_db(conn)
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Optional, Union

from linkray.config import settings

_MEMORY = ":memory:"

_PRAGMAS = (
    "PRAGMA foreign_keys = ON",
    "PRAGMA journal_mode = WAL",
    "PRAGMA busy_timeout = 5000",
)


def get_connection(db_path: Optional[Union[Path, str]] = None) -> sqlite3.Connection:
    """Open the LinkRay database (``settings.db_path`` unless *db_path* is given).

    Pass ``":memory:"`` for a throwaway database.  Rows come back as
    :class:`sqlite3.Row`.  The connection is opened with
    ``check_same_thread=False`` because API worker threads share it; the
    store and identity resolver serialise access with a common lock.
    """
    target = str(db_path or settings.db_path)
    if target != _MEMORY:
        Path(target).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(target, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    for pragma in _PRAGMAS:
        conn.execute(pragma)
    return conn
