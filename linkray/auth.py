"""Bearer-credential → identity resolution.

Two resolvers are provided:

``local`` (default)
    Looks the token up in the ``api_tokens`` table.  Tokens are issued with
    ``linkray token issue``.

``supabase``
    Exchanges the token at ``<SUPABASE_URL>/auth/v1/user``.  Requires
    ``SUPABASE_URL`` and ``SUPABASE_ANON_KEY``.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from linkray.config import Settings
from linkray.db.models import Identity
from linkray.db.tokens import get_token_identity
from linkray.errors import InternalError

logger = logging.getLogger(__name__)


def parse_bearer(header: Optional[str]) -> Optional[str]:
    """Return the token from an ``Authorization: Bearer <token>`` header value."""
    if not header:
        return None
    scheme, _, token = header.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


class IdentityResolver(ABC):
    @abstractmethod
    def resolve(self, token: str) -> Optional[Identity]:
        """Return the identity for *token*, or ``None`` if it is not valid."""


class LocalTokenResolver(IdentityResolver):
    def __init__(self, conn: sqlite3.Connection, lock: Optional[threading.Lock] = None) -> None:
        self.conn = conn
        self._lock = lock or threading.Lock()

    def resolve(self, token: str) -> Optional[Identity]:
        with self._lock:
            return get_token_identity(self.conn, token)


class SupabaseIdentityResolver(IdentityResolver):
    def __init__(
        self,
        base_url: str,
        anon_key: str,
        timeout: float = 5.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        if not base_url or not anon_key:
            raise EnvironmentError(
                "SUPABASE_URL and SUPABASE_ANON_KEY must be set for AUTH_PROVIDER=supabase."
            )
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key
        self._client = client or httpx.Client(timeout=timeout)

    def resolve(self, token: str) -> Optional[Identity]:
        try:
            response = self._client.get(
                f"{self.base_url}/auth/v1/user",
                headers={"apikey": self.anon_key, "Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as exc:
            logger.error("Identity provider unreachable: %r", exc)
            raise InternalError("Identity provider unavailable") from exc

        if response.status_code in (401, 403):
            return None
        if not response.is_success:
            logger.error("Identity provider returned HTTP %s", response.status_code)
            raise InternalError("Identity provider unavailable")

        data = response.json()
        user_id = data.get("id")
        if not user_id:
            return None
        return Identity(user_id=str(user_id), email=data.get("email"))


def build_identity_resolver(
    cfg: Settings,
    conn: sqlite3.Connection,
    lock: Optional[threading.Lock] = None,
) -> IdentityResolver:
    """Return the resolver selected by ``settings.auth_provider``.

    *lock* guards *conn* when it is shared with the scan store.
    """
    if cfg.auth_provider == "supabase":
        return SupabaseIdentityResolver(cfg.supabase_url, cfg.supabase_anon_key)
    return LocalTokenResolver(conn, lock=lock)
