"""URL validation, canonicalisation and fingerprinting.

Everything here is pure: no network access, no global state.
"""

from __future__ import annotations

import hashlib
import ipaddress
import re
from typing import Optional
from urllib.parse import quote, urljoin, urlsplit, urlunsplit

from linkray.errors import InvalidURLError

_HTTP_PREFIX = re.compile(r"^https?://", re.IGNORECASE)
_EXPLICIT_SCHEME = re.compile(r"^[a-z][a-z0-9+.\-]*://", re.IGNORECASE)
_HOST_LABEL = re.compile(r"^(?!-)[a-z0-9_-]{1,63}(?<!-)$")
_DEFAULT_PORTS = {"http": 80, "https": 443}
_ALLOWED_SCHEMES = ("http", "https")
# Characters left as-is in the query and fragment; existing escapes survive.
_QUERY_SAFE = "=&%+/?:@!$'()*,;-._~"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _canonical_host(hostname: str) -> Optional[str]:
    """Return the lower-cased ASCII form of *hostname*, or ``None`` if invalid."""
    host = hostname.strip().lower().rstrip(".")
    if not host:
        return None

    # Bracketed IPv6 literals arrive here without their brackets.
    if ":" in host:
        try:
            return f"[{ipaddress.IPv6Address(host).compressed}]"
        except ValueError:
            return None

    try:
        host = host.encode("idna").decode("ascii")
    except UnicodeError:
        return None

    labels = host.split(".")
    if not all(_HOST_LABEL.match(label) for label in labels):
        return None
    return host


def _build(scheme: str, netloc_host: str, port: Optional[int], userinfo: str,
           path: str, query: str, fragment: str) -> str:
    netloc = netloc_host
    if port is not None and port != _DEFAULT_PORTS.get(scheme):
        netloc = f"{netloc}:{port}"
    if userinfo:
        netloc = f"{userinfo}@{netloc}"
    path = quote(path or "/", safe="/%:@!$&'()*+,;=-._~")
    query = quote(query, safe=_QUERY_SAFE)
    fragment = quote(fragment, safe=_QUERY_SAFE)
    return urlunsplit((scheme, netloc, path, query, fragment))


def _split_userinfo(netloc: str) -> str:
    return netloc.rpartition("@")[0] if "@" in netloc else ""


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def normalize_url(raw: str) -> str:
    """Validate *raw* and return its canonical absolute form.

    A missing scheme defaults to ``https://``.  Only ``http`` and ``https``
    are accepted.  The scheme and host are lower-cased, default ports are
    dropped and an empty path becomes ``/``::

        >>> normalize_url("Example.com")
        'https://example.com/'

    Raises:
        InvalidURLError: If the input is empty, uses another scheme, or does
            not contain a syntactically valid host.
    """
    candidate = (raw or "").strip()
    if not candidate:
        raise InvalidURLError("URL is required")

    if not _HTTP_PREFIX.match(candidate):
        if _EXPLICIT_SCHEME.match(candidate):
            raise InvalidURLError("Only HTTP and HTTPS URLs are supported")
        candidate = "https://" + candidate

    try:
        parts = urlsplit(candidate)
        port = parts.port
    except ValueError as exc:
        raise InvalidURLError() from exc

    scheme = parts.scheme.lower()
    if scheme not in _ALLOWED_SCHEMES:
        raise InvalidURLError("Only HTTP and HTTPS URLs are supported")

    host = _canonical_host(parts.hostname or "")
    if host is None:
        raise InvalidURLError()

    return _build(
        scheme,
        host,
        port,
        _split_userinfo(parts.netloc),
        parts.path,
        parts.query,
        parts.fragment,
    )


def fingerprint(url: str) -> str:
    """Return the cache key for *url*: MD5 hex digest of its trimmed lower-case form."""
    return hashlib.md5(url.strip().lower().encode("utf-8"), usedforsecurity=False).hexdigest()


def screenshot_url(url: str, template: str) -> str:
    """Fill *template*'s ``{url}`` placeholder with the percent-encoded *url*."""
    return template.replace("{url}", quote(url, safe=""))


def resolve_link(href: str, base_url: str) -> Optional[str]:
    """Resolve *href* against *base_url* into a crawlable canonical URL.

    Returns ``None`` for non-http(s) targets (``mailto:``, ``javascript:``,
    ...) and for hrefs that do not resolve to a valid host.  The fragment is
    always dropped so ``/a#x`` and ``/a#y`` collapse to one page.
    """
    href = href.strip()
    if not href or href.startswith("#"):
        return None

    try:
        parts = urlsplit(urljoin(base_url, href))
        port = parts.port
    except ValueError:
        return None

    scheme = parts.scheme.lower()
    if scheme not in _ALLOWED_SCHEMES:
        return None

    host = _canonical_host(parts.hostname or "")
    if host is None:
        return None

    return _build(scheme, host, port, "", parts.path, parts.query, "")


def site_key(url: str) -> str:
    """Return the host of *url* without a leading ``www.``; used for same-site checks."""
    host = (urlsplit(url).hostname or "").lower()
    return host[4:] if host.startswith("www.") else host


def same_site(url: str, other: str) -> bool:
    return site_key(url) == site_key(other)
