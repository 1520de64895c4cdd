"""
Path resolution for registry requests.

A request path is turned into a store key for the exact lookup, and into a
"directory" prefix for the listing fallback.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional
from urllib.parse import quote

from starlette.datastructures import URL

SEPARATOR = "/"


@dataclass(frozen=True)
class Resolution:
    """
    Outcome of routing a request before any store access.

    redirect_to is set when the request must be sent to the canonical host;
    otherwise key (exact lookup, None for the root) and prefix (listing) apply.
    """
    path: str
    key: Optional[str]
    prefix: str
    redirect_to: Optional[str] = None


def strip_leading_separator(path: str) -> str:
    # exactly one separator
    if path.startswith(SEPARATOR):
        return path[len(SEPARATOR):]
    return path


def listing_prefix(path: str) -> str:
    """
    "foo" -> "foo/", "foo/" -> "foo/", "" -> "".

    The trailing separator keeps "foo" from matching a sibling "foobar".
    """
    if not path or path.endswith(SEPARATOR):
        return path
    return path + SEPARATOR


def request_target(scope: Mapping[str, Any]) -> str:
    """
    The path and query exactly as the client sent them, escapes included.

    Falls back to re-quoting the decoded path when the server gives no raw_path.
    """
    raw = scope.get("raw_path")
    target = raw.split(b"?", 1)[0].decode("latin-1") if raw else quote(scope.get("path", "") or "/")
    query = scope.get("query_string") or b""
    if query:
        target += "?" + query.decode("latin-1")
    return target


def canonical_redirect(url: URL, canonical_hostname: str, target: Optional[str] = None) -> Optional[str]:
    """
    Return the canonical URL for url, or None when no redirect is needed.

    target is the raw request target; without it the path and query of url
    are used as they stand.
    """
    if not canonical_hostname:
        return None
    hostname = (url.hostname or "").lower().rstrip(".")
    if hostname == canonical_hostname:
        return None
    if target is None:
        target = url.path + ("?" + url.query if url.query else "")
    netloc = canonical_hostname if url.port is None else f"{canonical_hostname}:{url.port}"
    return f"{url.scheme}://{netloc}{target}"


def resolve(url: URL, canonical_hostname: str = "", target: Optional[str] = None) -> Resolution:
    redirect_to = canonical_redirect(url, canonical_hostname, target)
    path = strip_leading_separator(url.path)
    if redirect_to:
        return Resolution(path=path, key=None, prefix="", redirect_to=redirect_to)
    return Resolution(
        path=path,
        key=path or None,
        prefix=listing_prefix(path),
    )
