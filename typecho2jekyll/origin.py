from __future__ import annotations

import posixpath
import re
from functools import lru_cache
from pathlib import Path


def origin_prefix(origin: str) -> str:
    """The trusted origin as a prefix string, without a trailing slash."""
    return (origin or "").strip().rstrip("/")


@lru_cache(maxsize=8)
def origin_pattern(origin: str) -> re.Pattern[str]:
    return re.compile(re.escape(origin_prefix(origin)), re.IGNORECASE)


def strip_origin(url: str, origin: str) -> str | None:
    """
    Return the root-relative remainder of a URL under the trusted origin.

    Returns None when the URL does not start with the origin.
    """
    prefix = origin_prefix(origin)
    if not prefix or len(url) <= len(prefix):
        return None
    if url[: len(prefix)].casefold() != prefix.casefold():
        return None

    rest = url[len(prefix) :]
    if not rest.startswith("/"):
        return None
    return rest


def relative_asset_path(url: str, origin: str) -> str | None:
    """
    Map an asset URL to a POSIX path relative to the output root.

    Paths that would leave the output root are rejected with None.
    """
    rest = strip_origin(url, origin)
    if rest is None:
        return None

    rel = rest.lstrip("/")
    if not rel:
        return None

    normalized = posixpath.normpath(rel)
    if normalized in (".", "..") or normalized.startswith("../"):
        return None
    return rel


def local_asset_path(url: str, origin: str, output_dir: str | Path) -> Path | None:
    rel = relative_asset_path(url, origin)
    if rel is None:
        return None
    return Path(output_dir) / rel


def insecure_url(url: str) -> str:
    """Force plain-HTTP transport, which is all the asset mirror serves."""
    if url[:8].casefold() == "https://":
        return "http://" + url[8:]
    return url
