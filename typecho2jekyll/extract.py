from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable

from .origin import origin_prefix
from .post import PostRecord


@lru_cache(maxsize=8)
def _patterns(origin: str) -> tuple[re.Pattern[str], ...]:
    base = re.escape(origin_prefix(origin)) + "/"
    return (
        # ![alt](url)
        re.compile(r"!\[.*?\]\((" + base + r"[^)\s\"']+)\)", re.IGNORECASE),
        # <img src="url">
        re.compile(r"<img[^>]+src=[\"']?(" + base + r"[^\"'\s>]+)[\"']?", re.IGNORECASE),
        # bare links
        re.compile(r"(" + base + r"[^\s)\"'<>]+)", re.IGNORECASE),
    )


def extract_asset_urls(text: str, origin: str) -> set[str]:
    """
    Find every asset URL under the trusted origin referenced in a post body.

    Markdown images, <img> tags and bare links are matched independently; the
    result is a set, so overlaps between the three are harmless.
    """
    urls: set[str] = set()
    if not text:
        return urls

    for pattern in _patterns(origin_prefix(origin)):
        for match in pattern.finditer(text):
            urls.add(match.group(1).replace("\\/", "/"))

    return urls


def collect_asset_urls(posts: Iterable[PostRecord], origin: str) -> set[str]:
    urls: set[str] = set()
    for post in posts:
        urls |= extract_asset_urls(post.text, origin)
    return urls
