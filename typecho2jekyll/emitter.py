from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from .errors import PostWriteError
from .post import PostRecord


def _epoch_seconds(value: str) -> float:
    try:
        return float((value or "").strip())
    except ValueError:
        return 0.0


def _utc(value: str) -> datetime:
    try:
        return datetime.fromtimestamp(_epoch_seconds(value), tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return datetime.fromtimestamp(0, tz=timezone.utc)


_YAML_ESCAPES = str.maketrans(
    {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r", "\t": "\\t"}
)


def _yaml_quote(value: str) -> str:
    """Double-quoted YAML scalar that loads back to exactly `value`."""
    return '"' + (value or "").translate(_YAML_ESCAPES) + '"'


def post_filename(post: PostRecord) -> str:
    """Jekyll post name: `YYYY-MM-DD-<slug>.md`, dated by creation time in UTC."""
    return f"{_utc(post.created):%Y-%m-%d}-{post.slug}.md"


def render_front_matter(post: PostRecord, *, layout: str = "post") -> str:
    lines = [
        "---",
        f"layout: {layout}",
        f"title: {_yaml_quote(post.title)}",
        f"date: {_utc(post.created):%Y-%m-%d %H:%M:%S}",
        f"modified: {_utc(post.modified):%Y-%m-%d %H:%M:%S}",
        f"slug: {_yaml_quote(post.slug)}",
        "categories: []",
        "tags: []",
        f"comments: {'true' if post.comments_enabled else 'false'}",
        f"views: {post.views}",
        "---",
        "",
    ]
    return "\n".join(lines)


def write_post(
    post: PostRecord,
    body: str,
    output_dir: str | Path,
    *,
    layout: str = "post",
) -> Path:
    """
    Write front matter plus the rewritten body, replacing any previous file.

    Raises PostWriteError when the file cannot be written.
    """
    path = Path(output_dir) / post_filename(post)
    content = render_front_matter(post, layout=layout) + body

    try:
        with path.open("w", encoding="utf-8", newline="\n") as fp:
            fp.write(content)
    except OSError as e:
        raise PostWriteError(str(path), f"{type(e).__name__}: {e}") from e

    return path
