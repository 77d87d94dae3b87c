from __future__ import annotations

from pathlib import Path
from typing import Sequence

from pydantic import TypeAdapter, ValidationError

from .errors import ExportDecodeError, InputError, NoPostsFound
from .post import ExportSegment, PostRecord

_SEGMENTS = TypeAdapter(list[ExportSegment])


def decode_export(raw: bytes | str) -> list[ExportSegment]:
    """
    Decode a Typecho JSON export into typed segments.

    Raises ExportDecodeError for malformed JSON or records that do not match the schema.
    """
    try:
        return _SEGMENTS.validate_json(raw)
    except ValidationError as e:
        raise ExportDecodeError(_format_errors(e)) from e


def select_posts(segments: Sequence[ExportSegment]) -> list[PostRecord]:
    """
    Pick the first segment carrying a post collection and keep only `post` records.

    Pages, attachments and other content types are dropped.
    """
    for segment in segments:
        if segment.data is not None:
            return [post for post in segment.data if post.is_post]

    raise NoPostsFound("No export segment contains post data")


def load_posts(path: str | Path) -> list[PostRecord]:
    p = Path(path)

    if not p.is_file():
        raise InputError(f"Input file not found: {p}")

    try:
        raw = p.read_bytes()
    except OSError as e:
        raise InputError(f"Failed to read input file: {p}: {e}") from e

    return select_posts(decode_export(raw))


def _format_errors(err: ValidationError) -> str:
    lines: list[str] = ["Invalid Typecho export:"]
    for item in err.errors()[:20]:
        loc = ".".join(str(part) for part in item.get("loc", [])) or "<root>"
        msg = item.get("msg", "invalid value")
        lines.append(f"- {loc}: {msg}")
    extra = err.error_count() - 20
    if extra > 0:
        lines.append(f"- ... and {extra} more")
    return "\n".join(lines)
