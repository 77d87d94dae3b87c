from __future__ import annotations

from .origin import origin_pattern

MARKDOWN_MARKER = "<!--markdown-->"


def rewrite_content(text: str, origin: str) -> str:
    """
    Turn a Typecho post body into a Jekyll post body.

    Steps run in a fixed order: drop the markdown marker, make origin URLs
    root-relative, unescape slashes, then normalize line endings.
    """
    out = (text or "").replace(MARKDOWN_MARKER, "")
    out = origin_pattern(origin).sub("", out)
    out = out.replace("\\/", "/")

    out = out.replace("\\r\\n", "\n")
    out = out.replace("\\n", "\n")
    out = out.replace("\r\n", "\n")
    return out
