from __future__ import annotations


class ConfigError(RuntimeError):
    """Raised when configuration is missing or invalid."""


class InputError(RuntimeError):
    """Raised when the export file cannot be found or read."""


class ExportDecodeError(RuntimeError):
    """Raised when the export is not valid JSON or does not match the Typecho schema."""


class NoPostsFound(RuntimeError):
    """Raised when no export segment carries a post collection."""


class FetchFailed(RuntimeError):
    """Raised inside the asset fetcher when a single download fails."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason


class PostWriteError(RuntimeError):
    """Raised when a converted post cannot be written to disk."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Failed to write post {path}: {reason}")
        self.path = path
        self.reason = reason
