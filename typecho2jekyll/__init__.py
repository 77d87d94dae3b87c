from __future__ import annotations

from .config import load_config
from .config_schema import AppConfig
from .converter import ConversionResult, run_conversion
from .errors import (
    ConfigError,
    ExportDecodeError,
    FetchFailed,
    InputError,
    NoPostsFound,
    PostWriteError,
)
from .fetcher import AssetFetcher, FetchOutcome, FetchSummary

__all__ = [
    "AppConfig",
    "AssetFetcher",
    "ConfigError",
    "ConversionResult",
    "ExportDecodeError",
    "FetchFailed",
    "FetchOutcome",
    "FetchSummary",
    "InputError",
    "NoPostsFound",
    "PostWriteError",
    "load_config",
    "run_conversion",
]
