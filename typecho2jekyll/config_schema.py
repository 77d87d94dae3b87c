from __future__ import annotations

from typing import Annotated
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator

PositiveInt = Annotated[int, Field(ge=1)]
PositiveFloat = Annotated[float, Field(gt=0)]


def _normalize_origin(value: str) -> str:
    origin = (value or "").strip().rstrip("/")
    parts = urlsplit(origin)
    if parts.scheme.lower() not in ("http", "https") or not parts.netloc:
        raise ValueError("must be an absolute http(s) URL")
    if parts.query or parts.fragment:
        raise ValueError("must not contain a query string or fragment")
    return origin


class AssetsConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    origin: str = "https://oss.wuwz.net"
    max_concurrent: PositiveInt = 3
    connect_timeout_seconds: PositiveFloat = 30.0
    read_timeout_seconds: PositiveFloat = 60.0
    # The asset mirror only serves plain HTTP.
    downgrade_scheme: bool = True
    chunk_size: PositiveInt = 65536

    @field_validator("origin")
    @classmethod
    def _origin_must_be_absolute(cls, v: str) -> str:
        return _normalize_origin(v)


class OutputConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    directory: str = "./jekyll_posts"
    layout: str = "post"

    @field_validator("directory", "layout")
    @classmethod
    def _must_be_non_empty(cls, v: str) -> str:
        value = (v or "").strip()
        if not value:
            raise ValueError("must be a non-empty string")
        return value


class PostsConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    continue_on_write_error: bool = False


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    assets: AssetsConfig = Field(default_factory=AssetsConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    posts: PostsConfig = Field(default_factory=PostsConfig)

    def with_origin(self, origin: str | None) -> "AppConfig":
        """Return a copy with assets.origin replaced, re-running validation."""
        if origin is None or not origin.strip():
            return self
        assets = AssetsConfig.model_validate(
            {**self.assets.model_dump(), "origin": origin}
        )
        return self.model_copy(update={"assets": assets})
