from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


def _coerce_scalar(value: Any) -> Any:
    # Some Typecho dumps emit numeric columns as JSON numbers instead of strings.
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (int, float)):
        return str(value)
    return value


Text = Annotated[str, BeforeValidator(_coerce_scalar)]


class PostRecord(BaseModel):
    """One row of the Typecho `contents` table, as exported."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    cid: Text
    title: Text
    slug: Text
    created: Text
    modified: Text
    text: Text
    type: Text
    status: Text
    allow_comment: Text = Field(alias="allowComment")
    allow_ping: Text = Field(alias="allowPing")
    allow_feed: Text = Field(alias="allowFeed")
    views: Text

    order: Text = "0"
    author_id: Text = Field(default="", alias="authorId")
    template: Text | None = None
    password: Text | None = None
    comments_num: Text = Field(default="0", alias="commentsNum")
    parent: Text = "0"

    @property
    def is_post(self) -> bool:
        return self.type == "post"

    @property
    def comments_enabled(self) -> bool:
        return self.allow_comment == "1"


class ExportSegment(BaseModel):
    """A top-level object of the export array; only one of them carries `data`."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    type: str | None = None
    version: Text | None = None
    comment: str | None = None
    name: str | None = None
    database: str | None = None
    data: tuple[PostRecord, ...] | None = None
