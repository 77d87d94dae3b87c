from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .config_schema import AppConfig
from .emitter import write_post
from .errors import PostWriteError
from .export import load_posts
from .extract import collect_asset_urls
from .fetcher import AssetFetcher, FetchOutcome, FetchSummary
from .rewrite import rewrite_content
from .run_log import RunLogger


@dataclass(frozen=True)
class ConversionResult:
    output_dir: Path
    posts_total: int
    posts_written: int
    posts_failed: int
    assets: FetchSummary | None


class _EventSink:
    """Forwards events to an optional RunLogger."""

    def __init__(self, logger: RunLogger | None) -> None:
        self._logger = logger

    def info(self, event: str, **data: Any) -> None:
        if self._logger is not None:
            self._logger.info(event, **data)

    def warning(self, event: str, **data: Any) -> None:
        if self._logger is not None:
            self._logger.warning(event, **data)

    def exception(self, event: str, *, exc: BaseException, **data: Any) -> None:
        if self._logger is not None:
            self._logger.exception(event, exc=exc, **data)

    def asset_outcome(self, outcome: FetchOutcome) -> None:
        if outcome.status == "succeeded":
            self.info("asset_fetched", url=outcome.url, path=outcome.path)
        elif outcome.status == "skipped":
            self.info("asset_skipped", url=outcome.url, path=outcome.path)
        else:
            self.warning(
                "asset_failed",
                url=outcome.url,
                path=outcome.path,
                reason=outcome.reason,
            )


def run_conversion(
    config: AppConfig,
    input_path: str | Path,
    output_dir: str | Path,
    *,
    download: bool = True,
    fetcher: AssetFetcher | None = None,
    logger: RunLogger | None = None,
) -> ConversionResult:
    """
    Convert a Typecho export into Jekyll posts and mirror referenced assets.

    Asset downloads run in the background while posts are written; rewritten
    bodies point at the paths the fetcher fills in, so neither side waits on
    the other. Asset failures are counted, never raised. A post write failure
    aborts the run unless `posts.continue_on_write_error` is set.
    """
    events = _EventSink(logger)
    out_dir = Path(output_dir)
    origin = config.assets.origin

    posts = load_posts(input_path)
    events.info("posts_selected", input_path=str(input_path), posts=len(posts))

    out_dir.mkdir(parents=True, exist_ok=True)

    urls: set[str] = collect_asset_urls(posts, origin) if download else set()
    own_fetcher = fetcher is None and bool(urls)
    asset_fetcher = fetcher
    if own_fetcher:
        asset_fetcher = AssetFetcher(config.assets, out_dir)

    written = 0
    failed = 0
    assets: FetchSummary | None = None

    try:
        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="asset-pool") as background:
            pending = None
            if urls and asset_fetcher is not None:
                events.info(
                    "asset_fetch_started",
                    assets=len(urls),
                    max_concurrent=int(config.assets.max_concurrent),
                )
                pending = background.submit(
                    asset_fetcher.fetch_all, urls, on_outcome=events.asset_outcome
                )

            for post in posts:
                body = rewrite_content(post.text, origin)
                try:
                    path = write_post(post, body, out_dir, layout=config.output.layout)
                except PostWriteError as e:
                    if not config.posts.continue_on_write_error:
                        raise
                    failed += 1
                    events.warning(
                        "post_write_failed",
                        path=e.path,
                        cid=post.cid,
                        reason=e.reason,
                    )
                    continue

                written += 1
                events.info("post_written", path=path, cid=post.cid, title=post.title)

            if pending is not None:
                assets = pending.result()
                events.info(
                    "asset_fetch_completed",
                    succeeded=assets.succeeded,
                    skipped=assets.skipped,
                    failed=assets.failed,
                    total=assets.total,
                )
    finally:
        if own_fetcher and asset_fetcher is not None:
            asset_fetcher.close()

    if download and assets is None:
        assets = FetchSummary(succeeded=0, skipped=0, failed=0)

    return ConversionResult(
        output_dir=out_dir,
        posts_total=len(posts),
        posts_written=written,
        posts_failed=failed,
        assets=assets,
    )
