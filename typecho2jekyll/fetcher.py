from __future__ import annotations

import os
import tempfile
from collections import Counter
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Literal

import requests

from .config_schema import AssetsConfig
from .errors import FetchFailed
from .origin import insecure_url, local_asset_path

FetchStatus = Literal["skipped", "succeeded", "failed"]


@dataclass(frozen=True)
class FetchOutcome:
    url: str
    status: FetchStatus
    path: Path | None = None
    reason: str | None = None


@dataclass(frozen=True)
class FetchSummary:
    succeeded: int
    skipped: int
    failed: int
    outcomes: tuple[FetchOutcome, ...] = ()

    @property
    def total(self) -> int:
        return self.succeeded + self.skipped + self.failed

    @property
    def success(self) -> int:
        """Assets present on disk after the run, whether downloaded now or earlier."""
        return self.succeeded + self.skipped


OnOutcomeFn = Callable[[FetchOutcome], None]


class AssetFetcher:
    """
    Downloads origin assets into the output tree with a bounded worker pool.

    An existing destination file is treated as already fetched, so re-runs only
    download what is missing. Each URL gets exactly one network attempt.
    """

    def __init__(
        self,
        config: AssetsConfig,
        output_dir: str | Path,
        *,
        session: requests.Session | None = None,
    ) -> None:
        self._config = config
        self._output_dir = Path(output_dir)
        self._owns_session = session is None
        self._session = session if session is not None else requests.Session()
        self._timeout = (
            float(config.connect_timeout_seconds),
            float(config.read_timeout_seconds),
        )

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> "AssetFetcher":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def destination(self, url: str) -> Path | None:
        return local_asset_path(url, self._config.origin, self._output_dir)

    def request_url(self, url: str) -> str:
        return insecure_url(url) if self._config.downgrade_scheme else url

    def fetch(self, url: str) -> FetchOutcome:
        dest = self.destination(url)
        if dest is None:
            return FetchOutcome(
                url=url,
                status="failed",
                reason="URL does not map to a path under the output directory",
            )

        if dest.exists():
            return FetchOutcome(url=url, status="skipped", path=dest)

        try:
            # Sibling URLs may create the same parent concurrently.
            dest.parent.mkdir(parents=True, exist_ok=True)
            self._download(url, dest)
        except FetchFailed as e:
            return FetchOutcome(url=url, status="failed", path=dest, reason=e.reason)
        except OSError as e:
            return FetchOutcome(url=url, status="failed", path=dest, reason=str(e))

        return FetchOutcome(url=url, status="succeeded", path=dest)

    def fetch_all(
        self,
        urls: Iterable[str],
        *,
        on_outcome: OnOutcomeFn | None = None,
    ) -> FetchSummary:
        """
        Fetch every distinct URL with at most `max_concurrent` downloads in flight.

        Results are drained in the calling thread, which is the only place the
        counters change. Blocks until every submitted fetch has finished.
        """
        unique = sorted(set(urls))
        counts: Counter[str] = Counter()
        outcomes: list[FetchOutcome] = []

        if not unique:
            return FetchSummary(succeeded=0, skipped=0, failed=0)

        with ThreadPoolExecutor(
            max_workers=int(self._config.max_concurrent),
            thread_name_prefix="asset-fetch",
        ) as pool:
            futures: dict[Future[FetchOutcome], str] = {
                pool.submit(self.fetch, url): url for url in unique
            }

            for future in as_completed(futures):
                try:
                    outcome = future.result()
                except Exception as e:  # keep draining; count it as a failed asset
                    outcome = FetchOutcome(
                        url=futures[future],
                        status="failed",
                        reason=f"{type(e).__name__}: {e}",
                    )

                counts[outcome.status] += 1
                outcomes.append(outcome)
                if on_outcome is not None:
                    on_outcome(outcome)

        return FetchSummary(
            succeeded=counts["succeeded"],
            skipped=counts["skipped"],
            failed=counts["failed"],
            outcomes=tuple(outcomes),
        )

    def _download(self, url: str, dest: Path) -> None:
        target = self.request_url(url)
        tmp_path: Path | None = None

        try:
            with self._session.get(target, stream=True, timeout=self._timeout) as resp:
                resp.raise_for_status()

                fd, tmp_name = tempfile.mkstemp(
                    prefix=f".{dest.name}.", suffix=".part", dir=dest.parent
                )
                tmp_path = Path(tmp_name)
                with os.fdopen(fd, "wb") as fp:
                    for chunk in resp.iter_content(chunk_size=int(self._config.chunk_size)):
                        if chunk:
                            fp.write(chunk)

            # Lost a race against another writer of the same target.
            if dest.exists():
                dest.unlink(missing_ok=True)
            os.replace(tmp_path, dest)
            tmp_path = None
        except requests.RequestException as e:
            raise FetchFailed(url, f"{type(e).__name__}: {e}") from e
        except OSError as e:
            raise FetchFailed(url, f"{type(e).__name__}: {e}") from e
        finally:
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)
