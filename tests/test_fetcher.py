from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from typing import Any

from typecho2jekyll.config_schema import AssetsConfig
from typecho2jekyll.fetcher import AssetFetcher, FetchOutcome

from tests._fakes import ORIGIN, FakeResponse, FakeSession


class _RacingSession:
    """Another writer creates the destination while the body is in flight."""

    def __init__(self, dest: Path, body: bytes) -> None:
        self._dest = dest
        self._body = body
        self.calls: list[str] = []

    def get(self, url: str, *, stream: bool = False, timeout: Any = None) -> FakeResponse:
        self.calls.append(url)
        self._dest.write_bytes(b"stale")
        return FakeResponse(self._body)

    def close(self) -> None:
        return None


def _config(**overrides: object) -> AssetsConfig:
    return AssetsConfig.model_validate({"origin": ORIGIN, **overrides})


class TestAssetFetcher(unittest.TestCase):
    def test_downloads_over_plain_http(self) -> None:
        url = "https://assets.example.net/img/a.png"
        session = FakeSession({"http://assets.example.net/img/a.png": b"\x89PNG data"})

        with tempfile.TemporaryDirectory() as td:
            fetcher = AssetFetcher(_config(chunk_size=3), td, session=session)  # type: ignore[arg-type]
            outcome = fetcher.fetch(url)

            self.assertEqual(outcome.status, "succeeded")
            self.assertEqual(outcome.path, Path(td) / "img" / "a.png")
            self.assertEqual(outcome.path.read_bytes(), b"\x89PNG data")
            self.assertEqual(session.urls, ["http://assets.example.net/img/a.png"])
            self.assertEqual(session.calls[0]["timeout"], (30.0, 60.0))
            self.assertTrue(session.calls[0]["stream"])
            self.assertEqual(sorted(p.name for p in outcome.path.parent.iterdir()), ["a.png"])

    def test_downgrade_can_be_disabled(self) -> None:
        session = FakeSession()
        with tempfile.TemporaryDirectory() as td:
            fetcher = AssetFetcher(_config(downgrade_scheme=False), td, session=session)  # type: ignore[arg-type]
            fetcher.fetch("https://assets.example.net/a.png")
        self.assertEqual(session.urls, ["https://assets.example.net/a.png"])

    def test_existing_file_is_skipped_without_network(self) -> None:
        session = FakeSession()
        with tempfile.TemporaryDirectory() as td:
            dest = Path(td) / "img" / "a.png"
            dest.parent.mkdir(parents=True)
            dest.write_bytes(b"cached")

            fetcher = AssetFetcher(_config(), td, session=session)  # type: ignore[arg-type]
            outcome = fetcher.fetch("https://assets.example.net/img/a.png")

            self.assertEqual(outcome.status, "skipped")
            self.assertEqual(dest.read_bytes(), b"cached")
            self.assertEqual(session.calls, [])

    def test_second_fetch_is_skipped_and_file_unchanged(self) -> None:
        url = "https://assets.example.net/img/a.png"
        session = FakeSession({"http://assets.example.net/img/a.png": b"v1"})

        with tempfile.TemporaryDirectory() as td:
            fetcher = AssetFetcher(_config(), td, session=session)  # type: ignore[arg-type]
            first = fetcher.fetch(url)
            assert first.path is not None
            mtime = first.path.stat().st_mtime_ns

            second = fetcher.fetch(url)

            self.assertEqual(first.status, "succeeded")
            self.assertEqual(second.status, "skipped")
            self.assertEqual(second.path.read_bytes(), b"v1")  # type: ignore[union-attr]
            self.assertEqual(first.path.stat().st_mtime_ns, mtime)
            self.assertEqual(len(session.calls), 1)

    def test_network_error_is_reported_not_raised(self) -> None:
        session = FakeSession(failing={"http://assets.example.net/img/a.png"})
        with tempfile.TemporaryDirectory() as td:
            fetcher = AssetFetcher(_config(), td, session=session)  # type: ignore[arg-type]
            outcome = fetcher.fetch("https://assets.example.net/img/a.png")

            self.assertEqual(outcome.status, "failed")
            self.assertIn("ConnectionError", outcome.reason or "")
            self.assertFalse((Path(td) / "img" / "a.png").exists())
            self.assertEqual(list((Path(td) / "img").iterdir()), [])

    def test_http_error_status_is_a_failure(self) -> None:
        session = FakeSession(not_found={"http://assets.example.net/gone.png"})
        with tempfile.TemporaryDirectory() as td:
            fetcher = AssetFetcher(_config(), td, session=session)  # type: ignore[arg-type]
            outcome = fetcher.fetch("https://assets.example.net/gone.png")

            self.assertEqual(outcome.status, "failed")
            self.assertFalse((Path(td) / "gone.png").exists())

    def test_url_escaping_output_root_fails_without_network(self) -> None:
        session = FakeSession()
        with tempfile.TemporaryDirectory() as td:
            fetcher = AssetFetcher(_config(), td, session=session)  # type: ignore[arg-type]
            outcome = fetcher.fetch("https://assets.example.net/../../etc/passwd")

        self.assertEqual(outcome.status, "failed")
        self.assertEqual(session.calls, [])

    def test_fetch_all_counts_and_bounds_concurrency(self) -> None:
        urls = [f"https://assets.example.net/shared/{i}.png" for i in range(9)]
        failing = {"http://assets.example.net/shared/4.png"}
        session = FakeSession(failing=failing, delay_seconds=0.05)
        seen: list[FetchOutcome] = []

        with tempfile.TemporaryDirectory() as td:
            (Path(td) / "shared").mkdir()
            (Path(td) / "shared" / "0.png").write_bytes(b"old")

            fetcher = AssetFetcher(_config(max_concurrent=3), td, session=session)  # type: ignore[arg-type]
            summary = fetcher.fetch_all(urls + urls[:2], on_outcome=seen.append)

            self.assertEqual(summary.total, 9)
            self.assertEqual(summary.skipped, 1)
            self.assertEqual(summary.failed, 1)
            self.assertEqual(summary.succeeded, 7)
            self.assertEqual(summary.success, 8)
            self.assertEqual(len(seen), 9)
            self.assertEqual(len(session.calls), 8)
            self.assertLessEqual(session.max_in_flight, 3)
            for i in range(1, 9):
                if i != 4:
                    self.assertTrue((Path(td) / "shared" / f"{i}.png").exists())

    def test_target_created_mid_download_is_replaced(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            dest = Path(td) / "img" / "a.png"
            session = _RacingSession(dest, b"fresh")
            fetcher = AssetFetcher(_config(), td, session=session)  # type: ignore[arg-type]

            outcome = fetcher.fetch("https://assets.example.net/img/a.png")

            self.assertEqual(outcome.status, "succeeded")
            self.assertEqual(dest.read_bytes(), b"fresh")
            self.assertEqual(session.calls, ["http://assets.example.net/img/a.png"])
            self.assertEqual([p.name for p in dest.parent.iterdir()], ["a.png"])

    def test_concurrent_fetches_share_a_missing_parent_directory(self) -> None:
        urls = [f"https://assets.example.net/deep/dir/{i}.png" for i in range(30)]
        session = FakeSession(delay_seconds=0.01)

        with tempfile.TemporaryDirectory() as td:
            fetcher = AssetFetcher(_config(max_concurrent=3), td, session=session)  # type: ignore[arg-type]
            summary = fetcher.fetch_all(urls)

            self.assertEqual((summary.succeeded, summary.failed), (30, 0))
            self.assertEqual(len(list((Path(td) / "deep" / "dir").glob("*.png"))), 30)

    def test_fetch_all_empty(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            fetcher = AssetFetcher(_config(), td, session=FakeSession())  # type: ignore[arg-type]
            summary = fetcher.fetch_all([])
        self.assertEqual((summary.succeeded, summary.skipped, summary.failed), (0, 0, 0))


if __name__ == "__main__":
    unittest.main()
