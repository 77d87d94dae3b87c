from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

from .config import apply_origin_override, load_config
from .converter import run_conversion
from .errors import (
    ConfigError,
    ExportDecodeError,
    InputError,
    NoPostsFound,
    PostWriteError,
)
from .run_log import RunLogger


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="typecho2jekyll",
        description="Convert a Typecho JSON export into Jekyll posts and mirror its images.",
    )
    parser.add_argument("input", help="Path to the Typecho JSON export.")
    parser.add_argument(
        "output",
        nargs="?",
        default=None,
        help="Output directory for posts and images (default: ./jekyll_posts).",
    )
    parser.add_argument(
        "--no-download",
        dest="download",
        action="store_false",
        help="Convert posts without downloading images.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to an optional YAML config file.",
    )
    parser.add_argument(
        "--origin",
        default=None,
        help="Asset origin to mirror and strip from post bodies (overrides config).",
    )
    parser.add_argument(
        "--log",
        default=None,
        help="Path of the JSONL run log (default: <output>/convert.log).",
    )
    return parser


def _eprint(message: str) -> None:
    print(message, file=sys.stderr)


def _cmd_convert(args: argparse.Namespace) -> int:
    input_path = Path(args.input)
    if not input_path.is_file():
        raise InputError(f"Input file not found: {input_path}")

    cfg = apply_origin_override(load_config(args.config), args.origin)

    out_dir = Path(args.output or cfg.output.directory)
    out_dir.mkdir(parents=True, exist_ok=True)
    log_path = Path(args.log) if args.log else out_dir / "convert.log"

    with RunLogger.open(log_path, overwrite=True) as log:
        log.info(
            "convert_started",
            input_path=str(input_path),
            output_dir=str(out_dir),
            download=bool(args.download),
        )
        log.info(
            "config_loaded",
            config_path=str(args.config) if args.config else None,
            origin=cfg.assets.origin,
            max_concurrent=cfg.assets.max_concurrent,
            downgrade_scheme=cfg.assets.downgrade_scheme,
        )

        try:
            result = run_conversion(
                cfg,
                input_path,
                out_dir,
                download=bool(args.download),
                logger=log,
            )
        except Exception as e:
            log.exception("convert_failed", exc=e)
            raise

        log.info(
            "convert_completed",
            posts_total=result.posts_total,
            posts_written=result.posts_written,
            posts_failed=result.posts_failed,
        )

    print(f"posts_total={result.posts_total}")
    print(f"posts_written={result.posts_written}")
    print(f"posts_failed={result.posts_failed}")
    if result.assets is not None:
        print(f"assets_success={result.assets.success}")
        print(f"assets_succeeded={result.assets.succeeded}")
        print(f"assets_skipped={result.assets.skipped}")
        print(f"assets_failed={result.assets.failed}")
        print(f"assets_total={result.assets.total}")
    print(f"output_dir={result.output_dir}")
    print(f"run_log={log.path}")

    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        return _cmd_convert(args)
    except (ConfigError, InputError) as e:
        _eprint(str(e))
        return 2
    except (ExportDecodeError, NoPostsFound, PostWriteError) as e:
        _eprint(str(e))
        return 3
    except KeyboardInterrupt:
        _eprint("Interrupted")
        return 130
    except Exception as e:
        _eprint(f"Unexpected error: {e}")
        return 1
