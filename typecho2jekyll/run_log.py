from __future__ import annotations

import json
import traceback
import uuid
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any, TextIO

_MESSAGE_LIMIT = 2000
_TRACEBACK_LIMIT = 12000


def _clip(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[: limit - 1] + "…"


class RunLogger:
    """
    JSONL event log for a conversion run.

    One JSON object per line, tagged with a per-run id. Fetch workers and the
    post loop share an instance, so every line is written under a lock.
    """

    def __init__(self, fp: TextIO, path: Path, *, run_id: str | None = None) -> None:
        self._fp: TextIO | None = fp
        self.path = path
        self._run_id = (run_id or "").strip() or uuid.uuid4().hex
        self._lock = Lock()

    @classmethod
    def open(
        cls,
        path: str | Path,
        *,
        overwrite: bool = True,
        run_id: str | None = None,
    ) -> "RunLogger":
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        fp = p.open("w" if overwrite else "a", encoding="utf-8", newline="\n")
        return cls(fp, p, run_id=run_id)

    def __enter__(self) -> "RunLogger":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def close(self) -> None:
        with self._lock:
            if self._fp is None:
                return
            self._fp.close()
            self._fp = None

    def info(self, event: str, **data: Any) -> None:
        self._emit("INFO", event, **data)

    def warning(self, event: str, **data: Any) -> None:
        self._emit("WARN", event, **data)

    def exception(self, event: str, *, exc: BaseException, **data: Any) -> None:
        tb = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        error = {
            "type": type(exc).__name__,
            "message": _clip(str(exc), _MESSAGE_LIMIT),
            "traceback": _clip(tb, _TRACEBACK_LIMIT),
        }
        self._emit("ERROR", event, error=error, **data)

    def _emit(
        self,
        level: str,
        event: str,
        *,
        url: str | None = None,
        path: str | Path | None = None,
        **data: Any,
    ) -> None:
        record: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "event": event,
            "run_id": self._run_id,
        }
        if url:
            record["url"] = url
        if path:
            record["path"] = str(path)
        if data:
            record["data"] = data

        line = json.dumps(record, ensure_ascii=False, sort_keys=True, default=str)

        with self._lock:
            if self._fp is None:
                return
            self._fp.write(line + "\n")
            self._fp.flush()
