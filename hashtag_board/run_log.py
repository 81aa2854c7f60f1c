from __future__ import annotations

import json
import time
import traceback
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, TextIO

_MESSAGE_LIMIT = 2000
_TRACEBACK_LIMIT = 12000


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _truncate(text: str, *, limit: int) -> str:
    s = str(text or "")
    if len(s) <= limit:
        return s
    return s[: max(0, limit - 1)] + "…"


def _error_details(exc: BaseException) -> dict[str, str]:
    tb = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return {
        "type": type(exc).__name__,
        "message": _truncate(str(exc), limit=_MESSAGE_LIMIT),
        "traceback": _truncate(tb, limit=_TRACEBACK_LIMIT),
    }


class RunLogger:
    """
    JSONL activity log for board commands.

    One board keeps one history: the file is appended to by every command, and
    each line carries the command name and a per-invocation session id. The
    `command_*` helpers write the records that bracket a command.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        overwrite: bool = False,
        command: str | None = None,
        session_id: str | None = None,
    ) -> None:
        self._path = Path(path)
        self._mode = "w" if overwrite else "a"
        self._command = (command or "").strip() or None
        self._session_id = (session_id or "").strip() or uuid.uuid4().hex
        self._fp: TextIO | None = None
        self._started: float | None = None

    @classmethod
    def open(
        cls,
        path: str | Path,
        *,
        overwrite: bool = False,
        command: str | None = None,
        session_id: str | None = None,
    ) -> "RunLogger":
        logger = cls(path, overwrite=overwrite, command=command, session_id=session_id)
        logger._ensure_open()
        return logger

    def close(self) -> None:
        if self._fp is None:
            return
        try:
            self._fp.flush()
        finally:
            self._fp.close()
            self._fp = None

    def __enter__(self) -> "RunLogger":
        self._ensure_open()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def command_started(
        self,
        *,
        db_path: str | Path,
        config_path: str | Path | None = None,
        config_sha256: str | None = None,
    ) -> None:
        self._started = time.monotonic()
        self.info(
            "command_started",
            db_path=str(db_path),
            config_path=str(config_path) if config_path else None,
            config_sha256=config_sha256,
        )

    def command_completed(self, *, exit_code: int) -> None:
        self.info("command_completed", exit_code=int(exit_code), duration_ms=self._elapsed_ms())

    def command_failed(self, exc: BaseException) -> None:
        self.log(
            "ERROR",
            "command_failed",
            error=_error_details(exc),
            duration_ms=self._elapsed_ms(),
        )

    def info(self, event: str, **data: Any) -> None:
        self.log("INFO", event, **data)

    def warning(self, event: str, **data: Any) -> None:
        self.log("WARN", event, **data)

    def log(self, level: str, event: str, **data: Any) -> None:
        record: dict[str, Any] = {
            "ts": _utc_now_iso(),
            "level": (level or "").strip().upper() or "INFO",
            "event": (event or "").strip() or "event",
            "session_id": self._session_id,
        }
        if self._command:
            record["command"] = self._command
        if data:
            record["data"] = data

        self._write(record)

    def _elapsed_ms(self) -> int | None:
        if self._started is None:
            return None
        return int((time.monotonic() - self._started) * 1000)

    def _ensure_open(self) -> TextIO:
        if self._fp is None:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._fp = self._path.open(self._mode, encoding="utf-8", newline="\n")
            # Reopening after close must not truncate what this logger already wrote.
            self._mode = "a"
        return self._fp

    def _write(self, record: dict[str, Any]) -> None:
        fp = self._ensure_open()
        fp.write(
            json.dumps(record, ensure_ascii=False, sort_keys=True, separators=(",", ":"), default=str)
            + "\n"
        )
        fp.flush()
