from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Protocol, runtime_checkable

from step_kernel.observability.domain.logging import LOG_LEVELS, LogMessage


@runtime_checkable
class LogSink(Protocol):
    def emit(self, message: LogMessage) -> None:
        """Consume one LogMessage."""
        raise NotImplementedError("LogSink is a port; use a concrete adapter.")

    def close(self) -> None:
        """Release resources held by the sink."""
        raise NotImplementedError("LogSink is a port; use a concrete adapter.")


class StdoutLogSink:
    # One compact JSON object per line on stdout.
    def emit(self, message: LogMessage) -> None:
        print(json.dumps(_log_to_dict(message), separators=(",", ":"), ensure_ascii=False, default=str))

    def close(self) -> None:
        sys.stdout.flush()


class JsonlLogSink:
    # File-backed structured log sink.
    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._file = self._path.open("a", encoding="utf-8")

    def emit(self, message: LogMessage) -> None:
        payload = json.dumps(_log_to_dict(message), separators=(",", ":"), ensure_ascii=False, default=str)
        self._file.write(payload + "\n")
        self._file.flush()

    def close(self) -> None:
        self._file.close()


class LevelFilterSink:
    # Drops messages below the configured level before they reach the wrapped sink.
    def __init__(self, inner: LogSink, *, level: str = "info") -> None:
        if level not in LOG_LEVELS:
            raise ValueError(f"level must be one of: {sorted(LOG_LEVELS)}")
        self._inner = inner
        self._threshold = LOG_LEVELS[level]

    def emit(self, message: LogMessage) -> None:
        if LOG_LEVELS[message.level] >= self._threshold:
            self._inner.emit(message)

    def close(self) -> None:
        self._inner.close()


def build_log_sink(kind: str, *, path: str | None = None, level: str = "info") -> LogSink | None:
    # Factory used by the app shell; "none" disables logging.
    if kind == "none":
        return None
    if kind == "stdout":
        return LevelFilterSink(StdoutLogSink(), level=level)
    if kind == "jsonl":
        if not path:
            raise ValueError("jsonl log sink requires a non-empty path")
        return LevelFilterSink(JsonlLogSink(Path(path)), level=level)
    raise ValueError(f"Unknown log sink: {kind}")


def _log_to_dict(message: LogMessage) -> dict[str, object]:
    return {
        "level": message.level,
        "message": message.message,
        "timestamp": message.timestamp.isoformat().replace("+00:00", "Z"),
        "fields": message.fields,
    }
