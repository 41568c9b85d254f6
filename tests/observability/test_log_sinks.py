from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

import pytest

from step_kernel.observability.adapters.logging import (
    JsonlLogSink,
    LevelFilterSink,
    StdoutLogSink,
    build_log_sink,
)
from step_kernel.observability.domain.logging import LogMessage

# Log sinks emit one JSON object per LogMessage; the level filter sits in front of them.


class _ListSink:
    def __init__(self) -> None:
        self.messages: list[LogMessage] = []
        self.closed = False

    def emit(self, message: LogMessage) -> None:
        self.messages.append(message)

    def close(self) -> None:
        self.closed = True


def test_log_message_requires_known_level() -> None:
    with pytest.raises(ValueError):
        LogMessage(level="", message="x")
    with pytest.raises(ValueError):
        LogMessage(level="trace", message="x")


def test_stdout_sink_writes_compact_json(capsys: pytest.CaptureFixture[str]) -> None:
    ts = datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)
    StdoutLogSink().emit(LogMessage(level="info", message="hello", timestamp=ts, fields={"n": 1}))
    line = capsys.readouterr().out.strip()
    assert json.loads(line) == {
        "level": "info",
        "message": "hello",
        "timestamp": "2024-01-02T03:04:05Z",
        "fields": {"n": 1},
    }


def test_jsonl_sink_appends_lines(tmp_path: Path) -> None:
    path = tmp_path / "logs" / "run.jsonl"
    sink = JsonlLogSink(path)
    sink.emit(LogMessage(level="info", message="one"))
    sink.emit(LogMessage(level="error", message="two"))
    sink.close()
    lines = path.read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["message"] for line in lines] == ["one", "two"]


def test_level_filter_drops_lower_levels() -> None:
    inner = _ListSink()
    sink = LevelFilterSink(inner, level="warning")
    sink.emit(LogMessage(level="debug", message="d"))
    sink.emit(LogMessage(level="warning", message="w"))
    sink.emit(LogMessage(level="error", message="e"))
    sink.close()
    assert [m.message for m in inner.messages] == ["w", "e"]
    assert inner.closed


def test_build_log_sink_variants(tmp_path: Path) -> None:
    assert build_log_sink("none") is None
    assert isinstance(build_log_sink("stdout"), LevelFilterSink)
    sink = build_log_sink("jsonl", path=str(tmp_path / "x.jsonl"))
    assert sink is not None
    sink.close()
    with pytest.raises(ValueError):
        build_log_sink("jsonl")
    with pytest.raises(ValueError):
        build_log_sink("syslog")
