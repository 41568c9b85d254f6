from __future__ import annotations

import json
import sys
from dataclasses import asdict
from pathlib import Path

from step_kernel.kernel.outcome import ErrorInfo, HookResult, ScenarioResult, StepResult
from step_kernel.ports.result_sink import ResultSink


class JsonlResultSink(ResultSink):
    # One ScenarioResult per line, UTF-8 JSONL.
    def __init__(self, *, path: Path, include_stack: bool = True) -> None:
        self._path = path
        self._include_stack = include_stack
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._handle = self._path.open("a", encoding="utf-8")

    def emit(self, result: ScenarioResult) -> None:
        line = json.dumps(
            result_to_dict(result, include_stack=self._include_stack),
            separators=(",", ":"),
            ensure_ascii=False,
            default=str,
        )
        self._handle.write(line + "\n")

    def flush(self) -> None:
        self._handle.flush()

    def close(self) -> None:
        # Always flush pending data before releasing the descriptor.
        self.flush()
        self._handle.close()


class StdoutResultSink(ResultSink):
    # Stack traces are left out on stdout to keep lines readable.
    def emit(self, result: ScenarioResult) -> None:
        line = json.dumps(
            result_to_dict(result, include_stack=False),
            separators=(",", ":"),
            ensure_ascii=False,
            default=str,
        )
        sys.stdout.write(line + "\n")

    def flush(self) -> None:
        sys.stdout.flush()

    def close(self) -> None:
        self.flush()


def build_result_sink(kind: str, *, path: str | None = None) -> ResultSink | None:
    if kind == "none":
        return None
    if kind == "stdout":
        return StdoutResultSink()
    if kind == "jsonl":
        if not path:
            raise ValueError("jsonl result sink requires a non-empty path")
        return JsonlResultSink(path=Path(path))
    raise ValueError(f"Unknown result sink: {kind}")


def result_to_dict(result: ScenarioResult, *, include_stack: bool = True) -> dict[str, object]:
    # Stable key order for downstream presenters.
    return {
        "feature": result.feature,
        "scenario": result.name,
        "tags": sorted(result.tags),
        "state": result.state.value,
        "steps": [_step_to_dict(step, include_stack) for step in result.steps],
        "hooks": [_hook_to_dict(hook, include_stack) for hook in result.hooks],
    }


def _step_to_dict(step: StepResult, include_stack: bool) -> dict[str, object]:
    return {
        "keyword": step.keyword,
        "text": step.text,
        "outcome": step.outcome.value,
        "arguments": list(step.arguments),
        "pattern": step.pattern,
        "error": _error_to_dict(step.error, include_stack),
        "message": step.message,
        "candidates": list(step.candidates),
        "duration_ms": step.duration_ms,
    }


def _hook_to_dict(hook: HookResult, include_stack: bool) -> dict[str, object]:
    return {
        "scope": hook.scope.value,
        "name": hook.name,
        "outcome": hook.outcome.value,
        "error": _error_to_dict(hook.error, include_stack),
    }


def _error_to_dict(error: ErrorInfo | None, include_stack: bool) -> dict[str, object] | None:
    if error is None:
        return None
    payload = asdict(error)
    if not include_stack:
        payload.pop("stack", None)
    return payload
