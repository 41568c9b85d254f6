from __future__ import annotations

from typing import Protocol, runtime_checkable

from step_kernel.kernel.outcome import ScenarioResult


# ResultSink is the boundary towards presenters and report writers.
@runtime_checkable
class ResultSink(Protocol):
    def emit(self, result: ScenarioResult) -> None:
        """Consume one finished ScenarioResult."""
        raise NotImplementedError("ResultSink is a port; use a concrete adapter.")

    def flush(self) -> None:
        """Flush buffered output if supported."""
        raise NotImplementedError("ResultSink is a port; use a concrete adapter.")

    def close(self) -> None:
        """Close the sink and release resources."""
        raise NotImplementedError("ResultSink is a port; use a concrete adapter.")
