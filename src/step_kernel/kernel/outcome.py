from __future__ import annotations

import traceback
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum

from step_kernel.kernel.definition import HookScope


class Outcome(str, Enum):
    SUCCESSFUL = "successful"
    FAILED = "failed"
    PENDING = "pending"
    UNDEFINED = "undefined"
    AMBIGUOUS = "ambiguous"
    SKIPPED = "skipped"

    @property
    def enters_failure_mode(self) -> bool:
        # Any of these switches the scenario to skip-rest.
        return self in _FAILURE_MODE


_FAILURE_MODE = frozenset({Outcome.FAILED, Outcome.PENDING, Outcome.UNDEFINED, Outcome.AMBIGUOUS})
_ALWAYS_FATAL = frozenset({Outcome.FAILED, Outcome.AMBIGUOUS})
_STRICT_FATAL = _ALWAYS_FATAL | {Outcome.UNDEFINED, Outcome.PENDING}


class ScenarioState(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass(frozen=True, slots=True)
class ErrorInfo:
    # Error detail for failed steps and hooks, including the originating stack.
    type: str
    message: str
    stack: str | None = None

    @classmethod
    def from_exception(cls, exc: BaseException) -> ErrorInfo:
        return cls(
            type=type(exc).__name__,
            message=str(exc),
            stack="".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        )


@dataclass(frozen=True, slots=True)
class StepResult:
    # Step invocation record as handed to presenters.
    keyword: str
    text: str
    outcome: Outcome
    arguments: tuple[str | None, ...] = ()
    pattern: str | None = None
    error: ErrorInfo | None = None
    message: str | None = None
    candidates: tuple[str, ...] = ()
    duration_ms: float = 0.0


@dataclass(frozen=True, slots=True)
class HookResult:
    scope: HookScope
    name: str
    outcome: Outcome
    error: ErrorInfo | None = None


@dataclass(frozen=True, slots=True)
class ScenarioResult:
    feature: str
    name: str
    tags: frozenset[str]
    steps: tuple[StepResult, ...]
    hooks: tuple[HookResult, ...] = ()
    state: ScenarioState = ScenarioState.COMPLETED

    @property
    def outcomes(self) -> list[Outcome]:
        return [step.outcome for step in self.steps]

    @property
    def hook_failed(self) -> bool:
        return any(hook.outcome is Outcome.FAILED for hook in self.hooks)


@dataclass(slots=True)
class SuiteResult:
    # Aggregate over all scenarios plus suite/feature hook results.
    scenarios: list[ScenarioResult] = field(default_factory=list)
    hooks: list[HookResult] = field(default_factory=list)

    def all_hooks(self) -> list[HookResult]:
        found = list(self.hooks)
        for scenario in self.scenarios:
            found.extend(scenario.hooks)
        return found

    def counts(self) -> dict[Outcome, int]:
        # Every outcome kind is present, even with a zero count.
        counter: Counter[Outcome] = Counter()
        for scenario in self.scenarios:
            counter.update(step.outcome for step in scenario.steps)
        return {outcome: counter.get(outcome, 0) for outcome in Outcome}

    def has_fatal(self, *, strict: bool = False) -> bool:
        fatal = _STRICT_FATAL if strict else _ALWAYS_FATAL
        if any(self.counts()[outcome] for outcome in fatal):
            return True
        return any(hook.outcome is Outcome.FAILED for hook in self.all_hooks())

    def exit_code(self, *, strict: bool = False) -> int:
        return 1 if self.has_fatal(strict=strict) else 0
