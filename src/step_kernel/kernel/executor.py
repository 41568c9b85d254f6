from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import NoReturn

from step_kernel.kernel.chain import Chained, StepImitator, as_invocation_result
from step_kernel.kernel.context import Context
from step_kernel.kernel.definition import Definition
from step_kernel.kernel.matcher import AmbiguousMatch, NoMatch, PatternMatcher, UniqueMatch
from step_kernel.kernel.outcome import ErrorInfo, Outcome, StepResult
from step_kernel.kernel.scenario import Step
from step_kernel.kernel.transforms import TransformationEngine


class PendingStepError(Exception):
    # The "not implemented yet" signal; any other exception means failed.
    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "TODO: implement me")
        self.message = message


def pending(message: str | None = None) -> NoReturn:
    raise PendingStepError(message)


class ChainedStepError(RuntimeError):
    # A chained sub-step did not finish successful; escalated as a failure of the parent.
    def __init__(
        self,
        imitator: StepImitator,
        outcome: Outcome,
        *,
        candidates: Sequence[str] = (),
        detail: str | None = None,
    ) -> None:
        message = f"Chained step {imitator.keyword} {imitator.text!r} was {outcome.value}"
        if candidates:
            message += f" (candidates: {list(candidates)})"
        if detail:
            message += f": {detail}"
        super().__init__(message)
        self.imitator = imitator
        self.outcome = outcome
        self.candidates = tuple(candidates)


@dataclass(frozen=True, slots=True)
class InvocationOutcome:
    outcome: Outcome
    error: ErrorInfo | None = None
    message: str | None = None


@dataclass(frozen=True, slots=True)
class Executor:
    # Invokes resolved definitions and recursively runs chained sub-steps on the same context.
    matcher: PatternMatcher
    transforms: TransformationEngine

    def execute(self, step: Step, context: Context, *, dry_run: bool = False) -> StepResult:
        # Full per-step pipeline: match, transform, invoke, classify.
        started = time.perf_counter()
        match = self.matcher.match(step.text)
        if isinstance(match, NoMatch):
            return StepResult(keyword=step.keyword, text=step.text, outcome=Outcome.UNDEFINED)
        if isinstance(match, AmbiguousMatch):
            return StepResult(
                keyword=step.keyword,
                text=step.text,
                outcome=Outcome.AMBIGUOUS,
                candidates=match.patterns,
            )
        if dry_run:
            return StepResult(
                keyword=step.keyword,
                text=step.text,
                outcome=Outcome.SKIPPED,
                arguments=match.arguments,
                pattern=match.definition.pattern,
            )
        try:
            arguments = self.transforms.apply(match.arguments, context, step.argument)
        except Exception as exc:  # noqa: BLE001 - transform errors fail the step
            result = InvocationOutcome(outcome=Outcome.FAILED, error=ErrorInfo.from_exception(exc))
        else:
            result = self.invoke(match.definition, context, arguments)
        return StepResult(
            keyword=step.keyword,
            text=step.text,
            outcome=result.outcome,
            arguments=match.arguments,
            pattern=match.definition.pattern,
            error=result.error,
            message=result.message,
            duration_ms=(time.perf_counter() - started) * 1000.0,
        )

    def invoke(self, definition: Definition, context: Context, arguments: Sequence[object]) -> InvocationOutcome:
        # Single attempt; every condition is converted to an outcome here.
        try:
            self._call(definition, context, arguments)
        except PendingStepError as exc:
            return InvocationOutcome(outcome=Outcome.PENDING, message=exc.message)
        except Exception as exc:  # noqa: BLE001 - any non-pending error is a failure
            return InvocationOutcome(outcome=Outcome.FAILED, error=ErrorInfo.from_exception(exc))
        return InvocationOutcome(outcome=Outcome.SUCCESSFUL)

    def _call(self, definition: Definition, context: Context, arguments: Sequence[object]) -> None:
        result = as_invocation_result(definition.invocable(context, *arguments))
        if isinstance(result, Chained):
            for imitator in result.steps:
                self._run_substep(imitator, context)

    def _run_substep(self, imitator: StepImitator, context: Context) -> None:
        match = self.matcher.match(imitator.text)
        if isinstance(match, NoMatch):
            raise ChainedStepError(imitator, Outcome.UNDEFINED)
        if isinstance(match, AmbiguousMatch):
            raise ChainedStepError(imitator, Outcome.AMBIGUOUS, candidates=match.patterns)
        assert isinstance(match, UniqueMatch)
        try:
            arguments = self.transforms.apply(match.arguments, context, imitator.argument)
            self._call(match.definition, context, arguments)
        except ChainedStepError:
            # Already describes the innermost failing sub-step.
            raise
        except PendingStepError as exc:
            raise ChainedStepError(imitator, Outcome.PENDING, detail=exc.message) from exc
        except Exception as exc:
            raise ChainedStepError(imitator, Outcome.FAILED, detail=f"{type(exc).__name__}: {exc}") from exc
