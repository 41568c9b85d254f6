from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from step_kernel.kernel.scenario import MultilineArgument


@dataclass(frozen=True, slots=True)
class StepImitator:
    # Request to run another step in place, as if it appeared literally in the scenario.
    keyword: str
    text: str
    argument: MultilineArgument | None = None


@dataclass(frozen=True, slots=True)
class Completed:
    pass


@dataclass(frozen=True, slots=True)
class Chained:
    # Sub-steps executed in order on the parent's context before the parent completes.
    steps: tuple[StepImitator, ...]


InvocationResult = Completed | Chained

COMPLETED = Completed()


def substep(text: str, keyword: str = "Given", argument: MultilineArgument | None = None) -> StepImitator:
    return StepImitator(keyword=keyword, text=text, argument=argument)


def chain(*steps: StepImitator) -> Chained:
    return Chained(tuple(steps))


def as_invocation_result(value: object) -> InvocationResult:
    # Invocables return arbitrary values; only imitators (or iterables of them) request chaining.
    if isinstance(value, (Completed, Chained)):
        return value
    if isinstance(value, StepImitator):
        return Chained((value,))
    if isinstance(value, Iterable) and not isinstance(value, (str, bytes, Mapping)):
        # Generators are drained here, so a yielding step body runs to the end before its sub-steps.
        items = tuple(value)
        if items and all(isinstance(item, StepImitator) for item in items):
            return Chained(items)
    return COMPLETED
