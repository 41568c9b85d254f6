from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from step_kernel.kernel.definition import HookDefinition, HookScope
from step_kernel.kernel.outcome import ErrorInfo, HookResult, Outcome
from step_kernel.kernel.registry import DefinitionRegistry


@dataclass(frozen=True, slots=True)
class ScenarioHooks:
    # Hooks selected once per scenario against that scenario's tag set.
    before_scenario: tuple[HookDefinition, ...]
    after_scenario: tuple[HookDefinition, ...]
    before_step: tuple[HookDefinition, ...]
    after_step: tuple[HookDefinition, ...]


@dataclass(frozen=True, slots=True)
class HookDispatcher:
    registry: DefinitionRegistry

    def select(self, scope: HookScope, tags: frozenset[str] = frozenset()) -> tuple[HookDefinition, ...]:
        # Filtered-out hooks are simply not invoked; they are not reported.
        return tuple(hook for hook in self.registry.hooks(scope) if hook.applies_to(tags))

    def for_scenario(self, tags: frozenset[str]) -> ScenarioHooks:
        return ScenarioHooks(
            before_scenario=self.select(HookScope.BEFORE_SCENARIO, tags),
            after_scenario=self.select(HookScope.AFTER_SCENARIO, tags),
            before_step=self.select(HookScope.BEFORE_STEP, tags),
            after_step=self.select(HookScope.AFTER_STEP, tags),
        )

    def fire_before(self, hooks: Sequence[HookDefinition], *args: object) -> list[HookResult]:
        # Before-hooks stop at the first failure.
        return _fire(hooks, args, stop_on_failure=True)

    def fire_after(self, hooks: Sequence[HookDefinition], *args: object) -> list[HookResult]:
        # After-hooks always all run.
        return _fire(hooks, args, stop_on_failure=False)


def failed(results: Sequence[HookResult]) -> bool:
    return any(result.outcome is Outcome.FAILED for result in results)


def _fire(hooks: Sequence[HookDefinition], args: tuple[object, ...], *, stop_on_failure: bool) -> list[HookResult]:
    results: list[HookResult] = []
    for hook in hooks:
        try:
            hook.invocable(*args)
        except Exception as exc:  # noqa: BLE001 - hook errors become failed outcomes
            error = ErrorInfo.from_exception(exc)
            results.append(HookResult(scope=hook.scope, name=hook.name, outcome=Outcome.FAILED, error=error))
            if stop_on_failure:
                break
            continue
        results.append(HookResult(scope=hook.scope, name=hook.name, outcome=Outcome.SUCCESSFUL))
    return results
