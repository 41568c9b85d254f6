from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from step_kernel.kernel.context import Context, ContextClass, ContextFactory
from step_kernel.kernel.definition import HookDefinition, HookScope
from step_kernel.kernel.executor import Executor
from step_kernel.kernel.hooks import HookDispatcher, ScenarioHooks, failed
from step_kernel.kernel.matcher import PatternMatcher
from step_kernel.kernel.outcome import (
    ErrorInfo,
    HookResult,
    Outcome,
    ScenarioResult,
    ScenarioState,
    StepResult,
    SuiteResult,
)
from step_kernel.kernel.registry import DefinitionRegistry
from step_kernel.kernel.scenario import Feature, Scenario, Step
from step_kernel.kernel.tags import TagFilter
from step_kernel.kernel.transforms import TransformationEngine
from step_kernel.observability.adapters.logging import LogSink
from step_kernel.observability.domain.logging import LogMessage

if TYPE_CHECKING:
    from step_kernel.ports.result_sink import ResultSink

_NO_HOOKS = ScenarioHooks(before_scenario=(), after_scenario=(), before_step=(), after_step=())


@dataclass(frozen=True, slots=True)
class ScenarioRunner:
    # Drives one scenario's steps in strict order on a fresh Context.
    # Failure mode is monotonic: once entered, every remaining step is skipped unmatched.
    executor: Executor
    dispatcher: HookDispatcher
    context_factory: ContextFactory
    dry_run: bool = False
    log_sink: LogSink | None = None

    def run(self, scenario: Scenario, *, feature: str = "", skip_all: bool = False) -> ScenarioResult:
        if skip_all:
            # Enclosing scope failed before this scenario could start.
            return ScenarioResult(
                feature=feature,
                name=scenario.name,
                tags=scenario.tags,
                steps=tuple(_skipped(step) for step in scenario.steps),
                state=ScenarioState.ABORTED,
            )

        ctx = self.context_factory.new(scenario=scenario.name, feature=feature, tags=scenario.tags)
        # Tag filters are evaluated once per scenario; dry runs fire no hooks.
        hooks = _NO_HOOKS if self.dry_run else self.dispatcher.for_scenario(scenario.tags)
        hook_results: list[HookResult] = []

        self._log(
            "debug",
            "scenario started",
            feature=feature,
            scenario=scenario.name,
            state=ScenarioState.RUNNING.value,
        )
        before = self.dispatcher.fire_before(hooks.before_scenario, ctx, scenario)
        hook_results.extend(before)
        # ABORTED is terminal: once entered, every remaining step is skipped.
        state = ScenarioState.ABORTED if failed(before) else ScenarioState.RUNNING

        steps: list[StepResult] = []
        for step in scenario.steps:
            if state is ScenarioState.ABORTED:
                steps.append(_skipped(step))
                continue
            result = self._run_step(step, ctx, hooks, hook_results)
            steps.append(result)
            self._log(
                "debug",
                "step finished",
                scenario=scenario.name,
                step=step.text,
                outcome=result.outcome.value,
            )
            if result.outcome.enters_failure_mode:
                state = ScenarioState.ABORTED
                self._log(
                    "warning",
                    "scenario entered failure mode",
                    scenario=scenario.name,
                    step=step.text,
                    outcome=result.outcome.value,
                    error=result.error.message if result.error is not None else None,
                )

        hook_results.extend(self.dispatcher.fire_after(hooks.after_scenario, ctx, scenario))
        for hook in hook_results:
            if hook.outcome is Outcome.FAILED:
                self._log(
                    "error",
                    "hook failed",
                    scope=hook.scope.value,
                    hook=hook.name,
                    error=hook.error.message if hook.error is not None else None,
                )

        if state is ScenarioState.RUNNING:
            state = ScenarioState.ABORTED if failed(hook_results) else ScenarioState.COMPLETED
        self._log("info", "scenario finished", feature=feature, scenario=scenario.name, state=state.value)
        return ScenarioResult(
            feature=feature,
            name=scenario.name,
            tags=scenario.tags,
            steps=tuple(steps),
            hooks=tuple(hook_results),
            state=state,
        )

    def _run_step(
        self,
        step: Step,
        ctx: Context,
        hooks: ScenarioHooks,
        hook_results: list[HookResult],
    ) -> StepResult:
        # Step hooks bracket every attempted step regardless of its outcome.
        before = self.dispatcher.fire_before(hooks.before_step, ctx, step)
        hook_results.extend(before)
        if failed(before):
            result = StepResult(
                keyword=step.keyword,
                text=step.text,
                outcome=Outcome.FAILED,
                error=_first_error(before),
            )
        else:
            result = self.executor.execute(step, ctx, dry_run=self.dry_run)

        after = self.dispatcher.fire_after(hooks.after_step, ctx, step)
        hook_results.extend(after)
        if failed(after) and result.outcome is Outcome.SUCCESSFUL:
            result = replace(result, outcome=Outcome.FAILED, error=_first_error(after))
        return result

    def _log(self, level: str, message: str, **fields: object) -> None:
        if self.log_sink is not None:
            self.log_sink.emit(LogMessage(level=level, message=message, fields=fields))


@dataclass(frozen=True, slots=True)
class SuiteRunner:
    # Runs features and their scenarios, firing suite and feature hooks around them.
    registry: DefinitionRegistry
    run_id: str = "run"
    context_cls: ContextClass = field(default=Context)
    dry_run: bool = False
    tag_filter: TagFilter | None = None
    log_sink: LogSink | None = None
    result_sink: ResultSink | None = None

    def run(self, features: Sequence[Feature]) -> SuiteResult:
        # The load phase ends here; the registry is read-only from now on.
        self.registry.freeze()
        matcher = PatternMatcher(self.registry)
        executor = Executor(matcher=matcher, transforms=TransformationEngine(self.registry))
        dispatcher = HookDispatcher(self.registry)
        scenario_runner = ScenarioRunner(
            executor=executor,
            dispatcher=dispatcher,
            context_factory=ContextFactory(run_id=self.run_id, context_cls=self.context_cls),
            dry_run=self.dry_run,
            log_sink=self.log_sink,
        )

        selected = [(feature, self._select(feature)) for feature in features]
        selected = [(feature, scenarios) for feature, scenarios in selected if scenarios]

        suite = SuiteResult()
        before_suite = dispatcher.fire_before(self._hooks(dispatcher, HookScope.BEFORE_SUITE))
        suite.hooks.extend(before_suite)
        suite_failed = failed(before_suite)

        for feature, scenarios in selected:
            feature_failed = suite_failed
            if not suite_failed:
                before_feature = dispatcher.fire_before(
                    self._hooks(dispatcher, HookScope.BEFORE_FEATURE, feature.tags), feature
                )
                suite.hooks.extend(before_feature)
                feature_failed = failed(before_feature)
            for scenario in scenarios:
                result = scenario_runner.run(scenario, feature=feature.name, skip_all=feature_failed)
                suite.scenarios.append(result)
                if self.result_sink is not None:
                    self.result_sink.emit(result)
            if not suite_failed:
                suite.hooks.extend(
                    dispatcher.fire_after(self._hooks(dispatcher, HookScope.AFTER_FEATURE, feature.tags), feature)
                )

        suite.hooks.extend(dispatcher.fire_after(self._hooks(dispatcher, HookScope.AFTER_SUITE)))
        for hook in suite.hooks:
            if hook.outcome is Outcome.FAILED:
                self._log("error", "hook failed", scope=hook.scope.value, hook=hook.name)

        if self.result_sink is not None:
            self.result_sink.flush()
        counts = suite.counts()
        self._log(
            "info",
            "suite finished",
            run_id=self.run_id,
            scenarios=len(suite.scenarios),
            **{outcome.value: count for outcome, count in counts.items()},
        )
        return suite

    def _select(self, feature: Feature) -> list[Scenario]:
        scenarios = feature.runnable_scenarios()
        if self.tag_filter is None:
            return scenarios
        return [scenario for scenario in scenarios if self.tag_filter(scenario.tags)]

    def _hooks(
        self,
        dispatcher: HookDispatcher,
        scope: HookScope,
        tags: frozenset[str] = frozenset(),
    ) -> tuple[HookDefinition, ...]:
        if self.dry_run:
            return ()
        return dispatcher.select(scope, tags)

    def _log(self, level: str, message: str, **fields: object) -> None:
        if self.log_sink is not None:
            self.log_sink.emit(LogMessage(level=level, message=message, fields=fields))


def _skipped(step: Step) -> StepResult:
    return StepResult(keyword=step.keyword, text=step.text, outcome=Outcome.SKIPPED)


def _first_error(results: Sequence[HookResult]) -> ErrorInfo | None:
    for result in results:
        if result.outcome is Outcome.FAILED:
            return result.error
    return None
