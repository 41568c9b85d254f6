from __future__ import annotations

from step_kernel.kernel.context import Context, ContextFactory
from step_kernel.kernel.executor import Executor, pending
from step_kernel.kernel.hooks import HookDispatcher
from step_kernel.kernel.matcher import PatternMatcher
from step_kernel.kernel.outcome import Outcome, ScenarioState
from step_kernel.kernel.registry import DefinitionRegistry
from step_kernel.kernel.runner import ScenarioRunner
from step_kernel.kernel.scenario import Scenario, Step
from step_kernel.kernel.transforms import TransformationEngine
from step_kernel.observability.domain.logging import LogMessage


class _ListLogSink:
    def __init__(self) -> None:
        self.messages: list[LogMessage] = []

    def emit(self, message: LogMessage) -> None:
        self.messages.append(message)

    def close(self) -> None:
        return None


def _runner(registry: DefinitionRegistry, **kwargs) -> ScenarioRunner:
    return ScenarioRunner(
        executor=Executor(matcher=PatternMatcher(registry), transforms=TransformationEngine(registry)),
        dispatcher=HookDispatcher(registry),
        context_factory=ContextFactory(run_id="run"),
        **kwargs,
    )


def _two_pattern_registry(second=lambda ctx, n: None) -> DefinitionRegistry:
    registry = DefinitionRegistry()
    registry.register_step(r'^some step with "([^"]*)" argument$', lambda ctx, s: None)
    registry.register_step(r"^number step with (\d+)$", second)
    return registry


def test_two_successful_steps_capture_their_arguments() -> None:
    scenario = Scenario(
        name="basic",
        steps=[Step("Given", 'some step with "string" argument'), Step("And", "number step with 23")],
    )
    result = _runner(_two_pattern_registry()).run(scenario)
    assert result.outcomes == [Outcome.SUCCESSFUL, Outcome.SUCCESSFUL]
    assert [step.arguments for step in result.steps] == [("string",), ("23",)]
    assert result.state is ScenarioState.COMPLETED


def test_failed_step_skips_rest_even_when_undefined() -> None:
    # After a failure, later steps are skipped, never reported undefined.
    def raises(ctx, n):
        raise RuntimeError("nope")

    scenario = Scenario(
        name="failing",
        steps=[
            Step("Given", 'some step with "string" argument'),
            Step("When", "number step with 23"),
            Step("Then", "no definition for this"),
        ],
    )
    result = _runner(_two_pattern_registry(raises)).run(scenario)
    assert result.outcomes == [Outcome.SUCCESSFUL, Outcome.FAILED, Outcome.SKIPPED]
    assert result.steps[1].error is not None and result.steps[1].error.message == "nope"
    assert result.state is ScenarioState.ABORTED


def test_skipped_steps_are_never_invoked() -> None:
    registry = DefinitionRegistry()
    calls = []
    registry.register_step(r"^later$", lambda ctx: pending())
    registry.register_step(r"^counted$", lambda ctx: calls.append(1))
    scenario = Scenario(name="pending", steps=[Step("Given", "later"), Step("Then", "counted")])
    result = _runner(registry).run(scenario)
    assert result.outcomes == [Outcome.PENDING, Outcome.SKIPPED]
    assert calls == []


def test_undefined_and_ambiguous_enter_failure_mode() -> None:
    registry = DefinitionRegistry()
    registry.register_step(r"^a (\d)$", lambda ctx, n: None)
    registry.register_step(r"^a (.)$", lambda ctx, n: None)
    registry.register_step(r"^fine$", lambda ctx: None)
    undefined = _runner(registry).run(Scenario(name="u", steps=[Step("Given", "missing"), Step("Then", "fine")]))
    assert undefined.outcomes == [Outcome.UNDEFINED, Outcome.SKIPPED]
    ambiguous = _runner(registry).run(Scenario(name="a", steps=[Step("Given", "a 1"), Step("Then", "fine")]))
    assert ambiguous.outcomes == [Outcome.AMBIGUOUS, Outcome.SKIPPED]


def test_each_scenario_gets_a_fresh_context() -> None:
    registry = DefinitionRegistry()
    contexts: list[Context] = []

    def remember(ctx):
        contexts.append(ctx)
        assert not hasattr(ctx, "seen")
        ctx.seen = True

    registry.register_step(r"^remember$", remember)
    runner = _runner(registry)
    first = runner.run(Scenario(name="one", steps=[Step("Given", "remember")]))
    second = runner.run(Scenario(name="two", steps=[Step("Given", "remember")]))
    assert first.outcomes == second.outcomes == [Outcome.SUCCESSFUL]
    assert contexts[0] is not contexts[1]


def test_steps_share_one_context_within_a_scenario() -> None:
    registry = DefinitionRegistry()
    registry.register_step(r"^I set (\d+)$", lambda ctx, n: setattr(ctx, "value", int(n)))

    def check(ctx, n):
        assert ctx.value == int(n)

    registry.register_step(r"^the value is (\d+)$", check)
    scenario = Scenario(name="shared", steps=[Step("Given", "I set 4"), Step("Then", "the value is 4")])
    assert _runner(registry).run(scenario).outcomes == [Outcome.SUCCESSFUL, Outcome.SUCCESSFUL]


def test_custom_context_class_is_used() -> None:
    class World(Context):
        def __init__(self, **kwargs) -> None:
            super().__init__(**kwargs)
            self.cart: list[str] = []

    registry = DefinitionRegistry()
    registry.register_step(r"^add (\w+)$", lambda ctx, item: ctx.cart.append(item))
    runner = ScenarioRunner(
        executor=Executor(matcher=PatternMatcher(registry), transforms=TransformationEngine(registry)),
        dispatcher=HookDispatcher(registry),
        context_factory=ContextFactory(run_id="run", context_cls=World),
    )
    assert runner.run(Scenario(name="w", steps=[Step("Given", "add tea")])).outcomes == [Outcome.SUCCESSFUL]


def test_step_hooks_bracket_every_attempted_step() -> None:
    registry = DefinitionRegistry()
    events: list[str] = []
    registry.register_step(r"^ok$", lambda ctx: events.append("ok"))
    registry.register_step(r"^bad$", lambda ctx: 1 / 0)
    registry.before_step()(lambda ctx, step: events.append(f"before {step.text}"))
    registry.after_step()(lambda ctx, step: events.append(f"after {step.text}"))
    scenario = Scenario(name="hooks", steps=[Step("Given", "ok"), Step("When", "bad"), Step("Then", "ok")])
    result = _runner(registry).run(scenario)
    assert result.outcomes == [Outcome.SUCCESSFUL, Outcome.FAILED, Outcome.SKIPPED]
    assert events == ["before ok", "ok", "after ok", "before bad", "after bad"]


def test_scenario_hooks_receive_context_and_scenario() -> None:
    registry = DefinitionRegistry()
    events: list[tuple[str, str]] = []
    registry.register_step(r"^ok$", lambda ctx: None)
    registry.before_scenario()(lambda ctx, scenario: events.append(("before", scenario.name)))
    registry.after_scenario()(lambda ctx, scenario: events.append(("after", ctx.scenario)))
    _runner(registry).run(Scenario(name="hooked", steps=[Step("Given", "ok")]))
    assert events == [("before", "hooked"), ("after", "hooked")]


def test_before_scenario_failure_skips_all_steps_but_runs_after_hooks() -> None:
    registry = DefinitionRegistry()
    calls: list[str] = []
    registry.register_step(r"^ok$", lambda ctx: calls.append("step"))

    def broken(ctx, scenario):
        raise RuntimeError("setup failed")

    registry.before_scenario()(broken)
    registry.before_scenario()(lambda ctx, scenario: calls.append("second before"))
    registry.after_scenario()(lambda ctx, scenario: calls.append("after"))
    result = _runner(registry).run(Scenario(name="s", steps=[Step("Given", "ok"), Step("Then", "ok")]))
    assert result.outcomes == [Outcome.SKIPPED, Outcome.SKIPPED]
    assert result.state is ScenarioState.ABORTED
    assert calls == ["after"]
    assert [hook.outcome for hook in result.hooks] == [Outcome.FAILED, Outcome.SUCCESSFUL]


def test_before_step_failure_fails_step_without_invoking_it() -> None:
    registry = DefinitionRegistry()
    calls: list[str] = []
    registry.register_step(r"^ok$", lambda ctx: calls.append("step"))

    def broken(ctx, step):
        raise ValueError("bad hook")

    registry.before_step()(broken)
    result = _runner(registry).run(Scenario(name="s", steps=[Step("Given", "ok"), Step("Then", "ok")]))
    assert result.outcomes == [Outcome.FAILED, Outcome.SKIPPED]
    assert result.steps[0].error is not None and result.steps[0].error.message == "bad hook"
    assert calls == []


def test_after_step_failure_turns_successful_step_failed() -> None:
    registry = DefinitionRegistry()
    registry.register_step(r"^ok$", lambda ctx: None)

    def broken(ctx, step):
        raise ValueError("teardown")

    registry.after_step()(broken)
    result = _runner(registry).run(Scenario(name="s", steps=[Step("Given", "ok"), Step("Then", "ok")]))
    assert result.outcomes == [Outcome.FAILED, Outcome.SKIPPED]


def test_after_scenario_failure_aborts_scenario() -> None:
    registry = DefinitionRegistry()
    registry.register_step(r"^ok$", lambda ctx: None)

    def broken(ctx, scenario):
        raise ValueError("teardown")

    registry.after_scenario()(broken)
    result = _runner(registry).run(Scenario(name="s", steps=[Step("Given", "ok")]))
    assert result.outcomes == [Outcome.SUCCESSFUL]
    assert result.state is ScenarioState.ABORTED
    assert result.hook_failed


def test_hook_tag_filter_is_applied_to_scenario_tags() -> None:
    registry = DefinitionRegistry()
    fired: list[str] = []
    registry.register_step(r"^ok$", lambda ctx: None)
    registry.before_scenario(tags="@db and not @slow")(lambda ctx, scenario: fired.append(scenario.name))
    runner = _runner(registry)
    runner.run(Scenario(name="match", steps=[Step("Given", "ok")], tags=frozenset({"@db"})))
    runner.run(Scenario(name="slow", steps=[Step("Given", "ok")], tags=frozenset({"@db", "@slow"})))
    runner.run(Scenario(name="untagged", steps=[Step("Given", "ok")]))
    assert fired == ["match"]


def test_dry_run_fires_no_hooks_and_skips_matched_steps() -> None:
    registry = DefinitionRegistry()
    fired: list[str] = []
    registry.register_step(r"^ok$", lambda ctx: fired.append("step"))
    registry.before_scenario()(lambda ctx, scenario: fired.append("hook"))
    result = _runner(registry, dry_run=True).run(
        Scenario(name="dry", steps=[Step("Given", "ok"), Step("When", "missing"), Step("Then", "ok")])
    )
    assert result.outcomes == [Outcome.SKIPPED, Outcome.UNDEFINED, Outcome.SKIPPED]
    assert fired == []


def test_skip_all_reports_every_step_skipped() -> None:
    registry = DefinitionRegistry()
    calls: list[str] = []
    registry.register_step(r"^ok$", lambda ctx: calls.append("step"))
    registry.before_scenario()(lambda ctx, scenario: calls.append("hook"))
    result = _runner(registry).run(Scenario(name="s", steps=[Step("Given", "ok")]), skip_all=True)
    assert result.outcomes == [Outcome.SKIPPED]
    assert result.state is ScenarioState.ABORTED
    assert calls == []


def test_runner_logs_step_and_scenario_events() -> None:
    registry = DefinitionRegistry()
    registry.register_step(r"^bad$", lambda ctx: 1 / 0)
    sink = _ListLogSink()
    _runner(registry, log_sink=sink).run(Scenario(name="logged", steps=[Step("Given", "bad")]))
    levels = [(m.level, m.message) for m in sink.messages]
    assert ("debug", "step finished") in levels
    assert ("warning", "scenario entered failure mode") in levels
    assert levels[-1] == ("info", "scenario finished")
    assert sink.messages[-1].fields["state"] == "aborted"


def test_scenario_starts_running_and_finishes_completed() -> None:
    registry = DefinitionRegistry()
    registry.register_step(r"^ok$", lambda ctx: None)
    sink = _ListLogSink()
    result = _runner(registry, log_sink=sink).run(Scenario(name="fine", steps=[Step("Given", "ok")]))
    first, last = sink.messages[0], sink.messages[-1]
    assert (first.message, first.fields["state"]) == ("scenario started", "running")
    assert (last.message, last.fields["state"]) == ("scenario finished", "completed")
    assert result.state is ScenarioState.COMPLETED
