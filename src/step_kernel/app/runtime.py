from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from step_kernel.adapters.result_sinks import build_result_sink
from step_kernel.app.loader import load_definitions
from step_kernel.config.models import RunConfig
from step_kernel.features.loader import load_features
from step_kernel.kernel.outcome import SuiteResult
from step_kernel.kernel.registry import DefinitionRegistry
from step_kernel.kernel.runner import SuiteRunner
from step_kernel.kernel.tags import parse_tag_expression
from step_kernel.observability.adapters.logging import LogSink, build_log_sink
from step_kernel.observability.domain.logging import LogMessage


@dataclass(frozen=True, slots=True)
class RunOutcome:
    # Small bundle handed back to the CLI: the suite result and the exit code derived from it.
    result: SuiteResult
    exit_code: int


def run_with_config(
    config: RunConfig,
    *,
    registry: DefinitionRegistry | None = None,
    log_sink: LogSink | None = None,
    run_id: str = "run",
) -> RunOutcome:
    # Load phase (definitions, features) then execution; registration errors propagate.
    owns_log_sink = log_sink is None
    if log_sink is None:
        log_sink = build_log_sink(config.logging.sink, path=config.logging.path, level=config.logging.level)
    registry = registry if registry is not None else DefinitionRegistry()
    result_sink = build_result_sink(config.results.sink, path=config.results.path)
    try:
        modules = load_definitions(config.definitions, registry)
        _log(log_sink, "info", "definitions loaded", modules=[m.__name__ for m in modules])
        features = load_features(Path(p) for p in config.features)
        _log(log_sink, "info", "features loaded", count=len(features))

        runner = SuiteRunner(
            registry=registry,
            run_id=run_id,
            dry_run=config.run.dry_run,
            tag_filter=parse_tag_expression(config.run.tags) if config.run.tags else None,
            log_sink=log_sink,
            result_sink=result_sink,
        )
        result = runner.run(features)
    finally:
        if result_sink is not None:
            result_sink.close()
        if owns_log_sink and log_sink is not None:
            log_sink.close()
    return RunOutcome(result=result, exit_code=result.exit_code(strict=config.run.strict))


def _log(sink: LogSink | None, level: str, message: str, **fields: object) -> None:
    if sink is not None:
        sink.emit(LogMessage(level=level, message=message, fields=fields))
