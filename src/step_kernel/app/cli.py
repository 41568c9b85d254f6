from __future__ import annotations

import argparse
from collections.abc import Sequence
from pathlib import Path

from step_kernel.app.loader import DefinitionLoadError
from step_kernel.app.runtime import run_with_config
from step_kernel.config.loader import ConfigError, load_config
from step_kernel.config.models import RunConfig
from step_kernel.features.loader import FeatureDocumentError
from step_kernel.kernel.definition import InvalidPatternError
from step_kernel.kernel.registry import DuplicatePatternError, RegistryFrozenError
from step_kernel.kernel.tags import TagExpressionError, parse_tag_expression
from step_kernel.observability.adapters.logging import LogSink, StdoutLogSink, build_log_sink
from step_kernel.observability.domain.logging import LogMessage

# Exit code for runs aborted before any scenario executed (bad config, registration errors).
EXIT_LOAD_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="step-kernel", description="Scenario step execution engine")
    parser.add_argument("--config", help="Path to YAML run config")
    parser.add_argument("--feature", action="append", default=[], help="Feature document (YAML/JSON); repeatable")
    parser.add_argument(
        "--definitions",
        action="append",
        default=[],
        help="Module exposing register_definitions(registry); repeatable",
    )
    parser.add_argument("--strict", action="store_true", default=None, help="Fail on undefined/pending steps")
    parser.add_argument("--dry-run", action="store_true", default=None, help="Match steps without invoking them")
    parser.add_argument("--tags", help="Only run scenarios matching this tag expression")
    parser.add_argument("--results", help="Write scenario results as JSONL to this path")
    parser.add_argument("--log-level", choices=["debug", "info", "warning", "error"])
    return parser


def parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def apply_cli_overrides(config: RunConfig, args: argparse.Namespace) -> None:
    # CLI flags take precedence over the config file; list flags extend it.
    config.definitions.extend(name for name in args.definitions if name not in config.definitions)
    config.features.extend(args.feature)
    if args.strict is not None:
        config.run.strict = args.strict
    if args.dry_run is not None:
        config.run.dry_run = args.dry_run
    if args.tags is not None:
        parse_tag_expression(args.tags)
        config.run.tags = args.tags
    if args.results is not None:
        config.results.sink = "jsonl"
        config.results.path = args.results
    if args.log_level is not None:
        config.logging.level = args.log_level
        if config.logging.sink == "none":
            config.logging.sink = "stdout"


def run(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        config = load_config(Path(args.config)) if args.config else RunConfig()
        apply_cli_overrides(config, args)
        log_sink = build_log_sink(config.logging.sink, path=config.logging.path, level=config.logging.level)
    except (ConfigError, TagExpressionError, ValueError, OSError) as exc:
        _report(None, "invalid configuration", exc)
        return EXIT_LOAD_ERROR

    try:
        outcome = run_with_config(config, log_sink=log_sink)
    except (
        DuplicatePatternError,
        InvalidPatternError,
        RegistryFrozenError,
        TagExpressionError,
        DefinitionLoadError,
        FeatureDocumentError,
        OSError,
    ) as exc:
        # Load-phase errors abort the run before any scenario executes.
        _report(log_sink, "run aborted during load phase", exc)
        return EXIT_LOAD_ERROR
    finally:
        if log_sink is not None:
            log_sink.close()
    return outcome.exit_code


def _report(sink: LogSink | None, message: str, exc: Exception) -> None:
    target = sink if sink is not None else StdoutLogSink()
    target.emit(LogMessage(level="error", message=message, fields={"error": type(exc).__name__, "detail": str(exc)}))
