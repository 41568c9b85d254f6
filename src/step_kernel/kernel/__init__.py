from .chain import COMPLETED, Chained, Completed, StepImitator, chain, substep
from .context import Context, ContextFactory
from .definition import Definition, DefinitionKind, HookDefinition, HookScope, InvalidPatternError
from .executor import ChainedStepError, Executor, InvocationOutcome, PendingStepError, pending
from .hooks import HookDispatcher
from .matcher import AmbiguousMatch, MatchResult, NoMatch, PatternMatcher, UniqueMatch
from .outcome import ErrorInfo, HookResult, Outcome, ScenarioResult, ScenarioState, StepResult, SuiteResult
from .registry import DefinitionRegistry, DuplicatePatternError, RegistryFrozenError
from .runner import ScenarioRunner, SuiteRunner
from .scenario import DataTable, DocString, Examples, Feature, Scenario, ScenarioOutline, Step
from .tags import TagExpression, TagExpressionError, parse_tag_expression
from .transforms import AmbiguousTransformError, TransformationEngine

# Kernel exports cover the intake API, the input model and the result model.
__all__ = [
    "COMPLETED",
    "Chained",
    "Completed",
    "StepImitator",
    "chain",
    "substep",
    "Context",
    "ContextFactory",
    "Definition",
    "DefinitionKind",
    "HookDefinition",
    "HookScope",
    "InvalidPatternError",
    "ChainedStepError",
    "Executor",
    "InvocationOutcome",
    "PendingStepError",
    "pending",
    "HookDispatcher",
    "AmbiguousMatch",
    "MatchResult",
    "NoMatch",
    "PatternMatcher",
    "UniqueMatch",
    "ErrorInfo",
    "HookResult",
    "Outcome",
    "ScenarioResult",
    "ScenarioState",
    "StepResult",
    "SuiteResult",
    "DefinitionRegistry",
    "DuplicatePatternError",
    "RegistryFrozenError",
    "ScenarioRunner",
    "SuiteRunner",
    "DataTable",
    "DocString",
    "Examples",
    "Feature",
    "Scenario",
    "ScenarioOutline",
    "Step",
    "TagExpression",
    "TagExpressionError",
    "parse_tag_expression",
    "AmbiguousTransformError",
    "TransformationEngine",
]
