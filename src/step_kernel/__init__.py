from step_kernel.kernel import (
    Chained,
    ChainedStepError,
    Context,
    DataTable,
    DefinitionRegistry,
    DocString,
    DuplicatePatternError,
    Feature,
    HookScope,
    Outcome,
    PendingStepError,
    Scenario,
    ScenarioOutline,
    Step,
    StepImitator,
    SuiteResult,
    SuiteRunner,
    chain,
    pending,
    substep,
)

__version__ = "0.1.0"

__all__ = [
    "Chained",
    "ChainedStepError",
    "Context",
    "DataTable",
    "DefinitionRegistry",
    "DocString",
    "DuplicatePatternError",
    "Feature",
    "HookScope",
    "Outcome",
    "PendingStepError",
    "Scenario",
    "ScenarioOutline",
    "Step",
    "StepImitator",
    "SuiteResult",
    "SuiteRunner",
    "chain",
    "pending",
    "substep",
    "__version__",
]
