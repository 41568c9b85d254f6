from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from step_kernel.kernel.tags import TagFilter


class InvalidPatternError(ValueError):
    # Raised at registration time when a pattern is not a valid regular expression.
    def __init__(self, pattern: str, cause: re.error) -> None:
        super().__init__(f"Invalid pattern {pattern!r}: {cause}")
        self.pattern = pattern
        self.cause = cause


class DefinitionKind(str, Enum):
    STEP = "step"
    TRANSFORM = "transform"
    HOOK = "hook"


class HookScope(str, Enum):
    BEFORE_SUITE = "before-suite"
    AFTER_SUITE = "after-suite"
    BEFORE_FEATURE = "before-feature"
    AFTER_FEATURE = "after-feature"
    BEFORE_SCENARIO = "before-scenario"
    AFTER_SCENARIO = "after-scenario"
    BEFORE_STEP = "before-step"
    AFTER_STEP = "after-step"

    @property
    def is_suite(self) -> bool:
        return self in {HookScope.BEFORE_SUITE, HookScope.AFTER_SUITE}


# Invocables are user code with free-form signatures; the engine only prepends the context.
Invocable = Callable[..., Any]


def compile_pattern(pattern: str | re.Pattern[str]) -> re.Pattern[str]:
    if isinstance(pattern, re.Pattern):
        return pattern
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise InvalidPatternError(pattern, exc) from exc


@dataclass(frozen=True, slots=True)
class Definition:
    # Pattern-to-invocable binding for steps and transforms.
    kind: DefinitionKind
    regex: re.Pattern[str]
    invocable: Invocable
    # Presentation only (Given/When/Then); the matcher never reads it.
    keyword: str | None = None

    def __post_init__(self) -> None:
        if self.kind is DefinitionKind.HOOK:
            raise ValueError("Hooks are registered as HookDefinition")
        if not callable(self.invocable):
            raise TypeError("Definition.invocable must be callable")

    @property
    def pattern(self) -> str:
        return self.regex.pattern

    @property
    def name(self) -> str:
        return _callable_name(self.invocable)


@dataclass(frozen=True, slots=True)
class HookDefinition:
    # Lifecycle hook: scope + optional tag filter + invocable.
    scope: HookScope
    invocable: Invocable
    tag_filter: TagFilter | None = None

    def __post_init__(self) -> None:
        if not callable(self.invocable):
            raise TypeError("HookDefinition.invocable must be callable")

    @property
    def kind(self) -> DefinitionKind:
        return DefinitionKind.HOOK

    @property
    def name(self) -> str:
        return _callable_name(self.invocable)

    def applies_to(self, tags: frozenset[str]) -> bool:
        # Suite hooks have no scenario to filter against.
        if self.tag_filter is None or self.scope.is_suite:
            return True
        return bool(self.tag_filter(tags))


def _callable_name(fn: Invocable) -> str:
    return getattr(fn, "__qualname__", None) or getattr(fn, "__name__", None) or repr(fn)
