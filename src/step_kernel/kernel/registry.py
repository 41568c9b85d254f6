from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeVar

from step_kernel.kernel.definition import (
    Definition,
    DefinitionKind,
    HookDefinition,
    HookScope,
    Invocable,
    compile_pattern,
)
from step_kernel.kernel.tags import TagFilter, as_tag_filter

F = TypeVar("F", bound=Invocable)


# Registration errors are fatal and raised eagerly, before any scenario runs.
class DuplicatePatternError(ValueError):
    def __init__(self, kind: DefinitionKind, pattern: str) -> None:
        super().__init__(f"Duplicate {kind.value} pattern: {pattern!r}")
        self.kind = kind
        self.pattern = pattern


class RegistryFrozenError(RuntimeError):
    pass


@dataclass
class DefinitionRegistry:
    # Process-wide store for step, transform and hook definitions.
    # Populated during the load phase, then frozen and read-only for the run.
    _steps: list[Definition] = field(default_factory=list, init=False)
    _transforms: list[Definition] = field(default_factory=list, init=False)
    _hooks: list[HookDefinition] = field(default_factory=list, init=False)
    _patterns: dict[DefinitionKind, set[str]] = field(
        default_factory=lambda: {DefinitionKind.STEP: set(), DefinitionKind.TRANSFORM: set()},
        init=False,
    )
    _frozen: bool = field(default=False, init=False)

    def register(self, definition: Definition | HookDefinition) -> None:
        if self._frozen:
            raise RegistryFrozenError("Definitions cannot be registered after the run has started")
        if isinstance(definition, HookDefinition):
            # Hooks may share scope and filter freely.
            self._hooks.append(definition)
            return
        seen = self._patterns[definition.kind]
        if definition.pattern in seen:
            raise DuplicatePatternError(definition.kind, definition.pattern)
        seen.add(definition.pattern)
        if definition.kind is DefinitionKind.STEP:
            self._steps.append(definition)
        else:
            self._transforms.append(definition)

    def register_step(
        self, pattern: str | re.Pattern[str], invocable: Invocable, *, keyword: str | None = None
    ) -> Definition:
        definition = Definition(
            kind=DefinitionKind.STEP,
            regex=compile_pattern(pattern),
            invocable=invocable,
            keyword=keyword,
        )
        self.register(definition)
        return definition

    def register_transform(self, pattern: str | re.Pattern[str], invocable: Invocable) -> Definition:
        definition = Definition(
            kind=DefinitionKind.TRANSFORM,
            regex=compile_pattern(pattern),
            invocable=invocable,
        )
        self.register(definition)
        return definition

    def register_hook(
        self,
        scope: HookScope | str,
        tag_filter: str | TagFilter | None,
        invocable: Invocable,
    ) -> HookDefinition:
        definition = HookDefinition(
            scope=HookScope(scope),
            invocable=invocable,
            tag_filter=as_tag_filter(tag_filter),
        )
        self.register(definition)
        return definition

    def lookup(self, kind: DefinitionKind) -> tuple[Definition | HookDefinition, ...]:
        # Registration order is preserved for every kind.
        if kind is DefinitionKind.STEP:
            return tuple(self._steps)
        if kind is DefinitionKind.TRANSFORM:
            return tuple(self._transforms)
        return tuple(self._hooks)

    def steps(self) -> tuple[Definition, ...]:
        return tuple(self._steps)

    def transforms(self) -> tuple[Definition, ...]:
        return tuple(self._transforms)

    def hooks(self, scope: HookScope) -> tuple[HookDefinition, ...]:
        return tuple(hook for hook in self._hooks if hook.scope is scope)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    # Decorator forms of the intake API.

    def step(self, pattern: str | re.Pattern[str], *, keyword: str | None = None) -> Callable[[F], F]:
        def _decorate(fn: F) -> F:
            self.register_step(pattern, fn, keyword=keyword)
            return fn

        return _decorate

    def given(self, pattern: str | re.Pattern[str]) -> Callable[[F], F]:
        return self.step(pattern, keyword="Given")

    def when(self, pattern: str | re.Pattern[str]) -> Callable[[F], F]:
        return self.step(pattern, keyword="When")

    def then(self, pattern: str | re.Pattern[str]) -> Callable[[F], F]:
        return self.step(pattern, keyword="Then")

    def transform(self, pattern: str | re.Pattern[str]) -> Callable[[F], F]:
        def _decorate(fn: F) -> F:
            self.register_transform(pattern, fn)
            return fn

        return _decorate

    def hook(self, scope: HookScope | str, *, tags: str | TagFilter | None = None) -> Callable[[F], F]:
        def _decorate(fn: F) -> F:
            self.register_hook(scope, tags, fn)
            return fn

        return _decorate

    def before_suite(self) -> Callable[[F], F]:
        return self.hook(HookScope.BEFORE_SUITE)

    def after_suite(self) -> Callable[[F], F]:
        return self.hook(HookScope.AFTER_SUITE)

    def before_feature(self, *, tags: str | TagFilter | None = None) -> Callable[[F], F]:
        return self.hook(HookScope.BEFORE_FEATURE, tags=tags)

    def after_feature(self, *, tags: str | TagFilter | None = None) -> Callable[[F], F]:
        return self.hook(HookScope.AFTER_FEATURE, tags=tags)

    def before_scenario(self, *, tags: str | TagFilter | None = None) -> Callable[[F], F]:
        return self.hook(HookScope.BEFORE_SCENARIO, tags=tags)

    def after_scenario(self, *, tags: str | TagFilter | None = None) -> Callable[[F], F]:
        return self.hook(HookScope.AFTER_SCENARIO, tags=tags)

    def before_step(self, *, tags: str | TagFilter | None = None) -> Callable[[F], F]:
        return self.hook(HookScope.BEFORE_STEP, tags=tags)

    def after_step(self, *, tags: str | TagFilter | None = None) -> Callable[[F], F]:
        return self.hook(HookScope.AFTER_STEP, tags=tags)
