from __future__ import annotations

from dataclasses import dataclass

from step_kernel.kernel.definition import Definition
from step_kernel.kernel.registry import DefinitionRegistry


@dataclass(frozen=True, slots=True)
class NoMatch:
    pass


@dataclass(frozen=True, slots=True)
class UniqueMatch:
    definition: Definition
    # Positional groups, named groups included; None for groups that did not participate.
    arguments: tuple[str | None, ...]


@dataclass(frozen=True, slots=True)
class AmbiguousMatch:
    # Candidates in registration order.
    definitions: tuple[Definition, ...]

    @property
    def patterns(self) -> tuple[str, ...]:
        return tuple(definition.pattern for definition in self.definitions)


MatchResult = NoMatch | UniqueMatch | AmbiguousMatch

NO_MATCH = NoMatch()


@dataclass(frozen=True, slots=True)
class PatternMatcher:
    # Resolves step text to its definition; ambiguity is an error, never first-match-wins.
    registry: DefinitionRegistry

    def match(self, text: str) -> MatchResult:
        hits: list[tuple[Definition, tuple[str | None, ...]]] = []
        for definition in self.registry.steps():
            found = definition.regex.fullmatch(text)
            if found is not None:
                hits.append((definition, found.groups()))
        if not hits:
            return NO_MATCH
        if len(hits) == 1:
            definition, arguments = hits[0]
            return UniqueMatch(definition=definition, arguments=arguments)
        return AmbiguousMatch(definitions=tuple(definition for definition, _ in hits))
