from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from step_kernel.kernel.context import Context
from step_kernel.kernel.definition import Definition
from step_kernel.kernel.registry import DefinitionRegistry
from step_kernel.kernel.scenario import DataTable, MultilineArgument

# Table transforms match this marker followed by the comma-joined header row.
TABLE_TRANSFORM_PREFIX = "table:"


class AmbiguousTransformError(RuntimeError):
    def __init__(self, value: str, patterns: Sequence[str]) -> None:
        super().__init__(f"Value {value!r} matches more than one transform: {list(patterns)}")
        self.value = value
        self.patterns = tuple(patterns)


def table_signature(table: DataTable) -> str:
    return TABLE_TRANSFORM_PREFIX + ",".join(table.headers)


def is_table_pattern(pattern: str) -> bool:
    # Leading anchors do not count towards the marker.
    body = pattern.removeprefix("\\A").lstrip("^")
    return body.startswith(TABLE_TRANSFORM_PREFIX)


@dataclass(frozen=True, slots=True)
class TransformationEngine:
    # Rewrites captured arguments between match resolution and invocation.
    registry: DefinitionRegistry

    def apply(
        self,
        arguments: Sequence[str | None],
        context: Context,
        argument: MultilineArgument | None = None,
    ) -> list[object]:
        values: list[object] = [self.transform_value(raw, context) for raw in arguments]
        if argument is not None:
            values.append(self.transform_argument(argument, context))
        return values

    def transform_value(self, raw: str | None, context: Context) -> object:
        if raw is None:
            return None
        found = self._single_match(raw, scalar=True)
        if found is None:
            return raw
        definition, match = found
        groups = match.groups()
        if groups:
            return definition.invocable(context, *groups)
        return definition.invocable(context, raw)

    def transform_argument(self, argument: MultilineArgument, context: Context) -> object:
        # Doc strings pass through; tables are matched on their header signature.
        if not isinstance(argument, DataTable):
            return argument
        found = self._single_match(table_signature(argument), scalar=False)
        if found is None:
            return argument
        definition, _ = found
        return definition.invocable(context, argument)

    def _single_match(self, value: str, *, scalar: bool) -> tuple[Definition, re.Match[str]] | None:
        hits: list[tuple[Definition, re.Match[str]]] = []
        for definition in self.registry.transforms():
            if is_table_pattern(definition.pattern) == scalar:
                continue
            match = definition.regex.fullmatch(value)
            if match is not None:
                hits.append((definition, match))
        if not hits:
            return None
        if len(hits) > 1:
            raise AmbiguousTransformError(value, [definition.pattern for definition, _ in hits])
        return hits[0]
