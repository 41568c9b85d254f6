from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace

from step_kernel.kernel.tags import normalize_tags

_PLACEHOLDER = re.compile(r"<([^<>]+)>")


@dataclass(frozen=True, slots=True)
class DataTable:
    # Tabular multiline argument; first row is the header row.
    cells: tuple[tuple[str, ...], ...]

    def __post_init__(self) -> None:
        if not self.cells:
            raise ValueError("DataTable requires at least one row")
        width = len(self.cells[0])
        if any(len(row) != width for row in self.cells):
            raise ValueError("DataTable rows must all have the same number of cells")

    @classmethod
    def from_rows(cls, rows: Iterable[Iterable[object]]) -> DataTable:
        return cls(tuple(tuple(str(cell) for cell in row) for row in rows))

    @property
    def headers(self) -> tuple[str, ...]:
        return self.cells[0]

    @property
    def rows(self) -> tuple[tuple[str, ...], ...]:
        return self.cells[1:]

    def raw(self) -> list[list[str]]:
        return [list(row) for row in self.cells]

    def hashes(self) -> list[dict[str, str]]:
        return [dict(zip(self.headers, row)) for row in self.rows]

    def rows_hash(self) -> dict[str, str]:
        if len(self.headers) != 2:
            raise ValueError("rows_hash requires a two-column table")
        return {key: value for key, value in self.cells}

    def transpose(self) -> DataTable:
        return DataTable(tuple(zip(*self.cells)))

    def substitute(self, values: Mapping[str, str]) -> DataTable:
        return DataTable(tuple(tuple(_substitute(cell, values) for cell in row) for row in self.cells))


@dataclass(frozen=True, slots=True)
class DocString:
    # Free-text multiline argument.
    content: str
    content_type: str = ""

    def substitute(self, values: Mapping[str, str]) -> DocString:
        return replace(self, content=_substitute(self.content, values))


MultilineArgument = DataTable | DocString


@dataclass(frozen=True, slots=True)
class Step:
    # One tokenized scenario line; the keyword is presentation only.
    keyword: str
    text: str
    argument: MultilineArgument | None = None
    line: int | None = None

    def substitute(self, values: Mapping[str, str]) -> Step:
        argument = self.argument.substitute(values) if self.argument is not None else None
        return replace(self, text=_substitute(self.text, values), argument=argument)

    def __str__(self) -> str:
        return f"{self.keyword} {self.text}".strip()


@dataclass(frozen=True, slots=True)
class Scenario:
    # Immutable ordered list of steps plus the scenario's own tags.
    name: str
    steps: Sequence[Step]
    tags: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", normalize_tags(self.tags))


@dataclass(frozen=True, slots=True)
class Examples:
    table: DataTable
    tags: frozenset[str] = frozenset()
    name: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", normalize_tags(self.tags))


@dataclass(frozen=True, slots=True)
class ScenarioOutline:
    # Template scenario expanded once per example row.
    name: str
    steps: Sequence[Step]
    examples: Sequence[Examples]
    tags: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", normalize_tags(self.tags))

    def expand(self) -> list[Scenario]:
        scenarios: list[Scenario] = []
        index = 0
        for block in self.examples:
            for values in block.table.hashes():
                index += 1
                scenarios.append(
                    Scenario(
                        name=f"{self.name} (example #{index})",
                        steps=tuple(step.substitute(values) for step in self.steps),
                        tags=self.tags | block.tags,
                    )
                )
        return scenarios


@dataclass(frozen=True, slots=True)
class Feature:
    name: str
    scenarios: Sequence[Scenario | ScenarioOutline] = field(default_factory=tuple)
    tags: frozenset[str] = frozenset()
    background: Sequence[Step] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", normalize_tags(self.tags))

    def runnable_scenarios(self) -> list[Scenario]:
        # Outlines expand per row; background steps are prepended; feature tags are inherited.
        runnable: list[Scenario] = []
        for item in self.scenarios:
            expanded = item.expand() if isinstance(item, ScenarioOutline) else [item]
            for scenario in expanded:
                runnable.append(
                    Scenario(
                        name=scenario.name,
                        steps=(*self.background, *scenario.steps),
                        tags=self.tags | scenario.tags,
                    )
                )
        return runnable


def _substitute(text: str, values: Mapping[str, str]) -> str:
    # Unknown placeholders are left untouched.
    return _PLACEHOLDER.sub(lambda m: values.get(m.group(1), m.group(0)), text)
