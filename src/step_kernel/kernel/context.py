from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime


class Context:
    # Shared mutable "world" for one scenario: steps, hooks and transforms all receive
    # this same object. Arbitrary attributes may be set on it by step code.
    def __init__(
        self,
        *,
        run_id: str,
        scenario: str,
        feature: str = "",
        tags: frozenset[str] = frozenset(),
    ) -> None:
        self.trace_id = uuid.uuid4().hex
        self.run_id = run_id
        self.scenario = scenario
        self.feature = feature
        self.tags = tags
        self.started_at = datetime.now(tz=UTC)
        self.notes: list[str] = []

    def note(self, text: str) -> None:
        # Notes are append-only in order of occurrence.
        self.notes.append(text)

    def has_tag(self, tag: str) -> bool:
        return (tag if tag.startswith("@") else f"@{tag}") in self.tags

    def __repr__(self) -> str:
        return f"Context(scenario={self.scenario!r}, trace_id={self.trace_id!r})"


# Custom world classes must accept the same keyword arguments as Context.
ContextClass = Callable[..., Context]


@dataclass(frozen=True, slots=True)
class ContextFactory:
    # One fresh Context per scenario (or per example row of an outline).
    run_id: str
    context_cls: ContextClass = field(default=Context)

    def new(self, *, scenario: str, feature: str = "", tags: frozenset[str] = frozenset()) -> Context:
        return self.context_cls(run_id=self.run_id, scenario=scenario, feature=feature, tags=tags)
