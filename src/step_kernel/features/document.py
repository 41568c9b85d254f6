from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from step_kernel.kernel.scenario import (
    DataTable,
    DocString,
    Examples,
    Feature,
    Scenario,
    ScenarioOutline,
    Step,
)

# Document models mirror the parser's tokenized output; they never see raw Gherkin.


class StepDoc(BaseModel):
    model_config = ConfigDict(extra="forbid")
    keyword: str = ""
    text: str
    table: list[list[str]] | None = None
    doc_string: str | None = None
    content_type: str = ""
    line: int | None = None

    @model_validator(mode="after")
    def _one_argument(self) -> StepDoc:
        if self.table is not None and self.doc_string is not None:
            raise ValueError("a step may carry a table or a doc_string, not both")
        if self.table is not None and not self.table:
            raise ValueError("table must have at least one row")
        return self

    def to_step(self) -> Step:
        argument: DataTable | DocString | None = None
        if self.table is not None:
            argument = DataTable.from_rows(self.table)
        elif self.doc_string is not None:
            argument = DocString(content=self.doc_string, content_type=self.content_type)
        return Step(keyword=self.keyword, text=self.text, argument=argument, line=self.line)


class ScenarioDoc(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str
    tags: list[str] = Field(default_factory=list)
    steps: list[StepDoc] = Field(default_factory=list)

    def to_scenario(self) -> Scenario:
        return Scenario(name=self.name, steps=tuple(s.to_step() for s in self.steps), tags=frozenset(self.tags))


class ExamplesDoc(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str = ""
    tags: list[str] = Field(default_factory=list)
    table: list[list[str]]

    @model_validator(mode="after")
    def _header_and_rows(self) -> ExamplesDoc:
        if len(self.table) < 2:
            raise ValueError("examples table needs a header row and at least one example row")
        return self

    def to_examples(self) -> Examples:
        return Examples(table=DataTable.from_rows(self.table), tags=frozenset(self.tags), name=self.name)


class OutlineDoc(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str
    tags: list[str] = Field(default_factory=list)
    steps: list[StepDoc] = Field(default_factory=list)
    examples: list[ExamplesDoc]

    def to_outline(self) -> ScenarioOutline:
        return ScenarioOutline(
            name=self.name,
            steps=tuple(s.to_step() for s in self.steps),
            examples=tuple(e.to_examples() for e in self.examples),
            tags=frozenset(self.tags),
        )


class FeatureDoc(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str
    tags: list[str] = Field(default_factory=list)
    background: list[StepDoc] = Field(default_factory=list)
    scenarios: list[ScenarioDoc] = Field(default_factory=list)
    outlines: list[OutlineDoc] = Field(default_factory=list)

    def to_feature(self) -> Feature:
        # Plain scenarios come first, then outlines, each in document order.
        items: list[Scenario | ScenarioOutline] = [s.to_scenario() for s in self.scenarios]
        items.extend(o.to_outline() for o in self.outlines)
        return Feature(
            name=self.name,
            scenarios=tuple(items),
            tags=frozenset(self.tags),
            background=tuple(s.to_step() for s in self.background),
        )
