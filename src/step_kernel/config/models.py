from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from step_kernel.kernel.tags import TagExpressionError, parse_tag_expression

# Config models map YAML sections to typed structures.


class RunSection(BaseModel):
    # Execution switches; strict also makes undefined/pending steps fatal.
    model_config = ConfigDict(extra="forbid")
    strict: bool = False
    dry_run: bool = False
    tags: str | None = None

    @field_validator("tags")
    @classmethod
    def _tags_parse(cls, value: str | None) -> str | None:
        # Fail fast on malformed tag expressions rather than at run time.
        if value is None:
            return None
        try:
            parse_tag_expression(value)
        except TagExpressionError as exc:
            raise ValueError(str(exc)) from exc
        return value


class LoggingSection(BaseModel):
    model_config = ConfigDict(extra="forbid")
    sink: Literal["stdout", "jsonl", "none"] = "none"
    path: str | None = None
    level: Literal["debug", "info", "warning", "error"] = "info"

    @model_validator(mode="after")
    def _path_required_for_jsonl(self) -> LoggingSection:
        if self.sink == "jsonl" and not self.path:
            raise ValueError("logging.path is required when logging.sink is jsonl")
        return self


class ResultsSection(BaseModel):
    model_config = ConfigDict(extra="forbid")
    sink: Literal["stdout", "jsonl", "none"] = "none"
    path: str | None = None

    @model_validator(mode="after")
    def _path_required_for_jsonl(self) -> ResultsSection:
        if self.sink == "jsonl" and not self.path:
            raise ValueError("results.path is required when results.sink is jsonl")
        return self


class RunConfig(BaseModel):
    # Root of the YAML run configuration.
    model_config = ConfigDict(extra="forbid")
    version: int = 1
    definitions: list[str] = Field(default_factory=list)
    features: list[str] = Field(default_factory=list)
    run: RunSection = Field(default_factory=RunSection)
    logging: LoggingSection = Field(default_factory=LoggingSection)
    results: ResultsSection = Field(default_factory=ResultsSection)

    @field_validator("version")
    @classmethod
    def _supported_version(cls, value: int) -> int:
        if value != 1:
            raise ValueError("Only config version 1 is supported")
        return value
