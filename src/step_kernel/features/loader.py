from __future__ import annotations

import json
from collections.abc import Iterable
from pathlib import Path

import yaml
from pydantic import ValidationError

from step_kernel.features.document import FeatureDoc
from step_kernel.kernel.scenario import Feature


class FeatureDocumentError(ValueError):
    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"Invalid feature document {source}: {reason}")
        self.source = source
        self.reason = reason


def parse_feature(raw: object, *, source: str = "<memory>") -> Feature:
    if not isinstance(raw, dict):
        raise FeatureDocumentError(source, "root must be a mapping")
    try:
        return FeatureDoc.model_validate(raw).to_feature()
    except ValidationError as exc:
        raise FeatureDocumentError(source, str(exc)) from exc
    except ValueError as exc:
        # Model-level invariants (e.g. ragged tables) surface from the kernel types.
        raise FeatureDocumentError(source, str(exc)) from exc


def load_feature(path: Path) -> Feature:
    # JSON by extension, YAML otherwise; a document may hold a single feature or a list.
    return load_features([path])[0]


def load_features(paths: Iterable[Path]) -> list[Feature]:
    features: list[Feature] = []
    for path in paths:
        text = path.read_text(encoding="utf-8")
        # YAML scalars stay as written, so table cells keep the tokens the parser produced.
        try:
            raw = json.loads(text) if path.suffix == ".json" else yaml.load(text, Loader=yaml.BaseLoader)
        except (json.JSONDecodeError, yaml.YAMLError) as exc:
            raise FeatureDocumentError(str(path), f"cannot be decoded: {exc}") from exc
        documents = raw if isinstance(raw, list) else [raw]
        if not documents:
            raise FeatureDocumentError(str(path), "contains no features")
        features.extend(parse_feature(doc, source=str(path)) for doc in documents)
    return features
