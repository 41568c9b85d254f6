from .document import ExamplesDoc, FeatureDoc, OutlineDoc, ScenarioDoc, StepDoc
from .loader import FeatureDocumentError, load_feature, load_features, parse_feature

__all__ = [
    "FeatureDoc",
    "ScenarioDoc",
    "OutlineDoc",
    "ExamplesDoc",
    "StepDoc",
    "FeatureDocumentError",
    "load_feature",
    "load_features",
    "parse_feature",
]
