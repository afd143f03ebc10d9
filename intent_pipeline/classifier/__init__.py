"""Similarity classifier and the LangGraph prediction workflow."""

from .service import IntentClassifier, TrainedModel
from .similarity import classify_text, group_examples, jaccard_similarity, tokenize
from .state import PredictionState
from .workflow import get_compiled_workflow

__all__ = [
    "IntentClassifier",
    "PredictionState",
    "TrainedModel",
    "classify_text",
    "get_compiled_workflow",
    "group_examples",
    "jaccard_similarity",
    "tokenize",
]
