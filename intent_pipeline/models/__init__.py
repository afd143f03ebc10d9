"""Data models for the intent classification pipeline."""

from .active_learning import ActiveLearningSample, AnnotationOutcome, Priority, SampleStatus
from .actor import Actor, Role
from .evaluation import (
    ClassMetrics,
    ConfusionMatrix,
    EvaluatedPrediction,
    EvaluationComparison,
    EvaluationMetrics,
    EvaluationResult,
    ItemError,
    ValidationResult,
)
from .feedback import (
    FeedbackRecord,
    FeedbackStatus,
    FeedbackType,
    IntentSuggestion,
    RetrainResult,
)
from .model_version import ModelSnapshot, VersionStatus
from .prediction import ClassificationResult, IntentScore, PredictionResult
from .training import Dataset, TrainingExample

__all__ = [
    "ActiveLearningSample",
    "Actor",
    "AnnotationOutcome",
    "ClassMetrics",
    "ClassificationResult",
    "ConfusionMatrix",
    "Dataset",
    "EvaluatedPrediction",
    "EvaluationComparison",
    "EvaluationMetrics",
    "EvaluationResult",
    "FeedbackRecord",
    "FeedbackStatus",
    "FeedbackType",
    "IntentScore",
    "IntentSuggestion",
    "ItemError",
    "ModelSnapshot",
    "PredictionResult",
    "Priority",
    "RetrainResult",
    "Role",
    "SampleStatus",
    "TrainingExample",
    "ValidationResult",
    "VersionStatus",
]
