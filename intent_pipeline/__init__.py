"""Intent Pipeline - similarity-based intent classification with evaluation,
model versioning and a human-in-the-loop review queue."""

from .config import CONFIDENCE_FLOOR, UNCERTAINTY_THRESHOLD, PipelineSettings
from .exceptions import (
    ConflictError,
    EvaluationFailedError,
    InsufficientDataError,
    IntentPipelineError,
    InternalError,
    NoTrainingDataError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from .pipeline import IntentPipeline

__version__ = "0.1.0"
__all__ = [
    "CONFIDENCE_FLOOR",
    "UNCERTAINTY_THRESHOLD",
    "ConflictError",
    "EvaluationFailedError",
    "InsufficientDataError",
    "IntentPipeline",
    "IntentPipelineError",
    "InternalError",
    "NoTrainingDataError",
    "NotFoundError",
    "PermissionDeniedError",
    "PipelineSettings",
    "ValidationError",
]
