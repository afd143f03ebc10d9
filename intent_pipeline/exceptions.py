"""Custom exceptions for the intent classification pipeline."""

from typing import Any


class IntentPipelineError(Exception):
    """Base exception for the intent classification pipeline."""

    pass


class ValidationError(IntentPipelineError):
    """Raised when input is malformed or missing required fields."""

    def __init__(self, message: str, errors: list[Any] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class NotFoundError(IntentPipelineError):
    """Raised when a referenced record does not exist."""

    pass


class VersionNotFoundError(NotFoundError):
    """Raised when a model version id is unknown."""

    pass


class SampleNotFoundError(NotFoundError):
    """Raised when an active learning sample id is unknown."""

    pass


class EvaluationNotFoundError(NotFoundError):
    """Raised when an evaluation id is unknown."""

    pass


class FeedbackNotFoundError(NotFoundError):
    """Raised when a feedback id is unknown."""

    pass


class DatasetNotFoundError(NotFoundError):
    """Raised when a workspace has no training dataset."""

    pass


class PermissionDeniedError(IntentPipelineError):
    """Raised when a role or ownership check fails."""

    pass


class NoTrainingDataError(IntentPipelineError):
    """Raised when the classifier has nothing to classify against."""

    pass


class InsufficientDataError(IntentPipelineError):
    """Raised when an operation needs more data than it was given."""

    pass


class InsufficientVersionsError(InsufficientDataError):
    """Raised when fewer than two known versions are compared."""

    pass


class InsufficientEvaluationsError(InsufficientDataError):
    """Raised when fewer than two known evaluations are compared."""

    pass


class ConflictError(IntentPipelineError):
    """Raised when a write collides with existing state."""

    pass


class InternalError(IntentPipelineError):
    """Raised when an unexpected failure occurs; wraps the original cause."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class EvaluationFailedError(InternalError):
    """Raised when an evaluation run cannot complete."""

    pass
