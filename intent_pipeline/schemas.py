"""Pydantic payloads validated at the boundary of the core API."""

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .config import ANNOTATION_NOTES_MAX_LENGTH, FEEDBACK_TEXT_MAX_LENGTH
from .exceptions import ValidationError
from .models.active_learning import Priority
from .models.feedback import FeedbackStatus, FeedbackType

PayloadT = TypeVar("PayloadT", bound=BaseModel)


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class ModelVersionPayload(_Payload):
    """Model data captured in a registry snapshot."""

    model_id: str = Field(alias="modelId", min_length=1)
    intents: list[str] = Field(default_factory=list)
    training_examples: int = Field(default=0, alias="trainingExamples", ge=0)
    training_data_sample: list[Any] = Field(default_factory=list, alias="trainingDataSample")
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    created_by: str = Field(default="system", alias="createdBy")


class MetadataUpdate(_Payload):
    """Mutable snapshot metadata."""

    description: str | None = None
    tags: list[str] | None = None


class FeedbackSubmission(_Payload):
    """A user's correction of a predicted intent."""

    workspace_id: str = Field(alias="workspaceId", min_length=1)
    original_text: str = Field(alias="originalText", min_length=1)
    original_intent: str = Field(alias="originalIntent", min_length=1)
    original_confidence: float = Field(alias="originalConfidence", ge=0.0, le=1.0)
    corrected_intent: str = Field(alias="correctedIntent", min_length=1)
    feedback_type: FeedbackType = Field(default=FeedbackType.CORRECTION, alias="feedbackType")
    feedback_text: str = Field(
        default="", alias="feedbackText", max_length=FEEDBACK_TEXT_MAX_LENGTH
    )


class FeedbackReview(_Payload):
    """An admin's verdict on a feedback record."""

    status: FeedbackStatus
    notes: str | None = Field(default=None, max_length=FEEDBACK_TEXT_MAX_LENGTH)


class AnnotationRequest(_Payload):
    """A reviewer's label for a queued sample."""

    sample_id: str = Field(alias="sampleId", min_length=1)
    correct_intent: str = Field(alias="correctIntent", min_length=1)
    annotation_notes: str | None = Field(
        default=None, alias="annotationNotes", max_length=ANNOTATION_NOTES_MAX_LENGTH
    )
    priority: Priority | None = None


def parse_payload(model: type[PayloadT], data: Any) -> PayloadT:
    """Validate ``data`` into ``model``, raising the package's ValidationError.

    Raises:
        ValidationError: with one entry per failing field

    """
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        errors = [
            f"{'.'.join(str(part) for part in err['loc']) or 'payload'}: {err['msg']}"
            for err in e.errors()
        ]
        raise ValidationError(f"Invalid {model.__name__}: {'; '.join(errors)}", errors) from e
