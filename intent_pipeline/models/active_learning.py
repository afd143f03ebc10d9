"""Active learning sample types and the priority scale."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from ..config import PRIORITY_THRESHOLDS


class SampleStatus(str, Enum):
    """Annotation lifecycle of a queued sample."""

    PENDING = "pending"
    REVIEWED = "reviewed"
    ANNOTATED = "annotated"
    RETRAINED = "retrained"

    @property
    def is_open(self) -> bool:
        """Open samples block duplicate enqueues of the same text."""
        return self in (SampleStatus.PENDING, SampleStatus.REVIEWED)


class Priority(str, Enum):
    """Review priority, ordered urgent first."""

    URGENT = "urgent"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]

    @classmethod
    def from_uncertainty(cls, uncertainty_score: float) -> "Priority":
        """Map an uncertainty score onto a review priority."""
        if uncertainty_score > PRIORITY_THRESHOLDS["urgent"]:
            return cls.URGENT
        if uncertainty_score > PRIORITY_THRESHOLDS["high"]:
            return cls.HIGH
        if uncertainty_score < PRIORITY_THRESHOLDS["low"]:
            return cls.LOW
        return cls.MEDIUM

    @classmethod
    def from_string(cls, value: "str | Priority | None") -> "Priority | None":
        """Create Priority from string value."""
        if value is None or value == "":
            return None
        if isinstance(value, Priority):
            return value
        try:
            return cls(value.lower())
        except ValueError:
            return None


_PRIORITY_RANK = {
    Priority.URGENT: 0,
    Priority.HIGH: 1,
    Priority.MEDIUM: 2,
    Priority.LOW: 3,
}


@dataclass
class ActiveLearningSample:
    """A low-confidence prediction awaiting human annotation."""

    user_id: str
    workspace_id: str
    text: str
    predicted_intent: str
    confidence: float
    uncertainty_score: float
    id: str = field(default_factory=lambda: str(uuid4()))
    status: SampleStatus = SampleStatus.PENDING
    priority: Priority = Priority.MEDIUM
    correct_intent: str | None = None
    annotation_notes: str = ""
    reviewed_by: str | None = None
    reviewed_at: datetime | None = None
    is_retrained: bool = False
    retrained_at: datetime | None = None
    created_at: datetime = field(default_factory=datetime.now)

    def sort_key(self) -> tuple[int, float, float]:
        """Queue order: priority rank, then most uncertain, then newest."""
        return (
            self.priority.rank,
            -self.uncertainty_score,
            -self.created_at.timestamp(),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert sample to dictionary for serialization."""
        return {
            "id": self.id,
            "userId": self.user_id,
            "workspaceId": self.workspace_id,
            "text": self.text,
            "predictedIntent": self.predicted_intent,
            "confidence": self.confidence,
            "uncertaintyScore": self.uncertainty_score,
            "status": self.status.value,
            "priority": self.priority.value,
            "correctIntent": self.correct_intent,
            "annotationNotes": self.annotation_notes,
            "reviewedBy": self.reviewed_by,
            "reviewedAt": self.reviewed_at.isoformat() if self.reviewed_at else None,
            "isRetrained": self.is_retrained,
            "retrainedAt": self.retrained_at.isoformat() if self.retrained_at else None,
            "createdAt": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class AnnotationOutcome:
    """Per-item result of a batch annotation."""

    sample_id: str
    success: bool
    sample: ActiveLearningSample | None = None
    error: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"sampleId": self.sample_id, "success": self.success}
        if self.error is not None:
            data["error"] = self.error["error"]
            data["errorType"] = self.error["errorType"]
        return data
