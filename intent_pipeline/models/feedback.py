"""Feedback data models for learning from user corrections."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import uuid4


class FeedbackType(str, Enum):
    """Kinds of feedback a user can submit."""

    CORRECTION = "correction"
    SUGGESTION = "suggestion"
    COMPLAINT = "complaint"


class FeedbackStatus(str, Enum):
    """Review state of a feedback record."""

    PENDING = "pending"
    REVIEWED = "reviewed"
    APPLIED = "applied"
    REJECTED = "rejected"


@dataclass
class FeedbackRecord:
    """Represents a single user correction to a predicted intent."""

    user_id: str
    workspace_id: str
    original_text: str
    original_intent: str
    corrected_intent: str
    original_confidence: float = 0.0
    feedback_type: FeedbackType = FeedbackType.CORRECTION
    feedback_text: str = ""
    id: str = field(default_factory=lambda: str(uuid4()))
    status: FeedbackStatus = FeedbackStatus.PENDING
    reviewed_by: str | None = None
    reviewed_at: datetime | None = None
    is_retrained: bool = False
    retrained_at: datetime | None = None
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        """Convert feedback to dictionary for serialization."""
        return {
            "id": self.id,
            "userId": self.user_id,
            "workspaceId": self.workspace_id,
            "originalText": self.original_text,
            "originalIntent": self.original_intent,
            "originalConfidence": self.original_confidence,
            "correctedIntent": self.corrected_intent,
            "feedbackType": self.feedback_type.value,
            "feedbackText": self.feedback_text,
            "status": self.status.value,
            "reviewedBy": self.reviewed_by,
            "reviewedAt": self.reviewed_at.isoformat() if self.reviewed_at else None,
            "isRetrained": self.is_retrained,
            "retrainedAt": self.retrained_at.isoformat() if self.retrained_at else None,
            "createdAt": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class IntentSuggestion:
    """A corrected intent proposed by past reviewed feedback."""

    intent: str
    count: int
    confidence: float
    examples: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "intent": self.intent,
            "count": self.count,
            "confidence": self.confidence,
            "examples": list(self.examples),
        }


@dataclass(frozen=True)
class RetrainResult:
    """Outcome of merging one correction into a workspace dataset."""

    text: str
    correct_intent: str
    added: bool
    total_examples: int
    unique_intents: int
    retrained_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "text": self.text,
            "correctIntent": self.correct_intent,
            "added": self.added,
            "totalExamples": self.total_examples,
            "uniqueIntents": self.unique_intents,
            "retrainedAt": self.retrained_at.isoformat(),
        }
