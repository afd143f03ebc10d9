"""Prediction result types produced by the similarity classifier."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class IntentScore:
    """An intent paired with its similarity score."""

    intent: str
    confidence: float

    def to_dict(self) -> dict[str, Any]:
        return {"intent": self.intent, "confidence": self.confidence}


@dataclass(frozen=True)
class ClassificationResult:
    """Outcome of classifying one utterance against grouped examples."""

    intent: str
    confidence: float
    alternatives: list[IntentScore] = field(default_factory=list)


@dataclass(frozen=True)
class PredictionResult:
    """Classification plus uncertainty, scoped to a workspace model."""

    text: str
    predicted_intent: str
    confidence: float
    uncertainty_score: float
    is_uncertain: bool
    workspace_id: str
    model_id: str
    alternatives: list[IntentScore] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert prediction to the transport shape."""
        return {
            "text": self.text,
            "predictedIntent": self.predicted_intent,
            "confidence": self.confidence,
            "uncertaintyScore": self.uncertainty_score,
            "alternatives": [a.to_dict() for a in self.alternatives],
            "isUncertain": self.is_uncertain,
            "workspaceId": self.workspace_id,
            "modelId": self.model_id,
        }
