from collections.abc import Mapping, Sequence
from typing import TypedDict

from ..models.prediction import IntentScore


class PredictionState(TypedDict):
    """State that flows through the LangGraph prediction workflow."""

    # Input fields
    text: str
    workspace_id: str
    user_id: str | None
    model_id: str
    intent_groups: Mapping[str, Sequence[str]]
    enqueue_uncertain: bool

    # Classification results
    predicted_intent: str | None
    confidence: float | None
    alternatives: list[IntentScore] | None

    # Uncertainty
    uncertainty_score: float | None
    is_uncertain: bool | None

    # Active learning
    queued_sample_id: str | None

    # Workflow control
    error: str | None
