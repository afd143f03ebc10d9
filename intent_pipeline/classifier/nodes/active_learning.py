import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from ...exceptions import IntentPipelineError
from ...models.prediction import PredictionResult
from ..state import PredictionState

if TYPE_CHECKING:
    from ...processing.active_learning_queue import ActiveLearningQueue

logger = logging.getLogger(__name__)


def should_enqueue(state: PredictionState) -> str:
    """Route uncertain predictions with a known requester to the review queue."""
    if state.get("enqueue_uncertain") and state.get("is_uncertain") and state.get("user_id"):
        return "enqueue"
    return "end"


def make_enqueue_node(
    queue: "ActiveLearningQueue",
) -> Callable[[PredictionState], dict]:
    """Build the node that hands uncertain predictions to ``queue``."""

    def enqueue_uncertain(state: PredictionState) -> dict:
        prediction = PredictionResult(
            text=state["text"],
            predicted_intent=state["predicted_intent"] or "",
            confidence=state["confidence"] or 0.0,
            uncertainty_score=state["uncertainty_score"] or 0.0,
            is_uncertain=bool(state["is_uncertain"]),
            workspace_id=state["workspace_id"],
            model_id=state["model_id"],
            alternatives=list(state["alternatives"] or []),
        )
        try:
            sample = queue.enqueue(prediction, state["user_id"] or "")
        except IntentPipelineError as e:
            # The prediction itself still stands
            logger.error(f"Failed to add sample to active learning queue: {e}")
            return {"error": str(e)}
        return {"queued_sample_id": sample.id}

    return enqueue_uncertain
