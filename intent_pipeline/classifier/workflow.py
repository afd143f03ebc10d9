from functools import partial
from typing import TYPE_CHECKING, Any, cast

from langgraph.graph import StateGraph
from langgraph.graph.state import CompiledStateGraph

from ..config import PipelineSettings
from .nodes.active_learning import make_enqueue_node, should_enqueue
from .nodes.classifier import classify_intent
from .nodes.uncertainty import score_uncertainty
from .state import PredictionState

if TYPE_CHECKING:
    from ..processing.active_learning_queue import ActiveLearningQueue


def get_compiled_workflow(
    settings: PipelineSettings | None = None,
    queue: "ActiveLearningQueue | None" = None,
) -> CompiledStateGraph:
    """Build and compile the prediction workflow.

    Args:
        settings: Thresholds used by the classification nodes
        queue: Active learning queue for uncertain predictions; without one
            the workflow ends after scoring

    Returns:
        Compiled LangGraph workflow

    """
    settings = settings or PipelineSettings()
    workflow = StateGraph(PredictionState)

    # Add nodes
    workflow.add_node(
        "classify",
        partial(
            classify_intent,
            confidence_floor=settings.confidence_floor,
            max_alternatives=settings.max_alternatives,
        ),
    )
    workflow.add_node(
        "score_uncertainty",
        partial(score_uncertainty, threshold=settings.uncertainty_threshold),
    )

    workflow.set_entry_point("classify")
    workflow.add_edge("classify", "score_uncertainty")

    if queue is None:
        workflow.set_finish_point("score_uncertainty")
        return workflow.compile()

    workflow.add_node("enqueue", make_enqueue_node(queue))

    # Only uncertain predictions with a known requester reach the queue
    workflow.add_conditional_edges(
        "score_uncertainty",
        should_enqueue,
        {
            "enqueue": "enqueue",
            "end": "__end__",
        },
    )
    workflow.set_finish_point("enqueue")

    return workflow.compile()


def create_initial_state(
    text: str,
    workspace_id: str,
    model_id: str,
    intent_groups: Any,
    user_id: str | None = None,
    enqueue_uncertain: bool = True,
) -> PredictionState:
    """Create initial state for one prediction."""
    return {
        "text": text,
        "workspace_id": workspace_id,
        "user_id": user_id,
        "model_id": model_id,
        "intent_groups": intent_groups,
        "enqueue_uncertain": enqueue_uncertain,
        "predicted_intent": None,
        "confidence": None,
        "alternatives": None,
        "uncertainty_score": None,
        "is_uncertain": None,
        "queued_sample_id": None,
        "error": None,
    }


def run_prediction(app: CompiledStateGraph, state: PredictionState) -> PredictionState:
    """Run one prediction through a compiled workflow."""
    return cast(PredictionState, app.invoke(state))
