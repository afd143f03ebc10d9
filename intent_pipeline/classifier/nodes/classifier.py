import logging

from ...config import CONFIDENCE_FLOOR, MAX_ALTERNATIVES
from ..similarity import classify_text
from ..state import PredictionState

logger = logging.getLogger(__name__)


def classify_intent(
    state: PredictionState,
    confidence_floor: float = CONFIDENCE_FLOOR,
    max_alternatives: int = MAX_ALTERNATIVES,
) -> dict:
    """Classify the utterance against the workspace's grouped examples.

    Args:
        state: Current prediction state with ``intent_groups`` loaded
        confidence_floor: Minimum reported confidence
        max_alternatives: Number of runner-up intents to keep

    Returns:
        Updated state fields with intent, confidence and alternatives

    """
    result = classify_text(
        state["text"],
        state["intent_groups"],
        confidence_floor=confidence_floor,
        max_alternatives=max_alternatives,
    )

    logger.debug(
        f"Classified '{state['text']}' as {result.intent} "
        f"({result.confidence:.1%}); alternatives: "
        f"{[(a.intent, round(a.confidence, 3)) for a in result.alternatives]}"
    )

    return {
        "predicted_intent": result.intent,
        "confidence": result.confidence,
        "alternatives": result.alternatives,
    }
