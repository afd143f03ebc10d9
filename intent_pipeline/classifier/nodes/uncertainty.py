from ...config import UNCERTAINTY_THRESHOLD
from ..state import PredictionState


def score_uncertainty(
    state: PredictionState, threshold: float = UNCERTAINTY_THRESHOLD
) -> dict:
    """Derive the uncertainty score (1 - confidence) and the uncertain flag."""
    uncertainty_score = 1 - state["confidence"]
    return {
        "uncertainty_score": uncertainty_score,
        "is_uncertain": uncertainty_score > threshold,
    }
