"""Configuration settings for the intent classification pipeline."""

import logging
import os
from dataclasses import dataclass

from .exceptions import ValidationError

logger = logging.getLogger(__name__)

# Classification thresholds
UNCERTAINTY_THRESHOLD = 0.8  # Above this, route to active learning
CONFIDENCE_FLOOR = 0.1  # Minimum reported confidence
MAX_ALTERNATIVES = 3

# Active learning priority cut-offs on the uncertainty score
PRIORITY_THRESHOLDS: dict[str, float] = {
    "urgent": 0.8,  # strictly above
    "high": 0.6,  # strictly above
    "low": 0.3,  # strictly below
}

# Evaluation
SAMPLE_PREDICTION_LIMIT = 10
DEFAULT_HOLDOUT_RATIO = 0.2

# Model versioning
TRAINING_SAMPLE_SIZE = 5

# Human review limits
ANNOTATION_NOTES_MAX_LENGTH = 500
FEEDBACK_TEXT_MAX_LENGTH = 500
SUGGESTION_LIMIT = 10
DEFAULT_PAGE_SIZE = 10

# Accepted field names at the dataset boundary
TEXT_FIELDS = ["text", "Text", "utterance", "Utterance", "message", "Message"]
INTENT_FIELDS = ["intent", "Intent", "label", "Label", "class", "Class"]

# Logging configuration
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_LEVEL = "INFO"


def _read_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ValidationError(f"{name} must be a number, got {raw!r}") from e
    if not 0.0 <= value <= 1.0:
        raise ValidationError(f"{name} must be between 0 and 1, got {value}")
    return value


@dataclass(frozen=True)
class PipelineSettings:
    """Runtime settings shared by the pipeline components."""

    uncertainty_threshold: float = UNCERTAINTY_THRESHOLD
    confidence_floor: float = CONFIDENCE_FLOOR
    max_alternatives: int = MAX_ALTERNATIVES
    sample_prediction_limit: int = SAMPLE_PREDICTION_LIMIT
    training_sample_size: int = TRAINING_SAMPLE_SIZE
    holdout_ratio: float = DEFAULT_HOLDOUT_RATIO
    log_level: str = LOG_LEVEL

    @classmethod
    def from_env(cls) -> "PipelineSettings":
        """Build settings from ``INTENT_*`` environment variables.

        Call ``load_dotenv()`` first if values live in a ``.env`` file.
        """
        settings = cls(
            uncertainty_threshold=_read_float(
                "INTENT_UNCERTAINTY_THRESHOLD", UNCERTAINTY_THRESHOLD
            ),
            confidence_floor=_read_float("INTENT_CONFIDENCE_FLOOR", CONFIDENCE_FLOOR),
            holdout_ratio=_read_float("INTENT_HOLDOUT_RATIO", DEFAULT_HOLDOUT_RATIO),
            log_level=os.getenv("INTENT_LOG_LEVEL", LOG_LEVEL).upper(),
        )
        logger.debug(f"Loaded pipeline settings: {settings}")
        return settings
