"""Normalization of raw labeled records into canonical training examples.

Raw uploads name their fields inconsistently (``text``/``utterance``,
``intent``/``label``/``class`` and capitalised variants). Everything past this
module sees only :class:`TrainingExample`.
"""

import logging
from collections.abc import Sequence
from typing import Any

from ..config import INTENT_FIELDS, TEXT_FIELDS
from ..exceptions import NoTrainingDataError, ValidationError
from ..models.evaluation import ItemError, ValidationResult
from ..models.training import TrainingExample

logger = logging.getLogger(__name__)


def _first_string(item: dict[str, Any], fields: list[str]) -> str | None:
    for name in fields:
        value = item.get(name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def extract_label(item: Any) -> str | None:
    """Return the intent/label of a raw record, if it has one."""
    if isinstance(item, TrainingExample):
        return item.intent
    if not isinstance(item, dict):
        return None
    return _first_string(item, INTENT_FIELDS)


def item_errors(index: int, item: Any) -> list[ItemError]:
    """List the problems that keep a raw record from becoming an example."""
    if isinstance(item, TrainingExample):
        return []
    if not isinstance(item, dict):
        return [ItemError(index, "item", "Must be an object")]

    errors = []
    if _first_string(item, TEXT_FIELDS) is None:
        errors.append(
            ItemError(
                index,
                "text",
                f"Missing or invalid text field (expected one of: {', '.join(TEXT_FIELDS)})",
            )
        )
    if _first_string(item, INTENT_FIELDS) is None:
        errors.append(
            ItemError(
                index,
                "intent",
                f"Missing intent field (expected one of: {', '.join(INTENT_FIELDS)})",
            )
        )
    return errors


def normalize_record(item: Any, index: int = 0) -> TrainingExample:
    """Convert one raw record into a canonical example.

    Raises:
        ValidationError: if the record has no usable text or intent

    """
    if isinstance(item, TrainingExample):
        return item

    errors = item_errors(index, item)
    if errors:
        raise ValidationError("; ".join(str(e) for e in errors), errors)

    return TrainingExample(
        text=_first_string(item, TEXT_FIELDS) or "",
        intent=_first_string(item, INTENT_FIELDS) or "",
    )


def validate_training_data(items: Any) -> ValidationResult:
    """Validate a batch of raw labeled records without raising.

    Args:
        items: Decoded JSON payload, expected to be a list of objects

    Returns:
        ValidationResult with per-item errors and aggregate stats

    """
    if not isinstance(items, Sequence) or isinstance(items, (str, bytes)):
        return ValidationResult(
            is_valid=False,
            errors=[ItemError(-1, "data", "Data must be an array")],
        )

    if len(items) == 0:
        return ValidationResult(
            is_valid=False,
            errors=[ItemError(-1, "data", "Data array cannot be empty")],
            stats={"totalItems": 0, "validItems": 0, "uniqueLabels": 0},
        )

    errors: list[ItemError] = []
    valid_items = 0
    for index, item in enumerate(items):
        problems = item_errors(index, item)
        errors.extend(problems)
        if not problems:
            valid_items += 1

    labels = {label for label in (extract_label(item) for item in items) if label}

    return ValidationResult(
        is_valid=not errors,
        errors=errors,
        stats={
            "totalItems": len(items),
            "validItems": valid_items,
            "uniqueLabels": len(labels),
        },
    )


def normalize_dataset(items: Sequence[Any]) -> list[TrainingExample]:
    """Normalize a batch of raw records, skipping unusable ones.

    Raises:
        NoTrainingDataError: if no record survives normalization

    """
    examples = []
    for index, item in enumerate(items or []):
        try:
            examples.append(normalize_record(item, index))
        except ValidationError as e:
            logger.warning(f"Skipping item {index}: {e}")

    if not examples:
        raise NoTrainingDataError("No valid training examples found in data")

    return examples
