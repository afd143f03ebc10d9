"""Lexical similarity classification over grouped training examples.

There are no learned weights: an utterance is scored against every stored
example with token-set Jaccard similarity and the intent of the best match
wins.
"""

from collections.abc import Iterable, Mapping, Sequence

from ..config import CONFIDENCE_FLOOR, MAX_ALTERNATIVES
from ..exceptions import NoTrainingDataError
from ..models.prediction import ClassificationResult, IntentScore
from ..models.training import TrainingExample


def tokenize(text: str) -> set[str]:
    """Split text on whitespace into a set of words."""
    return set(text.split())


def jaccard_similarity(text1: str, text2: str) -> float:
    """Token-set overlap |A & B| / |A | B|; 0.0 when both sides are empty."""
    words1 = tokenize(text1)
    words2 = tokenize(text2)
    union = words1 | words2
    if not union:
        return 0.0
    return len(words1 & words2) / len(union)


def group_examples(examples: Iterable[TrainingExample]) -> dict[str, list[str]]:
    """Group lower-cased example texts by intent, keeping first-seen intent order."""
    groups: dict[str, list[str]] = {}
    for example in examples:
        groups.setdefault(example.intent, []).append(example.text.lower())
    return groups


def score_intents(text: str, groups: Mapping[str, Sequence[str]]) -> list[IntentScore]:
    """Score each intent by its best-matching example, highest first.

    Ties keep the intents' insertion order.
    """
    text_lower = text.lower()
    scores = [
        IntentScore(
            intent=intent,
            confidence=max(
                (jaccard_similarity(text_lower, example) for example in examples),
                default=0.0,
            ),
        )
        for intent, examples in groups.items()
    ]
    return sorted(scores, key=lambda s: s.confidence, reverse=True)


def classify_text(
    text: str,
    groups: Mapping[str, Sequence[str]],
    confidence_floor: float = CONFIDENCE_FLOOR,
    max_alternatives: int = MAX_ALTERNATIVES,
) -> ClassificationResult:
    """Pick the best intent for ``text``.

    The reported confidence never drops below ``confidence_floor``; the
    alternatives keep their raw scores.

    Raises:
        NoTrainingDataError: if there are no intent groups to compare against

    """
    if not groups:
        raise NoTrainingDataError("No training examples with an intent to classify against")

    ranked = score_intents(text, groups)
    best = ranked[0]
    return ClassificationResult(
        intent=best.intent,
        confidence=max(confidence_floor, best.confidence),
        alternatives=ranked[1 : 1 + max_alternatives],
    )
