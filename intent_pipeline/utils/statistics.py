"""Utility functions for calculating classification quality statistics."""

from collections.abc import Sequence

import numpy as np

from ..models.evaluation import ClassMetrics, ConfusionMatrix, EvaluationMetrics


def _safe_ratio(numerator: np.ndarray, denominator: np.ndarray) -> np.ndarray:
    """Element-wise division that yields 0 wherever the denominator is 0."""
    out = np.zeros(numerator.shape, dtype=float)
    np.divide(numerator, denominator, out=out, where=denominator > 0)
    return out


def _ordered_labels(true_labels: Sequence[str], predicted_labels: Sequence[str]) -> list[str]:
    """Union of labels in first-encountered order, true labels first."""
    return list(dict.fromkeys([*true_labels, *predicted_labels]))


def build_confusion_counts(
    true_labels: Sequence[str],
    predicted_labels: Sequence[str],
    labels: list[str],
) -> np.ndarray:
    """Count (true, predicted) pairs into a square matrix indexed by ``labels``."""
    index = {label: i for i, label in enumerate(labels)}
    matrix = np.zeros((len(labels), len(labels)), dtype=int)
    if true_labels:
        rows = np.array([index[t] for t in true_labels])
        cols = np.array([index[p] for p in predicted_labels])
        np.add.at(matrix, (rows, cols), 1)
    return matrix


def calculate_confusion_matrix(
    true_labels: Sequence[str],
    predicted_labels: Sequence[str],
) -> ConfusionMatrix:
    """Build a confusion matrix over the sorted union of labels.

    Args:
        true_labels: Ground-truth labels, one per test item
        predicted_labels: Predicted labels in the same order

    Returns:
        ConfusionMatrix whose cell [true][pred] counts matching items

    """
    labels = sorted(set(true_labels) | set(predicted_labels))
    matrix = build_confusion_counts(true_labels, predicted_labels, labels)

    counts = {
        true_label: {
            pred_label: int(matrix[i, j]) for j, pred_label in enumerate(labels)
        }
        for i, true_label in enumerate(labels)
    }
    return ConfusionMatrix(labels=labels, counts=counts)


def calculate_classification_metrics(
    true_labels: Sequence[str],
    predicted_labels: Sequence[str],
) -> EvaluationMetrics:
    """Calculate accuracy plus per-class and macro precision/recall/F1.

    Labels that never occur as a true positive, false positive or false
    negative are left out of the macro averages.

    Args:
        true_labels: Ground-truth labels, one per test item
        predicted_labels: Predicted labels in the same order

    Returns:
        EvaluationMetrics for the batch

    """
    if len(true_labels) != len(predicted_labels):
        raise ValueError("true_labels and predicted_labels must have the same length")

    total = len(true_labels)
    if total == 0:
        return EvaluationMetrics(
            accuracy=0.0, macro_precision=0.0, macro_recall=0.0, macro_f1=0.0
        )

    labels = _ordered_labels(true_labels, predicted_labels)
    matrix = build_confusion_counts(true_labels, predicted_labels, labels)

    tp = np.diag(matrix).astype(float)
    fp = matrix.sum(axis=0) - tp
    fn = matrix.sum(axis=1) - tp

    precision = _safe_ratio(tp, tp + fp)
    recall = _safe_ratio(tp, tp + fn)
    f1 = _safe_ratio(2 * precision * recall, precision + recall)

    supported = (tp + fp + fn) > 0
    if supported.any():
        macro_precision = float(precision[supported].mean())
        macro_recall = float(recall[supported].mean())
        macro_f1 = float(f1[supported].mean())
    else:
        macro_precision = macro_recall = macro_f1 = 0.0

    correct = int(tp.sum())
    per_class = {
        label: ClassMetrics(
            precision=float(precision[i]), recall=float(recall[i]), f1=float(f1[i])
        )
        for i, label in enumerate(labels)
    }

    return EvaluationMetrics(
        accuracy=correct / total,
        macro_precision=macro_precision,
        macro_recall=macro_recall,
        macro_f1=macro_f1,
        per_class=per_class,
        total_predictions=total,
        correct_predictions=correct,
    )
