"""Evaluation result types: metrics, confusion matrix and comparisons."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class ClassMetrics:
    """Precision, recall and F1 for a single intent."""

    precision: float
    recall: float
    f1: float

    def to_dict(self) -> dict[str, float]:
        return {"precision": self.precision, "recall": self.recall, "f1": self.f1}


@dataclass(frozen=True)
class EvaluationMetrics:
    """Accuracy plus per-class and macro-averaged scores."""

    accuracy: float
    macro_precision: float
    macro_recall: float
    macro_f1: float
    per_class: dict[str, ClassMetrics] = field(default_factory=dict)
    total_predictions: int = 0
    correct_predictions: int = 0

    @property
    def f1_score(self) -> float:
        return self.macro_f1

    def to_dict(self) -> dict[str, Any]:
        return {
            "accuracy": self.accuracy,
            "macroPrecision": self.macro_precision,
            "macroRecall": self.macro_recall,
            "macroF1": self.macro_f1,
            "f1Score": self.macro_f1,
            "perClass": {label: m.to_dict() for label, m in self.per_class.items()},
            "totalPredictions": self.total_predictions,
            "correctPredictions": self.correct_predictions,
        }


@dataclass(frozen=True)
class ConfusionMatrix:
    """Square true-label x predicted-label count table."""

    labels: list[str]
    counts: dict[str, dict[str, int]]

    @property
    def total_samples(self) -> int:
        return sum(sum(row.values()) for row in self.counts.values())

    def row_total(self, true_label: str) -> int:
        """Number of items whose true label is ``true_label``."""
        return sum(self.counts.get(true_label, {}).values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "labels": list(self.labels),
            "counts": {t: dict(row) for t, row in self.counts.items()},
            "totalSamples": self.total_samples,
        }


@dataclass(frozen=True)
class EvaluatedPrediction:
    """One test item with its true and predicted label."""

    text: str
    true_label: str
    predicted_label: str
    confidence: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "trueLabel": self.true_label,
            "predictedLabel": self.predicted_label,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class EvaluationResult:
    """Immutable outcome of one evaluation run."""

    id: str
    workspace_id: str
    model_id: str
    test_data_size: int
    metrics: EvaluationMetrics
    confusion_matrix: ConfusionMatrix
    sample_predictions: list[EvaluatedPrediction] = field(default_factory=list)
    timestamp: datetime = field(default_factory=datetime.now)
    holdout_ratio: float | None = None

    def summary(self) -> dict[str, Any]:
        """Short form used in listings and comparisons."""
        return {
            "id": self.id,
            "modelId": self.model_id,
            "timestamp": self.timestamp.isoformat(),
            "metrics": self.metrics.to_dict(),
            "testDataSize": self.test_data_size,
        }

    def to_dict(self) -> dict[str, Any]:
        """Full self-contained export document."""
        data = {
            "evaluationId": self.id,
            "workspaceId": self.workspace_id,
            "modelId": self.model_id,
            "timestamp": self.timestamp.isoformat(),
            "metrics": self.metrics.to_dict(),
            "confusionMatrix": self.confusion_matrix.to_dict(),
            "testDataSize": self.test_data_size,
            "samplePredictions": [p.to_dict() for p in self.sample_predictions],
        }
        if self.holdout_ratio is not None:
            data["holdoutRatio"] = self.holdout_ratio
        return data


@dataclass(frozen=True)
class ItemError:
    """A validation problem attached to one input item."""

    index: int
    field: str
    message: str

    def __str__(self) -> str:
        if self.index < 0:
            return self.message
        return f"Item {self.index}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {"index": self.index, "field": self.field, "message": self.message}


@dataclass(frozen=True)
class ValidationResult:
    """Structured outcome of validating a batch of labeled items."""

    is_valid: bool
    errors: list[ItemError] = field(default_factory=list)
    stats: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "errors": [str(e) for e in self.errors],
            "stats": dict(self.stats),
        }


@dataclass(frozen=True)
class EvaluationComparison:
    """Side-by-side view of two or more evaluations."""

    evaluations: list[EvaluationResult]
    best_accuracy: EvaluationResult
    best_f1: EvaluationResult
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "evaluations": [e.summary() for e in self.evaluations],
            "bestAccuracy": self.best_accuracy.summary(),
            "bestF1Score": self.best_f1.summary(),
        }
