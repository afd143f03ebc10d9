"""Batch evaluation of the similarity classifier against labeled test data."""

import logging
import math
import random
import threading
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from ..config import PipelineSettings
from ..exceptions import (
    EvaluationFailedError,
    EvaluationNotFoundError,
    InsufficientDataError,
    InsufficientEvaluationsError,
    ValidationError,
)
from ..models.evaluation import (
    EvaluatedPrediction,
    EvaluationComparison,
    EvaluationResult,
    ValidationResult,
)
from ..utils.ingestion import normalize_record, validate_training_data
from ..utils.statistics import calculate_classification_metrics, calculate_confusion_matrix

if TYPE_CHECKING:
    from ..classifier.service import IntentClassifier

logger = logging.getLogger(__name__)


class EvaluationEngine:
    """Runs the classifier over labeled data and keeps the results by id."""

    def __init__(
        self,
        classifier: "IntentClassifier",
        settings: PipelineSettings | None = None,
    ) -> None:
        self.settings = settings or PipelineSettings()
        self._classifier = classifier
        self._results: dict[str, EvaluationResult] = {}
        self._lock = threading.Lock()

    def validate(self, test_data: Any) -> ValidationResult:
        """Check that every item has text and an intent/label; never raises.

        Returns:
            ValidationResult with per-item errors and ``totalItems`` /
            ``uniqueLabels`` stats

        """
        result = validate_training_data(test_data)
        stats = {
            "totalItems": result.stats.get("totalItems", 0),
            "uniqueLabels": result.stats.get("uniqueLabels", 0),
        }
        return ValidationResult(is_valid=result.is_valid, errors=result.errors, stats=stats)

    def evaluate(
        self,
        test_data: Sequence[Any],
        workspace_id: str,
        model_id: str,
        holdout_ratio: float | None = None,
    ) -> EvaluationResult:
        """Evaluate the workspace's classifier on labeled test data.

        Predictions made here never reach the active learning queue.

        Args:
            test_data: Items with a text field and an intent/label field
            workspace_id: Workspace whose classifier to evaluate
            model_id: Model identifier recorded on the result
            holdout_ratio: Recorded on the result for holdout runs

        Returns:
            The stored EvaluationResult

        Raises:
            ValidationError: if the test data is malformed
            NoTrainingDataError: if the workspace has no trained model; raised
                before any item is predicted and never wrapped in EvaluationFailedError
            EvaluationFailedError: wrapping the first failure while predicting

        """
        logger.info(f"Evaluating model {model_id} for workspace {workspace_id}")

        validation = self.validate(test_data)
        if not validation.is_valid:
            raise ValidationError(
                f"Invalid test data: {', '.join(str(e) for e in validation.errors)}",
                validation.errors,
            )

        examples = [normalize_record(item, i) for i, item in enumerate(test_data)]
        self._classifier.get_model(workspace_id)

        predictions: list[EvaluatedPrediction] = []
        for example in examples:
            try:
                prediction = self._classifier.predict(
                    example.text, workspace_id, enqueue=False
                )
            except Exception as e:
                logger.error(f"Model evaluation failed on '{example.text}': {e}")
                raise EvaluationFailedError(f"Evaluation failed: {e}", cause=e) from e
            predictions.append(
                EvaluatedPrediction(
                    text=example.text,
                    true_label=example.intent,
                    predicted_label=prediction.predicted_intent,
                    confidence=prediction.confidence,
                )
            )

        true_labels = [p.true_label for p in predictions]
        predicted_labels = [p.predicted_label for p in predictions]

        result = EvaluationResult(
            id=f"eval_{workspace_id}_{model_id}_{uuid4().hex[:8]}",
            workspace_id=workspace_id,
            model_id=model_id,
            test_data_size=len(examples),
            metrics=calculate_classification_metrics(true_labels, predicted_labels),
            confusion_matrix=calculate_confusion_matrix(true_labels, predicted_labels),
            sample_predictions=predictions[: self.settings.sample_prediction_limit],
            holdout_ratio=holdout_ratio,
        )

        with self._lock:
            self._results[result.id] = result

        logger.info(
            f"Evaluation completed: {result.id} - accuracy {result.metrics.accuracy:.2%}, "
            f"F1 {result.metrics.macro_f1:.2%}"
        )
        return result

    def evaluate_holdout(
        self,
        workspace_id: str,
        holdout_ratio: float | None = None,
        seed: int | None = None,
    ) -> EvaluationResult:
        """Evaluate on a shuffled slice of the workspace's own training data.

        Args:
            workspace_id: Workspace to evaluate
            holdout_ratio: Fraction of examples to hold out (0 < ratio <= 1)
            seed: Seed for the shuffle; pass one for reproducible splits

        Raises:
            NoTrainingDataError: if the workspace has no trained model
            InsufficientDataError: if fewer than two examples exist

        """
        ratio = self.settings.holdout_ratio if holdout_ratio is None else holdout_ratio
        if not 0 < ratio <= 1:
            raise ValidationError(f"holdoutRatio must be in (0, 1], got {ratio}")

        model = self._classifier.get_model(workspace_id)
        data = list(model.training_data)
        if len(data) < 2:
            raise InsufficientDataError("Insufficient training data for holdout evaluation")

        random.Random(seed).shuffle(data)
        holdout_size = max(1, math.floor(len(data) * ratio))
        logger.info(
            f"Holdout evaluation for {workspace_id}: {holdout_size} of {len(data)} examples"
        )
        return self.evaluate(
            data[:holdout_size], workspace_id, model.model_id, holdout_ratio=ratio
        )

    def get_evaluation(self, evaluation_id: str) -> EvaluationResult | None:
        """Get a stored evaluation by id"""
        return self._results.get(evaluation_id)

    def require_evaluation(self, evaluation_id: str) -> EvaluationResult:
        result = self._results.get(evaluation_id)
        if result is None:
            raise EvaluationNotFoundError(f"Evaluation not found: {evaluation_id}")
        return result

    def list_evaluations(self, workspace_id: str) -> list[EvaluationResult]:
        """List a workspace's evaluations, newest first"""
        with self._lock:
            results = [r for r in self._results.values() if r.workspace_id == workspace_id]
        return sorted(results, key=lambda r: r.timestamp, reverse=True)

    def compare(self, evaluation_ids: list[str]) -> EvaluationComparison:
        """Compare two or more known evaluations.

        Unknown ids are ignored. Ties for best accuracy or F1 go to the
        first evaluation encountered.

        Raises:
            InsufficientEvaluationsError: if fewer than two ids are known

        """
        evaluations = [self._results[e] for e in evaluation_ids if e in self._results]
        if len(evaluations) < 2:
            raise InsufficientEvaluationsError(
                "At least 2 evaluations are required for comparison"
            )

        best_accuracy = evaluations[0]
        best_f1 = evaluations[0]
        for evaluation in evaluations[1:]:
            if evaluation.metrics.accuracy > best_accuracy.metrics.accuracy:
                best_accuracy = evaluation
            if evaluation.metrics.macro_f1 > best_f1.metrics.macro_f1:
                best_f1 = evaluation

        return EvaluationComparison(
            evaluations=evaluations, best_accuracy=best_accuracy, best_f1=best_f1
        )

    def export_evaluation(self, evaluation_id: str) -> dict[str, Any]:
        """Full export document for an evaluation"""
        return self.require_evaluation(evaluation_id).to_dict()

