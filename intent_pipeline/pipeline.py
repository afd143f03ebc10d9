"""
The intent pipeline core: one object wiring the stores and components.

All components share a single :class:`WorkspaceLocks`, so a dataset merge
and the cache invalidation it triggers serialize with predictions and
registry writes of the same workspace while other workspaces proceed.
"""

import logging
from collections.abc import Sequence
from typing import Any

from .classifier.service import IntentClassifier, TrainedModel
from .config import PipelineSettings
from .exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    SampleNotFoundError,
)
from .models.active_learning import ActiveLearningSample, AnnotationOutcome, SampleStatus
from .models.actor import Actor
from .models.evaluation import EvaluationComparison, EvaluationResult, ValidationResult
from .models.feedback import FeedbackRecord, IntentSuggestion, RetrainResult
from .models.model_version import ModelSnapshot
from .models.prediction import PredictionResult
from .processing.active_learning_queue import ActiveLearningQueue
from .processing.dataset_store import DatasetStore
from .processing.evaluation_engine import EvaluationEngine
from .processing.feedback_manager import FeedbackManager
from .processing.locks import WorkspaceLocks
from .processing.model_registry import ModelRegistry
from .utils.ingestion import extract_label

logger = logging.getLogger(__name__)


class IntentPipeline:
    """Train, predict, evaluate, version and learn from corrections."""

    def __init__(self, settings: PipelineSettings | None = None) -> None:
        self.settings = settings or PipelineSettings()
        self.locks = WorkspaceLocks()
        self.datasets = DatasetStore(self.locks)
        self.queue = ActiveLearningQueue(self.locks)
        self.classifier = IntentClassifier(
            self.datasets, queue=self.queue, settings=self.settings, locks=self.locks
        )
        self.evaluations = EvaluationEngine(self.classifier, self.settings)
        self.registry = ModelRegistry(self.locks, self.settings)
        self.feedback = FeedbackManager(self.datasets, self.classifier, self.locks)

    # Training and prediction

    def train(self, workspace_id: str, records: Sequence[Any], name: str = "") -> TrainedModel:
        return self.classifier.train(workspace_id, records, name=name)

    def predict(
        self, text: str, workspace_id: str, user_id: str | None = None
    ) -> PredictionResult:
        """Predict an intent; uncertain predictions are queued for ``user_id``."""
        return self.classifier.predict(text, workspace_id, user_id=user_id)

    def model_info(self, workspace_id: str) -> TrainedModel | None:
        return self.classifier.model_info(workspace_id)

    def list_models(self) -> list[TrainedModel]:
        return self.classifier.list_models()

    def delete_model(self, workspace_id: str) -> bool:
        return self.classifier.delete_model(workspace_id)

    def dataset_statistics(self, workspace_id: str) -> dict[str, Any]:
        return self.datasets.get_statistics(workspace_id)

    # Evaluation

    def validate_test_data(self, test_data: Any) -> ValidationResult:
        return self.evaluations.validate(test_data)

    def evaluate(
        self,
        test_data: Sequence[Any],
        workspace_id: str,
        model_id: str | None = None,
    ) -> EvaluationResult:
        """Evaluate a workspace's classifier; ``model_id`` defaults to the cached one."""
        if model_id is None:
            model_id = self.classifier.get_model(workspace_id).model_id
        return self.evaluations.evaluate(test_data, workspace_id, model_id)

    def evaluate_holdout(
        self,
        workspace_id: str,
        holdout_ratio: float | None = None,
        seed: int | None = None,
    ) -> EvaluationResult:
        return self.evaluations.evaluate_holdout(workspace_id, holdout_ratio, seed)

    def evaluate_and_version(
        self,
        test_data: Sequence[Any],
        workspace_id: str,
        model_id: str | None = None,
        description: str | None = None,
        created_by: str = "system",
    ) -> tuple[EvaluationResult, ModelSnapshot]:
        """Evaluate uploaded test data and record it as a new model version.

        Returns:
            The evaluation and the snapshot it was attached to

        """
        result = self.evaluate(test_data, workspace_id, model_id)
        labels = list(dict.fromkeys(label for label in map(extract_label, test_data) if label))
        snapshot = self.registry.create_version(
            workspace_id,
            {
                "modelId": result.model_id,
                "intents": labels,
                "trainingExamples": len(test_data),
                "trainingDataSample": list(test_data[: self.settings.training_sample_size]),
                "description": description or "Model evaluated with uploaded test data",
                "tags": ["evaluated"],
                "createdBy": created_by,
            },
            result,
        )
        return result, snapshot

    def get_evaluation(self, evaluation_id: str) -> EvaluationResult | None:
        return self.evaluations.get_evaluation(evaluation_id)

    def list_evaluations(self, workspace_id: str) -> list[EvaluationResult]:
        return self.evaluations.list_evaluations(workspace_id)

    def compare_evaluations(self, evaluation_ids: list[str]) -> EvaluationComparison:
        return self.evaluations.compare(evaluation_ids)

    def export_evaluation(self, evaluation_id: str) -> dict[str, Any]:
        return self.evaluations.export_evaluation(evaluation_id)

    # Model registry

    def create_model_version(
        self,
        workspace_id: str,
        model_data: dict[str, Any],
        evaluation_result: EvaluationResult | None = None,
    ) -> ModelSnapshot:
        return self.registry.create_version(workspace_id, model_data, evaluation_result)

    def create_version_from_model(
        self,
        workspace_id: str,
        model_id: str | None = None,
        description: str | None = None,
        tags: list[str] | None = None,
        evaluation_id: str | None = None,
        created_by: str = "system",
    ) -> ModelSnapshot:
        """Snapshot the workspace's current classifier state as a new version.

        Raises:
            NoTrainingDataError: if the workspace has no trained model
            NotFoundError: if ``model_id`` is not the workspace's current model
            EvaluationNotFoundError: if ``evaluation_id`` is unknown

        """
        model = self.classifier.get_model(workspace_id)
        if model_id and model_id != model.model_id:
            raise NotFoundError(f"Model not found: {model_id}")

        evaluation = (
            self.evaluations.require_evaluation(evaluation_id) if evaluation_id else None
        )
        return self.registry.create_version(
            workspace_id,
            {
                "modelId": model.model_id,
                "intents": model.intents,
                "trainingExamples": model.training_example_count,
                "trainingDataSample": list(
                    model.training_data[: self.settings.training_sample_size]
                ),
                "description": description,
                "tags": tags or [],
                "createdBy": created_by,
            },
            evaluation,
        )

    def get_active_version(self, workspace_id: str) -> ModelSnapshot | None:
        return self.registry.get_active_version(workspace_id)

    def list_versions(self, workspace_id: str) -> list[ModelSnapshot]:
        return self.registry.list_versions(workspace_id)

    def compare_versions(self, version_ids: list[str]) -> dict[str, Any]:
        return self.registry.compare_versions(version_ids)

    def update_version_metadata(self, version_id: str, updates: dict[str, Any]) -> ModelSnapshot:
        return self.registry.update_metadata(version_id, updates)

    def delete_version(self, version_id: str) -> ModelSnapshot:
        return self.registry.delete_version(version_id)

    def export_version(self, version_id: str) -> dict[str, Any]:
        return self.registry.export_version(version_id)

    def version_statistics(self, workspace_id: str | None = None) -> dict[str, Any]:
        return self.registry.version_statistics(workspace_id)

    # Active learning

    def enqueue_uncertain_sample(
        self,
        actor: Actor,
        workspace_id: str,
        text: str,
        predicted_intent: str,
        confidence: float,
        uncertainty_score: float,
        priority: str = "medium",
    ) -> ActiveLearningSample:
        return self.queue.add_uncertain(
            actor, workspace_id, text, predicted_intent, confidence, uncertainty_score, priority
        )

    def list_queue(self, actor: Actor, **filters: Any) -> dict[str, Any]:
        return self.queue.list_queue(actor, **filters)

    def mark_sample_reviewed(self, sample_id: str, actor: Actor) -> ActiveLearningSample:
        return self.queue.mark_reviewed(sample_id, actor)

    def annotate_sample(
        self,
        sample_id: str,
        actor: Actor,
        correct_intent: str,
        annotation_notes: str | None = None,
        priority: str | None = None,
    ) -> ActiveLearningSample:
        return self.queue.annotate(sample_id, actor, correct_intent, annotation_notes, priority)

    def batch_annotate(
        self, actor: Actor, annotations: list[dict[str, Any]]
    ) -> list[AnnotationOutcome]:
        return self.queue.batch_annotate(actor, annotations)

    def mark_sample_retrained(self, sample_id: str, actor: Actor) -> ActiveLearningSample:
        return self.queue.mark_retrained(sample_id, actor)

    def retrain_sample(self, sample_id: str, actor: Actor) -> RetrainResult:
        """Merge an annotated sample into its dataset and mark it retrained (admin only).

        Raises:
            PermissionDeniedError: if the actor is not an admin
            SampleNotFoundError: if the sample does not exist
            ConflictError: if the sample has not been annotated yet

        """
        if not actor.is_admin:
            raise PermissionDeniedError("Only admins can retrain samples")
        sample = self.queue.get_sample(sample_id)
        if sample is None:
            raise SampleNotFoundError(f"Sample not found: {sample_id}")
        if sample.status != SampleStatus.ANNOTATED or not sample.correct_intent:
            raise ConflictError(
                f"Sample {sample_id} must be annotated before retraining; "
                f"it is {sample.status.value}"
            )
        result = self.feedback.merge_into_dataset(
            sample.text, sample.correct_intent, sample.workspace_id
        )
        self.queue.mark_retrained(sample_id, actor)
        return result

    def queue_stats(self, actor: Actor, workspace_id: str | None = None) -> dict[str, Any]:
        return self.queue.stats(actor, workspace_id)

    def delete_sample(self, sample_id: str, actor: Actor) -> None:
        self.queue.delete_sample(sample_id, actor)

    # Feedback

    def submit_feedback(self, actor: Actor, **fields: Any) -> FeedbackRecord:
        return self.feedback.submit(actor, **fields)

    def review_feedback(
        self, feedback_id: str, actor: Actor, status: str, notes: str | None = None
    ) -> FeedbackRecord:
        return self.feedback.review(feedback_id, actor, status, notes)

    def mark_feedback_retrained(self, feedback_id: str, actor: Actor) -> FeedbackRecord:
        return self.feedback.mark_retrained(feedback_id, actor)

    def apply_feedback(self, feedback_id: str, actor: Actor) -> RetrainResult:
        return self.feedback.apply_feedback(feedback_id, actor)

    def suggest_intents(self, text: str, workspace_id: str) -> list[IntentSuggestion]:
        return self.feedback.suggest_intents(text, workspace_id)

    def feedback_stats(self, actor: Actor, workspace_id: str | None = None) -> dict[str, Any]:
        return self.feedback.get_statistics(actor, workspace_id)

    def list_user_feedback(self, actor: Actor, **filters: Any) -> dict[str, Any]:
        return self.feedback.list_user_feedback(actor, **filters)

    def list_all_feedback(self, actor: Actor, **filters: Any) -> dict[str, Any]:
        return self.feedback.list_all_feedback(actor, **filters)
