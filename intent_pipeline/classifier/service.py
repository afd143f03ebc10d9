"""Cached per-workspace classifier state and the prediction entry point."""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime
from types import MappingProxyType
from typing import Any
from uuid import uuid4

from ..config import PipelineSettings
from ..exceptions import NoTrainingDataError
from ..models.prediction import PredictionResult
from ..models.training import TrainingExample
from ..processing.dataset_store import DatasetStore
from ..processing.locks import WorkspaceLocks
from ..utils.ingestion import normalize_dataset
from .similarity import group_examples
from .workflow import create_initial_state, get_compiled_workflow, run_prediction

logger = logging.getLogger(__name__)


def new_model_id(workspace_id: str) -> str:
    return f"intent-classifier-{workspace_id}-{uuid4().hex[:12]}"


@dataclass(frozen=True)
class TrainedModel:
    """Grouped training examples for one workspace; rebuilt, never patched."""

    model_id: str
    workspace_id: str
    intent_groups: Mapping[str, tuple[str, ...]]
    training_data: tuple[TrainingExample, ...]
    created_at: datetime = field(default_factory=datetime.now)
    last_retrained: datetime | None = None
    retrain_count: int = 0

    @property
    def intents(self) -> list[str]:
        return list(self.intent_groups)

    @property
    def training_example_count(self) -> int:
        return len(self.training_data)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.model_id,
            "workspaceId": self.workspace_id,
            "createdAt": self.created_at.isoformat(),
            "status": "trained",
            "intents": self.intents,
            "trainingExamples": self.training_example_count,
            "lastRetrained": self.last_retrained.isoformat() if self.last_retrained else None,
            "retrainCount": self.retrain_count,
        }


class IntentClassifier:
    """Lazily groups each workspace's dataset and classifies against it.

    The grouping is a cache derived from the dataset store. Any dataset
    mutation must be followed by :meth:`invalidate`; the next prediction then
    regroups from scratch.
    """

    def __init__(
        self,
        dataset_store: DatasetStore,
        queue: Any = None,
        settings: PipelineSettings | None = None,
        locks: WorkspaceLocks | None = None,
    ) -> None:
        self.settings = settings or PipelineSettings()
        self._datasets = dataset_store
        self._locks = locks or WorkspaceLocks()
        self._models: dict[str, TrainedModel] = {}
        self._stale: set[str] = set()
        self._workflow = get_compiled_workflow(self.settings, queue)

    def train(self, workspace_id: str, records: Sequence[Any], name: str = "") -> TrainedModel:
        """Store a workspace dataset and build a fresh model from it.

        Raises:
            NoTrainingDataError: if no record has both text and intent

        """
        examples = normalize_dataset(records)
        with self._locks.hold(workspace_id):
            self._datasets.create_dataset(workspace_id, examples, name=name)
            self._stale.discard(workspace_id)
            model = self._build(workspace_id, new_model_id(workspace_id))
            self._models[workspace_id] = model

        logger.info(
            f"Model training completed: {model.model_id} "
            f"({model.training_example_count} examples, {len(model.intents)} intents)"
        )
        return model

    def get_model(self, workspace_id: str) -> TrainedModel:
        """Return the workspace's grouped model, regrouping if it is stale.

        Raises:
            NoTrainingDataError: if the workspace has no usable training data

        """
        model = self._models.get(workspace_id)
        if model is not None and workspace_id not in self._stale:
            return model

        with self._locks.hold(workspace_id):
            model = self._models.get(workspace_id)
            if model is not None and workspace_id not in self._stale:
                return model

            if model is None:
                logger.info(f"Loading model from dataset store for workspace: {workspace_id}")
                model = self._build(workspace_id, new_model_id(workspace_id))
            else:
                rebuilt = self._build(workspace_id, model.model_id)
                model = replace(
                    rebuilt,
                    created_at=model.created_at,
                    last_retrained=datetime.now(),
                    retrain_count=model.retrain_count + 1,
                )
                logger.info(
                    f"Regrouped model {model.model_id} after dataset change "
                    f"({model.training_example_count} examples)"
                )
            self._models[workspace_id] = model
            self._stale.discard(workspace_id)
            return model

    def _build(self, workspace_id: str, model_id: str) -> TrainedModel:
        examples = self._datasets.get_examples(workspace_id)
        if not examples:
            raise NoTrainingDataError(f"No trained model found for workspace: {workspace_id}")

        groups = group_examples(examples)
        return TrainedModel(
            model_id=model_id,
            workspace_id=workspace_id,
            intent_groups=MappingProxyType({k: tuple(v) for k, v in groups.items()}),
            training_data=examples,
        )

    def invalidate(self, workspace_id: str) -> None:
        """Mark the workspace's grouping stale after a dataset change."""
        with self._locks.hold(workspace_id):
            if workspace_id in self._models:
                self._stale.add(workspace_id)
        logger.debug(f"Invalidated classifier cache for workspace {workspace_id}")

    def predict(
        self,
        text: str,
        workspace_id: str,
        user_id: str | None = None,
        enqueue: bool = True,
    ) -> PredictionResult:
        """Predict the intent of ``text`` for a workspace.

        Args:
            text: Utterance to classify
            workspace_id: Workspace whose training data to use
            user_id: Requesting user; uncertain predictions are queued for them
            enqueue: Set False for read-only callers such as evaluation

        Returns:
            PredictionResult with confidence, uncertainty and alternatives

        """
        model = self.get_model(workspace_id)
        state = create_initial_state(
            text=text,
            workspace_id=workspace_id,
            model_id=model.model_id,
            intent_groups=model.intent_groups,
            user_id=user_id,
            enqueue_uncertain=enqueue,
        )
        result = run_prediction(self._workflow, state)

        prediction = PredictionResult(
            text=text,
            predicted_intent=result["predicted_intent"] or "",
            confidence=result["confidence"] or 0.0,
            uncertainty_score=result["uncertainty_score"] or 0.0,
            is_uncertain=bool(result["is_uncertain"]),
            workspace_id=workspace_id,
            model_id=model.model_id,
            alternatives=list(result["alternatives"] or []),
        )
        logger.debug(
            f"Prediction: {prediction.predicted_intent} ({prediction.confidence:.1%}), "
            f"uncertainty {prediction.uncertainty_score:.1%}"
        )
        if result.get("queued_sample_id"):
            logger.info(
                f"Queued uncertain prediction for review: '{text}' "
                f"(sample {result['queued_sample_id']})"
            )
        return prediction

    def model_info(self, workspace_id: str) -> TrainedModel | None:
        """Get the cached model for a workspace, if one has been built"""
        return self._models.get(workspace_id)

    def list_models(self) -> list[TrainedModel]:
        """List all cached models sorted by creation date"""
        return sorted(self._models.values(), key=lambda m: m.created_at, reverse=True)

    def delete_model(self, workspace_id: str) -> bool:
        """Drop the cached model for a workspace"""
        with self._locks.hold(workspace_id):
            self._stale.discard(workspace_id)
            return self._models.pop(workspace_id, None) is not None
