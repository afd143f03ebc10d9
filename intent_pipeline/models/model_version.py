"""Model registry snapshot types."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .evaluation import EvaluationResult
from .training import TrainingExample


class VersionStatus(str, Enum):
    """Lifecycle state of a model snapshot."""

    ACTIVE = "active"
    INACTIVE = "inactive"


@dataclass
class ModelSnapshot:
    """Versioned snapshot of a workspace's trained model.

    Only ``status`` and the metadata fields (``description``, ``tags``,
    ``updated_at``) change after creation, and only through the registry.
    """

    id: str
    workspace_id: str
    version_number: int
    model_id: str
    intents: tuple[str, ...]
    training_example_count: int
    training_data_sample: tuple[TrainingExample, ...] = ()
    evaluation_result: EvaluationResult | None = None
    status: VersionStatus = VersionStatus.ACTIVE
    description: str = ""
    tags: list[str] = field(default_factory=list)
    created_by: str = "system"
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status == VersionStatus.ACTIVE

    def evaluation_summary(self) -> dict[str, Any] | None:
        if self.evaluation_result is None:
            return None
        return {
            "accuracy": self.evaluation_result.metrics.accuracy,
            "f1Score": self.evaluation_result.metrics.f1_score,
            "testDataSize": self.evaluation_result.test_data_size,
        }

    def to_dict(self) -> dict[str, Any]:
        """Full self-contained export document."""
        return {
            "versionId": self.id,
            "workspaceId": self.workspace_id,
            "versionNumber": self.version_number,
            "createdAt": self.created_at.isoformat(),
            "status": self.status.value,
            "modelData": {
                "modelId": self.model_id,
                "intents": list(self.intents),
                "trainingExamples": self.training_example_count,
                "trainingData": [e.to_dict() for e in self.training_data_sample],
            },
            "evaluationResults": (
                self.evaluation_result.to_dict() if self.evaluation_result else None
            ),
            "metadata": {
                "description": self.description,
                "tags": list(self.tags),
                "createdBy": self.created_by,
                "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
            },
        }
