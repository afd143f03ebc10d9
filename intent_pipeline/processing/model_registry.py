"""
Model registry for versioned workspace model snapshots.
"""

import logging
from datetime import datetime
from typing import Any
from uuid import uuid4

from ..config import PipelineSettings
from ..exceptions import InsufficientVersionsError, VersionNotFoundError
from ..models.evaluation import EvaluationResult
from ..models.model_version import ModelSnapshot, VersionStatus
from ..schemas import MetadataUpdate, ModelVersionPayload, parse_payload
from ..utils.ingestion import normalize_record
from .locks import WorkspaceLocks

logger = logging.getLogger(__name__)


class ModelRegistry:
    """Versioned snapshots per workspace with at most one active version.

    The active pointer of a workspace is swapped in a single assignment while
    the workspace lock is held, so readers see either the previous or the new
    active version and never two or none.
    """

    def __init__(
        self,
        locks: WorkspaceLocks | None = None,
        settings: PipelineSettings | None = None,
    ):
        self.settings = settings or PipelineSettings()
        self._versions: dict[str, ModelSnapshot] = {}
        # Ordered version ids per workspace
        self._history: dict[str, list[str]] = {}
        self._active: dict[str, str] = {}
        self._last_number: dict[str, int] = {}
        self._locks = locks or WorkspaceLocks()

    def create_version(
        self,
        workspace_id: str,
        model_data: ModelVersionPayload | dict[str, Any],
        evaluation_result: EvaluationResult | None = None,
    ) -> ModelSnapshot:
        """Create a new active version, deactivating all earlier ones.

        Args:
            workspace_id: Workspace the model belongs to
            model_data: Model id, intents, example count and sample
            evaluation_result: Optional evaluation to attach

        Returns:
            The new snapshot

        """
        payload = parse_payload(ModelVersionPayload, model_data)
        sample = tuple(
            normalize_record(item, index)
            for index, item in enumerate(
                payload.training_data_sample[: self.settings.training_sample_size]
            )
        )

        with self._locks.hold(workspace_id):
            version_number = self._last_number.get(workspace_id, 0) + 1
            snapshot = ModelSnapshot(
                id=f"v{version_number}_{workspace_id}_{uuid4().hex[:8]}",
                workspace_id=workspace_id,
                version_number=version_number,
                model_id=payload.model_id,
                intents=tuple(dict.fromkeys(payload.intents)),
                training_example_count=payload.training_examples,
                training_data_sample=sample,
                evaluation_result=evaluation_result,
                description=payload.description or f"Model version {version_number}",
                tags=list(dict.fromkeys(payload.tags)),
                created_by=payload.created_by,
            )

            history = self._history.setdefault(workspace_id, [])
            self._versions[snapshot.id] = snapshot
            self._active[workspace_id] = snapshot.id
            for version_id in history:
                self._versions[version_id].status = VersionStatus.INACTIVE
            history.append(snapshot.id)
            self._last_number[workspace_id] = version_number

        logger.info(f"Model version created: {snapshot.id} (version {version_number} for {workspace_id})")
        return snapshot

    def get_version(self, version_id: str) -> ModelSnapshot | None:
        """Retrieve a specific version"""
        return self._versions.get(version_id)

    def require_version(self, version_id: str) -> ModelSnapshot:
        version = self._versions.get(version_id)
        if version is None:
            raise VersionNotFoundError(f"Model version not found: {version_id}")
        return version

    def get_active_version(self, workspace_id: str) -> ModelSnapshot | None:
        """Get the currently active version of a workspace"""
        with self._locks.hold(workspace_id):
            version_id = self._active.get(workspace_id)
            if version_id is None:
                return None
            return self._versions.get(version_id)

    def list_versions(self, workspace_id: str) -> list[ModelSnapshot]:
        """List a workspace's versions, newest version number first"""
        with self._locks.hold(workspace_id):
            versions = [self._versions[v] for v in self._history.get(workspace_id, [])]
        return sorted(versions, key=lambda v: v.version_number, reverse=True)

    def compare_versions(self, version_ids: list[str]) -> dict[str, Any]:
        """Compare two or more known versions.

        Raises:
            InsufficientVersionsError: if fewer than two ids are known

        """
        versions = [self._versions[v] for v in version_ids if v in self._versions]
        if len(versions) < 2:
            raise InsufficientVersionsError("At least 2 versions are required for comparison")

        latest = versions[0]
        for version in versions[1:]:
            if version.created_at > latest.created_at:
                latest = version

        comparison: dict[str, Any] = {
            "timestamp": datetime.now().isoformat(),
            "versions": [
                {
                    "id": v.id,
                    "versionNumber": v.version_number,
                    "createdAt": v.created_at.isoformat(),
                    "status": v.status.value,
                    "intents": list(v.intents),
                    "trainingExamples": v.training_example_count,
                    "evaluationResults": v.evaluation_summary(),
                    "metadata": {"description": v.description, "tags": list(v.tags)},
                }
                for v in versions
            ],
            "summary": {
                "totalVersions": len(versions),
                "activeVersions": sum(1 for v in versions if v.is_active),
                "latestVersion": latest.id,
            },
        }

        evaluated = [v for v in versions if v.evaluation_result is not None]
        if len(evaluated) >= 2:
            comparison["performanceComparison"] = {
                "bestAccuracy": _best(evaluated, lambda v: v.evaluation_result.metrics.accuracy).id,
                "bestF1Score": _best(evaluated, lambda v: v.evaluation_result.metrics.f1_score).id,
            }
        return comparison

    def update_metadata(
        self,
        version_id: str,
        updates: MetadataUpdate | dict[str, Any],
    ) -> ModelSnapshot:
        """Update a version's description and/or tags"""
        update = parse_payload(MetadataUpdate, updates)
        version = self.require_version(version_id)
        with self._locks.hold(version.workspace_id):
            if update.description is not None:
                version.description = update.description
            if update.tags is not None:
                version.tags = list(dict.fromkeys(update.tags))
            version.updated_at = datetime.now()
        logger.info(f"Model version updated: {version_id}")
        return version

    def delete_version(self, version_id: str) -> ModelSnapshot:
        """Delete a version and drop it from the workspace history.

        Deleting the active version leaves the workspace without one.
        """
        version = self.require_version(version_id)
        workspace_id = version.workspace_id
        with self._locks.hold(workspace_id):
            self._versions.pop(version_id, None)
            history = self._history.get(workspace_id, [])
            if version_id in history:
                history.remove(version_id)
            if self._active.get(workspace_id) == version_id:
                del self._active[workspace_id]
                logger.info(f"Deleted active version of {workspace_id}; no version is active now")
        logger.info(f"Model version deleted: {version_id}")
        return version

    def export_version(self, version_id: str) -> dict[str, Any]:
        """Full export document for a version"""
        return self.require_version(version_id).to_dict()

    def version_statistics(self, workspace_id: str | None = None) -> dict[str, Any]:
        """Aggregate statistics over one workspace or the whole registry"""
        if workspace_id:
            versions = self.list_versions(workspace_id)
        else:
            versions = [v for ws in list(self._history) for v in self.list_versions(ws)]

        count = len(versions)
        return {
            "totalVersions": count,
            "activeVersions": sum(1 for v in versions if v.is_active),
            "inactiveVersions": sum(1 for v in versions if not v.is_active),
            "workspaces": 1 if workspace_id else len({v.workspace_id for v in versions}),
            "averageIntents": sum(len(v.intents) for v in versions) / count if count else 0,
            "averageTrainingExamples": (
                sum(v.training_example_count for v in versions) / count if count else 0
            ),
        }

    def get_version_count(self, workspace_id: str | None = None) -> int:
        """Get number of stored versions"""
        if workspace_id:
            return len(self._history.get(workspace_id, []))
        return len(self._versions)


def _best(versions: list[ModelSnapshot], metric) -> ModelSnapshot:
    """Highest ``metric``; ties keep the first encountered."""
    best = versions[0]
    for version in versions[1:]:
        if metric(version) > metric(best):
            best = version
    return best
