"""
In-memory training dataset storage with workspace isolation.
"""

import logging
from collections.abc import Iterable
from typing import Any

from ..exceptions import DatasetNotFoundError
from ..models.training import Dataset, TrainingExample
from .locks import WorkspaceLocks

logger = logging.getLogger(__name__)


class DatasetStore:
    """In-memory dataset storage, one active append-only dataset per workspace"""

    def __init__(self, locks: WorkspaceLocks | None = None):
        self._datasets: dict[str, Dataset] = {}
        self._locks = locks or WorkspaceLocks()

    def create_dataset(
        self,
        workspace_id: str,
        examples: Iterable[TrainingExample],
        name: str = "",
    ) -> Dataset:
        """Create the workspace's dataset, replacing any previous one"""
        dataset = Dataset(workspace_id=workspace_id, name=name, examples=list(examples))
        with self._locks.hold(workspace_id):
            self._datasets[workspace_id] = dataset
        logger.info(
            f"Stored dataset for workspace {workspace_id}: "
            f"{dataset.total_samples} examples, {len(dataset.unique_intents)} intents"
        )
        return dataset

    def get_dataset(self, workspace_id: str) -> Dataset | None:
        """Get the active dataset for a workspace"""
        return self._datasets.get(workspace_id)

    def require_dataset(self, workspace_id: str) -> Dataset:
        """Get the active dataset or raise if the workspace has none"""
        dataset = self.get_dataset(workspace_id)
        if dataset is None:
            raise DatasetNotFoundError(
                f"No training dataset found for workspace: {workspace_id}"
            )
        return dataset

    def get_examples(self, workspace_id: str) -> tuple[TrainingExample, ...]:
        """Get a stable snapshot of the workspace's examples"""
        with self._locks.hold(workspace_id):
            dataset = self._datasets.get(workspace_id)
            return tuple(dataset.examples) if dataset else ()

    def append_example(self, workspace_id: str, example: TrainingExample) -> bool:
        """Append an example unless the exact (text, intent) pair exists.

        Returns:
            True if the example was added

        """
        with self._locks.hold(workspace_id):
            dataset = self.require_dataset(workspace_id)
            if dataset.contains(example.text, example.intent):
                logger.info(
                    f"Training example already exists: "
                    f"'{example.text}' -> '{example.intent}'"
                )
                return False
            dataset.append(example)

        logger.info(
            f"Added training example to {workspace_id}: "
            f"'{example.text}' -> '{example.intent}' "
            f"({dataset.total_samples} total)"
        )
        return True

    def has_dataset(self, workspace_id: str) -> bool:
        """Check if a workspace has any training examples"""
        dataset = self._datasets.get(workspace_id)
        return dataset is not None and dataset.total_samples > 0

    def delete_dataset(self, workspace_id: str) -> bool:
        """Delete the workspace's dataset"""
        with self._locks.hold(workspace_id):
            return self._datasets.pop(workspace_id, None) is not None

    def get_statistics(self, workspace_id: str) -> dict[str, Any]:
        """Get intent statistics for a workspace"""
        dataset = self.get_dataset(workspace_id)
        if dataset is None:
            return {
                "totalSamples": 0,
                "uniqueIntents": [],
                "intentCounts": {},
                "lastModified": None,
            }
        with self._locks.hold(workspace_id):
            summary = dataset.get_summary()
        return {
            "totalSamples": summary["totalSamples"],
            "uniqueIntents": summary["uniqueIntents"],
            "intentCounts": summary["intentCounts"],
            "lastModified": summary["lastModified"],
        }
