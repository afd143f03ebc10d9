"""Training data models: canonical examples and per-workspace datasets."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4


@dataclass(frozen=True)
class TrainingExample:
    """A single labeled utterance in canonical form."""

    text: str
    intent: str
    confidence: float = 1.0
    is_annotated: bool = False
    annotated_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert example to dictionary for serialization."""
        return {
            "text": self.text,
            "intent": self.intent,
            "confidence": self.confidence,
            "isAnnotated": self.is_annotated,
            "annotatedAt": self.annotated_at.isoformat() if self.annotated_at else None,
        }


@dataclass
class Dataset:
    """Ordered, append-only collection of training examples for a workspace."""

    workspace_id: str
    name: str = ""
    id: str = field(default_factory=lambda: str(uuid4()))
    examples: list[TrainingExample] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)
    last_modified: datetime = field(default_factory=datetime.now)

    # Derived summaries, recomputed on every mutation
    total_samples: int = 0
    unique_intents: list[str] = field(default_factory=list)
    intent_counts: dict[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.refresh_summary()

    def contains(self, text: str, intent: str) -> bool:
        """Check whether the exact (text, intent) pair is already present."""
        return any(e.text == text and e.intent == intent for e in self.examples)

    def append(self, example: TrainingExample) -> None:
        """Append an example and recompute the summaries."""
        self.examples.append(example)
        self.last_modified = datetime.now()
        self.refresh_summary()

    def refresh_summary(self) -> None:
        """Recompute total, unique intents and per-intent counts."""
        counts: dict[str, int] = {}
        for example in self.examples:
            counts[example.intent] = counts.get(example.intent, 0) + 1
        self.total_samples = len(self.examples)
        self.unique_intents = list(counts)
        self.intent_counts = counts

    def get_summary(self) -> dict[str, Any]:
        """Get summary statistics for the dataset."""
        return {
            "id": self.id,
            "workspaceId": self.workspace_id,
            "name": self.name,
            "totalSamples": self.total_samples,
            "uniqueIntents": list(self.unique_intents),
            "intentCounts": dict(self.intent_counts),
            "lastModified": self.last_modified.isoformat(),
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert dataset to dictionary for serialization."""
        data = self.get_summary()
        data["createdAt"] = self.created_at.isoformat()
        data["data"] = [e.to_dict() for e in self.examples]
        return data
