"""Manages user corrections and folds them back into training data."""

import logging
import math
from collections import Counter, defaultdict
from datetime import datetime
from typing import TYPE_CHECKING, Any

from ..config import DEFAULT_PAGE_SIZE, SUGGESTION_LIMIT
from ..exceptions import FeedbackNotFoundError, PermissionDeniedError, ValidationError
from ..models.actor import Actor
from ..models.feedback import (
    FeedbackRecord,
    FeedbackStatus,
    FeedbackType,
    IntentSuggestion,
    RetrainResult,
)
from ..models.training import TrainingExample
from ..schemas import FeedbackReview, FeedbackSubmission, parse_payload
from .dataset_store import DatasetStore
from .locks import WorkspaceLocks

if TYPE_CHECKING:
    from ..classifier.service import IntentClassifier

logger = logging.getLogger(__name__)


class FeedbackManager:
    """Manages user feedback for improving classifications."""

    def __init__(
        self,
        dataset_store: DatasetStore,
        classifier: "IntentClassifier | None" = None,
        locks: WorkspaceLocks | None = None,
    ) -> None:
        self._datasets = dataset_store
        self._classifier = classifier
        self._locks = locks or WorkspaceLocks()
        self._feedback: dict[str, FeedbackRecord] = {}

    def submit(
        self,
        actor: Actor,
        workspace_id: str,
        original_text: str,
        original_intent: str,
        original_confidence: float,
        corrected_intent: str,
        feedback_type: str | FeedbackType = FeedbackType.CORRECTION,
        feedback_text: str | None = None,
    ) -> FeedbackRecord:
        """Record a user's correction of a prediction.

        Args:
            actor: The submitting user
            workspace_id: Workspace the prediction was made in
            original_text: The classified utterance
            original_intent: The intent the classifier predicted
            original_confidence: The confidence it reported
            corrected_intent: The intent the user says is right
            feedback_type: correction, suggestion or complaint
            feedback_text: Optional free-text comment

        Returns:
            The stored FeedbackRecord, status ``pending``

        Raises:
            ValidationError: if a required field is missing or out of range

        """
        submission = parse_payload(
            FeedbackSubmission,
            {
                "workspaceId": workspace_id,
                "originalText": original_text,
                "originalIntent": original_intent,
                "originalConfidence": original_confidence,
                "correctedIntent": corrected_intent,
                "feedbackType": feedback_type or FeedbackType.CORRECTION,
                "feedbackText": feedback_text or "",
            },
        )

        record = FeedbackRecord(
            user_id=actor.user_id,
            workspace_id=submission.workspace_id,
            original_text=submission.original_text,
            original_intent=submission.original_intent,
            original_confidence=submission.original_confidence,
            corrected_intent=submission.corrected_intent,
            feedback_type=submission.feedback_type,
            feedback_text=submission.feedback_text,
        )
        with self._locks.hold(record.workspace_id):
            self._feedback[record.id] = record

        logger.info(
            f"Feedback submitted by {actor.user_id}: '{record.original_text}' "
            f"{record.original_intent} -> {record.corrected_intent}"
        )
        return record

    def get_feedback(self, feedback_id: str) -> FeedbackRecord | None:
        """Get a feedback record by id"""
        return self._feedback.get(feedback_id)

    def _require(self, feedback_id: str) -> FeedbackRecord:
        record = self._feedback.get(feedback_id)
        if record is None:
            raise FeedbackNotFoundError(f"Feedback not found: {feedback_id}")
        return record

    @staticmethod
    def _require_admin(actor: Actor, action: str) -> None:
        if not actor.is_admin:
            raise PermissionDeniedError(f"Only admins can {action}")

    def review(
        self,
        feedback_id: str,
        actor: Actor,
        status: str | FeedbackStatus,
        notes: str | None = None,
    ) -> FeedbackRecord:
        """Set a feedback record's status (admin only).

        Raises:
            PermissionDeniedError: if the actor is not an admin
            ValidationError: if ``status`` is not a known feedback status
            FeedbackNotFoundError: if the record does not exist

        """
        self._require_admin(actor, "review feedback")
        review = parse_payload(FeedbackReview, {"status": status, "notes": notes})
        record = self._require(feedback_id)

        with self._locks.hold(record.workspace_id):
            record.status = review.status
            record.reviewed_by = actor.user_id
            record.reviewed_at = datetime.now()
            if review.notes:
                record.feedback_text = review.notes

        logger.info(f"Feedback {feedback_id} reviewed by {actor.user_id}: {review.status.value}")
        return record

    def mark_retrained(self, feedback_id: str, actor: Actor) -> FeedbackRecord:
        """Mark feedback as applied to the training data (admin only)."""
        self._require_admin(actor, "mark feedback as retrained")
        record = self._require(feedback_id)
        with self._locks.hold(record.workspace_id):
            record.status = FeedbackStatus.APPLIED
            record.is_retrained = True
            record.retrained_at = datetime.now()
        logger.info(f"Feedback {feedback_id} marked as retrained")
        return record

    def suggest_intents(self, text: str, workspace_id: str) -> list[IntentSuggestion]:
        """Suggest intents for ``text`` from past reviewed corrections.

        Matches reviewed or applied feedback whose original text contains
        ``text`` (case-insensitive), keeping the newest matches only.

        Returns:
            Suggestions sorted by count, most frequent first; empty if nothing matches

        """
        if not text or not workspace_id:
            raise ValidationError("text and workspaceId are required")

        needle = text.lower()
        matches = sorted(
            (
                f
                for f in list(self._feedback.values())
                if f.workspace_id == workspace_id
                and f.status in (FeedbackStatus.REVIEWED, FeedbackStatus.APPLIED)
                and needle in f.original_text.lower()
            ),
            key=lambda f: f.created_at,
            reverse=True,
        )[:SUGGESTION_LIMIT]

        if not matches:
            return []

        groups: dict[str, list[FeedbackRecord]] = defaultdict(list)
        for record in matches:
            groups[record.corrected_intent].append(record)

        suggestions = [
            IntentSuggestion(
                intent=intent,
                count=len(records),
                confidence=min(len(records) / len(matches), 1.0),
                examples=[
                    {
                        "text": r.original_text,
                        "correctedBy": r.user_id,
                        "correctedAt": r.created_at.isoformat(),
                    }
                    for r in records
                ],
            )
            for intent, records in groups.items()
        ]
        return sorted(suggestions, key=lambda s: s.count, reverse=True)

    def merge_into_dataset(
        self, text: str, correct_intent: str, workspace_id: str
    ) -> RetrainResult:
        """Add a corrected example to the workspace dataset.

        The classifier's cached grouping for the workspace is invalidated so
        the next prediction regroups with the new example.

        Raises:
            DatasetNotFoundError: if the workspace has no dataset

        """
        if not text or not correct_intent or not workspace_id:
            raise ValidationError("text, correctIntent, and workspaceId are required")

        example = TrainingExample(
            text=text.strip(),
            intent=correct_intent.strip(),
            is_annotated=True,
            annotated_at=datetime.now(),
        )
        with self._locks.hold(workspace_id):
            added = self._datasets.append_example(workspace_id, example)
            dataset = self._datasets.require_dataset(workspace_id)
            if added and self._classifier is not None:
                self._classifier.invalidate(workspace_id)
            result = RetrainResult(
                text=example.text,
                correct_intent=example.intent,
                added=added,
                total_examples=dataset.total_samples,
                unique_intents=len(dataset.unique_intents),
            )

        logger.info(
            f"Merged correction into {workspace_id}: '{example.text}' -> "
            f"'{example.intent}' (added={added})"
        )
        return result

    def apply_feedback(self, feedback_id: str, actor: Actor) -> RetrainResult:
        """Merge a correction into its dataset and mark it retrained (admin only)."""
        self._require_admin(actor, "apply feedback")
        record = self._require(feedback_id)
        result = self.merge_into_dataset(
            record.original_text, record.corrected_intent, record.workspace_id
        )
        self.mark_retrained(feedback_id, actor)
        return result

    def _paginate(
        self, records: list[FeedbackRecord], page: int, limit: int
    ) -> dict[str, Any]:
        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be positive")
        ordered = sorted(records, key=lambda f: f.created_at, reverse=True)
        start = (page - 1) * limit
        return {
            "feedback": ordered[start : start + limit],
            "totalPages": math.ceil(len(ordered) / limit),
            "currentPage": page,
            "total": len(ordered),
        }

    def list_user_feedback(
        self,
        actor: Actor,
        status: str | None = None,
        workspace_id: str | None = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> dict[str, Any]:
        """List the actor's own feedback, newest first"""
        records = [f for f in list(self._feedback.values()) if f.user_id == actor.user_id]
        return self._paginate(self._filter(records, status, workspace_id), page, limit)

    def list_all_feedback(
        self,
        actor: Actor,
        status: str | None = None,
        workspace_id: str | None = None,
        feedback_type: str | None = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> dict[str, Any]:
        """List everyone's feedback, newest first (admin only)"""
        self._require_admin(actor, "view all feedback")
        records = self._filter(list(self._feedback.values()), status, workspace_id)
        if feedback_type:
            records = [f for f in records if f.feedback_type.value == feedback_type]
        return self._paginate(records, page, limit)

    @staticmethod
    def _filter(
        records: list[FeedbackRecord], status: str | None, workspace_id: str | None
    ) -> list[FeedbackRecord]:
        if status:
            records = [f for f in records if f.status.value == status]
        if workspace_id:
            records = [f for f in records if f.workspace_id == workspace_id]
        return records

    def get_statistics(self, actor: Actor, workspace_id: str | None = None) -> dict[str, Any]:
        """Get feedback statistics (admin only).

        Returns:
            Dictionary with totals per status and the most common correction

        """
        self._require_admin(actor, "view feedback statistics")
        records = self._filter(list(self._feedback.values()), None, workspace_id)

        by_status = Counter(f.status.value for f in records)
        corrections = Counter(f"{f.original_intent} → {f.corrected_intent}" for f in records)
        most_common = corrections.most_common(1)

        return {
            "total": len(records),
            "pending": by_status[FeedbackStatus.PENDING.value],
            "reviewed": by_status[FeedbackStatus.REVIEWED.value],
            "applied": by_status[FeedbackStatus.APPLIED.value],
            "rejected": by_status[FeedbackStatus.REJECTED.value],
            "mostCorrectedType": most_common[0][0] if most_common else "N/A",
            "correctionCounts": dict(corrections),
        }

    def has_feedback(self, workspace_id: str) -> bool:
        """Check if any feedback exists for a workspace"""
        return any(f.workspace_id == workspace_id for f in list(self._feedback.values()))
