"""Queue of uncertain predictions awaiting human annotation."""

import logging
import math
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from ..config import DEFAULT_PAGE_SIZE
from ..exceptions import (
    ConflictError,
    IntentPipelineError,
    PermissionDeniedError,
    SampleNotFoundError,
    ValidationError,
)
from ..models.active_learning import (
    ActiveLearningSample,
    AnnotationOutcome,
    Priority,
    SampleStatus,
)
from ..models.actor import Actor
from ..models.prediction import PredictionResult
from ..schemas import AnnotationRequest, parse_payload
from ..utils.error_handling import create_error_response
from .locks import WorkspaceLocks

logger = logging.getLogger(__name__)


class ActiveLearningQueue:
    """Captures uncertain predictions and tracks their annotation lifecycle.

    Lifecycle: ``pending -> annotated -> retrained``, with ``reviewed`` as an
    explicit marker reachable from ``pending``.
    """

    def __init__(self, locks: WorkspaceLocks | None = None) -> None:
        self._samples: dict[str, ActiveLearningSample] = {}
        self._locks = locks or WorkspaceLocks()

    def enqueue(self, prediction: PredictionResult, user_id: str) -> ActiveLearningSample:
        """Queue an uncertain prediction unless an open duplicate exists.

        A sample is a duplicate when it has the same text and workspace and is
        still ``pending`` or ``reviewed``.

        Returns:
            The newly queued sample, or the open sample it duplicates

        """
        if not user_id:
            raise ValidationError("userId is required to queue a sample")

        with self._locks.hold(prediction.workspace_id):
            existing = self._find_open(prediction.text, prediction.workspace_id)
            if existing is not None:
                logger.debug(
                    f"Sample already queued for '{prediction.text}' "
                    f"in {prediction.workspace_id} ({existing.id})"
                )
                return existing

            sample = ActiveLearningSample(
                user_id=user_id,
                workspace_id=prediction.workspace_id,
                text=prediction.text,
                predicted_intent=prediction.predicted_intent,
                confidence=prediction.confidence,
                uncertainty_score=prediction.uncertainty_score,
                priority=Priority.from_uncertainty(prediction.uncertainty_score),
            )
            self._samples[sample.id] = sample

        logger.info(
            f"Added uncertain sample to active learning queue: '{sample.text}' "
            f"({sample.uncertainty_score:.1%} uncertain, {sample.priority.value})"
        )
        return sample

    def add_uncertain(
        self,
        actor: Actor,
        workspace_id: str,
        text: str,
        predicted_intent: str,
        confidence: float,
        uncertainty_score: float,
        priority: str | Priority = Priority.MEDIUM,
    ) -> ActiveLearningSample:
        """Manually queue a sample with an explicit priority."""
        if not workspace_id or not text or not predicted_intent:
            raise ValidationError(
                "workspaceId, text, predictedIntent, confidence, and uncertaintyScore are required"
            )
        for name, value in (("confidence", confidence), ("uncertaintyScore", uncertainty_score)):
            if value is None or not 0.0 <= value <= 1.0:
                raise ValidationError(f"{name} must be between 0 and 1")
        resolved = Priority.from_string(priority)
        if resolved is None:
            raise ValidationError(f"Invalid priority: {priority}")

        sample = ActiveLearningSample(
            user_id=actor.user_id,
            workspace_id=workspace_id,
            text=text,
            predicted_intent=predicted_intent,
            confidence=confidence,
            uncertainty_score=uncertainty_score,
            priority=resolved,
        )
        with self._locks.hold(workspace_id):
            self._samples[sample.id] = sample
        logger.info(f"Uncertain sample added manually by {actor.user_id}: '{text}'")
        return sample

    def _snapshot(self) -> list[ActiveLearningSample]:
        return list(self._samples.values())

    def _find_open(self, text: str, workspace_id: str) -> ActiveLearningSample | None:
        for sample in self._snapshot():
            if (
                sample.text == text
                and sample.workspace_id == workspace_id
                and sample.status.is_open
            ):
                return sample
        return None

    def get_sample(self, sample_id: str) -> ActiveLearningSample | None:
        """Retrieve a specific sample"""
        return self._samples.get(sample_id)

    def _require(self, sample_id: str) -> ActiveLearningSample:
        sample = self._samples.get(sample_id)
        if sample is None:
            raise SampleNotFoundError(f"Sample not found: {sample_id}")
        return sample

    def _require_access(self, sample: ActiveLearningSample, actor: Actor) -> None:
        if not actor.can_access(sample.user_id):
            raise PermissionDeniedError(
                f"User {actor.user_id} may not modify sample {sample.id}"
            )

    def list_queue(
        self,
        actor: Actor,
        status: str | SampleStatus | None = SampleStatus.PENDING,
        priority: str | Priority | None = None,
        workspace_id: str | None = None,
        user_id: str | None = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> dict[str, Any]:
        """List queued samples, urgent and most uncertain first.

        Non-admins only ever see their own samples.
        """
        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be positive")
        try:
            status = SampleStatus(status) if status else None
            priority = Priority(priority) if priority else None
        except ValueError as e:
            raise ValidationError(str(e)) from e

        samples: Iterable[ActiveLearningSample] = self._snapshot()
        if status:
            samples = [s for s in samples if s.status == status]
        if priority:
            samples = [s for s in samples if s.priority == priority]
        if workspace_id:
            samples = [s for s in samples if s.workspace_id == workspace_id]
        if user_id:
            samples = [s for s in samples if s.user_id == user_id]
        if not actor.is_admin:
            samples = [s for s in samples if s.user_id == actor.user_id]

        ordered = sorted(samples, key=ActiveLearningSample.sort_key)
        start = (page - 1) * limit
        return {
            "samples": ordered[start : start + limit],
            "totalPages": math.ceil(len(ordered) / limit),
            "currentPage": page,
            "total": len(ordered),
        }

    def mark_reviewed(self, sample_id: str, actor: Actor) -> ActiveLearningSample:
        """Flag a pending sample as inspected without labeling it."""
        sample = self._require(sample_id)
        self._require_access(sample, actor)
        with self._locks.hold(sample.workspace_id):
            if sample.status != SampleStatus.PENDING:
                raise ConflictError(
                    f"Only pending samples can be marked reviewed; {sample_id} is {sample.status.value}"
                )
            sample.status = SampleStatus.REVIEWED
            sample.reviewed_by = actor.user_id
            sample.reviewed_at = datetime.now()
        return sample

    def annotate(
        self,
        sample_id: str,
        actor: Actor,
        correct_intent: str,
        annotation_notes: str | None = None,
        priority: str | Priority | None = None,
    ) -> ActiveLearningSample:
        """Record the correct intent for a sample.

        Raises:
            ValidationError: if ``correct_intent`` is missing
            SampleNotFoundError: if the sample does not exist
            PermissionDeniedError: if the actor is neither owner nor admin
            ConflictError: if the sample is already retrained

        """
        request = parse_payload(
            AnnotationRequest,
            {
                "sampleId": sample_id,
                "correctIntent": correct_intent,
                "annotationNotes": annotation_notes,
                "priority": priority or None,
            },
        )
        return self._apply_annotation(request, actor)

    def _apply_annotation(self, request: AnnotationRequest, actor: Actor) -> ActiveLearningSample:
        sample = self._require(request.sample_id)
        self._require_access(sample, actor)

        with self._locks.hold(sample.workspace_id):
            if sample.status == SampleStatus.RETRAINED:
                raise ConflictError(f"Sample {sample.id} is already retrained and cannot be re-annotated")
            sample.correct_intent = request.correct_intent
            sample.status = SampleStatus.ANNOTATED
            sample.reviewed_by = actor.user_id
            sample.reviewed_at = datetime.now()
            if request.annotation_notes:
                sample.annotation_notes = request.annotation_notes
            if request.priority:
                sample.priority = request.priority

        logger.info(
            f"Sample {sample.id} annotated by {actor.user_id}: "
            f"{sample.predicted_intent} -> {sample.correct_intent}"
        )
        return sample

    def batch_annotate(
        self, actor: Actor, annotations: list[dict[str, Any]]
    ) -> list[AnnotationOutcome]:
        """Annotate several samples; each item succeeds or fails on its own."""
        if not isinstance(annotations, list) or not annotations:
            raise ValidationError("annotations array is required")

        results = []
        for item in annotations:
            sample_id = str(item.get("sampleId", "")) if isinstance(item, dict) else ""
            try:
                request = parse_payload(AnnotationRequest, item)
                sample = self._apply_annotation(request, actor)
            except IntentPipelineError as e:
                logger.warning(f"Batch annotation failed for {sample_id or '<missing id>'}: {e}")
                results.append(
                    AnnotationOutcome(
                        sample_id=sample_id, success=False, error=create_error_response(e)
                    )
                )
                continue
            results.append(AnnotationOutcome(sample_id=sample.id, success=True, sample=sample))

        succeeded = sum(1 for r in results if r.success)
        logger.info(f"Batch annotation completed: {succeeded}/{len(results)} succeeded")
        return results

    def mark_retrained(self, sample_id: str, actor: Actor) -> ActiveLearningSample:
        """Mark a sample as folded into training data (admin only)."""
        if not actor.is_admin:
            raise PermissionDeniedError("Only admins can mark samples as retrained")
        sample = self._require(sample_id)
        with self._locks.hold(sample.workspace_id):
            if sample.status != SampleStatus.ANNOTATED:
                raise ConflictError(
                    f"Only annotated samples can be marked retrained; {sample_id} is {sample.status.value}"
                )
            sample.status = SampleStatus.RETRAINED
            sample.is_retrained = True
            sample.retrained_at = datetime.now()
        logger.info(f"Sample {sample_id} marked as retrained")
        return sample

    def delete_sample(self, sample_id: str, actor: Actor) -> None:
        """Delete a sample (owner or admin)."""
        sample = self._require(sample_id)
        self._require_access(sample, actor)
        with self._locks.hold(sample.workspace_id):
            self._samples.pop(sample_id, None)
        logger.info(f"Sample {sample_id} deleted by {actor.user_id}")

    def stats(self, actor: Actor, workspace_id: str | None = None) -> dict[str, Any]:
        """Count samples by status and by priority."""
        samples = [
            s
            for s in self._snapshot()
            if (workspace_id is None or s.workspace_id == workspace_id)
            and (actor.is_admin or s.user_id == actor.user_id)
        ]

        by_status = {status.value: 0 for status in SampleStatus}
        by_priority = {priority.value: 0 for priority in Priority}
        for sample in samples:
            by_status[sample.status.value] += 1
            by_priority[sample.priority.value] += 1

        return {
            "total": len(samples),
            "pending": by_status[SampleStatus.PENDING.value],
            "reviewed": by_status[SampleStatus.REVIEWED.value],
            "annotated": by_status[SampleStatus.ANNOTATED.value],
            "retrained": by_status[SampleStatus.RETRAINED.value],
            "statusStats": by_status,
            "priorityStats": by_priority,
        }

    def get_sample_count(self) -> int:
        """Get total number of queued samples"""
        return len(self._samples)
