"""Tests for the FeedbackManager class."""

from datetime import datetime, timedelta

import pytest

from intent_pipeline.classifier.service import IntentClassifier
from intent_pipeline.exceptions import (
    DatasetNotFoundError,
    FeedbackNotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from intent_pipeline.models.actor import Actor, Role
from intent_pipeline.models.feedback import FeedbackStatus, FeedbackType
from intent_pipeline.processing.dataset_store import DatasetStore
from intent_pipeline.processing.feedback_manager import FeedbackManager

ALICE = Actor("alice")
BOB = Actor("bob")
ADMIN = Actor("root", Role.ADMIN)


@pytest.fixture
def store():
    return DatasetStore()


@pytest.fixture
def classifier(store):
    classifier = IntentClassifier(store)
    classifier.train(
        "ws1",
        [
            {"text": "book a flight", "intent": "book_flight"},
            {"text": "book a table", "intent": "book_table"},
        ],
    )
    return classifier


@pytest.fixture
def feedback_manager(store, classifier):
    """Create a FeedbackManager instance for testing."""
    return FeedbackManager(store, classifier)


def submit(manager, actor=ALICE, text="book me a seat", corrected="book_flight", **overrides):
    fields = {
        "workspace_id": "ws1",
        "original_text": text,
        "original_intent": "book_table",
        "original_confidence": 0.4,
        "corrected_intent": corrected,
    }
    fields.update(overrides)
    return manager.submit(actor, **fields)


class TestSubmit:
    """Test suite for submitting feedback."""

    def test_initialization(self, feedback_manager):
        """Test that a new manager holds no feedback."""
        assert feedback_manager._feedback == {}
        assert feedback_manager.has_feedback("ws1") is False

    def test_submit(self, feedback_manager):
        """Test that a submission is stored as pending correction feedback."""
        record = submit(feedback_manager)

        assert record.user_id == "alice"
        assert record.status == FeedbackStatus.PENDING
        assert record.feedback_type == FeedbackType.CORRECTION
        assert record.original_confidence == 0.4
        assert record.is_retrained is False
        assert feedback_manager.get_feedback(record.id) is record
        assert feedback_manager.has_feedback("ws1")

    @pytest.mark.parametrize(
        "field",
        ["workspace_id", "original_text", "original_intent", "corrected_intent"],
    )
    def test_required_fields(self, feedback_manager, field):
        """Test that each required field must be non-empty."""
        with pytest.raises(ValidationError):
            submit(feedback_manager, **{field: ""})

    def test_confidence_required(self, feedback_manager):
        """Test that the original confidence is required."""
        with pytest.raises(ValidationError):
            submit(feedback_manager, original_confidence=None)

    def test_confidence_range(self, feedback_manager):
        """Test that the original confidence must lie in [0, 1]."""
        with pytest.raises(ValidationError):
            submit(feedback_manager, original_confidence=1.5)

    def test_feedback_type(self, feedback_manager):
        """Test that known feedback types are accepted and others rejected."""
        record = submit(feedback_manager, feedback_type="complaint", feedback_text="wrong again")
        assert record.feedback_type == FeedbackType.COMPLAINT
        assert record.feedback_text == "wrong again"

        with pytest.raises(ValidationError):
            submit(feedback_manager, feedback_type="praise")

    def test_feedback_text_too_long(self, feedback_manager):
        """Test that feedback text over 500 characters is rejected."""
        with pytest.raises(ValidationError):
            submit(feedback_manager, feedback_text="x" * 501)


class TestReview:
    """Test suite for admin review."""

    def test_review(self, feedback_manager):
        """Test that an admin review records status, reviewer and notes."""
        record = submit(feedback_manager)
        reviewed = feedback_manager.review(record.id, ADMIN, "reviewed", "looks right")

        assert reviewed.status == FeedbackStatus.REVIEWED
        assert reviewed.reviewed_by == "root"
        assert reviewed.reviewed_at is not None
        assert reviewed.feedback_text == "looks right"

    def test_review_admin_only(self, feedback_manager):
        """Test that non-admins cannot review feedback."""
        record = submit(feedback_manager)
        with pytest.raises(PermissionDeniedError):
            feedback_manager.review(record.id, ALICE, "reviewed")

    def test_review_invalid_status(self, feedback_manager):
        """Test that an unknown review status is rejected."""
        record = submit(feedback_manager)
        with pytest.raises(ValidationError):
            feedback_manager.review(record.id, ADMIN, "done")

    def test_review_unknown(self, feedback_manager):
        """Test that reviewing unknown feedback raises FeedbackNotFoundError."""
        with pytest.raises(FeedbackNotFoundError):
            feedback_manager.review("missing", ADMIN, "rejected")

    def test_mark_retrained(self, feedback_manager):
        """Test that only admins can mark feedback retrained."""
        record = submit(feedback_manager)
        with pytest.raises(PermissionDeniedError):
            feedback_manager.mark_retrained(record.id, ALICE)

        retrained = feedback_manager.mark_retrained(record.id, ADMIN)
        assert retrained.status == FeedbackStatus.APPLIED
        assert retrained.is_retrained is True


class TestSuggestions:
    """Test suite for intent suggestions."""

    def test_suggestions_from_reviewed_feedback(self, feedback_manager):
        """Test that suggestions count reviewed corrections that contain the text."""
        for text, corrected in [
            ("Book me a seat to Paris", "book_flight"),
            ("book me a seat on the train", "book_train"),
            ("please book me a seat", "book_flight"),
        ]:
            record = submit(feedback_manager, text=text, corrected=corrected)
            feedback_manager.review(record.id, ADMIN, "reviewed")
        # Pending feedback is ignored
        submit(feedback_manager, text="book me a seat now", corrected="book_bus")

        suggestions = feedback_manager.suggest_intents("BOOK ME A SEAT", "ws1")

        assert [s.intent for s in suggestions] == ["book_flight", "book_train"]
        assert suggestions[0].count == 2
        assert suggestions[0].confidence == pytest.approx(2 / 3)
        assert suggestions[1].confidence == pytest.approx(1 / 3)
        assert {e["correctedBy"] for e in suggestions[0].examples} == {"alice"}

    def test_applied_feedback_counts(self, feedback_manager):
        """Test that applied feedback also feeds suggestions."""
        record = submit(feedback_manager)
        feedback_manager.mark_retrained(record.id, ADMIN)
        assert [s.intent for s in feedback_manager.suggest_intents("seat", "ws1")] == [
            "book_flight"
        ]

    def test_no_matches(self, feedback_manager):
        """Test that rejected or unmatched feedback gives no suggestions."""
        record = submit(feedback_manager)
        feedback_manager.review(record.id, ADMIN, "rejected")
        assert feedback_manager.suggest_intents("seat", "ws1") == []
        assert feedback_manager.suggest_intents("unrelated", "ws1") == []

    def test_other_workspace_ignored(self, feedback_manager):
        """Test that suggestions stay within their workspace."""
        record = submit(feedback_manager)
        feedback_manager.review(record.id, ADMIN, "reviewed")
        assert feedback_manager.suggest_intents("seat", "ws2") == []

    def test_limited_to_newest_matches(self, feedback_manager):
        """Test that only the ten newest matches are counted."""
        now = datetime.now()
        for i in range(12):
            corrected = "old_intent" if i < 2 else "new_intent"
            record = submit(feedback_manager, text=f"seat {i}", corrected=corrected)
            record.created_at = now - timedelta(minutes=100 - i)
            feedback_manager.review(record.id, ADMIN, "reviewed")

        suggestions = feedback_manager.suggest_intents("seat", "ws1")
        assert [(s.intent, s.count) for s in suggestions] == [("new_intent", 10)]

    def test_requires_workspace(self, feedback_manager):
        """Test that suggestions require a workspace."""
        with pytest.raises(ValidationError):
            feedback_manager.suggest_intents("seat", "")


class TestMergeIntoDataset:
    """Test suite for folding corrections into training data."""

    def test_merge_adds_example_and_invalidates(self, feedback_manager, classifier, store):
        """Test that merging adds an annotated example and regroups the classifier."""
        assert classifier.predict("book me a seat", "ws1").predicted_intent != "book_seat"

        result = feedback_manager.merge_into_dataset("book me a seat", "book_seat", "ws1")

        assert result.added is True
        assert result.total_examples == 3
        assert result.unique_intents == 3
        example = store.get_dataset("ws1").examples[-1]
        assert example.is_annotated is True
        assert example.annotated_at is not None

        prediction = classifier.predict("book me a seat", "ws1")
        assert prediction.predicted_intent == "book_seat"
        assert prediction.confidence == 1.0

    def test_merge_is_idempotent(self, feedback_manager, classifier):
        """Test that merging the same correction twice adds it once."""
        feedback_manager.merge_into_dataset("book me a seat", "book_seat", "ws1")
        retrain_count = classifier.model_info("ws1").retrain_count
        classifier.predict("anything", "ws1")

        result = feedback_manager.merge_into_dataset("book me a seat", "book_seat", "ws1")

        assert result.added is False
        assert result.total_examples == 3
        assert classifier.model_info("ws1").retrain_count == retrain_count + 1

    def test_merge_unknown_workspace(self, feedback_manager):
        """Test that merging into a missing dataset raises DatasetNotFoundError."""
        with pytest.raises(DatasetNotFoundError):
            feedback_manager.merge_into_dataset("text", "intent", "missing")

    def test_apply_feedback(self, feedback_manager, store):
        """Test that applying feedback merges it and marks it applied."""
        record = submit(feedback_manager)
        with pytest.raises(PermissionDeniedError):
            feedback_manager.apply_feedback(record.id, ALICE)

        result = feedback_manager.apply_feedback(record.id, ADMIN)

        assert result.added is True
        assert result.to_dict()["correctIntent"] == "book_flight"
        assert record.status == FeedbackStatus.APPLIED
        assert store.get_dataset("ws1").contains("book me a seat", "book_flight")


class TestListingAndStatistics:
    """Test suite for feedback listings and statistics."""

    def test_list_user_feedback(self, feedback_manager):
        """Test that users list only their own feedback."""
        submit(feedback_manager, ALICE)
        submit(feedback_manager, ALICE, text="another")
        submit(feedback_manager, BOB)

        listing = feedback_manager.list_user_feedback(ALICE)
        assert listing["total"] == 2
        assert all(f.user_id == "alice" for f in listing["feedback"])

    def test_list_all_feedback_admin_only(self, feedback_manager):
        """Test that listing all feedback is admin-only and filters by type."""
        submit(feedback_manager, ALICE)
        submit(feedback_manager, BOB, feedback_type="suggestion")

        with pytest.raises(PermissionDeniedError):
            feedback_manager.list_all_feedback(ALICE)
        assert feedback_manager.list_all_feedback(ADMIN)["total"] == 2
        assert feedback_manager.list_all_feedback(ADMIN, feedback_type="suggestion")["total"] == 1

    def test_statistics(self, feedback_manager):
        """Test feedback counts and the most common correction."""
        first = submit(feedback_manager)
        submit(feedback_manager, text="another")
        submit(feedback_manager, corrected="book_train")
        feedback_manager.review(first.id, ADMIN, "reviewed")

        with pytest.raises(PermissionDeniedError):
            feedback_manager.get_statistics(ALICE)

        stats = feedback_manager.get_statistics(ADMIN)
        assert stats["total"] == 3
        assert stats["pending"] == 2
        assert stats["reviewed"] == 1
        assert stats["mostCorrectedType"] == "book_table → book_flight"
        assert stats["correctionCounts"]["book_table → book_train"] == 1
