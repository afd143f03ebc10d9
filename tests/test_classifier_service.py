"""Tests for the IntentClassifier and its prediction workflow."""

import pytest

from intent_pipeline.classifier.service import IntentClassifier
from intent_pipeline.exceptions import NoTrainingDataError
from intent_pipeline.models.active_learning import Priority
from intent_pipeline.models.training import TrainingExample
from intent_pipeline.processing.active_learning_queue import ActiveLearningQueue
from intent_pipeline.processing.dataset_store import DatasetStore

TRAINING_DATA = [
    {"text": "book a flight", "intent": "book_flight"},
    {"text": "book a table", "intent": "book_table"},
]


@pytest.fixture
def store():
    return DatasetStore()


@pytest.fixture
def queue():
    return ActiveLearningQueue()


@pytest.fixture
def classifier(store, queue):
    """Classifier trained on the booking example."""
    classifier = IntentClassifier(store, queue=queue)
    classifier.train("ws1", TRAINING_DATA)
    return classifier


class TestTraining:
    """Test suite for training and model info."""

    def test_train_builds_model(self, classifier):
        """Test that training records the model id, intents and counts."""
        model = classifier.model_info("ws1")

        assert model.model_id.startswith("intent-classifier-ws1-")
        assert model.intents == ["book_flight", "book_table"]
        assert model.training_example_count == 2
        assert model.retrain_count == 0

    def test_train_accepts_label_aliases(self, store):
        """Test that training accepts aliased fields and skips junk."""
        classifier = IntentClassifier(store)
        model = classifier.train("ws2", [{"utterance": "hi", "label": "greet"}, {"foo": 1}])

        assert model.intents == ["greet"]
        assert model.training_example_count == 1

    def test_train_without_usable_records(self, store):
        """Test that training with no usable records raises NoTrainingDataError."""
        classifier = IntentClassifier(store)
        with pytest.raises(NoTrainingDataError):
            classifier.train("ws2", [{"text": "no intent"}])

    def test_untrained_workspace(self, classifier):
        """Test that predicting in an untrained workspace raises NoTrainingDataError."""
        with pytest.raises(NoTrainingDataError):
            classifier.predict("hello", "unknown")

    def test_list_and_delete_models(self, classifier):
        """Test listing and deleting cached models."""
        assert [m.workspace_id for m in classifier.list_models()] == ["ws1"]
        assert classifier.delete_model("ws1") is True
        assert classifier.model_info("ws1") is None
        assert classifier.delete_model("ws1") is False

    def test_model_rebuilt_from_store_after_delete(self, classifier):
        """Test that a deleted model is rebuilt from the stored dataset."""
        classifier.delete_model("ws1")
        prediction = classifier.predict("book a flight", "ws1")
        assert prediction.predicted_intent == "book_flight"

    def test_to_dict(self, classifier):
        """Test the camelCase export of model info."""
        data = classifier.model_info("ws1").to_dict()
        assert data["trainingExamples"] == 2
        assert data["lastRetrained"] is None


class TestPrediction:
    """Test suite for predictions."""

    def test_predict_example(self, classifier):
        """Test a prediction with its confidence and alternatives."""
        prediction = classifier.predict("book flight please", "ws1")

        assert prediction.predicted_intent == "book_flight"
        assert prediction.confidence == pytest.approx(0.5)
        assert prediction.uncertainty_score == pytest.approx(0.5)
        assert prediction.is_uncertain is False
        assert prediction.alternatives[0].intent == "book_table"
        assert prediction.alternatives[0].confidence == pytest.approx(0.2)
        assert prediction.model_id == classifier.model_info("ws1").model_id

    def test_uncertainty_is_one_minus_confidence(self, classifier):
        """Test that uncertainty is always one minus confidence."""
        for text in ["book a flight", "book", "something else entirely"]:
            prediction = classifier.predict(text, "ws1")
            assert prediction.uncertainty_score == 1 - prediction.confidence

    def test_to_dict_shape(self, classifier):
        """Test the keys of an exported prediction."""
        data = classifier.predict("book a table", "ws1").to_dict()
        assert set(data) == {
            "text",
            "predictedIntent",
            "confidence",
            "uncertaintyScore",
            "alternatives",
            "isUncertain",
            "workspaceId",
            "modelId",
        }

    def test_uncertain_prediction_is_queued(self, classifier, queue):
        """Test that an uncertain prediction with a user is queued."""
        prediction = classifier.predict("cancel my order", "ws1", user_id="alice")

        assert prediction.confidence == 0.1
        assert prediction.is_uncertain is True
        assert queue.get_sample_count() == 1
        sample = queue._snapshot()[0]
        assert sample.user_id == "alice"
        assert sample.priority == Priority.URGENT
        assert sample.text == "cancel my order"

    def test_repeated_uncertain_prediction_queued_once(self, classifier, queue):
        """Test that repeating an uncertain prediction queues it once."""
        classifier.predict("cancel my order", "ws1", user_id="alice")
        classifier.predict("cancel my order", "ws1", user_id="alice")
        assert queue.get_sample_count() == 1

    def test_not_queued_without_user(self, classifier, queue):
        """Test that predictions without a user are never queued."""
        prediction = classifier.predict("cancel my order", "ws1")
        assert prediction.is_uncertain is True
        assert queue.get_sample_count() == 0

    def test_not_queued_when_disabled(self, classifier, queue):
        """Test that enqueue=False skips the queue."""
        classifier.predict("cancel my order", "ws1", user_id="alice", enqueue=False)
        assert queue.get_sample_count() == 0

    def test_confident_prediction_not_queued(self, classifier, queue):
        """Test that confident predictions are not queued."""
        classifier.predict("book a flight", "ws1", user_id="alice")
        assert queue.get_sample_count() == 0

    def test_without_queue(self, store):
        """Test that a classifier without a queue still flags uncertainty."""
        classifier = IntentClassifier(store)
        classifier.train("ws1", TRAINING_DATA)
        prediction = classifier.predict("zzz", "ws1", user_id="alice")
        assert prediction.is_uncertain is True


class TestCacheInvalidation:
    """Test suite for regrouping after dataset changes."""

    def test_invalidate_regroups_with_new_example(self, classifier, store):
        """Test that invalidation regroups with newly appended examples."""
        model_id = classifier.model_info("ws1").model_id
        store.append_example("ws1", TrainingExample(text="cancel my order", intent="cancel"))

        # Still the cached grouping until invalidated
        assert classifier.predict("cancel my order", "ws1").predicted_intent != "cancel"

        classifier.invalidate("ws1")
        prediction = classifier.predict("cancel my order", "ws1")

        assert prediction.predicted_intent == "cancel"
        assert prediction.confidence == 1.0
        model = classifier.model_info("ws1")
        assert model.model_id == model_id
        assert model.retrain_count == 1
        assert model.last_retrained is not None

    def test_invalidate_unknown_workspace_is_noop(self, classifier):
        """Test that invalidating an unknown workspace does nothing."""
        classifier.invalidate("other")
        with pytest.raises(NoTrainingDataError):
            classifier.get_model("other")
