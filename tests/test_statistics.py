"""Tests for evaluation metric calculations."""

import pytest

from intent_pipeline.utils.statistics import (
    calculate_classification_metrics,
    calculate_confusion_matrix,
)


class TestClassificationMetrics:
    """Test suite for accuracy and precision/recall/F1."""

    def test_perfect_balanced_predictions(self):
        """Test that perfect predictions give ones across the board."""
        true = ["greet", "greet", "bye", "bye"]
        metrics = calculate_classification_metrics(true, list(true))

        assert metrics.accuracy == 1.0
        assert metrics.macro_f1 == 1.0
        assert metrics.macro_precision == 1.0
        assert metrics.macro_recall == 1.0
        assert metrics.correct_predictions == 4
        assert metrics.total_predictions == 4

    def test_mixed_predictions(self):
        """Test per-class and macro scores for mixed predictions."""
        metrics = calculate_classification_metrics(["a", "a", "b"], ["a", "b", "b"])

        assert metrics.accuracy == pytest.approx(2 / 3)
        assert metrics.per_class["a"].precision == 1.0
        assert metrics.per_class["a"].recall == 0.5
        assert metrics.per_class["b"].precision == 0.5
        assert metrics.per_class["b"].recall == 1.0
        assert metrics.per_class["a"].f1 == pytest.approx(2 / 3)
        assert metrics.macro_f1 == pytest.approx(2 / 3)
        assert metrics.macro_precision == pytest.approx(0.75)

    def test_zero_denominators_yield_zero(self):
        """Test that zero denominators give zero instead of failing."""
        metrics = calculate_classification_metrics(["a"], ["b"])

        assert metrics.accuracy == 0.0
        assert metrics.per_class["a"].precision == 0.0
        assert metrics.per_class["b"].recall == 0.0
        assert metrics.macro_f1 == 0.0

    def test_labels_include_predicted_only(self):
        """Test that labels only ever predicted still get a class entry."""
        metrics = calculate_classification_metrics(["a", "a"], ["a", "c"])
        assert set(metrics.per_class) == {"a", "c"}

    def test_empty_input(self):
        """Test that empty input gives zero accuracy and no classes."""
        metrics = calculate_classification_metrics([], [])
        assert metrics.accuracy == 0.0
        assert metrics.per_class == {}

    def test_length_mismatch(self):
        """Test that mismatched label lists are rejected."""
        with pytest.raises(ValueError):
            calculate_classification_metrics(["a"], [])

    def test_f1_score_alias(self):
        """Test that f1Score mirrors the macro F1."""
        metrics = calculate_classification_metrics(["a", "b"], ["a", "a"])
        assert metrics.f1_score == metrics.macro_f1
        assert metrics.to_dict()["f1Score"] == metrics.macro_f1


class TestConfusionMatrix:
    """Test suite for the confusion matrix."""

    def test_labels_sorted(self):
        """Test that matrix labels are the sorted union of true and predicted."""
        matrix = calculate_confusion_matrix(["zeta", "alpha"], ["mid", "alpha"])
        assert matrix.labels == ["alpha", "mid", "zeta"]

    def test_square(self):
        """Test that every row covers every label."""
        matrix = calculate_confusion_matrix(["a", "b"], ["c", "b"])
        assert set(matrix.counts) == {"a", "b", "c"}
        for row in matrix.counts.values():
            assert list(row) == matrix.labels

    def test_row_sums_match_true_label_counts(self):
        """Test that each row sums to its true label count."""
        true = ["a", "a", "a", "b", "b", "c"]
        pred = ["a", "b", "c", "b", "a", "c"]
        matrix = calculate_confusion_matrix(true, pred)

        for label in matrix.labels:
            assert sum(matrix.counts[label].values()) == true.count(label)
            assert matrix.row_total(label) == true.count(label)
        assert matrix.total_samples == len(true)

    def test_cell_counts(self):
        """Test individual confusion cell counts."""
        matrix = calculate_confusion_matrix(["a", "a", "b"], ["b", "b", "b"])
        assert matrix.counts["a"]["b"] == 2
        assert matrix.counts["a"]["a"] == 0
        assert matrix.counts["b"]["b"] == 1
