"""Tests for the command line entry point."""

import json
import logging

import pytest

from intent_pipeline.main import main

TRAINING_DATA = [
    {"text": "book a flight", "intent": "book_flight"},
    {"text": "reserve a flight ticket", "intent": "book_flight"},
    {"text": "book a table", "intent": "book_table"},
    {"text": "reserve a table for dinner", "intent": "book_table"},
]


@pytest.fixture
def train_file(tmp_path):
    path = tmp_path / "train.json"
    path.write_text(json.dumps(TRAINING_DATA), encoding="utf-8")
    return path


class TestMain:
    """Test suite for the CLI."""

    def test_predict(self, train_file, capsys):
        """Test that predict prints the prediction as JSON."""
        code = main(["predict", "--data", str(train_file), "--text", "book flight please"])

        assert code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["predictedIntent"] == "book_flight"
        assert output["confidence"] == pytest.approx(0.5)

    def test_evaluate_with_output(self, train_file, tmp_path, capsys):
        """Test that evaluate prints the result and writes the export file."""
        out_file = tmp_path / "reports" / "eval.json"
        code = main(
            [
                "evaluate",
                "--data",
                str(train_file),
                "--test",
                str(train_file),
                "--output",
                str(out_file),
            ]
        )

        assert code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["metrics"]["accuracy"] == 1.0
        assert json.loads(out_file.read_text(encoding="utf-8"))["evaluationId"] == output["evaluationId"]

    def test_holdout(self, train_file, capsys):
        """Test that holdout evaluates a seeded split."""
        code = main(["holdout", "--data", str(train_file), "--ratio", "0.5", "--seed", "1"])

        assert code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["testDataSize"] == 2
        assert output["holdoutRatio"] == 0.5

    def test_missing_file(self, tmp_path, capsys):
        """Test that a missing data file exits 1 with a ValidationError."""
        code = main(["predict", "--data", str(tmp_path / "nope.json"), "--text", "hi"])

        assert code == 1
        output = json.loads(capsys.readouterr().out)
        assert output["success"] is False
        assert output["errorType"] == "ValidationError"

    def test_no_training_data(self, tmp_path, capsys):
        """Test that unusable training data exits 1 with NoTrainingDataError."""
        path = tmp_path / "bad.json"
        path.write_text(json.dumps([{"text": "no intent"}]), encoding="utf-8")

        code = main(["predict", "--data", str(path), "--text", "hi"])

        assert code == 1
        assert json.loads(capsys.readouterr().out)["errorType"] == "NoTrainingDataError"

    def test_leaves_third_party_log_levels_alone(self, train_file, capsys):
        """Test that running the CLI does not change other libraries' log levels."""
        before = {name: logging.getLogger(name).level for name in ("httpx", "httpcore")}

        main(["predict", "--data", str(train_file), "--text", "book a flight"])
        capsys.readouterr()

        after = {name: logging.getLogger(name).level for name in ("httpx", "httpcore")}
        assert after == before == {"httpx": logging.NOTSET, "httpcore": logging.NOTSET}
