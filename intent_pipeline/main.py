import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from .config import LOG_FORMAT, PipelineSettings
from .exceptions import IntentPipelineError, ValidationError
from .pipeline import IntentPipeline
from .utils.error_handling import create_error_response
from .utils.export import dumps, export_json

logger = logging.getLogger(__name__)

WORKSPACE_ID = "cli"


def _load_records(path: str) -> list:
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ValidationError(f"Could not read {path}: {e}") from e
    if not isinstance(data, list):
        raise ValidationError(f"{path} must contain a JSON array")
    return data


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="intent-pipeline",
        description="Train, predict and evaluate a similarity intent classifier.",
    )
    parser.add_argument("--log-level", default=None, help="Override INTENT_LOG_LEVEL")
    commands = parser.add_subparsers(dest="command", required=True)

    predict = commands.add_parser("predict", help="Classify one utterance")
    predict.add_argument("--data", required=True, help="Training data JSON file")
    predict.add_argument("--text", required=True, help="Utterance to classify")

    evaluate = commands.add_parser("evaluate", help="Evaluate against labeled test data")
    evaluate.add_argument("--data", required=True, help="Training data JSON file")
    evaluate.add_argument("--test", required=True, help="Test data JSON file")
    evaluate.add_argument("--output", help="Also write the evaluation document here")

    holdout = commands.add_parser("holdout", help="Evaluate on a held-out slice")
    holdout.add_argument("--data", required=True, help="Training data JSON file")
    holdout.add_argument("--ratio", type=float, default=None, help="Holdout ratio")
    holdout.add_argument("--seed", type=int, default=None, help="Shuffle seed")
    holdout.add_argument("--output", help="Also write the evaluation document here")

    return parser


def run(args: argparse.Namespace, settings: PipelineSettings) -> dict:
    pipeline = IntentPipeline(settings)
    pipeline.train(WORKSPACE_ID, _load_records(args.data), name=Path(args.data).stem)

    if args.command == "predict":
        return pipeline.predict(args.text, WORKSPACE_ID).to_dict()

    if args.command == "evaluate":
        result = pipeline.evaluate(_load_records(args.test), WORKSPACE_ID)
    else:
        result = pipeline.evaluate_holdout(WORKSPACE_ID, args.ratio, args.seed)

    if args.output:
        export_json(result, Path(args.output))
    return result.to_dict()


def main(argv: list[str] | None = None) -> int:
    """Run the intent pipeline command line."""
    load_dotenv()
    args = build_parser().parse_args(argv)

    try:
        settings = PipelineSettings.from_env()
    except ValidationError as e:
        print(dumps(create_error_response(e)))
        return 1

    logging.basicConfig(
        level=args.log_level.upper() if args.log_level else settings.log_level,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )

    try:
        document = run(args, settings)
    except IntentPipelineError as e:
        logger.error(f"{args.command} failed: {e}")
        print(dumps(create_error_response(e)))
        return 1

    print(dumps(document))
    return 0


if __name__ == "__main__":
    sys.exit(main())
