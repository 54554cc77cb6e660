"""Command-line utility for evaluating alert rules across subjects.

The tool loads every ``*.txt`` record file found under a data directory, one
labelled record per line::

    Patient ID: 1, Timestamp: 1743760000000, Label: SystolicPressure, Data: 88.0

Use ``--subject`` repeatedly to restrict the run, otherwise every subject in
the data is evaluated. Thresholds may be overridden with a JSON file holding
``{"thresholds": {...}, "rule_settings": {"<rule_id>": {...}}}``. Results are
written as JSON to stdout or to ``--output`` if provided.
"""
from __future__ import annotations

import argparse
import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping

from models.record_models import AlertPayload

from .engine import AlertEvaluator
from .models import Alert
from .record_reader import FileRecordReader
from .store import RecordStore

DATA_DIR_ENV = "VITAL_ALERTS_DATA_DIR"


def _alert_to_dict(alert: Alert) -> dict:
    return AlertPayload(
        subjectId=alert.subject_id,
        condition=alert.condition,
        timestamp=alert.timestamp,
    ).model_dump()


def load_threshold_config(path: Path) -> tuple[dict[str, Any], dict[str, dict[str, Any]]]:
    """Read threshold overrides from a JSON file."""

    with path.open() as handle:
        payload = json.load(handle)
    if not isinstance(payload, Mapping):
        raise ValueError(f"Threshold file {path} must contain a JSON object")
    thresholds = payload.get("thresholds", {})
    rule_settings = payload.get("rule_settings", {})
    if not isinstance(thresholds, Mapping) or not isinstance(rule_settings, Mapping):
        raise ValueError("'thresholds' and 'rule_settings' must be JSON objects")
    return dict(thresholds), {rule_id: dict(settings) for rule_id, settings in rule_settings.items()}


def run(
    store: RecordStore,
    *,
    subject_ids: list[int] | None = None,
    thresholds: Mapping[str, Any] | None = None,
    rule_settings: Mapping[str, Mapping[str, Any]] | None = None,
) -> dict[str, list[dict]]:
    evaluator = AlertEvaluator(store, thresholds=thresholds, rule_settings=rule_settings)
    if subject_ids is None:
        subject_ids = sorted(subject.subject_id for subject in store.get_all_subjects())

    results: dict[str, list[dict]] = {}
    for subject_id in subject_ids:
        results[str(subject_id)] = [_alert_to_dict(alert) for alert in evaluator.evaluate(subject_id)]
    return results


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Evaluate vital sign alert rules in batch")
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=os.getenv(DATA_DIR_ENV),
        help=f"Directory containing *.txt record files (default: ${DATA_DIR_ENV})",
    )
    parser.add_argument("--subject", type=int, action="append", help="Subject ID to evaluate (may be repeated)")
    parser.add_argument("--thresholds", type=Path, help="JSON file with threshold overrides")
    parser.add_argument("--output", type=Path, help="Optional output JSON file")
    parser.add_argument("--indent", type=int, default=None, help="Pretty-print JSON with the given indent")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )
    if args.data_dir is None:
        raise SystemExit(f"--data-dir or ${DATA_DIR_ENV} must be provided")
    data_dir = Path(args.data_dir)
    if not data_dir.is_dir():
        raise SystemExit(f"Record data directory not found: {data_dir}")

    thresholds: dict[str, Any] = {}
    rule_settings: dict[str, dict[str, Any]] = {}
    if args.thresholds:
        thresholds, rule_settings = load_threshold_config(args.thresholds)

    with RecordStore() as store:
        FileRecordReader(data_dir).read_into(store)
        results = run(
            store,
            subject_ids=args.subject,
            thresholds=thresholds,
            rule_settings=rule_settings,
        )

    output_text = json.dumps(results, indent=args.indent, ensure_ascii=False)
    if args.output:
        args.output.write_text(output_text)
    else:
        print(output_text)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
