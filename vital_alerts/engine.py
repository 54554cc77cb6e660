"""Evaluation engine feeding each subject's sorted history through the rules."""
from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Sequence

import numpy as np

from . import rules as _rules  # noqa: F401 - ensure rule registration side-effects
from .alerts import DEFAULT_FACTORY, MANUAL_FACTORY, annotate, priority, repeated
from .models import Alert, EvaluationContext, Measurement, SignalType
from .registry import RuleRegistry, RuleSet, registry
from .store import RecordSource

MANUAL_ALERT_TEXT = "Manual Alert Triggered"
HYPOTENSIVE_HYPOXEMIA_TEXT = "Hypotensive Hypoxemia (Sys < 90 & Oxy < 92)"

_EARLIEST = -(2**63)
_LATEST = 2**63 - 1
# stands in for "no oxygen reading yet", which counts as low
_MISSING_OXYGEN = -1.0

_HYPOTENSION_LIMIT = 90.0
_HYPOXEMIA_LIMIT = 92.0

_ESCALATION = (repeated(2), priority())


class _OxygenSeries:
    """Oxygen saturation readings of one session, in timestamp order."""

    def __init__(self, records: Sequence[Measurement]) -> None:
        oxygen = [record for record in records if record.signal_type is SignalType.OXYGEN_SATURATION]
        self._timestamps = np.array([record.timestamp for record in oxygen], dtype=np.int64)
        self._values = [record.value for record in oxygen]

    def latest_at_or_before(self, timestamp: int) -> float | None:
        idx = int(np.searchsorted(self._timestamps, timestamp, side="right"))
        if idx == 0:
            return None
        return self._values[idx - 1]


class AlertEvaluator:
    """Runs condition rules over one subject's history at a time."""

    def __init__(
        self,
        source: RecordSource,
        *,
        rules: RuleSet | None = None,
        rule_registry: RuleRegistry | None = None,
        thresholds: Mapping[str, Any] | None = None,
        rule_settings: Mapping[str, Mapping[str, Any]] | None = None,
        context_builder: Callable[[int], EvaluationContext] | None = None,
    ) -> None:
        self._source = source
        self._rules = rules
        self._registry = rule_registry or registry
        self._thresholds = dict(thresholds or {})
        self._rule_settings = dict(rule_settings or {})
        self._context_builder = context_builder

    def evaluate(self, subject_id: int) -> list[Alert]:
        """Evaluate the full history of ``subject_id`` and return its alerts.

        Without an explicit rule set every call starts from fresh rule
        instances, so re-evaluating an unchanged history is idempotent.
        """

        records = list(self._source.get_records(subject_id, _EARLIEST, _LATEST))
        # stable: equal timestamps keep fetch order
        records.sort(key=lambda record: record.timestamp)

        rules = self._rules if self._rules is not None else self._registry.create_rule_set()
        context = self._build_context(subject_id)
        oxygen = _OxygenSeries(records)
        alerts: list[Alert] = []

        for record in records:
            rule = rules.rule_for(record.signal_type)
            if rule is not None:
                alerts.extend(rule.evaluate(record, context))
            elif record.signal_type is SignalType.OTHER:
                logging.debug(f"No rule for record type {record.label!r} (subject {subject_id})")

            alerts.extend(self._evaluate_manual(record))
            alerts.extend(self._evaluate_combined(record, oxygen))

        logging.info(f"Evaluated {len(records)} record(s) for subject {subject_id}: {len(alerts)} alert(s)")
        return alerts

    def evaluate_all(self) -> dict[int, list[Alert]]:
        """Evaluate every subject known to the source."""

        return {
            subject.subject_id: self.evaluate(subject.subject_id)
            for subject in self._source.get_all_subjects()
        }

    def _evaluate_manual(self, record: Measurement) -> list[Alert]:
        if not record.signal_type.is_manual:
            return []
        base = MANUAL_FACTORY.create_alert(record.subject_id, MANUAL_ALERT_TEXT, record.timestamp)
        return [annotate(base, *_ESCALATION)]

    def _evaluate_combined(self, record: Measurement, oxygen: _OxygenSeries) -> list[Alert]:
        if record.signal_type is not SignalType.SYSTOLIC_PRESSURE or record.value >= _HYPOTENSION_LIMIT:
            return []

        latest = oxygen.latest_at_or_before(record.timestamp)
        if latest is None:
            latest = _MISSING_OXYGEN
        if not latest < _HYPOXEMIA_LIMIT:
            return []

        base = DEFAULT_FACTORY.create_alert(record.subject_id, HYPOTENSIVE_HYPOXEMIA_TEXT, record.timestamp)
        return [annotate(base, *_ESCALATION)]

    def _build_context(self, subject_id: int) -> EvaluationContext:
        if self._context_builder is not None:
            return self._context_builder(subject_id)
        return EvaluationContext(
            subject_id=subject_id,
            thresholds=self._thresholds,
            rule_settings=self._rule_settings,
        )
