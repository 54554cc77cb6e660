"""Detect ECG spikes against a moving average of recent samples."""
from __future__ import annotations

from collections import deque

import numpy as np

from ..alerts import ECG_FACTORY
from ..models import Alert, EvaluationContext, Measurement, SignalType
from ..registry import register_rule
from ..rule_base import AlertRule


@register_rule
class CardiacRhythmRule(AlertRule):
    id = "cardiac_rhythm"
    description = "ECG sample above 1.5x the average of the previous five samples"
    version = "1.0.0"
    signal_types = (SignalType.ECG,)
    config_defaults = {"ecg_spike_ratio": 1.5}
    window_size = 5

    def __init__(self) -> None:
        self._windows: dict[int, deque[float]] = {}

    def evaluate(self, measurement: Measurement, context: EvaluationContext) -> list[Alert]:
        if not self.applies_to(measurement):
            return []

        value = measurement.value
        window = self._windows.setdefault(measurement.subject_id, deque(maxlen=self.window_size))
        # an empty window averages to 0, which disables the check
        average = float(np.mean(window)) if window else 0.0

        alerts: list[Alert] = []
        if average > 0 and value > self.resolved_threshold(context, "ecg_spike_ratio") * average:
            alerts.append(
                ECG_FACTORY.create_alert(
                    measurement.subject_id,
                    f"ECG Spike Detected: {value} (avg: {average})",
                    measurement.timestamp,
                )
            )

        window.append(value)
        return alerts

    def reset(self, subject_id: int | None = None) -> None:
        if subject_id is None:
            self._windows.clear()
        else:
            self._windows.pop(subject_id, None)
