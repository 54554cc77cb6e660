"""Detect low oxygen saturation and rapid drops within a ten minute lookback."""
from __future__ import annotations

from bisect import bisect_left, insort

from ..alerts import BLOOD_OXYGEN_FACTORY
from ..models import Alert, EvaluationContext, Measurement, SignalType
from ..registry import register_rule
from ..rule_base import AlertRule


class _OxygenHistory:
    """Time-ordered timestamp -> value map for one subject."""

    def __init__(self) -> None:
        self.timestamps: list[int] = []
        self.values: dict[int, float] = {}

    def put(self, timestamp: int, value: float) -> None:
        if timestamp not in self.values:
            insort(self.timestamps, timestamp)
        self.values[timestamp] = value

    def oldest_between(self, start: int, end: int) -> float | None:
        """Value of the earliest entry with ``start <= timestamp < end``."""

        idx = bisect_left(self.timestamps, start)
        if idx < len(self.timestamps) and self.timestamps[idx] < end:
            return self.values[self.timestamps[idx]]
        return None


@register_rule
class OxygenSaturationRule(AlertRule):
    id = "oxygen_saturation"
    description = "SpO2 below 92%, or a drop of >=5 points against the oldest reading in the last 10 minutes"
    version = "1.0.0"
    signal_types = (SignalType.OXYGEN_SATURATION,)
    config_defaults = {
        "oxygen_low": 92.0,
        "oxygen_drop": 5.0,
        "oxygen_drop_window_ms": 600_000.0,
    }

    def __init__(self) -> None:
        self._history: dict[int, _OxygenHistory] = {}

    def evaluate(self, measurement: Measurement, context: EvaluationContext) -> list[Alert]:
        if not self.applies_to(measurement):
            return []

        value = measurement.value
        timestamp = measurement.timestamp
        alerts: list[Alert] = []

        if value < self.resolved_threshold(context, "oxygen_low"):
            alerts.append(
                BLOOD_OXYGEN_FACTORY.create_alert(
                    measurement.subject_id,
                    f"Low Oxygen Saturation: {value}",
                    timestamp,
                )
            )

        history = self._history.setdefault(measurement.subject_id, _OxygenHistory())
        history.put(timestamp, value)

        lookback = int(self.resolved_threshold(context, "oxygen_drop_window_ms"))
        oldest = history.oldest_between(timestamp - lookback, timestamp)
        if oldest is not None and oldest - value >= self.resolved_threshold(context, "oxygen_drop"):
            alerts.append(
                BLOOD_OXYGEN_FACTORY.create_alert(
                    measurement.subject_id,
                    f"Rapid Oxygen Drop: {oldest} → {value}",
                    timestamp,
                )
            )
        return alerts

    def reset(self, subject_id: int | None = None) -> None:
        if subject_id is None:
            self._history.clear()
        else:
            self._history.pop(subject_id, None)
