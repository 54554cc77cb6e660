"""Detect critical blood pressure values and consistent pressure trends."""
from __future__ import annotations

from collections import deque

from ..alerts import BLOOD_PRESSURE_FACTORY
from ..models import Alert, EvaluationContext, Measurement, SignalType
from ..registry import register_rule
from ..rule_base import AlertRule

_TREND_LABELS = {
    SignalType.SYSTOLIC_PRESSURE: "Systolic Trend",
    SignalType.DIASTOLIC_PRESSURE: "Diastolic Trend",
}


def is_consistent_trend(values: list[float], step: float) -> bool:
    """True when three values rise or fall by more than ``step`` at each step."""

    v0, v1, v2 = values
    return (v1 - v0 > step and v2 - v1 > step) or (v0 - v1 > step and v1 - v2 > step)


@register_rule
class BloodPressureRule(AlertRule):
    id = "blood_pressure"
    description = (
        "Systolic outside [90, 180] or diastolic outside [60, 120];"
        " three consecutive readings moving >10 mmHg in the same direction"
    )
    version = "1.0.0"
    signal_types = (SignalType.SYSTOLIC_PRESSURE, SignalType.DIASTOLIC_PRESSURE)
    config_defaults = {
        "systolic_critical_low": 90.0,
        "systolic_critical_high": 180.0,
        "diastolic_critical_low": 60.0,
        "diastolic_critical_high": 120.0,
        "pressure_trend_step": 10.0,
    }
    trend_window = 3

    def __init__(self) -> None:
        self._trends: dict[tuple[int, SignalType], deque[float]] = {}

    def evaluate(self, measurement: Measurement, context: EvaluationContext) -> list[Alert]:
        if not self.applies_to(measurement):
            return []

        signal_type = measurement.signal_type
        value = measurement.value
        alerts: list[Alert] = []

        if signal_type is SignalType.SYSTOLIC_PRESSURE:
            low = self.resolved_threshold(context, "systolic_critical_low")
            high = self.resolved_threshold(context, "systolic_critical_high")
        else:
            low = self.resolved_threshold(context, "diastolic_critical_low")
            high = self.resolved_threshold(context, "diastolic_critical_high")
        if value < low or value > high:
            alerts.append(
                BLOOD_PRESSURE_FACTORY.create_alert(
                    measurement.subject_id,
                    f"Critical {signal_type.value}: {value}",
                    measurement.timestamp,
                )
            )

        trend = self._trends.setdefault(
            (measurement.subject_id, signal_type),
            deque(maxlen=self.trend_window),
        )
        trend.append(value)
        step = self.resolved_threshold(context, "pressure_trend_step")
        if len(trend) == self.trend_window and is_consistent_trend(list(trend), step):
            alerts.append(
                BLOOD_PRESSURE_FACTORY.create_alert(
                    measurement.subject_id,
                    f"{_TREND_LABELS[signal_type]}: {list(trend)}",
                    measurement.timestamp,
                )
            )
        return alerts

    def reset(self, subject_id: int | None = None) -> None:
        if subject_id is None:
            self._trends.clear()
            return
        for key in [key for key in self._trends if key[0] == subject_id]:
            del self._trends[key]
