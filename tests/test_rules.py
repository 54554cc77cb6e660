from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import pytest

from vital_alerts.models import EvaluationContext, Measurement, SignalType
from vital_alerts.rules.blood_pressure import BloodPressureRule, is_consistent_trend
from vital_alerts.rules.cardiac_rhythm import CardiacRhythmRule
from vital_alerts.rules.oxygen_saturation import OxygenSaturationRule

T0 = 1_700_000_000_000


def _m(value: float, signal_type: SignalType, timestamp: int, subject_id: int = 1) -> Measurement:
    return Measurement(subject_id=subject_id, value=value, signal_type=signal_type, timestamp=timestamp)


def _feed(rule, measurements, context=None):
    conditions: list[list[str]] = []
    for measurement in measurements:
        ctx = context or EvaluationContext(subject_id=measurement.subject_id)
        conditions.append([alert.condition for alert in rule.evaluate(measurement, ctx)])
    return conditions


@pytest.mark.parametrize("value", [89.9, 30.0, -5.0, 180.5, 250.0])
def test_critical_systolic_outside_range(value):
    rule = BloodPressureRule()
    (conditions,) = _feed(rule, [_m(value, SignalType.SYSTOLIC_PRESSURE, T0)])
    assert conditions == [f"Blood Pressure Alert: Critical SystolicPressure: {value}"]


@pytest.mark.parametrize("value", [90.0, 120.0, 180.0])
def test_systolic_bounds_are_inclusive(value):
    rule = BloodPressureRule()
    assert _feed(rule, [_m(value, SignalType.SYSTOLIC_PRESSURE, T0)]) == [[]]


def test_critical_diastolic_outside_range():
    rule = BloodPressureRule()
    conditions = _feed(
        rule,
        [
            _m(130.0, SignalType.DIASTOLIC_PRESSURE, T0),
            _m(59.0, SignalType.DIASTOLIC_PRESSURE, T0 + 10),
        ],
    )
    assert conditions[0] == ["Blood Pressure Alert: Critical DiastolicPressure: 130.0"]
    assert conditions[1] == ["Blood Pressure Alert: Critical DiastolicPressure: 59.0"]


def test_systolic_trend_fires_on_third_value_only():
    rule = BloodPressureRule()
    conditions = _feed(
        rule,
        [
            _m(100.0, SignalType.SYSTOLIC_PRESSURE, T0),
            _m(111.0, SignalType.SYSTOLIC_PRESSURE, T0 + 1),
            _m(123.0, SignalType.SYSTOLIC_PRESSURE, T0 + 2),
        ],
    )
    assert conditions == [[], [], ["Blood Pressure Alert: Systolic Trend: [100.0, 111.0, 123.0]"]]


def test_decreasing_diastolic_trend_refires_for_each_window():
    rule = BloodPressureRule()
    values = [110.0, 98.0, 86.0, 74.0]
    conditions = _feed(
        rule,
        [_m(value, SignalType.DIASTOLIC_PRESSURE, T0 + idx) for idx, value in enumerate(values)],
    )
    assert conditions[2] == ["Blood Pressure Alert: Diastolic Trend: [110.0, 98.0, 86.0]"]
    assert conditions[3] == ["Blood Pressure Alert: Diastolic Trend: [98.0, 86.0, 74.0]"]


def test_trend_requires_steps_strictly_above_ten():
    assert not is_consistent_trend([100.0, 110.0, 121.0], 10.0)
    assert not is_consistent_trend([100.0, 115.0, 105.0], 10.0)
    assert is_consistent_trend([100.0, 110.5, 121.0], 10.0)


def test_pressure_windows_are_separate_per_type_and_subject():
    rule = BloodPressureRule()
    conditions = _feed(
        rule,
        [
            _m(100.0, SignalType.SYSTOLIC_PRESSURE, T0, subject_id=1),
            _m(111.0, SignalType.DIASTOLIC_PRESSURE, T0 + 1, subject_id=1),
            _m(111.0, SignalType.SYSTOLIC_PRESSURE, T0 + 2, subject_id=2),
            _m(123.0, SignalType.SYSTOLIC_PRESSURE, T0 + 3, subject_id=1),
        ],
    )
    assert conditions == [[], [], [], []]


def test_pressure_threshold_override():
    rule = BloodPressureRule()
    context = EvaluationContext(subject_id=1, rule_settings={"blood_pressure": {"systolic_critical_high": 140}})
    (conditions,) = _feed(rule, [_m(150.0, SignalType.SYSTOLIC_PRESSURE, T0)], context)
    assert conditions == ["Blood Pressure Alert: Critical SystolicPressure: 150.0"]


def test_low_oxygen_saturation():
    rule = OxygenSaturationRule()
    assert _feed(rule, [_m(90.0, SignalType.OXYGEN_SATURATION, T0)]) == [
        ["Blood Oxygen Alert: Low Oxygen Saturation: 90.0"]
    ]
    assert _feed(rule, [_m(92.0, SignalType.OXYGEN_SATURATION, T0 + 1, subject_id=2)]) == [[]]


def test_rapid_oxygen_drop_within_ten_minutes():
    rule = OxygenSaturationRule()
    conditions = _feed(
        rule,
        [
            _m(97.0, SignalType.OXYGEN_SATURATION, T0),
            _m(91.0, SignalType.OXYGEN_SATURATION, T0 + 300_000),
        ],
    )
    assert conditions[0] == []
    assert "Blood Oxygen Alert: Rapid Oxygen Drop: 97.0 → 91.0" in conditions[1]


def test_rapid_oxygen_drop_window_start_is_inclusive():
    rule = OxygenSaturationRule()
    conditions = _feed(
        rule,
        [
            _m(99.0, SignalType.OXYGEN_SATURATION, T0),
            _m(94.0, SignalType.OXYGEN_SATURATION, T0 + 600_000),
        ],
    )
    assert conditions[1] == ["Blood Oxygen Alert: Rapid Oxygen Drop: 99.0 → 94.0"]


def test_no_rapid_drop_beyond_ten_minutes():
    rule = OxygenSaturationRule()
    conditions = _feed(
        rule,
        [
            _m(97.0, SignalType.OXYGEN_SATURATION, T0),
            _m(91.0, SignalType.OXYGEN_SATURATION, T0 + 600_001),
        ],
    )
    assert conditions[1] == ["Blood Oxygen Alert: Low Oxygen Saturation: 91.0"]


def test_rapid_drop_compares_against_oldest_in_window():
    rule = OxygenSaturationRule()
    conditions = _feed(
        rule,
        [
            _m(99.0, SignalType.OXYGEN_SATURATION, T0),
            _m(95.0, SignalType.OXYGEN_SATURATION, T0 + 60_000),
            _m(94.0, SignalType.OXYGEN_SATURATION, T0 + 120_000),
        ],
    )
    assert conditions[1] == []
    assert conditions[2] == ["Blood Oxygen Alert: Rapid Oxygen Drop: 99.0 → 94.0"]


def test_rapid_drop_uses_latest_value_at_same_timestamp():
    rule = OxygenSaturationRule()
    conditions = _feed(
        rule,
        [
            _m(99.0, SignalType.OXYGEN_SATURATION, T0),
            _m(97.0, SignalType.OXYGEN_SATURATION, T0),
            _m(93.0, SignalType.OXYGEN_SATURATION, T0 + 60_000),
        ],
    )
    # 97 replaced 99, so the drop is only 4 points
    assert conditions == [[], [], []]


def test_oxygen_history_is_separate_per_subject():
    rule = OxygenSaturationRule()
    conditions = _feed(
        rule,
        [
            _m(99.0, SignalType.OXYGEN_SATURATION, T0, subject_id=1),
            _m(93.0, SignalType.OXYGEN_SATURATION, T0 + 60_000, subject_id=2),
            _m(93.0, SignalType.OXYGEN_SATURATION, T0 + 120_000, subject_id=1),
        ],
    )
    assert conditions[1] == []
    assert conditions[2] == ["Blood Oxygen Alert: Rapid Oxygen Drop: 99.0 → 93.0"]


def test_ecg_spike_after_baseline():
    rule = CardiacRhythmRule()
    values = [100.0, 102.0, 99.0, 98.0, 101.0, 170.0]
    conditions = _feed(rule, [_m(value, SignalType.ECG, T0 + idx) for idx, value in enumerate(values)])
    assert conditions[:5] == [[], [], [], [], []]
    assert conditions[5] == ["ECG Alert: ECG Spike Detected: 170.0 (avg: 100.0)"]


def test_ecg_window_keeps_last_five_values():
    rule = CardiacRhythmRule()
    values = [1000.0, 10.0, 10.0, 10.0, 10.0, 10.0, 20.0]
    conditions = _feed(rule, [_m(value, SignalType.ECG, T0 + idx) for idx, value in enumerate(values)])
    assert conditions[6] == ["ECG Alert: ECG Spike Detected: 20.0 (avg: 10.0)"]


def test_ecg_first_sample_never_fires():
    rule = CardiacRhythmRule()
    assert _feed(rule, [_m(5000.0, SignalType.ECG, T0)]) == [[]]


def test_ecg_windows_are_separate_per_subject():
    rule = CardiacRhythmRule()
    baseline = [_m(100.0, SignalType.ECG, T0 + idx, subject_id=1) for idx in range(5)]
    _feed(rule, baseline)
    conditions = _feed(
        rule,
        [
            _m(170.0, SignalType.ECG, T0 + 10, subject_id=2),
            _m(400.0, SignalType.ECG, T0 + 11, subject_id=2),
            _m(170.0, SignalType.ECG, T0 + 12, subject_id=1),
        ],
    )
    assert conditions[0] == []
    assert conditions[1] == ["ECG Alert: ECG Spike Detected: 400.0 (avg: 170.0)"]
    assert conditions[2] == ["ECG Alert: ECG Spike Detected: 170.0 (avg: 100.0)"]


def test_rules_ignore_other_signal_types():
    measurements = [
        _m(0.0, SignalType.OTHER, T0),
        _m(40.0, SignalType.OXYGEN_SATURATION, T0 + 1),
        _m(300.0, SignalType.ECG, T0 + 2),
    ]
    assert _feed(BloodPressureRule(), measurements) == [[], [], []]
    assert _feed(CardiacRhythmRule(), measurements[:2]) == [[], []]


def test_reset_clears_subject_window():
    rule = BloodPressureRule()
    _feed(
        rule,
        [
            _m(100.0, SignalType.SYSTOLIC_PRESSURE, T0),
            _m(111.0, SignalType.SYSTOLIC_PRESSURE, T0 + 1),
        ],
    )
    rule.reset(1)
    assert _feed(rule, [_m(123.0, SignalType.SYSTOLIC_PRESSURE, T0 + 2)]) == [[]]


def test_descriptor_exposes_metadata():
    descriptor = OxygenSaturationRule().descriptor
    assert descriptor.rule_id == "oxygen_saturation"
    assert descriptor.signal_types == (SignalType.OXYGEN_SATURATION,)
    assert descriptor.config_defaults["oxygen_low"] == 92.0
