"""Core data models for vital sign alert evaluation."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class SignalType(str, Enum):
    """Measurement categories understood by the alert engine."""

    SYSTOLIC_PRESSURE = "SystolicPressure"
    DIASTOLIC_PRESSURE = "DiastolicPressure"
    OXYGEN_SATURATION = "OxygenSaturation"
    ECG = "ECG"
    ALERT = "Alert"
    MANUAL_ALERT = "ManualAlert"
    OTHER = "Other"

    @classmethod
    def from_label(cls, label: str) -> "SignalType":
        """Map a raw record label onto a member, ``OTHER`` when unknown."""

        try:
            member = cls(label)
        except ValueError:
            return cls.OTHER
        return member

    @property
    def is_manual(self) -> bool:
        return self in (SignalType.ALERT, SignalType.MANUAL_ALERT)


@dataclass(frozen=True)
class Measurement:
    """A single timestamped reading for one subject."""

    subject_id: int
    value: float
    signal_type: SignalType
    timestamp: int
    label: str = ""

    def __post_init__(self) -> None:
        if not self.label:
            object.__setattr__(self, "label", self.signal_type.value)


@dataclass(frozen=True)
class Alert:
    """Alert raised for a subject at a point in time."""

    subject_id: str
    condition: str
    timestamp: int


@dataclass(frozen=True)
class RuleDescriptor:
    """Static metadata describing a condition rule."""

    rule_id: str
    name: str
    description: str
    version: str = "1.0.0"
    signal_types: tuple[SignalType, ...] = ()
    config_defaults: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class EvaluationContext:
    """Auxiliary context passed to each rule evaluation."""

    subject_id: int
    thresholds: Mapping[str, Any] = field(default_factory=dict)
    rule_settings: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)

    def rule_threshold(self, rule_id: str, key: str, default: Any) -> Any:
        """Return rule-specific override, falling back to global thresholds"""

        rule_specific = self.rule_settings.get(rule_id, {})
        if key in rule_specific:
            return rule_specific[key]
        return self.thresholds.get(key, default)
