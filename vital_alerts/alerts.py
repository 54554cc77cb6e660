"""Alert builders and annotators.

Builders turn a ``(subject_id, message, timestamp)`` triple into an
:class:`~vital_alerts.models.Alert`, prefixing the message with the tag of
their alert family. Annotators are pure ``Alert -> Alert`` transforms that
rewrite the condition text and pass the subject id and timestamp through::

    annotate(alert, repeated(2), priority())
    # "[PRIORITY] <condition> (Repeated 2x)"
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable

from .models import Alert

AlertTransform = Callable[[Alert], Alert]

PRIORITY_TAG = "[PRIORITY] "


@dataclass(frozen=True)
class AlertFactory:
    """Builds alerts for one alert family."""

    tag: str = ""

    def create_alert(self, subject_id: int | str, message: str, timestamp: int) -> Alert:
        return Alert(subject_id=str(subject_id), condition=f"{self.tag}{message}", timestamp=timestamp)


DEFAULT_FACTORY = AlertFactory()
BLOOD_PRESSURE_FACTORY = AlertFactory("Blood Pressure Alert: ")
BLOOD_OXYGEN_FACTORY = AlertFactory("Blood Oxygen Alert: ")
ECG_FACTORY = AlertFactory("ECG Alert: ")
# Operator-asserted alerts keep their text untagged.
MANUAL_FACTORY = DEFAULT_FACTORY


def with_priority(alert: Alert) -> Alert:
    return replace(alert, condition=f"{PRIORITY_TAG}{alert.condition}")


def with_repeat(alert: Alert, count: int) -> Alert:
    return replace(alert, condition=f"{alert.condition} (Repeated {count}x)")


def priority() -> AlertTransform:
    """Return the priority-tag transform."""

    return with_priority


def repeated(count: int) -> AlertTransform:
    """Return a transform appending a repeat-count suffix."""

    def _transform(alert: Alert) -> Alert:
        return with_repeat(alert, count)

    return _transform


def annotate(alert: Alert, *transforms: AlertTransform) -> Alert:
    """Apply ``transforms`` to ``alert`` in the order given."""

    for transform in transforms:
        alert = transform(alert)
    return alert


__all__ = [
    "AlertFactory",
    "AlertTransform",
    "BLOOD_OXYGEN_FACTORY",
    "BLOOD_PRESSURE_FACTORY",
    "DEFAULT_FACTORY",
    "ECG_FACTORY",
    "MANUAL_FACTORY",
    "PRIORITY_TAG",
    "annotate",
    "priority",
    "repeated",
    "with_priority",
    "with_repeat",
]
