"""Vital sign alert evaluation library."""

from .alerts import AlertFactory, annotate, priority, repeated
from .engine import AlertEvaluator
from .models import Alert, EvaluationContext, Measurement, RuleDescriptor, SignalType
from .registry import RuleRegistry, RuleSet, register_rule, registry
from .rule_base import AlertRule
from .store import RecordStore, Subject

__all__ = [
    "Alert",
    "AlertEvaluator",
    "AlertFactory",
    "AlertRule",
    "EvaluationContext",
    "Measurement",
    "RecordStore",
    "RuleDescriptor",
    "RuleRegistry",
    "RuleSet",
    "SignalType",
    "Subject",
    "annotate",
    "priority",
    "register_rule",
    "registry",
    "repeated",
]
