"""Base class and utilities for condition rules."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from .models import Alert, EvaluationContext, Measurement, RuleDescriptor, SignalType


class AlertRule(ABC):
    """Abstract stateful condition rule with metadata.

    Each instance owns its window state, keyed by subject id, so a single
    instance may see several subjects without their histories mixing.
    """

    id: str = ""
    description: str = ""
    version: str = "1.0.0"
    signal_types: tuple[SignalType, ...] = ()
    config_defaults: dict[str, Any] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if not cls.id:
            raise ValueError(f"Rule {cls.__name__} must define a non-empty id")

    @property
    def descriptor(self) -> RuleDescriptor:
        """Return static metadata describing this rule."""

        return RuleDescriptor(
            rule_id=self.id,
            name=self.description or self.id,
            description=self.description or self.id,
            version=self.version,
            signal_types=self.signal_types,
            config_defaults=dict(self.config_defaults),
        )

    def applies_to(self, measurement: Measurement) -> bool:
        return measurement.signal_type in self.signal_types

    @abstractmethod
    def evaluate(self, measurement: Measurement, context: EvaluationContext) -> list[Alert]:
        """Inspect one measurement and return the alerts it raises."""

    @abstractmethod
    def reset(self, subject_id: int | None = None) -> None:
        """Drop window state for one subject, or for all subjects."""

    def resolved_threshold(self, context: EvaluationContext, key: str) -> float:
        """Fetch a threshold, honouring rule-specific overrides."""

        return float(context.rule_threshold(self.id, key, self.config_defaults[key]))

    def __repr__(self) -> str:  # pragma: no cover - convenience only
        return f"<{self.__class__.__name__} id={self.id!r} version={self.version!r}>"
