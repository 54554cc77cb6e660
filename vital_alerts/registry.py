"""Registry of condition rules and per-session rule sets."""
from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Dict, Type

from .models import SignalType
from .rule_base import AlertRule


class RuleSet:
    """Signal-type dispatch table over explicitly constructed rule instances."""

    def __init__(self, rules: Iterable[AlertRule]) -> None:
        self._rules: list[AlertRule] = list(rules)
        self._dispatch: Dict[SignalType, AlertRule] = {}
        for rule in self._rules:
            for signal_type in rule.signal_types:
                if signal_type is SignalType.OTHER or signal_type.is_manual:
                    raise ValueError(f"Rule '{rule.id}' cannot handle {signal_type.value} records")
                existing = self._dispatch.get(signal_type)
                if existing is not None:
                    raise ValueError(
                        f"Signal type {signal_type.value} claimed by both '{existing.id}' and '{rule.id}'"
                    )
                self._dispatch[signal_type] = rule

    def rule_for(self, signal_type: SignalType) -> AlertRule | None:
        return self._dispatch.get(signal_type)

    def rules(self) -> list[AlertRule]:
        return list(self._rules)

    def reset(self, subject_id: int | None = None) -> None:
        for rule in self._rules:
            rule.reset(subject_id)

    def __len__(self) -> int:
        return len(self._rules)


class RuleRegistry:
    """Keeps track of available rule classes by id."""

    def __init__(self) -> None:
        self._rules: Dict[str, Type[AlertRule]] = {}

    def register(self, rule_cls: Type[AlertRule]) -> Type[AlertRule]:
        if rule_cls.id in self._rules:
            raise ValueError(f"Rule '{rule_cls.id}' already registered")
        self._rules[rule_cls.id] = rule_cls
        return rule_cls

    def clear(self) -> None:
        """Remove all registered rules."""

        self._rules.clear()

    def get(self, rule_id: str) -> Type[AlertRule]:
        return self._rules[rule_id]

    def items(self) -> Iterable[tuple[str, Type[AlertRule]]]:
        return self._rules.items()

    def create_rule_set(
        self,
        predicate: Callable[[Type[AlertRule]], bool] | None = None,
    ) -> RuleSet:
        """Instantiate every registered rule, optionally filtering."""

        rules = [
            rule_cls()
            for rule_cls in self._rules.values()
            if predicate is None or predicate(rule_cls)
        ]
        return RuleSet(rules)


registry = RuleRegistry()


def register_rule(rule_cls: Type[AlertRule]) -> Type[AlertRule]:
    """Decorator for registering a rule at definition time."""

    return registry.register(rule_cls)
