"""Declarative field rule interface and evaluation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from wizengine.models import ErrorMap


def is_empty(value: Any) -> bool:
    """True for None, blank strings, and empty collections."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


@dataclass(frozen=True)
class Rule(ABC):
    """One (predicate, message) pair bound to the field that reports the error."""

    field: str
    message: str

    #: Required-style rules are suppressed while the owning step is in skip mode.
    required_kind = False

    @abstractmethod
    def check(self, value: Any, values: Mapping[str, Any]) -> bool:
        """Return True when the rule is satisfied."""


def validate_rules(
    rules: Iterable[Rule],
    values: Mapping[str, Any],
    skipping: bool = False,
) -> ErrorMap:
    """Evaluate rules in order; the first failing rule per field wins."""
    errors: ErrorMap = {}
    for rule in rules:
        if rule.field in errors:
            continue
        if skipping and rule.required_kind:
            continue
        if not rule.check(values.get(rule.field), values):
            errors[rule.field] = rule.message
    return errors
