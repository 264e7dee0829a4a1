"""Concrete field rules."""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from wizengine.validation import Rule, is_empty
from wizengine.validation.patterns import DIGIT, LOWERCASE, UPPERCASE

ValuesPredicate = Callable[[Mapping[str, Any]], bool]


@dataclass(frozen=True)
class Required(Rule):
    """Field must be non-empty, optionally only when ``when(values)`` holds."""

    when: ValuesPredicate | None = None

    required_kind = True

    def check(self, value: Any, values: Mapping[str, Any]) -> bool:
        if self.when is not None and not self.when(values):
            return True
        return not is_empty(value)


@dataclass(frozen=True)
class Checked(Rule):
    """Boolean field must be exactly True (terms, consents)."""

    required_kind = True

    def check(self, value: Any, values: Mapping[str, Any]) -> bool:
        return value is True


@dataclass(frozen=True)
class Pattern(Rule):
    """Non-empty value must match a regular expression, optionally only when ``when(values)`` holds."""

    pattern: re.Pattern[str] | str = ""
    normalize: Callable[[str], str] | None = None
    when: ValuesPredicate | None = None

    def check(self, value: Any, values: Mapping[str, Any]) -> bool:
        if is_empty(value):
            return True
        if self.when is not None and not self.when(values):
            return True
        text = str(value).strip()
        if self.normalize is not None:
            text = self.normalize(text)
        return re.fullmatch(self.pattern, text) is not None


@dataclass(frozen=True)
class MinLength(Rule):
    """Non-empty value must be at least ``length`` characters."""

    length: int = 1

    def check(self, value: Any, values: Mapping[str, Any]) -> bool:
        if is_empty(value):
            return True
        return len(str(value)) >= self.length


@dataclass(frozen=True)
class Matches(Rule):
    """Value must equal another field's value once both have been filled in."""

    other: str = ""

    def check(self, value: Any, values: Mapping[str, Any]) -> bool:
        other_value = values.get(self.other)
        if is_empty(value) or is_empty(other_value):
            return True
        return value == other_value


@dataclass(frozen=True)
class Predicate(Rule):
    """Arbitrary check ``fn(value, values)``; empty values pass unless ``skip_empty`` is off."""

    fn: Callable[[Any, Mapping[str, Any]], bool] = lambda value, values: True
    skip_empty: bool = True

    def check(self, value: Any, values: Mapping[str, Any]) -> bool:
        if self.skip_empty and is_empty(value):
            return True
        return bool(self.fn(value, values))


def flag(field: str) -> ValuesPredicate:
    """Predicate on the full values map: ``field`` is truthy."""
    return lambda values: bool(values.get(field))


def not_flag(field: str) -> ValuesPredicate:
    """Predicate on the full values map: ``field`` is falsy."""
    return lambda values: not values.get(field)


def password_rules(field: str = "password") -> tuple[Rule, ...]:
    """Length and character-class policy for account passwords."""
    return (
        Required(field, "Password is required"),
        MinLength(field, "Password must be at least 8 characters long", length=8),
        Predicate(field, "Password must contain an uppercase letter", fn=_contains(UPPERCASE)),
        Predicate(field, "Password must contain a lowercase letter", fn=_contains(LOWERCASE)),
        Predicate(field, "Password must contain a digit", fn=_contains(DIGIT)),
    )


def _contains(pattern: re.Pattern[str]) -> Callable[[Any, Mapping[str, Any]], bool]:
    return lambda value, values: pattern.search(str(value)) is not None


def confirmation_rules(
    field: str = "confirm_password", other: str = "password"
) -> tuple[Rule, ...]:
    """Confirmation field is required and must equal ``other``."""
    return (
        Required(field, "Please confirm your password"),
        Matches(field, "Passwords do not match", other=other),
    )
