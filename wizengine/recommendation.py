"""Plan tier recommendation from accumulated flow answers."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

ValuesPredicate = Callable[[Mapping[str, Any]], bool]


@dataclass(frozen=True)
class TierRule:
    """``tier_id`` is recommended when ``predicate(values)`` holds."""

    predicate: ValuesPredicate
    tier_id: str


@dataclass(frozen=True)
class Recommender:
    """Ordered tier rules; the first matching rule wins.

    ``recommend`` is pure and total: it only reads the plan-relevant subset
    of the values it is given and falls back to ``default_tier``.
    """

    rules: tuple[TierRule, ...]
    default_tier: str
    relevant_keys: frozenset[str] = field(default_factory=frozenset)

    def inputs(self, values: Mapping[str, Any]) -> Mapping[str, Any]:
        """Read-only view of the plan-relevant values."""
        return MappingProxyType(
            {key: values[key] for key in self.relevant_keys if key in values}
        )

    def recommend(self, values: Mapping[str, Any]) -> str:
        view = self.inputs(values)
        for rule in self.rules:
            try:
                if rule.predicate(view):
                    return rule.tier_id
            except (TypeError, ValueError):
                continue
        return self.default_tier

    @property
    def tiers(self) -> list[str]:
        seen: list[str] = []
        for tier in [*(r.tier_id for r in self.rules), self.default_tier]:
            if tier not in seen:
                seen.append(tier)
        return seen


def _count(values: Mapping[str, Any], key: str) -> int | None:
    raw = values.get(key)
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def threshold_recommender(
    field_key: str,
    thresholds: Sequence[tuple[int, str]],
    above: str,
    default: str,
) -> Recommender:
    """Map a size estimate to a tier.

    ``thresholds`` are ``(max_count, tier)`` pairs checked in order; a count
    beyond every threshold maps to ``above``. A missing or non-numeric
    estimate yields ``default``.
    """

    def at_most(limit: int) -> ValuesPredicate:
        def predicate(values: Mapping[str, Any]) -> bool:
            count = _count(values, field_key)
            return count is not None and count <= limit

        return predicate

    def any_count(values: Mapping[str, Any]) -> bool:
        return _count(values, field_key) is not None

    rules = [TierRule(at_most(limit), tier) for limit, tier in thresholds]
    rules.append(TierRule(any_count, above))
    return Recommender(
        rules=tuple(rules),
        default_tier=default,
        relevant_keys=frozenset({field_key}),
    )


def feature_recommender(
    premium_keys: Iterable[str], tier: str, default: str
) -> Recommender:
    """Recommend ``tier`` as soon as any premium-flagged toggle is on."""
    keys = frozenset(premium_keys)

    def any_premium(values: Mapping[str, Any]) -> bool:
        return any(values.get(key) is True for key in keys)

    return Recommender(
        rules=(TierRule(any_premium, tier),),
        default_tier=default,
        relevant_keys=keys,
    )
