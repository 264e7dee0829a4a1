"""Plan id lookup against the local catalog."""

from __future__ import annotations

from typing import Any

from wizengine.exceptions import LookupFailedError
from wizengine.lookups import BaseLookup
from wizengine.plans import get_plan


class PlanLookup(BaseLookup):
    """Resolves a plan id (e.g. from a ``?plan=`` link) to its catalog entry."""

    kind = "plan"

    async def lookup(self, key: str) -> dict[str, Any]:
        plan = get_plan(key.strip().lower())
        if plan is None:
            raise LookupFailedError(self.kind, key, "unknown plan")
        return {
            "plan_id": plan.id,
            "name": plan.name,
            "price": plan.price,
            "property_limit": plan.property_limit,
            "ai_enabled": plan.ai_enabled,
        }
