"""Subscription plan catalog."""

from __future__ import annotations

from wizengine.models import PlanTier

PRICING_PLANS: tuple[PlanTier, ...] = (
    PlanTier(
        id="free",
        name="Free",
        price=0,
        property_limit=1,
        ai_enabled=False,
        features=["Core features", "Manual administration", "Tenant management", "Documents", "Email support"],
    ),
    PlanTier(
        id="starter",
        name="Starter",
        price=4990,
        property_limit=3,
        ai_enabled=True,
        features=["Property management", "Tenant management", "Documents", "Automatic invoicing", "Reports", "AI assistant"],
    ),
    PlanTier(
        id="pro",
        name="Pro",
        price=9900,
        property_limit=10,
        ai_enabled=True,
        features=["Everything in Starter", "Automated reminders", "Advanced reports", "Predictions", "Priority support"],
    ),
    PlanTier(
        id="unlimited",
        name="Unlimited",
        price=34990,
        property_limit=None,
        ai_enabled=True,
        features=["Everything in Pro", "Unlimited properties", "Full automation", "API access", "Dedicated support"],
    ),
)

_BY_ID = {plan.id: plan for plan in PRICING_PLANS}


def get_plan(plan_id: str | None) -> PlanTier | None:
    if not plan_id:
        return None
    return _BY_ID.get(plan_id)


def get_plan_or_default(plan_id: str | None) -> PlanTier:
    """Resolve a plan id, falling back to the free tier."""
    return get_plan(plan_id) or PRICING_PLANS[0]


def is_valid_plan_id(plan_id: str | None) -> bool:
    return get_plan(plan_id) is not None


def can_add_property(plan: PlanTier | None, current_count: int) -> bool:
    if plan is None:
        return False
    if plan.property_limit is None:
        return True
    return current_count < plan.property_limit


def can_use_ai(plan: PlanTier | None) -> bool:
    return plan is not None and plan.ai_enabled
