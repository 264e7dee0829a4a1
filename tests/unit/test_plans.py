"""Tests for the plan catalog."""

from wizengine.plans import (
    PRICING_PLANS,
    can_add_property,
    can_use_ai,
    get_plan,
    get_plan_or_default,
    is_valid_plan_id,
)


class TestPlanCatalog:
    def test_catalog_order_and_ids(self) -> None:
        assert [plan.id for plan in PRICING_PLANS] == ["free", "starter", "pro", "unlimited"]

    def test_get_plan(self) -> None:
        assert get_plan("pro").property_limit == 10
        assert get_plan("missing") is None
        assert get_plan(None) is None

    def test_default_is_free(self) -> None:
        assert get_plan_or_default("missing").id == "free"
        assert get_plan_or_default("starter").id == "starter"

    def test_is_valid_plan_id(self) -> None:
        assert is_valid_plan_id("unlimited")
        assert not is_valid_plan_id("")

    def test_property_limits(self) -> None:
        assert can_add_property(get_plan("free"), 0)
        assert not can_add_property(get_plan("free"), 1)
        assert can_add_property(get_plan("starter"), 2)
        assert can_add_property(get_plan("unlimited"), 10_000)
        assert not can_add_property(None, 0)

    def test_ai_access(self) -> None:
        assert not can_use_ai(get_plan("free"))
        assert can_use_ai(get_plan("starter"))
        assert not can_use_ai(None)
