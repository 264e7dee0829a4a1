"""Building blocks shared by the built-in onboarding flows."""

from __future__ import annotations

from wizengine.models import GuardDecision
from wizengine.plans import is_valid_plan_id
from wizengine.state import FlowState
from wizengine.steps import Guard, StepDefinition
from wizengine.validation import Rule
from wizengine.validation.patterns import EMAIL, PHONE_HU, strip_whitespace
from wizengine.validation.rules import (
    MinLength,
    Pattern,
    Predicate,
    Required,
    confirmation_rules,
    password_rules,
)

ROLES = ("landlord", "tenant")

ACCOUNT_FIELDS = frozenset(
    {"full_name", "email", "phone", "password", "confirm_password"}
)

PHONE_FORMAT = "Use the format +36301234567 or 06301234567"


def account_rules() -> tuple[Rule, ...]:
    """Name, email, optional phone and password policy."""
    return (
        Required("full_name", "Full name is required"),
        MinLength("full_name", "Name must be at least 2 characters long", length=2),
        Required("email", "Email address is required"),
        Pattern("email", "Enter a valid email address", pattern=EMAIL),
        Pattern("phone", PHONE_FORMAT, pattern=PHONE_HU, normalize=strip_whitespace),
        *password_rules("password"),
        *confirmation_rules("confirm_password", other="password"),
    )


def plan_choice_rule(field: str = "selected_plan_id") -> Rule:
    return Predicate(field, "Choose one of the available plans", fn=lambda value, values: is_valid_plan_id(value))


def _role_guard(expected: str) -> Guard:
    def guard(state: FlowState) -> GuardDecision:
        role = state.values.get("role")
        if role != expected:
            return GuardDecision.block(
                f"{str(role).capitalize()} accounts are created through the {role} registration"
            )
        return GuardDecision.proceed()

    return guard


def role_step(expected: str) -> StepDefinition:
    """Role confirmation; the other role is redirected to its own flow."""
    return StepDefinition(
        id="role",
        title="Choose your role",
        fields=frozenset({"role"}),
        rules=(
            Required("role", "Choose whether you are a landlord or a tenant"),
            Predicate("role", "Unknown role", fn=lambda value, values: value in ROLES),
        ),
        guard=_role_guard(expected),
    )
