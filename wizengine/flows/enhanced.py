"""Single-page style registration reached from a pricing link."""

from __future__ import annotations

from wizengine.flows.common import ACCOUNT_FIELDS, account_rules, plan_choice_rule
from wizengine.models import GuardDecision
from wizengine.state import FlowState
from wizengine.steps import FlowDefinition, InterstitialDefinition, LookupBinding, StepDefinition
from wizengine.validation import is_empty
from wizengine.validation.patterns import TAX_NUMBER
from wizengine.validation.rules import Checked, Pattern, Predicate

FLOW_ID = "enhanced_registration"
COMPANY_REMINDER = "company_data_reminder"

LANGUAGES = ("hu", "en")


def _remind_missing_company(state: FlowState) -> GuardDecision:
    if is_empty(state.values.get("company_name")):
        return GuardDecision.interstitial(COMPANY_REMINDER)
    return GuardDecision.proceed()


def build() -> FlowDefinition:
    return FlowDefinition(
        flow_id=FLOW_ID,
        title="Registration",
        steps=(
            StepDefinition(
                id="account",
                title="Account details",
                fields=ACCOUNT_FIELDS | {"language"},
                rules=(
                    *account_rules(),
                    Predicate(
                        "language",
                        "Unsupported language",
                        fn=lambda value, values: value in LANGUAGES,
                    ),
                ),
            ),
            StepDefinition(
                id="company",
                title="Company details (optional)",
                fields=frozenset({"company_name", "company_tax_id", "company_address"}),
                rules=(
                    Pattern("company_tax_id", "Use the format 12345678-1-23", pattern=TAX_NUMBER),
                ),
                guard=_remind_missing_company,
            ),
            StepDefinition(
                id="review",
                title="Plan and terms",
                fields=frozenset(
                    {"selected_plan_id", "accept_terms", "accept_privacy", "accept_marketing"}
                ),
                rules=(
                    plan_choice_rule(),
                    Checked("accept_terms", "You must accept the Terms of Service"),
                    Checked("accept_privacy", "You must accept the Privacy Policy"),
                ),
            ),
        ),
        selection_field="selected_plan_id",
        defaults={
            "language": "hu",
            "accept_terms": False,
            "accept_privacy": False,
            "accept_marketing": False,
        },
        interstitials={
            COMPANY_REMINDER: InterstitialDefinition(
                id=COMPANY_REMINDER,
                title="Add company details later?",
                message=(
                    "Company details unlock invoicing and professional reports. "
                    "You can continue now and add them from your profile."
                ),
            ),
        },
        lookups=(
            LookupBinding(
                kind="plan",
                step_id="review",
                prefill={"plan_id": "selected_plan_id"},
            ),
        ),
    )
