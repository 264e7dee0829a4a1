"""Landlord registration: role, account, company details, legal consents."""

from __future__ import annotations

from typing import Any

from wizengine.flows.common import ACCOUNT_FIELDS, account_rules, plan_choice_rule, role_step
from wizengine.recommendation import threshold_recommender
from wizengine.steps import (
    FlowDefinition,
    InterstitialDefinition,
    LookupBinding,
    StepDefinition,
    confirm_skip,
)
from wizengine.validation.patterns import TAX_NUMBER
from wizengine.validation.rules import Checked, Pattern, Predicate, Required

FLOW_ID = "landlord_registration"
COMPANY_SKIP_WARNING = "company_skip_warning"

EXPERIENCE_LEVELS = ("beginner", "intermediate", "experienced", "professional")


def _positive_int(value: Any, values: Any) -> bool:
    if isinstance(value, bool):
        return False
    try:
        return int(value) >= 1
    except (TypeError, ValueError):
        return False


def build() -> FlowDefinition:
    company = StepDefinition(
        id="company",
        title="Company and portfolio",
        fields=frozenset(
            {
                "company_name",
                "company_tax_id",
                "company_address",
                "skip_company_info",
                "estimated_properties",
                "experience",
                "selected_plan_id",
            }
        ),
        rules=(
            Required("company_name", "Company name is required unless you skip this step"),
            Required("company_tax_id", "Tax number is required unless you skip this step"),
            Pattern("company_tax_id", "Use the format 12345678-1-23", pattern=TAX_NUMBER),
            Required("company_address", "Company address is required unless you skip this step"),
            Predicate(
                "estimated_properties",
                "Enter at least 1 property",
                fn=_positive_int,
            ),
            Predicate(
                "experience",
                "Choose your experience level",
                fn=lambda value, values: value in EXPERIENCE_LEVELS,
            ),
            plan_choice_rule(),
        ),
        skippable=True,
        skip_field="skip_company_info",
        guard=confirm_skip("skip_company_info", COMPANY_SKIP_WARNING),
    )

    return FlowDefinition(
        flow_id=FLOW_ID,
        title="Landlord registration",
        steps=(
            role_step("landlord"),
            StepDefinition(
                id="account",
                title="Account details",
                fields=ACCOUNT_FIELDS,
                rules=account_rules(),
            ),
            company,
            StepDefinition(
                id="legal",
                title="Terms and consents",
                fields=frozenset({"accept_terms", "accept_privacy", "accept_marketing"}),
                rules=(
                    Checked("accept_terms", "You must accept the Terms of Service"),
                    Checked("accept_privacy", "You must accept the Privacy Policy"),
                ),
            ),
        ),
        recommender=threshold_recommender(
            "estimated_properties",
            thresholds=[(1, "free"), (3, "starter"), (10, "pro")],
            above="unlimited",
            default="starter",
        ),
        selection_field="selected_plan_id",
        defaults={
            "role": "landlord",
            "skip_company_info": False,
            "estimated_properties": 1,
            "experience": "beginner",
            "accept_terms": False,
            "accept_privacy": False,
            "accept_marketing": False,
        },
        interstitials={
            COMPANY_SKIP_WARNING: InterstitialDefinition(
                id=COMPANY_SKIP_WARNING,
                title="Continue without company details?",
                message=(
                    "Without company details invoices cannot be issued in your "
                    "company's name. You can add them later in your settings."
                ),
            ),
        },
        lookups=(
            LookupBinding(
                kind="plan",
                step_id="company",
                prefill={"plan_id": "selected_plan_id"},
            ),
        ),
    )
