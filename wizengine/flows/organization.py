"""Organization setup wizard for landlords managing a portfolio."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from wizengine.flows.common import PHONE_FORMAT, plan_choice_rule
from wizengine.plans import can_add_property, get_plan
from wizengine.recommendation import feature_recommender
from wizengine.steps import FlowDefinition, StepDefinition
from wizengine.validation import is_empty
from wizengine.validation.patterns import (
    BANK_ACCOUNT,
    EMAIL,
    PHONE_HU,
    POSTAL_CODE,
    TAX_NUMBER,
    strip_whitespace,
)
from wizengine.validation.rules import Pattern, Predicate, Required, flag

FLOW_ID = "organization_setup"

ORGANIZATION_TYPES = (
    "individual",
    "sole_proprietor",
    "limited_company",
    "joint_stock_company",
    "other",
)
COMPANY_TYPES = frozenset({"limited_company", "joint_stock_company"})

PROPERTY_TYPES = ("apartment", "house", "commercial", "office", "warehouse", "other")

FEATURE_DEFAULTS: dict[str, bool] = {
    "enable_maintenance_requests": True,
    "enable_utility_meter_readings": False,
    "enable_chat_system": True,
    "enable_appointment_scheduling": False,
    "enable_document_management": False,
    "enable_financial_reporting": True,
    "enable_automated_reminders": False,
    "enable_two_factor_auth": True,
}

PREMIUM_FEATURES = frozenset(
    {
        "enable_utility_meter_readings",
        "enable_appointment_scheduling",
        "enable_document_management",
        "enable_automated_reminders",
    }
)


def property_problem(entry: Mapping[str, Any]) -> str | None:
    """First problem with one property entry, or None when it is complete."""
    for key, label in (("name", "name"), ("address", "address"), ("city", "city")):
        if is_empty(entry.get(key)):
            return f"Property {label} is required"
    postal_code = str(entry.get("postal_code") or "").strip()
    if not postal_code:
        return "Property postal code is required"
    if not POSTAL_CODE.fullmatch(postal_code):
        return "Postal codes have 4 digits"
    if entry.get("property_type") not in PROPERTY_TYPES:
        return "Property type is required"
    units = entry.get("total_units")
    if isinstance(units, bool) or not isinstance(units, int) or units < 1:
        return "A property needs at least 1 unit"
    return None


def invitation_problem(entry: Mapping[str, Any]) -> str | None:
    if is_empty(entry.get("name")):
        return "Tenant name is required"
    email = str(entry.get("email") or "").strip()
    if not email:
        return "Tenant email is required"
    if not EMAIL.fullmatch(email):
        return "Enter a valid tenant email address"
    return None


def _all_valid(
    check: Callable[[Mapping[str, Any]], str | None],
) -> Callable[[Any, Mapping[str, Any]], bool]:
    def predicate(value: Any, values: Mapping[str, Any]) -> bool:
        if not isinstance(value, list):
            return False
        return all(isinstance(entry, Mapping) and check(entry) is None for entry in value)

    return predicate


def _unique_emails(value: Any, values: Mapping[str, Any]) -> bool:
    emails = [str(entry.get("email", "")).strip().lower() for entry in value]
    return len(emails) == len(set(emails))


def _company_invoicing(values: Mapping[str, Any]) -> bool:
    """Invoicing is on for an organization registered as a company form."""
    return bool(values.get("enable_automatic_invoicing")) and (
        values.get("organization_type") in COMPANY_TYPES
    )


def _matches_company_tax_number(value: Any, values: Mapping[str, Any]) -> bool:
    if not _company_invoicing(values) or is_empty(values.get("tax_number")):
        return True
    return str(value).strip() == str(values["tax_number"]).strip()


def _plan_covers_properties(value: Any, values: Mapping[str, Any]) -> bool:
    properties = values.get("properties") or []
    count = len(properties) if isinstance(properties, list) else 0
    return count == 0 or can_add_property(get_plan(value), count - 1)


def build() -> FlowDefinition:
    invoicing = flag("enable_automatic_invoicing")
    bank_transfer = flag("enable_bank_transfer")

    steps = (
        StepDefinition(
            id="organization",
            title="Organization details",
            fields=frozenset(
                {
                    "organization_name",
                    "organization_type",
                    "tax_number",
                    "contact_email",
                    "contact_phone",
                    "address",
                    "city",
                    "postal_code",
                }
            ),
            rules=(
                Required("organization_name", "Organization name is required"),
                Required("organization_type", "Choose an organization type"),
                Predicate(
                    "organization_type",
                    "Choose an organization type",
                    fn=lambda value, values: value in ORGANIZATION_TYPES,
                ),
                Required("tax_number", "Tax number is required"),
                Pattern("tax_number", "Use the format 12345678-1-23", pattern=TAX_NUMBER),
                Required("contact_email", "Contact email is required"),
                Pattern("contact_email", "Enter a valid email address", pattern=EMAIL),
                Required("contact_phone", "Contact phone is required"),
                Pattern("contact_phone", PHONE_FORMAT, pattern=PHONE_HU, normalize=strip_whitespace),
                Required("address", "Address is required"),
                Required("city", "City is required"),
                Required("postal_code", "Postal code is required"),
                Pattern("postal_code", "Postal codes have 4 digits", pattern=POSTAL_CODE),
            ),
        ),
        StepDefinition(
            id="properties",
            title="Properties",
            fields=frozenset({"properties"}),
            rules=(
                Predicate(
                    "properties",
                    "Complete or remove the unfinished property entries",
                    fn=_all_valid(property_problem),
                ),
            ),
        ),
        StepDefinition(
            id="tenants",
            title="Tenants",
            fields=frozenset({"tenant_invitations"}),
            rules=(
                Predicate(
                    "tenant_invitations",
                    "Every invitation needs a name and a valid email address",
                    fn=_all_valid(invitation_problem),
                ),
                Predicate(
                    "tenant_invitations",
                    "Each tenant can only be invited once",
                    fn=_unique_emails,
                ),
            ),
        ),
        StepDefinition(
            id="payment",
            title="Payments",
            fields=frozenset(
                {
                    "enable_stripe",
                    "enable_bank_transfer",
                    "bank_account_number",
                    "bank_name",
                    "account_holder_name",
                    "payment_instructions",
                    "enable_automatic_invoicing",
                    "invoice_prefix",
                    "invoice_tax_number",
                    "invoice_company_name",
                }
            ),
            rules=(
                Required("bank_account_number", "Bank account number is required", when=bank_transfer),
                Pattern(
                    "bank_account_number",
                    "Use the format 12345678-12345678 or 12345678-12345678-12345678",
                    pattern=BANK_ACCOUNT,
                    when=bank_transfer,
                ),
                Required("bank_name", "Bank name is required", when=bank_transfer),
                Required("account_holder_name", "Account holder name is required", when=bank_transfer),
                Required("invoice_prefix", "Invoice prefix is required", when=invoicing),
                Required("invoice_tax_number", "Tax number is required for invoicing", when=invoicing),
                Pattern("invoice_tax_number", "Use the format 12345678-1-23", pattern=TAX_NUMBER),
                Predicate(
                    "invoice_tax_number",
                    "Company invoices must use the organization's tax number",
                    fn=_matches_company_tax_number,
                ),
                Required("invoice_company_name", "Company name is required for invoicing", when=invoicing),
            ),
        ),
        StepDefinition(
            id="features",
            title="Features",
            fields=frozenset(FEATURE_DEFAULTS),
        ),
        StepDefinition(
            id="plan",
            title="Plan",
            fields=frozenset({"selected_plan_id"}),
            rules=(
                plan_choice_rule(),
                Predicate(
                    "selected_plan_id",
                    "The selected plan does not cover all of your properties",
                    fn=_plan_covers_properties,
                ),
            ),
        ),
    )

    return FlowDefinition(
        flow_id=FLOW_ID,
        title="Organization setup",
        steps=steps,
        recommender=feature_recommender(PREMIUM_FEATURES, tier="pro", default="free"),
        selection_field="selected_plan_id",
        defaults={
            "properties": [],
            "tenant_invitations": [],
            "enable_stripe": False,
            "enable_bank_transfer": True,
            "enable_automatic_invoicing": False,
            "invoice_prefix": "INV",
            **FEATURE_DEFAULTS,
        },
    )
