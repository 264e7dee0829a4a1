"""Tenant registration, optionally bound to a landlord's invitation."""

from __future__ import annotations

from wizengine.flows.common import ACCOUNT_FIELDS, account_rules, role_step
from wizengine.steps import FlowDefinition, LookupBinding, StepDefinition
from wizengine.validation.rules import Checked

FLOW_ID = "tenant_registration"


def build() -> FlowDefinition:
    return FlowDefinition(
        flow_id=FLOW_ID,
        title="Tenant registration",
        steps=(
            role_step("tenant"),
            StepDefinition(
                id="details",
                title="Your details",
                fields=ACCOUNT_FIELDS | {"invitation_code", "accept_terms"},
                rules=(
                    *account_rules(),
                    Checked("accept_terms", "You must accept the Terms of Service"),
                ),
            ),
        ),
        defaults={"role": "tenant", "accept_terms": False},
        lookups=(
            # A failed lookup leaves the code in place and the tenant registers uninvited.
            LookupBinding(
                kind="invitation",
                step_id="details",
                key_field="invitation_code",
                prefill={"email": "email"},
                gates_entry=True,
            ),
        ),
    )
