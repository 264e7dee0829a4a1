"""Built-in onboarding flows."""

from __future__ import annotations

from wizengine.flows import enhanced, landlord, organization, tenant
from wizengine.steps import FlowDefinition, FlowRegistry

BUILTIN_FLOWS = (
    landlord.FLOW_ID,
    tenant.FLOW_ID,
    organization.FLOW_ID,
    enhanced.FLOW_ID,
)


def builtin_definitions() -> list[FlowDefinition]:
    return [landlord.build(), tenant.build(), organization.build(), enhanced.build()]


def default_registry() -> FlowRegistry:
    """Registry holding every built-in flow."""
    return FlowRegistry(builtin_definitions())
