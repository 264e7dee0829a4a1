"""Shared test fixtures for WizFlow."""
import pytest

from wizengine.flows import default_registry
from wizengine.lookups.invitation import InvitationLookup
from wizengine.lookups.memory import MemoryLookup
from wizengine.lookups.plan import PlanLookup
from wizengine.persistence import MemorySnapshotStore
from wizengine.recommendation import threshold_recommender
from wizengine.resolver import ExternalResolver
from wizengine.session import FlowSession
from wizengine.state import FlowState
from wizengine.steps import (
    FlowDefinition,
    InterstitialDefinition,
    LookupBinding,
    StepDefinition,
    confirm_skip,
)
from wizengine.validation.rules import Checked, Matches, Required

VALID_ACCOUNT = {
    "full_name": "Kovács Anna",
    "email": "anna@example.com",
    "phone": "+36 30 123 4567",
    "password": "Abcdef12",
    "confirm_password": "Abcdef12",
}

INVITATIONS = {
    "X": {
        "email": "x@example.com",
        "status": "pending",
        "invited_by": {"full_name": "Szabó Péter", "email": "peter@example.com"},
        "unit": {"name": "2A", "property": {"name": "Duna Residence"}},
    },
    "Y": {
        "email": "y@example.com",
        "status": "pending",
        "invited_by": {"full_name": "Tóth Éva", "email": "eva@example.com"},
        "unit": {"name": "1B", "property": {"name": "Andrássy 12"}},
    },
}


def build_sample_flow() -> FlowDefinition:
    """Three-step flow: account, skippable company, consent."""
    return FlowDefinition(
        flow_id="sample",
        title="Sample",
        steps=(
            StepDefinition(
                id="account",
                fields=frozenset({"email", "password", "confirm_password", "invite_code"}),
                rules=(
                    Required("email", "Email is required"),
                    Required("password", "Password is required"),
                    Matches("confirm_password", "Passwords do not match", other="password"),
                ),
            ),
            StepDefinition(
                id="company",
                fields=frozenset({"company_name", "skip_company", "units", "plan"}),
                rules=(Required("company_name", "Company name is required"),),
                skippable=True,
                skip_field="skip_company",
                guard=confirm_skip("skip_company", "skip_warning"),
            ),
            StepDefinition(
                id="consent",
                fields=frozenset({"accept_terms"}),
                rules=(Checked("accept_terms", "Accept the terms"),),
            ),
        ),
        recommender=threshold_recommender(
            "units", thresholds=[(3, "starter"), (10, "pro")], above="unlimited", default="starter"
        ),
        selection_field="plan",
        defaults={"skip_company": False, "accept_terms": False},
        interstitials={
            "skip_warning": InterstitialDefinition(id="skip_warning", message="Skip company details?"),
        },
        lookups=(
            LookupBinding(
                kind="invitation",
                step_id="account",
                key_field="invite_code",
                prefill={"email": "email"},
            ),
        ),
    )


@pytest.fixture
def valid_account() -> dict:
    return dict(VALID_ACCOUNT)


@pytest.fixture
def sample_flow() -> FlowDefinition:
    return build_sample_flow()


@pytest.fixture
def sample_state(sample_flow) -> FlowState:
    return FlowState.fresh(sample_flow)


@pytest.fixture
def registry():
    return default_registry()


@pytest.fixture
def store() -> MemorySnapshotStore:
    return MemorySnapshotStore()


@pytest.fixture
def invitation_source() -> MemoryLookup:
    return MemoryLookup("invitation", INVITATIONS)


@pytest.fixture
def resolver(invitation_source) -> ExternalResolver:
    return ExternalResolver([InvitationLookup(invitation_source), PlanLookup()], timeout=1.0)


@pytest.fixture
def make_session(store, resolver):
    """Factory for sessions sharing one store and resolver."""

    def factory(definition: FlowDefinition, session_id: str = "s1") -> FlowSession:
        return FlowSession(definition, session_id, store=store, resolver=resolver, submit_timeout=1.0)

    return factory
