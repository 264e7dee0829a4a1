"""Tests for the built-in onboarding flows."""

import pytest

from wizengine.flows import BUILTIN_FLOWS, builtin_definitions
from wizengine.flows import enhanced, landlord, organization, tenant
from wizengine.session import FlowSession
from wizengine.submission import MemorySubmitter

PROPERTY = {
    "name": "Duna Residence",
    "address": "Váci út 1",
    "city": "Budapest",
    "postal_code": "1051",
    "property_type": "apartment",
    "total_units": 12,
}

ORGANIZATION = {
    "organization_name": "Kovács Ingatlan Kft.",
    "organization_type": "limited_company",
    "tax_number": "12345678-1-23",
    "contact_email": "office@kovacs.hu",
    "contact_phone": "+36 30 123 4567",
    "address": "Váci út 1",
    "city": "Budapest",
    "postal_code": "1051",
}


def _fill(session: FlowSession, values: dict) -> None:
    for key, value in values.items():
        assert session.change_field(key, value).status == "changed", key


class TestBuiltins:
    def test_registry_ids(self, registry) -> None:
        assert registry.list() == list(BUILTIN_FLOWS)
        assert [d.flow_id for d in builtin_definitions()] == list(BUILTIN_FLOWS)

    @pytest.mark.parametrize("flow_id", BUILTIN_FLOWS)
    def test_describe(self, registry, flow_id) -> None:
        outline = registry.get(flow_id).describe()
        assert outline["step_count"] == len(outline["steps"])


class TestLandlordFlow:
    def test_role_guard_redirects_tenants(self, make_session) -> None:
        session = make_session(landlord.build())
        session.change_field("role", "tenant")
        result = session.advance()
        assert result.status == "blocked"
        assert result.reason == "Tenant accounts are created through the tenant registration"

    def test_unknown_role(self, make_session) -> None:
        session = make_session(landlord.build())
        session.change_field("role", "admin")
        assert session.advance().errors == {"role": "Unknown role"}

    def test_account_step_messages(self, make_session, valid_account) -> None:
        session = make_session(landlord.build())
        session.advance()
        _fill(session, {**valid_account, "phone": "123", "confirm_password": "nope"})
        result = session.advance()
        assert result.errors == {
            "phone": "Use the format +36301234567 or 06301234567",
            "confirm_password": "Passwords do not match",
        }

    async def test_full_registration_with_recommendation(self, make_session, valid_account) -> None:
        session = make_session(landlord.build())
        session.advance()
        _fill(session, valid_account)
        assert session.advance().step_id == "company"

        _fill(
            session,
            {
                "company_name": "Kovács Ingatlan Kft.",
                "company_tax_id": "12345678-1-23",
                "company_address": "Budapest",
                "estimated_properties": 12,
            },
        )
        assert session.recommended_tier == "unlimited"
        assert session.selected_tier == "unlimited"
        session.change_field("selected_plan_id", "platinum")
        result = session.advance()
        assert result.errors == {"selected_plan_id": "Choose one of the available plans"}

        session.change_field("selected_plan_id", "pro")
        assert session.advance().step_id == "legal"
        _fill(session, {"accept_terms": True, "accept_privacy": True})
        assert session.advance().status == "ready"

        result = await session.submit(MemorySubmitter())
        assert result.status == "accepted"
        assert result.payload.recommended_tier == "unlimited"
        assert result.payload.selected_tier == "pro"
        assert result.payload.tier_overridden

    def test_skip_company_shows_warning(self, make_session, valid_account) -> None:
        session = make_session(landlord.build())
        session.advance()
        _fill(session, valid_account)
        session.advance()
        _fill(session, {"skip_company_info": True, "selected_plan_id": "starter"})

        result = session.advance()
        assert result.status == "interstitial"
        assert result.interstitial_id == landlord.COMPANY_SKIP_WARNING
        assert "invoices" in result.reason

        assert session.resolve_interstitial("continue").step_id == "legal"

    def test_tax_number_format_still_checked_when_skipping(self, make_session, valid_account) -> None:
        session = make_session(landlord.build())
        session.advance()
        _fill(session, valid_account)
        session.advance()
        _fill(
            session,
            {"skip_company_info": True, "selected_plan_id": "starter", "company_tax_id": "123"},
        )
        assert session.advance().errors == {"company_tax_id": "Use the format 12345678-1-23"}

    @pytest.mark.parametrize(
        ("count", "tier"),
        [(None, "free"), (0, "free"), (2, "starter"), (3, "starter"), (10, "pro"), (11, "unlimited")],
    )
    def test_recommendation_buckets(self, make_session, count, tier) -> None:
        session = make_session(landlord.build())
        if count is not None:
            session.change_field("estimated_properties", count)
        assert session.recommended_tier == tier

    async def test_edited_account_blocks_submit(self, make_session, valid_account) -> None:
        session = make_session(landlord.build())
        session.advance()
        _fill(session, valid_account)
        session.advance()
        _fill(
            session,
            {
                "company_name": "Kovács Kft.",
                "company_tax_id": "12345678-1-23",
                "company_address": "Budapest",
            },
        )
        session.advance()
        _fill(session, {"accept_terms": True, "accept_privacy": True})
        assert session.advance().status == "ready"

        session.change_field("email", "not-an-email")
        submitter = MemorySubmitter()
        result = await session.submit(submitter)

        assert result.status == "not_ready"
        assert submitter.payloads == []
        assert session.sequencer.current_step.id == "account"
        assert session.state.errors["account"] == {"email": "Enter a valid email address"}

    async def test_plan_link_prefills_choice(self, make_session) -> None:
        session = make_session(landlord.build())
        result = await session.lookup("plan", "pro")
        assert result.status == "resolved"
        assert session.state.values["selected_plan_id"] == "pro"


class TestTenantFlow:
    async def test_invitation_prefills_email(self, make_session) -> None:
        session = make_session(tenant.build())
        session.advance()
        result = await session.lookup("invitation", "X")
        assert result.status == "resolved"
        assert session.state.values["email"] == "x@example.com"
        assert session.state.values["invitation_code"] == "X"

    async def test_failed_invitation_degrades_to_plain_registration(
        self, make_session, valid_account
    ) -> None:
        session = make_session(tenant.build())
        session.advance()
        result = await session.lookup("invitation", "EXPIRED")
        assert result.status == "failed"

        _fill(session, {**valid_account, "accept_terms": True})
        assert session.advance().status == "ready"
        submitted = await session.submit(MemorySubmitter())
        assert submitted.payload.lookups == {}
        assert submitted.payload.values["invitation_code"] == "EXPIRED"

    def test_landlord_redirected(self, make_session) -> None:
        session = make_session(tenant.build())
        session.change_field("role", "landlord")
        assert session.advance().status == "blocked"


class TestOrganizationFlow:
    def test_property_problems(self) -> None:
        assert organization.property_problem(PROPERTY) is None
        assert organization.property_problem({**PROPERTY, "postal_code": "10511"}) == (
            "Postal codes have 4 digits"
        )
        assert organization.property_problem({**PROPERTY, "total_units": 0}) == (
            "A property needs at least 1 unit"
        )
        assert organization.property_problem({**PROPERTY, "city": " "}) == "Property city is required"

    def test_invitation_problems(self) -> None:
        assert organization.invitation_problem({"name": "Anna", "email": "a@b.hu"}) is None
        assert organization.invitation_problem({"name": "Anna", "email": "nope"}) == (
            "Enter a valid tenant email address"
        )

    def test_walkthrough_recommends_pro_for_premium_feature(self, make_session) -> None:
        session = make_session(organization.build())
        _fill(session, ORGANIZATION)
        assert session.advance().step_id == "properties"

        session.change_field("properties", [PROPERTY])
        assert session.advance().step_id == "tenants"

        session.change_field(
            "tenant_invitations",
            [{"name": "Anna", "email": "a@b.hu"}, {"name": "Béla", "email": "A@B.hu"}],
        )
        assert session.advance().errors == {
            "tenant_invitations": "Each tenant can only be invited once"
        }
        session.change_field("tenant_invitations", [{"name": "Anna", "email": "a@b.hu"}])
        assert session.advance().step_id == "payment"

        result = session.advance()
        assert set(result.errors) == {
            "bank_account_number",
            "bank_name",
            "account_holder_name",
        }
        _fill(
            session,
            {
                "enable_bank_transfer": False,
                "enable_automatic_invoicing": True,
                "invoice_company_name": "Kovács Ingatlan Kft.",
            },
        )
        assert session.advance().errors == {
            "invoice_tax_number": "Tax number is required for invoicing"
        }
        session.change_field("invoice_tax_number", "12345678-1-23")
        assert session.advance().step_id == "features"

        assert session.recommended_tier == "free"
        session.change_field("enable_document_management", True)
        assert session.recommended_tier == "pro"
        assert session.advance().step_id == "plan"
        assert session.selected_tier == "pro"

    def _reach_payment(self, session, properties=(PROPERTY,)) -> None:
        _fill(session, ORGANIZATION)
        session.advance()
        session.change_field("properties", list(properties))
        session.advance()
        session.advance()

    def test_invoice_tax_number_only_needed_for_invoicing(self, make_session) -> None:
        session = make_session(organization.build())
        self._reach_payment(session)
        _fill(
            session,
            {"enable_bank_transfer": False, "bank_account_number": "not-a-number"},
        )
        assert session.advance().step_id == "features"

    def test_company_invoices_use_organization_tax_number(self, make_session) -> None:
        session = make_session(organization.build())
        self._reach_payment(session)
        _fill(
            session,
            {
                "enable_bank_transfer": False,
                "enable_automatic_invoicing": True,
                "invoice_company_name": "Kovács Ingatlan Kft.",
                "invoice_tax_number": "87654321-1-23",
            },
        )
        assert session.advance().errors == {
            "invoice_tax_number": "Company invoices must use the organization's tax number"
        }

        session.change_field("organization_type", "sole_proprietor")
        assert session.advance().step_id == "features"

    def test_plan_must_cover_properties(self, make_session) -> None:
        session = make_session(organization.build())
        second = {**PROPERTY, "name": "Buda Lofts"}
        self._reach_payment(session, properties=(PROPERTY, second))
        session.change_field("enable_bank_transfer", False)
        session.advance()
        session.advance()
        assert session.sequencer.current_step.id == "plan"

        session.change_field("selected_plan_id", "free")
        assert session.advance().errors == {
            "selected_plan_id": "The selected plan does not cover all of your properties"
        }
        session.change_field("selected_plan_id", "starter")
        assert session.advance().status == "ready"
        assert session.view().ai_assistant


class TestEnhancedFlow:
    def test_missing_company_shows_reminder(self, make_session, valid_account) -> None:
        session = make_session(enhanced.build())
        _fill(session, valid_account)
        session.advance()

        result = session.advance()
        assert result.status == "interstitial"
        assert result.interstitial_id == enhanced.COMPANY_REMINDER

        result = session.resolve_interstitial("return")
        assert result.status == "stayed"
        session.change_field("company_name", "Acme Kft.")
        assert session.advance().step_id == "review"

    def test_unsupported_language(self, make_session, valid_account) -> None:
        session = make_session(enhanced.build())
        _fill(session, {**valid_account, "language": "de"})
        assert session.advance().errors == {"language": "Unsupported language"}
