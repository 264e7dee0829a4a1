"""Tests for field rules, step validation and password strength."""

import pytest

from wizengine.flows import landlord, organization
from wizengine.validation import is_empty, validate_rules
from wizengine.validation.patterns import PHONE_HU, TAX_NUMBER, strip_whitespace
from wizengine.validation.rules import (
    Checked,
    Matches,
    MinLength,
    Pattern,
    Predicate,
    Required,
    confirmation_rules,
    flag,
    password_rules,
)
from wizengine.validation.strength import password_strength
from wizengine.validation.validator import FieldValidator


class TestIsEmpty:
    @pytest.mark.parametrize("value", [None, "", "   ", [], {}, ()])
    def test_empty_values(self, value) -> None:
        assert is_empty(value)

    @pytest.mark.parametrize("value", ["a", 0, False, [1], {"a": 1}])
    def test_non_empty_values(self, value) -> None:
        assert not is_empty(value)


class TestRules:
    def test_required(self) -> None:
        rule = Required("name", "Name is required")
        assert not rule.check("  ", {})
        assert rule.check("Anna", {})

    def test_conditional_required(self) -> None:
        rule = Required("bank_name", "Bank name is required", when=flag("enable_bank_transfer"))
        assert rule.check("", {"enable_bank_transfer": False})
        assert not rule.check("", {"enable_bank_transfer": True})

    def test_checked_requires_true(self) -> None:
        rule = Checked("accept_terms", "Accept the terms")
        assert rule.check(True, {})
        assert not rule.check(False, {})
        assert not rule.check("yes", {})

    def test_pattern_skips_empty(self) -> None:
        rule = Pattern("tax", "Bad format", pattern=TAX_NUMBER)
        assert rule.check("", {})
        assert rule.check("12345678-1-23", {})
        assert not rule.check("12345678-12-3", {})

    def test_pattern_normalizer(self) -> None:
        rule = Pattern("phone", "Bad phone", pattern=PHONE_HU, normalize=strip_whitespace)
        assert rule.check("+36 30 123 4567", {})
        assert rule.check("06301234567", {})
        assert not rule.check("+44 20 7946 0958", {})

    def test_min_length(self) -> None:
        rule = MinLength("name", "Too short", length=2)
        assert not rule.check("A", {})
        assert rule.check("Al", {})

    def test_matches_only_when_both_filled(self) -> None:
        rule = Matches("confirm_password", "Passwords do not match", other="password")
        assert rule.check("", {"password": "Abcdef12"})
        assert rule.check("Abcdef12", {"password": ""})
        assert not rule.check("Abcdef13", {"password": "Abcdef12"})

    def test_predicate(self) -> None:
        rule = Predicate("units", "Need units", fn=lambda value, values: value > 0)
        assert rule.check(None, {})
        assert not rule.check(0, {})


class TestValidateRules:
    def test_first_failure_per_field_wins(self) -> None:
        errors = validate_rules(password_rules(), {"password": "abc"})
        assert errors == {"password": "Password must be at least 8 characters long"}

    def test_password_character_classes(self) -> None:
        assert validate_rules(password_rules(), {"password": "abcdefgh"}) == {
            "password": "Password must contain an uppercase letter"
        }
        assert validate_rules(password_rules(), {"password": "ABCDEFGH"}) == {
            "password": "Password must contain a lowercase letter"
        }
        assert validate_rules(password_rules(), {"password": "Abcdefgh"}) == {
            "password": "Password must contain a digit"
        }
        assert validate_rules(password_rules(), {"password": "Abcdef12"}) == {}

    def test_confirmation_mismatch(self) -> None:
        values = {"password": "Abcdef12", "confirm_password": "Abcdef13"}
        errors = validate_rules(confirmation_rules(), values)
        assert errors == {"confirm_password": "Passwords do not match"}

    def test_skipping_suppresses_required_rules_only(self) -> None:
        rules = (
            Required("tax", "Tax number is required"),
            Pattern("tax", "Bad format", pattern=TAX_NUMBER),
        )
        assert validate_rules(rules, {"tax": ""}, skipping=True) == {}
        assert validate_rules(rules, {"tax": "nope"}, skipping=True) == {"tax": "Bad format"}


class TestFieldValidator:
    def test_skip_mode_read_from_values(self) -> None:
        validator = FieldValidator(landlord.build())
        values = {"skip_company_info": True, "estimated_properties": 1, "experience": "beginner"}
        assert validator.validate("company", values) == {}

    def test_company_fields_required_without_skip(self) -> None:
        validator = FieldValidator(landlord.build())
        errors = validator.validate("company", {"skip_company_info": False, "experience": "beginner"})
        assert set(errors) == {"company_name", "company_tax_id", "company_address"}

    def test_cross_step_rule_sees_all_values(self) -> None:
        validator = FieldValidator(organization.build())
        values = {"organization_type": "limited_company", "enable_bank_transfer": False}
        errors = validator.validate("payment", values)
        assert errors == {"invoice_tax_number": "Tax number is required for invoicing"}

    def test_bank_fields_required_with_bank_transfer(self) -> None:
        validator = FieldValidator(organization.build())
        errors = validator.validate("payment", {"enable_bank_transfer": True})
        assert set(errors) == {"bank_account_number", "bank_name", "account_holder_name"}

    def test_bank_account_format(self) -> None:
        validator = FieldValidator(organization.build())
        values = {
            "enable_bank_transfer": True,
            "bank_account_number": "12345678-1234567",
            "bank_name": "OTP",
            "account_holder_name": "Anna",
        }
        assert set(validator.validate("payment", values)) == {"bank_account_number"}

    def test_unknown_step_raises(self) -> None:
        with pytest.raises(KeyError):
            FieldValidator(landlord.build()).validate("nope", {})


class TestPasswordStrength:
    def test_empty(self) -> None:
        strength = password_strength("")
        assert strength.score == 0
        assert strength.label == "empty"

    @pytest.mark.parametrize(
        "password,score,label",
        [
            ("abc", 25, "weak"),
            ("abcdefgh", 50, "fair"),
            ("Abcdefgh", 75, "strong"),
            ("Abcdef12", 100, "very_strong"),
        ],
    )
    def test_scores(self, password, score, label) -> None:
        strength = password_strength(password)
        assert strength.score == score
        assert strength.label == label

    def test_missing_criteria(self) -> None:
        assert password_strength("abc").missing == [
            "at least 8 characters",
            "uppercase letter",
            "digit",
        ]
