"""Format patterns shared by the onboarding flows."""

import re

EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_HU = re.compile(r"^(\+36|06)\d{8,9}$")
POSTAL_CODE = re.compile(r"^\d{4}$")
TAX_NUMBER = re.compile(r"^\d{8}-\d-\d{2}$")
BANK_ACCOUNT = re.compile(r"^\d{8}-\d{8}(-\d{8})?$")

UPPERCASE = re.compile(r"[A-Z]")
LOWERCASE = re.compile(r"[a-z]")
DIGIT = re.compile(r"[0-9]")

_WHITESPACE = re.compile(r"\s+")


def strip_whitespace(value: str) -> str:
    return _WHITESPACE.sub("", value)
