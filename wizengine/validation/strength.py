"""Password strength scoring for live feedback."""

from __future__ import annotations

from wizengine.models import PasswordStrength
from wizengine.validation.patterns import DIGIT, LOWERCASE, UPPERCASE


def password_strength(password: str | None) -> PasswordStrength:
    """Score 25 points per satisfied criterion and list the missing ones."""
    if not password:
        return PasswordStrength(score=0, label="empty")

    criteria = [
        ("at least 8 characters", len(password) >= 8),
        ("uppercase letter", UPPERCASE.search(password) is not None),
        ("lowercase letter", LOWERCASE.search(password) is not None),
        ("digit", DIGIT.search(password) is not None),
    ]
    score = 25 * sum(1 for _, ok in criteria if ok)
    missing = [name for name, ok in criteria if not ok]

    if score < 50:
        label = "weak"
    elif score < 75:
        label = "fair"
    elif score < 100:
        label = "strong"
    else:
        label = "very_strong"
    return PasswordStrength(score=score, label=label, missing=missing)
