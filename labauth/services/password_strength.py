"""Password strength scoring for the sign-up and update-password forms."""

from __future__ import annotations

from labauth.models.auth_models import PasswordStrength
from labauth.models.forms import PASSWORD_MIN_LENGTH, PASSWORD_RULES

_HINTS: tuple[str, ...] = (
    "Add uppercase letters",
    "Add lowercase letters",
    "Add numbers",
    "Add special characters",
)

_LABELS: dict[int, str] = {
    0: "Very Weak",
    1: "Very Weak",
    2: "Weak",
    3: "Fair",
    4: "Good",
    5: "Strong",
}


def calculate_password_strength(password: str) -> PasswordStrength:
    """Score *password* one point per satisfied rule (length, upper, lower,
    digit, special).  Only a full score of 5 is valid.
    """
    score = 0
    feedback: list[str] = []

    if len(password) >= PASSWORD_MIN_LENGTH:
        score += 1
    else:
        feedback.append(f"Use at least {PASSWORD_MIN_LENGTH} characters")

    for (pattern, _), hint in zip(PASSWORD_RULES, _HINTS):
        if pattern.search(password):
            score += 1
        else:
            feedback.append(hint)

    return PasswordStrength(
        score=score,
        feedback=feedback,
        is_valid=score >= 5,
        label=_LABELS[score],
    )
