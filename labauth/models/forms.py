"""
Form Input Models.

Pydantic models for the sign-in, sign-up, password and profile forms.
Each model validates a submitted payload at the boundary; a failed
``model_validate`` surfaces as ``pydantic.ValidationError`` with one entry
per offending field.
"""

from __future__ import annotations

import re
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator

from labauth.models.enums import DEPARTMENTS, STAFF_ROLES, UserRole
from labauth.models.user import is_valid_email

_NAME_RE: re.Pattern[str] = re.compile(r"^[a-zA-Z\s'-]+$")
_PHONE_RE: re.Pattern[str] = re.compile(r"^\+?[1-9]\d{0,15}$")
_ID_RE: re.Pattern[str] = re.compile(r"^[A-Za-z0-9_-]+$")

# (rule, message) pairs shared with the password strength scorer.
PASSWORD_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"[A-Z]"), "Password must contain at least one uppercase letter"),
    (re.compile(r"[a-z]"), "Password must contain at least one lowercase letter"),
    (re.compile(r"[0-9]"), "Password must contain at least one number"),
    (re.compile(r"[^A-Za-z0-9]"), "Password must contain at least one special character"),
)
PASSWORD_MIN_LENGTH: int = 8

ROLE_ID_MESSAGE: str = (
    "Employee ID is required for staff roles, Student ID is required for students"
)


# ---------------------------------------------------------------------------
# Field rules
# ---------------------------------------------------------------------------

def check_email(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Email is required")
    if not is_valid_email(value):
        raise ValueError("Please enter a valid email address")
    return value


def check_password(value: str) -> str:
    if len(value) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    for pattern, message in PASSWORD_RULES:
        if not pattern.search(value):
            raise ValueError(message)
    return value


def check_name(value: str) -> str:
    if len(value) < 2:
        raise ValueError("Must be at least 2 characters")
    if len(value) > 50:
        raise ValueError("Must be less than 50 characters")
    if not _NAME_RE.match(value):
        raise ValueError("Only letters, spaces, hyphens, and apostrophes are allowed")
    return value


def check_optional_id(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    if len(value) < 3:
        raise ValueError("ID must be at least 3 characters")
    if len(value) > 20:
        raise ValueError("ID must be less than 20 characters")
    if not _ID_RE.match(value):
        raise ValueError("ID can only contain letters, numbers, hyphens, and underscores")
    return value


def check_optional_phone(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    if not _PHONE_RE.match(value):
        raise ValueError("Please enter a valid phone number")
    return value


def check_optional_department(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    if value not in DEPARTMENTS:
        raise ValueError(f"Unknown department '{value}'")
    return value


def role_ids_present(
    role: UserRole,
    employee_id: Optional[str],
    student_id: Optional[str],
) -> bool:
    """Staff roles need an employee ID; students need a student ID."""
    if role in STAFF_ROLES:
        return bool(employee_id)
    if role == UserRole.STUDENT:
        return bool(student_id)
    return True


# ---------------------------------------------------------------------------
# Annotated field types
# ---------------------------------------------------------------------------

EmailField = Annotated[str, AfterValidator(check_email)]
PasswordField = Annotated[str, AfterValidator(check_password)]
NameField = Annotated[str, AfterValidator(check_name)]
OptionalIdField = Annotated[Optional[str], AfterValidator(check_optional_id)]
OptionalPhoneField = Annotated[Optional[str], AfterValidator(check_optional_phone)]
OptionalDepartmentField = Annotated[Optional[str], AfterValidator(check_optional_department)]


# ---------------------------------------------------------------------------
# Forms
# ---------------------------------------------------------------------------

class LoginForm(BaseModel):
    email: EmailField
    password: str = Field(min_length=1)
    remember_me: bool = False


class ResetPasswordForm(BaseModel):
    email: EmailField


class UpdatePasswordForm(BaseModel):
    password: PasswordField
    confirm_password: str

    @model_validator(mode="after")
    def _passwords_match(self) -> "UpdatePasswordForm":
        if self.password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self


class ProfileCompletionForm(BaseModel):
    """Fields an OAuth user supplies before first use of the application."""

    model_config = ConfigDict(str_strip_whitespace=True)

    first_name: NameField
    last_name: NameField
    role: UserRole
    department: OptionalDepartmentField = None
    employee_id: OptionalIdField = None
    student_id: OptionalIdField = None
    phone_number: OptionalPhoneField = None

    @model_validator(mode="after")
    def _role_ids(self) -> "ProfileCompletionForm":
        if not role_ids_present(self.role, self.employee_id, self.student_id):
            raise ValueError(ROLE_ID_MESSAGE)
        return self


class RegistrationForm(ProfileCompletionForm):
    """Email/password sign-up."""

    email: EmailField
    password: PasswordField
    confirm_password: str
    accept_terms: bool = False

    @model_validator(mode="after")
    def _confirmations(self) -> "RegistrationForm":
        if self.password != self.confirm_password:
            raise ValueError("Passwords don't match")
        if not self.accept_terms:
            raise ValueError("You must accept the terms and conditions")
        return self


class ProfileUpdateForm(BaseModel):
    """Self-service edits from the profile page."""

    model_config = ConfigDict(str_strip_whitespace=True)

    first_name: NameField
    last_name: NameField
    department: OptionalDepartmentField = None
    phone_number: OptionalPhoneField = None
