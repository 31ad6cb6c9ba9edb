"""
User Models.

Pydantic models for every user-shaped record that crosses a boundary:

- ``UserRecord``       : a validated row from a CSV import.
- ``StoredProfile``    : a row of the hosted ``users`` table.
- ``ReconciledProfile``: the merged application view of a signed-in user.
- ``ExportRow``        : the flat, all-string shape written to CSV.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from labauth.models.enums import UserRole

EMAIL_PATTERN: re.Pattern[str] = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(value: str) -> bool:
    """``True`` when *value* matches the simple ``local@domain.tld`` shape."""
    return bool(EMAIL_PATTERN.match(value))


class UserRecord(BaseModel):
    """A user as imported from (or exported to) CSV.

    ``created_at`` and ``last_login`` are only populated on export.
    """

    model_config = ConfigDict(frozen=True)

    email: str
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    role: UserRole
    department: Optional[str] = None
    employee_id: Optional[str] = None
    student_id: Optional[str] = None
    phone_number: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        if not is_valid_email(value):
            raise ValueError(f'Invalid email format "{value}"')
        return value


class StoredProfile(BaseModel):
    """A row of the ``users`` table as returned by the store client.

    Every column except ``id`` may be null in legacy rows.  Unknown columns
    are dropped; known columns with the wrong type fail validation.
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[UserRole] = None
    department: Optional[str] = None
    employee_id: Optional[str] = None
    student_id: Optional[str] = None
    phone_number: Optional[str] = None
    profile_image_url: Optional[str] = None
    is_active: Optional[bool] = None
    auth_provider: Optional[str] = None
    provider_id: Optional[str] = None
    profile_completed: Optional[bool] = None
    registration_completed: Optional[bool] = None
    email_verified: Optional[bool] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_login: Optional[datetime] = None


class ReconciledProfile(BaseModel):
    """The application-level view of an authenticated principal.

    Produced by :func:`labauth.services.reconciliation.reconcile`; the
    persistence layer upserts it and the UI layer reads it for redirects.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    first_name: str = ""
    last_name: str = ""
    role: UserRole = UserRole.STUDENT
    department: Optional[str] = None
    employee_id: Optional[str] = None
    student_id: Optional[str] = None
    phone_number: Optional[str] = None
    profile_image_url: Optional[str] = None
    is_active: bool = True
    auth_provider: str = "email"
    provider_id: Optional[str] = None
    profile_completed: bool = False
    registration_completed: bool = False
    email_verified: bool = False
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None

    def to_row(self) -> dict[str, object]:
        """Column mapping for an insert/upsert into the ``users`` table.

        Store-managed timestamps are left out so the database defaults apply.
        """
        return self.model_dump(mode="json", exclude={"created_at", "last_login"})


class ExportRow(BaseModel):
    """One line of a user export; every value is already display text."""

    email: str
    first_name: str
    last_name: str
    role: str
    department: str = ""
    employee_id: str = ""
    student_id: str = ""
    phone_number: str = ""
    is_active: str = ""
    created_at: str = ""
    last_login: str = ""
