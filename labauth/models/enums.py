"""
Shared Enumerations for the Lab Portal Models.

All string enumerations for type-safe field constraints.
StrEnum values compare equal to their string equivalents,
so code like ``if role == "student"`` continues to work.
"""

from __future__ import annotations

from enum import StrEnum


class UserRole(StrEnum):
    """The closed set of application roles.

    No other value is ever valid: imports, forms and stored rows are all
    rejected when they carry anything outside this enumeration.
    """

    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    LAB_MANAGER = "lab_manager"
    INSTRUCTOR = "instructor"
    LAB_STAFF = "lab_staff"
    STUDENT = "student"

    @classmethod
    def values(cls) -> list[str]:
        """Role values in declaration order."""
        return [role.value for role in cls]


# Roles that must carry an employee ID (students carry a student ID instead).
STAFF_ROLES: frozenset[UserRole] = frozenset({
    UserRole.SUPER_ADMIN,
    UserRole.ADMIN,
    UserRole.LAB_MANAGER,
    UserRole.INSTRUCTOR,
    UserRole.LAB_STAFF,
})


class AuthProvider(StrEnum):
    """How a user signed in.  ``EMAIL`` is password sign-up."""

    EMAIL = "email"
    GOOGLE = "google"
    APPLE = "apple"


class UserStatus(StrEnum):
    """Admin console status filter values."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"


DEPARTMENTS: tuple[str, ...] = (
    "Computer Science",
    "Information Technology",
    "Software Engineering",
    "Data Science",
    "Cybersecurity",
    "Network Engineering",
    "Digital Media",
    "Game Development",
    "Web Development",
    "Mobile Development",
    "Other",
)
