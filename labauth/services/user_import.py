"""
User Import Validator.

Turns decoded CSV rows into validated ``UserRecord`` objects.

Validation contract:
    - The first row is the header; names are matched case-insensitively.
    - ``email``, ``first_name``, ``last_name`` and ``role`` headers are
      mandatory.  All missing names are reported together, before any data
      row is read.
    - Unknown headers are ignored; blank rows are skipped.
    - Any row-level failure aborts the whole batch.  Row numbers in error
      messages are the row's 1-based position in the file (header = 1).

Account creation is not transactional across rows, so a partially valid
file is rejected as a whole rather than half-imported.
"""

from __future__ import annotations

from typing import Optional, Sequence

from labauth.logger import StructuredLogger
from labauth.models.enums import STAFF_ROLES, UserRole
from labauth.models.forms import role_ids_present
from labauth.models.user import UserRecord, is_valid_email

__all__ = [
    "CsvStructureError",
    "ImportRowError",
    "OPTIONAL_HEADERS",
    "REQUIRED_HEADERS",
    "UserImportError",
    "validate_import",
]

REQUIRED_HEADERS: tuple[str, ...] = ("email", "first_name", "last_name", "role")
OPTIONAL_HEADERS: tuple[str, ...] = ("department", "employee_id", "student_id", "phone_number")


class UserImportError(Exception):
    """Base class for import validation failures."""

    def __init__(self, message: str) -> None:
        self.message: str = message
        super().__init__(self.message)


class CsvStructureError(UserImportError):
    """The header row is absent or lacks required columns."""

    def __init__(self, message: str, missing_headers: Sequence[str] = ()) -> None:
        self.missing_headers: tuple[str, ...] = tuple(missing_headers)
        super().__init__(message)


class ImportRowError(UserImportError):
    """A data row failed validation.

    Attributes:
        row_number: 1-based position of the row in the file.
        field: Column at fault (``None`` when several are missing).
        value: The offending value, when there is one.
    """

    def __init__(
        self,
        message: str,
        row_number: int,
        field: Optional[str] = None,
        value: Optional[str] = None,
    ) -> None:
        self.row_number: int = row_number
        self.field: Optional[str] = field
        self.value: Optional[str] = value
        super().__init__(message)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_import(
    rows: Sequence[Sequence[str]],
    *,
    enforce_role_ids: bool = False,
    logger: Optional[StructuredLogger] = None,
) -> list[UserRecord]:
    """Validate decoded CSV *rows* and return the users in file order.

    Args:
        rows: Output of :func:`labauth.utils.csv_codec.decode_csv`.
        enforce_role_ids: Also require an employee ID for staff roles and a
            student ID for students, as the registration form does.
        logger: Optional sink for a summary line.

    Raises:
        CsvStructureError: No header / data rows, or required headers missing.
        ImportRowError: The first invalid data row.
    """
    if not rows:
        raise CsvStructureError("CSV file is empty")

    headers: list[str] = [header.strip().lower() for header in rows[0]]
    _check_headers(headers)

    if len(rows) < 2:
        raise CsvStructureError(
            "CSV must contain at least a header row and one data row"
        )

    users: list[UserRecord] = []
    for index in range(1, len(rows)):
        row = rows[index]
        if not row or all(not cell.strip() for cell in row):
            continue
        users.append(
            _parse_row(headers, row, row_number=index + 1, enforce_role_ids=enforce_role_ids)
        )

    if logger is not None:
        logger.info(
            "Validated user import: %d users from %d data rows",
            len(users),
            len(rows) - 1,
        )
    return users


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _check_headers(headers: Sequence[str]) -> None:
    missing = [name for name in REQUIRED_HEADERS if name not in headers]
    if missing:
        raise CsvStructureError(
            f"Missing required headers: {', '.join(missing)}",
            missing_headers=missing,
        )


def _parse_row(
    headers: Sequence[str],
    row: Sequence[str],
    *,
    row_number: int,
    enforce_role_ids: bool,
) -> UserRecord:
    values: dict[str, Optional[str]] = {}

    for position, header in enumerate(headers):
        if header not in REQUIRED_HEADERS and header not in OPTIONAL_HEADERS:
            continue
        value = row[position].strip() if position < len(row) else ""

        if header == "role" and value not in UserRole.values():
            raise ImportRowError(
                f'Invalid role "{value}" in row {row_number}. '
                f"Valid roles: {', '.join(UserRole.values())}",
                row_number=row_number,
                field="role",
                value=value,
            )

        if header in OPTIONAL_HEADERS:
            values[header] = value or None
        else:
            values[header] = value

    missing = [name for name in REQUIRED_HEADERS if not values.get(name)]
    if missing:
        raise ImportRowError(
            f"Missing required fields in row {row_number}: {', '.join(missing)}",
            row_number=row_number,
            field=missing[0] if len(missing) == 1 else None,
        )

    email = values["email"] or ""
    if not is_valid_email(email):
        raise ImportRowError(
            f'Invalid email format "{email}" in row {row_number}',
            row_number=row_number,
            field="email",
            value=email,
        )

    role = UserRole(values["role"])
    if enforce_role_ids and not role_ids_present(
        role, values.get("employee_id"), values.get("student_id")
    ):
        field = "employee_id" if role in STAFF_ROLES else "student_id"
        raise ImportRowError(
            f"Missing {field} for role \"{role}\" in row {row_number}",
            row_number=row_number,
            field=field,
        )

    return UserRecord(
        email=email,
        first_name=values["first_name"] or "",
        last_name=values["last_name"] or "",
        role=role,
        department=values.get("department"),
        employee_id=values.get("employee_id"),
        student_id=values.get("student_id"),
        phone_number=values.get("phone_number"),
    )
