"""
Account Approval Heuristic.

Staff accounts created through self-service sign-up start inactive and wait
for an administrator.  There is no explicit "pending" column, so pending is
derived: a non-student, inactive account created within the approval window
that has never logged in.  Older or previously used inactive accounts are
treated as deliberately deactivated.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from labauth.models.enums import UserRole, UserStatus
from labauth.models.user import StoredProfile

__all__ = ["filter_users", "needs_approval", "user_status"]

DEFAULT_APPROVAL_WINDOW_DAYS: int = 30


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def needs_approval(
    user: StoredProfile,
    now: datetime,
    window_days: int = DEFAULT_APPROVAL_WINDOW_DAYS,
) -> bool:
    if user.role == UserRole.STUDENT:
        return False
    # A null flag counts as active, matching the column default.
    if user.is_active is not False:
        return False
    if user.created_at is None:
        return False

    cutoff = _as_utc(now) - timedelta(days=window_days)
    return _as_utc(user.created_at) > cutoff and user.last_login is None


def user_status(
    user: StoredProfile,
    now: datetime,
    window_days: int = DEFAULT_APPROVAL_WINDOW_DAYS,
) -> UserStatus:
    if needs_approval(user, now, window_days):
        return UserStatus.PENDING
    if user.is_active is False:
        return UserStatus.INACTIVE
    return UserStatus.ACTIVE


def _matches_search(user: StoredProfile, needle: str) -> bool:
    haystack = (
        user.first_name,
        user.last_name,
        user.email,
        user.employee_id,
        user.student_id,
    )
    return any(value and needle in value.lower() for value in haystack)


def filter_users(
    users: Iterable[StoredProfile],
    now: datetime,
    *,
    search: Optional[str] = None,
    role: Optional[str] = None,
    status: Optional[str] = None,
    department: Optional[str] = None,
    window_days: int = DEFAULT_APPROVAL_WINDOW_DAYS,
) -> list[StoredProfile]:
    """Apply the admin console filters.

    ``None`` or ``"all"`` disables a filter.  *search* is a case-insensitive
    substring match over names, email, employee ID and student ID.
    """
    needle = (search or "").strip().lower()
    result: list[StoredProfile] = []

    for user in users:
        if needle and not _matches_search(user, needle):
            continue
        if role not in (None, "all") and user.role != role:
            continue
        if status not in (None, "all") and user_status(user, now, window_days) != status:
            continue
        if department not in (None, "all") and user.department != department:
            continue
        result.append(user)

    return result
